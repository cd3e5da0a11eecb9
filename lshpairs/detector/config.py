"""YAML configuration for the ``lshpairs run`` command.

Example::

    input: data/items.jsonl
    output: results/pairs.jsonl
    num_perm: 128
    bands_number: 32
    rows_per_band: 4
    seed: 42
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .errors import DimensionMismatchError, InvalidArgumentError
from .minhash import EMPTY_POLICIES


@dataclass
class PipelineConfig:
    input: Optional[Path] = None
    output: Path = Path("results/pairs.jsonl")
    num_perm: int = 128
    bands_number: int = 32
    rows_per_band: int = 4
    seed: int = 42
    universe_size: Optional[int] = None
    empty_policy: str = "sentinel"
    min_collisions: int = 1
    workers: Optional[int] = None
    format: str = "auto"
    id_field: str = "id"
    shingle_field: str = "shingles"

    def __post_init__(self) -> None:
        if self.input is not None:
            self.input = Path(self.input).expanduser()
        self.output = Path(self.output).expanduser()
        for name in ("num_perm", "bands_number", "rows_per_band", "min_collisions"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.seed, int) or self.seed < 0:
            raise InvalidArgumentError(f"seed must be a non-negative integer, got {self.seed!r}")
        if self.bands_number * self.rows_per_band != self.num_perm:
            raise DimensionMismatchError(
                f"bands_number * rows_per_band ({self.bands_number} * {self.rows_per_band}) "
                f"must equal num_perm ({self.num_perm})"
            )
        if self.workers is not None and (not isinstance(self.workers, int) or self.workers < 1):
            raise InvalidArgumentError(f"workers must be a positive integer, got {self.workers!r}")
        if self.empty_policy not in EMPTY_POLICIES:
            raise InvalidArgumentError(f"empty_policy must be one of {EMPTY_POLICIES}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PipelineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidArgumentError(f"unknown configuration keys: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("input", "output"):
            if data[key] is not None:
                data[key] = str(data[key])
        return data


def load_config(path: Union[str, Path]) -> PipelineConfig:
    """Read a YAML file into a validated :class:`PipelineConfig`."""
    cfg_path = Path(path).expanduser().resolve()
    with cfg_path.open() as f:
        cfg = yaml.safe_load(f) or {}
    if not isinstance(cfg, dict):
        raise InvalidArgumentError(f"{cfg_path} must contain a mapping")
    # Relative paths are taken relative to the config file.
    for key in ("input", "output"):
        if key in cfg and cfg[key] is not None and not Path(cfg[key]).expanduser().is_absolute():
            cfg[key] = cfg_path.parent / cfg[key]
    return PipelineConfig.from_dict(cfg)
