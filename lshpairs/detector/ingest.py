"""Streaming readers for pre-shingled items.

Supported inputs:
- ``.jsonl``: one object per line with an ID field and a list of shingles
- ``.txt``: one item per line, whitespace separated shingles, ID = line number
- ``.gz`` variants of both
"""
from __future__ import annotations

import gzip
import json
import logging
from pathlib import Path
from typing import Generator, Hashable, List, Optional, TextIO, Tuple, Union

import chardet

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

Item = Tuple[Hashable, List[Hashable]]


def detect_encoding(file_path: Path, sample_size: int = 8192) -> str:
    """Detect file encoding using chardet."""
    with open(file_path, "rb") as f:
        raw_data = f.read(sample_size)
    result = chardet.detect(raw_data)
    return result.get("encoding") or "utf-8"


def _coerce(token: str) -> Hashable:
    # Numeric shingles stay numeric so that pre-assigned IDs survive.
    try:
        return int(token)
    except ValueError:
        return token


def _open(path: Path) -> TextIO:
    if path.suffix == ".gz":
        return gzip.open(path, "rt", encoding="utf-8", errors="replace")
    return open(path, "r", encoding=detect_encoding(path), errors="replace")


def _inner_suffix(path: Path) -> str:
    return Path(path.stem).suffix if path.suffix == ".gz" else path.suffix


def read_jsonl_items(
    fh: TextIO,
    source: str,
    id_field: str = "id",
    shingle_field: str = "shingles",
) -> Generator[Item, None, None]:
    index = 0
    for line_num, line in enumerate(fh, 1):
        line = line.strip()
        if not line:
            continue
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"invalid JSON at {source}:{line_num}: {e}") from e
        if not isinstance(obj, dict) or shingle_field not in obj:
            raise InvalidArgumentError(f"missing '{shingle_field}' at {source}:{line_num}")
        shingles = obj[shingle_field]
        if not isinstance(shingles, list):
            raise InvalidArgumentError(f"'{shingle_field}' must be a list at {source}:{line_num}")
        # Default ID is the item index; blank lines are not counted.
        yield obj.get(id_field, index), shingles
        index += 1


def read_text_items(fh: TextIO) -> Generator[Item, None, None]:
    # Blank lines are kept as empty items so IDs match line numbers.
    for line_num, line in enumerate(fh):
        yield line_num, [_coerce(tok) for tok in line.split()]


def read_items(
    path: Union[str, Path],
    id_field: str = "id",
    shingle_field: str = "shingles",
    fmt: Optional[str] = None,
) -> Generator[Item, None, None]:
    """Yield ``(item_id, shingles)`` from a ``.jsonl``/``.txt`` file (optionally gzipped)."""
    path = Path(path)
    if not path.is_file():
        raise InvalidArgumentError(f"input file not found: {path}")
    fmt = fmt or _inner_suffix(path).lstrip(".")
    if fmt not in ("jsonl", "txt"):
        raise InvalidArgumentError(f"unsupported input format '{fmt}' for {path}")

    logger.info("Reading items from %s (%s)", path, fmt)
    with _open(path) as fh:
        if fmt == "jsonl":
            yield from read_jsonl_items(fh, str(path), id_field, shingle_field)
        else:
            yield from read_text_items(fh)
