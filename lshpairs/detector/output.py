"""Writers for candidate pair lists.

Supports:
- .jsonl (JSON Lines, optionally gzipped)
- .tsv (tab separated, header row)
- .parquet (columnar format, needs pandas + pyarrow)
"""
from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import Any, Dict, Hashable, Iterable, List, Optional, Sequence, Union

from .errors import InvalidArgumentError
from .pairs import CandidatePair

try:
    import pandas as pd
    import pyarrow  # noqa: F401
    PARQUET_AVAILABLE = True
except ImportError:
    PARQUET_AVAILABLE = False
    pd = None

FIELDS = ("item_i", "item_j", "collision_count", "bands")


def pair_record(pair: CandidatePair, ids: Optional[Sequence[Hashable]] = None) -> Dict[str, Any]:
    """Build a serialisable record; adds the external IDs when *ids* is given."""
    record: Dict[str, Any] = {
        "item_i": int(pair.item_i),
        "item_j": int(pair.item_j),
        "collision_count": int(pair.collision_count),
        "bands": [int(b) for b in pair.bands],
    }
    if ids is not None:
        record["id_i"] = ids[pair.item_i]
        record["id_j"] = ids[pair.item_j]
    return record


class PairWriter:
    """Base class for pair writers."""

    format = ""

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        self.total_written = 0

    def write(self, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def write_all(self, records: Iterable[Dict[str, Any]]) -> None:
        for record in records:
            self.write(record)

    def finalize(self) -> Dict[str, Any]:
        """Finalize writing and return stats."""
        return {"format": self.format, "path": str(self.output_path), "total_records": self.total_written}

    def abort(self) -> None:
        """Discard everything written so far; no output file is left behind."""
        fh = getattr(self, "_fh", None)
        if fh is not None and not fh.closed:
            fh.close()
        if self.output_path.exists():
            self.output_path.unlink()


class JSONLWriter(PairWriter):
    format = "jsonl"

    def __init__(self, output_path: Path, compress: bool = False):
        super().__init__(output_path)
        self.compress = compress
        if compress:
            self._fh = gzip.open(self.output_path, "wt", encoding="utf-8")
        else:
            self._fh = open(self.output_path, "w", encoding="utf-8")

    def write(self, record: Dict[str, Any]) -> None:
        json.dump(record, self._fh, ensure_ascii=False)
        self._fh.write("\n")
        self.total_written += 1

    def finalize(self) -> Dict[str, Any]:
        if not self._fh.closed:
            self._fh.close()
        stats = super().finalize()
        stats["compressed"] = self.compress
        return stats


class TSVWriter(PairWriter):
    format = "tsv"

    def __init__(self, output_path: Path):
        super().__init__(output_path)
        self._fh = open(self.output_path, "w", encoding="utf-8")
        self._header: Optional[List[str]] = None

    def write(self, record: Dict[str, Any]) -> None:
        if self._header is None:
            self._header = list(record.keys())
            self._fh.write("\t".join(self._header) + "\n")
        values = []
        for field in self._header:
            value = record.get(field)
            if isinstance(value, list):
                value = ",".join(str(v) for v in value)
            values.append(str(value))
        self._fh.write("\t".join(values) + "\n")
        self.total_written += 1

    def finalize(self) -> Dict[str, Any]:
        if not self._fh.closed:
            if self._header is None:
                self._fh.write("\t".join(FIELDS) + "\n")
            self._fh.close()
        return super().finalize()


class ParquetWriter(PairWriter):
    format = "parquet"

    def __init__(self, output_path: Path, compression: str = "snappy"):
        if not PARQUET_AVAILABLE:
            raise ImportError("pandas and pyarrow are required for Parquet output")
        super().__init__(output_path)
        self.compression = compression
        self.buffer: List[Dict[str, Any]] = []
        self._written = False

    def write(self, record: Dict[str, Any]) -> None:
        self.buffer.append(record)
        self.total_written += 1

    def abort(self) -> None:
        # Nothing reaches disk before finalize.
        self.buffer.clear()
        self._written = True

    def finalize(self) -> Dict[str, Any]:
        if not self._written:
            df = pd.DataFrame(self.buffer, columns=list(self.buffer[0].keys()) if self.buffer else list(FIELDS))
            df.to_parquet(self.output_path, compression=self.compression, index=False)
            self._written = True
        stats = super().finalize()
        stats["compression"] = self.compression
        return stats


def create_writer(output_path: Union[str, Path], format: str = "auto") -> PairWriter:
    """Create a writer, detecting the format from the extension when ``auto``."""
    output_path = Path(output_path)
    if format == "auto":
        suffixes = output_path.suffixes
        if suffixes[-2:] == [".jsonl", ".gz"]:
            return JSONLWriter(output_path, compress=True)
        format = output_path.suffix.lstrip(".") or "jsonl"

    if format == "jsonl":
        return JSONLWriter(output_path)
    if format == "tsv":
        return TSVWriter(output_path)
    if format == "parquet":
        return ParquetWriter(output_path)
    raise InvalidArgumentError(f"unsupported output format '{format}'")
