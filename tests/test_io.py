"""Tests for ingestion, shingle universes, writers and configuration."""
from __future__ import annotations

import gzip
import json
from pathlib import Path

import numpy as np
import pytest

from lshpairs.detector.config import PipelineConfig, load_config
from lshpairs.detector.errors import DimensionMismatchError, InvalidArgumentError
from lshpairs.detector.ingest import read_items
from lshpairs.detector.output import create_writer, pair_record
from lshpairs.detector.pairs import CandidatePair
from lshpairs.detector.universe import ShingleUniverse, to_shingle_ids

# -----------------------------------------------------------
# Universe
# -----------------------------------------------------------


def test_universe_assigns_first_seen_ids() -> None:
    universe = ShingleUniverse.from_items([["the cat", "cat sat"], ["cat sat", "sat on"]])
    assert universe.size == 3
    assert list(universe) == ["the cat", "cat sat", "sat on"]
    assert universe.encode(["sat on", "the cat", "sat on"]).tolist() == [0, 2]


def test_universe_unknown_token() -> None:
    universe = ShingleUniverse.from_items([["a"]])
    with pytest.raises(InvalidArgumentError):
        universe.encode(["b"])


def test_to_shingle_ids_compacts_numeric_ids() -> None:
    encoded, size = to_shingle_ids([[3, 1, 3], [7], []])
    assert [e.tolist() for e in encoded] == [[0, 1], [2], []]
    assert size == 3


def test_to_shingle_ids_sparse_ids_stay_small() -> None:
    encoded, size = to_shingle_ids([[1, 2_000_000_000], [1, 5]])
    assert size == 3
    assert [e.tolist() for e in encoded] == [[0, 1], [0, 2]]


def test_unhashable_shingle() -> None:
    with pytest.raises(InvalidArgumentError, match="not hashable"):
        to_shingle_ids([[1, [2, 3]]])
    universe = ShingleUniverse.from_items([["a"]])
    with pytest.raises(InvalidArgumentError):
        universe.encode([["a"]])


def test_to_shingle_ids_remaps_tokens() -> None:
    encoded, size = to_shingle_ids([["x", "y"], ["y", 5]])
    assert size == 3
    assert [e.tolist() for e in encoded] == [[0, 1], [1, 2]]


def test_to_shingle_ids_all_empty() -> None:
    encoded, size = to_shingle_ids([[], []])
    assert size == 1
    assert all(e.size == 0 for e in encoded)

# -----------------------------------------------------------
# Ingestion
# -----------------------------------------------------------


def _write_jsonl(path: Path, rows) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for row in rows:
            f.write(json.dumps(row) + "\n")


def test_read_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl"
    _write_jsonl(path, [{"id": "a", "shingles": [1, 2]}, {"shingles": ["x"]}])
    assert list(read_items(path)) == [("a", [1, 2]), (1, ["x"])]


def test_read_jsonl_default_ids_skip_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl"
    path.write_text('{"shingles": [1]}\n\n\n{"shingles": [2]}\n', encoding="utf-8")
    assert [item_id for item_id, _ in read_items(path)] == [0, 1]


def test_read_jsonl_custom_fields(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl"
    _write_jsonl(path, [{"doc": 10, "grams": [4]}])
    assert list(read_items(path, id_field="doc", shingle_field="grams")) == [(10, [4])]


def test_read_gzipped_jsonl(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write(json.dumps({"id": 1, "shingles": [5, 6]}) + "\n")
    assert list(read_items(path)) == [(1, [5, 6])]


def test_read_gzipped_text_with_invalid_bytes(tmp_path: Path) -> None:
    path = tmp_path / "items.txt.gz"
    with gzip.open(path, "wb") as f:
        f.write(b"\xff\xfe b c\n1 2\n")
    items = list(read_items(path))
    assert len(items) == 2
    assert items[0][1][1:] == ["b", "c"]
    assert items[1] == (1, [1, 2])


def test_read_text(tmp_path: Path) -> None:
    path = tmp_path / "items.txt"
    path.write_text("1 2 3\n\nfoo 4\n", encoding="utf-8")
    assert list(read_items(path)) == [(0, [1, 2, 3]), (1, []), (2, ["foo", 4])]


def test_invalid_json_reports_line(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl"
    path.write_text('{"shingles": [1]}\n{broken\n', encoding="utf-8")
    with pytest.raises(InvalidArgumentError, match=":2"):
        list(read_items(path))


def test_missing_shingle_field(tmp_path: Path) -> None:
    path = tmp_path / "items.jsonl"
    _write_jsonl(path, [{"id": 1}])
    with pytest.raises(InvalidArgumentError):
        list(read_items(path))


def test_unsupported_or_missing_input(tmp_path: Path) -> None:
    path = tmp_path / "items.csv"
    path.write_text("1,2\n")
    with pytest.raises(InvalidArgumentError):
        list(read_items(path))
    with pytest.raises(InvalidArgumentError):
        list(read_items(tmp_path / "nope.jsonl"))

# -----------------------------------------------------------
# Output
# -----------------------------------------------------------

PAIRS = [CandidatePair(0, 1, 2, (0, 3)), CandidatePair(1, 4, 1, (2,))]


def test_pair_record_with_ids() -> None:
    record = pair_record(PAIRS[0], ids=["a", "b"])
    assert record == {"item_i": 0, "item_j": 1, "collision_count": 2, "bands": [0, 3], "id_i": "a", "id_j": "b"}


def test_jsonl_writer(tmp_path: Path) -> None:
    path = tmp_path / "out" / "pairs.jsonl"
    writer = create_writer(path)
    writer.write_all(pair_record(p) for p in PAIRS)
    stats = writer.finalize()
    assert stats["total_records"] == 2
    lines = [json.loads(line) for line in path.read_text().splitlines()]
    assert lines[1] == {"item_i": 1, "item_j": 4, "collision_count": 1, "bands": [2]}


def test_gzipped_jsonl_writer(tmp_path: Path) -> None:
    path = tmp_path / "pairs.jsonl.gz"
    writer = create_writer(path)
    writer.write(pair_record(PAIRS[0]))
    assert writer.finalize()["compressed"] is True
    with gzip.open(path, "rt", encoding="utf-8") as f:
        assert json.loads(f.readline())["bands"] == [0, 3]


def test_tsv_writer(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    writer = create_writer(path)
    writer.write_all(pair_record(p) for p in PAIRS)
    writer.finalize()
    assert path.read_text().splitlines() == [
        "item_i\titem_j\tcollision_count\tbands",
        "0\t1\t2\t0,3",
        "1\t4\t1\t2",
    ]


def test_tsv_writer_without_pairs_writes_header(tmp_path: Path) -> None:
    path = tmp_path / "pairs.tsv"
    create_writer(path).finalize()
    assert path.read_text() == "item_i\titem_j\tcollision_count\tbands\n"


def test_abort_removes_partial_output(tmp_path: Path) -> None:
    for name in ("pairs.jsonl", "pairs.jsonl.gz", "pairs.tsv"):
        path = tmp_path / name
        writer = create_writer(path)
        writer.write(pair_record(PAIRS[0]))
        writer.abort()
        assert not path.exists()


def test_unsupported_output_format(tmp_path: Path) -> None:
    with pytest.raises(InvalidArgumentError):
        create_writer(tmp_path / "pairs.xml")

# -----------------------------------------------------------
# Configuration
# -----------------------------------------------------------


def test_config_defaults_are_consistent() -> None:
    config = PipelineConfig()
    assert config.bands_number * config.rows_per_band == config.num_perm


def test_load_config_resolves_relative_paths(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.yml"
    cfg.write_text("input: items.jsonl\noutput: out/pairs.tsv\nnum_perm: 8\nbands_number: 4\nrows_per_band: 2\n")
    config = load_config(cfg)
    assert config.input == tmp_path.resolve() / "items.jsonl"
    assert config.output == tmp_path.resolve() / "out" / "pairs.tsv"
    assert config.num_perm == 8
    assert config.to_dict()["input"] == str(tmp_path.resolve() / "items.jsonl")


def test_config_band_mismatch(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.yml"
    cfg.write_text("num_perm: 10\nbands_number: 3\nrows_per_band: 3\n")
    with pytest.raises(DimensionMismatchError):
        load_config(cfg)


@pytest.mark.parametrize("text", ["bogus: 1\n", "- 1\n- 2\n", "num_perm: 0\n", "empty_policy: skip\n", "workers: 0\n"])
def test_config_rejects_invalid(tmp_path: Path, text: str) -> None:
    cfg = tmp_path / "cfg.yml"
    cfg.write_text(text)
    with pytest.raises(InvalidArgumentError):
        load_config(cfg)


def test_empty_config_file_uses_defaults(tmp_path: Path) -> None:
    cfg = tmp_path / "cfg.yml"
    cfg.write_text("")
    assert load_config(cfg).num_perm == 128
