"""Tests for candidate pair generation."""
from __future__ import annotations

import numpy as np
import pytest

from lshpairs.detector.errors import InvalidArgumentError
from lshpairs.detector.pairs import (
    CandidatePair,
    as_band_code_matrix,
    generate_candidate_pairs,
    group_band,
)


def test_pair_counted_once_across_bands() -> None:
    # Items 0 and 1 collide in bands 0 and 2.
    codes = np.array([
        [5, 5, 7],
        [1, 2, 3],
        [9, 9, 4],
    ])
    assert generate_candidate_pairs(codes) == [CandidatePair(0, 1, 2, (0, 2))]


def test_group_enumerates_all_combinations() -> None:
    codes = np.array([[1, 2, 1, 1, 3]])
    pairs = generate_candidate_pairs(codes)
    assert [(p.item_i, p.item_j) for p in pairs] == [(0, 2), (0, 3), (2, 3)]
    assert all(p.collision_count == 1 and p.bands == (0,) for p in pairs)


def test_counts_accumulate_over_bands() -> None:
    codes = np.array([
        [1, 1, 1, 2],
        [3, 3, 4, 4],
        [5, 6, 5, 6],
    ])
    pairs = {(p.item_i, p.item_j): p for p in generate_candidate_pairs(codes)}
    assert pairs[(0, 1)].collision_count == 2
    assert pairs[(0, 1)].bands == (0, 1)
    assert pairs[(0, 2)].bands == (0, 2)
    assert pairs[(1, 2)].bands == (0,)
    assert pairs[(1, 3)].bands == (2,)
    assert pairs[(2, 3)].bands == (1,)
    assert (0, 3) not in pairs


def test_output_invariants() -> None:
    rng = np.random.default_rng(1)
    codes = rng.integers(0, 4, size=(6, 30))
    pairs = generate_candidate_pairs(codes)
    keys = [(p.item_i, p.item_j) for p in pairs]
    assert keys == sorted(keys)
    assert len(keys) == len(set(keys))
    for p in pairs:
        assert p.item_i < p.item_j
        assert 0 < p.collision_count <= 6
        assert p.collision_count == len(p.bands)
        assert (p.item_j, p.item_i) not in set(keys)


def test_list_of_band_vectors_matches_matrix() -> None:
    bands = [[4, 4, 1, 1], [7, 8, 7, 8]]
    assert generate_candidate_pairs(bands) == generate_candidate_pairs(np.array(bands))


def test_jagged_input_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        generate_candidate_pairs([[1, 2, 3], [1, 2]])
    with pytest.raises(InvalidArgumentError):
        as_band_code_matrix([[[1, 2]], [[1, 2]]])


def test_one_dimensional_matrix_rejected() -> None:
    with pytest.raises(InvalidArgumentError):
        generate_candidate_pairs(np.array([1, 1, 2]))


def test_no_collisions() -> None:
    assert generate_candidate_pairs(np.array([[1, 2, 3], [4, 5, 6]])) == []


@pytest.mark.parametrize("codes", [[], [[]], np.empty((3, 0)), np.array([[1], [1]])])
def test_degenerate_inputs(codes) -> None:
    assert generate_candidate_pairs(codes) == []


def test_min_collisions_filter() -> None:
    codes = np.array([
        [1, 1, 2],
        [3, 3, 3],
    ])
    pairs = generate_candidate_pairs(codes, min_collisions=2)
    assert pairs == [CandidatePair(0, 1, 2, (0, 1))]
    with pytest.raises(InvalidArgumentError):
        generate_candidate_pairs(codes, min_collisions=0)


def test_parallel_matches_inline() -> None:
    rng = np.random.default_rng(3)
    codes = rng.integers(0, 5, size=(8, 40))
    assert generate_candidate_pairs(codes) == generate_candidate_pairs(codes, workers=4)


def test_full_width_uint64_codes() -> None:
    top = np.iinfo(np.uint64).max
    codes = np.array([[top, top, 0]], dtype=np.uint64)
    assert generate_candidate_pairs(codes) == [CandidatePair(0, 1, 1, (0,))]


def test_group_band() -> None:
    assert group_band(np.array([5, 5, 7, 5])) == {5: [0, 1, 3], 7: [2]}
    assert group_band([]) == {}
