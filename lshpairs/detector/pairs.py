"""Candidate pair generation from band codes.

Items sharing a band code in any band become a candidate pair. Each band is
grouped independently (optionally on a thread pool) and the per-band pair
lists are merged afterwards by the calling thread, keyed on the normalised
``(i, j)`` with ``i < j``.

A band in which every item shares one code yields ``n * (n - 1) / 2`` pairs;
that quadratic worst case is inherent to bucketing and is not guarded against.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from itertools import combinations
from typing import Dict, Hashable, List, NamedTuple, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import InvalidArgumentError
from .hashfamily import check_int
from .parallel import parallel_map

logger = logging.getLogger(__name__)

BandCodes = Union[np.ndarray, Sequence[Sequence[int]]]


class CandidatePair(NamedTuple):
    """Two items that collided in ``collision_count`` bands (listed in ``bands``)."""

    item_i: int
    item_j: int
    collision_count: int
    bands: Tuple[int, ...]


def as_band_code_matrix(band_codes: BandCodes) -> np.ndarray:
    """Validate *band_codes* and return it as a ``(bands, items)`` array.

    Accepts a 2-D array or a list with one equal-length 1-D vector per band.
    Jagged input is rejected here rather than half-way through grouping.
    """
    if isinstance(band_codes, np.ndarray):
        if band_codes.ndim != 2:
            raise InvalidArgumentError(f"band code matrix must be 2-D, got shape {band_codes.shape}")
        return band_codes

    rows = [np.asarray(row) for row in band_codes]
    if not rows:
        return np.empty((0, 0), dtype=np.uint64)
    for b, row in enumerate(rows):
        if row.ndim != 1:
            raise InvalidArgumentError(f"band {b} must be a 1-D vector, got shape {row.shape}")
    lengths = {row.shape[0] for row in rows}
    if len(lengths) != 1:
        raise InvalidArgumentError(f"band vectors have differing lengths: {sorted(lengths)}")
    return np.vstack(rows) if rows[0].size else np.empty((len(rows), 0), dtype=np.uint64)


def group_band(codes) -> Dict[Hashable, List[int]]:
    """Map each band code to the ascending list of item indices carrying it."""
    buckets: Dict[Hashable, List[int]] = defaultdict(list)
    for item, code in enumerate(np.asarray(codes).tolist()):
        buckets[code].append(item)
    return dict(buckets)


def _band_pairs(codes: np.ndarray) -> List[Tuple[int, int]]:
    pairs: List[Tuple[int, int]] = []
    for members in group_band(codes).values():
        if len(members) < 2:
            continue
        # members are ascending, so every combination already has i < j.
        pairs.extend(combinations(members, 2))
    return pairs


def generate_candidate_pairs(
    band_codes: BandCodes,
    workers: Optional[int] = None,
    min_collisions: int = 1,
) -> List[CandidatePair]:
    """Return every item pair sharing a code in at least one band.

    Each pair appears once, with ``collision_count`` equal to the number of
    distinct bands it collided in. Output is sorted by ``(item_i, item_j)``.
    Pairs with fewer than *min_collisions* collisions are dropped.
    """
    min_collisions = check_int("min_collisions", min_collisions, 1)
    matrix = as_band_code_matrix(band_codes)
    n_bands, n_items = matrix.shape
    if n_bands == 0 or n_items < 2:
        return []

    per_band = parallel_map(_band_pairs, [matrix[b] for b in range(n_bands)], workers)

    # Single-writer merge; bands are visited in order so each list stays sorted.
    collided: Dict[Tuple[int, int], List[int]] = defaultdict(list)
    for b, pairs in enumerate(per_band):
        for i, j in pairs:
            key = (i, j) if i < j else (j, i)
            collided[key].append(b)

    out = [
        CandidatePair(i, j, len(bands), tuple(bands))
        for (i, j), bands in sorted(collided.items())
        if len(bands) >= min_collisions
    ]
    logger.debug(
        "Generated %d candidate pairs from %d bands over %d items", len(out), n_bands, n_items
    )
    return out
