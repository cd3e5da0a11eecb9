"""LSH banding: collapse signature bands into single integer codes.

Increasing ``rows_per_band`` makes matches stricter (fewer false positives,
more false negatives); increasing ``bands_number`` does the opposite. The
banding functions themselves are policy-free; the tuning helpers at the bottom
only describe that trade-off.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple

import numpy as np
import xxhash

from .errors import DimensionMismatchError, InvalidArgumentError
from .hashfamily import check_int
from .parallel import parallel_map

logger = logging.getLogger(__name__)

BAND_CODE_DTYPE = np.uint64

# -----------------------------------------------------------
# Band codes
# -----------------------------------------------------------


def hash_vector(values) -> int:
    """64-bit xxHash of an integer vector, encoded as little-endian int64.

    The code depends on the values only, so identical sub-vectors give
    identical codes wherever they occur.
    """
    try:
        buf = np.ascontiguousarray(values, dtype="<i8")
    except (OverflowError, TypeError, ValueError) as exc:
        raise InvalidArgumentError(f"expected a vector of signed 64-bit integers: {exc}") from None
    if buf.ndim != 1:
        raise InvalidArgumentError(f"expected a 1-D vector, got shape {buf.shape}")
    return xxhash.xxh64_intdigest(buf.tobytes())


def band_signatures(
    signature_matrix,
    bands_number: int,
    rows_per_band: int,
    workers: Optional[int] = None,
) -> np.ndarray:
    """Hash each ``rows_per_band``-row slice of every signature column.

    Returns a ``(bands_number, n_items)`` matrix where cell ``[b, j]`` is
    :func:`hash_vector` of ``signature_matrix[b*r:(b+1)*r, j]``. Raises
    :class:`DimensionMismatchError` unless ``bands_number * rows_per_band``
    equals the signature length.
    """
    m = np.asarray(signature_matrix)
    if m.ndim != 2:
        raise InvalidArgumentError(f"signature matrix must be 2-D, got shape {m.shape}")
    if m.size and not np.issubdtype(m.dtype, np.integer):
        raise InvalidArgumentError(f"signature matrix must hold integers, got {m.dtype}")
    bands_number = check_int("bands_number", bands_number, 1)
    rows_per_band = check_int("rows_per_band", rows_per_band, 1)

    k, n_items = m.shape
    if bands_number * rows_per_band != k:
        raise DimensionMismatchError(
            f"{bands_number} bands x {rows_per_band} rows = {bands_number * rows_per_band} "
            f"does not match signature length {k}"
        )

    def _band(b: int) -> np.ndarray:
        start = b * rows_per_band
        # One contiguous little-endian row per item.
        block = np.ascontiguousarray(m[start:start + rows_per_band, :].T, dtype="<i8")
        return np.fromiter(
            (xxhash.xxh64_intdigest(row.tobytes()) for row in block),
            dtype=BAND_CODE_DTYPE,
            count=n_items,
        )

    codes = np.vstack(parallel_map(_band, range(bands_number), workers))
    logger.debug("Banded %d items into %d bands of %d rows", n_items, bands_number, rows_per_band)
    return codes


# -----------------------------------------------------------
# Tuning helpers
# -----------------------------------------------------------


def candidate_probability(similarity, bands_number: int, rows_per_band: int):
    """Probability that two items of Jaccard *similarity* share at least one band."""
    s = np.asarray(similarity, dtype=float)
    return 1.0 - (1.0 - s ** rows_per_band) ** bands_number


def similarity_threshold(bands_number: int, rows_per_band: int) -> float:
    """Similarity at which the S-curve is steepest, ``(1/b) ** (1/r)``."""
    bands_number = check_int("bands_number", bands_number, 1)
    rows_per_band = check_int("rows_per_band", rows_per_band, 1)
    return (1.0 / bands_number) ** (1.0 / rows_per_band)


def _integrate(func: Callable[[np.ndarray], np.ndarray], lo: float, hi: float, steps: int = 512) -> float:
    x = np.linspace(lo, hi, steps + 1)
    y = func(x)
    return float((y[:-1] + y[1:]).sum() * (hi - lo) / (2 * steps))


def choose_band_params(
    num_perm: int,
    threshold: float,
    false_positive_weight: float = 0.5,
    false_negative_weight: float = 0.5,
) -> Tuple[int, int]:
    """Pick ``(bands_number, rows_per_band)`` with ``b * r == num_perm``.

    Minimises the weighted area of false positives (below *threshold*) plus
    false negatives (above it) under the banding S-curve.
    """
    num_perm = check_int("num_perm", num_perm, 1)
    if not 0.0 < threshold < 1.0:
        raise InvalidArgumentError(f"threshold must lie in (0, 1), got {threshold}")
    if false_positive_weight < 0 or false_negative_weight < 0:
        raise InvalidArgumentError("weights must be non-negative")
    if false_positive_weight + false_negative_weight == 0:
        raise InvalidArgumentError("at least one weight must be positive")

    best: Tuple[int, int] = (num_perm, 1)
    best_error = float("inf")
    for r in range(1, num_perm + 1):
        if num_perm % r:
            continue
        b = num_perm // r
        fp = _integrate(lambda s: candidate_probability(s, b, r), 0.0, threshold)
        fn = _integrate(lambda s: 1.0 - candidate_probability(s, b, r), threshold, 1.0)
        error = false_positive_weight * fp + false_negative_weight * fn
        if error < best_error:
            best, best_error = (b, r), error
    logger.debug("Chose %d bands x %d rows for threshold %.3f", best[0], best[1], threshold)
    return best
