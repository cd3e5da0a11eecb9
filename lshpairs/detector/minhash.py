"""MinHash projection table and signature computation."""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

import numpy as np
from datasketch import MinHash
from tqdm import tqdm

from .errors import DimensionMismatchError, EmptyInputError, InvalidArgumentError
from .hashfamily import HashFamily, check_int
from .parallel import chunk_ranges, parallel_map

logger = logging.getLogger(__name__)

# Hash values are < p < 2**31, and so is the sentinel p itself.
SIGNATURE_DTYPE = np.uint32

EMPTY_POLICIES = ("sentinel", "reject")

# -----------------------------------------------------------
# Projection table
# -----------------------------------------------------------


class ProjectionTable:
    """Read-only ``(k, universe_size)`` matrix holding ``h_i(s)`` for every shingle.

    Build it once per run with :func:`build_projection_table` and pass it to
    every signature computation; concurrent readers need no locking.
    """

    def __init__(self, values: np.ndarray, family: HashFamily) -> None:
        if values.ndim != 2 or values.shape[0] != len(family):
            raise DimensionMismatchError(
                f"table rows ({values.shape[0] if values.ndim else 0}) must match family size ({len(family)})"
            )
        values.setflags(write=False)
        self._values = values
        self.family = family

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def num_perm(self) -> int:
        return int(self._values.shape[0])

    @property
    def universe_size(self) -> int:
        return int(self._values.shape[1])

    @property
    def sentinel(self) -> int:
        """Signature value reserved for empty items; exceeds every real hash."""
        return self.family.prime

    def __repr__(self) -> str:
        return f"ProjectionTable(num_perm={self.num_perm}, universe_size={self.universe_size})"


def build_projection_table(
    universe_size: int,
    family: HashFamily,
    workers: Optional[int] = None,
) -> ProjectionTable:
    """Evaluate every hash function of *family* on ``[0, universe_size)``.

    Costs ``O(k * universe_size)`` once, after which each shingle lookup is a
    column read. Rows are independent and are spread over *workers* threads.
    """
    universe_size = check_int("universe_size", universe_size, 1)
    if universe_size > family.prime:
        raise InvalidArgumentError(
            f"universe_size {universe_size} exceeds the hash modulus {family.prime}"
        )

    shingles = np.arange(universe_size, dtype=np.uint64)
    values = np.empty((len(family), universe_size), dtype=SIGNATURE_DTYPE)

    def _fill_row(i: int) -> None:
        # Each call writes its own row only.
        values[i] = family.hash_row(i, shingles).astype(SIGNATURE_DTYPE)

    parallel_map(_fill_row, range(len(family)), workers)
    logger.debug("Built projection table %d x %d", len(family), universe_size)
    return ProjectionTable(values, family)


# -----------------------------------------------------------
# Signatures
# -----------------------------------------------------------


def _check_policy(empty_policy: str) -> str:
    if empty_policy not in EMPTY_POLICIES:
        raise InvalidArgumentError(
            f"empty_policy must be one of {EMPTY_POLICIES}, got {empty_policy!r}"
        )
    return empty_policy


def as_shingle_ids(shingles: Iterable[int]) -> np.ndarray:
    if isinstance(shingles, np.ndarray):
        return shingles.astype(np.int64, copy=False).ravel()
    return np.fromiter((int(s) for s in shingles), dtype=np.int64)


def compute_signature(
    table: ProjectionTable,
    shingles: Iterable[int],
    empty_policy: str = "sentinel",
) -> np.ndarray:
    """Return the MinHash signature of one item.

    Entry ``i`` is the minimum of ``table[i, s]`` over the item's shingle IDs.
    An empty item yields a vector filled with ``table.sentinel`` under the
    ``"sentinel"`` policy and raises :class:`EmptyInputError` under
    ``"reject"``.
    """
    _check_policy(empty_policy)
    ids = as_shingle_ids(shingles)
    if ids.size == 0:
        if empty_policy == "reject":
            raise EmptyInputError("item has no shingles")
        return np.full(table.num_perm, table.sentinel, dtype=SIGNATURE_DTYPE)
    if ids.min() < 0 or ids.max() >= table.universe_size:
        raise InvalidArgumentError(
            f"shingle IDs must lie in [0, {table.universe_size}), "
            f"got range [{ids.min()}, {ids.max()}]"
        )
    return table.values[:, ids].min(axis=1)


def _signature_block(
    table: ProjectionTable,
    items: Sequence[Iterable[int]],
    empty_policy: str,
    offset: int = 0,
) -> np.ndarray:
    block = np.empty((table.num_perm, len(items)), dtype=SIGNATURE_DTYPE)
    for j, item in enumerate(items):
        try:
            block[:, j] = compute_signature(table, item, empty_policy)
        except (EmptyInputError, InvalidArgumentError) as exc:
            raise type(exc)(f"{exc} (item {offset + j})") from exc
    return block


def compute_signature_matrix(
    table: ProjectionTable,
    items: Iterable[Iterable[int]],
    empty_policy: str = "sentinel",
    workers: Optional[int] = None,
    progress: bool = False,
) -> np.ndarray:
    """Return the ``(k, n_items)`` signature matrix; column ``j`` is item ``j``.

    Items are split into contiguous chunks that may run on *workers* threads;
    the blocks are stacked by the calling thread, so the result does not
    depend on scheduling.
    """
    _check_policy(empty_policy)
    items = list(items)
    if not items:
        return np.empty((table.num_perm, 0), dtype=SIGNATURE_DTYPE)

    n_chunks = max(1, (workers or 1) * 4)
    ranges: List[range] = chunk_ranges(len(items), n_chunks)

    def _block(r: range) -> np.ndarray:
        return _signature_block(table, items[r.start:r.stop], empty_policy, offset=r.start)

    if progress:
        ranges = tqdm(ranges, desc="Signatures", unit="chunk")
    blocks = parallel_map(_block, ranges, workers)
    matrix = np.hstack(blocks)
    logger.debug("Computed %d signatures of length %d", matrix.shape[1], matrix.shape[0])
    return matrix


def estimate_jaccard(sig_a, sig_b) -> float:
    """Estimate Jaccard similarity as the fraction of agreeing signature rows.

    Two all-sentinel signatures (both items empty) estimate to 1.0.
    """
    a = np.asarray(sig_a, dtype=np.uint64)
    b = np.asarray(sig_b, dtype=np.uint64)
    if a.ndim != 1 or a.shape != b.shape:
        raise DimensionMismatchError(f"signature shapes differ: {a.shape} vs {b.shape}")
    if a.size == 0:
        raise InvalidArgumentError("signatures must not be empty")
    return float(MinHash(hashvalues=a).jaccard(MinHash(hashvalues=b)))
