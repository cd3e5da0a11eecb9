"""Seeded universal hash family used to simulate MinHash permutations.

Each member is ``h(x) = (a * x + b) mod p`` with ``p`` the Mersenne prime
``2**31 - 1``. Coefficients are below ``2**31`` and shingle IDs must be below
``p``, so ``a * x + b`` stays under ``2**63`` and never overflows the unsigned
64-bit arithmetic used here.
"""
from __future__ import annotations

import logging
import numbers
from typing import Iterator, Tuple

import numpy as np

from .errors import InvalidArgumentError

logger = logging.getLogger(__name__)

MERSENNE_PRIME: int = (1 << 31) - 1


def check_int(name: str, value, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidArgumentError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgumentError(f"{name} must be >= {minimum}, got {value}")
    return int(value)


class HashFamily:
    """Ordered, immutable sequence of ``(a, b)`` coefficient pairs.

    Row ``i`` of every matrix derived from the family corresponds to
    ``family[i]``.
    """

    def __init__(self, a: np.ndarray, b: np.ndarray, *, prime: int = MERSENNE_PRIME, seed: int | None = None) -> None:
        a = np.array(a, dtype=np.uint64)
        b = np.array(b, dtype=np.uint64)
        if not 2 <= prime <= MERSENNE_PRIME:
            raise InvalidArgumentError(f"prime must lie in [2, {MERSENNE_PRIME}], got {prime}")
        if a.ndim != 1 or a.shape != b.shape:
            raise InvalidArgumentError("coefficient vectors must be 1-D and of equal length")
        if a.size == 0:
            raise InvalidArgumentError("hash family must hold at least one function")
        if np.any(a % np.uint64(prime) == 0):
            raise InvalidArgumentError("coefficient a must be non-zero modulo the prime")
        if np.any(a >= np.uint64(prime)) or np.any(b >= np.uint64(prime)):
            raise InvalidArgumentError("coefficients must be reduced modulo the prime")
        a.setflags(write=False)
        b.setflags(write=False)
        self._a = a
        self._b = b
        self.prime = int(prime)
        self.seed = seed

    @property
    def a(self) -> np.ndarray:
        return self._a

    @property
    def b(self) -> np.ndarray:
        return self._b

    def __len__(self) -> int:
        return int(self._a.size)

    def __getitem__(self, index: int) -> Tuple[int, int]:
        return int(self._a[index]), int(self._b[index])

    def __iter__(self) -> Iterator[Tuple[int, int]]:
        for a, b in zip(self._a.tolist(), self._b.tolist()):
            yield a, b

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashFamily):
            return NotImplemented
        return (
            self.prime == other.prime
            and np.array_equal(self._a, other._a)
            and np.array_equal(self._b, other._b)
        )

    def __repr__(self) -> str:
        return f"HashFamily(size={len(self)}, prime={self.prime}, seed={self.seed})"

    def hash_row(self, index: int, values: np.ndarray) -> np.ndarray:
        """Evaluate function *index* on an unsigned integer vector."""
        p = np.uint64(self.prime)
        return (self._a[index] * values + self._b[index]) % p

    def hash(self, values) -> np.ndarray:
        """Return the ``(k, len(values))`` matrix of ``h_i(values[j])``."""
        x = np.asarray(values, dtype=np.int64)
        if x.size and (x.min() < 0 or x.max() >= self.prime):
            raise InvalidArgumentError(f"values must lie in [0, {self.prime})")
        x = x.astype(np.uint64)
        p = np.uint64(self.prime)
        return (self._a[:, None] * x[None, :] + self._b[:, None]) % p


def generate_hash_family(count: int, seed: int) -> HashFamily:
    """Draw *count* hash functions from a generator seeded with *seed*.

    ``a`` is drawn from ``[1, p-1]`` and ``b`` from ``[0, p-1]``. The same
    ``(count, seed)`` always yields the same family, so signatures stay
    comparable across runs and workers.
    """
    count = check_int("count", count, 1)
    seed = check_int("seed", seed, 0)
    rng = np.random.default_rng(seed)
    a = rng.integers(1, MERSENNE_PRIME, size=count, dtype=np.int64)
    b = rng.integers(0, MERSENNE_PRIME, size=count, dtype=np.int64)
    logger.debug("Generated hash family of %d functions (seed=%d)", count, seed)
    return HashFamily(a, b, seed=seed)
