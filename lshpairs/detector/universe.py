"""Contiguous shingle-ID universe built from arbitrary shingle tokens."""
from __future__ import annotations

from typing import Dict, Hashable, Iterable, Iterator, List, Tuple

import numpy as np

from .errors import InvalidArgumentError


class ShingleUniverse:
    """Assign IDs ``0..N-1`` to shingle tokens in first-seen order.

    Integer tokens are treated like any other token, so ``"7"`` and ``7`` are
    different shingles.
    """

    def __init__(self) -> None:
        self._ids: Dict[Hashable, int] = {}

    @classmethod
    def from_items(cls, items: Iterable[Iterable[Hashable]]) -> "ShingleUniverse":
        universe = cls()
        for item in items:
            universe.add(item)
        return universe

    def add(self, item: Iterable[Hashable]) -> None:
        for token in item:
            try:
                if token not in self._ids:
                    self._ids[token] = len(self._ids)
            except TypeError:
                raise InvalidArgumentError(f"shingle {token!r} is not hashable") from None

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, token: Hashable) -> bool:
        return token in self._ids

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._ids)

    @property
    def size(self) -> int:
        return len(self._ids)

    def encode(self, item: Iterable[Hashable]) -> np.ndarray:
        """Return the sorted, de-duplicated shingle IDs of *item*."""
        try:
            ids = {self._ids[token] for token in item}
        except KeyError as exc:
            raise InvalidArgumentError(f"unknown shingle {exc.args[0]!r}") from None
        except TypeError as exc:
            raise InvalidArgumentError(f"unhashable shingle in item: {exc}") from None
        return np.array(sorted(ids), dtype=np.int64)

    def encode_all(self, items: Iterable[Iterable[Hashable]]) -> List[np.ndarray]:
        return [self.encode(item) for item in items]


def to_shingle_ids(items: Iterable[Iterable[Hashable]]) -> Tuple[List[np.ndarray], int]:
    """Return ``(encoded_items, universe_size)`` for raw shingle collections.

    Every token, integer or not, is remapped through a :class:`ShingleUniverse`
    so the universe covers the distinct shingles only. Sparse or pre-hashed
    integer IDs therefore never inflate the projection table; the mapping is
    one-to-one, so Jaccard similarities are unchanged.
    """
    items = [list(item) for item in items]
    universe = ShingleUniverse.from_items(items)
    return universe.encode_all(items), max(universe.size, 1)
