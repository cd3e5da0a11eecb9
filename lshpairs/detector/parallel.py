"""Thread-pool helper shared by the signature, banding and pair stages."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def parallel_map(func: Callable[[T], R], items: Iterable[T], workers: Optional[int] = None) -> List[R]:
    """Apply *func* to every element of *items*, preserving input order.

    ``workers`` of ``None`` or ``1`` runs inline. Results are collected by the
    caller's thread only, so no shared state is written concurrently.
    """
    if workers is None or workers <= 1:
        return [func(item) for item in items]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(func, items))


def chunk_ranges(total: int, chunks: int) -> List[range]:
    """Split ``range(total)`` into at most *chunks* contiguous ranges."""
    chunks = max(1, min(chunks, total))
    step, extra = divmod(total, chunks)
    out: List[range] = []
    start = 0
    for i in range(chunks):
        stop = start + step + (1 if i < extra else 0)
        if stop > start:
            out.append(range(start, stop))
        start = stop
    return out
