"""End-to-end MinHash + LSH candidate pair pipeline.

Chains:
- hash family generation (once per pipeline)
- projection table construction (once per universe size)
- signature matrix computation
- banding
- candidate pair generation
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import psutil

from .banding import band_signatures, similarity_threshold
from .config import PipelineConfig
from .errors import DimensionMismatchError
from .hashfamily import check_int, generate_hash_family
from .minhash import (
    ProjectionTable,
    as_shingle_ids,
    build_projection_table,
    compute_signature_matrix,
)
from .pairs import CandidatePair, generate_candidate_pairs

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    signatures: np.ndarray
    band_codes: np.ndarray
    pairs: List[CandidatePair]
    stats: Dict[str, Any] = field(default_factory=dict)


class LSHPipeline:
    """MinHash signatures, banding and candidate pairs for one item collection."""

    def __init__(
        self,
        num_perm: int = 128,
        bands_number: int = 32,
        rows_per_band: int = 4,
        seed: int = 42,
        universe_size: Optional[int] = None,
        empty_policy: str = "sentinel",
        min_collisions: int = 1,
        workers: Optional[int] = None,
        verbose: bool = False,
    ):
        """
        Initialize the pipeline.

        Args:
            num_perm: Number of hash functions (signature length)
            bands_number: Number of LSH bands
            rows_per_band: Signature rows hashed together per band
            seed: Seed for the hash family
            universe_size: Shingle universe size (inferred from items if None)
            empty_policy: 'sentinel' or 'reject' for items without shingles
            min_collisions: Minimum shared bands for a pair to be reported
            workers: Thread count for the parallel stages (None = inline)
            verbose: Show progress bars and print a summary
        """
        self.num_perm = check_int("num_perm", num_perm, 1)
        self.bands_number = check_int("bands_number", bands_number, 1)
        self.rows_per_band = check_int("rows_per_band", rows_per_band, 1)
        if self.bands_number * self.rows_per_band != self.num_perm:
            raise DimensionMismatchError(
                f"{self.bands_number} bands x {self.rows_per_band} rows does not match num_perm {self.num_perm}"
            )
        self.seed = seed
        self.universe_size = universe_size
        self.empty_policy = empty_policy
        self.min_collisions = min_collisions
        self.workers = workers
        self.verbose = verbose

        self.family = generate_hash_family(self.num_perm, seed)
        self._table: Optional[ProjectionTable] = None

    @classmethod
    def from_config(cls, config: PipelineConfig, verbose: bool = False) -> "LSHPipeline":
        return cls(
            num_perm=config.num_perm,
            bands_number=config.bands_number,
            rows_per_band=config.rows_per_band,
            seed=config.seed,
            universe_size=config.universe_size,
            empty_policy=config.empty_policy,
            min_collisions=config.min_collisions,
            workers=config.workers,
            verbose=verbose,
        )

    def projection_table(self, universe_size: int) -> ProjectionTable:
        """Return the projection table for *universe_size*, building it on first use."""
        if self._table is None or self._table.universe_size != universe_size:
            self._table = build_projection_table(universe_size, self.family, workers=self.workers)
        return self._table

    def run(self, items: Iterable[Iterable[int]]) -> PipelineResult:
        """Run the pipeline over *items*; item ``j`` becomes column ``j``."""
        t_start = time.time()
        encoded = [as_shingle_ids(item) for item in items]
        empty_items = sum(1 for ids in encoded if ids.size == 0)

        universe_size = self.universe_size
        if universe_size is None:
            universe_size = max((int(ids.max()) for ids in encoded if ids.size), default=0) + 1

        timings: Dict[str, float] = {}

        t0 = time.time()
        table = self.projection_table(universe_size)
        timings["projection_table_seconds"] = time.time() - t0

        t0 = time.time()
        signatures = compute_signature_matrix(
            table, encoded, empty_policy=self.empty_policy, workers=self.workers, progress=self.verbose
        )
        timings["signatures_seconds"] = time.time() - t0

        t0 = time.time()
        band_codes = band_signatures(signatures, self.bands_number, self.rows_per_band, workers=self.workers)
        timings["banding_seconds"] = time.time() - t0

        t0 = time.time()
        pairs = generate_candidate_pairs(band_codes, workers=self.workers, min_collisions=self.min_collisions)
        timings["pairs_seconds"] = time.time() - t0

        timings["total_seconds"] = time.time() - t_start
        stats = self._generate_stats(len(encoded), empty_items, universe_size, pairs, timings)
        logger.info(
            "Found %d candidate pairs among %d items (%.2fs)",
            len(pairs), len(encoded), timings["total_seconds"],
        )
        if self.verbose:
            self._print_stats(stats)
        return PipelineResult(signatures=signatures, band_codes=band_codes, pairs=pairs, stats=stats)

    def _generate_stats(
        self,
        n_items: int,
        empty_items: int,
        universe_size: int,
        pairs: List[CandidatePair],
        timings: Dict[str, float],
    ) -> Dict[str, Any]:
        process = psutil.Process()
        memory_mb = process.memory_info().rss / 1024 / 1024
        collision_hist: Dict[int, int] = {}
        for pair in pairs:
            collision_hist[pair.collision_count] = collision_hist.get(pair.collision_count, 0) + 1

        return {
            "num_items": n_items,
            "empty_items": empty_items,
            "universe_size": universe_size,
            "num_perm": self.num_perm,
            "bands_number": self.bands_number,
            "rows_per_band": self.rows_per_band,
            "seed": self.seed,
            "similarity_threshold": similarity_threshold(self.bands_number, self.rows_per_band),
            "candidate_pairs": len(pairs),
            "collision_histogram": dict(sorted(collision_hist.items())),
            "timings": timings,
            "peak_memory_mb": memory_mb,
        }

    def _print_stats(self, stats: Dict[str, Any]) -> None:
        print("\n" + "=" * 60)
        print("📊 LSH CANDIDATE PAIRS")
        print("=" * 60)
        print(f"📥 Items: {stats['num_items']:,} ({stats['empty_items']:,} empty)")
        print(f"🔢 Universe: {stats['universe_size']:,} shingles")
        print(f"🪣 Bands: {stats['bands_number']} x {stats['rows_per_band']} rows "
              f"(threshold ~{stats['similarity_threshold']:.2f})")
        print(f"🔗 Candidate pairs: {stats['candidate_pairs']:,}")
        print(f"⏱️  Total time: {stats['timings']['total_seconds']:.2f}s")
        print(f"💾 Memory: {stats['peak_memory_mb']:.1f} MB")


def find_candidate_pairs(items: Iterable[Iterable[int]], **kwargs) -> List[CandidatePair]:
    """
    Convenience function returning only the candidate pairs.

    Args:
        items: Collection of shingle-ID sets
        **kwargs: Arguments for :class:`LSHPipeline`

    Returns:
        Candidate pairs sorted by ``(item_i, item_j)``
    """
    return LSHPipeline(**kwargs).run(items).pairs
