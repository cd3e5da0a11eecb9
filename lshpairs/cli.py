"""lshpairs command-line interface.

Usage
-----
$ lshpairs run config.yml
$ lshpairs pairs items.jsonl --output pairs.jsonl --num-perm 128 --bands 32 --rows 4
$ lshpairs tune --num-perm 128 --threshold 0.8

The *run* command executes the candidate-pair pipeline from a YAML
configuration file (see :mod:`lshpairs.detector.config`).

The *pairs* command does the same with every setting given on the command
line.

The *tune* command suggests a band split for a target similarity threshold.
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List

from .detector.banding import candidate_probability, choose_band_params, similarity_threshold
from .detector.config import PipelineConfig, load_config
from .detector.errors import InvalidArgumentError, LSHError
from .detector.ingest import read_items
from .detector.output import create_writer, pair_record
from .detector.pipeline import LSHPipeline
from .detector.universe import to_shingle_ids

# -----------------------------------------------------------
# Helpers
# -----------------------------------------------------------


def _execute(config: PipelineConfig, quiet: bool = False, save_stats: bool = False) -> dict:
    """Read items, run the pipeline and write the pairs described by *config*."""
    if config.input is None:
        raise InvalidArgumentError("no input file configured")

    ids: List = []
    raw_items: List = []
    for item_id, shingles in read_items(config.input, config.id_field, config.shingle_field):
        ids.append(item_id)
        raw_items.append(shingles)
    encoded, universe_size = to_shingle_ids(raw_items)
    if config.universe_size is None:
        config = replace(config, universe_size=universe_size)

    pipeline = LSHPipeline.from_config(config, verbose=not quiet)
    result = pipeline.run(encoded)

    writer = create_writer(config.output, format=config.format)
    try:
        writer.write_all(pair_record(pair, ids) for pair in result.pairs)
    except BaseException:
        writer.abort()
        raise
    output_stats = writer.finalize()

    stats = dict(result.stats)
    stats["output"] = output_stats
    if save_stats:
        stats_path = config.output.parent / f"{config.output.stem}_stats.json"
        with open(stats_path, "w") as f:
            json.dump(stats, f, indent=2, default=str)
        if not quiet:
            print(f"💾 Stats saved to {stats_path}")
    if not quiet:
        print(f"📁 Pairs written to {config.output}")
    return stats


# -----------------------------------------------------------
# Commands
# -----------------------------------------------------------


def _cmd_run(args: argparse.Namespace) -> None:
    config = load_config(args.config)
    _execute(config, quiet=args.quiet, save_stats=args.save_stats)


def _cmd_pairs(args: argparse.Namespace) -> None:
    config = PipelineConfig(
        input=args.input,
        output=args.output,
        num_perm=args.num_perm,
        bands_number=args.bands,
        rows_per_band=args.rows,
        seed=args.seed,
        universe_size=args.universe_size,
        empty_policy=args.empty_policy,
        min_collisions=args.min_collisions,
        workers=args.workers,
        format=args.format,
        id_field=args.id_field,
        shingle_field=args.shingle_field,
    )
    _execute(config, quiet=args.quiet, save_stats=args.save_stats)


def _cmd_tune(args: argparse.Namespace) -> None:
    bands, rows = choose_band_params(
        args.num_perm,
        args.threshold,
        false_positive_weight=args.fp_weight,
        false_negative_weight=args.fn_weight,
    )
    print(f"bands={bands} rows={rows} (S-curve threshold ~{similarity_threshold(bands, rows):.3f})")
    for s in (0.2, 0.4, 0.6, 0.8, 0.9):
        p = float(candidate_probability(s, bands, rows))
        print(f"  P(candidate | J={s:.1f}) = {p:.3f}")


# -----------------------------------------------------------
# Entrypoint
# -----------------------------------------------------------


def main(argv: List[str] | None = None) -> int:  # noqa: D401 – simple
    parser = argparse.ArgumentParser(
        prog="lshpairs",
        description="MinHash + LSH candidate pair generation for shingle sets",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(required=True, dest="cmd")

    # run
    p_run = sub.add_parser("run", help="Run the pipeline from a YAML configuration file")
    p_run.add_argument("config", type=Path, help="Path to YAML configuration file")
    p_run.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    p_run.add_argument("--save-stats", action="store_true", help="Save run statistics to JSON")
    p_run.set_defaults(func=_cmd_run)

    # pairs
    p_pairs = sub.add_parser("pairs", help="Generate candidate pairs for a shingle file")
    p_pairs.add_argument("input", type=Path, help="Input .jsonl or .txt file (optionally .gz)")
    p_pairs.add_argument("-o", "--output", type=Path, required=True, help="Output file path")
    p_pairs.add_argument("--num-perm", type=int, default=128, help="Hash functions (default: 128)")
    p_pairs.add_argument("--bands", type=int, default=32, help="Number of bands (default: 32)")
    p_pairs.add_argument("--rows", type=int, default=4, help="Rows per band (default: 4)")
    p_pairs.add_argument("--seed", type=int, default=42, help="Hash family seed (default: 42)")
    p_pairs.add_argument("--universe-size", type=int, help="Shingle universe size (default: inferred)")
    p_pairs.add_argument("--empty-policy", choices=["sentinel", "reject"], default="sentinel",
                         help="Handling of items without shingles (default: sentinel)")
    p_pairs.add_argument("--min-collisions", type=int, default=1,
                         help="Minimum shared bands per reported pair (default: 1)")
    p_pairs.add_argument("--workers", type=int, help="Worker threads (default: inline)")
    p_pairs.add_argument("--format", default="auto", choices=["auto", "jsonl", "tsv", "parquet"],
                         help="Output format (default: auto-detect from extension)")
    p_pairs.add_argument("--id-field", default="id", help="JSONL item ID field (default: id)")
    p_pairs.add_argument("--shingle-field", default="shingles",
                         help="JSONL shingle list field (default: shingles)")
    p_pairs.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    p_pairs.add_argument("--save-stats", action="store_true", help="Save run statistics to JSON")
    p_pairs.set_defaults(func=_cmd_pairs)

    # tune
    p_tune = sub.add_parser("tune", help="Suggest bands/rows for a similarity threshold")
    p_tune.add_argument("--num-perm", type=int, default=128, help="Hash functions (default: 128)")
    p_tune.add_argument("--threshold", type=float, default=0.8, help="Target Jaccard (default: 0.8)")
    p_tune.add_argument("--fp-weight", type=float, default=0.5, help="False positive weight")
    p_tune.add_argument("--fn-weight", type=float, default=0.5, help="False negative weight")
    p_tune.set_defaults(func=_cmd_tune)

    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        args.func(args)
    except LSHError as e:
        print(f"lshpairs: error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
