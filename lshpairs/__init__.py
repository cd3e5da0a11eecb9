"""lshpairs - near-duplicate candidate pairs via MinHash + LSH banding.

Pipeline:
- seeded universal hash family
- dense projection table over the shingle universe
- MinHash signature matrix
- banded xxHash codes
- candidate pairs with per-pair band collision counts

Quick Start:
    # CLI usage
    lshpairs pairs items.jsonl --output pairs.jsonl --bands 32 --rows 4

    # Python API
    from lshpairs import find_candidate_pairs
    pairs = find_candidate_pairs([{1, 2, 3}, {1, 2, 9}], num_perm=4, bands_number=2, rows_per_band=2)
"""

from .detector import __version__

# Re-export main API
from .detector import (
    LSHError,
    InvalidArgumentError,
    DimensionMismatchError,
    EmptyInputError,
    HashFamily,
    generate_hash_family,
    ProjectionTable,
    build_projection_table,
    compute_signature,
    compute_signature_matrix,
    estimate_jaccard,
    band_signatures,
    hash_vector,
    choose_band_params,
    CandidatePair,
    generate_candidate_pairs,
    LSHPipeline,
    find_candidate_pairs,
    PipelineConfig,
    load_config,
)

__all__ = [
    "__version__",
    "LSHError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "EmptyInputError",
    "HashFamily",
    "generate_hash_family",
    "ProjectionTable",
    "build_projection_table",
    "compute_signature",
    "compute_signature_matrix",
    "estimate_jaccard",
    "band_signatures",
    "hash_vector",
    "choose_band_params",
    "CandidatePair",
    "generate_candidate_pairs",
    "LSHPipeline",
    "find_candidate_pairs",
    "PipelineConfig",
    "load_config",
]
