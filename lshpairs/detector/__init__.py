"""lshpairs detector package.

Core public API lives here so external users can::

    from lshpairs.detector import generate_hash_family, build_projection_table
    from lshpairs.detector import compute_signature_matrix, band_signatures
    from lshpairs.detector import generate_candidate_pairs
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__: str = _pkg_version("lshpairs")
except PackageNotFoundError:  # pragma: no cover – local dev path
    __version__ = "0.1.0"

from .errors import LSHError, InvalidArgumentError, DimensionMismatchError, EmptyInputError
from .hashfamily import MERSENNE_PRIME, HashFamily, generate_hash_family
from .minhash import (
    ProjectionTable,
    build_projection_table,
    compute_signature,
    compute_signature_matrix,
    estimate_jaccard,
)
from .banding import (
    band_signatures,
    hash_vector,
    candidate_probability,
    similarity_threshold,
    choose_band_params,
)
from .pairs import CandidatePair, as_band_code_matrix, group_band, generate_candidate_pairs
from .universe import ShingleUniverse, to_shingle_ids
from .pipeline import LSHPipeline, PipelineResult, find_candidate_pairs
from .config import PipelineConfig, load_config

__all__ = [
    "__version__",
    "LSHError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "EmptyInputError",
    "MERSENNE_PRIME",
    "HashFamily",
    "generate_hash_family",
    "ProjectionTable",
    "build_projection_table",
    "compute_signature",
    "compute_signature_matrix",
    "estimate_jaccard",
    "band_signatures",
    "hash_vector",
    "candidate_probability",
    "similarity_threshold",
    "choose_band_params",
    "CandidatePair",
    "as_band_code_matrix",
    "group_band",
    "generate_candidate_pairs",
    "ShingleUniverse",
    "to_shingle_ids",
    "LSHPipeline",
    "PipelineResult",
    "find_candidate_pairs",
    "PipelineConfig",
    "load_config",
]
