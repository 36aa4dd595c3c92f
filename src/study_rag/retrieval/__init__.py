"""
Retrieval core: scoping, hybrid search, fusion, reranking, confidence.

Import from here:
    from study_rag.retrieval import HybridRetriever, reciprocal_rank_fusion, RerankSelector
"""

from .confidence import estimate_confidence
from .fusion import RRF_K, fused_score, reciprocal_rank_fusion
from .parsing import parse_rankings, strip_code_fence
from .reranking import LLMReranker, RerankSelector, fallback_selection
from .scope import authorize_scope, normalize_allow_list, validate_owner
from .search import HybridRetriever

__all__ = [
    "HybridRetriever",
    "authorize_scope",
    "normalize_allow_list",
    "validate_owner",
    "RRF_K",
    "fused_score",
    "reciprocal_rank_fusion",
    "parse_rankings",
    "strip_code_fence",
    "LLMReranker",
    "RerankSelector",
    "fallback_selection",
    "estimate_confidence",
]
