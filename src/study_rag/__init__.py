"""
Study RAG: hybrid retrieval and re-ranking over private study materials.

Quick start:
    from study_rag import HybridRAG, EngineConfig

    rag = HybridRAG.from_config(EngineConfig())
    outcome = rag.query("What is osmosis?", owner_id="user_1")
    print(outcome.answer, outcome.confidence_score)

Pipeline per query:
    vector + full-text search (scoped to the owner)
    → Reciprocal Rank Fusion → LLM reranking (fused-score fallback)
    → confidence → answer generation → chat history
"""

from study_rag.config import (
    DatabaseConfig,
    EmbeddingConfig,
    EngineConfig,
    LLMConfig,
    QueryConfig,
    RerankConfig,
    RetrievalConfig,
)
from study_rag.errors import (
    AuthorizationError,
    EmbeddingError,
    GenerationError,
    PersistenceError,
    RerankError,
    RetrievalError,
    StudyRAGError,
    ValidationError,
)
from study_rag.models import QueryOutcome, SourceDocument
from study_rag.techniques import HybridRAG

__all__ = [
    # Orchestrator (public API)
    "HybridRAG",
    "QueryOutcome",
    "SourceDocument",
    # Config
    "EngineConfig",
    "LLMConfig",
    "EmbeddingConfig",
    "RetrievalConfig",
    "RerankConfig",
    "QueryConfig",
    "DatabaseConfig",
    # Errors
    "StudyRAGError",
    "ValidationError",
    "AuthorizationError",
    "EmbeddingError",
    "RetrievalError",
    "RerankError",
    "GenerationError",
    "PersistenceError",
]

__version__ = "0.1.0"
