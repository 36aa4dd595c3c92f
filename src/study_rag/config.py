"""
Configuration for the study-rag engine.

Split into one config per concern so each stage only receives what it
needs. EngineConfig bundles them all for convenience.

Usage:
    # Full config, pass to HybridRAG.from_config()
    config = EngineConfig()

    # Override specific parts
    config = EngineConfig(
        llm=LLMConfig(provider="anthropic", model_name="claude-sonnet-4-5-20250929"),
        rerank=RerankConfig(accept_partial=False),
    )

    # Standalone: use just one piece
    retrieval_config = RetrievalConfig(pool_size=30)
"""

import os
from enum import Enum
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

# Load .env from the project root (walks up from src/study_rag/ to find it).
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported LLM providers.

    Each provider needs a different LangChain chat model class
    (ChatOpenAI vs ChatAnthropic), so the set is closed.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    LLM configuration.

    Used by: generation/generate.py, retrieval/reranking.py

    The reranker and the answer generator each build their own chat model
    from this config, so they can be pointed at different models.
    """

    provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="Which LLM provider to use",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Model identifier (e.g. 'gpt-4o-mini', 'claude-sonnet-4-5-20250929')",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more creative",
    )
    max_tokens: int = Field(
        default=2000,
        gt=0,
        description="Maximum tokens in the LLM response",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string; the factory in indexing/embeddings.py maps
    known names to LangChain classes and raises a clear error otherwise.

    max_concurrency caps how many embedding batches are in flight at once
    when embed_many() fans out.
    """

    provider: str = Field(
        default="openai",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )
    batch_size: int = Field(
        default=64,
        gt=0,
        description="Texts per embed_documents() call in embed_many()",
    )
    max_concurrency: int = Field(
        default=4,
        gt=0,
        description="Maximum embedding batches running concurrently",
    )


class RetrievalConfig(BaseModel):
    """
    Hybrid retrieval and fusion parameters.

    Used by: retrieval/search.py, retrieval/fusion.py, retrieval/reranking.py

    The defaults are part of the observable contract of the engine:
        rrf_k=60            damping constant of Reciprocal Rank Fusion
        pool_size=20        candidates per signal (vector, lexical)
        fused_pool_size=10  candidates kept after fusion
        top_k=3             results kept after reranking or fallback
    """

    rrf_k: int = Field(default=60, gt=0, description="RRF damping constant")
    pool_size: int = Field(default=20, gt=0, description="Candidates fetched per signal")
    fused_pool_size: int = Field(default=10, gt=0, description="Candidates kept after fusion")
    top_k: int = Field(default=3, gt=0, description="Final context size")

    @model_validator(mode="after")
    def validate_top_k(self) -> "RetrievalConfig":
        """top_k cannot exceed the fused pool it selects from."""
        if self.top_k > self.fused_pool_size:
            raise ValueError(
                f"top_k ({self.top_k}) must not exceed "
                f"fused_pool_size ({self.fused_pool_size})"
            )
        return self


class RerankConfig(BaseModel):
    """
    Reranker behaviour.

    Used by: retrieval/reranking.py

    accept_partial decides what happens when the reranker returns fewer
    valid entries than top_k:
        True  → keep the valid entries as the final result set
        False → treat the response as a failure and use the fallback
    """

    enabled: bool = Field(default=True, description="Call the external reranker at all")
    accept_partial: bool = Field(
        default=True,
        description="Accept fewer than top_k valid reranker entries without falling back",
    )
    max_document_chars: int = Field(
        default=2000,
        gt=0,
        description="Characters of each candidate shown to the reranker",
    )


class QueryConfig(BaseModel):
    """
    Orchestrator presentation settings.

    Used by: techniques/hybrid.py, graphs/query.py
    """

    snippet_chars: int = Field(default=200, gt=0, description="Length of source snippets")
    title_chars: int = Field(default=50, gt=0, description="Length of new session titles")
    empty_answer: str = Field(
        default="No relevant study materials found. Please upload some documents first.",
        description="Answer returned when retrieval finds nothing",
    )


class DatabaseConfig(BaseModel):
    """
    Postgres connection for the chunk store and the session store.

    Used by: storage/postgres.py, storage/sessions.py
    """

    url: str = Field(
        default_factory=lambda: os.getenv("DATABASE_URL", ""),
        description="SQLAlchemy database URL",
    )
    text_search_config: str = Field(
        default="english",
        description="Postgres text search configuration for the lexical signal",
    )
    echo: bool = Field(default=False, description="Echo SQL statements")


# ---------------------------------------------------------------------------
# Top-level config (bundles everything)
# ---------------------------------------------------------------------------

class EngineConfig(BaseModel):
    """
    Complete engine configuration.

    HybridRAG.from_config() receives this and passes slices to each
    collaborator. All sub-configs have defaults, so EngineConfig() with
    no arguments is valid (DATABASE_URL still has to be set to connect).
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    rerank_llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    rerank: RerankConfig = Field(default_factory=RerankConfig)
    query: QueryConfig = Field(default_factory=QueryConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    log_level: str = Field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"),
        description="Root log level used by setup_logging()",
    )
