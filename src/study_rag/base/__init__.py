"""
Abstract base classes defining the collaborator contracts of the engine.

Import from here:
    from study_rag.base import BaseChunkStore, BaseReranker, BaseGenerator
"""

from .embedder import BaseEmbeddingProvider
from .generator import BaseGenerator
from .reranker import BaseReranker
from .session_store import BaseSessionStore
from .store import BaseChunkStore

__all__ = [
    "BaseChunkStore",
    "BaseEmbeddingProvider",
    "BaseReranker",
    "BaseGenerator",
    "BaseSessionStore",
]
