"""
Pydantic models shared across study_rag.

Import from here rather than reaching into submodules:
    from study_rag.models import Chunk, Candidate, QueryOutcome
"""

from .document import (
    Candidate,
    Chunk,
    ChunkKind,
    DocumentSummary,
    RankedChunk,
    RankedLists,
    RankedResult,
)
from .result import (
    QueryOutcome,
    RankingEntry,
    RankingParse,
    RerankOutcome,
    SourceDocument,
    sources_from_json,
    sources_to_json,
)
from .session import ChatMessageRecord, ChatSessionRecord

__all__ = [
    # Document
    "Chunk",
    "ChunkKind",
    "RankedChunk",
    "RankedLists",
    "Candidate",
    "RankedResult",
    "DocumentSummary",
    # Result
    "RankingEntry",
    "RankingParse",
    "RerankOutcome",
    "SourceDocument",
    "QueryOutcome",
    "sources_to_json",
    "sources_from_json",
    # Session
    "ChatMessageRecord",
    "ChatSessionRecord",
]
