"""
Chunk and candidate models for the retrieval pipeline.

These represent data at each stage of one query:
  Chunk (stored) → RankedChunk (one signal) → Candidate (fused) → RankedResult (reranked)
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ChunkKind(str, Enum):
    """Kind tag stored under the chunk's "chunkType" metadata key."""

    TEXT = "text"
    VISUAL = "visual"


class Chunk(BaseModel):
    """
    Immutable unit of retrievable text, owned by exactly one identity.

    Chunks are created by ingestion and never mutated by retrieval.
    The embedding is optional here because stores that rank inside the
    database (Postgres) never ship vectors back to Python.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Unique chunk id")
    content: str = Field(description="The chunk text")
    owner_id: str = Field(description="Identity that owns this chunk")
    embedding: Optional[list[float]] = Field(default=None, description="Precomputed embedding")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Open metadata; includes 'chunkType' and usually 'fileName'",
    )
    created_at: Optional[datetime] = Field(default=None)

    @property
    def kind(self) -> str:
        return str(self.metadata.get("chunkType", ChunkKind.TEXT.value))

    @property
    def is_visual(self) -> bool:
        return self.kind == ChunkKind.VISUAL.value


class RankedChunk(BaseModel):
    """
    A chunk at a 1-based position in one signal's ordering.

    score is the raw signal value: cosine distance for the vector list
    (lower = more similar), lexical relevance for the lexical list
    (higher = more relevant).
    """

    chunk: Chunk
    rank: int = Field(ge=1, description="1-based position in the signal's ordering")
    score: float = Field(description="Raw signal score")


class RankedLists(BaseModel):
    """The two independently ordered candidate lists produced by one store search."""

    vector: list[RankedChunk] = Field(default_factory=list)
    lexical: list[RankedChunk] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.vector and not self.lexical

    def chunk_ids(self) -> set[int]:
        return {rc.chunk.id for rc in self.vector} | {rc.chunk.id for rc in self.lexical}


class Candidate(BaseModel):
    """
    A chunk after Reciprocal Rank Fusion.

    A missing rank means the chunk did not appear in that signal's list;
    it contributes nothing to the fused score.
    """

    chunk: Chunk
    vector_rank: Optional[int] = Field(default=None, ge=1)
    fts_rank: Optional[int] = Field(default=None, ge=1)
    fused_score: float = Field(default=0.0, ge=0.0)


class RankedResult(BaseModel):
    """A candidate with its final relevance score, from the reranker or the fallback."""

    candidate: Candidate
    relevance_score: float = Field(ge=0.0, le=100.0)
    origin: str = Field(default="reranker", description="'reranker' or 'fallback'")


class DocumentSummary(BaseModel):
    """An owner's uploaded file, aggregated from its chunks."""

    file_name: str
    chunk_count: int = 0
    upload_date: Optional[datetime] = None
    chunk_ids: list[int] = Field(
        default_factory=list,
        description="Chunk ids callers pass back as the document allow-list",
    )
