"""
Result models for reranking and for the final query outcome.

RankingEntry / RankingParse describe the reranker's untrusted output after
validation. SourceDocument / QueryOutcome are what the caller serializes.
"""

import math
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .document import RankedResult


# ---------------------------------------------------------------------------
# Reranker output
# ---------------------------------------------------------------------------

class RankingEntry(BaseModel):
    """
    One validated {index, relevanceScore} entry from the reranker.

    index is strict: "2" or 2.0 are rejected rather than coerced.
    relevance_score is clamped into [0, 100].
    """

    model_config = ConfigDict(populate_by_name=True)

    index: int = Field(strict=True)
    relevance_score: float = Field(alias="relevanceScore")

    @field_validator("relevance_score")
    @classmethod
    def clamp_score(cls, value: float) -> float:
        if math.isnan(value):
            raise ValueError("relevanceScore must be a number")
        return min(max(value, 0.0), 100.0)


class RankingParse(BaseModel):
    """
    Tagged result of parsing a reranker response.

    Either rankings is non-empty and error is None, or error says why
    nothing usable came back. Callers branch on .ok instead of catching.
    """

    rankings: list[RankingEntry] = Field(default_factory=list)
    error: Optional[str] = None
    discarded: int = Field(default=0, description="Entries dropped as invalid, out of range or duplicate")

    @property
    def ok(self) -> bool:
        return self.error is None


class RerankOutcome(BaseModel):
    """Final result set of the reranking stage and how it was produced."""

    results: list[RankedResult] = Field(default_factory=list)
    used_fallback: bool = False
    fallback_reason: Optional[str] = None


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

class SourceDocument(BaseModel):
    """
    A source reference returned with an answer and persisted with the chat turn.

    Serialized with camelCase aliases (relevanceScore, isVisual) so the
    stored JSON matches what API clients read.
    """

    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(description="Truncated chunk content")
    score: float = Field(description="Fused similarity score")
    relevance_score: float = Field(alias="relevanceScore", ge=0.0, le=100.0)
    metadata: dict[str, Any] = Field(default_factory=dict)
    is_visual: bool = Field(default=False, alias="isVisual")


def sources_to_json(sources: list[SourceDocument]) -> list[dict[str, Any]]:
    """Convert sources to plain JSON-compatible dicts for storage."""
    return [source.model_dump(mode="json", by_alias=True) for source in sources]


def sources_from_json(raw: Any) -> list[SourceDocument]:
    """
    Parse stored sources back into SourceDocuments.

    Entries that do not have the expected shape are skipped; anything
    other than a list yields an empty list.
    """
    if not isinstance(raw, list):
        return []

    sources = []
    for item in raw:
        try:
            sources.append(SourceDocument.model_validate(item))
        except ValidationError:
            continue
    return sources


# ---------------------------------------------------------------------------
# Query outcome (top-level output)
# ---------------------------------------------------------------------------

class QueryOutcome(BaseModel):
    """
    The complete response of HybridRAG.query().

    to_response() gives the shape the API layer serializes:
    {answer, sources, sessionId, confidenceScore}.
    """

    answer: str
    sources: list[SourceDocument] = Field(default_factory=list)
    session_id: Optional[int] = None
    confidence_score: int = Field(default=0, ge=0, le=100)
    context: list[str] = Field(
        default_factory=list,
        description="Ordered chunk contents handed to the generator",
    )
    persisted: bool = Field(default=False, description="Whether the chat turn was written")
    state: str = Field(default="done", description="Terminal state of the query state machine")

    def to_response(self) -> dict[str, Any]:
        return {
            "answer": self.answer,
            "sources": sources_to_json(self.sources),
            "sessionId": self.session_id,
            "confidenceScore": self.confidence_score,
        }
