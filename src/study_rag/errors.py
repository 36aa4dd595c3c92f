"""
Exception taxonomy for the engine.

Which errors reach the caller:
    ValidationError     malformed query or scope input         → surfaced
    AuthorizationError  scope includes ids the owner lacks     → surfaced
    EmbeddingError      query embedding could not be computed  → surfaced
    RetrievalError      chunk store unreachable or failing     → surfaced
    GenerationError     answer generation failed               → surfaced
    RerankError         reranker failed or misbehaved          → recovered by fallback
    PersistenceError    chat turn could not be written         → logged, answer still returned
"""


class StudyRAGError(Exception):
    """Base class for every error raised by study_rag."""


class ValidationError(StudyRAGError):
    """The query, owner or document scope is malformed."""


class AuthorizationError(StudyRAGError):
    """The requested scope reaches chunks or sessions the owner does not own."""


class EmbeddingError(StudyRAGError):
    """The embedding provider failed to embed the query."""


class RetrievalError(StudyRAGError):
    """The chunk store could not be queried."""


class RerankError(StudyRAGError):
    """The external reranker failed or returned unusable output."""


class GenerationError(StudyRAGError):
    """The generator failed to produce an answer."""


class PersistenceError(StudyRAGError):
    """The chat turn could not be persisted."""
