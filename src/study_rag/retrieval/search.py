"""
Candidate retrieval: the scoped, dual-signal lookup.

This is the first stage of every query. It takes an already-embedded query
and asks the chunk store for two independent orderings in one operation:

    vector:  ascending by cosine distance (lower = more similar)
    lexical: descending by full-text relevance

Both lists are re-sorted here with chunk id as the tie breaker and re-ranked
from 1, so ordering is deterministic no matter how the backend breaks ties.
Each list is truncated to the per-signal pool size (20 by default).

Usage:
    from study_rag.retrieval.search import HybridRetriever

    retriever = HybridRetriever(store=store, config=RetrievalConfig())
    lists = retriever.retrieve("What is osmosis?", query_vector, owner_id="user_1")
"""

import logging
import math
from typing import Optional

from study_rag.base.store import BaseChunkStore
from study_rag.config import RetrievalConfig
from study_rag.errors import AuthorizationError, RetrievalError, StudyRAGError, ValidationError
from study_rag.models.document import RankedChunk, RankedLists
from study_rag.retrieval.scope import normalize_allow_list, validate_owner

logger = logging.getLogger(__name__)


class HybridRetriever:
    """
    Runs the hybrid search against a chunk store and normalizes the result.

    The store applies owner and allow-list filtering inside its ranking
    query. The retriever passes the same scope down and then checks that
    every returned chunk is inside it; an out-of-scope chunk means the
    store is broken, and the query fails instead of being filtered.
    """

    def __init__(self, store: BaseChunkStore, config: RetrievalConfig = None):
        self._store = store
        self._config = config or RetrievalConfig()

    def retrieve(
        self,
        query_text: str,
        query_vector: list[float],
        owner_id: str,
        allow_list: Optional[list[int]] = None,
        pool_size: Optional[int] = None,
    ) -> RankedLists:
        """
        Retrieve the two ranked candidate lists for a query.

        Args:
            query_text: The user's question.
            query_vector: Embedding of the question.
            owner_id: Identity whose chunks may be ranked.
            allow_list: Optional chunk ids, already authorized for owner_id.
            pool_size: Per-signal pool size; defaults to config.pool_size.

        Returns:
            RankedLists, each list sorted, re-ranked from 1 and truncated.

        Raises:
            ValidationError: Malformed query, vector or scope.
            RetrievalError: The store failed.
            AuthorizationError: The store returned a chunk outside the scope.
        """
        if not isinstance(query_text, str) or not query_text.strip():
            raise ValidationError("Query is required")
        validate_owner(owner_id)
        allow_list = normalize_allow_list(allow_list)
        vector = self._validate_vector(query_vector)
        pool_size = pool_size or self._config.pool_size

        try:
            lists = self._store.search(
                owner_id=owner_id,
                query_vector=vector,
                query_text=query_text,
                pool_size=pool_size,
                allow_list=allow_list,
            )
        except StudyRAGError:
            raise
        except Exception as exc:
            logger.error("Chunk store search failed: %s", exc)
            raise RetrievalError(f"Chunk store unavailable: {exc}") from exc

        self._check_scope(lists, owner_id, allow_list)

        vector_list = self._rerank_list(
            lists.vector, key=lambda rc: (rc.score, rc.chunk.id), pool_size=pool_size
        )
        lexical_list = self._rerank_list(
            lists.lexical, key=lambda rc: (-rc.score, rc.chunk.id), pool_size=pool_size
        )

        logger.debug(
            "Retrieved %d vector and %d lexical candidates",
            len(vector_list),
            len(lexical_list),
        )
        return RankedLists(vector=vector_list, lexical=lexical_list)

    @staticmethod
    def _validate_vector(query_vector) -> list[float]:
        if not query_vector:
            raise ValidationError("Query embedding must be a non-empty vector")
        try:
            vector = [float(x) for x in query_vector]
        except (TypeError, ValueError) as exc:
            raise ValidationError("Query embedding must contain only numbers") from exc
        if not all(math.isfinite(x) for x in vector):
            raise ValidationError("Query embedding must contain only finite numbers")
        return vector

    @staticmethod
    def _check_scope(lists: RankedLists, owner_id: str, allow_list: Optional[list[int]]) -> None:
        allowed = set(allow_list) if allow_list is not None else None
        for ranked in [*lists.vector, *lists.lexical]:
            chunk = ranked.chunk
            if chunk.owner_id != owner_id or (allowed is not None and chunk.id not in allowed):
                logger.error("Chunk store returned chunk %d outside the query scope", chunk.id)
                raise AuthorizationError("Chunk store returned a chunk outside the query scope")

    @staticmethod
    def _rerank_list(items: list[RankedChunk], key, pool_size: int) -> list[RankedChunk]:
        """Sort deterministically, drop duplicate ids, renumber from 1, truncate."""
        seen: set[int] = set()
        ordered: list[RankedChunk] = []
        for item in sorted(items, key=key):
            if item.chunk.id in seen:
                continue
            seen.add(item.chunk.id)
            ordered.append(item)

        return [
            RankedChunk(chunk=item.chunk, rank=position, score=item.score)
            for position, item in enumerate(ordered[:pool_size], start=1)
        ]
