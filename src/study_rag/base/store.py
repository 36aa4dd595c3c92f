"""
Abstract base class for chunk stores.

A chunk store holds an owner's chunks with their embeddings and answers the
one query the retrieval core needs: a dual-signal search that returns a
vector-similarity ordering and a lexical-relevance ordering in a single
operation.

Authorization is part of the contract, not an afterthought: search() must
apply "owner_id AND (no allow-list OR id in allow-list)" inside the ranking
query itself, so foreign chunks never receive a rank.
"""

from abc import ABC, abstractmethod
from typing import Optional

from study_rag.models.document import DocumentSummary, RankedLists


class BaseChunkStore(ABC):
    """Contract for chunk stores (Postgres/pgvector, in-memory, ...)."""

    @abstractmethod
    def search(
        self,
        owner_id: str,
        query_vector: list[float],
        query_text: str,
        pool_size: int,
        allow_list: Optional[list[int]] = None,
    ) -> RankedLists:
        """
        Run the scoped hybrid search.

        Args:
            owner_id: Identity whose chunks may be ranked.
            query_vector: Precomputed query embedding.
            query_text: Raw query text for the lexical signal.
            pool_size: Maximum entries per signal.
            allow_list: Optional chunk ids the search is restricted to.

        Returns:
            RankedLists with the vector list ascending by distance and the
            lexical list descending by relevance, each at most pool_size long.
        """
        ...

    @abstractmethod
    def count_owned(self, owner_id: str, chunk_ids: list[int]) -> int:
        """Count how many of chunk_ids belong to owner_id."""
        ...

    @abstractmethod
    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        """Group the owner's chunks by source file, newest upload first."""
        ...

    def ping(self) -> bool:
        """Lightweight readiness probe. Stores without a remote backend are always ready."""
        return True

    def count_chunks(self) -> int:
        """Total number of stored chunks, used by the health check."""
        raise NotImplementedError(
            f"{self.__class__.__name__} does not report chunk counts."
        )
