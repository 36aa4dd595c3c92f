"""
In-process chunk store.

Keeps chunks in a dict and ranks them in Python with the same semantics as
the Postgres store:

    vector  → cosine distance (1 - cosine similarity), ascending
    lexical → BM25 relevance over chunks containing a query term, descending

Scoping (owner and optional allow-list) is applied before either signal is
computed, so a chunk outside the scope never gets a score. BM25 statistics
are computed over the scoped corpus only.

Good for tests, notebooks and small single-user deployments. Not thread-safe
for concurrent add() and search().

Usage:
    from study_rag.storage.memory import InMemoryChunkStore

    store = InMemoryChunkStore()
    store.add(Chunk(id=1, content="Osmosis is...", owner_id="u1", embedding=[...]))
    lists = store.search("u1", query_vector, "what is osmosis", pool_size=20)
"""

import re
from typing import Iterable, Optional

import numpy as np
from rank_bm25 import BM25Okapi

from study_rag.base.store import BaseChunkStore
from study_rag.models.document import Chunk, DocumentSummary, RankedChunk, RankedLists
from study_rag.storage.documents import summarize_documents

_TOKEN = re.compile(r"\w+")


def tokenize(text: str) -> list[str]:
    """Lowercased word tokens used for BM25 scoring."""
    return _TOKEN.findall(text.lower())


class InMemoryChunkStore(BaseChunkStore):
    """Chunk store backed by a Python dict, ranking with numpy and rank-bm25."""

    def __init__(self, chunks: Iterable[Chunk] = ()):
        self._chunks: dict[int, Chunk] = {}
        for chunk in chunks:
            self.add(chunk)

    def add(self, chunk: Chunk) -> None:
        """Add or replace a chunk by id."""
        self._chunks[chunk.id] = chunk

    def __len__(self) -> int:
        return len(self._chunks)

    def search(
        self,
        owner_id: str,
        query_vector: list[float],
        query_text: str,
        pool_size: int,
        allow_list: Optional[list[int]] = None,
    ) -> RankedLists:
        scoped = self._scoped(owner_id, allow_list)
        if not scoped:
            return RankedLists()

        return RankedLists(
            vector=self._vector_search(scoped, query_vector, pool_size),
            lexical=self._lexical_search(scoped, query_text, pool_size),
        )

    def count_owned(self, owner_id: str, chunk_ids: list[int]) -> int:
        return sum(
            1
            for chunk_id in set(chunk_ids)
            if chunk_id in self._chunks and self._chunks[chunk_id].owner_id == owner_id
        )

    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        return summarize_documents(
            (chunk.id, chunk.metadata, chunk.created_at)
            for chunk in self._chunks.values()
            if chunk.owner_id == owner_id
        )

    def count_chunks(self) -> int:
        return len(self._chunks)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _scoped(self, owner_id: str, allow_list: Optional[list[int]]) -> list[Chunk]:
        allowed = set(allow_list) if allow_list is not None else None
        return [
            chunk
            for chunk in self._chunks.values()
            if chunk.owner_id == owner_id and (allowed is None or chunk.id in allowed)
        ]

    @staticmethod
    def _vector_search(
        chunks: list[Chunk], query_vector: list[float], pool_size: int
    ) -> list[RankedChunk]:
        """Rank chunks with an embedding by cosine distance to the query."""
        embedded = [c for c in chunks if c.embedding]
        if not embedded:
            return []

        query = np.asarray(query_vector, dtype=float)
        matrix = np.asarray([c.embedding for c in embedded], dtype=float)
        if matrix.shape[1] != query.shape[0]:
            raise ValueError(
                f"Query vector has {query.shape[0]} dimensions, "
                f"stored embeddings have {matrix.shape[1]}"
            )

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            similarity = np.where(norms > 0, matrix @ query / norms, 0.0)
        distances = 1.0 - similarity

        ordered = sorted(
            zip(embedded, distances.tolist()), key=lambda pair: (pair[1], pair[0].id)
        )
        return [
            RankedChunk(chunk=chunk, rank=position, score=distance)
            for position, (chunk, distance) in enumerate(ordered[:pool_size], start=1)
        ]

    @staticmethod
    def _lexical_search(chunks: list[Chunk], query_text: str, pool_size: int) -> list[RankedChunk]:
        """Rank chunks that share at least one term with the query by BM25."""
        query_terms = tokenize(query_text)
        if not query_terms:
            return []

        corpus = [tokenize(c.content) for c in chunks]
        if not any(corpus):
            return []

        bm25 = BM25Okapi(corpus)
        scores = bm25.get_scores(query_terms)

        terms = set(query_terms)
        matches = [
            (chunk, float(score))
            for chunk, tokens, score in zip(chunks, corpus, scores)
            if terms.intersection(tokens)
        ]
        matches.sort(key=lambda pair: (-pair[1], pair[0].id))
        return [
            RankedChunk(chunk=chunk, rank=position, score=score)
            for position, (chunk, score) in enumerate(matches[:pool_size], start=1)
        ]

