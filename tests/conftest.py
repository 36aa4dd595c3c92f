"""
Shared test fixtures for the study-rag test suite.

Provides reusable fixtures: sample chunks, an in-memory chunk store, fake
collaborators (embedder, reranker, generator) and a SQLite session store.
"""

from datetime import datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from study_rag.base import BaseEmbeddingProvider, BaseGenerator, BaseReranker
from study_rag.config import EngineConfig, RetrievalConfig
from study_rag.models.document import Candidate, Chunk, RankedChunk, RankedLists
from study_rag.storage.memory import InMemoryChunkStore
from study_rag.storage.sessions import SQLSessionStore


# ---------------------------------------------------------------------------
# Fake collaborators
# ---------------------------------------------------------------------------

class FakeEmbedder(BaseEmbeddingProvider):
    """Returns the same vector for every text and records what it embedded."""

    def __init__(self, vector=None, error=None):
        self.vector = vector or [1.0, 0.0, 0.0]
        self.error = error
        self.calls = []

    def embed(self, text):
        self.calls.append(text)
        if self.error:
            raise self.error
        return list(self.vector)


class FakeReranker(BaseReranker):
    """Returns a canned payload (or raises) and records each call."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def rerank(self, query, candidates, top_k):
        self.calls.append((query, [c.chunk.id for c in candidates], top_k))
        if self.error:
            raise self.error
        return self.response


class FakeGenerator(BaseGenerator):
    """Echoes a fixed answer and records the context it was given."""

    def __init__(self, answer="Osmosis moves water across a membrane.", error=None):
        self.answer = answer
        self.error = error
        self.calls = []

    def generate(self, query, context):
        self.calls.append((query, list(context)))
        if self.error:
            raise self.error
        return self.answer


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_chunks():
    """Chunks for two owners; alice owns 1-5, bob owns 10."""
    return [
        Chunk(
            id=1,
            content="Osmosis is the movement of water across a semipermeable membrane.",
            owner_id="alice",
            embedding=[1.0, 0.0, 0.0],
            metadata={"fileName": "biology.pdf", "chunkType": "text"},
            created_at=datetime(2024, 3, 1, 10, 0),
        ),
        Chunk(
            id=2,
            content="Mitochondria are the powerhouse of the cell.",
            owner_id="alice",
            embedding=[0.0, 1.0, 0.0],
            metadata={"fileName": "biology.pdf", "chunkType": "text"},
            created_at=datetime(2024, 3, 1, 10, 0),
        ),
        Chunk(
            id=3,
            content="The French Revolution began in 1789.",
            owner_id="alice",
            embedding=[0.0, 0.0, 1.0],
            metadata={"fileName": "history.pdf", "chunkType": "text"},
            created_at=datetime(2024, 4, 2, 9, 30),
        ),
        Chunk(
            id=4,
            content="Diffusion and osmosis both move particles from high to low concentration.",
            owner_id="alice",
            embedding=[0.9, 0.1, 0.0],
            metadata={"fileName": "biology.pdf", "chunkType": "text"},
            created_at=datetime(2024, 3, 1, 10, 5),
        ),
        Chunk(
            id=5,
            content="Diagram: water molecules crossing a membrane during osmosis.",
            owner_id="alice",
            embedding=[0.8, 0.0, 0.2],
            metadata={"fileName": "biology.pdf", "chunkType": "visual"},
            created_at=datetime(2024, 3, 1, 10, 6),
        ),
        Chunk(
            id=10,
            content="Bob's private notes on osmosis and membranes.",
            owner_id="bob",
            embedding=[1.0, 0.0, 0.0],
            metadata={"fileName": "bob.pdf", "chunkType": "text"},
            created_at=datetime(2024, 5, 1, 8, 0),
        ),
    ]


@pytest.fixture
def memory_store(sample_chunks):
    return InMemoryChunkStore(sample_chunks)


@pytest.fixture
def make_chunk():
    """Factory for a minimal chunk owned by alice."""

    def _make(chunk_id, content=None, owner_id="alice", **metadata):
        return Chunk(
            id=chunk_id,
            content=content or f"chunk {chunk_id}",
            owner_id=owner_id,
            metadata=metadata,
        )

    return _make


@pytest.fixture
def fused_pool(make_chunk):
    """Five fused candidates with descending fused scores (ids 1-5)."""
    scores = [0.032, 0.030, 0.0163, 0.016, 0.0159]
    return [
        Candidate(chunk=make_chunk(i + 1), vector_rank=i + 1, fts_rank=None, fused_score=score)
        for i, score in enumerate(scores)
    ]


@pytest.fixture
def ranked_lists(make_chunk):
    """Vector ranks {1:1, 2:2}; lexical ranks {2:1, 3:1}."""
    a, b, c = make_chunk(1), make_chunk(2), make_chunk(3)
    return RankedLists(
        vector=[RankedChunk(chunk=a, rank=1, score=0.1), RankedChunk(chunk=b, rank=2, score=0.2)],
        lexical=[RankedChunk(chunk=b, rank=1, score=0.9), RankedChunk(chunk=c, rank=1, score=0.9)],
    )


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def sqlite_engine():
    """In-memory SQLite shared across connections for the duration of a test."""
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture
def session_store(sqlite_engine):
    return SQLSessionStore(sqlite_engine)


@pytest.fixture
def engine_config():
    return EngineConfig(retrieval=RetrievalConfig())
