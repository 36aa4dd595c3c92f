"""Tests for HybridRetriever: scoped dual-signal retrieval."""

from unittest.mock import MagicMock

import pytest

from study_rag.config import RetrievalConfig
from study_rag.errors import AuthorizationError, RetrievalError, ValidationError
from study_rag.models.document import RankedChunk, RankedLists
from study_rag.retrieval.search import HybridRetriever


class TestHybridRetriever:

    def test_vector_list_ascending_by_distance(self, memory_store):
        lists = HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], owner_id="alice")

        assert [rc.chunk.id for rc in lists.vector][:3] == [1, 4, 5]
        assert [rc.rank for rc in lists.vector] == list(range(1, len(lists.vector) + 1))
        distances = [rc.score for rc in lists.vector]
        assert distances == sorted(distances)

    def test_lexical_list_only_matching_chunks(self, memory_store):
        lists = HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], owner_id="alice")

        assert {rc.chunk.id for rc in lists.lexical} == {1, 4, 5}
        scores = [rc.score for rc in lists.lexical]
        assert scores == sorted(scores, reverse=True)

    def test_owner_scoping(self, memory_store):
        lists = HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], owner_id="alice")
        assert 10 not in lists.chunk_ids()

        bob = HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], owner_id="bob")
        assert bob.chunk_ids() == {10}

    def test_allow_list_applied_before_ranking(self, memory_store):
        """Chunks outside the allow-list never appear in either list."""
        lists = HybridRetriever(memory_store).retrieve(
            "osmosis membrane", [1.0, 0.0, 0.0], owner_id="alice", allow_list=[3, 5]
        )

        assert {rc.chunk.id for rc in lists.vector} <= {3, 5}
        assert {rc.chunk.id for rc in lists.lexical} <= {3, 5}
        assert lists.vector[0].chunk.id == 5
        assert lists.vector[0].rank == 1

    def test_pool_size_truncates_each_list(self, memory_store):
        lists = HybridRetriever(memory_store, RetrievalConfig(pool_size=2, top_k=2)).retrieve(
            "osmosis", [1.0, 0.0, 0.0], owner_id="alice"
        )
        assert len(lists.vector) == 2
        assert len(lists.lexical) == 2

    def test_ties_broken_by_chunk_id(self, make_chunk):
        store = MagicMock()
        store.search.return_value = RankedLists(
            vector=[
                RankedChunk(chunk=make_chunk(9), rank=1, score=0.2),
                RankedChunk(chunk=make_chunk(4), rank=2, score=0.2),
            ],
            lexical=[
                RankedChunk(chunk=make_chunk(8), rank=1, score=1.5),
                RankedChunk(chunk=make_chunk(2), rank=2, score=1.5),
            ],
        )
        lists = HybridRetriever(store).retrieve("q", [0.1, 0.2], owner_id="alice")

        assert [(rc.chunk.id, rc.rank) for rc in lists.vector] == [(4, 1), (9, 2)]
        assert [(rc.chunk.id, rc.rank) for rc in lists.lexical] == [(2, 1), (8, 2)]

    def test_scope_passed_to_store(self):
        store = MagicMock()
        store.search.return_value = RankedLists()
        HybridRetriever(store).retrieve("q", [0.5], owner_id="alice", allow_list=[3, 3, 1])

        store.search.assert_called_once_with(
            owner_id="alice",
            query_vector=[0.5],
            query_text="q",
            pool_size=20,
            allow_list=[3, 1],
        )

    def test_store_leak_is_rejected(self, make_chunk):
        store = MagicMock()
        store.search.return_value = RankedLists(
            vector=[RankedChunk(chunk=make_chunk(1, owner_id="bob"), rank=1, score=0.1)]
        )
        with pytest.raises(AuthorizationError):
            HybridRetriever(store).retrieve("q", [0.1], owner_id="alice")

    def test_store_ignoring_allow_list_is_rejected(self, make_chunk):
        store = MagicMock()
        store.search.return_value = RankedLists(
            lexical=[RankedChunk(chunk=make_chunk(7), rank=1, score=2.0)]
        )
        with pytest.raises(AuthorizationError):
            HybridRetriever(store).retrieve("q", [0.1], owner_id="alice", allow_list=[1])

    def test_store_failure_is_retrieval_error(self):
        store = MagicMock()
        store.search.side_effect = ConnectionError("could not connect to server")
        with pytest.raises(RetrievalError, match="unavailable"):
            HybridRetriever(store).retrieve("q", [0.1], owner_id="alice")

    def test_store_retrieval_error_propagates(self):
        store = MagicMock()
        store.search.side_effect = RetrievalError("down")
        with pytest.raises(RetrievalError, match="down"):
            HybridRetriever(store).retrieve("q", [0.1], owner_id="alice")

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_query_required(self, memory_store, query):
        with pytest.raises(ValidationError, match="Query is required"):
            HybridRetriever(memory_store).retrieve(query, [1.0, 0.0, 0.0], owner_id="alice")

    @pytest.mark.parametrize("vector", [[], None, ["a", "b"], [float("nan"), 1.0]])
    def test_bad_vector(self, memory_store, vector):
        with pytest.raises(ValidationError):
            HybridRetriever(memory_store).retrieve("osmosis", vector, owner_id="alice")

    def test_empty_allow_list_rejected(self, memory_store):
        with pytest.raises(ValidationError):
            HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], "alice", allow_list=[])

    def test_nothing_in_scope(self, memory_store):
        lists = HybridRetriever(memory_store).retrieve("osmosis", [1.0, 0.0, 0.0], owner_id="carol")
        assert lists.is_empty
