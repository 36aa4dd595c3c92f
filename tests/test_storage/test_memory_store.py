"""Tests for InMemoryChunkStore: numpy cosine ranking plus BM25."""

import pytest

from study_rag.models.document import Chunk
from study_rag.storage.memory import InMemoryChunkStore, tokenize


class TestTokenize:

    def test_lowercases_and_strips_punctuation(self):
        assert tokenize("Osmosis, in a Membrane.") == ["osmosis", "in", "a", "membrane"]

    def test_empty(self):
        assert tokenize("  ...  ") == []


class TestInMemoryChunkStore:

    def test_add_and_len(self, sample_chunks):
        store = InMemoryChunkStore()
        for chunk in sample_chunks:
            store.add(chunk)
        assert len(store) == 6
        assert store.count_chunks() == 6

    def test_vector_ranking(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "osmosis", pool_size=20)

        assert [rc.chunk.id for rc in lists.vector] == [1, 4, 5, 2, 3]
        assert lists.vector[0].score == pytest.approx(0.0)
        assert [rc.rank for rc in lists.vector] == [1, 2, 3, 4, 5]

    def test_lexical_only_matching_chunks(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "mitochondria", pool_size=20)
        assert [rc.chunk.id for rc in lists.lexical] == [2]

    def test_lexical_descending(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "osmosis membrane water", pool_size=20)
        scores = [rc.score for rc in lists.lexical]
        assert scores == sorted(scores, reverse=True)
        assert {rc.chunk.id for rc in lists.lexical} == {1, 4, 5}

    def test_foreign_chunks_never_ranked(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "bob private notes", pool_size=20)
        assert 10 not in lists.chunk_ids()
        assert lists.lexical == []

    def test_allow_list_filters_before_ranking(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "osmosis", pool_size=20, allow_list=[2, 5])

        assert [rc.chunk.id for rc in lists.vector] == [5, 2]
        assert lists.vector[0].rank == 1
        assert [rc.chunk.id for rc in lists.lexical] == [5]

    def test_pool_size(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "osmosis", pool_size=2)
        assert len(lists.vector) == 2
        assert len(lists.lexical) == 2

    def test_unknown_owner_is_empty(self, memory_store):
        assert memory_store.search("carol", [1.0, 0.0, 0.0], "osmosis", pool_size=20).is_empty

    def test_chunks_without_embeddings_only_lexical(self):
        store = InMemoryChunkStore([Chunk(id=1, content="osmosis notes", owner_id="alice")])
        lists = store.search("alice", [1.0, 0.0], "osmosis", pool_size=20)
        assert lists.vector == []
        assert [rc.chunk.id for rc in lists.lexical] == [1]

    def test_dimension_mismatch(self, memory_store):
        with pytest.raises(ValueError, match="dimensions"):
            memory_store.search("alice", [1.0, 0.0], "osmosis", pool_size=20)

    def test_blank_query_text_has_no_lexical_list(self, memory_store):
        lists = memory_store.search("alice", [1.0, 0.0, 0.0], "?!", pool_size=20)
        assert lists.lexical == []
        assert len(lists.vector) == 5

    def test_count_owned(self, memory_store):
        assert memory_store.count_owned("alice", [1, 2, 2, 3]) == 3
        assert memory_store.count_owned("alice", [1, 10, 999]) == 1
        assert memory_store.count_owned("bob", [10]) == 1

    def test_list_documents(self, memory_store):
        docs = memory_store.list_documents("alice")

        assert [d.file_name for d in docs] == ["history.pdf", "biology.pdf"]
        biology = docs[1]
        assert biology.chunk_count == 4
        assert biology.chunk_ids == [1, 2, 4, 5]
