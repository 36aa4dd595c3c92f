"""
Query state machine as a LangGraph graph.

One query walks these states:

    RETRIEVING → EMPTY (terminal)
               → FUSING → RERANKING → SCORING → GENERATING → PERSISTING → DONE

    1. RETRIEVE: embed the question, run the scoped hybrid search
    2. EMPTY:    nothing ranked in either list → canned answer, confidence 0,
                 no generation call, nothing persisted
    3. FUSE:     Reciprocal Rank Fusion into the fused pool
    4. RERANK:   external reranker, or the fused-score fallback on any failure
    5. SCORE:    confidence, sources and context from the final results
    6. GENERATE: answer from the ordered context
    7. PERSIST:  question + answer written as one chat turn

Failures in RETRIEVE and GENERATE propagate out of graph.invoke(). Rerank
failures never leave RerankSelector. A persistence failure is logged and
the answer is still returned with persisted=False.

Usage:
    from study_rag.graphs.query import build_query_graph

    graph = build_query_graph(retriever, embedder, selector, generator, session_store)
    state = graph.invoke({"question": "What is osmosis?", "owner_id": "u1", "trace": []})
    print(state["answer"], state["confidence"], state["trace"])
"""

import logging

from langgraph.graph import END, START, StateGraph

from study_rag.base.embedder import BaseEmbeddingProvider
from study_rag.base.generator import BaseGenerator
from study_rag.base.session_store import BaseSessionStore
from study_rag.config import QueryConfig, RetrievalConfig
from study_rag.errors import EmbeddingError, PersistenceError, StudyRAGError
from study_rag.graphs.state import QueryState
from study_rag.models.document import RankedResult
from study_rag.models.result import SourceDocument
from study_rag.retrieval.confidence import estimate_confidence
from study_rag.retrieval.fusion import reciprocal_rank_fusion
from study_rag.retrieval.reranking import RerankSelector
from study_rag.retrieval.search import HybridRetriever
from study_rag.utils.helpers import truncate_text

logger = logging.getLogger(__name__)


def to_source(result: RankedResult, snippet_chars: int = 200) -> SourceDocument:
    """Build the caller-facing source entry for one final result."""
    chunk = result.candidate.chunk
    return SourceDocument(
        text=truncate_text(chunk.content, snippet_chars),
        score=result.candidate.fused_score,
        relevance_score=result.relevance_score,
        metadata=dict(chunk.metadata),
        is_visual=chunk.is_visual,
    )


def session_title(question: str, limit: int = 50) -> str:
    """Title for a new chat session: the start of its first question."""
    return truncate_text(question, limit)


def build_query_graph(
    retriever: HybridRetriever,
    embedder: BaseEmbeddingProvider,
    selector: RerankSelector,
    generator: BaseGenerator,
    session_store: BaseSessionStore = None,
    retrieval_config: RetrievalConfig = None,
    query_config: QueryConfig = None,
):
    """
    Build the query LangGraph.

    Args:
        retriever: Scoped hybrid retriever over the chunk store.
        embedder: Embeds the question.
        selector: Reranker adapter with fallback.
        generator: Writes the answer.
        session_store: Persists chat turns; None skips persistence.
        retrieval_config: Pool sizes and RRF constant.
        query_config: Snippet/title lengths and the empty-result answer.

    Returns:
        A compiled LangGraph that accepts {"question", "owner_id",
        "allow_list", "session_id"} and returns the full QueryState.
    """
    retrieval_config = retrieval_config or RetrievalConfig()
    query_config = query_config or QueryConfig()

    # --- Node functions ---

    def retrieve_node(state: QueryState) -> dict:
        """Embed the question and fetch both ranked lists."""
        try:
            vector = embedder.embed(state["question"])
        except StudyRAGError:
            raise
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc

        lists = retriever.retrieve(
            state["question"],
            vector,
            owner_id=state["owner_id"],
            allow_list=state.get("allow_list"),
            pool_size=retrieval_config.pool_size,
        )
        return {"lists": lists, "trace": ["retrieving"]}

    def empty_node(state: QueryState) -> dict:
        """Nothing to rank: canned answer, no generation, nothing persisted."""
        logger.info("No candidates in scope, short-circuiting")
        return {
            "answer": query_config.empty_answer,
            "candidates": [],
            "results": [],
            "sources": [],
            "context": [],
            "confidence": 0,
            "persisted": False,
            "trace": ["empty"],
        }

    def fuse_node(state: QueryState) -> dict:
        candidates = reciprocal_rank_fusion(
            state["lists"],
            k=retrieval_config.rrf_k,
            limit=retrieval_config.fused_pool_size,
        )
        logger.debug("Fused pool has %d candidates", len(candidates))
        return {"candidates": candidates, "trace": ["fusing"]}

    def rerank_node(state: QueryState) -> dict:
        outcome = selector.select(state["question"], state["candidates"])
        trace = ["reranking", "fallback"] if outcome.used_fallback else ["reranking"]
        return {
            "results": outcome.results,
            "used_fallback": outcome.used_fallback,
            "trace": trace,
        }

    def score_node(state: QueryState) -> dict:
        results = state["results"]
        return {
            "confidence": estimate_confidence(results),
            "sources": [to_source(r, query_config.snippet_chars) for r in results],
            "context": [r.candidate.chunk.content for r in results],
            "trace": ["scoring"],
        }

    def generate_node(state: QueryState) -> dict:
        answer = generator.generate(state["question"], state["context"])
        return {"answer": answer, "trace": ["generating"]}

    def persist_node(state: QueryState) -> dict:
        """Write question and answer as one chat turn; a failure does not lose the answer."""
        if session_store is None:
            return {"persisted": False, "trace": ["persisting"]}

        try:
            session_id = session_store.record_turn(
                owner_id=state["owner_id"],
                session_id=state.get("session_id"),
                title=session_title(state["question"], query_config.title_chars),
                question=state["question"],
                answer=state["answer"],
                sources=state["sources"],
            )
        except PersistenceError as exc:
            logger.error("Failed to persist chat turn: %s", exc)
            return {"persisted": False, "trace": ["persisting"]}

        return {"session_id": session_id, "persisted": True, "trace": ["persisting"]}

    # --- Routing ---

    def route_after_retrieve(state: QueryState) -> str:
        if state["lists"].is_empty:
            return "empty"
        return "fuse"

    # --- Build the graph ---
    graph = StateGraph(QueryState)

    graph.add_node("retrieve", retrieve_node)
    graph.add_node("empty", empty_node)
    graph.add_node("fuse", fuse_node)
    graph.add_node("rerank", rerank_node)
    graph.add_node("score", score_node)
    graph.add_node("generate", generate_node)
    graph.add_node("persist", persist_node)

    graph.add_edge(START, "retrieve")
    graph.add_conditional_edges(
        "retrieve",
        route_after_retrieve,
        {"empty": "empty", "fuse": "fuse"},
    )
    graph.add_edge("empty", END)
    graph.add_edge("fuse", "rerank")
    graph.add_edge("rerank", "score")
    graph.add_edge("score", "generate")
    graph.add_edge("generate", "persist")
    graph.add_edge("persist", END)

    return graph.compile()
