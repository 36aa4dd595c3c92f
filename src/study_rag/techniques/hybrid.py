"""
HybridRAG: the query orchestrator and public entry point.

A question goes through:

    authorize scope → check session ownership → query graph
        (embed → hybrid search → RRF fusion → rerank/fallback →
         confidence + sources → generate → persist chat turn)

Internally the sequence is a LangGraph StateGraph (graphs/query.py); this
class validates the request, wires the collaborators, and turns the final
graph state into a QueryOutcome.

Usage as a package:
    from study_rag.techniques import HybridRAG

    rag = HybridRAG.from_config(EngineConfig())
    outcome = rag.query("What is osmosis?", owner_id="user_1")
    print(outcome.answer)
    print(outcome.confidence_score)   # 0-100
    print(outcome.to_response())      # {answer, sources, sessionId, confidenceScore}

    # Restrict to chunks of selected documents
    docs = rag.list_documents("user_1")
    outcome = rag.query("Summarize chapter 2", "user_1", document_ids=docs[0].chunk_ids)
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from study_rag.base.embedder import BaseEmbeddingProvider
from study_rag.base.generator import BaseGenerator
from study_rag.base.reranker import BaseReranker
from study_rag.base.session_store import BaseSessionStore
from study_rag.base.store import BaseChunkStore
from study_rag.config import EngineConfig
from study_rag.errors import AuthorizationError, ValidationError
from study_rag.graphs.query import build_query_graph
from study_rag.models.document import DocumentSummary
from study_rag.models.result import QueryOutcome
from study_rag.models.session import ChatSessionRecord
from study_rag.retrieval.reranking import RerankSelector
from study_rag.retrieval.scope import authorize_scope, validate_owner
from study_rag.retrieval.search import HybridRetriever

logger = logging.getLogger(__name__)


class HybridRAG:
    """
    Hybrid retrieval + reranking RAG over an owner's study materials.

    Collaborators are injected, so the same orchestrator runs against
    Postgres in production and the in-memory store in tests. Use
    from_config() for the default production wiring.
    """

    def __init__(
        self,
        store: BaseChunkStore,
        embedder: BaseEmbeddingProvider,
        generator: BaseGenerator,
        session_store: Optional[BaseSessionStore] = None,
        reranker: Optional[BaseReranker] = None,
        config: Optional[EngineConfig] = None,
    ):
        self._config = config or EngineConfig()
        self._store = store
        self._embedder = embedder
        self._generator = generator
        self._session_store = session_store

        self._retriever = HybridRetriever(store, self._config.retrieval)
        self._selector = RerankSelector(
            reranker=reranker,
            config=self._config.rerank,
            top_k=self._config.retrieval.top_k,
        )
        self._graph = build_query_graph(
            retriever=self._retriever,
            embedder=embedder,
            selector=self._selector,
            generator=generator,
            session_store=session_store,
            retrieval_config=self._config.retrieval,
            query_config=self._config.query,
        )

    @classmethod
    def from_config(cls, config: Optional[EngineConfig] = None) -> "HybridRAG":
        """
        Production wiring: pgvector chunk store, SQL session store,
        LangChain embeddings, LLM reranker and LLM generator.
        """
        from study_rag.generation.generate import AnswerGenerator
        from study_rag.indexing.embeddings import LangChainEmbeddingProvider
        from study_rag.retrieval.reranking import LLMReranker
        from study_rag.storage.postgres import PgVectorChunkStore
        from study_rag.storage.sessions import SQLSessionStore

        config = config or EngineConfig()
        store = PgVectorChunkStore.from_config(config.database)
        return cls(
            store=store,
            embedder=LangChainEmbeddingProvider(config.embedding),
            generator=AnswerGenerator(config.llm),
            session_store=SQLSessionStore(store.engine),
            reranker=LLMReranker(config.rerank_llm, config.rerank) if config.rerank.enabled else None,
            config=config,
        )

    # ------------------------------------------------------------------
    # Query
    # ------------------------------------------------------------------

    def query(
        self,
        question: str,
        owner_id: str,
        document_ids: Optional[Iterable[int]] = None,
        session_id: Optional[int] = None,
    ) -> QueryOutcome:
        """
        Answer a question from the owner's study materials.

        Args:
            question: The user's question.
            owner_id: Authenticated identity issuing the query.
            document_ids: Optional chunk-id allow-list; every id must be owned.
            session_id: Existing chat session to append to; None starts a new one.

        Returns:
            QueryOutcome with answer, sources, session id and confidence.

        Raises:
            ValidationError: Missing question, bad owner or malformed allow-list.
            AuthorizationError: Foreign chunk ids or a foreign session.
            EmbeddingError / RetrievalError / GenerationError: Fatal stage failures.
        """
        if not isinstance(question, str) or not question.strip():
            raise ValidationError("Query is required")
        allow_list = authorize_scope(self._store, owner_id, document_ids)
        self._check_session(owner_id, session_id)

        state = self._graph.invoke(
            {
                "question": question,
                "owner_id": owner_id,
                "allow_list": allow_list,
                "session_id": session_id,
                "trace": [],
            }
        )

        trace = state.get("trace", [])
        terminal = "empty" if "empty" in trace else "done"
        logger.info(
            "Query finished: state=%s fallback=%s results=%d confidence=%d",
            terminal,
            bool(state.get("used_fallback")),
            len(state.get("sources", [])),
            state.get("confidence", 0),
        )

        return QueryOutcome(
            answer=state["answer"],
            sources=state.get("sources", []),
            session_id=state.get("session_id"),
            confidence_score=state.get("confidence", 0),
            context=state.get("context", []),
            persisted=state.get("persisted", False),
            state=terminal,
        )

    def _check_session(self, owner_id: str, session_id: Optional[int]) -> None:
        """A supplied session must exist and belong to the owner."""
        if session_id is None:
            return
        if not isinstance(session_id, int) or isinstance(session_id, bool):
            raise ValidationError("session_id must be an integer")
        if self._session_store is None:
            raise ValidationError("Chat sessions are not available without a session store")
        if self._session_store.get_session(owner_id, session_id) is None:
            logger.warning("Rejected query against session %d not owned by requester", session_id)
            raise AuthorizationError("Chat session not found")

    # ------------------------------------------------------------------
    # Documents and sessions
    # ------------------------------------------------------------------

    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        """The owner's uploaded files with the chunk ids that make them up."""
        return self._store.list_documents(validate_owner(owner_id))

    def list_sessions(self, owner_id: str) -> list[ChatSessionRecord]:
        return self._require_sessions().list_sessions(validate_owner(owner_id))

    def get_session(self, owner_id: str, session_id: int) -> Optional[ChatSessionRecord]:
        return self._require_sessions().get_session(validate_owner(owner_id), session_id)

    def clear_sessions(self, owner_id: str) -> int:
        return self._require_sessions().clear_sessions(validate_owner(owner_id))

    def _require_sessions(self) -> BaseSessionStore:
        if self._session_store is None:
            raise ValidationError("Chat sessions are not available without a session store")
        return self._session_store

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def initialize(self) -> None:
        """Prepare the chunk store (extension and indexes) when the backend needs it."""
        initialize = getattr(self._store, "initialize", None)
        if initialize is not None:
            initialize()

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def health(self) -> dict[str, Any]:
        """
        Readiness report: chunk store connectivity and total chunk count.

        Never raises; an unhealthy store is reported as status "unhealthy".
        """
        started = time.perf_counter()
        try:
            connected = self._store.ping()
        except Exception as exc:
            logger.error("Health check ping failed: %s", exc)
            connected = False
        ping_ms = round((time.perf_counter() - started) * 1000, 1)

        if not connected:
            return {
                "status": "unhealthy",
                "database": {
                    "connected": False,
                    "responseTime": ping_ms,
                    "error": "Failed to connect to database",
                },
            }

        started = time.perf_counter()
        try:
            count = self._store.count_chunks()
        except Exception as exc:
            logger.error("Health check count failed: %s", exc)
            return {"status": "unhealthy", "error": str(exc)}
        query_ms = round((time.perf_counter() - started) * 1000, 1)

        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "database": {
                "connected": True,
                "responseTime": ping_ms,
                "queryTime": query_ms,
                "documentCount": count,
            },
        }
