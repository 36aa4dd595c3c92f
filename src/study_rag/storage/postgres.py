"""
Postgres + pgvector chunk store.

Chunks live in the `documents` table written by ingestion:

    documents(id serial, content text, embedding vector, user_id text,
              metadata jsonb, created_at timestamp)

search() is one SQL statement. A `scoped` CTE applies the owner filter and
the optional allow-list, and both rankings read from it, so a chunk
outside the scope is never ranked at all:

    scoped        → user_id = :owner_id [AND id = ANY(:allow_list)]
    vector_search → ORDER BY embedding <=> :query_vector, id   (cosine distance)
    fts_search    → ORDER BY ts_rank(...) DESC, id             (only matching rows)

The two lists come back tagged in a single UNION ALL result.

Usage:
    from study_rag.storage.postgres import PgVectorChunkStore

    store = PgVectorChunkStore.from_config(DatabaseConfig())
    store.initialize()          # extension + indexes, idempotent
    lists = store.search("u1", query_vector, "what is osmosis", pool_size=20)
"""

import json
import logging
import re
from typing import Any, Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from study_rag.base.store import BaseChunkStore
from study_rag.config import DatabaseConfig
from study_rag.errors import RetrievalError
from study_rag.models.document import Chunk, DocumentSummary, RankedChunk, RankedLists
from study_rag.storage.documents import summarize_documents

logger = logging.getLogger(__name__)

# Interpolated into index DDL, so only plain (optionally schema-qualified) names.
_TS_CONFIG_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?")

_SEARCH_SQL = """
WITH scoped AS (
    SELECT id, content, embedding, user_id, metadata, created_at
    FROM documents
    WHERE user_id = :owner_id{allow_filter}
),
vector_search AS (
    SELECT id,
           embedding <=> CAST(:query_vector AS vector) AS score,
           ROW_NUMBER() OVER (ORDER BY embedding <=> CAST(:query_vector AS vector), id) AS rank
    FROM scoped
    WHERE embedding IS NOT NULL
    ORDER BY rank
    LIMIT :pool_size
),
fts_search AS (
    SELECT id,
           ts_rank(to_tsvector(CAST(:ts_config AS regconfig), content),
                   plainto_tsquery(CAST(:ts_config AS regconfig), :query_text)) AS score,
           ROW_NUMBER() OVER (
               ORDER BY ts_rank(to_tsvector(CAST(:ts_config AS regconfig), content),
                                plainto_tsquery(CAST(:ts_config AS regconfig), :query_text)) DESC,
                        id
           ) AS rank
    FROM scoped
    WHERE to_tsvector(CAST(:ts_config AS regconfig), content)
          @@ plainto_tsquery(CAST(:ts_config AS regconfig), :query_text)
    ORDER BY rank
    LIMIT :pool_size
)
SELECT 'vector' AS signal, r.rank, r.score,
       s.id, s.content, s.user_id, s.metadata, s.created_at
FROM vector_search r JOIN scoped s ON s.id = r.id
UNION ALL
SELECT 'lexical' AS signal, r.rank, r.score,
       s.id, s.content, s.user_id, s.metadata, s.created_at
FROM fts_search r JOIN scoped s ON s.id = r.id
ORDER BY signal, rank
"""

_ALLOW_FILTER = " AND id = ANY(:allow_list)"


def to_vector_literal(vector: list[float]) -> str:
    """pgvector text format: [0.1,0.2,0.3]"""
    return "[" + ",".join(repr(float(x)) for x in vector) + "]"


def _load_metadata(raw: Any) -> dict[str, Any]:
    """jsonb comes back as a dict from psycopg2, as a str from some drivers."""
    if raw is None:
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return {}
    return dict(raw) if isinstance(raw, dict) else {}


class PgVectorChunkStore(BaseChunkStore):
    """Chunk store over a Postgres `documents` table with the pgvector extension."""

    def __init__(self, engine: Engine, text_search_config: str = "english"):
        if not _TS_CONFIG_NAME.fullmatch(text_search_config or ""):
            raise ValueError(f"Invalid text search configuration name: {text_search_config!r}")
        self._engine = engine
        self._ts_config = text_search_config

    @property
    def engine(self) -> Engine:
        return self._engine

    @classmethod
    def from_config(cls, config: DatabaseConfig) -> "PgVectorChunkStore":
        """Create the engine from DatabaseConfig (DATABASE_URL by default)."""
        if not config.url:
            raise ValueError("DATABASE_URL environment variable is not set")
        engine = create_engine(config.url, echo=config.echo, pool_pre_ping=True)
        return cls(engine, text_search_config=config.text_search_config)

    def initialize(self) -> None:
        """
        Create the pgvector extension and the two search indexes.

        Safe to run on every start-up; every statement is IF NOT EXISTS.
        """
        statements = [
            "CREATE EXTENSION IF NOT EXISTS vector",
            "CREATE INDEX IF NOT EXISTS documents_embedding_idx "
            "ON documents USING ivfflat (embedding vector_cosine_ops) WITH (lists = 100)",
            "CREATE INDEX IF NOT EXISTS documents_content_fts_idx "
            f"ON documents USING gin (to_tsvector('{self._ts_config}', content))",
        ]
        try:
            with self._engine.begin() as conn:
                for statement in statements:
                    conn.execute(text(statement))
        except SQLAlchemyError as exc:
            logger.error("Database initialization failed: %s", exc)
            raise RetrievalError(f"Could not initialize chunk store: {exc}") from exc
        logger.info("Chunk store initialized")

    def search(
        self,
        owner_id: str,
        query_vector: list[float],
        query_text: str,
        pool_size: int,
        allow_list: Optional[list[int]] = None,
    ) -> RankedLists:
        sql = _SEARCH_SQL.format(allow_filter=_ALLOW_FILTER if allow_list is not None else "")
        params: dict[str, Any] = {
            "owner_id": owner_id,
            "query_vector": to_vector_literal(query_vector),
            "query_text": query_text,
            "ts_config": self._ts_config,
            "pool_size": pool_size,
        }
        if allow_list is not None:
            params["allow_list"] = list(allow_list)

        try:
            with self._engine.connect() as conn:
                rows = conn.execute(text(sql), params).mappings().all()
        except SQLAlchemyError as exc:
            raise RetrievalError(f"Hybrid search failed: {exc}") from exc

        lists = RankedLists()
        for row in rows:
            ranked = RankedChunk(
                chunk=Chunk(
                    id=row["id"],
                    content=row["content"],
                    owner_id=row["user_id"],
                    metadata=_load_metadata(row["metadata"]),
                    created_at=row["created_at"],
                ),
                rank=row["rank"],
                score=float(row["score"]),
            )
            if row["signal"] == "vector":
                lists.vector.append(ranked)
            else:
                lists.lexical.append(ranked)
        return lists

    def count_owned(self, owner_id: str, chunk_ids: list[int]) -> int:
        try:
            with self._engine.connect() as conn:
                result = conn.execute(
                    text(
                        "SELECT COUNT(DISTINCT id) FROM documents "
                        "WHERE user_id = :owner_id AND id = ANY(:chunk_ids)"
                    ),
                    {"owner_id": owner_id, "chunk_ids": list(chunk_ids)},
                )
                return int(result.scalar_one())
        except SQLAlchemyError as exc:
            raise RetrievalError(f"Ownership check failed: {exc}") from exc

    def list_documents(self, owner_id: str) -> list[DocumentSummary]:
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(
                    text(
                        "SELECT id, metadata, created_at FROM documents "
                        "WHERE user_id = :owner_id ORDER BY created_at DESC, id"
                    ),
                    {"owner_id": owner_id},
                ).all()
        except SQLAlchemyError as exc:
            raise RetrievalError(f"Could not list documents: {exc}") from exc

        return summarize_documents((row[0], _load_metadata(row[1]), row[2]) for row in rows)

    def ping(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error("Database connection test failed: %s", exc)
            return False

    def count_chunks(self) -> int:
        try:
            with self._engine.connect() as conn:
                return int(conn.execute(text("SELECT COUNT(*) FROM documents")).scalar_one())
        except SQLAlchemyError as exc:
            raise RetrievalError(f"Could not count chunks: {exc}") from exc
