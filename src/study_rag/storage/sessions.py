"""
SQLAlchemy session store for chat history.

Each query answered by the engine becomes one chat turn: the user's question
and the assistant's answer (with its sources), appended to an existing
session or to a session created for the occasion. record_turn() does all of
that inside a single transaction.

Every read and write is scoped by owner: a session id that belongs to
someone else behaves exactly like one that does not exist.

Usage:
    from study_rag.storage.sessions import SQLSessionStore

    store = SQLSessionStore.from_config(DatabaseConfig())
    session_id = store.record_turn("u1", None, "What is osmosis?", question, answer, sources)
    history = store.get_session("u1", session_id)
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional

from sqlalchemy import create_engine, delete, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from study_rag.base.session_store import BaseSessionStore
from study_rag.config import DatabaseConfig
from study_rag.errors import PersistenceError, StudyRAGError
from study_rag.models.result import SourceDocument, sources_from_json, sources_to_json
from study_rag.models.session import ChatMessageRecord, ChatSessionRecord
from study_rag.storage.tables import Base, ChatMessageRow, ChatSessionRow

logger = logging.getLogger(__name__)


class SQLSessionStore(BaseSessionStore):
    """Chat session store on any SQLAlchemy engine (Postgres in production, SQLite in tests)."""

    def __init__(self, engine: Engine, create_tables: bool = True):
        self._engine = engine
        if create_tables:
            Base.metadata.create_all(bind=engine)
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, expire_on_commit=False
        )

    @classmethod
    def from_config(cls, config: DatabaseConfig, create_tables: bool = True) -> "SQLSessionStore":
        if not config.url:
            raise ValueError("DATABASE_URL environment variable is not set")
        engine = create_engine(config.url, echo=config.echo, pool_pre_ping=True)
        return cls(engine, create_tables=create_tables)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except StudyRAGError:
            session.rollback()
            raise
        except SQLAlchemyError as exc:
            session.rollback()
            raise PersistenceError(f"Chat history write failed: {exc}") from exc
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create_session(self, owner_id: str, title: str) -> int:
        with self._session() as session:
            row = ChatSessionRow(user_id=owner_id, title=title)
            session.add(row)
            session.flush()
            return row.id

    def append_message(
        self,
        session_id: int,
        role: str,
        content: str,
        sources: Optional[list[SourceDocument]] = None,
    ) -> int:
        with self._session() as session:
            chat = session.get(ChatSessionRow, session_id)
            if chat is None:
                raise PersistenceError(f"Chat session {session_id} does not exist")
            message = self._add_message(session, chat, role, content, sources)
            session.flush()
            return message.id

    def record_turn(
        self,
        owner_id: str,
        session_id: Optional[int],
        title: str,
        question: str,
        answer: str,
        sources: list[SourceDocument],
    ) -> int:
        with self._session() as session:
            if session_id is None:
                chat = ChatSessionRow(user_id=owner_id, title=title)
                session.add(chat)
            else:
                chat = self._owned(session, owner_id, session_id)
                if chat is None:
                    # Ownership is authorized before retrieval; a session gone by now is a lost write.
                    raise PersistenceError(f"Chat session {session_id} no longer exists")

            self._add_message(session, chat, "user", question, None)
            self._add_message(session, chat, "assistant", answer, sources)
            session.flush()
            return chat.id

    def clear_sessions(self, owner_id: str) -> int:
        with self._session() as session:
            ids = session.scalars(
                select(ChatSessionRow.id).where(ChatSessionRow.user_id == owner_id)
            ).all()
            if ids:
                session.execute(delete(ChatMessageRow).where(ChatMessageRow.session_id.in_(ids)))
                session.execute(delete(ChatSessionRow).where(ChatSessionRow.id.in_(ids)))
            logger.info("Cleared %d chat sessions", len(ids))
            return len(ids)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_session(self, owner_id: str, session_id: int) -> Optional[ChatSessionRecord]:
        with self._session() as session:
            chat = self._owned(session, owner_id, session_id)
            if chat is None:
                return None
            return self._to_record(chat, with_messages=True)

    def list_sessions(self, owner_id: str) -> list[ChatSessionRecord]:
        with self._session() as session:
            rows = session.scalars(
                select(ChatSessionRow)
                .where(ChatSessionRow.user_id == owner_id)
                .order_by(ChatSessionRow.updated_at.desc(), ChatSessionRow.id.desc())
            ).all()
            return [self._to_record(row, with_messages=False) for row in rows]

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _owned(session: Session, owner_id: str, session_id: int) -> Optional[ChatSessionRow]:
        return session.scalars(
            select(ChatSessionRow).where(
                ChatSessionRow.id == session_id,
                ChatSessionRow.user_id == owner_id,
            )
        ).first()

    @staticmethod
    def _add_message(
        session: Session,
        chat: ChatSessionRow,
        role: str,
        content: str,
        sources: Optional[list[SourceDocument]],
    ) -> ChatMessageRow:
        message = ChatMessageRow(
            role=role,
            content=content,
            sources=sources_to_json(sources) if sources else None,
        )
        chat.messages.append(message)
        chat.updated_at = datetime.now(timezone.utc)
        session.add(message)
        return message

    @staticmethod
    def _to_record(chat: ChatSessionRow, with_messages: bool) -> ChatSessionRecord:
        messages = []
        if with_messages:
            messages = [
                ChatMessageRecord(
                    id=message.id,
                    session_id=chat.id,
                    role=message.role,
                    content=message.content,
                    sources=sources_from_json(message.sources),
                    created_at=message.created_at,
                )
                for message in chat.messages
            ]
        return ChatSessionRecord(
            id=chat.id,
            owner_id=chat.user_id,
            title=chat.title,
            created_at=chat.created_at,
            updated_at=chat.updated_at,
            messages=messages,
        )
