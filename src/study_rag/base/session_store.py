"""
Abstract base class for chat session stores.

Sessions belong to one owner. A chat turn (the user's question plus the
assistant's answer, and the session itself when it is new) is written with
record_turn() as a single unit, so a cancelled or failed write never leaves
half a conversation behind.
"""

from abc import ABC, abstractmethod
from typing import Optional

from study_rag.models.result import SourceDocument
from study_rag.models.session import ChatSessionRecord


class BaseSessionStore(ABC):
    """Contract for chat session stores."""

    @abstractmethod
    def create_session(self, owner_id: str, title: str) -> int:
        """Create an empty session and return its id."""
        ...

    @abstractmethod
    def append_message(
        self,
        session_id: int,
        role: str,
        content: str,
        sources: Optional[list[SourceDocument]] = None,
    ) -> int:
        """Append one message to a session and return the message id."""
        ...

    @abstractmethod
    def record_turn(
        self,
        owner_id: str,
        session_id: Optional[int],
        title: str,
        question: str,
        answer: str,
        sources: list[SourceDocument],
    ) -> int:
        """
        Atomically persist a question/answer pair.

        Creates the session (titled `title`) when session_id is None.
        A session_id the owner no longer has raises PersistenceError; callers
        authorize the session before doing any work.

        Returns:
            The id of the session the turn was written to.
        """
        ...

    @abstractmethod
    def get_session(self, owner_id: str, session_id: int) -> Optional[ChatSessionRecord]:
        """Fetch a session with its messages, or None if the owner has no such session."""
        ...

    @abstractmethod
    def list_sessions(self, owner_id: str) -> list[ChatSessionRecord]:
        """List the owner's sessions, most recently updated first, without messages."""
        ...

    @abstractmethod
    def clear_sessions(self, owner_id: str) -> int:
        """Delete all of the owner's sessions and their messages; return how many sessions."""
        ...
