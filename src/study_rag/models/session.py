"""
Chat session records returned by the session store.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .result import SourceDocument


class ChatMessageRecord(BaseModel):
    """One persisted message of a chat session."""

    id: int
    session_id: int
    role: str = Field(description="'user' or 'assistant'")
    content: str
    sources: list[SourceDocument] = Field(default_factory=list)
    created_at: Optional[datetime] = None


class ChatSessionRecord(BaseModel):
    """A chat session with its messages in chronological order."""

    id: int
    owner_id: str
    title: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    messages: list[ChatMessageRecord] = Field(default_factory=list)
