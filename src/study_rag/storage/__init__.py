"""
Storage backends: chunk stores and the chat session store.

Import from here:
    from study_rag.storage import PgVectorChunkStore, InMemoryChunkStore, SQLSessionStore
"""

from .documents import summarize_documents
from .memory import InMemoryChunkStore
from .postgres import PgVectorChunkStore
from .sessions import SQLSessionStore

__all__ = [
    "InMemoryChunkStore",
    "PgVectorChunkStore",
    "SQLSessionStore",
    "summarize_documents",
]
