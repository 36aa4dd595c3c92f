"""
Abstract base class for embedding providers.

The orchestrator embeds the query before calling the retriever; the
retriever itself only ever sees an already-computed vector.
"""

from abc import ABC, abstractmethod


class BaseEmbeddingProvider(ABC):
    """Contract for embedding providers."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Embed a single query text."""
        ...

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """
        Embed several texts, preserving order.

        The default is sequential. Providers backed by a remote API
        override this with bounded concurrency.
        """
        return [self.embed(text) for text in texts]
