"""
Abstract base class for rerankers.

A reranker reads the fused candidate pool and picks the top_k most relevant
candidates, scoring each 0-100. Its output is UNTRUSTED: implementations
return whatever the external model produced (usually a JSON string, maybe
wrapped in a markdown fence, maybe garbage) and may raise on any failure.
Validation happens in retrieval/parsing.py, recovery in RerankSelector.
"""

from abc import ABC, abstractmethod
from typing import Any

from study_rag.models.document import Candidate


class BaseReranker(ABC):
    """Contract for rerankers."""

    @abstractmethod
    def rerank(self, query: str, candidates: list[Candidate], top_k: int) -> Any:
        """
        Ask the external judge for the most relevant candidates.

        Args:
            query: The user's question.
            candidates: The fused pool, in fused order.
            top_k: How many candidates to select.

        Returns:
            Raw payload meant to be a list of {"index", "relevanceScore"}
            objects, where index is a 0-based position in candidates.
        """
        ...
