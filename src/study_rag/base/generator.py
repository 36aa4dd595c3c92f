"""
Abstract base class for answer generators.

The generator is the final model call: it takes the query and the ordered
context strings selected by retrieval and writes the answer. It does not
care how the context was ranked.
"""

from abc import ABC, abstractmethod


class BaseGenerator(ABC):
    """Contract for answer generators."""

    @abstractmethod
    def generate(self, query: str, context: list[str]) -> str:
        """
        Generate an answer grounded in the context.

        Raises:
            GenerationError: If no answer could be produced.
        """
        ...
