"""
Answer generation from the selected context.

This is the final model call of a query: take the question plus the
context strings chosen by reranking (or the fallback) and produce an
answer grounded in the student's study materials.

The generator does not know how the context was ranked. It receives the
chunk contents in final order, separated in the prompt by "---" rules so
the model can tell where one chunk ends and the next begins.

Usage:
    from study_rag.generation.generate import AnswerGenerator

    generator = AnswerGenerator(llm_config=LLMConfig())
    answer = generator.generate("What is osmosis?", context=["Osmosis is ..."])
"""

import logging

from langchain_core.prompts import PromptTemplate

from study_rag.base.generator import BaseGenerator
from study_rag.config import LLMConfig
from study_rag.errors import GenerationError
from study_rag.utils.helpers import extract_text, get_llm

logger = logging.getLogger(__name__)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class AnswerGenerator(BaseGenerator):
    """
    Study-assistant generator: context + question → answer.

    The prompt tells the LLM to:
        - Answer from the provided study materials
        - Say so when the materials don't cover the question, but still guide
        - Mention which material it drew on

    Blank context entries are dropped before prompting. An empty question,
    a provider failure, or an empty reply raise GenerationError.
    """

    def __init__(self, llm_config: LLMConfig = None):
        config = llm_config or LLMConfig()
        self._llm = get_llm(config)
        self._model_name = f"{config.provider.value}/{config.model_name}"

        self._prompt = PromptTemplate(
            input_variables=["context", "query"],
            template=(
                "You are a helpful study assistant. Use the following context from study "
                "materials to answer the question. If the context doesn't contain relevant "
                "information, say so but try to provide helpful guidance.\n\n"
                "Context from study materials:\n{context}\n\n"
                "Question: {query}\n\n"
                "Please provide a clear, concise answer that helps with studying. "
                "If referencing specific information from the context, mention it."
            ),
        )

    @property
    def model_name(self) -> str:
        return self._model_name

    def generate(self, query: str, context: list[str]) -> str:
        """
        Generate an answer grounded in the context.

        Args:
            query: The user's question.
            context: Chunk contents in final order.

        Returns:
            The answer text.

        Raises:
            GenerationError: Empty question, provider failure or empty answer.
        """
        query = (query or "").strip()
        if not query:
            raise GenerationError("Query cannot be empty")

        parts = [c.strip() for c in context if c and c.strip()]

        chain = self._prompt | self._llm
        try:
            response = chain.invoke({"context": CONTEXT_SEPARATOR.join(parts), "query": query})
        except Exception as exc:
            logger.error("Answer generation failed (%s): %s", self._model_name, exc)
            raise GenerationError(f"Failed to generate response: {exc}") from exc

        answer = extract_text(response)
        if not answer.strip():
            raise GenerationError("Generator returned an empty response")
        return answer
