"""Tests for generation: uses mocked LLM to avoid API calls."""

from unittest.mock import MagicMock, patch

import pytest

from study_rag.config import LLMConfig
from study_rag.errors import GenerationError
from study_rag.generation.generate import AnswerGenerator


class TestAnswerGenerator:

    def _make_generator(self, mock_get_llm, answer_text="Osmosis moves water."):
        """Helper: create an AnswerGenerator with a mocked LLM chain."""
        mock_llm = MagicMock()
        # LCEL wraps non-Runnable callables in RunnableLambda, which calls
        # mock_llm(input) via __call__, not mock_llm.invoke(input).
        # Set both return_value and invoke.return_value to cover both paths.
        mock_response = MagicMock()
        mock_response.content = answer_text
        mock_llm.return_value = mock_response
        mock_llm.invoke.return_value = mock_response
        mock_get_llm.return_value = mock_llm
        return AnswerGenerator(LLMConfig(provider="openai", model_name="gpt-4o-mini")), mock_llm

    @patch("study_rag.generation.generate.get_llm")
    def test_generate_with_context(self, mock_get_llm):
        """Generator should return the model's answer text."""
        generator, _ = self._make_generator(mock_get_llm)
        answer = generator.generate("What is osmosis?", ["Osmosis is the movement of water."])

        assert answer == "Osmosis moves water."
        assert generator.model_name == "openai/gpt-4o-mini"

    @patch("study_rag.generation.generate.get_llm")
    def test_context_joined_in_order(self, mock_get_llm):
        """Context entries appear in order, separated by rules; blanks are dropped."""
        generator, mock_llm = self._make_generator(mock_get_llm)
        generator.generate("  What is osmosis?  ", ["first chunk", "   ", "second chunk"])

        prompt = mock_llm.call_args[0][0].to_string()
        assert "first chunk\n\n---\n\nsecond chunk" in prompt
        assert "Question: What is osmosis?\n" in prompt

    @patch("study_rag.generation.generate.get_llm")
    def test_empty_query_raises(self, mock_get_llm):
        generator, mock_llm = self._make_generator(mock_get_llm)
        with pytest.raises(GenerationError, match="Query cannot be empty"):
            generator.generate("   ", ["context"])
        mock_llm.assert_not_called()

    @patch("study_rag.generation.generate.get_llm")
    def test_provider_failure_raises(self, mock_get_llm):
        """Provider errors surface as GenerationError; there is no canned fallback answer."""
        generator, mock_llm = self._make_generator(mock_get_llm)
        mock_llm.side_effect = ConnectionError("upstream unavailable")
        mock_llm.invoke.side_effect = ConnectionError("upstream unavailable")

        with pytest.raises(GenerationError, match="Failed to generate response"):
            generator.generate("What is osmosis?", ["context"])

    @patch("study_rag.generation.generate.get_llm")
    def test_empty_answer_raises(self, mock_get_llm):
        generator, _ = self._make_generator(mock_get_llm, answer_text="  ")
        with pytest.raises(GenerationError, match="empty response"):
            generator.generate("What is osmosis?", ["context"])

    @patch("study_rag.generation.generate.get_llm")
    def test_content_blocks(self, mock_get_llm):
        """Anthropic-style list content is flattened to text."""
        generator, _ = self._make_generator(
            mock_get_llm, answer_text=[{"type": "text", "text": "Water "}, {"type": "text", "text": "moves."}]
        )
        assert generator.generate("q", ["c"]) == "Water moves."
