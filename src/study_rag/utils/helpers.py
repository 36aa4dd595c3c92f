"""
Shared utility functions.

Helpers used across the engine: LLM factory, text extraction, truncation.
"""

from langchain_core.language_models.chat_models import BaseChatModel

from study_rag.config import LLMConfig, LLMProvider


def get_llm(config: LLMConfig) -> BaseChatModel:
    """
    Factory that returns a LangChain chat model based on config.

    Lazy imports so only the package for the chosen provider is needed.

    Used by:
        - retrieval/reranking.py (judging candidate relevance)
        - generation/generate.py (writing answers)

    Args:
        config: LLMConfig with provider, model_name, temperature, max_tokens.

    Returns:
        A LangChain BaseChatModel instance.
    """
    if config.provider == LLMProvider.OPENAI:
        from langchain_openai import ChatOpenAI

        return ChatOpenAI(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    elif config.provider == LLMProvider.ANTHROPIC:
        try:
            from langchain_anthropic import ChatAnthropic
        except ImportError:
            raise ImportError(
                "Anthropic models require langchain-anthropic. "
                "Install with: pip install study-rag[anthropic]"
            )

        return ChatAnthropic(
            model=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    else:
        raise ValueError(
            f"Unknown LLM provider: '{config.provider}'. "
            f"Supported: 'openai', 'anthropic'."
        )


def extract_text(response) -> str:
    """
    Get the text out of a chat model response.

    LangChain chat models return AIMessage objects whose content is either a
    string or a list of content blocks; plain strings pass through.
    """
    content = response.content if hasattr(response, "content") else response
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, dict):
                parts.append(str(block.get("text", "")))
            else:
                parts.append(str(block))
        return "".join(parts)
    return str(content)


def truncate_text(text: str, limit: int) -> str:
    """Cut text to limit characters, appending "..." when anything was cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
