"""
Embedding model factory and query embedding provider.

get_embedding_model() returns the right LangChain embedding model based on
EmbeddingConfig. This is the single place that maps provider strings to
actual classes.

Supported providers:
    "openai"      → OpenAIEmbeddings (API-based, default)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)
    "cohere"      → CohereEmbeddings (API-based)

LangChainEmbeddingProvider wraps any LangChain Embeddings instance behind
the engine's BaseEmbeddingProvider contract: embed() for the query,
embed_many() for batches, fanned out over a bounded thread pool.

Usage:
    from study_rag.indexing.embeddings import LangChainEmbeddingProvider

    embedder = LangChainEmbeddingProvider(EmbeddingConfig())
    vector = embedder.embed("What is osmosis?")
    vectors = embedder.embed_many(chunk_texts)
"""

import logging
from concurrent.futures import ThreadPoolExecutor

from langchain_core.embeddings import Embeddings

from study_rag.base.embedder import BaseEmbeddingProvider
from study_rag.config import EmbeddingConfig
from study_rag.errors import EmbeddingError

logger = logging.getLogger(__name__)


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. We import
    them lazily (inside the if-branch) so you only need the package
    for the provider you actually use.

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    provider = config.provider.lower()

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install study-rag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install study-rag[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'openai', 'huggingface', 'cohere'. "
            f"For other providers, pass a LangChain Embeddings instance directly."
        )


class LangChainEmbeddingProvider(BaseEmbeddingProvider):
    """
    Embedding provider backed by a LangChain Embeddings model.

    Pass either a config (the model is built by get_embedding_model) or a
    ready Embeddings instance. Every provider failure surfaces as
    EmbeddingError; the engine never queries with a missing vector.
    """

    def __init__(self, config: EmbeddingConfig = None, model: Embeddings = None):
        self._config = config or EmbeddingConfig()
        self._model = model if model is not None else get_embedding_model(self._config)

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")
        try:
            vector = self._model.embed_query(text)
        except Exception as exc:
            logger.error("Query embedding failed: %s", exc)
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc
        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector")
        return [float(x) for x in vector]

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        """
        Embed texts in batches of batch_size, at most max_concurrency batches at once.

        Output order matches input order. One failed batch fails the call.
        """
        if not texts:
            return []

        size = self._config.batch_size
        batches = [texts[i : i + size] for i in range(0, len(texts), size)]
        workers = min(self._config.max_concurrency, len(batches))
        logger.debug("Embedding %d texts in %d batches (%d workers)", len(texts), len(batches), workers)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            try:
                results = list(pool.map(self._embed_batch, batches))
            except EmbeddingError:
                raise
            except Exception as exc:
                raise EmbeddingError(f"Batch embedding failed: {exc}") from exc

        return [vector for batch in results for vector in batch]

    def _embed_batch(self, batch: list[str]) -> list[list[float]]:
        try:
            vectors = self._model.embed_documents(batch)
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider failed: {exc}") from exc
        if len(vectors) != len(batch):
            raise EmbeddingError(
                f"Embedding provider returned {len(vectors)} vectors for {len(batch)} texts"
            )
        return [[float(x) for x in vector] for vector in vectors]
