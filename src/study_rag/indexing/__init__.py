from .embeddings import LangChainEmbeddingProvider, get_embedding_model

__all__ = ["LangChainEmbeddingProvider", "get_embedding_model"]
