from .hybrid import HybridRAG

__all__ = ["HybridRAG"]
