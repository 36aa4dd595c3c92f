"""
Utility functions.

Usage:
    from study_rag.utils import get_llm, setup_logging
"""

from .helpers import extract_text, get_llm, truncate_text
from .logging import setup_logging

__all__ = ["get_llm", "extract_text", "truncate_text", "setup_logging"]
