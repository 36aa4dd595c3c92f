from .generate import AnswerGenerator

__all__ = ["AnswerGenerator"]
