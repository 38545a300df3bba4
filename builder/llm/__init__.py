"""LLM access for code generation and repair."""

from .factory import LLMFactory
from .model import CodeModel

__all__ = ["CodeModel", "LLMFactory"]
