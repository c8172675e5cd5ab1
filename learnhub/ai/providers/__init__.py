"""Interchangeable text-generation backends."""

from .base import TextProvider
from .groq import GroqClient
from .local import LocalModelClient

__all__ = [
    "TextProvider",
    "GroqClient",
    "LocalModelClient",
]
