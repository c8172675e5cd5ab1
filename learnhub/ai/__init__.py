"""
AI orchestration layer.

Provider selection and fallback, Groq and on-device clients, the tag-format
parser and the consumer-facing service.
"""

from .errors import AIError, ApiError, GenerationFailed, InvalidResponse, ParsingFailed, format_error
from .models import (
    ChatTurn,
    ModelPreference,
    ParsedFlashcard,
    ParsedQuestion,
    ProviderKind,
    ProviderSelection,
    QuickPrompt,
    TopicSuggestion,
    TutorContext,
    TutorResponseFormat,
)
from .service import AIService, get_ai_service

__all__ = [
    "AIError",
    "AIService",
    "ApiError",
    "ChatTurn",
    "GenerationFailed",
    "InvalidResponse",
    "ModelPreference",
    "ParsedFlashcard",
    "ParsedQuestion",
    "ParsingFailed",
    "ProviderKind",
    "ProviderSelection",
    "QuickPrompt",
    "TopicSuggestion",
    "TutorContext",
    "TutorResponseFormat",
    "format_error",
    "get_ai_service",
]
