"""Static model fallback chains, consulted only on rate-limit errors."""

from __future__ import annotations

from types import MappingProxyType

TEXT_MODEL_FALLBACKS = MappingProxyType(
    {
        "openai/gpt-oss-20b": ("openai/gpt-oss-120b", "llama-3.3-70b-versatile"),
        "openai/gpt-oss-120b": ("llama-3.3-70b-versatile",),
        "llama-3.3-70b-versatile": (),
    }
)

VISION_MODEL_FALLBACKS = MappingProxyType(
    {
        "meta-llama/llama-4-maverick-17b-128e-instruct": (
            "meta-llama/llama-4-scout-17b-16e-instruct",
        ),
        "meta-llama/llama-4-scout-17b-16e-instruct": (),
    }
)


def _chain(table: MappingProxyType, primary_model: str) -> list[str]:
    return [primary_model, *table.get(primary_model, ())]


def get_text_model_fallbacks(primary_model: str) -> list[str]:
    """Models to try, in order, for a text request. Unknown models try only themselves."""
    return _chain(TEXT_MODEL_FALLBACKS, primary_model)


def get_vision_model_fallbacks(primary_model: str) -> list[str]:
    """Models to try, in order, for a vision request."""
    return _chain(VISION_MODEL_FALLBACKS, primary_model)
