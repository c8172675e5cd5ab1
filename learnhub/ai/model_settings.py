"""
User-configurable model preference and BYOK key storage.

Stored preferences win over environment defaults from ``config.Settings``.
The AI core only reads these values; it never persists anything itself.
"""

from __future__ import annotations

import asyncio
from typing import Callable

from config import Settings, get_settings

from .models import ModelPreference
from .preference_store import PreferenceStore


class PreferenceKeys:
    PREFERENCE = "ai.modelPreference"
    GROQ_API_KEY = "ai.groq.apiKey"
    GROQ_MODEL = "ai.groq.model"
    GROQ_VISION_MODEL = "ai.groq.visionModel"


class ModelSettings:
    """Async accessors for model preferences."""

    def __init__(
        self,
        settings: Settings | None = None,
        store: PreferenceStore | None = None,
        local_availability: Callable[[], bool] | None = None,
    ):
        """
        Args:
            settings: Environment defaults (uses cached settings if not provided)
            store: Preference store (file at ``settings.preferences_path`` if not provided)
            local_availability: Check reporting whether the local model can serve requests
        """
        self.settings = settings or get_settings()
        self.store = store if store is not None else PreferenceStore(self.settings.preferences_path)
        self._local_availability = local_availability

    async def preference(self) -> ModelPreference:
        raw = self.store.get(PreferenceKeys.PREFERENCE) or self.settings.model_preference
        return ModelPreference.from_stored(raw)

    async def set_preference(self, value: ModelPreference) -> None:
        await self._write(PreferenceKeys.PREFERENCE, value.value)

    async def api_key(self) -> str:
        stored = self.store.get(PreferenceKeys.GROQ_API_KEY)
        return (stored if stored is not None else self.settings.groq_api_key).strip()

    async def set_api_key(self, value: str) -> None:
        await self._write(PreferenceKeys.GROQ_API_KEY, value)

    async def text_model(self) -> str:
        raw = (self.store.get(PreferenceKeys.GROQ_MODEL) or "").strip()
        return raw or self.settings.groq_model

    async def set_text_model(self, value: str) -> None:
        await self._write_model(PreferenceKeys.GROQ_MODEL, value)

    async def vision_model(self) -> str:
        raw = (self.store.get(PreferenceKeys.GROQ_VISION_MODEL) or "").strip()
        return raw or self.settings.groq_vision_model

    async def set_vision_model(self, value: str) -> None:
        await self._write_model(PreferenceKeys.GROQ_VISION_MODEL, value)

    def on_device_available(self) -> bool:
        """Whether the local model reports itself usable."""
        if self._local_availability is None:
            return False
        return self._local_availability()

    async def _write(self, key: str, value: str) -> None:
        # File writes stay off the event loop.
        await asyncio.to_thread(self.store.set, key, value)

    async def _write_model(self, key: str, value: str) -> None:
        """Store a model name; a blank name removes the override."""
        if value.strip():
            await self._write(key, value.strip())
        else:
            await asyncio.to_thread(self.store.delete, key)
