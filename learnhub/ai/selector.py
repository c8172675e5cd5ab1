"""Provider selection from the current user preference."""

from __future__ import annotations

from typing import Callable

from .model_settings import ModelSettings
from .models import ModelPreference, ProviderKind, ProviderSelection

DEFAULT_UNAVAILABLE_REASON = "the on-device model is not available on this machine"


class ProviderSelector:
    """Chooses a provider per request. Stateless apart from the settings it reads."""

    def __init__(
        self,
        model_settings: ModelSettings,
        unavailable_reason: Callable[[], str | None] | None = None,
    ):
        self.model_settings = model_settings
        self._unavailable_reason = unavailable_reason

    async def select(self) -> ProviderSelection:
        preference = await self.model_settings.preference()

        if preference is ModelPreference.CLOUD_ONLY:
            return ProviderSelection(provider=ProviderKind.CLOUD)
        if preference is ModelPreference.AUTOMATIC:
            if self.model_settings.on_device_available():
                return ProviderSelection(provider=ProviderKind.ON_DEVICE)
            return ProviderSelection(provider=ProviderKind.CLOUD, fallback_notice=self._notice())
        raise ValueError(f"Unknown model preference: {preference}")

    async def preview_fallback_notice(self) -> str | None:
        """Notice the current preference would produce, without side effects."""
        return (await self.select()).fallback_notice

    def _notice(self) -> str:
        reason = None
        if self._unavailable_reason is not None:
            reason = self._unavailable_reason()
        reason = reason or DEFAULT_UNAVAILABLE_REASON
        return f"On-device model unavailable: {reason}. Falling back to Groq (BYOK)."
