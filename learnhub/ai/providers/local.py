"""
On-device model client.

Runs prompts against a local model runtime (Ollama). The runtime client is
created lazily and shared for the life of the process. System instructions are
supplied once per session; conversation continuation only sends the final
user turn.
"""

from __future__ import annotations

from typing import Sequence

import httpx
from loguru import logger
from ollama import AsyncClient, ResponseError

from config import Settings, get_settings

from ..errors import ApiError, GenerationFailed, InvalidResponse
from ..models import ChatTurn, ProviderKind
from .base import TextProvider


class LocalModelClient(TextProvider):
    """Client for the local model runtime."""

    kind = ProviderKind.ON_DEVICE

    def __init__(self, settings: Settings | None = None, client: AsyncClient | None = None):
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> AsyncClient:
        """Lazy-load the runtime client."""
        if self._client is None:
            self._client = AsyncClient(host=self.settings.local_model_host)
        return self._client

    def is_available(self) -> bool:
        return self.unavailable_reason() is None

    def unavailable_reason(self) -> str | None:
        """Why the local model cannot serve requests, or None when it can."""
        if not self.settings.local_model_enabled:
            return "the on-device model is disabled (set LOCAL_MODEL_ENABLED=true)"
        if not self.settings.local_model_name.strip():
            return "no on-device model is configured (set LOCAL_MODEL_NAME)"
        return None

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        return await self._respond(system_prompt, user_prompt)

    async def converse(self, system_prompt: str, messages: Sequence[ChatTurn]) -> str:
        if not messages or messages[-1].role != "user":
            raise InvalidResponse()
        return await self._respond(system_prompt, messages[-1].content)

    async def _respond(self, instructions: str, prompt: str) -> str:
        reason = self.unavailable_reason()
        if reason is not None:
            raise ApiError(f"On-device model unavailable: {reason}.")

        model = self.settings.local_model_name
        try:
            response = await self.client.chat(
                model=model,
                messages=[
                    {"role": "system", "content": instructions},
                    {"role": "user", "content": prompt},
                ],
            )
        except ResponseError as e:
            raise ApiError(f"On-device model error: {e.error}", status_code=e.status_code) from e
        except (ConnectionError, httpx.HTTPError) as e:
            logger.error(f"Local model runtime unreachable: {e}")
            raise GenerationFailed() from e

        content = response.message.content
        if not content:
            raise InvalidResponse()

        logger.debug(f"AI (on-device {model}) response:\n{content}\n--- end response ---")
        return content

    async def close(self) -> None:
        """Close the runtime client if one was created."""
        client, self._client = self._client, None
        if client is not None:
            await client.close()
