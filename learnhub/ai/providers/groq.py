"""
Groq chat-completions client (cloud provider).

Handles HTTP communication with the OpenAI-compatible Groq endpoint for text,
conversation and vision requests. Rate-limited models are substituted using
the static fallback chains; every other error aborts immediately.
"""

from __future__ import annotations

import asyncio
import base64
import random
from typing import Any, Sequence

import httpx
from loguru import logger

from config import Settings, get_settings

from ..errors import ApiError, GenerationFailed, InvalidResponse, is_rate_limit_error
from ..fallback_chains import get_text_model_fallbacks, get_vision_model_fallbacks
from ..model_settings import ModelSettings
from ..models import ChatTurn, ProviderKind
from .base import TextProvider


class GroqClient(TextProvider):
    """HTTP client for the Groq chat-completions API."""

    kind = ProviderKind.CLOUD

    def __init__(
        self,
        model_settings: ModelSettings,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        delay_range: tuple[float, float] | None = None,
    ):
        """
        Initialize Groq client.

        Args:
            model_settings: Source of the API key and model choices
            settings: Endpoint and transport configuration
            client: Pre-built HTTP client (created from settings if not provided)
            delay_range: Pre-request delay bounds in seconds
        """
        settings = settings or get_settings()
        self.model_settings = model_settings
        self.endpoint = settings.groq_api_url
        self.delay_range = delay_range if delay_range is not None else settings.get_rate_limit_delay()
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds),
            follow_redirects=True,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    # =========================================================================
    # Public API
    # =========================================================================

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
        return await self._run_text(messages)

    async def converse(self, system_prompt: str, messages: Sequence[ChatTurn]) -> str:
        api_messages = [{"role": "system", "content": system_prompt}]
        api_messages.extend(turn.to_message() for turn in messages)
        return await self._run_text(api_messages)

    async def complete_vision(
        self,
        system_prompt: str,
        user_message: str,
        image_data: bytes,
        mime_type: str = "image/jpeg",
    ) -> str:
        """
        Analyse an image with the vision model chain.

        Args:
            system_prompt: Tutor instructions
            user_message: Question about the image
            image_data: Raw image bytes
            mime_type: Image MIME type used in the data URL

        Returns:
            Model reply text
        """
        api_key = await self._api_key()
        primary_model = await self.model_settings.vision_model()

        encoded = base64.b64encode(image_data).decode("ascii")
        logger.debug(
            f"Vision upload: {len(image_data)} bytes, base64 length {len(encoded)}, model {primary_model}"
        )

        messages = [
            {"role": "system", "content": [{"type": "text", "text": system_prompt}]},
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{encoded}"}},
                    {"type": "text", "text": user_message},
                ],
            },
        ]
        return await self._with_model_fallback(
            get_vision_model_fallbacks(primary_model), messages, api_key, label="Groq Vision"
        )

    # =========================================================================
    # Request Handling
    # =========================================================================

    async def _run_text(self, messages: list[dict[str, Any]]) -> str:
        api_key = await self._api_key()
        primary_model = await self.model_settings.text_model()
        return await self._with_model_fallback(
            get_text_model_fallbacks(primary_model), messages, api_key, label="Groq"
        )

    async def _with_model_fallback(
        self,
        models: list[str],
        messages: list[dict[str, Any]],
        api_key: str,
        label: str,
    ) -> str:
        last_error: ApiError | None = None

        for model in models:
            try:
                content = await self.attempt_request(model, messages, api_key)
            except ApiError as e:
                if not is_rate_limit_error(e):
                    raise
                last_error = e
                logger.warning(f"{label}: model {model} rate limited, trying fallback...")
                continue

            if model != models[0]:
                logger.info(f"{label}: fell back to model {model}")
            return content

        if last_error is not None:
            raise last_error
        raise GenerationFailed()

    async def attempt_request(
        self,
        model: str,
        messages: list[dict[str, Any]],
        api_key: str,
    ) -> str:
        """
        Send one chat-completions request against a single model.

        Raises:
            GenerationFailed: On transport failure
            ApiError: On a non-2xx status
            InvalidResponse: When the body lacks a completion
        """
        await self._rate_limit_delay()

        try:
            response = await self.client.post(
                self.endpoint,
                json={"model": model, "messages": messages},
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
            )
        except httpx.HTTPError as e:
            logger.error(f"Groq request failed: {e}")
            raise GenerationFailed() from e

        if not response.is_success:
            raise ApiError(self._error_detail(response), status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse() from e

        content = self._extract_content(data)
        logger.debug(f"AI (Groq) response from {model}:\n{content}\n--- end response ---")
        return content

    async def _api_key(self) -> str:
        key = await self.model_settings.api_key()
        if not key:
            raise ApiError("Missing Groq API key. Add it in Model Settings.")
        return key

    async def _rate_limit_delay(self) -> None:
        low, high = self.delay_range
        if high <= 0:
            return
        try:
            await asyncio.sleep(random.uniform(low, high))
        except asyncio.CancelledError:
            # Cancellation must reach the caller; no request is sent.
            logger.debug("Rate limit delay interrupted, request cancelled")
            raise

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error, dict) and error.get("message"):
            code = error.get("code") or response.status_code
            return f"{error['message']} (Code: {code})"

        logger.debug(f"Groq API error body: {response.text}")
        return f"Status code: {response.status_code}"

    @staticmethod
    def _extract_content(data: Any) -> str:
        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise InvalidResponse()

        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            raise InvalidResponse()
        return content
