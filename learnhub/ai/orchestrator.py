"""
Request orchestration across providers.

Policy:
1. Select a provider once per request
2. On-device failures of any kind fall back to the cloud exactly once
3. Parse failures are retried once against the provider that produced the text
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence, TypeVar

from loguru import logger

from .errors import ParsingFailed
from .models import ChatTurn, ProviderKind
from .notice import FallbackNotice
from .providers.base import TextProvider
from .selector import ProviderSelector

T = TypeVar("T")

ProviderCall = Callable[[TextProvider], Awaitable[str]]


@dataclass(frozen=True)
class Completion:
    """Raw completion text and the provider that actually produced it."""

    text: str
    provider: ProviderKind


class RequestOrchestrator:
    """Issues prompts through the selected provider with fallback and retry."""

    def __init__(
        self,
        selector: ProviderSelector,
        on_device: TextProvider,
        cloud: TextProvider,
        notice: FallbackNotice | None = None,
    ):
        self.selector = selector
        self.on_device = on_device
        self.cloud = cloud
        self.notice = notice or FallbackNotice()

    def provider_for(self, kind: ProviderKind) -> TextProvider:
        if kind is ProviderKind.ON_DEVICE:
            return self.on_device
        if kind is ProviderKind.CLOUD:
            return self.cloud
        raise ValueError(f"Unknown provider: {kind}")

    async def perform_request(self, system_prompt: str, user_prompt: str) -> str:
        completion = await self._dispatch(lambda p: p.complete(system_prompt, user_prompt))
        return completion.text

    async def perform_conversation(self, system_prompt: str, messages: Sequence[ChatTurn]) -> str:
        completion = await self._dispatch(lambda p: p.converse(system_prompt, messages))
        return completion.text

    async def perform_request_with_parsing_retry(
        self,
        system_prompt: str,
        user_prompt: str,
        parse: Callable[[str], T],
    ) -> T:
        """
        Run a request and parse its text, retrying once on a parse failure.

        The retry goes to the provider that produced the first completion,
        without re-running selection. If the retry also fails to parse, the
        first ParsingFailed is raised.
        """
        call: ProviderCall = lambda p: p.complete(system_prompt, user_prompt)  # noqa: E731
        completion = await self._dispatch(call)

        try:
            return parse(completion.text)
        except ParsingFailed as e:
            first_error = e

        logger.warning(
            f"Parsing failed, retrying with same provider ({completion.provider.value})..."
        )
        retry_text = await call(self.provider_for(completion.provider))
        try:
            return parse(retry_text)
        except ParsingFailed as retry_error:
            logger.error(f"Retry with {completion.provider.value} also failed to parse")
            raise first_error from retry_error

    async def _dispatch(self, call: ProviderCall) -> Completion:
        selection = await self.selector.select()

        if selection.provider is ProviderKind.ON_DEVICE:
            try:
                return Completion(await call(self.on_device), ProviderKind.ON_DEVICE)
            except Exception as e:
                reason = f"On-device model unavailable ({e}). Falling back to Groq (BYOK)."
                logger.warning(reason)
                await self.notice.set_if_absent(selection.fallback_notice or reason)
                return Completion(await call(self.cloud), ProviderKind.CLOUD)

        await self.notice.set_if_absent(selection.fallback_notice)
        return Completion(await call(self.cloud), ProviderKind.CLOUD)
