"""
Base Provider Class.

Provides the abstract contract shared by the cloud and on-device backends.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ..models import ChatTurn, ProviderKind


class TextProvider(ABC):
    """Turns a (system prompt, user prompt or history) pair into text."""

    kind: ProviderKind

    @abstractmethod
    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Single-turn generation."""
        raise NotImplementedError

    @abstractmethod
    async def converse(self, system_prompt: str, messages: Sequence[ChatTurn]) -> str:
        """Generation continuing a conversation."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release any underlying client."""
        return None
