"""Pending fallback notice shared by in-flight requests."""

from __future__ import annotations

import asyncio


class FallbackNotice:
    """
    Holds at most one user-facing fallback notice.

    The first notice set wins until a caller pops or clears it, so a later
    request in the same UI turn cannot overwrite an earlier explanation.
    """

    def __init__(self) -> None:
        self._notice: str | None = None
        self._lock = asyncio.Lock()

    async def set_if_absent(self, notice: str | None) -> bool:
        """Store ``notice`` unless one is already pending. Returns True if stored."""
        if not notice:
            return False
        async with self._lock:
            if self._notice is not None:
                return False
            self._notice = notice
            return True

    async def pop(self) -> str | None:
        async with self._lock:
            notice, self._notice = self._notice, None
            return notice

    async def clear(self) -> None:
        async with self._lock:
            self._notice = None

    async def peek(self) -> str | None:
        async with self._lock:
            return self._notice
