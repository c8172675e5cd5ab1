"""
Unit tests for the pending fallback notice.
"""

import asyncio

import pytest

from learnhub.ai.notice import FallbackNotice


class TestFallbackNotice:
    """Set-once-until-consumed semantics."""

    @pytest.mark.asyncio
    async def test_first_notice_wins_until_popped(self):
        notice = FallbackNotice()

        assert await notice.set_if_absent("first") is True
        assert await notice.set_if_absent("second") is False

        assert await notice.pop() == "first"

    @pytest.mark.asyncio
    async def test_pop_clears(self):
        notice = FallbackNotice()
        await notice.set_if_absent("first")

        await notice.pop()

        assert await notice.pop() is None
        assert await notice.peek() is None

    @pytest.mark.asyncio
    async def test_new_notice_accepted_after_pop(self):
        notice = FallbackNotice()
        await notice.set_if_absent("first")
        await notice.pop()

        await notice.set_if_absent("second")

        assert await notice.pop() == "second"

    @pytest.mark.asyncio
    async def test_clear_discards(self):
        notice = FallbackNotice()
        await notice.set_if_absent("first")

        await notice.clear()

        assert await notice.pop() is None

    @pytest.mark.asyncio
    async def test_peek_is_non_destructive(self):
        notice = FallbackNotice()
        await notice.set_if_absent("first")

        assert await notice.peek() == "first"
        assert await notice.pop() == "first"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, ""])
    async def test_empty_notice_is_ignored(self, value):
        notice = FallbackNotice()

        assert await notice.set_if_absent(value) is False
        assert await notice.peek() is None

    @pytest.mark.asyncio
    async def test_concurrent_setters_keep_exactly_one(self):
        notice = FallbackNotice()

        results = await asyncio.gather(*(notice.set_if_absent(f"n{i}") for i in range(10)))

        assert results.count(True) == 1
        assert await notice.pop() == f"n{results.index(True)}"
