"""
Unit tests for the on-device (Ollama) model client.
"""

from types import SimpleNamespace

import httpx
import pytest
from ollama import ResponseError

from learnhub.ai.errors import ApiError, GenerationFailed, InvalidResponse
from learnhub.ai.models import ChatTurn, ProviderKind
from learnhub.ai.providers.local import LocalModelClient


class FakeRuntime:
    """Stands in for ollama.AsyncClient."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.requests = []
        self.closed = False

    async def close(self):
        self.closed = True

    async def chat(self, model, messages):
        self.requests.append({"model": model, "messages": messages})
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return SimpleNamespace(message=SimpleNamespace(role="assistant", content=self.outcome))


@pytest.fixture
def enabled_settings(settings):
    return settings.model_copy(update={"local_model_enabled": True, "local_model_name": "llama3.2"})


class TestAvailability:
    """Configuration gating."""

    def test_disabled_by_default(self, settings):
        client = LocalModelClient(settings=settings)

        assert client.kind is ProviderKind.ON_DEVICE
        assert client.is_available() is False
        assert "disabled" in client.unavailable_reason()

    def test_enabled_without_model_name(self, enabled_settings):
        client = LocalModelClient(settings=enabled_settings.model_copy(update={"local_model_name": "  "}))

        assert client.is_available() is False
        assert "LOCAL_MODEL_NAME" in client.unavailable_reason()

    def test_enabled_with_model(self, enabled_settings):
        client = LocalModelClient(settings=enabled_settings)

        assert client.is_available() is True
        assert client.unavailable_reason() is None

    @pytest.mark.asyncio
    async def test_close_closes_runtime_client(self, settings):
        runtime = FakeRuntime("unused")
        client = LocalModelClient(settings=settings, client=runtime)

        await client.close()
        await client.close()

        assert runtime.closed is True
        assert client._client is None

    @pytest.mark.asyncio
    async def test_unavailable_call_raises_descriptive_error(self, settings):
        runtime = FakeRuntime("never")
        client = LocalModelClient(settings=settings, client=runtime)

        with pytest.raises(ApiError) as exc_info:
            await client.complete("sys", "user")

        assert "On-device model unavailable" in str(exc_info.value)
        assert runtime.requests == []


class TestRequests:
    """Completion and conversation calls."""

    @pytest.mark.asyncio
    async def test_complete(self, enabled_settings):
        runtime = FakeRuntime("local answer")
        client = LocalModelClient(settings=enabled_settings, client=runtime)

        assert await client.complete("instructions", "prompt") == "local answer"
        assert runtime.requests == [
            {
                "model": "llama3.2",
                "messages": [
                    {"role": "system", "content": "instructions"},
                    {"role": "user", "content": "prompt"},
                ],
            }
        ]

    @pytest.mark.asyncio
    async def test_converse_sends_only_last_user_turn(self, enabled_settings):
        runtime = FakeRuntime("reply")
        client = LocalModelClient(settings=enabled_settings, client=runtime)
        history = [
            ChatTurn(role="user", content="first"),
            ChatTurn(role="assistant", content="answer"),
            ChatTurn(role="user", content="second"),
        ]

        assert await client.converse("tutor", history) == "reply"
        assert runtime.requests[0]["messages"] == [
            {"role": "system", "content": "tutor"},
            {"role": "user", "content": "second"},
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "history",
        [[], [ChatTurn(role="user", content="q"), ChatTurn(role="assistant", content="a")]],
    )
    async def test_converse_requires_trailing_user_turn(self, enabled_settings, history):
        client = LocalModelClient(settings=enabled_settings, client=FakeRuntime("unused"))

        with pytest.raises(InvalidResponse):
            await client.converse("tutor", history)

    @pytest.mark.asyncio
    async def test_empty_content_is_invalid(self, enabled_settings):
        client = LocalModelClient(settings=enabled_settings, client=FakeRuntime(""))

        with pytest.raises(InvalidResponse):
            await client.complete("s", "u")

    @pytest.mark.asyncio
    async def test_runtime_error_becomes_api_error(self, enabled_settings):
        client = LocalModelClient(
            settings=enabled_settings, client=FakeRuntime(ResponseError("model 'llama3.2' not found", 404))
        )

        with pytest.raises(ApiError) as exc_info:
            await client.complete("s", "u")

        assert exc_info.value.status_code == 404
        assert "not found" in exc_info.value.detail

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [ConnectionError("refused"), httpx.ConnectError("refused")]
    )
    async def test_unreachable_runtime_is_generation_failure(self, enabled_settings, error):
        client = LocalModelClient(settings=enabled_settings, client=FakeRuntime(error))

        with pytest.raises(GenerationFailed):
            await client.complete("s", "u")
