"""
Unit tests for the request orchestrator.

Provider fallback (on-device -> cloud), fallback notices and the single
parse retry against the provider that produced the text.
"""

import pytest

from learnhub.ai.errors import ApiError, GenerationFailed, InvalidResponse, ParsingFailed
from learnhub.ai.models import ChatTurn, ModelPreference, ProviderKind
from learnhub.ai.orchestrator import RequestOrchestrator
from learnhub.ai.postprocess import parse_questions
from learnhub.ai.selector import ProviderSelector

VALID_QUESTIONS = "[QUESTION]\nQ\n[ANSWER]\nA\n[OPTION]\nA\n[OPTION]\nB\n[END]"


def _parse_upper(text: str) -> str:
    if text != text.upper():
        raise ParsingFailed()
    return text


@pytest.fixture
def build(make_model_settings, make_provider):
    """Build an orchestrator over scripted providers."""

    async def factory(on_device_outcomes=(), cloud_outcomes=(), available=True, cloud_only=False):
        model_settings = make_model_settings(on_device_available=available)
        if cloud_only:
            await model_settings.set_preference(ModelPreference.CLOUD_ONLY)
        on_device = make_provider(ProviderKind.ON_DEVICE, *on_device_outcomes)
        cloud = make_provider(ProviderKind.CLOUD, *cloud_outcomes)
        selector = ProviderSelector(model_settings, unavailable_reason=lambda: "disabled")
        return RequestOrchestrator(selector, on_device=on_device, cloud=cloud), on_device, cloud

    return factory


class TestPerformRequest:
    """Provider fallback for single-turn requests."""

    @pytest.mark.asyncio
    async def test_on_device_success(self, build):
        orchestrator, on_device, cloud = await build(on_device_outcomes=["local text"])

        assert await orchestrator.perform_request("sys", "user") == "local text"
        assert on_device.calls == [("sys", "user")]
        assert cloud.calls == []
        assert await orchestrator.notice.pop() is None

    @pytest.mark.asyncio
    async def test_on_device_failure_falls_back_once(self, build):
        orchestrator, on_device, cloud = await build(
            on_device_outcomes=[GenerationFailed()], cloud_outcomes=["cloud text"]
        )

        assert await orchestrator.perform_request("sys", "user") == "cloud text"
        assert len(on_device.calls) == 1
        assert len(cloud.calls) == 1

        notice = await orchestrator.notice.pop()
        assert notice.startswith("On-device model unavailable")
        assert "Falling back to Groq" in notice

    @pytest.mark.asyncio
    async def test_any_on_device_error_falls_back(self, build):
        orchestrator, _, cloud = await build(
            on_device_outcomes=[RuntimeError("model crashed")], cloud_outcomes=["cloud text"]
        )

        assert await orchestrator.perform_request("sys", "user") == "cloud text"
        assert "model crashed" in await orchestrator.notice.pop()

    @pytest.mark.asyncio
    async def test_cloud_failure_after_fallback_propagates(self, build):
        orchestrator, _, cloud = await build(
            on_device_outcomes=[GenerationFailed()], cloud_outcomes=[ApiError("Status code: 500", 500)]
        )

        with pytest.raises(ApiError):
            await orchestrator.perform_request("sys", "user")
        assert len(cloud.calls) == 1

    @pytest.mark.asyncio
    async def test_unavailable_on_device_goes_to_cloud_with_selector_notice(self, build):
        orchestrator, on_device, cloud = await build(cloud_outcomes=["cloud text"], available=False)

        assert await orchestrator.perform_request("sys", "user") == "cloud text"
        assert on_device.calls == []
        assert await orchestrator.notice.pop() == (
            "On-device model unavailable: disabled. Falling back to Groq (BYOK)."
        )

    @pytest.mark.asyncio
    async def test_cloud_only_sets_no_notice(self, build):
        orchestrator, on_device, _ = await build(cloud_outcomes=["cloud text"], cloud_only=True)

        await orchestrator.perform_request("sys", "user")

        assert on_device.calls == []
        assert await orchestrator.notice.pop() is None

    @pytest.mark.asyncio
    async def test_pending_notice_is_not_overwritten(self, build):
        orchestrator, _, _ = await build(cloud_outcomes=["one", "two"], available=False)
        await orchestrator.notice.set_if_absent("earlier notice")

        await orchestrator.perform_request("sys", "user")
        await orchestrator.perform_request("sys", "user")

        assert await orchestrator.notice.pop() == "earlier notice"
        assert await orchestrator.notice.pop() is None


class TestPerformConversation:
    """Provider fallback for multi-turn requests."""

    @pytest.mark.asyncio
    async def test_conversation_falls_back(self, build):
        orchestrator, on_device, cloud = await build(
            on_device_outcomes=[InvalidResponse()], cloud_outcomes=["reply"]
        )
        history = [ChatTurn(role="user", content="hi")]

        assert await orchestrator.perform_conversation("sys", history) == "reply"
        assert cloud.calls == [("sys", history)]
        assert await orchestrator.notice.peek() is not None


class TestParsingRetry:
    """perform_request_with_parsing_retry."""

    @pytest.mark.asyncio
    async def test_success_without_retry(self, build):
        orchestrator, _, cloud = await build(cloud_outcomes=["OK"], cloud_only=True)

        assert await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper) == "OK"
        assert len(cloud.calls) == 1

    @pytest.mark.asyncio
    async def test_retry_once_after_parse_failure(self, build):
        orchestrator, _, cloud = await build(cloud_outcomes=["bad", "GOOD"], cloud_only=True)

        assert await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper) == "GOOD"
        assert len(cloud.calls) == 2

    @pytest.mark.asyncio
    async def test_two_parse_failures_raise_parsing_failed(self, build):
        orchestrator, _, cloud = await build(cloud_outcomes=["bad", "worse"], cloud_only=True)

        with pytest.raises(ParsingFailed):
            await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper)
        assert len(cloud.calls) == 2

    @pytest.mark.asyncio
    async def test_untagged_output_fails_after_one_retry(self, build):
        orchestrator, _, cloud = await build(
            cloud_outcomes=["no tags here", "still none"], cloud_only=True
        )

        with pytest.raises(ParsingFailed):
            await orchestrator.perform_request_with_parsing_retry("s", "u", parse_questions)
        assert len(cloud.calls) == 2

    @pytest.mark.asyncio
    async def test_retry_recovers_with_tagged_output(self, build):
        orchestrator, _, _ = await build(cloud_outcomes=["no tags", VALID_QUESTIONS], cloud_only=True)

        questions = await orchestrator.perform_request_with_parsing_retry("s", "u", parse_questions)

        assert questions[0].answer == "A"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [InvalidResponse(), ApiError("Invalid API Key (Code: invalid_api_key)", 401), GenerationFailed()],
    )
    async def test_non_parse_errors_are_not_retried(self, build, error):
        orchestrator, _, cloud = await build(cloud_outcomes=[error], cloud_only=True)

        with pytest.raises(type(error)):
            await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper)
        assert len(cloud.calls) == 1

    @pytest.mark.asyncio
    async def test_retry_uses_on_device_when_it_produced_the_text(self, build):
        orchestrator, on_device, cloud = await build(on_device_outcomes=["bad", "GOOD"])

        assert await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper) == "GOOD"
        assert len(on_device.calls) == 2
        assert cloud.calls == []

    @pytest.mark.asyncio
    async def test_retry_stays_on_cloud_after_provider_fallback(self, build):
        orchestrator, on_device, cloud = await build(
            on_device_outcomes=[GenerationFailed()], cloud_outcomes=["bad", "GOOD"]
        )

        assert await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper) == "GOOD"
        assert len(on_device.calls) == 1
        assert len(cloud.calls) == 2

    @pytest.mark.asyncio
    async def test_retry_error_other_than_parse_propagates(self, build):
        orchestrator, _, cloud = await build(
            cloud_outcomes=["bad", ApiError("rate limit", 429)], cloud_only=True
        )

        with pytest.raises(ApiError):
            await orchestrator.perform_request_with_parsing_retry("s", "u", _parse_upper)
        assert len(cloud.calls) == 2
