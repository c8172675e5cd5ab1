"""
Unit tests for the AI error taxonomy and display formatting.
"""

import httpx
import pytest

from learnhub.ai.errors import (
    ApiError,
    GenerationFailed,
    InvalidResponse,
    ParsingFailed,
    format_error,
    is_rate_limit_error,
)


class TestMessages:
    """User-facing error text."""

    def test_default_messages(self):
        assert str(GenerationFailed()) == "The AI failed to generate a response. Please try again."
        assert str(InvalidResponse()) == "The AI returned an invalid response format."
        assert str(ParsingFailed()) == "Failed to parse the AI response into the required format."

    def test_api_error_keeps_detail_and_code(self):
        error = ApiError("Invalid API Key (Code: invalid_api_key)", status_code=401)

        assert str(error) == "AI Error: Invalid API Key (Code: invalid_api_key)"
        assert error.status_code == 401


class TestRateLimitDetection:
    """Which errors advance the model fallback chain."""

    @pytest.mark.parametrize(
        "error",
        [
            ApiError("anything", status_code=429),
            ApiError("Status code: 429"),
            ApiError("Rate Limit reached for tokens per minute", status_code=413),
        ],
    )
    def test_rate_limited(self, error):
        assert is_rate_limit_error(error)

    @pytest.mark.parametrize(
        "error",
        [ApiError("Model not found (Code: 404)", status_code=404), GenerationFailed(), ValueError("429")],
    )
    def test_not_rate_limited(self, error):
        assert not is_rate_limit_error(error)


class TestFormatError:
    """format_error."""

    def test_ai_error_rendered_verbatim(self):
        assert format_error(ApiError("Status code: 500", 500)) == "AI Error: Status code: 500"

    def test_http_status_error_shows_code(self):
        request = httpx.Request("POST", "https://api.groq.com/openai/v1/chat/completions")
        response = httpx.Response(503, request=request)
        error = httpx.HTTPStatusError("Service unavailable", request=request, response=response)

        assert format_error(error) == "Service unavailable (Error Code: 503)"

    def test_os_error_shows_errno(self):
        assert format_error(ConnectionRefusedError(111, "Connection refused")).endswith("(Error Code: 111)")

    def test_plain_error(self):
        assert format_error(RuntimeError("boom")) == "boom"
        assert format_error(RuntimeError()) == "RuntimeError"
