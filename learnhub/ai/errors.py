"""
Error taxonomy for AI generation.

Every error carries a user-facing message; the UI renders ``str(error)``
verbatim, including any embedded provider error codes.
"""

from __future__ import annotations


class AIError(Exception):
    """Base class for all generation errors."""

    message = "The AI failed to generate a response. Please try again."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class GenerationFailed(AIError):
    """Transport failure or no usable HTTP response."""

    message = "The AI failed to generate a response. Please try again."


class InvalidResponse(AIError):
    """Response arrived but lacked the expected payload shape."""

    message = "The AI returned an invalid response format."


class ParsingFailed(AIError):
    """No structured records could be extracted from the completion."""

    message = "Failed to parse the AI response into the required format."


class ApiError(AIError):
    """Provider-reported failure with a human-readable detail string."""

    def __init__(self, detail: str, status_code: int | None = None):
        self.detail = detail
        self.status_code = status_code
        super().__init__(f"AI Error: {detail}")

    @property
    def is_rate_limited(self) -> bool:
        """True for throttling errors, which advance the model fallback chain."""
        if self.status_code == 429:
            return True
        detail = self.detail.lower()
        return "429" in detail or "rate limit" in detail


def is_rate_limit_error(error: BaseException) -> bool:
    """Check whether an error should trigger model substitution."""
    return isinstance(error, ApiError) and error.is_rate_limited


def format_error(error: BaseException) -> str:
    """
    Format an error for display, keeping error codes visible.

    AI errors already carry their detail. HTTP status errors get their status
    code appended; other errors fall back to their message.
    """
    if isinstance(error, AIError):
        return str(error)

    code = getattr(getattr(error, "response", None), "status_code", None)
    if code is None:
        code = getattr(error, "errno", None)
    description = str(error) or error.__class__.__name__
    if code:
        return f"{description} (Error Code: {code})"
    return description
