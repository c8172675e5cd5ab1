"""
Domain models for AI generation.

All instances are created per request and discarded once the caller has
consumed them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal

from loguru import logger


class ProviderKind(str, Enum):
    """Backends able to turn a prompt into text."""

    ON_DEVICE = "on_device"
    CLOUD = "cloud"

    @property
    def display_name(self) -> str:
        if self is ProviderKind.ON_DEVICE:
            return "On-device model"
        return "Groq (BYOK)"


class ModelPreference(str, Enum):
    """User-selected provider policy."""

    AUTOMATIC = "automatic"
    CLOUD_ONLY = "cloud_only"

    @classmethod
    def from_stored(cls, raw: str | None) -> ModelPreference:
        """Parse a stored value, migrating legacy names."""
        if raw in ("groqOnly", "GroqOnly", "openRouterOnly"):
            return cls.CLOUD_ONLY
        try:
            return cls(raw)
        except ValueError:
            return cls.AUTOMATIC

    @property
    def display_name(self) -> str:
        if self is ModelPreference.AUTOMATIC:
            return "Automatic"
        return "Groq Only"

    @property
    def detail(self) -> str:
        if self is ModelPreference.AUTOMATIC:
            return "Prefers the on-device model when available; otherwise uses Groq with your key."
        return "Always uses your Groq BYOK key."


@dataclass(frozen=True)
class ProviderSelection:
    """Provider chosen for one request."""

    provider: ProviderKind
    fallback_notice: str | None = None


@dataclass(frozen=True)
class ChatTurn:
    """A single message in a tutoring conversation."""

    role: Literal["user", "assistant"]
    content: str

    def to_message(self) -> dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class ParsedQuestion:
    """A multiple-choice question with exactly four options."""

    question: str
    answer: str
    options: list[str] = field(default_factory=list)
    explanation: str | None = None


@dataclass
class ParsedFlashcard:
    """A front/back study card."""

    front: str
    back: str


@dataclass(frozen=True)
class TopicSuggestion:
    """A suggested topic to study next."""

    title: str
    description: str
    category: str = "Other"
    difficulty: str = "Intermediate"
    estimated_time: str = "1-2 hours"
    icon: str = "lightbulb"


class TutorResponseFormat(str, Enum):
    """Output-tag template injected into the tutor system prompt."""

    STANDARD = "standard"
    COMPARISON = "comparison"
    MNEMONIC = "mnemonic"
    STEPS = "steps"
    EXAMPLE = "example"
    SIMPLIFY = "simplify"
    KEY_POINTS = "keyPoints"
    ANALOGY = "analogy"
    MISTAKES = "mistakes"
    MATH_SOLVER = "mathSolver"


class SummaryStyle(str, Enum):
    PARAGRAPH = "Paragraph"
    BULLET_POINTS = "Bullet Points"


class SummaryDifficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class RelativeDifficulty(str, Enum):
    """Difficulty relative to the learner's existing material."""

    EASIER = "Easier"
    SAME = "Same Difficulty"
    HARDER = "Harder"

    @property
    def guidance(self) -> str:
        if self is RelativeDifficulty.EASIER:
            return "Simplify language and focus on foundational, one-step ideas. Avoid edge cases."
        if self is RelativeDifficulty.HARDER:
            return "Increase complexity with multi-step reasoning, trickier distractors, and deeper concepts."
        return "Match the current difficulty and tone of the learner's existing material."


@dataclass(frozen=True)
class QuickPrompt:
    """A labelled prompt shortcut bound to a response format."""

    id: str
    label: str
    icon: str
    prompt_template: str
    response_format: TutorResponseFormat = TutorResponseFormat.STANDARD


@dataclass(frozen=True)
class TutorContext:
    """Study material the tutor answers against."""

    original_text: str
    study_set_title: str
    summary: str | None = None

    def build_context_string(self) -> str:
        """Build the context block for the prompt and log what it includes."""
        parts = ["originalText"]
        context = f"STUDY MATERIAL:\n{self.original_text}"

        if self.summary:
            parts.append("summary")
            context += f"\n\nSUMMARY:\n{self.summary}"

        logger.debug(
            f"Tutor context sent to AI: [{', '.join(parts)}] for study set: {self.study_set_title}"
        )
        return context
