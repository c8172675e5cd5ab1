"""
AI Service.

Single call surface for study-material generation and tutoring. Every
operation builds its prompts, goes through the request orchestrator (provider
selection, provider fallback and parse retry) and returns typed results.

Failures are logged and re-raised unchanged; render them with
``format_error``.
"""

from __future__ import annotations

import random
from functools import lru_cache
from typing import Awaitable, Sequence, TypeVar

from loguru import logger

from config import Settings, get_settings

from . import prompts
from .errors import AIError, format_error
from .model_settings import ModelSettings
from .models import (
    ChatTurn,
    ParsedFlashcard,
    ParsedQuestion,
    QuickPrompt,
    RelativeDifficulty,
    SummaryDifficulty,
    SummaryStyle,
    TopicSuggestion,
    TutorContext,
    TutorResponseFormat,
)
from .notice import FallbackNotice
from .orchestrator import RequestOrchestrator
from .postprocess import (
    CONVERSION_FLASHCARD_LIMIT,
    FALLBACK_TOPIC_SUGGESTIONS,
    limit_flashcards,
    parse_flashcards,
    parse_questions,
    parse_topic_suggestions,
)
from .providers import GroqClient, LocalModelClient
from .quick_prompts import select_quick_prompts
from .selector import ProviderSelector

T = TypeVar("T")

__all__ = ["AIService", "format_error", "get_ai_service"]


class AIService:
    """Consumer-facing AI operations."""

    def __init__(
        self,
        orchestrator: RequestOrchestrator,
        cloud: GroqClient,
        model_settings: ModelSettings,
        rng: random.Random | None = None,
    ):
        """
        Initialize the service.

        Args:
            orchestrator: Request policy over both providers
            cloud: Cloud client, used directly for vision requests
            model_settings: User preferences (exposed for settings screens)
            rng: Random source for option shuffling
        """
        self.orchestrator = orchestrator
        self.cloud = cloud
        self.model_settings = model_settings
        self.rng = rng

    @property
    def notice(self) -> FallbackNotice:
        return self.orchestrator.notice

    async def close(self) -> None:
        await self.orchestrator.cloud.close()
        await self.orchestrator.on_device.close()

    # =========================================================================
    # Summaries & Guides
    # =========================================================================

    async def generate_summary(
        self,
        text: str,
        style: SummaryStyle = SummaryStyle.PARAGRAPH,
        word_count: int = 150,
        difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
    ) -> str:
        user_prompt = prompts.build_summary_prompt(text, style, word_count, difficulty)
        return await self._logged(
            "Summary",
            self.orchestrator.perform_request(prompts.STUDY_ASSISTANT_SYSTEM_PROMPT, user_prompt),
        )

    async def generate_topic_guide(
        self,
        topic: str,
        style: SummaryStyle = SummaryStyle.PARAGRAPH,
        word_count: int = 300,
        difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
    ) -> str:
        user_prompt = prompts.build_topic_guide_prompt(topic, style, word_count, difficulty)
        return await self._logged(
            "Topic guide",
            self.orchestrator.perform_request(prompts.STUDY_ASSISTANT_SYSTEM_PROMPT, user_prompt),
        )

    # =========================================================================
    # Questions & Flashcards
    # =========================================================================

    async def generate_questions(
        self,
        text: str,
        count: int,
        relative_difficulty: RelativeDifficulty | None = None,
    ) -> list[ParsedQuestion]:
        user_prompt = prompts.build_questions_prompt(text, count, relative_difficulty)
        return await self._logged(
            "Questions",
            self.orchestrator.perform_request_with_parsing_retry(
                prompts.QUIZ_SYSTEM_PROMPT, user_prompt, self._parse_questions
            ),
        )

    async def generate_topic_questions(
        self,
        topic: str,
        count: int,
        difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
    ) -> list[ParsedQuestion]:
        user_prompt = prompts.build_topic_questions_prompt(topic, count, difficulty)
        return await self._logged(
            "Topic questions",
            self.orchestrator.perform_request_with_parsing_retry(
                prompts.QUIZ_SYSTEM_PROMPT, user_prompt, self._parse_questions
            ),
        )

    async def generate_flashcards(
        self,
        text: str,
        count: int,
        relative_difficulty: RelativeDifficulty | None = None,
    ) -> list[ParsedFlashcard]:
        user_prompt = prompts.build_flashcards_prompt(text, count, relative_difficulty)
        cards = await self._logged(
            "Flashcards",
            self.orchestrator.perform_request_with_parsing_retry(
                prompts.FLASHCARD_SYSTEM_PROMPT, user_prompt, parse_flashcards
            ),
        )
        return limit_flashcards(cards, count)

    async def generate_topic_flashcards(
        self,
        topic: str,
        count: int,
        difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
    ) -> list[ParsedFlashcard]:
        user_prompt = prompts.build_topic_flashcards_prompt(topic, count, difficulty)
        cards = await self._logged(
            "Topic flashcards",
            self.orchestrator.perform_request_with_parsing_retry(
                prompts.FLASHCARD_SYSTEM_PROMPT, user_prompt, parse_flashcards
            ),
        )
        return limit_flashcards(cards, count)

    async def convert_to_flashcards(
        self,
        ai_response: str,
        context: TutorContext | None = None,
    ) -> list[ParsedFlashcard]:
        """Turn a tutor reply into a handful of flashcards (at most 5)."""
        if context is not None:
            logger.debug(f"Converting tutor reply from '{context.study_set_title}' to flashcards")
        cards = await self._logged(
            "Flashcard conversion",
            self.orchestrator.perform_request_with_parsing_retry(
                prompts.CONVERT_SYSTEM_PROMPT,
                prompts.build_convert_prompt(ai_response),
                parse_flashcards,
            ),
        )
        return limit_flashcards(cards, CONVERSION_FLASHCARD_LIMIT)

    # =========================================================================
    # Tutor
    # =========================================================================

    async def perform_chat(
        self,
        messages: Sequence[ChatTurn],
        context: TutorContext,
        response_format: TutorResponseFormat = TutorResponseFormat.STANDARD,
    ) -> str:
        """
        Continue a tutoring conversation.

        The study context is injected into the most recent user turn; the
        system prompt carries the rules and the output template for
        ``response_format``.
        """
        system_prompt = prompts.build_tutor_system_prompt(response_format)
        augmented = prompts.augment_chat_messages(messages, context.build_context_string())

        logger.info(f"Tutor request with format: {response_format.value}")
        return await self._logged(
            "Tutor chat",
            self.orchestrator.perform_conversation(system_prompt, augmented),
        )

    async def perform_vision_chat(
        self,
        image_data: bytes,
        user_message: str,
        context: TutorContext,
        mime_type: str = "image/jpeg",
    ) -> str:
        """Analyse an image with the cloud vision model (no on-device path)."""
        system_prompt = prompts.build_vision_system_prompt(context.build_context_string())
        return await self._logged(
            "Vision chat",
            self.cloud.complete_vision(
                system_prompt,
                prompts.build_vision_user_message(user_message),
                image_data,
                mime_type=mime_type,
            ),
        )

    def generate_quick_prompts(
        self,
        partial_input: str,
        recent_messages: Sequence[ChatTurn] = (),
    ) -> list[QuickPrompt]:
        return select_quick_prompts(partial_input, recent_messages)

    # =========================================================================
    # Topic Suggestions
    # =========================================================================

    async def generate_topic_suggestions(self, existing_topics: Sequence[str] = ()) -> list[TopicSuggestion]:
        """
        Suggest five topics to study next, steering away from ``existing_topics``.

        Generation failures are logged and answered with a fixed set of
        suggestions, so this never raises an AIError.
        """
        try:
            return await self._logged(
                "Topic suggestions",
                self.orchestrator.perform_request_with_parsing_retry(
                    prompts.TOPIC_SUGGESTION_SYSTEM_PROMPT,
                    prompts.build_topic_suggestions_prompt(existing_topics),
                    parse_topic_suggestions,
                ),
            )
        except AIError:
            logger.warning("Using default topic suggestions")
            return list(FALLBACK_TOPIC_SUGGESTIONS)

    # =========================================================================
    # Fallback Notice
    # =========================================================================

    async def pop_fallback_notice(self) -> str | None:
        return await self.notice.pop()

    async def clear_fallback_notice(self) -> None:
        await self.notice.clear()

    async def preview_fallback_notice_for_current_preference(self) -> str | None:
        return await self.orchestrator.selector.preview_fallback_notice()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _parse_questions(self, raw_text: str) -> list[ParsedQuestion]:
        return parse_questions(raw_text, self.rng)

    @staticmethod
    async def _logged(operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except Exception as e:
            logger.error(f"{operation} generation failed: {format_error(e)}")
            raise


def build_ai_service(settings: Settings | None = None) -> AIService:
    """Wire providers, selector and orchestrator from settings."""
    settings = settings or get_settings()

    local = LocalModelClient(settings=settings)
    model_settings = ModelSettings(settings=settings, local_availability=local.is_available)
    cloud = GroqClient(model_settings, settings=settings)
    selector = ProviderSelector(model_settings, unavailable_reason=local.unavailable_reason)
    orchestrator = RequestOrchestrator(selector, on_device=local, cloud=cloud)

    return AIService(orchestrator, cloud=cloud, model_settings=model_settings)


@lru_cache(maxsize=1)
def get_ai_service() -> AIService:
    """Return the process-wide service instance."""
    return build_ai_service()
