"""
Post-processing of parsed records into typed study items.

Question repair guarantees every multiple-choice question carries exactly four
options, one of which matches the answer.
"""

from __future__ import annotations

import random
from typing import Sequence, TypeVar

from loguru import logger

from .errors import ParsingFailed
from .models import ParsedFlashcard, ParsedQuestion, TopicSuggestion
from .tag_parser import (
    FLASHCARD_SCHEMA,
    QUESTION_SCHEMA,
    TOPIC_SUGGESTION_SCHEMA,
    normalize_whitespace,
    parse_tagged_blocks,
)

T = TypeVar("T")

OPTION_COUNT = 4
CONVERSION_FLASHCARD_LIMIT = 5


def options_contain_answer(options: Sequence[str], answer: str) -> bool:
    target = normalize_whitespace(answer)
    return any(normalize_whitespace(option) == target for option in options)


def repair_options(
    options: Sequence[str],
    answer: str,
    rng: random.Random | None = None,
) -> list[str]:
    """
    Repair a question's options so the answer is among exactly four choices.

    Args:
        options: Options as emitted by the model
        answer: The correct answer
        rng: Random source for the final shuffle

    Returns:
        Four shuffled options, one matching the answer
    """
    repaired = list(options)
    target = normalize_whitespace(answer)

    if not options_contain_answer(repaired, answer):
        repaired.insert(0, answer)

    while len(repaired) < OPTION_COUNT:
        repaired.append(f"Option {len(repaired) + 1}")

    if len(repaired) > OPTION_COUNT:
        match = next(i for i, option in enumerate(repaired) if normalize_whitespace(option) == target)
        if match < OPTION_COUNT:
            repaired = repaired[:OPTION_COUNT]
        else:
            repaired = repaired[: OPTION_COUNT - 1] + [repaired[match]]

    (rng or random).shuffle(repaired)
    return repaired


def limit_flashcards(cards: Sequence[T], limit: int) -> list[T]:
    return list(cards[: max(limit, 0)])


def parse_questions(raw_text: str, rng: random.Random | None = None) -> list[ParsedQuestion]:
    """
    Parse tagged model output into repaired multiple-choice questions.

    Raises:
        ParsingFailed: When no complete question survives parsing
    """
    questions = []
    for record in parse_tagged_blocks(raw_text, QUESTION_SCHEMA):
        answer = record["answer"]
        questions.append(
            ParsedQuestion(
                question=record["question"],
                answer=answer,
                options=repair_options(record.get("options", []), answer, rng),
                explanation=record.get("explanation"),
            )
        )

    if not questions:
        logger.warning("No questions could be parsed from the AI response")
        raise ParsingFailed()

    logger.debug(f"Parsed {len(questions)} questions")
    return questions


def parse_flashcards(raw_text: str) -> list[ParsedFlashcard]:
    """
    Parse tagged model output into flashcards.

    Raises:
        ParsingFailed: When no complete front/back pair survives parsing
    """
    cards = [
        ParsedFlashcard(front=record["front"], back=record["back"])
        for record in parse_tagged_blocks(raw_text, FLASHCARD_SCHEMA)
    ]

    if not cards:
        logger.warning("No flashcards could be parsed from the AI response")
        raise ParsingFailed()

    logger.debug(f"Parsed {len(cards)} flashcards")
    return cards


# Shown when suggestions cannot be generated.
FALLBACK_TOPIC_SUGGESTIONS = (
    TopicSuggestion(
        title="Introduction to Machine Learning",
        description="Learn the fundamentals of ML algorithms and their applications",
        category="Technology",
        difficulty="Intermediate",
        estimated_time="2-3 hours",
        icon="brain",
    ),
    TopicSuggestion(
        title="World History: Ancient Civilizations",
        description="Explore the rise and fall of great ancient empires",
        category="History",
        difficulty="Beginner",
        estimated_time="1-2 hours",
        icon="building.columns",
    ),
    TopicSuggestion(
        title="Creative Writing Techniques",
        description="Master storytelling, character development, and narrative structure",
        category="Arts",
        difficulty="Beginner",
        estimated_time="1-2 hours",
        icon="pencil.and.outline",
    ),
    TopicSuggestion(
        title="Basic Economics Principles",
        description="Understand supply, demand, and market dynamics",
        category="Business",
        difficulty="Beginner",
        estimated_time="2-3 hours",
        icon="chart.line.uptrend.xyaxis",
    ),
    TopicSuggestion(
        title="Quantum Physics Basics",
        description="Discover the fascinating world of quantum mechanics",
        category="Science",
        difficulty="Advanced",
        estimated_time="3-4 hours",
        icon="atom",
    ),
)


def parse_topic_suggestions(raw_text: str) -> list[TopicSuggestion]:
    """
    Parse tagged model output into topic suggestions.

    Title and description are required; other fields fall back to the
    ``TopicSuggestion`` defaults.

    Raises:
        ParsingFailed: When no suggestion has both a title and a description
    """
    suggestions = [
        TopicSuggestion(**record)
        for record in parse_tagged_blocks(raw_text, TOPIC_SUGGESTION_SCHEMA)
    ]

    if not suggestions:
        logger.warning("No topic suggestions could be parsed from the AI response")
        raise ParsingFailed()

    logger.debug(f"Parsed {len(suggestions)} topic suggestions")
    return suggestions
