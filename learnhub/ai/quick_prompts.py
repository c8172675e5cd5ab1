"""
Quick-prompt suggestions for the tutor chat.

A fixed catalog of prompt shortcuts, reordered by keywords in what the learner
is typing. Selection is pure: same input, same list.
"""

from __future__ import annotations

from typing import Sequence

from .models import ChatTurn, QuickPrompt, TutorResponseFormat

MAX_QUICK_PROMPTS = 12

QUICK_PROMPT_CATALOG: tuple[QuickPrompt, ...] = (
    QuickPrompt(
        id="simplify",
        label="Simplify",
        icon="lightbulb.min",
        prompt_template="[FORMAT:simplify] Explain the main concept here in the simplest possible terms.",
        response_format=TutorResponseFormat.SIMPLIFY,
    ),
    QuickPrompt(
        id="example",
        label="Example",
        icon="globe",
        prompt_template="[FORMAT:example] Give me a real-world example of this concept.",
        response_format=TutorResponseFormat.EXAMPLE,
    ),
    QuickPrompt(
        id="mnemonic",
        label="Memory trick",
        icon="brain.head.profile",
        prompt_template=(
            "[FORMAT:mnemonic] What's a catchy phrase or mnemonic that could help me "
            "remember the main ideas here?"
        ),
        response_format=TutorResponseFormat.MNEMONIC,
    ),
    QuickPrompt(
        id="compare",
        label="Compare",
        icon="arrow.left.arrow.right",
        prompt_template=(
            "[FORMAT:comparison] Contrast the two main ideas: where are they similar, "
            "where do they differ?"
        ),
        response_format=TutorResponseFormat.COMPARISON,
    ),
    QuickPrompt(
        id="steps",
        label="Step by step",
        icon="list.number",
        prompt_template="[FORMAT:steps] Break down the main process or concept into clear steps.",
        response_format=TutorResponseFormat.STEPS,
    ),
    QuickPrompt(
        id="keypoints",
        label="Key points",
        icon="list.bullet",
        prompt_template="[FORMAT:keypoints] What are the most important points I need to know?",
        response_format=TutorResponseFormat.KEY_POINTS,
    ),
    QuickPrompt(
        id="analogy",
        label="Analogy",
        icon="arrow.triangle.branch",
        prompt_template="[FORMAT:analogy] Help me understand this using a familiar everyday comparison.",
        response_format=TutorResponseFormat.ANALOGY,
    ),
    QuickPrompt(
        id="mistakes",
        label="Common mistakes",
        icon="exclamationmark.triangle",
        prompt_template=(
            "[FORMAT:mistakes] What are the top mistakes, how do I fix them, "
            "and can you give one quick example?"
        ),
        response_format=TutorResponseFormat.MISTAKES,
    ),
    QuickPrompt(
        id="mathsolve",
        label="Solve math",
        icon="function",
        prompt_template="[FORMAT:mathSolver] Solve this math problem step by step, showing all work.",
        response_format=TutorResponseFormat.MATH_SOLVER,
    ),
    QuickPrompt(
        id="why",
        label="Why it matters",
        icon="questionmark.circle",
        prompt_template="[FORMAT:simple] In one paragraph (max 60 words), explain why this topic matters.",
        response_format=TutorResponseFormat.SIMPLIFY,
    ),
    QuickPrompt(
        id="formula",
        label="Formulas",
        icon="function",
        prompt_template="[FORMAT:keypoints] List the key formulas as bullets with what each variable means.",
        response_format=TutorResponseFormat.KEY_POINTS,
    ),
    QuickPrompt(
        id="cheatsheet",
        label="Cheat sheet",
        icon="note.text",
        prompt_template=(
            "[FORMAT:keypoints] Give me a tiny cheat sheet: at most 5 bullets with "
            "the most actionable reminders."
        ),
        response_format=TutorResponseFormat.KEY_POINTS,
    ),
)

# (keywords, prompt ids promoted when any keyword appears), checked in order
KEYWORD_PROMOTIONS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("why", "how"), ("simplify", "steps", "why")),
    (("remember", "memorize"), ("mnemonic",)),
    (("difference", "compare", "vs"), ("compare",)),
    (("wrong", "mistake", "error"), ("mistakes", "cheatsheet")),
)

_BY_ID = {prompt.id: prompt for prompt in QUICK_PROMPT_CATALOG}


def get_quick_prompt(prompt_id: str) -> QuickPrompt | None:
    return _BY_ID.get(prompt_id)


def select_quick_prompts(
    partial_input: str,
    recent_history: Sequence[ChatTurn] = (),
) -> list[QuickPrompt]:
    """
    Order the catalog for what the learner is currently typing.

    Keywords are matched as lowercase substrings of the input. Promoted
    prompts come first, then the rest of the catalog in its default order.

    Args:
        partial_input: Text in the chat input box
        recent_history: Recent turns (accepted for call-site symmetry; ordering
            depends only on the input text)

    Returns:
        At most 12 prompts, unique by id
    """
    lowered = partial_input.lower()
    if not lowered:
        return list(QUICK_PROMPT_CATALOG[:MAX_QUICK_PROMPTS])

    ordered: list[QuickPrompt] = []
    seen: set[str] = set()

    def add(prompt: QuickPrompt) -> None:
        if prompt.id not in seen:
            seen.add(prompt.id)
            ordered.append(prompt)

    for keywords, prompt_ids in KEYWORD_PROMOTIONS:
        if any(keyword in lowered for keyword in keywords):
            for prompt_id in prompt_ids:
                add(_BY_ID[prompt_id])

    for prompt in QUICK_PROMPT_CATALOG:
        add(prompt)

    return ordered[:MAX_QUICK_PROMPTS]
