"""
LLM prompts for study material generation and tutoring.

Contains prompts for:
- Summaries and topic guides (free text)
- Multiple-choice questions (tag format: [QUESTION] [ANSWER] [OPTION] [EXPLANATION] [END])
- Flashcards (tag format: [FRONT] [BACK] [END])
- Tutor chat, with one output template per TutorResponseFormat
- Image analysis (vision)

Math is always requested as LaTeX inside single dollar signs; the parser
converts any \\( \\) or \\[ \\] the model still emits.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Sequence

from .models import (
    ChatTurn,
    RelativeDifficulty,
    SummaryDifficulty,
    SummaryStyle,
    TutorContext,
    TutorResponseFormat,
)

# =============================================================================
# Shared Blocks
# =============================================================================

STUDY_ASSISTANT_SYSTEM_PROMPT = (
    "You are a concise study assistant. Produce clean, well-formatted output that "
    "follows instructions exactly. Do not add headings, labels, bullets, or extra commentary."
)

QUIZ_SYSTEM_PROMPT = (
    "You are a precise quiz generator. Output ONLY the requested format. No conversational text."
)

FLASHCARD_SYSTEM_PROMPT = (
    "You are a precise flashcard generator. Follow the exact tag format. "
    "No markdown, no numbering, no extra prose. Front and back must be plain text."
)

CONVERT_SYSTEM_PROMPT = (
    "You are a flashcard generator. You MUST output ONLY the exact tag format below. "
    "No other text allowed."
)

MATH_FORMATTING_RULES = r"""MATH FORMATTING RULES (follow exactly):
- Wrap ALL math expressions in single dollar signs: $...$
- Use \frac{a}{b} for fractions, NOT a/b for complex fractions
- Use \sqrt{x} or \sqrt[n]{x} for roots
- Use \sum_{i=1}^{n}, \int_{a}^{b}, \prod for summation, integrals, products
- Use ^{} for superscripts and _{} for subscripts (e.g., $x^{2}$, $a_{n}$)
- Use \left( and \right) for auto-sizing parentheses
- Use \cdot for multiplication, \times for cross product
- Greek letters: \alpha, \beta, \pi, \theta, \Delta, etc.
- Examples: $\frac{-b \pm \sqrt{b^{2} - 4ac}}{2a}$, $\int_{0}^{\infty} e^{-x^{2}} dx$"""

QUESTION_FORMAT = r"""STRICT OUTPUT FORMAT (Tag-based):

[QUESTION]
Question text
[ANSWER]
Correct answer text
[OPTION]
Correct answer text
[OPTION]
Distractor 1
[OPTION]
Distractor 2
[OPTION]
Distractor 3
[EXPLANATION]
Explanation
[END]

RULES:
1. Use [QUESTION], [ANSWER], [OPTION], [EXPLANATION], [END] tags exactly as shown.
2. Put content on the lines following the tags. Do NOT wrap content in < > brackets.
3. Provide exactly 4 [OPTION] tags. One MUST match [ANSWER] exactly.
4. MATH: Use LaTeX with single dollar signs ($...$) for ALL math.
   - CORRECT: $x^2 + 2x$
   - WRONG: \[ x^2 + 2x \]
   - WRONG: [ x^2 + 2x ]
   - WRONG: \( x^2 + 2x \)
5. Do not use markdown code blocks (```).
6. Every question has exactly 4 options."""

FLASHCARD_FORMAT = """Use this EXACT format for each flashcard (no blank lines between tags):

[FRONT]
Term text
[BACK]
Definition text
[END]

IMPORTANT - FOLLOW ALL:
1) Do NOT use JSON or markdown.
2) Do NOT use headings (#, ##) or bold/italics. No numbering of cards.
3) Keep the front very short (3-9 words) and the back concise (under 20 words).
4) Keep EXACT tags as shown. No extra tags or bullets.
5) Produce exactly {count} flashcards."""

FLASHCARD_EXAMPLE = """GOOD EXAMPLE (copy structure, change content):
[FRONT]
Factorising purpose
[BACK]
Reveal common factors to simplify.
[END]"""

BULLET_STYLE_INSTRUCTION = (
    "FORMAT AS BULLETS ONLY. Each bullet must be its own line and start with '- ' exactly. "
    "No numbering. No paragraph text. Do NOT break bullets across multiple lines. "
    "Example exactly:\n- Key idea one\n- Key idea two\n- Key idea three"
)

# =============================================================================
# Summaries & Guides
# =============================================================================

SUMMARY_PROMPT = """Summarise the following text. Follow formatting instructions EXACTLY. Do NOT add headings or labels. Keep it tight and avoid filler.
{style_instruction}
Target length: aim for {min_words}-{max_words} words (soft target, stay concise).
Difficulty level: {difficulty} ({difficulty_instruction}).

{math_rules}

Text:
{text}"""

TOPIC_GUIDE_PROMPT = """Create a comprehensive learning guide about: {topic}
Follow formatting instructions EXACTLY. Do NOT add headings or labels. Keep it tight and avoid filler.
{style_instruction}
Target length: aim for {min_words}-{max_words} words (soft target, stay concise).
Difficulty level: {difficulty} ({difficulty_instruction}).

Cover these parts in order, as plain text paragraphs without bullet points:
1. A brief introduction to the topic
2. Key concepts and fundamentals
3. Step-by-step instructions or explanations (if applicable)
4. Common mistakes to avoid or tips for success
5. How to practice or apply this knowledge

{math_rules}"""

SUMMARY_DIFFICULTY_INSTRUCTIONS = MappingProxyType(
    {
        SummaryDifficulty.BEGINNER: "Use simple language suitable for a beginner. Avoid jargon where possible.",
        SummaryDifficulty.INTERMEDIATE: "Use standard language suitable for an intermediate learner.",
        SummaryDifficulty.ADVANCED: "Use advanced, academic language suitable for an expert.",
    }
)

GUIDE_DIFFICULTY_INSTRUCTIONS = MappingProxyType(
    {
        SummaryDifficulty.BEGINNER: (
            "Use simple language suitable for a beginner. Avoid jargon where possible. "
            "Explain it as you would to a five-year-old."
        ),
        SummaryDifficulty.INTERMEDIATE: SUMMARY_DIFFICULTY_INSTRUCTIONS[SummaryDifficulty.INTERMEDIATE],
        SummaryDifficulty.ADVANCED: SUMMARY_DIFFICULTY_INSTRUCTIONS[SummaryDifficulty.ADVANCED],
    }
)


def target_word_range(word_count: int) -> tuple[int, int]:
    """Soft length target sent to the model."""
    return max(80, word_count - 30), word_count + 30


def build_summary_prompt(
    text: str,
    style: SummaryStyle = SummaryStyle.PARAGRAPH,
    word_count: int = 150,
    difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
) -> str:
    if style is SummaryStyle.BULLET_POINTS:
        style_instruction = BULLET_STYLE_INSTRUCTION
    else:
        style_instruction = (
            "FORMAT AS ONE SINGLE PARAGRAPH (4-7 sentences). ABSOLUTELY NO BULLET POINTS. "
            "NO LISTS. NO HEADINGS. NO EXTRA SECTIONS. Just one continuous block of text."
        )

    min_words, max_words = target_word_range(word_count)
    return SUMMARY_PROMPT.format(
        style_instruction=style_instruction,
        min_words=min_words,
        max_words=max_words,
        difficulty=difficulty.value,
        difficulty_instruction=SUMMARY_DIFFICULTY_INSTRUCTIONS[difficulty],
        math_rules=MATH_FORMATTING_RULES,
        text=text,
    )


def build_topic_guide_prompt(
    topic: str,
    style: SummaryStyle = SummaryStyle.PARAGRAPH,
    word_count: int = 300,
    difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
) -> str:
    if style is SummaryStyle.BULLET_POINTS:
        style_instruction = BULLET_STYLE_INSTRUCTION
    else:
        style_instruction = (
            "FORMAT AS PROSE (PARAGRAPHS). Use standard paragraphs to structure the content. "
            "ABSOLUTELY NO BULLET POINTS. NO LISTS. Write in full sentences."
        )

    min_words, max_words = target_word_range(word_count)
    return TOPIC_GUIDE_PROMPT.format(
        topic=topic,
        style_instruction=style_instruction,
        min_words=min_words,
        max_words=max_words,
        difficulty=difficulty.value,
        difficulty_instruction=GUIDE_DIFFICULTY_INSTRUCTIONS[difficulty],
        math_rules=MATH_FORMATTING_RULES,
    )


# =============================================================================
# Questions & Flashcards
# =============================================================================

TOPIC_QUESTION_DIFFICULTY = MappingProxyType(
    {
        SummaryDifficulty.BEGINNER: "Create basic questions testing fundamental understanding.",
        SummaryDifficulty.INTERMEDIATE: "Create moderately challenging questions testing practical application.",
        SummaryDifficulty.ADVANCED: "Create challenging questions testing deep understanding and edge cases.",
    }
)

TOPIC_FLASHCARD_DIFFICULTY = MappingProxyType(
    {
        SummaryDifficulty.BEGINNER: "Focus on basic terminology and fundamental concepts.",
        SummaryDifficulty.INTERMEDIATE: "Include practical applications and important techniques.",
        SummaryDifficulty.ADVANCED: "Cover advanced concepts, nuances, and expert-level knowledge.",
    }
)


def difficulty_adjustment(relative: RelativeDifficulty | None) -> str:
    if relative is None:
        return "Difficulty: Match the current set's complexity."
    return f"Difficulty adjustment: {relative.value}. {relative.guidance}"


def build_questions_prompt(
    text: str,
    count: int,
    relative_difficulty: RelativeDifficulty | None = None,
) -> str:
    return "\n\n".join(
        [
            f"Generate {count} multiple choice study questions based on the text below.",
            difficulty_adjustment(relative_difficulty),
            QUESTION_FORMAT,
            f"Text:\n{text}",
        ]
    )


def build_topic_questions_prompt(
    topic: str,
    count: int,
    difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
) -> str:
    return "\n\n".join(
        [
            f"Generate {count} multiple choice study questions about: {topic}",
            f"Difficulty: {difficulty.value} - {TOPIC_QUESTION_DIFFICULTY[difficulty]}",
            QUESTION_FORMAT,
        ]
    )


def build_flashcards_prompt(
    text: str,
    count: int,
    relative_difficulty: RelativeDifficulty | None = None,
) -> str:
    return "\n\n".join(
        [
            f"Generate {count} flashcards (like in Quizlet) based on the following text.",
            FLASHCARD_FORMAT.format(count=count),
            difficulty_adjustment(relative_difficulty),
            FLASHCARD_EXAMPLE,
            MATH_FORMATTING_RULES,
            f"Text:\n{text}",
        ]
    )


def build_topic_flashcards_prompt(
    topic: str,
    count: int,
    difficulty: SummaryDifficulty = SummaryDifficulty.INTERMEDIATE,
) -> str:
    return "\n\n".join(
        [
            f"Generate {count} flashcards (like in Quizlet) about: {topic}",
            f"Difficulty: {difficulty.value} - {TOPIC_FLASHCARD_DIFFICULTY[difficulty]}",
            FLASHCARD_FORMAT.format(count=count),
            FLASHCARD_EXAMPLE,
            MATH_FORMATTING_RULES,
        ]
    )


CONVERT_TO_FLASHCARDS_PROMPT = """Convert this into flashcards. Create only as many as truly needed (1-3 max). If one flashcard captures it well, make just one.

Output ONLY this format, nothing else:

[FRONT]
short term or question
[BACK]
brief answer
[END]

EXAMPLE OUTPUT:
[FRONT]
What is photosynthesis?
[BACK]
Process where plants convert sunlight to energy using chlorophyll.
[END]

STRICT RULES:
- Start IMMEDIATELY with [FRONT], no intro text
- Each [FRONT] has exactly one [BACK] and one [END]
- Front: 2-8 words (term or question)
- Back: 5-20 words (definition or answer)
- NO markdown, NO bullets, NO numbering
- Create 1-3 cards only

TEXT TO CONVERT:
{text}"""


def build_convert_prompt(ai_response: str) -> str:
    return CONVERT_TO_FLASHCARDS_PROMPT.format(text=ai_response)


# =============================================================================
# Topic Suggestions
# =============================================================================

TOPIC_SUGGESTION_SYSTEM_PROMPT = (
    "You are an expert educational advisor. You suggest topics with STRICT tag formatting. "
    "Do not add any text outside the required tags. No markdown headings or bullets outside tags."
)

TOPIC_SUGGESTIONS_PROMPT = """{history}

Suggest 5 interesting and diverse topics for the user to learn next. Make sure topics are different from what they've already studied.

Use the following EXACT format for each suggestion (no extra blank lines between tags):

[TITLE]
Topic title (3-7 words)
[DESCRIPTION]
Brief description of what they'll learn (1-2 sentences)
[CATEGORY]
One of: Technology, Science, History, Arts, Business, Language, Health, Mathematics, Philosophy, or Other
[DIFFICULTY]
One of: Beginner, Intermediate, or Advanced
[TIME]
Estimated study time (e.g., "1-2 hours", "2-3 hours")
[ICON]
Icon name (e.g., brain, atom, building.columns, chart.line.uptrend.xyaxis, book, globe, heart, function, lightbulb)
[END]

IMPORTANT - FOLLOW ALL:
1) Do NOT use JSON or markdown.
2) Keep EXACT tags as shown. No extra tags or bullets.
3) Make topics diverse and interesting.
4) Only use simple lowercase icon names like the examples."""


def build_topic_suggestions_prompt(existing_topics: Sequence[str]) -> str:
    if existing_topics:
        history = f"The user has studied: {', '.join(existing_topics)}"
    else:
        history = "The user is new and has no study history."
    return TOPIC_SUGGESTIONS_PROMPT.format(history=history)


# =============================================================================
# Tutor Chat
# =============================================================================

TUTOR_SYSTEM_PROMPT = r"""You are a concise study tutor. Follow these rules EXACTLY:

CRITICAL RULES:
1. Start with content immediately. NEVER open with "Certainly", "Sure", "Here's", etc.
2. MAXIMUM 100 words total unless solving a math problem. Be extremely concise.
3. Use **bold** for key terms only, never for section headings.
4. Use • for bullets and numbered lists (1. 2. 3.) for steps.
5. Never echo instructions or the study set name.
6. SECTION HEADINGS MUST BE TAGS like [SKILL], [STEPS], [SOLUTION] (no markdown headings, no colons). Tags are optional for simple conversational answers.

MATH FORMATTING (use LaTeX with $ delimiters):
- Wrap ALL math expressions in single dollar signs: $...$
- Fractions: $\frac{a}{b}$ (NOT a/b for complex fractions)
- Exponents: $x^{2}$, $e^{-x}$
- Roots: $\sqrt{x}$, $\sqrt[3]{x}$
- Greek: $\alpha$, $\beta$, $\pi$, $\theta$
- Operators: $\times$, $\div$, $\pm$, $\cdot$
- Example: The quadratic formula is $x = \frac{-b \pm \sqrt{b^{2} - 4ac}}{2a}$

MATH PROBLEM DETECTION:
If the user asks to solve, calculate, or work out a specific math problem (equation, expression, word problem with numbers), you MUST:
1. Start your response with the [MATHSTEP] tag
2. Show a numbered step-by-step solution
3. Use → to show transformations
4. End with the [SOLUTION] tag containing the final answer
5. Optionally add [TIP] with the key concept used"""

FORMAT_INSTRUCTIONS = MappingProxyType(
    {
        TutorResponseFormat.STANDARD: """For general questions, respond in 2-4 sentences. Max 80 words.
If you need to list points, start with the [KEYPOINTS] tag.
If explaining steps, start with the [STEPS] tag.
Otherwise, answer directly without any tags.""",
        TutorResponseFormat.COMPARISON: """YOU MUST START YOUR RESPONSE WITH: [COMPARE]

EXACT FORMAT:
[COMPARE]
**[Topic A]** vs **[Topic B]**
[KEYPOINTS]
• **Similarity**: [What they share]
• **Difference**: [How A differs] vs [How B differs]
• **Difference**: [Another contrast]
[SUMMARY]
[One sentence: the key distinction.]

All tags MUST be ALL CAPS. Max 80 words total.""",
        TutorResponseFormat.MNEMONIC: """YOU MUST START YOUR RESPONSE WITH: [MNEMONIC]

EXACT FORMAT:
[MNEMONIC]
**[Catchy phrase or acronym]**
[BREAKDOWN]
• [Letter/Word] → [What it stands for]
• [Letter/Word] → [What it stands for]
[TIP]
[One sentence on why this helps you remember.]

All tags MUST be ALL CAPS. Max 80 words total.""",
        TutorResponseFormat.STEPS: """YOU MUST START YOUR RESPONSE WITH: [STEPS]

EXACT FORMAT:
[STEPS]
1. **[Action verb]**: [Brief explanation]
2. **[Action verb]**: [Brief explanation]
3. **[Action verb]**: [Brief explanation]

Max 5 steps. Each step is ONE line only. Max 80 words total.""",
        TutorResponseFormat.EXAMPLE: """YOU MUST START YOUR RESPONSE WITH: [SCENARIO]

EXACT FORMAT:
[SCENARIO]
[A relatable real-world situation in 1-2 sentences]
[CONNECTION]
[How it connects to the concept in 1-2 sentences]
[TAKEAWAY]
[One sentence lesson.]

All tags MUST be ALL CAPS. Max 80 words total.""",
        TutorResponseFormat.SIMPLIFY: """YOU MUST START YOUR RESPONSE WITH: [SIMPLE]

EXACT FORMAT:
[SIMPLE]
[2-3 sentences in everyday language. No jargon. As if explaining to a friend who knows nothing about this.]

Max 60 words after the tag.""",
        TutorResponseFormat.KEY_POINTS: """YOU MUST START YOUR RESPONSE WITH: [KEYPOINTS]

EXACT FORMAT:
[KEYPOINTS]
• [Most important point]
• [Second point]
• [Third point]

Max 4 bullets. Each bullet is one clear sentence. Max 60 words total.""",
        TutorResponseFormat.ANALOGY: """YOU MUST START YOUR RESPONSE WITH: [ANALOGY]

EXACT FORMAT:
[ANALOGY]
**[Familiar comparison from cooking, sports or daily life]**
[MAPPING]
• [Concept part] ↔ [Analogy part]
• [Concept part] ↔ [Analogy part]
[INSIGHT]
[One sentence takeaway.]

All tags MUST be ALL CAPS. Max 80 words total.""",
        TutorResponseFormat.MISTAKES: """YOU MUST START YOUR RESPONSE WITH: [MISTAKES]

EXACT FORMAT:
[MISTAKES]
✗ **[Error 1]** → [Why it's wrong]
✓ [How to do it correctly]
✗ **[Error 2]** → [Why it's wrong]
✓ [How to do it correctly]
[EXAMPLE]
[One concrete worked example, e.g. "To simplify 12/18: GCF=6, so 12/6=2, 18/6=3, answer=2/3"]

All tags MUST be ALL CAPS. Max 2 mistakes. Max 100 words total.""",
        TutorResponseFormat.MATH_SOLVER: r"""YOU MUST START YOUR RESPONSE WITH: [MATHSTEP]

You are solving a specific math problem step by step. Break it down clearly.

FORMAT:
[MATHSTEP]
**Problem:** [Restate the problem briefly]

**Step 1:** [What you're doing]
→ $[LaTeX expression showing the work]$

**Step 2:** [Next operation]
→ $[LaTeX expression]$

**Step 3:** [Continue as needed]
→ $[LaTeX expression]$

[SOLUTION]
**Answer:** $[Final answer in LaTeX]$

[TIP]
[One sentence explaining the key concept or method used.]

MATH FORMATTING (use LaTeX with $ delimiters):
- Wrap ALL math in $...$
- Fractions: $\frac{numerator}{denominator}$
- Exponents: $x^{2}$, $a^{n}$
- Roots: $\sqrt{x}$, $\sqrt[n]{x}$
- Use → for step transitions and $=$ inside expressions
- Example: $2x + 5 = 15$ → $2x = 10$ → $x = 5$

Keep steps atomic (one operation per step). Maximum 6 steps.""",
    }
)


def get_format_instructions(response_format: TutorResponseFormat) -> str:
    """Output template for a tutor response format."""
    return FORMAT_INSTRUCTIONS[response_format]


def build_tutor_system_prompt(response_format: TutorResponseFormat = TutorResponseFormat.STANDARD) -> str:
    return f"{TUTOR_SYSTEM_PROMPT}\n\n{get_format_instructions(response_format)}"


def augment_chat_messages(messages: Sequence[ChatTurn], context_string: str) -> list[ChatTurn]:
    """
    Inject study context into the most recent user turn.

    Earlier turns are left untouched. Without any user turn the history is
    returned unchanged.
    """
    augmented = list(messages)
    for index in range(len(augmented) - 1, -1, -1):
        turn = augmented[index]
        if turn.role == "user":
            augmented[index] = ChatTurn(
                role="user",
                content=(
                    f"[CONTEXT]\n{context_string}\n[END CONTEXT]\n\n"
                    f"[QUESTION]\n{turn.content}"
                ),
            )
            break
    return augmented


# =============================================================================
# Vision
# =============================================================================

DEFAULT_VISION_MESSAGE = "Analyze this image and help me understand it."

VISION_SYSTEM_PROMPT = r"""You are a study tutor analyzing an image. Output must use TAGS ONLY (no markdown headings or colons). If you cannot include the required tags, return: [SKILL] Unable to comply
[KEYTAKEAWAY] Add tags and retry.

TAGS:
- Math: [SKILL], [MATHSTEP] (one block with numbered steps), [SOLUTION], [KEYTAKEAWAY], optional [TIP]
- Work check: [WORKCHECK], [ERROR STEP], [CORRECTION], [SOLUTION], [KEYTAKEAWAY]
- Science/graphs: [SKILL], [KEYPOINTS] or [EXPLANATION], [KEYTAKEAWAY], optional [TIP]
- Code: [SKILL], [STEPS] (numbered), [KEYTAKEAWAY], optional [TIP]
- Writing: [SKILL], [KEYPOINTS], [EXPLANATION], [KEYTAKEAWAY]
- Notes/screens: [SUMMARY], [STEPS] or [KEYPOINTS], [KEYTAKEAWAY]

HARD RULES:
- Start immediately with no preamble. Output nothing outside tags.
- For math, use a SINGLE [MATHSTEP] block with at least 2 numbered lines showing transformations.
- Math must be LaTeX inside single $...$ only. Allowed: $\frac{a}{b}$, $x^{2}$, $\sqrt{x}$, $\times$, $\div$, $\pm$, $\cdot$. Forbidden: \( \), \[ \], $$, \boxed, code fences.
- Keep only the tags relevant to the chosen template. Do NOT add extra sections.
- Be concise; prefer numbered steps or bullets.

EXAMPLES (copy the tag order and brevity):
- Math:
    [SKILL] Simplify negative exponents
    [MATHSTEP] 1) $\frac{4x^{-2}y^{3}}{ka^{-3}}$ → $\frac{4y^{3}}{k} \cdot \frac{a^{3}}{x^{2}}$
    2) Multiply numerators and denominators → $\frac{4a^{3}y^{3}}{kx^{2}}$
    [SOLUTION] $\frac{4a^{3}y^{3}}{kx^{2}}$
    [KEYTAKEAWAY] Flip negative exponents across the fraction bar to make them positive.
- Work check:
    [WORKCHECK]
    [ERROR STEP] Sign flipped on line 2
    [CORRECTION] Distribute: $-3(x-2)=-3x+6$
    [SOLUTION] $y=-3x+11$
    [KEYTAKEAWAY] Track negatives when distributing.
- Code:
    [SKILL] Python loop bug
    [STEPS] 1) Use range(n), not range(n+1)
    2) Initialise the sum outside the loop
    [KEYTAKEAWAY] Loop bounds and initialisation placement matter.

CONTEXT (for reference, may be empty):
{context}"""


def build_vision_system_prompt(context_string: str) -> str:
    return VISION_SYSTEM_PROMPT.replace(
        "{context}", context_string or "No additional context provided."
    )


def build_vision_user_message(user_message: str) -> str:
    return user_message if user_message.strip() else DEFAULT_VISION_MESSAGE
