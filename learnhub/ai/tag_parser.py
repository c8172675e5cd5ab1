"""
Tag-format parser for semi-structured LLM output.

The models are asked to answer in an own-line tag grammar instead of JSON:

    [QUESTION]
    What is 2 + 2?
    [ANSWER]
    4
    [OPTION]
    4
    ...
    [END]

Models frequently break that grammar (inline tags, closing tags, missing
[END], several records run together), so parsing happens in stages:

1. Normalisation: every known tag is moved onto its own line
2. Segmentation: text is split on [END]; a trailing block without one is kept
3. Field extraction: a line-by-line state machine with commit-on-transition
4. Field cleaning: LaTeX delimiter conversion and placeholder stripping

Parsing never raises; callers decide what an empty result means.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Mapping

from loguru import logger

# =============================================================================
# Tag Vocabulary
# =============================================================================

END_TAG = "[END]"

# Every tag the normaliser moves onto its own line.
STRUCTURAL_TAGS = (
    "[QUESTION]",
    "[ANSWER]",
    "[OPTION]",
    "[EXPLANATION]",
    "[FRONT]",
    "[BACK]",
    "[TITLE]",
    "[DESCRIPTION]",
    "[CATEGORY]",
    "[DIFFICULTY]",
    "[TIME]",
    "[ICON]",
    END_TAG,
)

# Tags used by tutor replies for display grouping only.
DISPLAY_TAGS = frozenset(
    {
        "ANALOGY",
        "BREAKDOWN",
        "COMPARE",
        "CONNECTION",
        "CORRECTION",
        "ERROR STEP",
        "EXAMPLE",
        "EXPLANATION",
        "INSIGHT",
        "KEYPOINTS",
        "KEYTAKEAWAY",
        "MAPPING",
        "MATHSTEP",
        "MISTAKES",
        "MNEMONIC",
        "SCENARIO",
        "SIMPLE",
        "SKILL",
        "SOLUTION",
        "STEPS",
        "SUMMARY",
        "TAKEAWAY",
        "TIP",
        "WORKCHECK",
    }
)

_PLACEHOLDER_PATTERN = re.compile(r"<[^>]*>")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_DISPLAY_TAG_LINE = re.compile(r"^\s*\[([A-Z][A-Z ]*[A-Z])\]\s*(.*)$")


def closing_tag(tag: str) -> str:
    """``[OPTION]`` -> ``[/OPTION]``."""
    return f"[/{tag[1:]}"


# =============================================================================
# Text Cleaning
# =============================================================================


def normalize_tags(text: str, tags: tuple[str, ...] = STRUCTURAL_TAGS) -> str:
    """Put every opening tag on its own line and turn closing tags into line breaks."""
    result = text
    for tag in tags:
        result = result.replace(tag, f"\n{tag}\n")
    for tag in tags:
        result = result.replace(closing_tag(tag), "\n")
    return result


def clean_math(text: str) -> str:
    r"""Convert ``\[...\]`` to ``$$...$$`` and ``\(...\)`` to ``$...$``."""
    return (
        text.replace("\\[", "$$")
        .replace("\\]", "$$")
        .replace("\\(", "$")
        .replace("\\)", "$")
    )


def strip_placeholders(text: str) -> str:
    """Remove ``<Question text>``-style remnants copied from the instructions."""
    return _PLACEHOLDER_PATTERN.sub("", text).strip()


def normalize_whitespace(text: str) -> str:
    return _WHITESPACE_PATTERN.sub(" ", text).strip()


def clean_question_field(text: str) -> str:
    return strip_placeholders(clean_math(text))


def clean_flashcard_field(text: str) -> str:
    return clean_math(text).strip()


# =============================================================================
# Schemas
# =============================================================================

TaggedRecord = dict[str, "str | list[str]"]


@dataclass(frozen=True)
class TagSchema:
    """
    Describes one record type in the tag grammar.

    Attributes:
        fields: Tag line -> field name
        required: Fields that must be non-empty for a record to be kept
        repeated: Fields collected as lists (one entry per tag occurrence)
        pair_fields: For two-field records, commit as soon as both are filled
        restart_field: Seeing this tag again on a complete record starts a new one
        cleaner: Per-field post-processing
    """

    fields: Mapping[str, str]
    required: tuple[str, ...]
    repeated: frozenset[str] = field(default_factory=frozenset)
    pair_fields: tuple[str, str] | None = None
    restart_field: str | None = None
    cleaner: Callable[[str], str] = str.strip


QUESTION_SCHEMA = TagSchema(
    fields={
        "[QUESTION]": "question",
        "[ANSWER]": "answer",
        "[OPTION]": "options",
        "[EXPLANATION]": "explanation",
    },
    required=("question", "answer"),
    repeated=frozenset({"options"}),
    restart_field="question",
    cleaner=clean_question_field,
)

FLASHCARD_SCHEMA = TagSchema(
    fields={"[FRONT]": "front", "[BACK]": "back"},
    required=("front", "back"),
    pair_fields=("front", "back"),
    cleaner=clean_flashcard_field,
)

TOPIC_SUGGESTION_SCHEMA = TagSchema(
    fields={
        "[TITLE]": "title",
        "[DESCRIPTION]": "description",
        "[CATEGORY]": "category",
        "[DIFFICULTY]": "difficulty",
        "[TIME]": "estimated_time",
        "[ICON]": "icon",
    },
    required=("title", "description"),
    restart_field="title",
)


# =============================================================================
# Block Scanner
# =============================================================================


class _BlockScanner:
    """
    Line-by-line state machine for one [END]-delimited block.

    States: idle (``field is None``) or capturing a field. A tag line commits
    the field being captured and starts capturing the next one.
    """

    def __init__(self, schema: TagSchema):
        self.schema = schema
        self.records: list[TaggedRecord] = []
        self.current: TaggedRecord = {}
        self.field: str | None = None
        self.buffer: list[str] = []

    def feed(self, line: str) -> None:
        tag = line.strip()
        next_field = self.schema.fields.get(tag)

        if next_field is None:
            if self.field is not None:
                self.buffer.append(line)
            return

        self._commit_field()
        if next_field == self.schema.restart_field and self._is_complete(self.current):
            self._flush_record()
        self.field = next_field
        self.buffer = []

    def finish(self) -> list[TaggedRecord]:
        self._commit_field()
        self._flush_record()
        return self.records

    def _commit_field(self) -> None:
        name = self.field
        self.field = None
        if name is None:
            return

        value = "\n".join(self.buffer).strip()
        self.buffer = []
        if not value:
            return

        cleaned = self.schema.cleaner(value)
        if not cleaned:
            return

        if name in self.schema.repeated:
            self.current.setdefault(name, []).append(cleaned)
        else:
            self.current[name] = cleaned

        pair = self.schema.pair_fields
        if pair and all(self.current.get(f) for f in pair):
            self._flush_record()

    def _flush_record(self) -> None:
        record, self.current = self.current, {}
        if self._is_complete(record):
            self.records.append(record)
        elif record:
            missing = [f for f in self.schema.required if not record.get(f)]
            logger.debug(f"Dropping incomplete record (missing {', '.join(missing)})")

    def _is_complete(self, record: TaggedRecord) -> bool:
        return all(record.get(f) for f in self.schema.required)


def parse_tagged_blocks(raw_text: str | None, schema: TagSchema) -> list[TaggedRecord]:
    """
    Extract records of ``schema`` from raw model output.

    Returns:
        Records in output order; empty when nothing usable was found
    """
    if not raw_text:
        return []

    content = normalize_tags(raw_text)
    records: list[TaggedRecord] = []

    for block in content.split(END_TAG):
        block = block.strip()
        if not block:
            continue

        scanner = _BlockScanner(schema)
        for line in block.splitlines():
            scanner.feed(line)
        records.extend(scanner.finish())

    return records


# =============================================================================
# Display Sections (tutor replies)
# =============================================================================


@dataclass(frozen=True)
class DisplaySection:
    """A run of tutor output under one display tag (``None`` for untagged text)."""

    tag: str | None
    body: str


def split_display_sections(text: str) -> list[DisplaySection]:
    """
    Group a tutor reply by its display tags.

    A tag may sit alone on its line or be followed by inline content
    (``[SKILL] Simplify exponents``). Unknown bracketed text stays in the body.
    """
    sections: list[DisplaySection] = []
    tag: str | None = None
    lines: list[str] = []

    def flush() -> None:
        body = "\n".join(lines).strip()
        if tag is not None or body:
            sections.append(DisplaySection(tag=tag, body=body))

    for line in text.splitlines():
        match = _DISPLAY_TAG_LINE.match(line)
        if match and match.group(1) in DISPLAY_TAGS:
            flush()
            tag = match.group(1)
            lines = [match.group(2)] if match.group(2) else []
        else:
            lines.append(line)

    flush()
    return sections
