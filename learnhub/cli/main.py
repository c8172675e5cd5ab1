"""
Typer CLI for the LearnHub AI service.

Commands:
    learnhub summary NOTES.txt             - Summarise study material
    learnhub quiz NOTES.txt                - Multiple-choice questions from material
    learnhub flashcards NOTES.txt          - Flashcards from material
    learnhub topic guide "Photosynthesis"  - Learning guide for a topic
    learnhub topic quiz "Photosynthesis"   - Questions about a topic
    learnhub topic flashcards "Photosynthesis"
    learnhub topic suggest Algebra Biology - Suggest new topics to study
    learnhub chat NOTES.txt                - Interactive tutor with quick prompts
    learnhub vision PHOTO.jpg              - Analyse an image with the vision model
    learnhub prompts "why does"            - Show quick-prompt suggestions
    learnhub convert REPLY.txt             - Turn a tutor reply into flashcards
    learnhub settings show                 - Show model preferences

Usage:
    learnhub --help
    learnhub quiz notes.txt --count 5 --relative harder
    learnhub settings preference cloud_only
"""

from __future__ import annotations

import asyncio
import mimetypes
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence, TypeVar

import httpx
import typer
from loguru import logger
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from config import get_settings

from ..ai.errors import AIError, format_error
from ..ai.model_settings import ModelSettings
from ..ai.models import (
    ChatTurn,
    ModelPreference,
    ParsedFlashcard,
    ParsedQuestion,
    QuickPrompt,
    RelativeDifficulty,
    SummaryDifficulty,
    SummaryStyle,
    TutorContext,
    TutorResponseFormat,
)
from ..ai.providers import LocalModelClient
from ..ai.quick_prompts import get_quick_prompt, select_quick_prompts
from ..ai.selector import ProviderSelector
from ..ai.service import AIService, get_ai_service
from ..ai.tag_parser import split_display_sections

T = TypeVar("T")

app = typer.Typer(
    help="LearnHub: AI study companion (summaries, quizzes, flashcards, tutor)",
    no_args_is_help=True,
)

topic_app = typer.Typer(help="Generate material for a topic without source text")
app.add_typer(topic_app, name="topic")

settings_app = typer.Typer(help="Model preference and Groq (BYOK) settings")
app.add_typer(settings_app, name="settings")

console = Console()

RELATIVE_CHOICES = {
    "easier": RelativeDifficulty.EASIER,
    "same": RelativeDifficulty.SAME,
    "harder": RelativeDifficulty.HARDER,
}


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs (raw model output)"),
) -> None:
    """
    LearnHub AI study companion.

    Uses the on-device model when enabled and available, otherwise Groq
    with your own API key.
    """
    if verbose:
        logger.remove()
        logger.add(sys.stderr, level="DEBUG", format="<level>{message}</level>")


# ========================================
# Helpers
# ========================================


def _run(operation: Callable[[AIService], Awaitable[T]]) -> T:
    """Run one service operation, print any fallback notice and render errors."""
    service = get_ai_service()

    async def runner() -> T:
        try:
            return await operation(service)
        finally:
            notice = await service.pop_fallback_notice()
            if notice:
                rprint(f"[yellow]⚠ {notice}[/yellow]")
            await service.close()

    try:
        return asyncio.run(runner())
    except (AIError, httpx.HTTPError, OSError) as e:
        rprint(f"[bold red]✗ {format_error(e)}[/bold red]")
        raise typer.Exit(code=1)


def _read_text(path: Path) -> str:
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        rprint(f"[red]{path} is empty[/red]")
        raise typer.Exit(code=1)
    return text


def _relative(value: Optional[str]) -> RelativeDifficulty | None:
    if value is None:
        return None
    try:
        return RELATIVE_CHOICES[value.lower()]
    except KeyError:
        raise typer.BadParameter(f"Expected one of: {', '.join(RELATIVE_CHOICES)}") from None


def _style(bullets: bool) -> SummaryStyle:
    return SummaryStyle.BULLET_POINTS if bullets else SummaryStyle.PARAGRAPH


def _model_settings() -> ModelSettings:
    local = LocalModelClient()
    return ModelSettings(local_availability=local.is_available)


def _print_questions(questions: list[ParsedQuestion]) -> None:
    for number, question in enumerate(questions, start=1):
        lines = []
        for letter, option in zip("ABCD", question.options):
            marker = "[green]✓[/green]" if option.strip() == question.answer.strip() else " "
            lines.append(f" {marker} {letter}. {option}")
        if question.explanation:
            lines.append(f"\n[dim]{question.explanation}[/dim]")
        console.print(Panel("\n".join(lines), title=f"Q{number}. {question.question}", title_align="left"))


def _print_flashcards(cards: list[ParsedFlashcard]) -> None:
    table = Table(title=f"Flashcards ({len(cards)})", show_header=True, show_lines=True)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Front", style="cyan")
    table.add_column("Back")
    for number, card in enumerate(cards, start=1):
        table.add_row(str(number), card.front, card.back)
    console.print(table)


def _print_tutor_reply(reply: str) -> None:
    for section in split_display_sections(reply):
        if section.tag is None:
            console.print(section.body)
        else:
            console.print(Panel(section.body or "", title=section.tag, title_align="left"))


# ========================================
# Study Material Commands
# ========================================


@app.command("summary")
def summary(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with study material"),
    bullets: bool = typer.Option(False, "--bullets", help="Bullet points instead of a paragraph"),
    words: int = typer.Option(150, "--words", "-w", min=20, help="Target word count"),
    difficulty: SummaryDifficulty = typer.Option(
        SummaryDifficulty.INTERMEDIATE, "--difficulty", "-d", case_sensitive=False
    ),
) -> None:
    """Summarise study material."""
    text = _read_text(source)
    result = _run(lambda s: s.generate_summary(text, _style(bullets), words, difficulty))
    console.print(Panel(result, title="Summary", title_align="left"))


@app.command("quiz")
def quiz(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with study material"),
    count: int = typer.Option(5, "--count", "-n", min=1, help="Number of questions"),
    relative: Optional[str] = typer.Option(
        None, "--relative", "-r", help="Difficulty relative to the material: easier, same, harder"
    ),
) -> None:
    """Generate multiple-choice questions from study material."""
    text = _read_text(source)
    relative_difficulty = _relative(relative)
    questions = _run(lambda s: s.generate_questions(text, count, relative_difficulty))
    _print_questions(questions)


@app.command("flashcards")
def flashcards(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with study material"),
    count: int = typer.Option(10, "--count", "-n", min=1, help="Number of flashcards"),
    relative: Optional[str] = typer.Option(
        None, "--relative", "-r", help="Difficulty relative to the material: easier, same, harder"
    ),
) -> None:
    """Generate flashcards from study material."""
    text = _read_text(source)
    relative_difficulty = _relative(relative)
    cards = _run(lambda s: s.generate_flashcards(text, count, relative_difficulty))
    _print_flashcards(cards)


@app.command("convert")
def convert(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with a tutor reply"),
) -> None:
    """Convert a tutor reply into a few flashcards (at most 5)."""
    text = _read_text(source)
    cards = _run(lambda s: s.convert_to_flashcards(text))
    _print_flashcards(cards)


# ========================================
# Topic Commands
# ========================================


@topic_app.command("guide")
def topic_guide(
    topic: str = typer.Argument(..., help="Topic to learn about"),
    bullets: bool = typer.Option(False, "--bullets", help="Bullet points instead of prose"),
    words: int = typer.Option(300, "--words", "-w", min=20, help="Target word count"),
    difficulty: SummaryDifficulty = typer.Option(
        SummaryDifficulty.INTERMEDIATE, "--difficulty", "-d", case_sensitive=False
    ),
) -> None:
    """Write a learning guide about a topic."""
    result = _run(lambda s: s.generate_topic_guide(topic, _style(bullets), words, difficulty))
    console.print(Panel(result, title=topic, title_align="left"))


@topic_app.command("quiz")
def topic_quiz(
    topic: str = typer.Argument(..., help="Topic to quiz on"),
    count: int = typer.Option(5, "--count", "-n", min=1, help="Number of questions"),
    difficulty: SummaryDifficulty = typer.Option(
        SummaryDifficulty.INTERMEDIATE, "--difficulty", "-d", case_sensitive=False
    ),
) -> None:
    """Generate multiple-choice questions about a topic."""
    questions = _run(lambda s: s.generate_topic_questions(topic, count, difficulty))
    _print_questions(questions)


@topic_app.command("flashcards")
def topic_flashcards(
    topic: str = typer.Argument(..., help="Topic for the flashcards"),
    count: int = typer.Option(10, "--count", "-n", min=1, help="Number of flashcards"),
    difficulty: SummaryDifficulty = typer.Option(
        SummaryDifficulty.INTERMEDIATE, "--difficulty", "-d", case_sensitive=False
    ),
) -> None:
    """Generate flashcards about a topic."""
    cards = _run(lambda s: s.generate_topic_flashcards(topic, count, difficulty))
    _print_flashcards(cards)


@topic_app.command("suggest")
def topic_suggest(
    studied: Optional[list[str]] = typer.Argument(None, help="Topics you have already studied"),
) -> None:
    """Suggest new topics to study next."""
    suggestions = _run(lambda s: s.generate_topic_suggestions(studied or []))

    table = Table(title="Suggested Topics", show_header=True, show_lines=True)
    table.add_column("Topic", style="cyan")
    table.add_column("Description")
    table.add_column("Category", style="magenta")
    table.add_column("Difficulty")
    table.add_column("Time", style="dim")
    for suggestion in suggestions:
        table.add_row(
            suggestion.title,
            suggestion.description,
            suggestion.category,
            suggestion.difficulty,
            suggestion.estimated_time,
        )
    console.print(table)


# ========================================
# Tutor Commands
# ========================================


@app.command("chat")
def chat(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Text file with study material"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Study set title (default: file name)"),
    summary_file: Optional[Path] = typer.Option(
        None, "--summary", exists=True, dir_okay=False, help="Optional summary to include as context"
    ),
) -> None:
    """
    Interactive tutor over study material.

    Type a question, or use a quick prompt:
        /prompts        list suggestions for your last input
        /<id>           send a quick prompt (e.g. /simplify, /mnemonic)
        /cards          turn the last reply into flashcards
        exit            leave the session
    """
    context = TutorContext(
        original_text=_read_text(source),
        study_set_title=title or source.stem,
        summary=summary_file.read_text(encoding="utf-8").strip() if summary_file else None,
    )

    async def session(service: AIService) -> None:
        history: list[ChatTurn] = []
        last_input = ""

        rprint(f"\n[bold cyan]Tutor: {context.study_set_title}[/bold cyan]")
        rprint("[dim]Ask a question, /prompts for shortcuts, exit to quit[/dim]\n")

        while True:
            entry = Prompt.ask("[bold]You[/bold]").strip()
            if entry.lower() in ("exit", "quit"):
                return
            if not entry:
                continue

            if entry == "/prompts":
                _print_quick_prompts(service.generate_quick_prompts(last_input, history))
                continue

            if entry == "/cards":
                replies = [turn for turn in history if turn.role == "assistant"]
                if not replies:
                    rprint("[yellow]No tutor reply to convert yet[/yellow]")
                    continue
                try:
                    _print_flashcards(await service.convert_to_flashcards(replies[-1].content, context))
                except AIError as e:
                    rprint(f"[bold red]✗ {format_error(e)}[/bold red]")
                continue

            response_format = TutorResponseFormat.STANDARD
            if entry.startswith("/"):
                quick_prompt = get_quick_prompt(entry[1:])
                if quick_prompt is None:
                    rprint(f"[yellow]Unknown quick prompt: {entry}[/yellow]")
                    continue
                entry = quick_prompt.prompt_template
                response_format = quick_prompt.response_format
            else:
                last_input = entry

            history.append(ChatTurn(role="user", content=entry))
            try:
                reply = await service.perform_chat(history, context, response_format)
            except AIError as e:
                history.pop()
                rprint(f"[bold red]✗ {format_error(e)}[/bold red]")
                continue

            notice = await service.pop_fallback_notice()
            if notice:
                rprint(f"[yellow]⚠ {notice}[/yellow]")
            history.append(ChatTurn(role="assistant", content=reply))
            _print_tutor_reply(reply)

    _run(session)


@app.command("vision")
def vision(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Image to analyse"),
    message: str = typer.Option("", "--message", "-m", help="Question about the image"),
    source: Optional[Path] = typer.Option(
        None, "--context", "-c", exists=True, dir_okay=False, help="Study material used as context"
    ),
) -> None:
    """Analyse an image (photo of notes, a problem, a graph) with the vision model."""
    context = TutorContext(
        original_text=_read_text(source) if source else "",
        study_set_title=source.stem if source else image.stem,
    )
    mime_type = mimetypes.guess_type(image.name)[0] or "image/jpeg"
    image_data = image.read_bytes()

    reply = _run(lambda s: s.perform_vision_chat(image_data, message, context, mime_type=mime_type))
    _print_tutor_reply(reply)


@app.command("prompts")
def prompts(
    partial_input: str = typer.Argument("", help="What you are typing (reorders suggestions)"),
) -> None:
    """Show quick-prompt suggestions."""
    _print_quick_prompts(select_quick_prompts(partial_input))


def _print_quick_prompts(suggestions: Sequence[QuickPrompt]) -> None:
    table = Table(title="Quick Prompts", show_header=True)
    table.add_column("ID", style="cyan")
    table.add_column("Label")
    table.add_column("Format", style="magenta")
    table.add_column("Prompt", style="dim")
    for prompt in suggestions:
        table.add_row(prompt.id, prompt.label, prompt.response_format.value, prompt.prompt_template)
    console.print(table)


# ========================================
# Settings Commands
# ========================================


@settings_app.command("show")
def settings_show() -> None:
    """Show the current model preferences."""
    model_settings = _model_settings()

    async def collect() -> tuple[ModelPreference, str, str, str]:
        return (
            await model_settings.preference(),
            await model_settings.api_key(),
            await model_settings.text_model(),
            await model_settings.vision_model(),
        )

    preference, api_key, text_model, vision_model = asyncio.run(collect())
    masked = f"{api_key[:4]}…{api_key[-4:]}" if len(api_key) > 8 else ("set" if api_key else "not set")

    table = Table(title="Model Settings", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Preference", f"{preference.display_name} [dim]({preference.detail})[/dim]")
    table.add_row("On-device model", "available" if model_settings.on_device_available() else "unavailable")
    table.add_row("Groq API key", masked)
    table.add_row("Text model", text_model)
    table.add_row("Vision model", vision_model)
    table.add_row("Preferences file", str(model_settings.settings.preferences_path))
    console.print(table)


@settings_app.command("preference")
def settings_preference(
    value: ModelPreference = typer.Argument(..., case_sensitive=False, help="automatic or cloud_only"),
) -> None:
    """Choose between automatic provider selection and Groq only."""
    asyncio.run(_model_settings().set_preference(value))
    rprint(f"[green]✓[/green] Model preference set to {value.display_name}")


@settings_app.command("key")
def settings_key(
    api_key: str = typer.Argument(..., help="Groq API key (empty string to clear)"),
) -> None:
    """Store your Groq API key."""
    asyncio.run(_model_settings().set_api_key(api_key.strip()))
    rprint("[green]✓[/green] Groq API key saved" if api_key.strip() else "[green]✓[/green] Groq API key cleared")


@settings_app.command("model")
def settings_model(
    name: str = typer.Argument(..., help="Primary Groq text model (empty for default)"),
) -> None:
    """Set the primary Groq text model."""
    model_settings = _model_settings()
    asyncio.run(model_settings.set_text_model(name.strip()))
    rprint(f"[green]✓[/green] Text model: {asyncio.run(model_settings.text_model())}")


@settings_app.command("vision-model")
def settings_vision_model(
    name: str = typer.Argument(..., help="Primary Groq vision model (empty for default)"),
) -> None:
    """Set the primary Groq vision model."""
    model_settings = _model_settings()
    asyncio.run(model_settings.set_vision_model(name.strip()))
    rprint(f"[green]✓[/green] Vision model: {asyncio.run(model_settings.vision_model())}")


@settings_app.command("preview")
def settings_preview() -> None:
    """Show the fallback notice the current preference would produce."""
    local = LocalModelClient()
    selector = ProviderSelector(
        ModelSettings(local_availability=local.is_available),
        unavailable_reason=local.unavailable_reason,
    )
    notice = asyncio.run(selector.preview_fallback_notice())
    if notice:
        rprint(f"[yellow]⚠ {notice}[/yellow]")
    else:
        rprint("[green]✓[/green] No fallback expected with the current preference")


# ========================================
# Entry Point
# ========================================


def main() -> None:
    """CLI entry point."""
    settings = get_settings()

    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<level>{message}</level>",
    )
    if settings.log_file:
        logger.add(settings.log_file, level="DEBUG", rotation="10 MB", retention=3)

    app()


if __name__ == "__main__":
    main()
