"""Analyze command implementation."""

from __future__ import annotations

import asyncio
from pathlib import Path

import questionary
from questionary import Style
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from bookmind.commands.chapters import CommandError, build_controller, open_book
from bookmind.models.analysis import ANALYSIS_OPTIONS, AnalysisType, get_analysis_option
from bookmind.models.book import BookSession, Chapter
from bookmind.tui.controller import ReaderController
from bookmind.tui.state import ReaderConfig

# Custom questionary style
PICKER_STYLE = Style([
    ("qmark", "fg:cyan bold"),
    ("question", "bold"),
    ("answer", "fg:cyan bold"),
    ("pointer", "fg:cyan bold"),
    ("highlighted", "fg:cyan bold"),
    ("instruction", "fg:gray"),
])


def resolve_chapter(session: BookSession, selection: str) -> Chapter:
    """Find a chapter by its printed number, falling back to its 1-based position."""
    selection = selection.strip()
    for chapter in session.chapters:
        if chapter.number.strip().lower() == selection.lower():
            return chapter

    if selection.isdigit():
        position = int(selection)
        if 1 <= position <= len(session.chapters):
            return session.chapters[position - 1]

    raise CommandError(
        f"No chapter '{selection}'. Use 'bookmind chapters' to list chapter numbers."
    )


def pick_chapter(session: BookSession) -> Chapter | None:
    """Let the user choose a chapter with the arrow keys."""
    choices = [
        questionary.Choice(title=f"{chapter.number}. {chapter.title}", value=chapter)
        for chapter in session.chapters
    ]
    return questionary.select(
        "Select a chapter to analyze:",
        choices=choices,
        style=PICKER_STYLE,
        instruction="(Use arrow keys, Enter to select)",
    ).ask()


def pick_analysis_type() -> AnalysisType | None:
    choices = [
        questionary.Choice(title=f"{option.label} - {option.description}", value=option.type)
        for option in ANALYSIS_OPTIONS
    ]
    return questionary.select(
        "Analysis style:",
        choices=choices,
        style=PICKER_STYLE,
    ).ask()


async def run_analysis(
    controller: ReaderController,
    chapter: Chapter,
    analysis_type: AnalysisType,
    console: Console,
) -> str:
    """Analyze one chapter of the open book, raising CommandError on failure."""
    option = get_analysis_option(analysis_type)
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(
            f"{option.label} analysis of {chapter.title[:40]}...", total=None
        )
        result = await controller.analyze(chapter, analysis_type)

    if result is None:
        raise CommandError(controller.state.error or "Failed to generate analysis.")
    return result


def print_analysis(chapter: Chapter, analysis_type: AnalysisType, text: str, console: Console) -> None:
    option = get_analysis_option(analysis_type)
    console.print()
    console.print(
        Panel(
            Markdown(text),
            title=f"Chapter {chapter.number}: {chapter.title}",
            subtitle=f"{option.label} Analysis",
            border_style="cyan",
        )
    )
    console.print("[dim]AI generated content may contain inaccuracies.[/]")


def execute_analyze(
    book_path: Path,
    chapter_selection: str | None,
    analysis_type: AnalysisType | None,
    output_file: Path | None,
    console: Console,
    config: ReaderConfig | None = None,
) -> None:
    """Execute the analyze command."""

    async def _run() -> tuple[Chapter, AnalysisType, str] | None:
        controller = build_controller(config)
        session = await open_book(controller, book_path, console)

        if chapter_selection is None:
            # questionary runs its own loop; keep it off this one
            chapter = await asyncio.to_thread(pick_chapter, session)
            if chapter is None:
                return None
        else:
            chapter = resolve_chapter(session, chapter_selection)

        chosen_type = analysis_type
        if chosen_type is None:
            if chapter_selection is None:
                chosen_type = await asyncio.to_thread(pick_analysis_type)
                if chosen_type is None:
                    return None
            else:
                chosen_type = AnalysisType.STANDARD

        text = await run_analysis(controller, chapter, chosen_type, console)
        return chapter, chosen_type, text

    result = asyncio.run(_run())
    if result is None:
        console.print("[dim]Cancelled.[/]")
        return

    chapter, chosen_type, text = result
    print_analysis(chapter, chosen_type, text, console)

    if output_file is not None:
        output_file.write_text(f"# {chapter.title}\n\n{text}\n")
        console.print(f"[green]Saved analysis to {output_file}[/]")
