"""Slide command implementation."""

from __future__ import annotations

import asyncio
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from bookmind.commands.analyze import resolve_chapter, run_analysis
from bookmind.commands.chapters import CommandError, build_controller, open_book
from bookmind.models.analysis import AnalysisType, SlideImage
from bookmind.tui.controller import SLIDE_FAILED_MESSAGE
from bookmind.tui.pipeline import save_slide
from bookmind.tui.state import ReaderConfig


def execute_slide(
    book_path: Path,
    chapter_selection: str,
    analysis_type: AnalysisType,
    output_file: Path,
    console: Console,
    config: ReaderConfig | None = None,
) -> None:
    """Execute the slide command: analyze a chapter and render a slide for it."""

    async def _run() -> SlideImage:
        controller = build_controller(config)
        session = await open_book(controller, book_path, console)
        chapter = resolve_chapter(session, chapter_selection)
        await run_analysis(controller, chapter, analysis_type, console)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Generating slide...", total=None)
            slide = await controller.generate_slide()

        if slide is None:
            raise CommandError(controller.state.error or SLIDE_FAILED_MESSAGE)
        return slide

    slide = asyncio.run(_run())
    saved = save_slide(slide, output_file)
    console.print(f"[green]Saved slide ({slide.mime_type}) to {saved}[/]")
