"""Speak command implementation."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from bookmind.commands.analyze import resolve_chapter, run_analysis
from bookmind.commands.chapters import CommandError, build_controller, open_book
from bookmind.core.audio import SAMPLE_RATE, decode_pcm, write_wav
from bookmind.models.analysis import AnalysisType
from bookmind.tui.state import ReaderConfig

log = logging.getLogger(__name__)

SPEECH_FAILED_MESSAGE = "Could not generate speech. Please try again."


def execute_speak(
    book_path: Path,
    chapter_selection: str,
    analysis_type: AnalysisType,
    output_file: Path,
    console: Console,
    config: ReaderConfig | None = None,
) -> None:
    """Execute the speak command: analyze a chapter and narrate it to a WAV file."""

    async def _run() -> bytes:
        controller = build_controller(config)
        session = await open_book(controller, book_path, console)
        chapter = resolve_chapter(session, chapter_selection)
        text = await run_analysis(controller, chapter, analysis_type, console)

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task("Generating audio...", total=None)
            try:
                return await controller.analyst.synthesize_speech(text)
            except Exception as e:
                log.error(f"Speech synthesis failed: {e}")
                raise CommandError(SPEECH_FAILED_MESSAGE) from e

    pcm = asyncio.run(_run())
    if output_file.suffix.lower() != ".wav":
        output_file = output_file.with_suffix(".wav")
    write_wav(output_file, pcm, SAMPLE_RATE)

    duration = decode_pcm(pcm, SAMPLE_RATE).duration
    minutes, seconds = divmod(int(duration), 60)
    console.print(f"[green]Saved narration ({minutes}:{seconds:02d}) to {output_file}[/]")
