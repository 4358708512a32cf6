"""Chapters command implementation."""

from __future__ import annotations

import asyncio
from dataclasses import replace
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from bookmind.models.book import BookSession
from bookmind.tui.controller import ReaderController
from bookmind.tui.pipeline import build_analyst
from bookmind.tui.state import ReaderConfig


class CommandError(Exception):
    """A command could not finish; the message is shown to the user."""


def build_controller(config: ReaderConfig | None = None) -> ReaderController:
    """Controller for one-shot commands: a single book and no login gate."""
    config = replace(
        config or ReaderConfig.from_env(),
        allowed_emails=[],
        library_mode=False,
    )
    return ReaderController(build_analyst(config), config)


async def open_book(
    controller: ReaderController,
    book_path: Path,
    console: Console,
    quiet: bool = False,
) -> BookSession:
    """Extract a book and identify its chapters, raising CommandError on failure."""
    if quiet:
        session = await controller.upload(book_path)
    else:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            progress.add_task(f"Reading {book_path.name}...", total=None)
            session = await controller.upload(book_path)

    if session is None:
        raise CommandError(controller.state.error or "Failed to process the book.")
    return session


def print_book_info(session: BookSession, console: Console) -> None:
    """Show the book summary panel."""
    info_lines = [
        f"[bold]{session.file_name}[/]",
        "",
        f"[dim]Chapters:[/] {len(session.chapters)}",
        f"[dim]Pages read as:[/] {'Images (visual mode)' if session.is_scanned_mode else 'Text'}",
        f"[dim]Extracted characters:[/] {len(session.pdf_text):,}",
    ]
    if session.is_scanned_mode:
        info_lines.append("")
        info_lines.append(
            "[yellow]Scanned document detected. Analysis reads the PDF directly "
            "and may take longer.[/]"
        )

    console.print()
    console.print(Panel("\n".join(info_lines), title="Book Information", border_style="green"))


def print_chapter_table(session: BookSession, console: Console) -> None:
    """Show the identified chapters."""
    table = Table(title="Chapters", show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim", width=6)
    table.add_column("Title", style="white")
    table.add_column("About", style="dim")

    for chapter in session.chapters:
        table.add_row(chapter.number, chapter.title, chapter.description)

    console.print()
    console.print(table)
    console.print()


def execute_chapters(
    book_path: Path, console: Console, config: ReaderConfig | None = None
) -> None:
    """Execute the chapters command."""

    async def _run() -> BookSession:
        return await open_book(build_controller(config), book_path, console)

    session = asyncio.run(_run())
    print_book_info(session, console)
    print_chapter_table(session, console)
