"""Locate command implementation."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from bookmind.core.chapter_locator import (
    MIN_CHAPTER_CHARS,
    find_chapter_end,
    find_chapter_start,
    locate,
)
from bookmind.core.pdf_parser import PdfTextExtractor

PREVIEW_CHARS = 600


def execute_locate(
    book_path: Path,
    title: str,
    next_title: str | None,
    console: Console,
) -> None:
    """Execute the locate command without calling any remote service."""
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task(f"Extracting {book_path.name}...", total=None)
        document = PdfTextExtractor(book_path).extract()

    full_text = document.text
    start = find_chapter_start(full_text, title)
    if start is None:
        console.print(f"[yellow]'{title}' was not found in the extracted text.[/]")
        if document.is_scanned:
            console.print("[dim]This looks like a scanned document; analysis would use visual mode.[/]")
        return

    end = find_chapter_end(full_text, start, title, next_title)
    content = locate(full_text, title, next_title) or ""

    info_lines = [
        f"[dim]Start offset:[/] {start:,} of {len(full_text):,}",
        f"[dim]End offset:[/] {end:,}",
        f"[dim]Characters:[/] {len(content):,}",
    ]
    if len(content) < MIN_CHAPTER_CHARS:
        info_lines.append(
            f"[yellow]Shorter than {MIN_CHAPTER_CHARS} characters; "
            "analysis would fall back to the whole document.[/]"
        )

    preview = content[:PREVIEW_CHARS]
    if len(content) > PREVIEW_CHARS:
        preview += "..."

    console.print()
    console.print(Panel("\n".join(info_lines), title=title, border_style="green"))
    console.print(Panel(preview or "[dim](empty)[/]", title="Preview", border_style="dim"))
