"""Helpers shared by the reader screens and CLI commands."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

HTML_SUFFIXES = {".html", ".htm"}

if TYPE_CHECKING:
    from bookmind.core.gemini_client import BookAnalyst
    from bookmind.models.analysis import AnalysisType, SlideImage
    from bookmind.models.book import BookSession, Chapter
    from bookmind.tui.state import ReaderConfig


def scan_for_books(directory: Path) -> list[Path]:
    """Find all .pdf files in directory."""
    books = list(directory.glob("*.pdf")) + list(directory.glob("*.PDF"))
    return sorted(set(books), key=lambda p: p.name.lower())


def format_file_size(size_bytes: int) -> str:
    """Format file size in human-readable form."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def build_analyst(config: "ReaderConfig") -> "BookAnalyst":
    """Create the Gemini analyst described by a config."""
    from bookmind.core.gemini_client import BookAnalyst

    return BookAnalyst(
        model=config.model,
        tts_model=config.tts_model,
        image_model=config.image_model,
        voice=config.voice,
    )


def slugify(text: str) -> str:
    """Filesystem-friendly slug."""
    clean = re.sub(r"[^\w\s-]", "", text).strip()
    return re.sub(r"[-\s]+", "_", clean) or "chapter"


def get_default_output_path(
    book_path: Path,
    chapter: "Chapter",
    analysis_type: "AnalysisType",
    suffix: str,
) -> Path:
    """Default file for an analysis artifact, next to the book."""
    stem = slugify(book_path.stem)
    chapter_slug = slugify(f"ch{chapter.number}_{chapter.title}")[:60]
    return book_path.parent / f"{stem}_{chapter_slug}_{analysis_type.value}{suffix}"


def save_slide(slide: "SlideImage", path: Path) -> Path:
    """Write a slide image, fixing the extension to match its mime type.

    An .html path gets a small page with the image inlined as a data URI.
    """
    if path.suffix.lower() in HTML_SUFFIXES:
        path.write_text(
            f'<img alt="slide" style="max-width:100%" src="{slide.data_uri}">\n',
            encoding="utf-8",
        )
        return path

    if path.suffix.lower() != slide.extension:
        path = path.with_suffix(slide.extension)
    path.write_bytes(slide.data)
    return path


def save_chapter_slide(
    session: "BookSession",
    chapter: "Chapter",
    analysis_type: "AnalysisType",
    slide: "SlideImage",
) -> Path:
    """Save a slide next to the book it was generated from."""
    path = get_default_output_path(
        session.book_path, chapter, analysis_type, slide.extension
    )
    return save_slide(slide, path)
