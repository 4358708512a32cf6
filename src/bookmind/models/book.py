"""Data models for uploaded books and their chapters."""

import itertools
import time
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

# Extracted text under this length forces visual mode
MIN_TEXT_LENGTH = 500

_session_counter = itertools.count(1)


class Chapter(BaseModel):
    """A chapter identified in a book."""

    model_config = ConfigDict(frozen=True)

    number: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)

    def same_as(self, other: "Chapter | None") -> bool:
        """Chapters match on (number, title), never on description."""
        if other is None:
            return False
        return self.number == other.number and self.title == other.title


class ExtractedDocument(BaseModel):
    """Page-segmented text pulled out of a PDF."""

    text: str
    page_count: int
    is_scanned: bool = False
    image_page_count: int = 0

    @property
    def text_length(self) -> int:
        return len(self.text)

    @property
    def needs_visual_mode(self) -> bool:
        """True when downstream requests must send the whole document."""
        return self.is_scanned or self.text_length < MIN_TEXT_LENGTH


def new_session_id() -> str:
    """Opaque, time-derived session identifier."""
    return f"{time.time_ns():x}-{next(_session_counter)}"


class BookSession(BaseModel):
    """An uploaded book held in memory for the lifetime of the process."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_session_id)
    file_name: str
    source_path: Path | None = None
    upload_timestamp: datetime = Field(default_factory=datetime.now)
    chapters: tuple[Chapter, ...]
    pdf_text: str = ""
    pdf_bytes: bytes = b""
    is_scanned_mode: bool = False

    @property
    def book_path(self) -> Path:
        """Where the book was opened from, falling back to its bare file name."""
        return self.source_path or Path(self.file_name)

    def next_chapter(self, chapter: Chapter) -> Chapter | None:
        """Chapter following the given one, or None for the last/unknown."""
        for i, candidate in enumerate(self.chapters):
            if candidate.same_as(chapter):
                if i + 1 < len(self.chapters):
                    return self.chapters[i + 1]
                return None
        return None
