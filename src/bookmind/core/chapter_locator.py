"""Locate the text of a single chapter inside a book's full text."""

import logging
import re

log = logging.getLogger(__name__)

# First matches inside this leading fraction of the text are assumed to be TOC hits
TOC_REGION_RATIO = 0.05

# Partial-title fallback only applies to titles longer than this many words
SHORT_TITLE_MIN_WORDS = 3
SHORT_TITLE_WORDS = 8

# Skip past the current title before looking for the next one
NEXT_TITLE_SKIP = 50

CHAR_LIMIT = 1_000_000
TRUNCATION_MARKER = "... [Text truncated]"

# Spans shorter than this carry too little signal for analysis
MIN_CHAPTER_CHARS = 200

NUMBERED_PREFIX = re.compile(r"^(Chapter\s+\d+|Part\s+\d+)", re.IGNORECASE)


def build_title_pattern(text: str) -> re.Pattern[str]:
    """Compile a case-insensitive pattern that tolerates whitespace differences."""
    words = text.split()
    return re.compile(r"\s+".join(re.escape(word) for word in words), re.IGNORECASE)


def _pick_start(starts: list[int], text_length: int) -> int | None:
    """Choose a start offset, skipping an early table-of-contents hit."""
    if not starts:
        return None
    if len(starts) > 1 and starts[0] < text_length * TOC_REGION_RATIO:
        return starts[1]
    return starts[0]


def _all_starts(pattern: re.Pattern[str], text: str) -> list[int]:
    return [m.start() for m in pattern.finditer(text)]


def find_chapter_start(full_text: str, chapter_title: str) -> int | None:
    """Run the tiered title search and return the chapter's start offset."""
    if not chapter_title.strip():
        return None

    text_length = len(full_text)

    # Tier 1: exact title, with TOC avoidance
    start = _pick_start(
        _all_starts(build_title_pattern(chapter_title), full_text), text_length
    )
    if start is not None:
        return start

    # Tier 2: first words of a long title, first match only
    words = chapter_title.split()
    if len(words) > SHORT_TITLE_MIN_WORDS:
        short_title = " ".join(words[:SHORT_TITLE_WORDS])
        match = build_title_pattern(short_title).search(full_text)
        if match:
            log.debug(f"Located '{chapter_title}' by its first words")
            return match.start()

    # Tier 3: "Chapter N" / "Part N" prefix, with TOC avoidance
    prefix = NUMBERED_PREFIX.match(chapter_title.strip())
    if prefix:
        start = _pick_start(
            _all_starts(build_title_pattern(prefix.group(0)), full_text), text_length
        )
        if start is not None:
            log.debug(f"Located '{chapter_title}' by numbered prefix")
            return start

    return None


def find_chapter_end(
    full_text: str, start: int, chapter_title: str, next_chapter_title: str | None
) -> int:
    """Exclusive end offset: the next chapter's title or the end of the text."""
    if not next_chapter_title or not next_chapter_title.strip():
        return len(full_text)

    offset = start + min(len(chapter_title), NEXT_TITLE_SKIP)
    match = build_title_pattern(next_chapter_title).search(full_text, offset)
    if match:
        return match.start()
    return len(full_text)


def locate(
    full_text: str, chapter_title: str, next_chapter_title: str | None = None
) -> str | None:
    """Return the text belonging to a chapter, or None when it cannot be found."""
    start = find_chapter_start(full_text, chapter_title)
    if start is None:
        log.info(f"Chapter '{chapter_title}' not found in text")
        return None

    end = find_chapter_end(full_text, start, chapter_title, next_chapter_title)

    extracted = full_text[start:end]
    if len(extracted) > CHAR_LIMIT:
        extracted = extracted[:CHAR_LIMIT] + TRUNCATION_MARKER

    extracted = extracted.strip()
    return extracted or None


def locate_for_analysis(
    full_text: str, chapter_title: str, next_chapter_title: str | None = None
) -> str | None:
    """Like locate(), but spans too short to analyze count as not found."""
    extracted = locate(full_text, chapter_title, next_chapter_title)
    if extracted is None or len(extracted) < MIN_CHAPTER_CHARS:
        return None
    return extracted
