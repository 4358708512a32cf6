"""Application state for the reader."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from bookmind.models.analysis import AnalysisType

if TYPE_CHECKING:
    from bookmind.models.analysis import SlideImage
    from bookmind.models.book import BookSession, Chapter

ScreenName = Literal["login", "upload", "processing", "chapters", "analysis"]


@dataclass
class ReaderConfig:
    """Configuration for the reader."""

    model: str = "gemini-2.0-flash-exp"
    tts_model: str = "gemini-2.5-flash-preview-tts"
    image_model: str = "gemini-2.5-flash-image"
    voice: str = "Kore"
    allowed_emails: list[str] = field(default_factory=list)  # empty = no login gate
    library_mode: bool = True  # False = one book at a time

    @property
    def login_required(self) -> bool:
        return bool(self.allowed_emails)

    @classmethod
    def from_env(cls) -> "ReaderConfig":
        """Build a config from BOOKMIND_* environment variables."""
        config = cls()
        config.model = os.environ.get("BOOKMIND_MODEL", config.model)
        config.tts_model = os.environ.get("BOOKMIND_TTS_MODEL", config.tts_model)
        config.image_model = os.environ.get("BOOKMIND_IMAGE_MODEL", config.image_model)
        config.voice = os.environ.get("BOOKMIND_VOICE", config.voice)

        allowed = os.environ.get("BOOKMIND_ALLOWED_EMAILS", "")
        config.allowed_emails = [e.strip() for e in allowed.split(",") if e.strip()]

        single = os.environ.get("BOOKMIND_SINGLE_BOOK", "").strip().lower()
        config.library_mode = single not in ("1", "true", "yes")
        return config


@dataclass(frozen=True)
class ReaderState:
    """Snapshot of everything the screens render.

    Only ReaderController creates new states; screens read them.
    """

    screen: ScreenName = "upload"
    user_email: str | None = None
    user_name: str | None = None

    sessions: tuple["BookSession", ...] = ()  # newest first
    active_session_id: str | None = None

    selected_chapter: "Chapter | None" = None
    analysis_type: AnalysisType = AnalysisType.STANDARD
    analysis_text: str = ""
    slide: "SlideImage | None" = None

    loading: bool = False
    slide_loading: bool = False
    error: str | None = None

    @property
    def active_session(self) -> "BookSession | None":
        return find_session(self.sessions, self.active_session_id)


# ============================================================================
# Helper functions for session collection operations
# ============================================================================


def find_session(
    sessions: tuple["BookSession", ...], session_id: str | None
) -> "BookSession | None":
    """Find a session by id."""
    if session_id is None:
        return None
    for session in sessions:
        if session.id == session_id:
            return session
    return None


def add_session(
    sessions: tuple["BookSession", ...], session: "BookSession"
) -> tuple["BookSession", ...]:
    """Insert a session at the front (newest first)."""
    return (session,) + tuple(s for s in sessions if s.id != session.id)


def remove_session(
    sessions: tuple["BookSession", ...], session_id: str
) -> tuple["BookSession", ...]:
    """Drop a session from the collection."""
    return tuple(s for s in sessions if s.id != session_id)


def clear_view(state: ReaderState, screen: ScreenName) -> ReaderState:
    """Forget the selected chapter and its analysis."""
    return replace(
        state,
        screen=screen,
        selected_chapter=None,
        analysis_text="",
        slide=None,
        loading=False,
        slide_loading=False,
    )


def stable_screen(state: ReaderState) -> ScreenName:
    """Screen to fall back to after an error."""
    if state.active_session is not None:
        return "chapters"
    return "upload"
