"""Named state transitions for the reader.

ReaderController is the only place that replaces the ReaderState. Every
remote request takes a generation token when it is issued; a response whose
token is no longer current is dropped instead of overwriting newer state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from bookmind.core.auth import AuthenticationError, authorize, normalize_allow_list
from bookmind.core.chapter_locator import locate_for_analysis
from bookmind.core.gemini_client import GeminiError, InsufficientContentError
from bookmind.core.pdf_parser import ExtractionError, extract_document
from bookmind.models.analysis import AnalysisType
from bookmind.models.book import BookSession, Chapter
from bookmind.tui.state import (
    ReaderConfig,
    ReaderState,
    add_session,
    clear_view,
    find_session,
    remove_session,
    stable_screen,
)

if TYPE_CHECKING:
    from bookmind.core.gemini_client import BookAnalyst
    from bookmind.models.book import ExtractedDocument

log = logging.getLogger(__name__)

NO_CHAPTERS_MESSAGE = "Could not identify chapters. Try a different book."
UPLOAD_FAILED_MESSAGE = "Failed to process the book."
ANALYSIS_FAILED_MESSAGE = "Failed to generate analysis."
SLIDE_FAILED_MESSAGE = "Failed to generate slide."

Extractor = Callable[[Path], "tuple[ExtractedDocument, bytes]"]


class ReaderController:
    """Owns the reader state and the session library."""

    def __init__(
        self,
        analyst: "BookAnalyst",
        config: ReaderConfig | None = None,
        extract: Extractor = extract_document,
    ):
        self.analyst = analyst
        self.config = config or ReaderConfig()
        self._extract = extract
        self._allowed = normalize_allow_list(self.config.allowed_emails)
        self._generation = 0
        self._listeners: list[Callable[[ReaderState], None]] = []

        initial = "login" if self.config.login_required else "upload"
        self._state = ReaderState(screen=initial)

    # ------------------------------------------------------------------
    # State plumbing
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReaderState:
        return self._state

    def subscribe(self, listener: Callable[[ReaderState], None]) -> None:
        """Call listener with every new state."""
        self._listeners.append(listener)

    def _set(self, state: ReaderState) -> None:
        self._state = state
        for listener in self._listeners:
            listener(state)

    def _next_token(self) -> int:
        self._generation += 1
        return self._generation

    def _is_current(self, token: int) -> bool:
        return token == self._generation

    def _fail(self, token: int, message: str) -> None:
        """Show an error and fall back to the last stable screen."""
        if not self._is_current(token):
            log.debug(f"Dropping stale error: {message}")
            return
        state = clear_view(self._state, stable_screen(self._state))
        self._set(replace(state, error=message))

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, token: str) -> bool:
        """Check an ID token against the allow-list."""
        try:
            claims = authorize(token, self._allowed)
        except AuthenticationError as e:
            self._set(replace(self._state, screen="login", error=str(e)))
            return False

        log.info(f"Signed in as {claims.email}")
        self._set(
            replace(
                self._state,
                screen="upload",
                user_email=claims.email,
                user_name=claims.name,
                error=None,
            )
        )
        return True

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def start_upload(self) -> None:
        """Show the upload screen, keeping the library in library mode."""
        if not self.config.library_mode:
            self.reset()
            return
        self._next_token()
        self._set(replace(clear_view(self._state, "upload"), error=None))

    def reset(self) -> None:
        """Discard every book and return to the upload screen."""
        self._next_token()
        self._set(
            ReaderState(
                screen="upload",
                user_email=self._state.user_email,
                user_name=self._state.user_name,
            )
        )

    async def upload(self, path: Path) -> BookSession | None:
        """Extract a PDF, identify its chapters and open it as the active book."""
        token = self._next_token()
        self._set(replace(self._state, screen="processing", loading=True, error=None))

        try:
            document, pdf_bytes = await asyncio.to_thread(self._extract, path)
        except ExtractionError as e:
            log.error(f"Extraction failed for {path}: {e}")
            self._fail(token, str(e))
            return None
        except Exception as e:
            log.error(f"Unexpected error reading {path}: {e}")
            self._fail(token, UPLOAD_FAILED_MESSAGE)
            return None

        visual = document.needs_visual_mode
        if visual:
            log.info(f"{path.name}: using visual mode")

        try:
            chapters = await self.analyst.identify_chapters(
                None if visual else document.text,
                pdf_bytes if visual else None,
            )
        except GeminiError as e:
            log.error(f"Chapter identification failed: {e}")
            if e.error_type in ("NO_CHAPTERS", "EMPTY_RESPONSE", "INVALID_RESPONSE"):
                self._fail(token, NO_CHAPTERS_MESSAGE)
            else:
                self._fail(token, UPLOAD_FAILED_MESSAGE)
            return None
        except Exception as e:
            log.error(f"Chapter identification failed: {e}")
            self._fail(token, UPLOAD_FAILED_MESSAGE)
            return None

        if not self._is_current(token):
            log.debug(f"Dropping stale upload of {path.name}")
            return None

        session = BookSession(
            file_name=path.name,
            source_path=path,
            chapters=tuple(chapters),
            pdf_text=document.text,
            pdf_bytes=pdf_bytes,
            is_scanned_mode=visual,
        )

        if self.config.library_mode:
            sessions = add_session(self._state.sessions, session)
        else:
            sessions = (session,)

        state = replace(self._state, sessions=sessions, active_session_id=session.id)
        self._set(clear_view(state, "chapters"))
        return session

    # ------------------------------------------------------------------
    # Library
    # ------------------------------------------------------------------

    def switch_session(self, session_id: str) -> None:
        """Make another book the active one."""
        if find_session(self._state.sessions, session_id) is None:
            return
        self._next_token()
        state = replace(self._state, active_session_id=session_id, error=None)
        self._set(clear_view(state, "chapters"))

    def remove_session(self, session_id: str) -> None:
        """Remove a book; removing the active one falls back to the newest left."""
        sessions = remove_session(self._state.sessions, session_id)
        if session_id != self._state.active_session_id:
            self._set(replace(self._state, sessions=sessions))
            return

        self._next_token()
        if sessions:
            state = replace(self._state, sessions=sessions, active_session_id=sessions[0].id)
            self._set(clear_view(state, "chapters"))
        else:
            state = replace(self._state, sessions=(), active_session_id=None)
            self._set(clear_view(state, "upload"))

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def chapter_text(self, session: BookSession, chapter: Chapter) -> str | None:
        """Isolated chapter text, or None to fall back to the whole document."""
        if session.is_scanned_mode:
            return None

        next_chapter = session.next_chapter(chapter)
        content = locate_for_analysis(
            session.pdf_text,
            chapter.title,
            next_chapter.title if next_chapter else None,
        )
        if content is None:
            log.warning(
                f"Could not isolate text for '{chapter.title}'. "
                "Falling back to full PDF visual analysis."
            )
        return content

    async def analyze(self, chapter: Chapter, analysis_type: AnalysisType) -> str | None:
        """Analyze a chapter of the active book in the given style."""
        session = self._state.active_session
        if session is None:
            self._set(replace(self._state, screen="upload", error="No book loaded."))
            return None

        token = self._next_token()
        self._set(
            replace(
                self._state,
                screen="analysis",
                selected_chapter=chapter,
                analysis_type=analysis_type,
                analysis_text="",
                slide=None,
                slide_loading=False,
                loading=True,
                error=None,
            )
        )

        content = self.chapter_text(session, chapter)

        try:
            result = await self.analyst.analyze_chapter(
                chapter.title, content, analysis_type, session.pdf_bytes or None
            )
        except InsufficientContentError as e:
            log.error(f"Cannot analyze '{chapter.title}': {e}")
            self._fail(token, str(e))
            return None
        except Exception as e:
            log.error(f"Analysis of '{chapter.title}' failed: {e}")
            self._fail(token, ANALYSIS_FAILED_MESSAGE)
            return None

        if not self._is_current(token):
            log.debug(f"Dropping stale analysis of '{chapter.title}'")
            return None

        self._set(replace(self._state, analysis_text=result, loading=False))
        return result

    async def regenerate(self) -> str | None:
        """Request a fresh analysis of the current chapter and style."""
        chapter = self._state.selected_chapter
        if chapter is None:
            return None
        return await self.analyze(chapter, self._state.analysis_type)

    def back_to_chapters(self) -> None:
        """Leave the analysis view; any in-flight analysis is ignored."""
        self._next_token()
        self._set(replace(clear_view(self._state, stable_screen(self._state)), error=None))

    async def generate_slide(self):
        """Render a slide for the analysis on screen."""
        state = self._state
        if state.selected_chapter is None or not state.analysis_text or state.slide_loading:
            return None

        token = self._generation
        analysis_text = state.analysis_text
        self._set(replace(state, slide_loading=True, error=None))

        try:
            slide = await self.analyst.generate_slide(
                state.selected_chapter.title, analysis_text
            )
        except Exception as e:
            log.error(f"Slide generation failed: {e}")
            if self._is_current(token):
                self._set(
                    replace(self._state, slide_loading=False, error=SLIDE_FAILED_MESSAGE)
                )
            return None

        if not self._is_current(token) or self._state.analysis_text != analysis_text:
            log.debug("Dropping slide for an analysis no longer on screen")
            return None

        self._set(replace(self._state, slide=slide, slide_loading=False))
        return slide

    def dismiss_error(self) -> None:
        self._set(replace(self._state, error=None))
