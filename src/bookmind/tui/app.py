"""Main Textual application for the reader."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Footer, Header

from bookmind.tui.controller import ReaderController
from bookmind.tui.state import ReaderConfig, ReaderState

if TYPE_CHECKING:
    from bookmind.core.gemini_client import BookAnalyst


class ReaderApp(App):
    """Main application for the reader."""

    CSS_PATH = "styles.tcss"
    TITLE = "BookMind"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        book_path: Path | None = None,
        reader_config: ReaderConfig | None = None,
        analyst: "BookAnalyst | None" = None,
        **kwargs,
    ):
        super().__init__(**kwargs)
        from bookmind.tui.pipeline import build_analyst

        self.theme = "monokai"
        self.initial_book_path = book_path
        self.reader_config = reader_config or ReaderConfig.from_env()
        self.controller = ReaderController(
            analyst or build_analyst(self.reader_config), self.reader_config
        )
        self.controller.subscribe(self._on_state_change)

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        yield Footer()

    def on_mount(self) -> None:
        """Start on the screen the controller asks for."""
        self.show_current_screen()

        if self.initial_book_path and not self.reader_config.login_required:
            self.start_upload(self.initial_book_path)

    def start_upload(self, book_path: Path) -> None:
        """Upload a book in the background."""
        self.run_worker(self.controller.upload(book_path), group="upload")

    def _on_state_change(self, state: ReaderState) -> None:
        self.show_current_screen()

    def show_current_screen(self) -> None:
        """Switch to the screen matching the controller state, or refresh it."""
        from bookmind.tui.screens import SCREENS_BY_NAME

        state = self.controller.state
        current = self.screen

        if isinstance(current, ModalScreen):
            # Dialog callbacks refresh once they are dismissed
            return

        if state.screen in getattr(current, "SCREEN_NAMES", ()):
            current.refresh_state(state)
            return

        screen = SCREENS_BY_NAME[state.screen]()
        if hasattr(current, "SCREEN_NAMES"):
            self.switch_screen(screen)
        else:
            self.push_screen(screen)

    def after_login(self) -> None:
        """Continue with the book given on the command line after signing in."""
        if self.initial_book_path:
            book_path, self.initial_book_path = self.initial_book_path, None
            self.start_upload(book_path)

    def action_quit(self) -> None:
        """Quit the application."""
        self.exit(0)
