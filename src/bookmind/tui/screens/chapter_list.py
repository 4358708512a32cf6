"""Chapter selection screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, Static

from bookmind.models.analysis import ANALYSIS_OPTIONS, AnalysisType, get_analysis_option
from bookmind.tui.state import ReaderState
from bookmind.tui.widgets import ChapterTable


class ChapterListScreen(Screen):
    """Screen listing the active book's chapters."""

    SCREEN_NAMES = frozenset({"chapters"})

    BINDINGS = [
        Binding("enter", "analyze", "Analyze", show=True, priority=True),
        Binding("t", "cycle_type", "Style", show=True),
        Binding("l", "library", "Library", show=True),
        Binding("u", "upload_new", "Upload New", show=True),
        Binding("x", "dismiss_error", "Clear Error", show=False),
        Binding("q", "quit", "Quit", show=False),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._session_id: str | None = None
        self._analysis_type = AnalysisType.STANDARD

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        with Container(id="main"):
            yield Static(id="book-info")
            yield Static(id="scanned-notice")
            yield Static(id="error-banner")
            yield Static(id="type-indicator")
            yield ChapterTable(id="chapter-table")
        yield Footer()

    def on_mount(self) -> None:
        """Set up the chapter table when mounted."""
        table = self.query_one("#chapter-table", DataTable)
        table.add_column("#", key="number", width=6)
        table.add_column("Chapter", key="title")
        table.add_column("About", key="description")

        self._analysis_type = self.app.controller.state.analysis_type
        self.refresh_state(self.app.controller.state)

    def refresh_state(self, state: ReaderState) -> None:
        session = state.active_session
        if session is None:
            return

        if session.id != self._session_id:
            self._session_id = session.id
            self._populate_table(state)

        info_lines = [
            f"[bold]{session.file_name}[/]",
            f"[dim]Chapters:[/] {len(session.chapters)}",
        ]
        if len(state.sessions) > 1:
            info_lines.append(f"[dim]Library:[/] {len(state.sessions)} books (press L)")
        self.query_one("#book-info", Static).update("\n".join(info_lines))

        notice = self.query_one("#scanned-notice", Static)
        notice.update(
            "[yellow]Scanned document detected.[/] [dim]Visual AI reads this document, "
            "so analysis might take slightly longer.[/]"
        )
        notice.display = session.is_scanned_mode

        banner = self.query_one("#error-banner", Static)
        banner.update(f"[red]{state.error}[/] [dim](X to dismiss)[/]" if state.error else "")
        banner.display = bool(state.error)

        self._update_type_indicator()

    def _populate_table(self, state: ReaderState) -> None:
        table = self.query_one("#chapter-table", DataTable)
        table.clear()
        for chapter in state.active_session.chapters:
            table.add_row(chapter.number, chapter.title, chapter.description)

    def _update_type_indicator(self) -> None:
        option = get_analysis_option(self._analysis_type)
        self.query_one("#type-indicator", Static).update(
            f"[cyan]Analysis: {option.label}[/] [dim]({option.description}) - press T to change[/]"
        )

    def action_cycle_type(self) -> None:
        """Switch to the next analysis style."""
        types = [option.type for option in ANALYSIS_OPTIONS]
        index = types.index(self._analysis_type)
        self._analysis_type = types[(index + 1) % len(types)]
        self._update_type_indicator()

    def action_analyze(self) -> None:
        """Analyze the highlighted chapter in the chosen style."""
        session = self.app.controller.state.active_session
        if session is None:
            return

        table = self.query_one("#chapter-table", DataTable)
        row_index = table.cursor_row
        if row_index is None or row_index >= len(session.chapters):
            return

        chapter = session.chapters[row_index]
        self.app.run_worker(
            self.app.controller.analyze(chapter, self._analysis_type),
            group="analysis",
        )

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle mouse selection of a row."""
        self.action_analyze()

    def action_library(self) -> None:
        """Open the library of uploaded books."""
        from bookmind.tui.screens.library import LibraryScreen

        self.app.push_screen(LibraryScreen(), self._on_library_closed)

    def _on_library_closed(self, result: tuple[str, str] | None) -> None:
        controller = self.app.controller
        if result is not None:
            action, session_id = result
            if action == "switch":
                controller.switch_session(session_id)
            elif action == "remove":
                controller.remove_session(session_id)
            elif action == "upload":
                controller.start_upload()
        self.app.show_current_screen()

    def action_upload_new(self) -> None:
        self.app.controller.start_upload()

    def action_dismiss_error(self) -> None:
        self.app.controller.dismiss_error()

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit(0)
