"""Book upload screen."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import DataTable, Footer, Header, LoadingIndicator, Static

from bookmind.tui.state import ReaderState
from bookmind.tui.widgets import ChapterTable


class FileSelectScreen(Screen):
    """Screen for selecting a PDF to read."""

    SCREEN_NAMES = frozenset({"upload", "processing"})

    BINDINGS = [
        Binding("enter", "select_file", "Open", show=True),
        Binding("escape", "back", "Back", show=True),
        Binding("q", "quit", "Quit", show=False),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.books: list[Path] = []

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        with Container(id="main"):
            yield Static("Select a book to analyze:", id="prompt")
            yield Static("", id="error-banner")
            yield ChapterTable(id="file-table")
            yield Static("", id="loading-text")
            yield LoadingIndicator(id="loading-indicator")
        yield Footer()

    def on_mount(self) -> None:
        """Set up the file table when mounted."""
        from bookmind.tui.pipeline import format_file_size, scan_for_books

        self.books = scan_for_books(Path("."))

        table = self.query_one("#file-table", DataTable)
        table.add_columns("File", "Size")

        for book in self.books:
            table.add_row(book.name, format_file_size(book.stat().st_size))

        self.refresh_state(self.app.controller.state)

    def refresh_state(self, state: ReaderState) -> None:
        """Show either the file list or the processing indicator."""
        processing = state.screen == "processing"
        prompt = self.query_one("#prompt", Static)
        table = self.query_one("#file-table", DataTable)

        if processing:
            prompt.update("[bold]Reading your book...[/]")
            self.query_one("#loading-text", Static).update(
                "[dim]Extracting text and identifying chapters[/]"
            )
        elif not self.books:
            prompt.update(
                "[red]No PDF files found in current directory.[/]\n"
                "[dim]Run bookmind from the folder holding your books.[/]"
            )
        else:
            prompt.update("Select a book to analyze:")

        table.display = not processing and bool(self.books)
        self.query_one("#loading-text", Static).display = processing
        self.query_one("#loading-indicator", LoadingIndicator).display = processing

        banner = self.query_one("#error-banner", Static)
        banner.update(f"[red]{state.error}[/]" if state.error else "")
        banner.display = bool(state.error)

    def action_select_file(self) -> None:
        """Open the currently highlighted file."""
        if self.app.controller.state.screen == "processing" or not self.books:
            return

        table = self.query_one("#file-table", DataTable)
        row_index = table.cursor_row
        if row_index is not None and row_index < len(self.books):
            self.app.start_upload(self.books[row_index].resolve())

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        """Handle double-click or enter on a row."""
        self.action_select_file()

    def action_back(self) -> None:
        """Return to the active book, if there is one."""
        state = self.app.controller.state
        if state.screen != "processing" and state.active_session is not None:
            self.app.controller.back_to_chapters()

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit(0)
