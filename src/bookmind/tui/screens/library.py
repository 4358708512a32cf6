"""Library of books uploaded in this session."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import ModalScreen
from textual.widgets import DataTable, Static

from bookmind.tui.widgets import ChapterTable, ConfirmDialog


class LibraryScreen(ModalScreen[tuple[str, str] | None]):
    """Pick, remove or add books. Dismisses with (action, session_id)."""

    BINDINGS = [
        Binding("enter", "switch", "Open", show=True, priority=True),
        Binding("x", "remove", "Remove", show=True),
        Binding("u", "upload", "Upload New", show=True),
        Binding("escape", "close", "Close", show=True),
    ]

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        with Container(id="library"):
            yield Static("[bold]Your Library[/]", id="library-title")
            yield ChapterTable(id="library-table")
            yield Static(
                "[dim]Enter: open  X: remove  U: upload new  Esc: close[/]",
                classes="instruction",
            )

    def on_mount(self) -> None:
        state = self.app.controller.state
        table = self.query_one("#library-table", DataTable)
        table.add_columns("", "Book", "Uploaded", "Chapters", "Mode")

        for session in state.sessions:
            marker = "▶" if session.id == state.active_session_id else ""
            mode = "Visual" if session.is_scanned_mode else "Text"
            table.add_row(
                marker,
                session.file_name,
                session.upload_timestamp.strftime("%H:%M:%S"),
                str(len(session.chapters)),
                mode,
                key=session.id,
            )

    def _highlighted_session_id(self) -> str | None:
        sessions = self.app.controller.state.sessions
        row_index = self.query_one("#library-table", DataTable).cursor_row
        if row_index is None or row_index >= len(sessions):
            return None
        return sessions[row_index].id

    def action_switch(self) -> None:
        session_id = self._highlighted_session_id()
        if session_id is not None:
            self.dismiss(("switch", session_id))

    def action_remove(self) -> None:
        """Ask before dropping a book from memory."""
        session_id = self._highlighted_session_id()
        if session_id is None:
            return

        def on_confirm(confirmed: bool | None) -> None:
            if confirmed:
                self.dismiss(("remove", session_id))

        self.app.push_screen(
            ConfirmDialog(
                title="Remove book?",
                message="The book and its chapters will be forgotten.",
                confirm_label="Remove",
            ),
            on_confirm,
        )

    def action_upload(self) -> None:
        self.dismiss(("upload", ""))

    def action_close(self) -> None:
        self.dismiss(None)
