"""Yes/no confirmation modal."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static


class ConfirmDialog(ModalScreen[bool]):
    """Ask before a destructive action. Dismisses with True to go ahead."""

    BINDINGS = [
        Binding("y", "confirm", "Yes", show=False),
        Binding("n", "cancel", "No", show=False),
        Binding("escape", "cancel", "Cancel", show=False),
    ]

    def __init__(self, title: str, message: str, confirm_label: str = "Yes", **kwargs) -> None:
        super().__init__(**kwargs)
        self.dialog_title = title
        self.message = message
        self.confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Container(id="dialog"):
            yield Static(f"[bold]{self.dialog_title}[/]", id="dialog-title")
            yield Static(self.message, id="dialog-message")
            with Horizontal(id="dialog-actions"):
                yield Button(f"[Y] {self.confirm_label}", variant="error", id="confirm")
                yield Button("[N] Cancel", id="cancel")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm")

    def action_confirm(self) -> None:
        self.dismiss(True)

    def action_cancel(self) -> None:
        self.dismiss(False)
