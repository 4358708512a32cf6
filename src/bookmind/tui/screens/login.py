"""Login gate screen."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, Static

from bookmind.tui.state import ReaderState


class LoginScreen(Screen):
    """Ask for an ID token and check it against the allow-list."""

    SCREEN_NAMES = frozenset({"login"})

    BINDINGS = [
        Binding("escape", "quit", "Quit", show=True),
    ]

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        with Container(id="main"):
            yield Static("[bold]BookMind AI[/]\n[dim]Intelligent PDF Analysis[/]", id="title")
            yield Static(
                "This application is private. Please paste the ID token of your "
                "authorized Google account to continue.",
                id="prompt",
            )
            yield Input(placeholder="ID token", password=True, id="token-input")
            yield Static("", id="error-banner")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_state(self.app.controller.state)
        self.query_one("#token-input", Input).focus()

    def refresh_state(self, state: ReaderState) -> None:
        banner = self.query_one("#error-banner", Static)
        banner.update(f"[red]{state.error}[/]" if state.error else "")
        banner.display = bool(state.error)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Try to sign in with the pasted token."""
        token = event.value.strip()
        if not token:
            return
        if self.app.controller.login(token):
            self.app.after_login()
        else:
            self.query_one("#token-input", Input).value = ""

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit(0)
