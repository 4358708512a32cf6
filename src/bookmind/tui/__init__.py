"""Textual TUI for reading and analyzing books."""

from bookmind.tui.app import ReaderApp
from bookmind.tui.controller import ReaderController
from bookmind.tui.state import ReaderState

__all__ = ["ReaderApp", "ReaderController", "ReaderState"]
