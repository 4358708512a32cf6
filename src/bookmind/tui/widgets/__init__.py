"""Custom widgets for the reader TUI."""

from bookmind.tui.widgets.chapter_table import ChapterTable
from bookmind.tui.widgets.confirm_dialog import ConfirmDialog

__all__ = ["ChapterTable", "ConfirmDialog"]
