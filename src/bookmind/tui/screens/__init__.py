"""TUI screens for the reader."""

from bookmind.tui.screens.login import LoginScreen
from bookmind.tui.screens.file_select import FileSelectScreen
from bookmind.tui.screens.chapter_list import ChapterListScreen
from bookmind.tui.screens.analysis import AnalysisScreen
from bookmind.tui.screens.library import LibraryScreen

SCREENS_BY_NAME = {
    "login": LoginScreen,
    "upload": FileSelectScreen,
    "processing": FileSelectScreen,
    "chapters": ChapterListScreen,
    "analysis": AnalysisScreen,
}

__all__ = [
    "LoginScreen",
    "FileSelectScreen",
    "ChapterListScreen",
    "AnalysisScreen",
    "LibraryScreen",
    "SCREENS_BY_NAME",
]
