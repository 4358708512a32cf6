"""Row-cursor table used for chapters and the library."""

from __future__ import annotations

from textual.widgets import DataTable


class ChapterTable(DataTable):
    """DataTable with a row cursor and zebra stripes."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.cursor_type = "row"
        self.zebra_stripes = True
