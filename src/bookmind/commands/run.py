"""Run command: launch the interactive reader."""

from __future__ import annotations

import logging
from pathlib import Path

from textual.logging import TextualHandler

from bookmind.tui.state import ReaderConfig


def execute_run(book_path: Path | None, config: ReaderConfig | None = None) -> None:
    """Start the Textual reader, optionally opening a book right away."""
    from bookmind.tui import ReaderApp

    # Console output would corrupt the screen; route records to the Textual log
    root = logging.getLogger()
    logging.basicConfig(level=root.level, handlers=[TextualHandler()], force=True)

    app = ReaderApp(book_path=book_path, reader_config=config or ReaderConfig.from_env())
    app.run()
