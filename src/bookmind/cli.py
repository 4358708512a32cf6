"""Main CLI application."""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from bookmind.core.pdf_parser import is_supported
from bookmind.models.analysis import AnalysisType
from bookmind.tui.state import ReaderConfig

app = typer.Typer(
    name="bookmind",
    help="Read PDF books with AI chapter analysis, narration and slides.",
    add_completion=False,
)

console = Console()


def configure_logging(verbose: bool) -> None:
    """Send log records through rich; quiet unless --verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )
    # The SDK's HTTP stack is chatty at DEBUG
    for name in ("httpx", "httpcore", "google_genai"):
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)


def load_config(model: str | None) -> ReaderConfig:
    config = ReaderConfig.from_env()
    if model:
        config.model = model
    return config


def validate_book(book_path: Path) -> Path:
    """Check a book path given on the command line."""
    if not book_path.exists():
        console.print(f"[red]File not found: {book_path}[/]")
        raise typer.Exit(1)
    if not is_supported(book_path):
        console.print(f"[red]Unsupported file format: {book_path.suffix}[/]")
        console.print("[dim]Supported formats: .pdf[/]")
        raise typer.Exit(1)
    return book_path.resolve()


BookArgument = Annotated[
    Path,
    typer.Argument(help="Path to the PDF book"),
]
ChapterOption = Annotated[
    str,
    typer.Option(
        "--chapter",
        "-c",
        help="Chapter number as listed by 'bookmind chapters'",
    ),
]
TypeOption = Annotated[
    AnalysisType,
    typer.Option(
        "--type",
        "-t",
        help="Analysis style",
        case_sensitive=False,
    ),
]
ModelOption = Annotated[
    Optional[str],
    typer.Option(
        "--model",
        "-m",
        help="Gemini model for chapter identification and analysis",
    ),
]


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logging"),
    ] = False,
) -> None:
    """Read PDF books with AI chapter analysis, narration and slides.

    Run without arguments to start the interactive reader.
    """
    configure_logging(verbose)
    if ctx.invoked_subcommand is None:
        from bookmind.commands.run import execute_run

        execute_run(book_path=None)


@app.command()
def run(
    book_path: Annotated[
        Optional[Path],
        typer.Argument(
            help="Path to a PDF to open right away. If omitted, shows file picker.",
        ),
    ] = None,
    model: ModelOption = None,
) -> None:
    """Interactive reader: upload books, pick chapters, listen to analyses."""
    if book_path is not None:
        book_path = validate_book(book_path)

    try:
        from bookmind.commands.run import execute_run

        execute_run(book_path=book_path, config=load_config(model))
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def chapters(
    book_path: BookArgument,
    model: ModelOption = None,
) -> None:
    """Identify and list the chapters of a book."""
    book_path = validate_book(book_path)

    try:
        from bookmind.commands.chapters import execute_chapters

        execute_chapters(book_path, console, config=load_config(model))
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def analyze(
    book_path: BookArgument,
    chapter: Annotated[
        Optional[str],
        typer.Option(
            "--chapter",
            "-c",
            help="Chapter number as listed by 'bookmind chapters' (default: pick interactively)",
        ),
    ] = None,
    analysis_type: Annotated[
        Optional[AnalysisType],
        typer.Option(
            "--type",
            "-t",
            help="Analysis style (default: standard, or pick interactively)",
            case_sensitive=False,
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option(
            "--output",
            "-o",
            help="Also save the analysis as Markdown",
        ),
    ] = None,
    model: ModelOption = None,
) -> None:
    """Analyze one chapter and print the result."""
    book_path = validate_book(book_path)

    try:
        from bookmind.commands.analyze import execute_analyze

        execute_analyze(
            book_path=book_path,
            chapter_selection=chapter,
            analysis_type=analysis_type,
            output_file=output,
            console=console,
            config=load_config(model),
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def speak(
    book_path: BookArgument,
    chapter: ChapterOption,
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="WAV file to write",
        ),
    ],
    analysis_type: TypeOption = AnalysisType.STANDARD,
    model: ModelOption = None,
) -> None:
    """Analyze a chapter and save the narration as a WAV file."""
    book_path = validate_book(book_path)

    try:
        from bookmind.commands.speak import execute_speak

        execute_speak(
            book_path=book_path,
            chapter_selection=chapter,
            analysis_type=analysis_type,
            output_file=output,
            console=console,
            config=load_config(model),
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def slide(
    book_path: BookArgument,
    chapter: ChapterOption,
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Image file to write (extension follows the returned image type; .html embeds it)",
        ),
    ],
    analysis_type: TypeOption = AnalysisType.STANDARD,
    model: ModelOption = None,
) -> None:
    """Analyze a chapter and render a presentation slide for it."""
    book_path = validate_book(book_path)

    try:
        from bookmind.commands.slide import execute_slide

        execute_slide(
            book_path=book_path,
            chapter_selection=chapter,
            analysis_type=analysis_type,
            output_file=output,
            console=console,
            config=load_config(model),
        )
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


@app.command()
def locate(
    book_path: BookArgument,
    title: Annotated[
        str,
        typer.Option("--title", help="Chapter title to look for"),
    ],
    next_title: Annotated[
        Optional[str],
        typer.Option("--next-title", help="Title of the following chapter"),
    ] = None,
) -> None:
    """Show where a chapter starts and ends in the extracted text (offline)."""
    book_path = validate_book(book_path)

    try:
        from bookmind.commands.locate import execute_locate

        execute_locate(book_path, title, next_title, console)
    except Exception as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
