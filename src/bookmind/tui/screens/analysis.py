"""Analysis screen with narration and slide generation."""

from __future__ import annotations

from rich.markdown import Markdown
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, LoadingIndicator, Static

from bookmind.core.audio import PlaybackEngine, PlaybackState, PygameBackend
from bookmind.core.content_processor import ContentProcessor
from bookmind.models.analysis import get_analysis_option
from bookmind.tui.controller import SLIDE_FAILED_MESSAGE
from bookmind.tui.state import ReaderState

SEEK_STEP = 10.0  # seconds
TICK_INTERVAL = 0.25


def format_time(seconds: float) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


class AnalysisScreen(Screen):
    """Screen showing one chapter analysis."""

    SCREEN_NAMES = frozenset({"analysis"})

    BINDINGS = [
        Binding("p", "toggle_play", "Read Aloud", show=True),
        Binding("s", "stop", "Stop", show=True),
        Binding("left", "seek(-1)", "Back 10s", show=False),
        Binding("right", "seek(1)", "Forward 10s", show=False),
        Binding("r", "regenerate", "Regenerate", show=True),
        Binding("g", "slide", "Slide", show=True),
        Binding("b", "go_back", "Back", show=True),
        Binding("escape", "go_back", "Back", show=False),
        Binding("q", "quit", "Quit", show=False),
    ]

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.processor = ContentProcessor()
        self.engine: PlaybackEngine | None = None
        self._backend: PygameBackend | None = None
        self._rendered_text: str | None = None
        self._blocks: list[str] = []
        self._highlighted: int | None = None

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        with Container(id="main"):
            yield Static(id="chapter-info")
            yield Static(id="audio-status")
            yield Static(id="error-banner")
            yield LoadingIndicator(id="loading-indicator")
            yield VerticalScroll(id="analysis-body")
            yield Static(
                "[dim]AI generated content may contain inaccuracies.[/]",
                classes="instruction",
            )
        yield Footer()

    def on_mount(self) -> None:
        self._backend = PygameBackend()
        self.engine = PlaybackEngine(
            self.app.controller.analyst.synthesize_speech, self._backend
        )
        self.set_interval(TICK_INTERVAL, self._tick)
        self.refresh_state(self.app.controller.state)

    def on_unmount(self) -> None:
        if self.engine:
            self.engine.stop()
        if self._backend:
            self._backend.close()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def refresh_state(self, state: ReaderState) -> None:
        chapter = state.selected_chapter
        if chapter is None:
            return

        option = get_analysis_option(state.analysis_type)
        self.query_one("#chapter-info", Static).update(
            f"[bold cyan]Chapter {chapter.number}[/]  [dim]{option.label} Analysis[/]\n"
            f"[bold]{chapter.title}[/]"
        )

        loading = state.loading
        self.query_one("#loading-indicator", LoadingIndicator).display = loading
        self.query_one("#analysis-body", VerticalScroll).display = not loading
        if loading:
            self.query_one("#audio-status", Static).update(
                f"[dim]Reading \"{chapter.title}\" and generating "
                f"{state.analysis_type.value} analysis...[/]"
            )

        banner = self.query_one("#error-banner", Static)
        banner.update(f"[red]{state.error}[/]" if state.error else "")
        banner.display = bool(state.error)

        if state.analysis_text != self._rendered_text:
            self._render_analysis(state.analysis_text)

        if state.slide_loading:
            self.query_one("#audio-status", Static).update("[dim]Generating slide...[/]")
        elif not loading:
            self._update_audio_status()

    def _render_analysis(self, text: str) -> None:
        """Rebuild paragraph blocks; narration for the old text is dropped."""
        self._rendered_text = text
        self._blocks = self.processor.split_blocks(text)
        self._highlighted = None

        if self.engine:
            self.engine.set_text(text)

        body = self.query_one("#analysis-body", VerticalScroll)
        body.remove_children()
        body.mount_all(
            Static(Markdown(block), classes="block", id=f"block-{i}")
            for i, block in enumerate(self._blocks)
        )

    def _update_audio_status(self) -> None:
        engine = self.engine
        if engine is None:
            return

        status = self.query_one("#audio-status", Static)
        if engine.state == PlaybackState.GENERATING:
            status.update("[cyan]Generating audio...[/]")
        elif engine.state in (PlaybackState.PLAYING, PlaybackState.PAUSED):
            icon = "▶" if engine.state == PlaybackState.PLAYING else "⏸"
            status.update(
                f"[cyan]{icon} {format_time(engine.elapsed)} / "
                f"{format_time(engine.duration)}[/]"
            )
        else:
            status.update("[dim]Press P to read aloud[/]")

    def _update_highlight(self) -> None:
        index = self.engine.active_block(self._blocks) if self.engine else None
        if index == self._highlighted:
            return

        if self._highlighted is not None:
            self._set_block_class(self._highlighted, False)
        if index is not None:
            self._set_block_class(index, True)
        self._highlighted = index

    def _set_block_class(self, index: int, speaking: bool) -> None:
        matches = self.query(f"#block-{index}")
        if matches:
            block = matches.first()
            block.set_class(speaking, "speaking")
            if speaking:
                block.scroll_visible()

    def _tick(self) -> None:
        if self.engine is None:
            return
        self.engine.poll()
        if not self.app.controller.state.loading:
            self._update_audio_status()
        self._update_highlight()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def action_toggle_play(self) -> None:
        """Play, pause or resume narration."""
        engine = self.engine
        state = self.app.controller.state
        if engine is None or state.loading or not state.analysis_text:
            return

        if engine.state == PlaybackState.PLAYING:
            engine.pause()
        elif engine.state != PlaybackState.GENERATING:
            self.run_worker(self._play(), group="audio")
        self._update_audio_status()

    async def _play(self) -> None:
        try:
            await self.engine.play()
        except Exception as e:
            self.log.error(f"Failed to play audio: {e}")
            self.notify("Could not generate speech. Please try again.", severity="error")
        self._update_audio_status()

    def action_stop(self) -> None:
        if self.engine:
            self.engine.stop()
            self._update_audio_status()
            self._update_highlight()

    def action_seek(self, direction: int) -> None:
        if self.engine and self.engine.buffer is not None:
            self.engine.seek(self.engine.elapsed + direction * SEEK_STEP)
            self._update_audio_status()

    def action_regenerate(self) -> None:
        self.app.run_worker(self.app.controller.regenerate(), group="analysis")

    def action_slide(self) -> None:
        """Generate an illustrative slide and save it next to the book."""
        state = self.app.controller.state
        if state.loading or not state.analysis_text or state.slide_loading:
            return
        self.run_worker(self._slide(), group="slide")

    async def _slide(self) -> None:
        from bookmind.tui.pipeline import save_chapter_slide

        controller = self.app.controller
        state = controller.state
        session = state.active_session
        chapter = state.selected_chapter

        slide = await controller.generate_slide()
        if slide is None or session is None or chapter is None:
            return

        try:
            saved = save_chapter_slide(session, chapter, state.analysis_type, slide)
        except OSError as e:
            self.log.error(f"Failed to save slide: {e}")
            self.notify(f"{SLIDE_FAILED_MESSAGE} Could not save: {e}", severity="error")
            return
        self.notify(f"Slide saved to {saved}")

    def action_go_back(self) -> None:
        if self.engine:
            self.engine.stop()
        self.app.controller.back_to_chapters()

    def action_quit(self) -> None:
        """Quit the application."""
        self.app.exit(0)
