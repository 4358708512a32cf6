"""Raw PCM decoding and narration playback.

Audio Pipeline:
  Gemini TTS raw PCM (16-bit LE, mono, 24 kHz) -> float32 SampleBuffer
  -> AudioBackend.play_from(buffer, offset) -> PlaybackHandle

The engine never talks to an audio device directly; the backend does. This
keeps the state machine testable without sound hardware.
"""

from __future__ import annotations

import logging
import time
import wave
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Protocol

import numpy as np

log = logging.getLogger(__name__)


# =============================================================================
# CONFIGURATION
# =============================================================================
SAMPLE_RATE = 24000  # Gemini TTS emits 24 kHz
CHANNELS = 1
SAMPLE_WIDTH = 2  # bytes, 16-bit signed
PCM_SCALE = 32768.0

# Elapsed time this close to the end counts as natural completion
COMPLETION_TOLERANCE = 0.5


# =============================================================================
# PCM DECODING
# =============================================================================
@dataclass(frozen=True)
class SampleBuffer:
    """Decoded mono samples in [-1.0, 1.0]."""

    samples: np.ndarray
    sample_rate: int = SAMPLE_RATE

    @property
    def frame_count(self) -> int:
        return len(self.samples)

    @property
    def duration(self) -> float:
        if self.sample_rate <= 0:
            return 0.0
        return self.frame_count / self.sample_rate

    def frame_at(self, seconds: float) -> int:
        """Sample index for a time offset, clamped to the buffer."""
        frame = int(round(seconds * self.sample_rate))
        return max(0, min(frame, self.frame_count))

    def to_pcm(self, offset: float = 0.0) -> bytes:
        """Re-encode the samples from offset onwards as 16-bit PCM."""
        return encode_pcm(self.samples[self.frame_at(offset):])


def decode_pcm(data: bytes, sample_rate: int = SAMPLE_RATE) -> SampleBuffer:
    """Decode 16-bit little-endian signed mono PCM into a SampleBuffer."""
    usable = len(data) - (len(data) % SAMPLE_WIDTH)
    if usable != len(data):
        log.warning(f"Dropping {len(data) - usable} trailing byte(s) of odd-length PCM")
    samples = np.frombuffer(data[:usable], dtype="<i2").astype(np.float32) / PCM_SCALE
    return SampleBuffer(samples=samples, sample_rate=sample_rate)


def encode_pcm(samples: np.ndarray) -> bytes:
    """Encode float samples in [-1.0, 1.0] as 16-bit little-endian PCM."""
    scaled = np.round(np.asarray(samples, dtype=np.float64) * PCM_SCALE)
    return np.clip(scaled, -32768, 32767).astype("<i2").tobytes()


def write_wav(path: Path, pcm: bytes, sample_rate: int = SAMPLE_RATE) -> None:
    """Store raw PCM in a WAV container."""
    with wave.open(str(path), "wb") as wf:
        wf.setnchannels(CHANNELS)
        wf.setsampwidth(SAMPLE_WIDTH)
        wf.setframerate(sample_rate)
        wf.writeframes(pcm)


def block_index_for_progress(blocks: list[str], elapsed: float, duration: float) -> int | None:
    """Map playback progress to the text block being read.

    Assumes a uniform reading speed, so this is an estimate:
    position = (elapsed / duration) * total characters, and the active block is
    the first whose cumulative character count reaches that position.
    """
    if not blocks or duration <= 0:
        return None

    total_chars = sum(len(block) for block in blocks)
    progress = max(0.0, min(elapsed / duration, 1.0))
    position = progress * total_chars

    cumulative = 0
    for i, block in enumerate(blocks):
        cumulative += len(block)
        if cumulative >= position:
            return i
    return len(blocks) - 1


# =============================================================================
# BACKENDS
# =============================================================================
class PlaybackHandle(Protocol):
    """A started, forward-only playback instance."""

    def stop(self) -> None: ...


class AudioBackend(Protocol):
    """Anything that can start playing a buffer at an offset."""

    def play_from(self, buffer: SampleBuffer, offset: float) -> PlaybackHandle: ...


class PygameHandle:
    """Playback handle wrapping a pygame mixer channel."""

    def __init__(self, channel):
        self._channel = channel

    def stop(self) -> None:
        if self._channel is not None:
            self._channel.stop()
            self._channel = None


class PygameBackend:
    """Play sample buffers through pygame.mixer."""

    def __init__(self, sample_rate: int = SAMPLE_RATE):
        self.sample_rate = sample_rate
        self._initialized = False

    def _ensure_mixer(self) -> None:
        if self._initialized:
            return
        import pygame

        pygame.mixer.init(frequency=self.sample_rate, size=-16, channels=CHANNELS)
        self._initialized = True
        log.debug(f"pygame mixer initialized at {self.sample_rate} Hz")

    def play_from(self, buffer: SampleBuffer, offset: float) -> PygameHandle:
        import pygame

        self._ensure_mixer()
        sound = pygame.mixer.Sound(buffer=buffer.to_pcm(offset))
        return PygameHandle(sound.play())

    def close(self) -> None:
        if self._initialized:
            import pygame

            pygame.mixer.quit()
            self._initialized = False


# =============================================================================
# PLAYBACK ENGINE
# =============================================================================
class PlaybackState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"
    PLAYING = "playing"
    PAUSED = "paused"


class PlaybackEngine:
    """Narration state machine for one analysis text.

    idle -> generating -> playing <-> paused -> idle

    The decoded buffer is cached for the current text only; changing the text
    drops it.
    """

    def __init__(
        self,
        synthesize: Callable[[str], Awaitable[bytes]],
        backend: AudioBackend,
        clock: Callable[[], float] = time.monotonic,
        sample_rate: int = SAMPLE_RATE,
    ):
        self._synthesize = synthesize
        self._backend = backend
        self._clock = clock
        self._sample_rate = sample_rate

        self.state = PlaybackState.IDLE
        self.text = ""
        self.buffer: SampleBuffer | None = None
        self.offset = 0.0

        self._handle: PlaybackHandle | None = None
        self._started_at = 0.0
        self._text_generation = 0

    @property
    def duration(self) -> float:
        return self.buffer.duration if self.buffer else 0.0

    @property
    def elapsed(self) -> float:
        """Current playback position in seconds."""
        if self.state == PlaybackState.PLAYING:
            position = self.offset + (self._clock() - self._started_at)
            return min(position, self.duration)
        return self.offset

    def set_text(self, text: str) -> None:
        """Attach the engine to a new analysis text, dropping any old audio."""
        if text == self.text:
            return
        self.stop()
        self.text = text
        self.buffer = None
        self._text_generation += 1
        if self.state == PlaybackState.GENERATING:
            self.state = PlaybackState.IDLE

    async def play(self) -> None:
        """Start or resume narration, generating audio if needed."""
        if self.state in (PlaybackState.PLAYING, PlaybackState.GENERATING):
            return

        if self.buffer is None:
            generation = self._text_generation
            self.state = PlaybackState.GENERATING
            try:
                pcm = await self._synthesize(self.text)
            except Exception:
                if generation == self._text_generation:
                    self.state = PlaybackState.IDLE
                raise

            if generation != self._text_generation:
                log.debug("Discarding narration for replaced text")
                return

            self.buffer = decode_pcm(pcm, self._sample_rate)
            self.offset = 0.0
            log.info(f"Narration ready: {self.buffer.duration:.1f}s")

        self._start(self.offset)

    def _start(self, offset: float) -> None:
        self._release_handle()
        self.offset = offset
        self._handle = self._backend.play_from(self.buffer, offset)
        self._started_at = self._clock()
        self.state = PlaybackState.PLAYING

    def _release_handle(self) -> None:
        if self._handle is not None:
            self._handle.stop()
            self._handle = None

    def pause(self) -> None:
        """Stop the active source and remember where it was."""
        if self.state != PlaybackState.PLAYING:
            return
        position = self.elapsed
        self._release_handle()
        self.offset = position
        self.state = PlaybackState.PAUSED

    def stop(self) -> None:
        """Halt playback and rewind. Safe to call repeatedly."""
        self._release_handle()
        self.offset = 0.0
        if self.state != PlaybackState.GENERATING:
            self.state = PlaybackState.IDLE

    def seek(self, seconds: float) -> None:
        """Move the playback position; restarts immediately while playing."""
        if self.buffer is None:
            return
        target = max(0.0, min(seconds, self.duration))
        if self.state == PlaybackState.PLAYING:
            self._start(target)
        else:
            self.offset = target
            self.state = PlaybackState.PAUSED

    def poll(self) -> bool:
        """Detect natural completion. Returns True when playback just finished."""
        if self.state != PlaybackState.PLAYING:
            return False
        if abs(self.elapsed - self.duration) < COMPLETION_TOLERANCE:
            self._release_handle()
            self.offset = 0.0
            self.state = PlaybackState.IDLE
            return True
        return False

    def active_block(self, blocks: list[str]) -> int | None:
        """Index of the block estimated to be under narration, if any."""
        if self.state not in (PlaybackState.PLAYING, PlaybackState.PAUSED):
            return None
        return block_index_for_progress(blocks, self.elapsed, self.duration)
