"""
Tests for PCM decoding and the narration playback engine.

The audio device is replaced by a recording backend and time by a
manually advanced clock.
"""

import struct
import tempfile
import unittest
import wave
from pathlib import Path

import numpy as np

from bookmind.core.audio import (
    SAMPLE_RATE,
    PlaybackEngine,
    PlaybackState,
    SampleBuffer,
    block_index_for_progress,
    decode_pcm,
    encode_pcm,
    write_wav,
)


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeHandle:
    def __init__(self):
        self.stopped = False

    def stop(self):
        self.stopped = True


class RecordingBackend:
    """Remembers every play_from call."""

    def __init__(self):
        self.calls = []
        self.handles = []

    def play_from(self, buffer, offset):
        self.calls.append(offset)
        handle = FakeHandle()
        self.handles.append(handle)
        return handle


def silent_pcm(seconds, sample_rate=SAMPLE_RATE):
    return b"\x00\x00" * int(seconds * sample_rate)


class TestPcmCodec(unittest.TestCase):
    """Raw 16-bit PCM conversion."""

    def test_decode_scales_to_unit_range(self):
        data = struct.pack("<4h", 0, 16384, -32768, 32767)
        buffer = decode_pcm(data)

        self.assertEqual(buffer.frame_count, 4)
        self.assertAlmostEqual(float(buffer.samples[0]), 0.0)
        self.assertAlmostEqual(float(buffer.samples[1]), 0.5)
        self.assertAlmostEqual(float(buffer.samples[2]), -1.0)
        self.assertAlmostEqual(float(buffer.samples[3]), 32767 / 32768)

    def test_round_trip_within_quantization_error(self):
        rng = np.random.default_rng(7)
        samples = rng.uniform(-1.0, 0.999, size=2400).astype(np.float32)

        decoded = decode_pcm(encode_pcm(samples)).samples

        self.assertEqual(len(decoded), len(samples))
        self.assertLessEqual(float(np.max(np.abs(decoded - samples))), 1 / 32768)

    def test_odd_trailing_byte_is_dropped(self):
        data = struct.pack("<2h", 100, -100) + b"\x01"
        buffer = decode_pcm(data)
        self.assertEqual(buffer.frame_count, 2)

    def test_encode_clips_out_of_range_samples(self):
        pcm = encode_pcm(np.array([2.0, -2.0]))
        self.assertEqual(struct.unpack("<2h", pcm), (32767, -32768))

    def test_duration_and_frame_at(self):
        buffer = decode_pcm(silent_pcm(2.0))
        self.assertAlmostEqual(buffer.duration, 2.0)
        self.assertEqual(buffer.frame_at(1.0), SAMPLE_RATE)
        self.assertEqual(buffer.frame_at(-5), 0)
        self.assertEqual(buffer.frame_at(99), buffer.frame_count)

    def test_to_pcm_from_offset(self):
        buffer = SampleBuffer(samples=np.array([0.0, 0.5, -0.5], dtype=np.float32), sample_rate=1)
        self.assertEqual(struct.unpack("<2h", buffer.to_pcm(1.0)), (16384, -16384))

    def test_write_wav_header(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "narration.wav"
            write_wav(path, silent_pcm(0.5))

            with wave.open(str(path), "rb") as wf:
                self.assertEqual(wf.getnchannels(), 1)
                self.assertEqual(wf.getsampwidth(), 2)
                self.assertEqual(wf.getframerate(), SAMPLE_RATE)
                self.assertEqual(wf.getnframes(), SAMPLE_RATE // 2)


class TestBlockIndex(unittest.TestCase):
    """Estimating which paragraph is being read."""

    def test_no_blocks_or_duration(self):
        self.assertIsNone(block_index_for_progress([], 1.0, 10.0))
        self.assertIsNone(block_index_for_progress(["a"], 1.0, 0.0))

    def test_proportional_position(self):
        blocks = ["a" * 100, "b" * 100, "c" * 200]
        self.assertEqual(block_index_for_progress(blocks, 0.0, 40.0), 0)
        self.assertEqual(block_index_for_progress(blocks, 9.0, 40.0), 0)
        self.assertEqual(block_index_for_progress(blocks, 15.0, 40.0), 1)
        self.assertEqual(block_index_for_progress(blocks, 30.0, 40.0), 2)
        self.assertEqual(block_index_for_progress(blocks, 80.0, 40.0), 2)


class TestPlaybackEngine(unittest.IsolatedAsyncioTestCase):
    """Narration state machine."""

    def setUp(self):
        self.clock = FakeClock()
        self.backend = RecordingBackend()
        self.requests = []

        async def synthesize(text):
            self.requests.append(text)
            return silent_pcm(40.0)

        self.engine = PlaybackEngine(synthesize, self.backend, clock=self.clock)
        self.engine.set_text("An analysis to narrate.")

    async def test_play_generates_once_and_starts_at_zero(self):
        await self.engine.play()

        self.assertEqual(self.engine.state, PlaybackState.PLAYING)
        self.assertEqual(self.requests, ["An analysis to narrate."])
        self.assertEqual(self.backend.calls, [0.0])
        self.assertAlmostEqual(self.engine.duration, 40.0)

    async def test_pause_and_resume_from_same_offset(self):
        await self.engine.play()
        self.clock.advance(12.5)

        self.engine.pause()
        self.assertEqual(self.engine.state, PlaybackState.PAUSED)
        self.assertAlmostEqual(self.engine.elapsed, 12.5)
        self.assertTrue(self.backend.handles[0].stopped)

        self.clock.advance(30)  # time passing while paused does not count
        await self.engine.play()

        self.assertEqual(self.requests, ["An analysis to narrate."])
        self.assertAlmostEqual(self.backend.calls[-1], 12.5)
        self.clock.advance(2)
        self.assertAlmostEqual(self.engine.elapsed, 14.5)

    async def test_stop_is_idempotent(self):
        await self.engine.play()
        self.clock.advance(5)

        self.engine.stop()
        self.engine.stop()

        self.assertEqual(self.engine.state, PlaybackState.IDLE)
        self.assertEqual(self.engine.offset, 0.0)
        self.assertTrue(self.backend.handles[0].stopped)

    async def test_stop_before_play_is_harmless(self):
        self.engine.stop()
        self.assertEqual(self.engine.state, PlaybackState.IDLE)
        self.assertEqual(self.backend.calls, [])

    async def test_seek_while_playing_restarts_source(self):
        await self.engine.play()
        self.clock.advance(3)

        self.engine.seek(20.0)

        self.assertEqual(self.engine.state, PlaybackState.PLAYING)
        self.assertEqual(self.backend.calls, [0.0, 20.0])
        self.assertTrue(self.backend.handles[0].stopped)
        self.assertAlmostEqual(self.engine.elapsed, 20.0)

    async def test_seek_is_clamped_and_pauses_when_not_playing(self):
        await self.engine.play()
        self.engine.pause()

        self.engine.seek(500.0)
        self.assertEqual(self.engine.state, PlaybackState.PAUSED)
        self.assertAlmostEqual(self.engine.offset, 40.0)

        self.engine.seek(-3.0)
        self.assertAlmostEqual(self.engine.offset, 0.0)

    async def test_seek_without_audio_is_ignored(self):
        self.engine.seek(10.0)
        self.assertEqual(self.engine.state, PlaybackState.IDLE)
        self.assertEqual(self.engine.offset, 0.0)

    async def test_poll_detects_natural_completion(self):
        await self.engine.play()
        self.clock.advance(20)
        self.assertFalse(self.engine.poll())

        self.clock.advance(19.8)
        self.assertTrue(self.engine.poll())
        self.assertEqual(self.engine.state, PlaybackState.IDLE)
        self.assertEqual(self.engine.offset, 0.0)

    async def test_replay_after_completion_reuses_audio(self):
        await self.engine.play()
        self.clock.advance(40)
        self.engine.poll()

        await self.engine.play()
        self.assertEqual(len(self.requests), 1)
        self.assertEqual(self.backend.calls, [0.0, 0.0])

    async def test_new_text_drops_cached_audio(self):
        await self.engine.play()
        self.engine.set_text("A regenerated analysis.")

        self.assertEqual(self.engine.state, PlaybackState.IDLE)
        self.assertIsNone(self.engine.buffer)

        await self.engine.play()
        self.assertEqual(self.requests, ["An analysis to narrate.", "A regenerated analysis."])

    async def test_synthesis_failure_returns_to_idle(self):
        async def failing(text):
            raise RuntimeError("no audio")

        engine = PlaybackEngine(failing, self.backend, clock=self.clock)
        engine.set_text("text")

        with self.assertRaises(RuntimeError):
            await engine.play()
        self.assertEqual(engine.state, PlaybackState.IDLE)
        self.assertEqual(self.backend.calls, [])

    async def test_active_block_only_while_narrating(self):
        blocks = ["a" * 50, "b" * 50]
        self.assertIsNone(self.engine.active_block(blocks))

        await self.engine.play()
        self.clock.advance(30)
        self.assertEqual(self.engine.active_block(blocks), 1)


if __name__ == "__main__":
    unittest.main()
