"""Tests for narration text preparation and chunking."""

import unittest

from bookmind.core.content_processor import MAX_SPEECH_CHUNK, ContentProcessor


class TestPrepareForSpeech(unittest.TestCase):

    def setUp(self):
        self.processor = ContentProcessor()

    def test_strips_emphasis_headings_and_code(self):
        text = "## Summary\n**Bold** and *italic* with `code`."
        self.assertEqual(
            self.processor.prepare_for_speech(text),
            "Summary. Bold and italic with code.",
        )

    def test_links_keep_their_label(self):
        text = "See [the author's site](https://example.com) for more."
        self.assertEqual(
            self.processor.prepare_for_speech(text),
            "See the author's site for more.",
        )

    def test_bullets_become_pauses(self):
        text = "Key ideas:\n- first\n- second"
        spoken = self.processor.prepare_for_speech(text)
        self.assertNotIn("-", spoken)
        self.assertIn(", first", spoken)
        self.assertIn(", second", spoken)


class TestChunking(unittest.TestCase):

    def setUp(self):
        self.processor = ContentProcessor()

    def test_short_text_is_one_chunk(self):
        self.assertEqual(self.processor.chunk_for_speech("Hello there."), ["Hello there."])

    def test_blank_text_has_no_chunks(self):
        self.assertEqual(self.processor.chunk_for_speech("   "), [])

    def test_sentences_keep_all_characters(self):
        text = "One. Two! Three? trailing words"
        self.assertEqual("".join(self.processor.split_sentences(text)), text)

    def test_chunks_cover_text_in_order(self):
        sentence = "This sentence is about forty characters. "
        text = sentence * 200

        chunks = self.processor.chunk_for_speech(text)

        self.assertGreater(len(chunks), 1)
        self.assertEqual("".join(chunks), text)
        for chunk in chunks:
            self.assertLessEqual(len(chunk), MAX_SPEECH_CHUNK)

    def test_custom_limit_splits_on_sentence_boundaries(self):
        text = "Alpha beta. Gamma delta. Epsilon zeta."
        chunks = self.processor.chunk_for_speech(text, max_length=15)
        self.assertEqual(chunks, ["Alpha beta.", " Gamma delta.", " Epsilon zeta."])

    def test_oversized_sentence_kept_whole(self):
        long_sentence = "word " * 20 + "end."
        text = "Short. " + long_sentence
        chunks = self.processor.chunk_for_speech(text, max_length=30)
        self.assertEqual(chunks, ["Short.", " " + long_sentence])


class TestBlocks(unittest.TestCase):

    def test_split_blocks(self):
        text = "# Title\n\nFirst paragraph\nstill first.\n\n\n- a\n- b\n"
        blocks = ContentProcessor().split_blocks(text)
        self.assertEqual(blocks, ["# Title", "First paragraph\nstill first.", "- a\n- b"])


if __name__ == "__main__":
    unittest.main()
