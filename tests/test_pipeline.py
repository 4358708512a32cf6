"""Tests for file helpers shared by the reader and the CLI."""

import tempfile
import unittest
from pathlib import Path

from bookmind.models.analysis import AnalysisType, SlideImage
from bookmind.models.book import BookSession, Chapter
from bookmind.tui.pipeline import (
    format_file_size,
    get_default_output_path,
    save_chapter_slide,
    save_slide,
    scan_for_books,
    slugify,
)


class TestPipelineHelpers(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_scan_for_books(self):
        for name in ["b.pdf", "A.PDF", "notes.txt", "c.epub"]:
            (self.tmp / name).write_bytes(b"")
        self.assertEqual([p.name for p in scan_for_books(self.tmp)], ["A.PDF", "b.pdf"])

    def test_format_file_size(self):
        self.assertEqual(format_file_size(512), "512 B")
        self.assertEqual(format_file_size(2048), "2.0 KB")
        self.assertEqual(format_file_size(5 * 1024 * 1024), "5.0 MB")

    def test_slugify(self):
        self.assertEqual(slugify("Chapter 3: The Turning Point!"), "Chapter_3_The_Turning_Point")
        self.assertEqual(slugify("???"), "chapter")

    def test_default_output_path(self):
        chapter = Chapter(number="3", title="The Turning Point", description="-")
        path = get_default_output_path(
            self.tmp / "My Book.pdf", chapter, AnalysisType.DETAILED, ".png"
        )
        self.assertEqual(path.parent, self.tmp)
        self.assertEqual(path.name, "My_Book_ch3_The_Turning_Point_detailed.png")

    def test_save_slide_fixes_extension(self):
        slide = SlideImage(data=b"jpegdata", mime_type="image/jpeg")
        saved = save_slide(slide, self.tmp / "slide.png")
        self.assertEqual(saved.name, "slide.jpg")
        self.assertEqual(saved.read_bytes(), b"jpegdata")

    def test_slide_html_embeds_data_uri(self):
        slide = SlideImage(data=b"png", mime_type="image/png")
        saved = save_slide(slide, self.tmp / "slide.html")
        self.assertEqual(saved.name, "slide.html")
        self.assertIn(f'src="{slide.data_uri}"', saved.read_text(encoding="utf-8"))

    def test_chapter_slide_lands_next_to_book(self):
        books = self.tmp / "books"
        books.mkdir()
        chapter = Chapter(number="2", title="Middles", description="-")
        session = BookSession(
            file_name="novel.pdf", source_path=books / "novel.pdf", chapters=(chapter,)
        )

        saved = save_chapter_slide(session, chapter, AnalysisType.STANDARD, SlideImage(data=b"img"))

        self.assertEqual(saved.parent, books)
        self.assertEqual(saved.name, "novel_ch2_Middles_standard.png")

    def test_chapter_slide_save_errors_propagate(self):
        chapter = Chapter(number="2", title="Middles", description="-")
        session = BookSession(
            file_name="novel.pdf", source_path=self.tmp / "gone" / "novel.pdf", chapters=(chapter,)
        )
        with self.assertRaises(OSError):
            save_chapter_slide(session, chapter, AnalysisType.STANDARD, SlideImage(data=b"img"))


if __name__ == "__main__":
    unittest.main()
