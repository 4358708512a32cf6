"""Tests for PDF text extraction and scanned-document detection."""

import tempfile
import unittest
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import patch

import pypdf
from pypdf.errors import PdfReadError

from bookmind.core.pdf_parser import (
    ExtractionError,
    PdfTextExtractor,
    extract_document,
    format_page,
    is_supported,
)


def fake_page(text=None, error=None):
    def extract_text():
        if error:
            raise error
        return text

    return SimpleNamespace(extract_text=extract_text)


class PdfTestCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def write_blank_pdf(self, pages):
        writer = pypdf.PdfWriter()
        for _ in range(pages):
            writer.add_blank_page(width=612, height=792)
        path = self.tmp / "blank.pdf"
        with open(path, "wb") as f:
            writer.write(f)
        return path

    def extractor_for(self, pages):
        """Extractor over an in-memory page list, with image inspection disabled."""
        path = self.tmp / "book.pdf"
        path.write_bytes(b"%PDF-1.4")
        with patch("bookmind.core.pdf_parser.pypdf.PdfReader") as reader:
            reader.return_value = SimpleNamespace(pages=pages)
            extractor = PdfTextExtractor(path)
        extractor._count_image_only_pages = lambda: 0
        return extractor


class TestHelpers(unittest.TestCase):

    def test_is_supported(self):
        self.assertTrue(is_supported(Path("book.pdf")))
        self.assertTrue(is_supported(Path("BOOK.PDF")))
        self.assertFalse(is_supported(Path("book.epub")))

    def test_format_page(self):
        self.assertEqual(format_page(3, "Hello"), "--- Page 3 ---\nHello\n\n")


class TestTextExtraction(PdfTestCase):

    def test_pages_are_segmented(self):
        long_line = "word " * 30
        extractor = self.extractor_for([
            fake_page(f"First\npage {long_line}"),
            fake_page(""),
            fake_page(f"Third page {long_line}"),
        ])

        document = extractor.extract()

        self.assertTrue(document.text.startswith("--- Page 1 ---\nFirst page"))
        self.assertIn("--- Page 3 ---\nThird page", document.text)
        self.assertNotIn("--- Page 2 ---", document.text)
        self.assertEqual(document.page_count, 3)
        self.assertFalse(document.is_scanned)

    def test_failing_page_is_skipped(self):
        text = "A readable page with enough characters to count as real text content."
        extractor = self.extractor_for([
            fake_page(error=ValueError("broken stream")),
            fake_page(text),
        ])

        with self.assertLogs("bookmind.core.pdf_parser", level="WARNING"):
            document = extractor.extract()

        self.assertIn("--- Page 2 ---", document.text)
        self.assertNotIn("--- Page 1 ---", document.text)

    def test_sparse_text_counts_as_scanned(self):
        extractor = self.extractor_for([fake_page("12"), fake_page("13"), fake_page("")])
        document = extractor.extract()
        self.assertTrue(document.is_scanned)
        self.assertTrue(document.needs_visual_mode)

    def test_image_heavy_counts_as_scanned(self):
        text = "plenty of text on this page " * 10
        extractor = self.extractor_for([fake_page(text), fake_page(text), fake_page(text)])
        extractor._count_image_only_pages = lambda: 2

        document = extractor.extract()

        self.assertTrue(document.is_scanned)
        self.assertEqual(document.image_page_count, 2)

    def test_no_pages(self):
        with self.assertRaises(ExtractionError):
            self.extractor_for([]).extract()

    def test_unreadable_page_tree(self):
        class BrokenPages:
            def __len__(self):
                raise PdfReadError("Invalid object in /Pages")

        extractor = self.extractor_for(BrokenPages())

        with self.assertRaises(ExtractionError) as ctx:
            extractor.extract()
        self.assertIn("Invalid object in /Pages", str(ctx.exception))


class TestRealFiles(PdfTestCase):

    def test_blank_pdf_is_scanned(self):
        path = self.write_blank_pdf(10)

        document, data = extract_document(path)

        self.assertEqual(document.page_count, 10)
        self.assertEqual(document.text, "")
        self.assertTrue(document.is_scanned)
        self.assertEqual(data, path.read_bytes())

    def test_missing_file(self):
        with self.assertRaises(ExtractionError):
            PdfTextExtractor(self.tmp / "missing.pdf")

    def test_corrupted_file(self):
        path = self.tmp / "broken.pdf"
        path.write_bytes(b"this is not a pdf at all")
        with self.assertRaises(ExtractionError):
            PdfTextExtractor(path)

    def test_empty_file(self):
        path = self.tmp / "empty.pdf"
        path.write_bytes(b"")
        with self.assertRaises(ExtractionError):
            PdfTextExtractor(path)


if __name__ == "__main__":
    unittest.main()
