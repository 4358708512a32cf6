"""PDF text extraction with scanned-document detection."""

import logging
from pathlib import Path

# Suppress warnings about malformed PDF object references from PDF libraries
logging.getLogger("pdfminer").setLevel(logging.ERROR)
logging.getLogger("pypdf").setLevel(logging.ERROR)

import pdfplumber
import pypdf
from pypdf.errors import EmptyFileError, FileNotDecryptedError, PdfReadError

from bookmind.models.book import ExtractedDocument

log = logging.getLogger(__name__)

# Average characters per page below which a document is treated as scanned
SCANNED_CHARS_PER_PAGE = 50

SUPPORTED_SUFFIXES = {".pdf"}


class ExtractionError(Exception):
    """The PDF could not be read."""


def is_supported(path: Path) -> bool:
    """Check if file format is supported."""
    return path.suffix.lower() in SUPPORTED_SUFFIXES


def format_page(page_number: int, page_text: str) -> str:
    """Render one page of extracted text with its separator line."""
    return f"--- Page {page_number} ---\n{page_text}\n\n"


class PdfTextExtractor:
    """Extract page-segmented text from a PDF file."""

    def __init__(self, pdf_path: Path):
        self.path = pdf_path

        if not pdf_path.exists():
            raise ExtractionError(f"File not found: {pdf_path}")

        try:
            self._reader = pypdf.PdfReader(str(pdf_path))
        except FileNotDecryptedError:
            raise ExtractionError("PDF is encrypted. Please decrypt first.")
        except EmptyFileError:
            raise ExtractionError("PDF file is empty.")
        except PdfReadError as e:
            raise ExtractionError(f"PDF appears corrupted: {e}")
        except (OSError, ValueError) as e:
            raise ExtractionError(f"Invalid or corrupted PDF file: {e}")

    @property
    def page_count(self) -> int:
        return len(self._reader.pages)

    def read_bytes(self) -> bytes:
        """Raw document bytes, needed for visual mode."""
        return self.path.read_bytes()

    def extract(self) -> ExtractedDocument:
        """Extract full text and decide whether the document looks scanned."""
        parts: list[str] = []
        total_content_length = 0

        # pypdf resolves the page tree lazily, so a broken /Pages only shows up here
        try:
            page_count = self.page_count
            if page_count == 0:
                raise ExtractionError("PDF has no pages.")

            for page_number, page in enumerate(self._reader.pages, 1):
                try:
                    page_text = page.extract_text() or ""
                except Exception as e:
                    log.warning(f"Error extracting page {page_number}: {e}")
                    continue

                page_text = " ".join(page_text.split("\n")).strip()
                if page_text:
                    parts.append(format_page(page_number, page_text))
                    total_content_length += len(page_text)
        except (PdfReadError, KeyError, ValueError, TypeError, AttributeError) as e:
            raise ExtractionError(f"PDF page tree is unreadable: {e}")

        text = "".join(parts).strip()
        sparse_text = (total_content_length / page_count) < SCANNED_CHARS_PER_PAGE

        image_pages = self._count_image_only_pages()
        image_heavy = image_pages * 2 > page_count

        if sparse_text or image_heavy:
            log.info(
                f"Scanned document detected: {total_content_length} chars over "
                f"{page_count} pages, {image_pages} image-only pages"
            )

        return ExtractedDocument(
            text=text,
            page_count=page_count,
            is_scanned=sparse_text or image_heavy,
            image_page_count=image_pages,
        )

    def _count_image_only_pages(self) -> int:
        """Count pages that carry images but almost no text."""
        count = 0
        try:
            with pdfplumber.open(str(self.path)) as pdf:
                for page in pdf.pages:
                    if not page.images:
                        continue
                    text = page.extract_text() or ""
                    if len(text.strip()) < SCANNED_CHARS_PER_PAGE:
                        count += 1
        except Exception as e:
            log.warning(f"Image inspection failed: {e}")
            return 0
        return count


def extract_document(pdf_path: Path) -> tuple[ExtractedDocument, bytes]:
    """Extract text and raw bytes from a PDF in one step."""
    extractor = PdfTextExtractor(pdf_path)
    return extractor.extract(), extractor.read_bytes()
