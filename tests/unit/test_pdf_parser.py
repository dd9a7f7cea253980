"""Unit tests for PDF parser module."""

import io

import pytest
import pytest_check as check
from pypdf import PdfWriter

from dealroom.parsing.pdf_parser import MAX_FILE_SIZE, PDFParseError, inspect_pdf, parse_pdf


def blank_pdf(pages: int = 1, title: str | None = None) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=612, height=792)
    if title:
        writer.add_metadata({"/Title": title})
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


class TestInspectPdf:
    """Tests for page count and title extraction."""

    def test_page_count(self) -> None:
        check.equal(inspect_pdf(blank_pdf(3)).pages, 3)

    def test_title(self) -> None:
        info = inspect_pdf(blank_pdf(title="Series A deck"))

        check.equal(info.title, "Series A deck")

    def test_missing_title(self) -> None:
        check.is_none(inspect_pdf(blank_pdf()).title)


class TestParsePdfValid:
    """Tests for successful PDF parsing."""

    def test_empty_page_pdf_succeeds(self) -> None:
        """PDF with empty pages parses without error."""
        result = parse_pdf(blank_pdf(2))

        check.equal(result.info.pages, 2)
        check.equal(len(result.pages), 2)
        check.equal(result.text, "")


class TestParsePdfRejection:
    """Tests for PDF validation and rejection."""

    def test_rejects_empty_bytes(self) -> None:
        """Empty bytes raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Empty file"):
            parse_pdf(b"")

    def test_rejects_non_pdf_file(self) -> None:
        """Non-PDF file raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Invalid PDF"):
            inspect_pdf(b"PK\x03\x04 this is a zip archive")

    def test_rejects_oversized_file(self) -> None:
        """File over 50MB raises PDFParseError."""
        oversized = b"%PDF-1.4" + b"\x00" * (MAX_FILE_SIZE + 1)

        with pytest.raises(PDFParseError, match="exceeds maximum"):
            parse_pdf(oversized)

    def test_rejects_truncated_pdf(self) -> None:
        """Truncated PDF raises PDFParseError."""
        with pytest.raises(PDFParseError, match="Corrupt|Failed"):
            parse_pdf(b"%PDF-1.4\n1 0 obj\n<<")
