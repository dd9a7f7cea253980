"""PDF inspection using pypdf.

Reads page count, title and per-page text so the preview can label the
embedded viewer and offer a text fallback when the browser cannot render it.
"""

import io
import logging

from pydantic import BaseModel, Field
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from dealroom.models.schemas import PDFInfo

logger = logging.getLogger(__name__)

# Constants
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
PDF_MAGIC_BYTES = b"%PDF"


class PDFContent(BaseModel):
    """Extracted text of a PDF file.

    Attributes:
        info: Page count and title.
        pages: Text of each page, empty for pages without a text layer.
    """

    info: PDFInfo
    pages: list[str] = Field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n\n".join(page for page in self.pages if page)


class PDFParseError(Exception):
    """Raised when PDF parsing fails."""

    pass


def _validate_pdf_bytes(file_content: bytes) -> None:
    """Validate PDF file content before parsing.

    Raises:
        PDFParseError: If validation fails.
    """
    if not file_content:
        raise PDFParseError("Empty file provided")

    if len(file_content) > MAX_FILE_SIZE:
        size_mb = len(file_content) / (1024 * 1024)
        raise PDFParseError(f"File size ({size_mb:.1f}MB) exceeds maximum allowed (50MB)")

    if not file_content.lstrip()[:10].startswith(PDF_MAGIC_BYTES):
        raise PDFParseError("Invalid PDF: file does not start with PDF header")


def _open_reader(file_content: bytes) -> PdfReader:
    _validate_pdf_bytes(file_content)
    try:
        return PdfReader(io.BytesIO(file_content))
    except PdfReadError as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e
    except Exception as e:
        raise PDFParseError(f"Failed to read PDF: {e}") from e


def _read_info(reader: PdfReader) -> PDFInfo:
    try:
        pages = len(reader.pages)
    except Exception as e:
        raise PDFParseError(f"Corrupt or invalid PDF: {e}") from e

    title = None
    try:
        if reader.metadata and reader.metadata.title:
            title = str(reader.metadata.title)
    except Exception as e:
        logger.warning(f"Failed to read PDF title: {e}")

    return PDFInfo(pages=pages, title=title)


def inspect_pdf(file_content: bytes) -> PDFInfo:
    """Read page count and title without extracting text.

    Raises:
        PDFParseError: If the file is empty, too large, not a PDF, or corrupt.
    """
    return _read_info(_open_reader(file_content))


def parse_pdf(file_content: bytes) -> PDFContent:
    """Extract the text of every page.

    Args:
        file_content: Raw bytes of the PDF file.

    Returns:
        PDFContent with document info and per-page text.

    Raises:
        PDFParseError: If the file is invalid, too large, empty, or corrupt.
    """
    reader = _open_reader(file_content)
    info = _read_info(reader)

    pages: list[str] = []
    for i, page in enumerate(reader.pages):
        try:
            pages.append(page.extract_text() or "")
        except Exception as e:
            logger.warning(f"Failed to extract text from page {i + 1}: {e}")
            pages.append("")

    if not any(page.strip() for page in pages):
        logger.warning("PDF contains no extractable text (may be scanned/image-based)")

    return PDFContent(info=info, pages=pages)
