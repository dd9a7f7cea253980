"""PDF parsing utilities for document previews.

Responsibilities:
    - Header and size validation before handing bytes to pypdf
    - Page count and title for the embedded viewer's label
    - Per-page text for the viewer's textual fallback
"""

from dealroom.parsing.pdf_parser import PDFContent, PDFParseError, inspect_pdf, parse_pdf

__all__ = ["PDFContent", "PDFParseError", "inspect_pdf", "parse_pdf"]
