"""Format conversions from raw bytes to renderable previews.

Word documents become escaped HTML built from python-docx's object model,
spreadsheets and CSV files become a capped grid through pandas.
"""

import io
import logging
import mimetypes
from html import escape

import pandas as pd
from docx import Document
from docx.table import Table
from docx.text.paragraph import Paragraph

from dealroom.models.schemas import DocumentRef, FileType, TablePreview
from dealroom.preview.errors import DecodeFailedError

logger = logging.getLogger(__name__)

MAX_PREVIEW_ROWS = 100
CSV_DELIMITERS = ",;\t|"
GENERIC_MIME = "application/octet-stream"

_DEFAULT_MEDIA_TYPES = {
    FileType.PDF: "application/pdf",
    FileType.TEXT: "text/plain; charset=utf-8",
}


def _render_runs(paragraph: Paragraph) -> str:
    parts: list[str] = []
    for run in paragraph.runs:
        text = escape(run.text)
        if not text:
            continue
        if run.bold:
            text = f"<strong>{text}</strong>"
        if run.italic:
            text = f"<em>{text}</em>"
        parts.append(text)
    return "".join(parts)


def _heading_level(style_name: str) -> int | None:
    if style_name == "Title":
        return 1
    if style_name.startswith("Heading "):
        suffix = style_name.removeprefix("Heading ")
        if suffix.isdigit():
            return min(int(suffix), 6)
    return None


def _list_tag(style_name: str) -> str | None:
    if style_name.startswith("List Number"):
        return "ol"
    if style_name.startswith("List"):
        return "ul"
    return None


def _render_table(table: Table) -> str:
    rows = []
    for row in table.rows:
        cells = "".join(f"<td>{escape(cell.text)}</td>" for cell in row.cells)
        rows.append(f"<tr>{cells}</tr>")
    return f"<table>{''.join(rows)}</table>"


def word_to_html(data: bytes) -> str:
    """Convert a .docx file to HTML.

    Every text node is escaped, so the markup only contains the tags
    generated here.

    Raises:
        DecodeFailedError: If the bytes are not a readable Word document.
    """
    try:
        document = Document(io.BytesIO(data))
    except Exception as e:
        logger.warning(f"Error processing Word file: {e}")
        raise DecodeFailedError("Unable to read the Word file") from e

    html: list[str] = []
    open_list: str | None = None

    for block in document.iter_inner_content():
        if isinstance(block, Table):
            tag = None
            rendered = _render_table(block)
        else:
            style_name = block.style.name if block.style is not None else ""
            tag = _list_tag(style_name)
            content = _render_runs(block)
            level = _heading_level(style_name)
            if tag:
                rendered = f"<li>{content}</li>"
            elif level:
                rendered = f"<h{level}>{content}</h{level}>"
            elif content:
                rendered = f"<p>{content}</p>"
            else:
                rendered = ""

        if open_list and tag != open_list:
            html.append(f"</{open_list}>")
            open_list = None
        if tag and open_list is None:
            html.append(f"<{tag}>")
            open_list = tag
        if rendered:
            html.append(rendered)

    if open_list:
        html.append(f"</{open_list}>")

    return "\n".join(html)


def decode_text(data: bytes) -> str:
    """Decode text bytes as UTF-8, tolerating a BOM and invalid sequences."""
    return data.decode("utf-8-sig", errors="replace")


def _frame_to_table(frame: pd.DataFrame, max_rows: int) -> TablePreview:
    values = frame.fillna("").astype(str).values.tolist()
    if not values:
        return TablePreview()

    headers, data_rows = values[0], values[1:]
    return TablePreview(
        headers=headers,
        rows=data_rows[:max_rows],
        total_rows=len(data_rows),
        truncated=len(data_rows) > max_rows,
    )


def _read_csv(data: bytes) -> pd.DataFrame:
    text = decode_text(data)
    if not text.strip():
        return pd.DataFrame()

    # The header line decides both the delimiter and the column count
    header = text.lstrip().splitlines()[0]
    delimiter = max(CSV_DELIMITERS, key=header.count)
    if delimiter not in header:
        delimiter = ","
    width = header.count(delimiter) + 1

    return pd.read_csv(
        io.StringIO(text),
        sep=delimiter,
        engine="python",
        header=None,
        dtype=str,
        keep_default_na=False,
        skip_blank_lines=True,
        on_bad_lines=lambda fields: fields[:width],
    )


def _read_workbook(data: bytes) -> pd.DataFrame:
    # First sheet only
    return pd.read_excel(io.BytesIO(data), sheet_name=0, header=None, dtype=str)


def parse_table(data: bytes, *, delimited: bool, max_rows: int = MAX_PREVIEW_ROWS) -> TablePreview:
    """Parse a spreadsheet or CSV file into a preview grid.

    The first row becomes the headers and at most ``max_rows`` data rows
    are kept.

    Args:
        data: Raw file bytes.
        delimited: Parse as CSV text instead of a workbook.
        max_rows: Data row cap.

    Raises:
        DecodeFailedError: If the file cannot be parsed.
    """
    try:
        frame = _read_csv(data) if delimited else _read_workbook(data)
    except Exception as e:
        logger.warning(f"Error processing spreadsheet: {e}")
        raise DecodeFailedError("Unable to read the spreadsheet") from e

    return _frame_to_table(frame, max_rows)


def media_type_for(ref: DocumentRef, file_type: FileType) -> str:
    """Content type used when serving a document's bytes."""
    declared = (ref.mime_type or "").lower()
    if declared and declared != GENERIC_MIME:
        return declared

    guessed, _ = mimetypes.guess_type(ref.name)
    if guessed:
        return guessed

    return _DEFAULT_MEDIA_TYPES.get(file_type, GENERIC_MIME)
