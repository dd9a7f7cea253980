"""File type detection for document previews.

Filenames win over declared MIME types: storage frequently labels files
``application/octet-stream``, while the extension is usually right.
"""

from dealroom.models.schemas import DocumentRef, FileType

# Checked in order; the first matching extension wins.
EXTENSION_TYPES: tuple[tuple[tuple[str, ...], FileType], ...] = (
    ((".pdf",), FileType.PDF),
    ((".doc", ".docx"), FileType.WORD),
    ((".xls", ".xlsx", ".csv"), FileType.EXCEL),
    ((".txt",), FileType.TEXT),
    ((".jpg", ".jpeg", ".png", ".gif", ".webp"), FileType.IMAGE),
)


def _type_from_mime(mime: str) -> FileType:
    if "pdf" in mime:
        return FileType.PDF
    if "word" in mime or "officedocument.wordprocessing" in mime:
        return FileType.WORD
    if "spreadsheet" in mime or "excel" in mime or "csv" in mime:
        return FileType.EXCEL
    if mime.startswith("text/"):
        return FileType.TEXT
    if mime.startswith("image/"):
        return FileType.IMAGE
    return FileType.UNKNOWN


def detect_file_type(ref: DocumentRef) -> FileType:
    """Pick the renderer family for a document.

    Inline text always renders as text. Otherwise the extension decides,
    then the declared MIME type.
    """
    if ref.inline_text:
        return FileType.TEXT

    name = ref.name.lower()
    for extensions, file_type in EXTENSION_TYPES:
        if name.endswith(extensions):
            return file_type

    return _type_from_mime((ref.mime_type or "").lower())


def is_csv(ref: DocumentRef) -> bool:
    """Whether a spreadsheet should be parsed as delimited text."""
    name = ref.name.lower()
    if name.endswith(".csv"):
        return True
    if name.endswith((".xls", ".xlsx")):
        return False
    return "csv" in (ref.mime_type or "").lower()
