"""Multi-format document previews.

Responsibilities:
    - File type detection from filename and declared MIME type
    - Ordered fallback across storage areas when downloading bytes
    - Conversion to HTML (Word), grids (Excel/CSV), text, or object URLs
    - Zoom control and release of object URLs when a preview closes

Failures are reported as ``PreviewError`` subclasses carrying a
user-facing message and the recovery actions to offer.
"""

from dealroom.preview.detection import detect_file_type, is_csv
from dealroom.preview.errors import (
    DecodeFailedError,
    FetchFailedError,
    NoFileAttachedError,
    PreviewError,
    RecoveryAction,
    UnsupportedFormatError,
)
from dealroom.preview.object_urls import ObjectUrlRegistry, get_object_urls
from dealroom.preview.resolver import (
    DocumentPreviewResolver,
    PreviewState,
    PreviewStatus,
    ZoomControl,
)

__all__ = [
    "DecodeFailedError",
    "DocumentPreviewResolver",
    "FetchFailedError",
    "NoFileAttachedError",
    "ObjectUrlRegistry",
    "PreviewError",
    "PreviewState",
    "PreviewStatus",
    "RecoveryAction",
    "UnsupportedFormatError",
    "ZoomControl",
    "detect_file_type",
    "get_object_urls",
    "is_csv",
]
