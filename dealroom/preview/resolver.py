"""Document preview resolution.

Turns a ``DocumentRef`` into whatever its renderer needs: decoded text,
Word HTML, a spreadsheet grid, or an object URL for PDFs and images. Files
may live in any of several storage areas; they are tried one after the
other until one answers.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from dealroom.config import AppConfig
from dealroom.models.schemas import DocumentRef, FileType, PDFInfo, TablePreview
from dealroom.parsing.pdf_parser import PDFParseError, inspect_pdf, parse_pdf
from dealroom.preview.converters import (
    MAX_PREVIEW_ROWS,
    decode_text,
    media_type_for,
    parse_table,
    word_to_html,
)
from dealroom.preview.detection import detect_file_type, is_csv
from dealroom.preview.errors import (
    DecodeFailedError,
    FetchFailedError,
    NoFileAttachedError,
    PreviewError,
    UnsupportedFormatError,
)
from dealroom.preview.object_urls import ObjectUrlRegistry, get_object_urls

logger = logging.getLogger(__name__)


class BlobSource(Protocol):
    async def download(self, area: str, path: str) -> bytes: ...


class PreviewStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


@dataclass
class PreviewState:
    """Everything the preview panel renders for the current document."""

    document: DocumentRef | None = None
    file_type: FileType = FileType.UNKNOWN
    status: PreviewStatus = PreviewStatus.IDLE
    error: PreviewError | None = None
    data: bytes | None = None
    text: str | None = None
    html: str | None = None
    table: TablePreview | None = None
    object_url: str | None = None
    pdf_info: PDFInfo | None = None

    @property
    def size(self) -> int | None:
        """Size in bytes of the fetched file."""
        return len(self.data) if self.data is not None else None


class ZoomControl:
    """Percentage zoom clamped to a range, moved in fixed steps."""

    def __init__(self, minimum: int = 50, maximum: int = 200, step: int = 25, default: int = 100) -> None:
        if not minimum <= default <= maximum:
            raise ValueError("default zoom must lie within [minimum, maximum]")
        self.minimum = minimum
        self.maximum = maximum
        self.step = step
        self.default = default
        self.level = default

    @classmethod
    def from_config(cls, config: AppConfig) -> "ZoomControl":
        return cls(minimum=config.zoom_min, maximum=config.zoom_max, step=config.zoom_step)

    @property
    def can_zoom_in(self) -> bool:
        return self.level < self.maximum

    @property
    def can_zoom_out(self) -> bool:
        return self.level > self.minimum

    @property
    def scale(self) -> float:
        return self.level / 100

    def zoom_in(self) -> int:
        self.level = min(self.level + self.step, self.maximum)
        return self.level

    def zoom_out(self) -> int:
        self.level = max(self.level - self.step, self.minimum)
        return self.level

    def reset(self) -> int:
        self.level = self.default
        return self.level


class DocumentPreviewResolver:
    """Loads and converts one document at a time for a preview panel.

    Each panel owns its resolver, so the object URL, decoded content and
    zoom level are never shared between previews.

    Args:
        storage: Source of file bytes, queried per storage area.
        areas: Storage areas, in the order they are tried.
        urls: Registry for object URLs. Defaults to the shared registry.
        max_rows: Data row cap for spreadsheet previews.
        zoom: Zoom control, reset whenever the document changes.
    """

    def __init__(
        self,
        storage: BlobSource,
        areas: Sequence[str],
        *,
        urls: ObjectUrlRegistry | None = None,
        max_rows: int = MAX_PREVIEW_ROWS,
        zoom: ZoomControl | None = None,
    ) -> None:
        if not areas:
            raise ValueError("At least one storage area is required")
        self._storage = storage
        self.areas = list(areas)
        self._urls = urls if urls is not None else get_object_urls()
        self.max_rows = max_rows
        self.zoom = zoom or ZoomControl()
        self.state = PreviewState()
        self._generation = 0

    @classmethod
    def from_config(
        cls,
        storage: BlobSource,
        config: AppConfig,
        urls: ObjectUrlRegistry | None = None,
    ) -> "DocumentPreviewResolver":
        return cls(
            storage,
            config.storage_areas,
            urls=urls,
            max_rows=config.preview_max_rows,
            zoom=ZoomControl.from_config(config),
        )

    async def fetch_bytes(self, path: str) -> bytes:
        """Download ``path`` from the first storage area that has it.

        Areas are tried strictly in order; the next one is only queried
        after the previous one failed.

        Raises:
            FetchFailedError: If every area failed.
        """
        failed: list[str] = []
        for area in self.areas:
            try:
                data = await self._storage.download(area, path)
            except Exception as e:
                logger.warning(f"Could not load {path} from {area}: {e}")
                failed.append(area)
                continue

            if failed:
                logger.info(f"Loaded {path} from {area} after trying {', '.join(failed)}")
            return data

        raise FetchFailedError(failed)

    async def open(self, ref: DocumentRef) -> PreviewState | None:
        """Resolve ``ref`` into renderable content.

        Returns:
            The new state, or None when another ``open`` or ``close`` call
            superseded this one while the file was downloading.
        """
        previous = self.state.document
        self._release()
        if previous is None or previous.identity != ref.identity:
            self.zoom.reset()

        self._generation += 1
        generation = self._generation
        file_type = detect_file_type(ref)
        self.state = PreviewState(document=ref, file_type=file_type, status=PreviewStatus.LOADING)

        if ref.inline_text:
            self.state.text = ref.inline_text
            self.state.status = PreviewStatus.READY
            return self.state
        if not ref.storage_path:
            return self._fail(NoFileAttachedError())
        if file_type is FileType.UNKNOWN:
            return self._fail(UnsupportedFormatError())

        try:
            data = await self.fetch_bytes(ref.storage_path)
        except FetchFailedError as e:
            if generation != self._generation:
                return None
            logger.error(f"Error loading {ref.name} for preview: tried {', '.join(e.attempts)}")
            return self._fail(e)

        if generation != self._generation:
            logger.debug(f"Discarding stale preview of {ref.name}")
            return None

        try:
            self._convert(ref, file_type, data)
        except DecodeFailedError as e:
            return self._fail(e)

        self.state.status = PreviewStatus.READY
        return self.state

    def _convert(self, ref: DocumentRef, file_type: FileType, data: bytes) -> None:
        state = self.state
        state.data = data

        if file_type is FileType.WORD:
            state.html = word_to_html(data)
        elif file_type is FileType.EXCEL:
            state.table = parse_table(data, delimited=is_csv(ref), max_rows=self.max_rows)
        elif file_type is FileType.TEXT:
            state.text = decode_text(data)
        else:
            state.object_url = self._urls.create(data, media_type_for(ref, file_type), ref.name)
            if file_type is FileType.PDF:
                try:
                    state.pdf_info = inspect_pdf(data)
                except PDFParseError as e:
                    # The browser viewer may still manage to render it
                    logger.warning(f"Could not inspect PDF {ref.name}: {e}")

    def _fail(self, error: PreviewError) -> PreviewState:
        self.state.status = PreviewStatus.ERROR
        self.state.error = error
        return self.state

    async def retry(self) -> PreviewState | None:
        """Run the whole resolution again for the current document."""
        if self.state.document is None:
            return None
        return await self.open(self.state.document)

    def pdf_text(self) -> str:
        """Text of the loaded PDF, for when the embedded viewer fails.

        Raises:
            DecodeFailedError: If no PDF is loaded or it has no readable text layer.
        """
        if self.state.file_type is not FileType.PDF or self.state.data is None:
            raise DecodeFailedError("No PDF loaded")
        try:
            return parse_pdf(self.state.data).text
        except PDFParseError as e:
            raise DecodeFailedError() from e

    async def download(self, ref: DocumentRef) -> tuple[bytes, str]:
        """Raw bytes and filename of a document, bypassing conversion.

        Raises:
            NoFileAttachedError: If the document has no content at all.
            FetchFailedError: If every storage area failed.
        """
        if ref.inline_text:
            return ref.inline_text.encode("utf-8"), ref.name
        if not ref.storage_path:
            raise NoFileAttachedError()
        return await self.fetch_bytes(ref.storage_path), ref.name

    def close(self) -> None:
        """Release every artifact of the current preview."""
        self._generation += 1
        self._release()
        self.state = PreviewState()
        self.zoom.reset()

    def _release(self) -> None:
        if self.state.object_url is not None:
            self._urls.revoke(self.state.object_url)
            self.state.object_url = None
