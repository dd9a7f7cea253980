"""Unit tests for document preview resolution and zoom."""

import asyncio
import io

import pytest
import pytest_check as check
from pypdf import PdfWriter

from dealroom.models.schemas import DocumentRef, FileType
from dealroom.preview.errors import (
    DecodeFailedError,
    FetchFailedError,
    NoFileAttachedError,
    RecoveryAction,
    UnsupportedFormatError,
)
from dealroom.preview.object_urls import get_object_urls
from dealroom.preview.resolver import DocumentPreviewResolver, PreviewStatus, ZoomControl

AREAS = ["portfolio-documents", "report-files", "deck-files"]


def blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def resolver(fake_storage, url_registry) -> DocumentPreviewResolver:
    return DocumentPreviewResolver(fake_storage, AREAS, urls=url_registry)


class BlockingStorage:
    """Storage whose download waits until the test releases it."""

    def __init__(self, data: bytes) -> None:
        self.data = data
        self.release = asyncio.Event()

    async def download(self, area: str, path: str) -> bytes:
        await self.release.wait()
        return self.data


class TestFetchBytes:
    """Tests for the storage area fallback chain."""

    async def test_tries_areas_in_order(self, resolver, fake_storage) -> None:
        """Areas are queried one after the other until one has the file."""
        fake_storage.files = {"deck-files": {"acme/deck.pdf": b"%PDF-1.4"}}

        data = await resolver.fetch_bytes("acme/deck.pdf")

        check.equal(data, b"%PDF-1.4")
        check.equal(
            fake_storage.calls,
            [
                ("portfolio-documents", "acme/deck.pdf"),
                ("report-files", "acme/deck.pdf"),
                ("deck-files", "acme/deck.pdf"),
            ],
        )

    async def test_stops_at_first_success(self, resolver, fake_storage) -> None:
        fake_storage.files = {
            "portfolio-documents": {"a.txt": b"first"},
            "report-files": {"a.txt": b"second"},
        }

        check.equal(await resolver.fetch_bytes("a.txt"), b"first")
        check.equal(len(fake_storage.calls), 1)

    async def test_all_areas_fail(self, resolver, fake_storage) -> None:
        with pytest.raises(FetchFailedError) as exc_info:
            await resolver.fetch_bytes("missing.pdf")

        check.equal(exc_info.value.attempts, AREAS)
        check.equal(len(fake_storage.calls), 3)

    def test_requires_an_area(self, fake_storage) -> None:
        with pytest.raises(ValueError):
            DocumentPreviewResolver(fake_storage, [])


class TestOpen:
    """Tests for resolving a document into preview content."""

    async def test_inline_text_skips_storage(self, resolver, fake_storage) -> None:
        ref = DocumentRef(name="deck.pdf", storage_path="deck.pdf", inline_text="Summary")

        state = await resolver.open(ref)

        check.equal(state.status, PreviewStatus.READY)
        check.equal(state.file_type, FileType.TEXT)
        check.equal(state.text, "Summary")
        check.equal(fake_storage.calls, [])

    async def test_no_file_attached(self, resolver, fake_storage) -> None:
        state = await resolver.open(DocumentRef(name="memo.docx"))

        check.equal(state.status, PreviewStatus.ERROR)
        check.is_instance(state.error, NoFileAttachedError)
        check.equal(state.error.actions, frozenset())
        check.equal(fake_storage.calls, [])

    async def test_unknown_type_is_not_fetched(self, resolver, fake_storage) -> None:
        state = await resolver.open(DocumentRef(name="archive.bin", storage_path="archive.bin"))

        check.is_instance(state.error, UnsupportedFormatError)
        check.equal(state.error.actions, frozenset({RecoveryAction.DOWNLOAD}))
        check.equal(fake_storage.calls, [])

    async def test_fetch_failure_offers_retry_and_download(self, resolver) -> None:
        state = await resolver.open(DocumentRef(name="deck.pdf", storage_path="missing.pdf"))

        check.equal(state.status, PreviewStatus.ERROR)
        check.is_instance(state.error, FetchFailedError)
        check.equal(state.error.actions, frozenset({RecoveryAction.RETRY, RecoveryAction.DOWNLOAD}))

    async def test_retry_after_failure(self, resolver, fake_storage) -> None:
        ref = DocumentRef(name="notes.txt", storage_path="notes.txt")
        await resolver.open(ref)
        fake_storage.files = {"report-files": {"notes.txt": b"Q3 notes"}}

        state = await resolver.retry()

        check.equal(state.status, PreviewStatus.READY)
        check.equal(state.text, "Q3 notes")

    async def test_text_file(self, resolver, fake_storage) -> None:
        fake_storage.files = {"portfolio-documents": {"notes.txt": "Café".encode()}}

        state = await resolver.open(DocumentRef(name="notes.txt", storage_path="notes.txt"))

        check.equal(state.text, "Café")

    async def test_csv_file(self, resolver, fake_storage) -> None:
        fake_storage.files = {"portfolio-documents": {"kpis.csv": b"month,mrr\njan,10\nfeb,12\n"}}

        state = await resolver.open(DocumentRef(name="kpis.csv", storage_path="kpis.csv"))

        check.equal(state.file_type, FileType.EXCEL)
        check.equal(state.table.headers, ["month", "mrr"])
        check.equal(len(state.table.rows), 2)

    async def test_decode_failure_offers_download(self, resolver, fake_storage) -> None:
        fake_storage.files = {"portfolio-documents": {"memo.docx": b"garbage"}}

        state = await resolver.open(DocumentRef(name="memo.docx", storage_path="memo.docx"))

        check.is_instance(state.error, DecodeFailedError)
        check.equal(state.error.actions, frozenset({RecoveryAction.DOWNLOAD}))

    async def test_pdf_gets_object_url(self, resolver, fake_storage, url_registry) -> None:
        fake_storage.files = {"deck-files": {"deck.pdf": blank_pdf()}}

        state = await resolver.open(DocumentRef(name="deck.pdf", storage_path="deck.pdf"))

        check.equal(state.status, PreviewStatus.READY)
        check.is_true(state.object_url.startswith("/blobs/"))
        check.equal(len(url_registry), 1)
        check.equal(state.pdf_info.pages, 1)
        blob = url_registry.get(state.object_url.removeprefix("/blobs/"))
        check.equal(blob.media_type, "application/pdf")

    async def test_uses_injected_empty_registry(self, fake_storage, url_registry) -> None:
        """A registry with no URLs yet is still the one the resolver writes to."""
        fake_storage.files = {"portfolio-documents": {"logo.png": b"\x89PNG"}}
        resolver = DocumentPreviewResolver(fake_storage, AREAS, urls=url_registry)
        shared = get_object_urls()
        shared_before = len(shared)

        state = await resolver.open(DocumentRef(name="logo.png", storage_path="logo.png"))

        check.equal(len(url_registry), 1)
        check.equal(len(shared), shared_before)
        check.is_not_none(url_registry.get(state.object_url.removeprefix("/blobs/")))

    async def test_unreadable_pdf_still_gets_object_url(self, resolver, fake_storage) -> None:
        """The browser viewer gets its chance even when inspection fails."""
        fake_storage.files = {"deck-files": {"deck.pdf": b"%PDF-1.4 broken"}}

        state = await resolver.open(DocumentRef(name="deck.pdf", storage_path="deck.pdf"))

        check.equal(state.status, PreviewStatus.READY)
        check.is_not_none(state.object_url)
        check.is_none(state.pdf_info)


class TestLifecycle:
    """Tests for object URL release and stale loads."""

    async def test_close_revokes_object_url(self, resolver, fake_storage, url_registry) -> None:
        fake_storage.files = {"portfolio-documents": {"logo.png": b"\x89PNG"}}
        await resolver.open(DocumentRef(name="logo.png", storage_path="logo.png"))

        resolver.close()

        check.equal(len(url_registry), 0)
        check.is_none(resolver.state.document)
        check.is_none(resolver.state.object_url)

    async def test_close_twice_is_safe(self, resolver, fake_storage, url_registry) -> None:
        fake_storage.files = {"portfolio-documents": {"logo.png": b"\x89PNG"}}
        await resolver.open(DocumentRef(name="logo.png", storage_path="logo.png"))

        resolver.close()
        resolver.close()

        check.equal(len(url_registry), 0)

    async def test_switching_documents_revokes_previous_url(
        self, resolver, fake_storage, url_registry
    ) -> None:
        fake_storage.files = {"portfolio-documents": {"a.png": b"A", "b.png": b"B"}}
        first = await resolver.open(DocumentRef(name="a.png", storage_path="a.png"))
        first_url = first.object_url

        second = await resolver.open(DocumentRef(name="b.png", storage_path="b.png"))

        check.equal(len(url_registry), 1)
        check.is_none(url_registry.get(first_url.removeprefix("/blobs/")))
        check.equal(url_registry.get(second.object_url.removeprefix("/blobs/")).data, b"B")

    async def test_stale_load_is_discarded(self, url_registry) -> None:
        """A download finishing after close leaves no state or URL behind."""
        storage = BlockingStorage(b"\x89PNG")
        resolver = DocumentPreviewResolver(storage, AREAS, urls=url_registry)

        task = asyncio.create_task(resolver.open(DocumentRef(name="a.png", storage_path="a.png")))
        await asyncio.sleep(0)
        resolver.close()
        storage.release.set()
        result = await task

        check.is_none(result)
        check.equal(len(url_registry), 0)
        check.is_none(resolver.state.document)

    async def test_newer_open_wins(self, url_registry) -> None:
        storage = BlockingStorage(b"old")
        resolver = DocumentPreviewResolver(storage, AREAS, urls=url_registry)

        first = asyncio.create_task(resolver.open(DocumentRef(name="old.txt", storage_path="old.txt")))
        await asyncio.sleep(0)
        second = await resolver.open(DocumentRef(name="new.txt", inline_text="new"))
        storage.release.set()

        check.is_none(await first)
        check.equal(second.text, "new")
        check.equal(resolver.state.document.name, "new.txt")


class TestPdfText:
    async def test_blank_pdf_has_empty_text(self, resolver, fake_storage) -> None:
        fake_storage.files = {"deck-files": {"deck.pdf": blank_pdf()}}
        await resolver.open(DocumentRef(name="deck.pdf", storage_path="deck.pdf"))

        check.equal(resolver.pdf_text(), "")

    def test_requires_loaded_pdf(self, resolver) -> None:
        with pytest.raises(DecodeFailedError):
            resolver.pdf_text()


class TestDownload:
    async def test_inline_text(self, resolver) -> None:
        data, name = await resolver.download(DocumentRef(name="summary.txt", inline_text="Hi"))

        check.equal(data, b"Hi")
        check.equal(name, "summary.txt")

    async def test_uses_fallback_chain(self, resolver, fake_storage) -> None:
        fake_storage.files = {"report-files": {"q3.pdf": b"%PDF"}}

        data, _ = await resolver.download(DocumentRef(name="q3.pdf", storage_path="q3.pdf"))

        check.equal(data, b"%PDF")

    async def test_no_file(self, resolver) -> None:
        with pytest.raises(NoFileAttachedError):
            await resolver.download(DocumentRef(name="empty"))


class TestZoomControl:
    """Tests for clamped percentage zoom."""

    def test_steps(self) -> None:
        zoom = ZoomControl()

        check.equal(zoom.zoom_in(), 125)
        check.equal(zoom.zoom_out(), 100)
        check.equal(zoom.zoom_out(), 75)
        check.equal(zoom.scale, 0.75)

    def test_clamps_to_range(self) -> None:
        zoom = ZoomControl()

        for _ in range(10):
            zoom.zoom_in()
        check.equal(zoom.level, 200)
        check.is_false(zoom.can_zoom_in)

        for _ in range(10):
            zoom.zoom_out()
        check.equal(zoom.level, 50)
        check.is_false(zoom.can_zoom_out)

    def test_reset(self) -> None:
        zoom = ZoomControl()
        zoom.zoom_in()

        check.equal(zoom.reset(), 100)

    def test_default_outside_range(self) -> None:
        with pytest.raises(ValueError):
            ZoomControl(minimum=150, maximum=200)

    async def test_reset_on_document_change(self, resolver) -> None:
        """Zoom survives reopening the same document but not switching."""
        ref = DocumentRef(name="a.txt", inline_text="a")
        await resolver.open(ref)
        resolver.zoom.zoom_in()

        await resolver.open(ref)
        check.equal(resolver.zoom.level, 125)

        await resolver.open(DocumentRef(name="b.txt", inline_text="b"))
        check.equal(resolver.zoom.level, 100)
