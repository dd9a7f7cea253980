"""NiceGUI document list and preview dialog for portfolio companies."""

import logging
from urllib.parse import urlencode

from nicegui import context, ui

from dealroom.backend.client import BackendError, get_backend_client
from dealroom.backend.repositories import DocumentRepository
from dealroom.config import get_config
from dealroom.models.schemas import DocumentRef, FileType
from dealroom.preview.detection import detect_file_type
from dealroom.preview.errors import DecodeFailedError, RecoveryAction
from dealroom.preview.resolver import DocumentPreviewResolver, PreviewState, PreviewStatus
from dealroom.ui.formatting import preformatted
from dealroom.ui.lifecycle import release_on_delete

logger = logging.getLogger(__name__)

FILE_ICONS = {
    FileType.PDF: "picture_as_pdf",
    FileType.IMAGE: "image",
    FileType.TEXT: "article",
    FileType.WORD: "description",
    FileType.EXCEL: "table_chart",
    FileType.UNKNOWN: "insert_drive_file",
}


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def raw_download_url(ref: DocumentRef) -> str:
    return "/documents/raw?" + urlencode({"path": ref.storage_path or "", "name": ref.name})


class PreviewDialog:
    """Full-screen dialog rendering whatever the resolver produced."""

    def __init__(self, resolver: DocumentPreviewResolver) -> None:
        self.resolver = resolver
        with ui.dialog() as self.dialog, ui.card().classes(
            "w-[95vw] max-w-5xl h-[90vh] p-0 gap-0 flex flex-col no-wrap"
        ):
            with ui.row().classes("w-full px-6 py-4 border-b items-center justify-between no-wrap"):
                with ui.row().classes("items-center gap-3 no-wrap"):
                    ui.icon("description").classes("text-xl text-gray-500")
                    self.title = ui.label().classes("text-base font-medium truncate max-w-[400px]")
                    self.details = ui.label().classes("text-xs text-gray-400")
                with ui.row().classes("items-center gap-2 no-wrap"):
                    self.zoom_bar = ui.row().classes("items-center gap-1 border rounded-lg px-2 py-1")
                    ui.button("Download", icon="download", on_click=self.download).props("outline size=sm")
                    ui.button(icon="close", on_click=self.dialog.close).props("flat round dense")
            self.body = ui.column().classes("w-full flex-grow overflow-auto")
        self.dialog.on("hide", self.resolver.close)

    async def show(self, ref: DocumentRef) -> None:
        self.title.set_text(ref.name)
        self.dialog.open()
        self._render_loading()
        state = await self.resolver.open(ref)
        if state is not None:
            self._render(state)

    async def retry(self) -> None:
        self._render_loading()
        state = await self.resolver.retry()
        if state is not None:
            self._render(state)

    async def download(self) -> None:
        ref = self.resolver.state.document
        if ref is None:
            return
        if ref.inline_text:
            ui.download(ref.inline_text.encode("utf-8"), ref.name)
        elif ref.storage_path:
            ui.download(raw_download_url(ref), ref.name)
        else:
            ui.notify("No file attached to this document", type="negative")

    def _zoom(self, action: str) -> None:
        getattr(self.resolver.zoom, action)()
        self._render(self.resolver.state)

    def _render_loading(self) -> None:
        self.details.set_text("")
        self.zoom_bar.clear()
        self.zoom_bar.set_visibility(False)
        self.body.clear()
        with self.body, ui.column().classes("w-full h-full items-center justify-center"):
            ui.spinner(size="xl").classes("text-gray-400")

    def _render_zoom_bar(self, state: PreviewState) -> None:
        zoom = self.resolver.zoom
        self.zoom_bar.clear()
        visible = state.status is PreviewStatus.READY and state.file_type in (FileType.IMAGE, FileType.TEXT)
        self.zoom_bar.set_visibility(visible)
        if not visible:
            return
        with self.zoom_bar:
            ui.button(icon="zoom_out", on_click=lambda: self._zoom("zoom_out")).props(
                "flat round dense"
            ).set_enabled(zoom.can_zoom_out)
            ui.label(f"{zoom.level}%").classes("text-xs w-12 text-center")
            ui.button(icon="zoom_in", on_click=lambda: self._zoom("zoom_in")).props(
                "flat round dense"
            ).set_enabled(zoom.can_zoom_in)
            ui.button(icon="restart_alt", on_click=lambda: self._zoom("reset")).props("flat round dense")

    def _render(self, state: PreviewState) -> None:
        self.details.set_text(format_size(state.size) if state.size is not None else "")
        self._render_zoom_bar(state)
        self.body.clear()
        with self.body:
            if state.status is PreviewStatus.ERROR and state.error is not None:
                self._render_error(state)
            elif state.text is not None:
                with ui.card().classes("m-4 p-6 bg-gray-50"):
                    ui.html(preformatted(state.text, self.resolver.zoom.level), sanitize=False)
            elif state.html is not None:
                with ui.card().classes("m-4 p-6 bg-white"):
                    ui.html(state.html, sanitize=False).classes("prose prose-sm max-w-none")
            elif state.table is not None:
                self._render_table(state)
            elif state.file_type is FileType.PDF and state.object_url:
                self._render_pdf(state)
            elif state.file_type is FileType.IMAGE and state.object_url:
                with ui.row().classes("w-full h-full items-center justify-center p-4 overflow-auto"):
                    ui.image(state.object_url).classes("max-w-full rounded-lg").style(
                        f"transform: scale({self.resolver.zoom.scale}); transition: transform 0.2s"
                    )

    def _render_error(self, state: PreviewState) -> None:
        error = state.error
        with ui.column().classes("w-full h-full items-center justify-center gap-4"):
            ui.icon(FILE_ICONS[state.file_type]).classes("text-6xl text-gray-300")
            ui.label(error.message).classes("text-gray-500")
            with ui.row().classes("gap-2"):
                if RecoveryAction.RETRY in error.actions:
                    ui.button("Retry", icon="refresh", on_click=self.retry).props("outline")
                if RecoveryAction.DOWNLOAD in error.actions:
                    ui.button("Download", icon="download", on_click=self.download)

    def _render_table(self, state: PreviewState) -> None:
        table = state.table
        width = max([len(table.headers), *(len(row) for row in table.rows)], default=0)
        headers = table.headers + [""] * (width - len(table.headers))
        columns = [
            {"name": f"c{i}", "label": header or f"Col {i + 1}", "field": f"c{i}", "align": "left"}
            for i, header in enumerate(headers)
        ]
        rows = [{f"c{i}": cell for i, cell in enumerate(row)} for row in table.rows]
        with ui.column().classes("w-full p-4 gap-2"):
            ui.table(columns=columns, rows=rows).props("dense flat bordered").classes("w-full text-xs")
            if table.truncated:
                ui.label(
                    f"Showing the first {len(table.rows)} of {table.total_rows} rows"
                ).classes("text-xs text-gray-500 self-center")

    def _render_pdf(self, state: PreviewState) -> None:
        url = state.object_url
        if state.pdf_info is not None:
            pages = state.pdf_info.pages
            ui.label(f"{pages} page{'s' if pages != 1 else ''}").classes("text-xs text-gray-500 px-4 pt-2")
        with ui.element("object").props(f'data="{url}" type="application/pdf"').classes(
            "flex-grow w-full min-h-[70vh] rounded-lg border bg-white"
        ):
            # Shown by the browser when it has no PDF viewer
            with ui.column().classes("w-full items-center justify-center gap-4 p-8"):
                ui.icon("picture_as_pdf").classes("text-6xl text-gray-300")
                ui.label("PDF preview is not available in this browser.").classes("text-gray-500")
                with ui.row().classes("gap-2"):
                    ui.button("Download the PDF", icon="download", on_click=self.download)
                    ui.button(
                        "Open in a new tab",
                        icon="open_in_new",
                        on_click=lambda: ui.navigate.to(url, new_tab=True),
                    ).props("outline")
                    ui.button("Show text", icon="article", on_click=self._show_pdf_text).props("flat")

    def _show_pdf_text(self) -> None:
        try:
            text = self.resolver.pdf_text()
        except DecodeFailedError as e:
            ui.notify(e.message, type="negative")
            return
        self.body.clear()
        with self.body, ui.card().classes("m-4 p-6 bg-gray-50"):
            ui.html(preformatted(text or "No text layer in this PDF"), sanitize=False)


@ui.page("/companies/{company_id}/documents")
async def documents_page(company_id: str) -> None:
    """Documents of a portfolio company, each openable in the preview dialog."""
    config = get_config()
    backend = get_backend_client()
    resolver = DocumentPreviewResolver.from_config(backend, config)
    release_on_delete(context.client, resolver.close)

    try:
        documents = await DocumentRepository(backend).list_documents(company_id)
    except BackendError as e:
        logger.error(f"Failed to list documents of {company_id}: {e}")
        ui.notify("Unable to load documents", type="negative")
        documents = []

    dialog = PreviewDialog(resolver)

    with ui.column().classes("w-full max-w-3xl mx-auto p-6 gap-2"):
        ui.label("Documents").classes("text-xl font-semibold")
        if not documents:
            ui.label("No documents yet").classes("text-gray-400")
        for ref in documents:
            file_type = detect_file_type(ref)
            with ui.row().classes(
                "w-full items-center gap-3 px-3 py-2 rounded-lg hover:bg-gray-100 cursor-pointer no-wrap"
            ) as row:
                ui.icon(FILE_ICONS[file_type]).classes("text-xl text-gray-500")
                ui.label(ref.name).classes("flex-grow truncate")
                ui.label(file_type.value.upper()).classes("text-xs text-gray-400")
            row.on("click", lambda r=ref: dialog.show(r))
