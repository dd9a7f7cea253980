"""File serving endpoints for document previews.

Serves object URL bytes to the embedded PDF/image viewers and raw
downloads that bypass in-app rendering.
"""

import logging
from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from dealroom.backend.client import get_backend_client
from dealroom.config import get_config
from dealroom.models.schemas import DocumentRef
from dealroom.preview.errors import FetchFailedError
from dealroom.preview.object_urls import ObjectUrlRegistry, get_object_urls
from dealroom.preview.resolver import DocumentPreviewResolver

logger = logging.getLogger(__name__)

router = APIRouter(tags=["documents"])


def get_download_resolver() -> DocumentPreviewResolver:
    """Resolver used for raw downloads, wired to the backend storage."""
    return DocumentPreviewResolver.from_config(get_backend_client(), get_config())


def _content_disposition(filename: str, disposition: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode() or "download"
    ascii_name = ascii_name.replace('"', "")
    return f"{disposition}; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename)}"


@router.get("/blobs/{token}")
async def serve_blob(
    token: str,
    urls: Annotated[ObjectUrlRegistry, Depends(get_object_urls)],
) -> Response:
    """Serve the bytes behind a live object URL.

    Raises:
        404: The URL was revoked or never existed.
    """
    blob = urls.get(token)
    if blob is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object URL not found")

    headers = {"Cache-Control": "no-store"}
    if blob.filename:
        headers["Content-Disposition"] = _content_disposition(blob.filename, "inline")
    return Response(content=blob.data, media_type=blob.media_type, headers=headers)


@router.get("/documents/raw")
async def download_raw(
    path: Annotated[str, Query(min_length=1, description="Storage path of the file")],
    resolver: Annotated[DocumentPreviewResolver, Depends(get_download_resolver)],
    name: Annotated[str | None, Query(description="Filename offered to the browser")] = None,
) -> Response:
    """Download a stored file as an attachment.

    Tries every storage area in order, like the preview does.

    Raises:
        404: No storage area has the file.
    """
    filename = name or path.rsplit("/", 1)[-1]
    try:
        data, filename = await resolver.download(DocumentRef(name=filename, storage_path=path))
    except FetchFailedError as e:
        logger.warning(f"Raw download failed for {path}: tried {', '.join(e.attempts)}")
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message) from e

    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": _content_disposition(filename, "attachment")},
    )
