"""Process-local, revocable URLs for in-memory file bytes.

The browser cannot read bytes held by the server, so PDF and image
previews are served through ``GET /blobs/{token}`` for as long as the URL
stays registered. Revoking a URL drops the bytes.
"""

import logging
import secrets
from dataclasses import dataclass

logger = logging.getLogger(__name__)

URL_PREFIX = "/blobs/"


@dataclass(frozen=True)
class StoredBlob:
    data: bytes
    media_type: str
    filename: str | None = None


class ObjectUrlRegistry:
    """Maps opaque tokens to bytes until the URL is revoked."""

    def __init__(self) -> None:
        self._blobs: dict[str, StoredBlob] = {}

    def __len__(self) -> int:
        return len(self._blobs)

    def create(self, data: bytes, media_type: str, filename: str | None = None) -> str:
        """Register bytes and return the URL serving them."""
        token = secrets.token_urlsafe(16)
        self._blobs[token] = StoredBlob(data=data, media_type=media_type, filename=filename)
        logger.debug(f"Created object URL for {filename or media_type} ({len(data)} bytes)")
        return URL_PREFIX + token

    def get(self, token: str) -> StoredBlob | None:
        return self._blobs.get(token)

    def revoke(self, url: str) -> bool:
        """Release the bytes behind ``url``.

        Returns:
            False if the URL was unknown or already revoked.
        """
        token = url.removeprefix(URL_PREFIX)
        return self._blobs.pop(token, None) is not None


# Module-level singleton instance
_registry: ObjectUrlRegistry | None = None


def get_object_urls() -> ObjectUrlRegistry:
    """Get or create the registry shared by the API and the UI."""
    global _registry
    if _registry is None:
        _registry = ObjectUrlRegistry()
    return _registry
