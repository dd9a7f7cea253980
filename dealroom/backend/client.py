"""HTTP client for the backend-as-a-service.

Speaks the PostgREST-style table API (``/rest/v1``) and the object storage
API (``/storage/v1``) with a shared ``httpx.AsyncClient``.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx

from dealroom.config import AppConfig, get_config

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """Raised when a backend call fails."""

    def __init__(self, detail: str, status_code: int | None = None) -> None:
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code


def _eq_filters(filters: dict[str, str]) -> dict[str, str]:
    return {column: f"eq.{value}" for column, value in filters.items()}


class BackendClient:
    """Thin async wrapper over the backend's table and storage endpoints.

    Args:
        config: Application configuration. Loads from environment if not provided.
        client: Optional preconfigured ``httpx.AsyncClient`` (tests inject a
            mock transport this way).
    """

    def __init__(self, config: AppConfig | None = None, client: httpx.AsyncClient | None = None) -> None:
        self._config = config or get_config()
        self._client = client or httpx.AsyncClient(
            base_url=self._config.backend_url,
            timeout=self._config.request_timeout,
        )
        self._headers = {
            "apikey": self._config.backend_key,
            "Authorization": f"Bearer {self._config.backend_key}",
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        headers = {**self._headers, **kwargs.pop("headers", {})}
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise BackendError(
                f"{method} {url} failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise BackendError(f"{method} {url} failed: {e}") from e
        return response

    async def select(
        self,
        table: str,
        *,
        filters: dict[str, str],
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        """Fetch the rows of ``table`` matching every equality filter.

        Args:
            table: Table name.
            filters: Column to value equality filters.
            order: Optional PostgREST order clause, e.g. ``updated_at.desc``.
        """
        params = {"select": "*", **_eq_filters(filters)}
        if order:
            params["order"] = order
        response = await self._request("GET", f"/rest/v1/{table}", params=params)
        return response.json()

    async def insert(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        """Insert a row and return it as stored."""
        response = await self._request(
            "POST",
            f"/rest/v1/{table}",
            json=row,
            headers={"Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise BackendError(f"Insert into {table} returned no row")
        return rows[0]

    async def update(self, table: str, values: dict[str, Any], *, filters: dict[str, str]) -> None:
        await self._request("PATCH", f"/rest/v1/{table}", json=values, params=_eq_filters(filters))

    async def delete(self, table: str, *, filters: dict[str, str]) -> None:
        await self._request("DELETE", f"/rest/v1/{table}", params=_eq_filters(filters))

    async def download(self, area: str, path: str) -> bytes:
        """Download an object from a storage area.

        Raises:
            BackendError: If the object is missing from this area or the call fails.
        """
        response = await self._request(
            "GET", f"/storage/v1/object/{quote(area)}/{quote(path.lstrip('/'))}"
        )
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()


# Module-level singleton instance
_backend_client: BackendClient | None = None


def get_backend_client() -> BackendClient:
    """Get or create the global backend client."""
    global _backend_client
    if _backend_client is None:
        _backend_client = BackendClient()
    return _backend_client
