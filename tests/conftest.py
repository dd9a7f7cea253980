"""Pytest fixtures and shared test configuration.

Fixtures:
    - config: AppConfig with a test backend key
    - manual_timer: Timer factory whose ticks are fired by the test
    - url_registry: Fresh object URL registry
    - fake_storage: In-memory storage areas recording every download
    - async_client: HTTPX client for API testing with storage overridden
"""

from collections.abc import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from dealroom.api import app
from dealroom.api.routes import get_download_resolver
from dealroom.backend.client import BackendError
from dealroom.config import AppConfig
from dealroom.preview.object_urls import ObjectUrlRegistry, get_object_urls
from dealroom.preview.resolver import DocumentPreviewResolver


class ManualTimer:
    """Repeating timer that only fires when the test says so."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self.interval = interval
        self.callback = callback
        self.cancelled = False

    def fire(self, times: int = 1) -> None:
        for _ in range(times):
            if self.cancelled:
                return
            self.callback()

    def cancel(self) -> None:
        self.cancelled = True


class ManualTimerFactory:
    """Records every timer a presenter creates."""

    def __init__(self) -> None:
        self.timers: list[ManualTimer] = []

    def __call__(self, interval: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(interval, callback)
        self.timers.append(timer)
        return timer

    @property
    def current(self) -> ManualTimer:
        return self.timers[-1]


class FakeStorage:
    """Storage areas backed by dicts; missing objects raise BackendError."""

    def __init__(self, files: dict[str, dict[str, bytes]] | None = None) -> None:
        self.files = files or {}
        self.calls: list[tuple[str, str]] = []

    async def download(self, area: str, path: str) -> bytes:
        self.calls.append((area, path))
        try:
            return self.files[area][path]
        except KeyError:
            raise BackendError(f"{path} not found in {area}", status_code=404) from None


AREAS = ["portfolio-documents", "report-files", "deck-files"]


@pytest.fixture
def config() -> AppConfig:
    """Configuration that does not depend on the environment."""
    return AppConfig(
        backend_url="http://backend.test/",
        backend_key="test-key",
        deal_chat_webhook_url="http://hooks.test/deals",
        company_chat_webhook_url="http://hooks.test/companies",
        typing_interval_ms=30,
        chunk_size=1,
        storage_areas=AREAS,
    )


@pytest.fixture
def manual_timer() -> ManualTimerFactory:
    return ManualTimerFactory()


@pytest.fixture
def url_registry() -> ObjectUrlRegistry:
    return ObjectUrlRegistry()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
async def async_client(
    fake_storage: FakeStorage, url_registry: ObjectUrlRegistry
) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        AsyncClient whose object URLs and downloads use the test fixtures.
    """
    app.dependency_overrides[get_object_urls] = lambda: url_registry
    app.dependency_overrides[get_download_resolver] = lambda: DocumentPreviewResolver(
        fake_storage, AREAS, urls=url_registry
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
