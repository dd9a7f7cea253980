"""Per-client teardown for NiceGUI pages."""

from collections.abc import Callable
from typing import Any, Protocol


class ClientHooks(Protocol):
    def on_delete(self, handler: Callable[..., Any]) -> None: ...


def release_on_delete(client: ClientHooks, *releases: Callable[[], None]) -> None:
    """Run ``releases`` once the client is deleted.

    ``on_disconnect`` is not used: it also fires when a client reconnects,
    while the page and its running reply or preview are still on screen.
    """
    for release in releases:
        client.on_delete(release)
