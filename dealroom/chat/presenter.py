"""Simulated streaming for assistant replies.

The inference webhook returns a complete answer in one response. The
presenter reveals it progressively on a repeating timer to give the
impression of live generation, then hands the final text to the caller
for persistence exactly once.
"""

import asyncio
import inspect
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterator
from typing import Protocol

from dealroom.models.schemas import Message, Role

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_MS = 30
DEFAULT_CHUNK_SIZE = 1


class Timer(Protocol):
    def cancel(self) -> None: ...


TimerFactory = Callable[[float, Callable[[], None]], Timer]
CompletionCallback = Callable[[str], Awaitable[None] | None]


def reveal_prefixes(full_text: str, chunk_size: int) -> Iterator[str]:
    """Yield successive prefixes of ``full_text``.

    Each prefix is ``chunk_size`` characters longer than the previous one,
    capped at the full length. Values are sliced from the source so a given
    length always yields the same string.

    Args:
        full_text: The complete text to reveal.
        chunk_size: Characters added per step.

    Yields:
        Growing prefixes, the last one equal to ``full_text``.
    """
    if chunk_size < 1:
        raise ValueError("chunk_size must be at least 1")

    length = 0
    while length < len(full_text):
        length = min(length + chunk_size, len(full_text))
        yield full_text[:length]


class AsyncioInterval:
    """Repeating timer on the running asyncio loop."""

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._interval = interval
        self._callback = callback
        self._loop = loop or asyncio.get_running_loop()
        self._cancelled = False
        self._handle = self._loop.call_later(interval, self._fire)

    def _fire(self) -> None:
        if self._cancelled:
            return
        self._callback()
        if not self._cancelled:
            self._handle = self._loop.call_later(self._interval, self._fire)

    def cancel(self) -> None:
        self._cancelled = True
        self._handle.cancel()


class StreamingPresenter:
    """Reveals a complete reply character-chunk by character-chunk.

    Owns the visible message list of a chat view. At most one stream is
    active per presenter; starting a new one flushes the previous one first.

    Args:
        messages: Visible message list, mutated in place.
        interval_ms: Timer period in milliseconds.
        chunk_size: Characters revealed per tick.
        timer_factory: Builds a repeating timer from (seconds, callback).
        on_change: Called after every mutation of the visible list.
    """

    def __init__(
        self,
        messages: list[Message] | None = None,
        *,
        interval_ms: int = DEFAULT_INTERVAL_MS,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        timer_factory: TimerFactory = AsyncioInterval,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.messages: list[Message] = messages if messages is not None else []
        self.interval_ms = interval_ms
        self.chunk_size = chunk_size
        self._timer_factory = timer_factory
        self._on_change = on_change
        self._timer: Timer | None = None
        self._current: Message | None = None
        self._full_text = ""
        self._reveal: Iterator[str] | None = None
        self._on_complete: CompletionCallback | None = None
        self._pending: set[asyncio.Future] = set()
        self._closed = False

    @property
    def is_streaming(self) -> bool:
        return self._current is not None

    @property
    def streaming_message(self) -> Message | None:
        return self._current

    @property
    def streaming_message_id(self) -> str | None:
        return self._current.id if self._current else None

    def start_stream(
        self,
        conversation_id: str,
        full_text: str,
        on_complete: CompletionCallback,
    ) -> Message:
        """Insert an empty assistant message and start revealing ``full_text``.

        Args:
            conversation_id: Conversation the message belongs to.
            full_text: The complete reply, already received.
            on_complete: Called once with the full text when the reveal ends.
                An awaitable result is scheduled on the running loop.

        Returns:
            The temporary message being streamed.

        Raises:
            ValueError: If ``full_text`` is empty.
        """
        if not full_text:
            raise ValueError("Cannot stream an empty message")

        if self._current is not None:
            logger.debug(f"Flushing stream {self._current.id} before starting a new one")
            self.stop_stream()

        self._closed = False
        message = Message(
            id=f"streaming-{uuid.uuid4().hex}",
            conversation_id=conversation_id,
            role=Role.ASSISTANT,
            content="",
            is_streaming=True,
        )
        self.messages.append(message)
        self._current = message
        self._full_text = full_text
        self._reveal = reveal_prefixes(full_text, self.chunk_size)
        self._on_complete = on_complete
        self._changed()

        self._timer = self._timer_factory(self.interval_ms / 1000, self._tick)
        return message

    def _tick(self) -> None:
        if self._closed or self._current is None or self._reveal is None:
            return

        content = next(self._reveal, self._full_text)
        self._current.content = content
        if len(content) < len(self._full_text):
            self._changed()
            return

        self._current.is_streaming = False
        on_complete = self._on_complete
        full_text = self._full_text
        self._reset()
        self._changed()

        if on_complete is not None:
            self._run_completion(on_complete, full_text)

    def _run_completion(self, on_complete: CompletionCallback, full_text: str) -> None:
        result = on_complete(full_text)
        if inspect.isawaitable(result):
            future = asyncio.ensure_future(result)
            self._pending.add(future)
            future.add_done_callback(self._pending.discard)

    async def wait_for_completions(self) -> None:
        """Wait until every scheduled completion callback has finished."""
        while self._pending:
            pending = list(self._pending)
            self._pending.difference_update(pending)
            await asyncio.gather(*pending)

    def stop_stream(self) -> None:
        """Show the full text immediately without signalling completion.

        Does nothing when no stream is active.
        """
        if self._current is None:
            return

        self._current.content = self._full_text
        self._current.is_streaming = False
        self._reset()
        self._changed()

    def replace_message(self, temp_id: str, durable: Message) -> bool:
        """Swap the temporary message for its stored version, keeping its position.

        Returns:
            True if a message with ``temp_id`` was found.
        """
        for index, message in enumerate(self.messages):
            if message.id == temp_id:
                self.messages[index] = durable
                self._changed()
                return True
        return False

    def close(self) -> None:
        """Cancel the timer when the owning view goes away.

        The visible list is left untouched and later ticks are ignored.
        """
        self._closed = True
        self._cancel_timer()

    def _reset(self) -> None:
        self._cancel_timer()
        self._current = None
        self._reveal = None
        self._on_complete = None
        self._full_text = ""

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _changed(self) -> None:
        if self._on_change is not None and not self._closed:
            self._on_change()
