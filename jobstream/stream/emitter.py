"""Single-writer stream emitter.

The orchestrator is the only producer; ``frames()`` is the only reader and
the only thing that touches the transport. Events are encoded whole before
they are queued, so a frame is never interleaved with another.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

from jobstream.core.schemas import WireModel
from jobstream.stream.events import ErrorEvent, encode_frame, is_terminal

logger = logging.getLogger(__name__)

_CLOSED = object()


class StreamEmitter:
    """Ordered, framed event channel for exactly one client."""

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | object] = asyncio.Queue()
        self._terminal_sent = False
        self._closed = False
        self.events_sent = 0

    @property
    def terminal_sent(self) -> bool:
        return self._terminal_sent

    @property
    def closed(self) -> bool:
        return self._closed

    async def emit(self, event: WireModel) -> bool:
        """Queue one event. Returns False when it was dropped.

        Nothing is accepted after the terminal event or after close.
        """
        if self._closed or self._terminal_sent:
            logger.warning(
                "Dropping %s event: stream already terminated", getattr(event, "type", "?"),
            )
            return False
        await self._queue.put(encode_frame(event))
        self.events_sent += 1
        if is_terminal(event):
            self._terminal_sent = True
        return True

    async def fail(self, message: str, code: str = "SEARCH_ERROR") -> None:
        """Emit a terminal ``error`` event unless a terminal event was already sent."""
        if not self._terminal_sent and not self._closed:
            await self.emit(ErrorEvent(message=message, code=code))

    async def close(self) -> None:
        """Signal the end of the stream. Idempotent."""
        if self._closed:
            return
        if not self._terminal_sent:
            logger.error("Stream closed without a terminal event; sending error")
            await self.fail("The search ended unexpectedly.")
        self._closed = True
        await self._queue.put(_CLOSED)

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield encoded frames in emission order until the stream is closed."""
        while True:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item  # type: ignore[misc]
