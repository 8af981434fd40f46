"""Client-side stream consumer.

``FrameDecoder`` turns arbitrarily chunked bytes into complete frame
payloads. ``SearchAggregate`` applies decoded events to local state and
derives its own total from the ``jobs_found`` batches it has seen; totals
reported by the server are kept for display only.
"""

import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass, field

from pydantic import ValidationError

from jobstream.core.errors import TransportError
from jobstream.core.schemas import Listing
from jobstream.stream.events import (
    FRAME_PREFIX,
    FRAME_TERMINATOR,
    ErrorEvent,
    JobsFound,
    ScraperComplete,
    ScraperError,
    ScraperStart,
    SearchComplete,
    SearchStarted,
    StreamEvent,
    UserMessage,
    decode_event,
    is_terminal,
)

logger = logging.getLogger(__name__)


class FrameDecoder:
    """Reassembles frames split across arbitrary read boundaries.

    Bytes after the last terminator are held back until the next ``feed``.
    CRLF line endings are folded to LF first, so a blank CRLF line ends a frame too.
    """

    def __init__(self) -> None:
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        return self._buffer

    def feed(self, chunk: bytes) -> list[bytes]:
        """Add bytes and return the payloads of every frame completed by them."""
        self._buffer = (self._buffer + chunk).replace(b"\r\n", b"\n")
        payloads: list[bytes] = []
        while True:
            end = self._buffer.find(FRAME_TERMINATOR)
            if end < 0:
                break
            frame, self._buffer = self._buffer[:end], self._buffer[end + len(FRAME_TERMINATOR):]
            payload = _frame_payload(frame)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def finish(self) -> list[bytes]:
        """Flush at end of stream: a trailing frame missing only its terminator is kept."""
        rest, self._buffer = self._buffer.strip(), b""
        if not rest:
            return []
        payload = _frame_payload(rest)
        return [payload] if payload is not None else []


def _frame_payload(frame: bytes) -> bytes | None:
    """Join the ``data:`` lines of a frame. Comment and blank lines are ignored."""
    data: list[bytes] = []
    for line in frame.replace(b"\r\n", b"\n").split(b"\n"):
        if line.startswith(FRAME_PREFIX):
            data.append(line[len(FRAME_PREFIX):])
        elif line.startswith(b"data:"):
            data.append(line[len(b"data:"):])
    if not data:
        return None
    return b"\n".join(data)


@dataclass
class SearchAggregate:
    """Local state assembled from a stream of events."""

    listings: list[Listing] = field(default_factory=list)
    provider_counts: dict[str, int] = field(default_factory=dict)
    provider_errors: dict[str, str] = field(default_factory=dict)
    started_providers: list[str] = field(default_factory=list)
    messages: list[UserMessage] = field(default_factory=list)
    started: bool = False
    terminal: SearchComplete | ErrorEvent | None = None
    reported_total: int | None = None
    transport_error: str | None = None

    @property
    def total(self) -> int:
        """Authoritative count: the size of the locally accumulated collection."""
        return len(self.listings)

    @property
    def completed(self) -> bool:
        return isinstance(self.terminal, SearchComplete)

    @property
    def failed(self) -> bool:
        return isinstance(self.terminal, ErrorEvent)

    @property
    def interrupted(self) -> bool:
        """True when the stream ended without a terminal event."""
        return self.terminal is None

    @property
    def summary(self) -> str:
        if isinstance(self.terminal, SearchComplete):
            return self.terminal.summary
        if isinstance(self.terminal, ErrorEvent):
            return self.terminal.message
        return f"Connection lost; showing {self.total} listings received so far."

    def sorted_listings(self) -> list[Listing]:
        return sorted(self.listings, key=lambda l: l.match_percentage or 0, reverse=True)

    def apply(self, event: StreamEvent) -> None:
        if self.terminal is not None:
            logger.warning("Ignoring %s event after terminal event", event.type)
            return

        if isinstance(event, SearchStarted):
            self.started = True
        elif isinstance(event, ScraperStart):
            self.started_providers.append(event.provider)
        elif isinstance(event, JobsFound):
            self.listings.extend(event.listings)
            self.provider_counts[event.provider] = (
                self.provider_counts.get(event.provider, 0) + len(event.listings)
            )
            self.reported_total = event.running_total
            if event.running_total != self.total:
                logger.debug(
                    "Server running total %d differs from local total %d",
                    event.running_total, self.total,
                )
        elif isinstance(event, ScraperComplete):
            self.provider_counts.setdefault(event.provider, event.count)
        elif isinstance(event, ScraperError):
            self.provider_errors[event.provider] = event.message
        elif isinstance(event, UserMessage):
            self.messages.append(event)
        elif isinstance(event, SearchComplete):
            self.reported_total = event.total_count
            self.terminal = event
        elif isinstance(event, ErrorEvent):
            self.terminal = event


EventCallback = Callable[[StreamEvent, SearchAggregate], None]


class StreamConsumer:
    """Reads a framed byte stream into a ``SearchAggregate``.

    Args:
        on_event: Optional callback invoked after each event is applied,
            for progressive rendering.
    """

    def __init__(self, on_event: EventCallback | None = None) -> None:
        self._decoder = FrameDecoder()
        self._on_event = on_event
        self.aggregate = SearchAggregate()
        self.skipped_frames = 0

    def feed(self, chunk: bytes) -> list[StreamEvent]:
        """Decode and apply every frame completed by ``chunk``."""
        return self._apply_payloads(self._decoder.feed(chunk))

    def finish(self) -> SearchAggregate:
        """Flush buffered bytes and log the fallback when no terminal event arrived."""
        self._apply_payloads(self._decoder.finish())
        if self.aggregate.interrupted:
            logger.warning(
                "Stream ended without a terminal event; keeping %d accumulated listings",
                self.aggregate.total,
            )
        return self.aggregate

    async def consume(self, chunks: AsyncIterable[bytes]) -> SearchAggregate:
        """Read ``chunks`` to the end. Transport failures keep the partial state."""
        try:
            async for chunk in chunks:
                self.feed(chunk)
        except TransportError as e:
            logger.warning("Stream transport failed: %s", e)
            self.aggregate.transport_error = str(e)
        return self.finish()

    def _apply_payloads(self, payloads: list[bytes]) -> list[StreamEvent]:
        events: list[StreamEvent] = []
        for payload in payloads:
            try:
                event = decode_event(payload)
            except ValidationError as e:
                self.skipped_frames += 1
                logger.warning("Skipping undecodable frame: %s", e.errors()[0]["msg"])
                continue
            self.aggregate.apply(event)
            events.append(event)
            if self._on_event is not None:
                self._on_event(event, self.aggregate)
            if is_terminal(event):
                logger.debug("Terminal %s event received", event.type)
        return events
