"""Tagged stream events and the frame codec.

Every event is a pydantic model with a literal ``type`` discriminator. A
frame is one event serialized as compact JSON, prefixed with ``data: `` and
terminated by a blank line (``\\n\\n``). JSON encoding escapes newlines
inside strings, so the terminator never occurs inside a payload.
"""

from typing import Annotated, Literal, Union

from pydantic import Field, TypeAdapter

from jobstream.core.schemas import Listing, ProviderStatus, WireModel

FRAME_PREFIX = b"data: "
FRAME_TERMINATOR = b"\n\n"


class SearchStarted(WireModel):
    type: Literal["search_started"] = "search_started"
    message: str
    providers: list[str] = Field(default_factory=list)


class ScraperStart(WireModel):
    type: Literal["scraper_start"] = "scraper_start"
    provider: str


class JobsFound(WireModel):
    type: Literal["jobs_found"] = "jobs_found"
    provider: str
    listings: list[Listing]
    running_total: int
    elapsed_seconds: float


class ScraperError(WireModel):
    type: Literal["scraper_error"] = "scraper_error"
    provider: str
    message: str


class ScraperComplete(WireModel):
    type: Literal["scraper_complete"] = "scraper_complete"
    provider: str
    count: int


class UserMessage(WireModel):
    type: Literal["user_message"] = "user_message"
    title: str
    message: str
    severity: Literal["info", "warning", "error"] = "info"


class SearchComplete(WireModel):
    type: Literal["search_complete"] = "search_complete"
    listings: list[Listing]
    remaining_listings: list[Listing] = Field(default_factory=list)
    total_count: int
    elapsed_seconds: float
    summary: str
    providers: list[ProviderStatus] = Field(default_factory=list)


class ErrorEvent(WireModel):
    type: Literal["error"] = "error"
    message: str
    code: str = "SEARCH_ERROR"


StreamEvent = Annotated[
    Union[
        SearchStarted,
        ScraperStart,
        JobsFound,
        ScraperError,
        ScraperComplete,
        UserMessage,
        SearchComplete,
        ErrorEvent,
    ],
    Field(discriminator="type"),
]

TERMINAL_TYPES = frozenset({"search_complete", "error"})

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def is_terminal(event: WireModel) -> bool:
    return getattr(event, "type", None) in TERMINAL_TYPES


def encode_event(event: WireModel) -> bytes:
    """Serialize an event payload (camelCase JSON, no framing)."""
    return event.model_dump_json(by_alias=True).encode("utf-8")


def encode_frame(event: WireModel) -> bytes:
    """Serialize an event as one complete frame."""
    return FRAME_PREFIX + encode_event(event) + FRAME_TERMINATOR


def decode_event(payload: bytes | str) -> StreamEvent:
    """Parse a frame payload back into its typed event.

    Raises:
        pydantic.ValidationError: Unknown ``type`` or malformed payload.
    """
    return _event_adapter.validate_json(payload)
