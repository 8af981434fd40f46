"""HTTP client for the streaming search endpoint.

Reads the response body incrementally and feeds it to a StreamConsumer, so
listings render as they arrive and a dropped connection still returns
everything received so far.
"""

import logging
from collections.abc import AsyncIterator

import httpx

from jobstream.core.errors import ConfigurationError, JobStreamError, SearchValidationError, TransportError
from jobstream.core.schemas import SearchFilters
from jobstream.profile.schema import CandidateProfile
from jobstream.stream.consumer import EventCallback, SearchAggregate, StreamConsumer

logger = logging.getLogger(__name__)


class SearchClient:
    """Client for ``POST /search``.

    Args:
        base_url: Server root, e.g. ``http://127.0.0.1:8000``.
        timeout: Read timeout for the whole stream; must exceed the server's
            search deadline or the terminal event can be cut off.
        transport: Optional httpx transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 180.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = httpx.Timeout(timeout, connect=10.0)
        self._transport = transport

    async def search(
        self,
        profile: CandidateProfile,
        filters: SearchFilters | None = None,
        on_event: EventCallback | None = None,
    ) -> SearchAggregate:
        """Run a search and return the aggregate built from the stream.

        Raises:
            SearchValidationError: The server rejected the profile (400).
            ConfigurationError: The server has no providers configured (503).
            JobStreamError: Any other non-streamed error response.
        """
        body = {
            "profile": profile.model_dump(by_alias=True),
            "filters": (filters or SearchFilters()).model_dump(by_alias=True),
        }
        consumer = StreamConsumer(on_event=on_event)

        async with httpx.AsyncClient(
            base_url=self._base_url, timeout=self._timeout, transport=self._transport,
        ) as client:
            try:
                async with client.stream("POST", "/search", json=body) as response:
                    if response.status_code != 200:
                        await response.aread()
                        _raise_for_error(response)
                    return await consumer.consume(_chunks(response))
            except httpx.TransportError as e:
                # Failed before any response arrived.
                msg = f"Could not reach search server at {self._base_url}: {e}"
                raise TransportError(msg) from e


async def _chunks(response: httpx.Response) -> AsyncIterator[bytes]:
    """Raw body chunks, with mid-stream transport failures tagged as TransportError."""
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.TransportError as e:
        raise TransportError(str(e) or type(e).__name__) from e


def _raise_for_error(response: httpx.Response) -> None:
    try:
        payload = response.json()
    except ValueError:
        payload = {}
    message = payload.get("error") if isinstance(payload, dict) else None
    code = payload.get("code") if isinstance(payload, dict) else None
    message = message or f"Search request failed with HTTP {response.status_code}"

    if response.status_code == 400 or code == SearchValidationError.code:
        raise SearchValidationError(message)
    if response.status_code == 503 or code == ConfigurationError.code:
        raise ConfigurationError(message)
    if response.status_code == 422 and isinstance(payload, dict):
        fields = ", ".join(e.get("field", "?") for e in payload.get("errors", []))
        raise SearchValidationError(f"Invalid request fields: {fields}")
    raise JobStreamError(message)
