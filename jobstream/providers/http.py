"""HTTP helper shared by adapters: one GET, errors tagged by kind."""

import logging
import time
from typing import Any

import httpx

from jobstream.core.errors import ProviderError, ProviderErrorKind

logger = logging.getLogger(__name__)

USER_AGENT = "jobstream/0.1"

# Statuses providers use for an exhausted plan or request budget.
QUOTA_STATUSES = (402, 429, 509)

# Error-body wording that means the same, whatever the status code.
QUOTA_MARKERS = (
    "quota", "rate limit", "too many requests", "exceeded", "exhausted",
    "credits", "monthly limit", "usage limit", "insufficient balance",
)


async def fetch_json(
    client: httpx.AsyncClient,
    provider: str,
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    auth: httpx.Auth | tuple[str, str] | None = None,
) -> Any:
    """GET ``url`` and return the decoded JSON body.

    Raises:
        ProviderError: tagged ``timeout``, ``rate_limited``, ``unauthorized``,
            ``http`` or ``parse``.
    """
    request_headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    if headers:
        request_headers.update(headers)

    started = time.monotonic()
    try:
        response = await client.get(url, params=params, headers=request_headers, auth=auth)
    except httpx.TimeoutException as e:
        raise ProviderError(provider, ProviderErrorKind.TIMEOUT, str(e)) from e
    except httpx.HTTPError as e:
        raise ProviderError(provider, ProviderErrorKind.HTTP, str(e)) from e

    elapsed = time.monotonic() - started
    logger.debug("%s: GET %s -> %d in %.2fs", provider, url, response.status_code, elapsed)

    if response.status_code >= 400 and _is_quota_error(response):
        raise ProviderError(
            provider, ProviderErrorKind.RATE_LIMITED, f"HTTP {response.status_code}",
        )
    if response.status_code in (401, 403):
        raise ProviderError(
            provider, ProviderErrorKind.UNAUTHORIZED, f"HTTP {response.status_code}",
        )
    if response.status_code >= 400:
        raise ProviderError(provider, ProviderErrorKind.HTTP, f"HTTP {response.status_code}")

    try:
        return response.json()
    except ValueError as e:
        raise ProviderError(provider, ProviderErrorKind.PARSE, "invalid JSON body") from e


def records(payload: Any, key: str, provider: str) -> list[dict[str, Any]]:
    """Pull the list of raw records out of a response payload.

    A payload without the key yields no records; a payload of the wrong shape
    is a parse error.
    """
    if not isinstance(payload, dict):
        raise ProviderError(provider, ProviderErrorKind.PARSE, "expected a JSON object")
    items = payload.get(key)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ProviderError(provider, ProviderErrorKind.PARSE, f"'{key}' is not a list")
    return [item for item in items if isinstance(item, dict)]


def _is_quota_error(response: httpx.Response) -> bool:
    if response.status_code in QUOTA_STATUSES:
        return True
    body = response.text[:500].lower()
    return any(marker in body for marker in QUOTA_MARKERS)
