"""Filter chain applied to each provider batch before delivery.

Filter order:
  1. RemoteOnlyFilter:     optional, location/title/description remote markers
  2. SalaryFloorFilter:    listings without salary info pass
  3. ExperienceFilter:     title/description seniority heuristics
  4. TimezoneFilter:       region markers in location/description
  5. DeduplicationFilter:  in-memory within a session, by identity key

Filters 1-4 are advisory: ``run_filter_chain`` skips any of them that would
turn a non-empty batch into an empty one.
"""

import logging
import re
from collections.abc import Callable

from jobstream.core.schemas import Listing, SearchFilters
from jobstream.providers.normalize import is_remote_text, salary_bounds

logger = logging.getLogger(__name__)

# A filter is a callable that takes listings and returns a subset.
Filter = Callable[[list[Listing]], list[Listing]]


def _words(*terms: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(t) for t in terms) + r")\b", re.IGNORECASE)


_ENTRY_TITLE = _words("junior", "entry", "associate", "intern", "graduate")
_ENTRY_TEXT = _words("entry level", "entry-level", "junior")
_MID_EXCLUDED = _words("senior", "lead", "principal", "junior", "entry", "director", "staff")
_SENIOR_TITLE = _words("senior", "sr", "lead", "principal", "staff")
_SENIOR_TEXT = _words("senior", "5+ years")
_LEAD_TITLE = _words("lead", "manager", "principal", "architect", "director", "head of")

_TIMEZONE_MARKERS: dict[str, re.Pattern[str]] = {
    "us-only": _words("us", "usa", "united states", "est", "pst", "cst", "america"),
    "europe": _words("europe", "eu", "emea", "cet", "gmt", "uk"),
    "global": _words("global", "worldwide", "international", "any timezone", "anywhere"),
}


class RemoteOnlyFilter:
    """Keep listings that look remote. No-op unless enabled."""

    def __init__(self, enabled: bool) -> None:
        self._enabled = enabled

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if not self._enabled:
            return listings
        return [
            l for l in listings
            if is_remote_text(l.location, l.title, l.description)
        ]


class SalaryFloorFilter:
    """Keep listings whose known salary reaches the threshold.

    Listings with no parseable salary pass: absence of data is not a mismatch.
    """

    def __init__(self, threshold: int) -> None:
        self._threshold = threshold

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if self._threshold <= 0:
            return listings
        return [l for l in listings if self._passes(l)]

    def _passes(self, listing: Listing) -> bool:
        low, high = salary_bounds(listing.salary)
        if low == 0 and high == 0:
            return True
        return max(low, high) >= self._threshold


class ExperienceFilter:
    """Keep listings whose title/description match the requested level."""

    def __init__(self, level: str | None) -> None:
        self._level = level

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if not self._level:
            return listings
        return [l for l in listings if self._passes(l)]

    def _passes(self, listing: Listing) -> bool:
        title, text = listing.title, listing.description
        if self._level == "entry":
            return bool(_ENTRY_TITLE.search(title) or _ENTRY_TEXT.search(text))
        if self._level == "mid":
            return not _MID_EXCLUDED.search(title)
        if self._level == "senior":
            return bool(_SENIOR_TITLE.search(title) or _SENIOR_TEXT.search(text))
        if self._level == "lead":
            return bool(_LEAD_TITLE.search(title))
        return True


class TimezoneFilter:
    """Keep listings mentioning the requested region in location or description."""

    def __init__(self, region: str | None) -> None:
        self._pattern = _TIMEZONE_MARKERS.get(region) if region else None

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        if self._pattern is None:
            return listings
        return [
            l for l in listings
            if self._pattern.search(l.location) or self._pattern.search(l.description)
        ]


class DeduplicationFilter:
    """Remove duplicates by identity key within a single session.

    Stateful: tracks seen keys across calls within the same filter instance.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def __call__(self, listings: list[Listing]) -> list[Listing]:
        result: list[Listing] = []
        for listing in listings:
            key = listing.identity_key
            if key not in self._seen:
                self._seen.add(key)
                result.append(listing)
        deduped = len(listings) - len(result)
        if deduped:
            logger.debug("DeduplicationFilter: removed %d duplicates", deduped)
        return result


def build_filter_chain(filters: SearchFilters) -> list[Filter]:
    """Advisory filters for a set of search filters, in application order."""
    return [
        RemoteOnlyFilter(filters.remote_only),
        SalaryFloorFilter(filters.salary_threshold),
        ExperienceFilter(filters.experience),
        TimezoneFilter(filters.timezone),
    ]


def run_filter_chain(listings: list[Listing], filters: list[Filter]) -> list[Listing]:
    """Apply filters in order, skipping any filter that would empty the batch."""
    result = listings
    for f in filters:
        narrowed = f(result)
        if result and not narrowed:
            logger.debug("%s would remove all %d listings; skipped", type(f).__name__, len(result))
            continue
        if len(narrowed) < len(result):
            logger.debug("%s: removed %d listings", type(f).__name__, len(result) - len(narrowed))
        result = narrowed
    return result
