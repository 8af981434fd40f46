"""Shared normalization helpers for provider adapters.

Pure functions, no I/O. Adapters use these to map heterogeneous salary,
date and text fields onto the common Listing shape.
"""

import html
import logging
import math
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from jobstream.core.schemas import Listing

logger = logging.getLogger(__name__)

NO_SALARY = "Salary not specified"

_TAG_RE = re.compile(r"<[^>]+>")
_WS_RE = re.compile(r"\s+")

# Salary mentions inside free-text descriptions
_RANGE_RE = re.compile(r"\$(\d+)(?:k|,000)\s*(?:-|–|to)\s*\$?(\d+)(?:k|,000)", re.IGNORECASE)
_PLUS_RE = re.compile(r"\$(\d+)(?:k|,000)\+", re.IGNORECASE)
_FROM_RE = re.compile(r"(?:from|starting\s+at)\s+\$(\d+)(?:k|,000)", re.IGNORECASE)
_UP_TO_RE = re.compile(r"up\s+to\s+\$(\d+)(?:k|,000)", re.IGNORECASE)
_LABELLED_RE = re.compile(r"salary:?\s*\$(\d+)(?:k|,000)", re.IGNORECASE)

# Numbers inside an already formatted salary string
_NUM = r"(\d+(?:\.\d+)?)(k)?"
_STR_RANGE_RE = re.compile(_NUM + r"\s*(?:-|–|to)\s*[$£€]?" + _NUM)
_STR_UP_TO_RE = re.compile(r"up\s+to\s+[$£€]?" + _NUM)
_STR_SINGLE_RE = re.compile(_NUM)

GBP_TO_USD = 1.3
HOURS_PER_YEAR = 40 * 52


def _format_amount(value: float) -> str:
    if value >= 1000:
        return f"{math.floor(value / 1000 + 0.5)}k"
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,.2f}".rstrip("0").rstrip(".")


def parse_amount(value: object) -> float | None:
    """Coerce a salary bound from a number or a string like "$85,000"."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.]", "", value)
        try:
            amount = float(cleaned)
        except ValueError:
            return None
        return amount if amount > 0 else None
    return None


def format_salary(minimum: object, maximum: object, currency: str = "$") -> str:
    """Render salary bounds as "$80k - $120k", "From $80k", "Up to $120k"."""
    low = parse_amount(minimum)
    high = parse_amount(maximum)
    if low is not None and high is not None:
        return f"{currency}{_format_amount(low)} - {currency}{_format_amount(high)}"
    if low is not None:
        return f"From {currency}{_format_amount(low)}"
    if high is not None:
        return f"Up to {currency}{_format_amount(high)}"
    return NO_SALARY


def extract_salary_from_description(description: str) -> str:
    """Find a salary mention in free text, or return NO_SALARY."""
    if not description:
        return NO_SALARY

    match = _RANGE_RE.search(description)
    if match:
        return format_salary(int(match.group(1)) * 1000, int(match.group(2)) * 1000)

    match = _FROM_RE.search(description) or _PLUS_RE.search(description)
    if match:
        return format_salary(int(match.group(1)) * 1000, None)

    match = _UP_TO_RE.search(description)
    if match:
        return format_salary(None, int(match.group(1)) * 1000)

    match = _LABELLED_RE.search(description)
    if match:
        value = int(match.group(1)) * 1000
        return format_salary(value, value)

    return NO_SALARY


def salary_bounds(salary: str) -> tuple[int, int]:
    """Parse a human salary string into annual USD (min, max); (0, 0) if unknown.

    Handles "k" suffixes, hourly rates and GBP amounts.
    """
    if not salary or salary == NO_SALARY:
        return 0, 0

    text = salary.lower().replace(",", "")
    match = _STR_RANGE_RE.search(text)
    if match:
        raw = [(match.group(1), match.group(2)), (match.group(3), match.group(4))]
    else:
        match = _STR_UP_TO_RE.search(text) or _STR_SINGLE_RE.search(text)
        if match is None:
            return 0, 0
        raw = [(match.group(1), match.group(2))] * 2

    hourly = any(marker in text for marker in ("/hour", "per hour", "/hr", "hourly"))
    bounds: list[float] = []
    for number, suffix in raw:
        amount = float(number)
        if suffix:
            amount *= 1000
        elif hourly:
            amount *= HOURS_PER_YEAR
        elif amount < 1000:
            amount *= 1000
        bounds.append(amount)

    if "£" in text:
        bounds = [b * GBP_TO_USD for b in bounds]

    return round(bounds[0]), round(bounds[1])


def parse_date(value: object) -> datetime:
    """Parse an ISO-8601 string or epoch seconds; fall back to now (UTC)."""
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0:
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            pass
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            try:
                parsed = datetime.strptime(text, "%d/%m/%Y")
            except ValueError:
                logger.debug("Unparseable date '%s', using now", value)
                return datetime.now(timezone.utc)
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return datetime.now(timezone.utc)


def clean_text(value: object) -> str:
    """Strip HTML tags/entities and collapse whitespace."""
    if not isinstance(value, str):
        return ""
    text = html.unescape(_TAG_RE.sub(" ", value))
    return _WS_RE.sub(" ", text).strip()


def first_text(*values: object, default: str = "") -> str:
    """Return the first non-blank string among values."""
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return default


def is_remote_text(*parts: str) -> bool:
    """True when any remote indicator appears in the given text."""
    text = " ".join(p.lower() for p in parts if p)
    return any(
        kw in text
        for kw in ("remote", "work from home", "wfh", "telecommute", "distributed", "anywhere")
    )


def map_records(
    raw_records: list[dict[str, Any]],
    parse: Callable[[dict[str, Any]], Listing | None],
    provider: str,
) -> list[Listing]:
    """Apply ``parse`` to each record, skipping the ones that fail."""
    listings: list[Listing] = []
    skipped = 0
    for raw in raw_records:
        try:
            listing = parse(raw)
        except (KeyError, TypeError, ValueError, AttributeError):
            logger.debug("%s: skipping malformed record", provider, exc_info=True)
            listing = None
        if listing is None:
            skipped += 1
            continue
        listings.append(listing)
    if skipped:
        logger.info("%s: skipped %d of %d records", provider, skipped, len(raw_records))
    return listings
