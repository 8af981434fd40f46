"""Tests for provider normalization helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from jobstream.core.schemas import Listing, ProviderId
from jobstream.providers.normalize import (
    NO_SALARY,
    clean_text,
    extract_salary_from_description,
    first_text,
    format_salary,
    is_remote_text,
    map_records,
    parse_amount,
    parse_date,
    salary_bounds,
)

# ---------------------------------------------------------------------------
# Salary formatting
# ---------------------------------------------------------------------------


class TestFormatSalary:
    def test_range(self) -> None:
        assert format_salary(80000, 120000) == "$80k - $120k"

    def test_from(self) -> None:
        assert format_salary("$85,000", None) == "From $85k"

    def test_up_to(self) -> None:
        assert format_salary(None, 120000) == "Up to $120k"

    def test_missing(self) -> None:
        assert format_salary(None, None) == NO_SALARY

    def test_zero_is_missing(self) -> None:
        assert format_salary(0, 0) == NO_SALARY

    def test_currency(self) -> None:
        assert format_salary(40000, 50000, currency="£") == "£40k - £50k"

    def test_small_amounts_kept_exact(self) -> None:
        assert format_salary(25.5, 30) == "$25.5 - $30"


class TestParseAmount:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [(85000, 85000.0), ("$85,000", 85000.0), ("", None), (None, None), (True, None), (-5, None)],
    )
    def test_values(self, value: object, expected: float | None) -> None:
        assert parse_amount(value) == expected


class TestExtractSalaryFromDescription:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Pay: $80k - $120k per year", "$80k - $120k"),
            ("Starting at $90,000 annually", "From $90k"),
            ("Compensation $100k+ plus equity", "From $100k"),
            ("Earn up to $150k", "Up to $150k"),
            ("Salary: $70k", "$70k - $70k"),
            ("Competitive pay", NO_SALARY),
            ("", NO_SALARY),
        ],
    )
    def test_patterns(self, text: str, expected: str) -> None:
        assert extract_salary_from_description(text) == expected


class TestSalaryBounds:
    @pytest.mark.parametrize(
        ("salary", "bounds"),
        [
            ("$80k - $120k", (80000, 120000)),
            ("From $90k", (90000, 90000)),
            ("Up to $120k", (120000, 120000)),
            ("£40,000 - £50,000", (52000, 65000)),
            ("$25 - $30 per hour", (52000, 62400)),
            (NO_SALARY, (0, 0)),
            ("", (0, 0)),
            ("Competitive", (0, 0)),
        ],
    )
    def test_bounds(self, salary: str, bounds: tuple[int, int]) -> None:
        assert salary_bounds(salary) == bounds


# ---------------------------------------------------------------------------
# Dates and text
# ---------------------------------------------------------------------------


class TestParseDate:
    def test_iso_with_z(self) -> None:
        parsed = parse_date("2026-03-01T12:00:00Z")
        assert parsed == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)

    def test_naive_iso_gets_utc(self) -> None:
        assert parse_date("2026-03-01").tzinfo is not None

    def test_epoch_seconds(self) -> None:
        assert parse_date(1_700_000_000) == datetime.fromtimestamp(
            1_700_000_000, tz=timezone.utc,
        )

    def test_day_month_year(self) -> None:
        assert parse_date("15/03/2026") == datetime(2026, 3, 15, tzinfo=timezone.utc)

    @pytest.mark.parametrize("value", ["not a date", None, "", True])
    def test_fallback_to_now(self, value: object) -> None:
        parsed = parse_date(value)
        assert abs(datetime.now(timezone.utc) - parsed) < timedelta(seconds=5)


class TestCleanText:
    def test_strips_tags_and_entities(self) -> None:
        assert clean_text("<p>R&amp;D <b>team</b></p>") == "R&D team"

    def test_collapses_whitespace(self) -> None:
        assert clean_text("a\n\n  b\tc") == "a b c"

    def test_non_string(self) -> None:
        assert clean_text(None) == ""


class TestFirstText:
    def test_first_non_blank(self) -> None:
        assert first_text(None, "  ", " x ", "y") == "x"

    def test_default(self) -> None:
        assert first_text(None, 3, default="d") == "d"


class TestIsRemoteText:
    @pytest.mark.parametrize(
        "parts",
        [("Remote",), ("Office", "Work from home"), ("Anywhere in the world",)],
    )
    def test_remote(self, parts: tuple[str, ...]) -> None:
        assert is_remote_text(*parts)

    def test_not_remote(self) -> None:
        assert not is_remote_text("New York, NY", "Onsite five days a week")


# ---------------------------------------------------------------------------
# map_records
# ---------------------------------------------------------------------------


class TestMapRecords:
    @staticmethod
    def _parse(raw: dict) -> Listing | None:
        if raw.get("skip"):
            return None
        return Listing(title=raw["title"], source=ProviderId.REED)

    def test_skips_malformed_and_none(self) -> None:
        raw = [{"title": "A"}, {"skip": True}, {"no_title": 1}, {"title": "B"}]
        listings = map_records(raw, self._parse, "Reed")
        assert [l.title for l in listings] == ["A", "B"]

    def test_validation_errors_skipped(self) -> None:
        # pydantic ValidationError subclasses ValueError
        listings = map_records([{"title": "  "}], self._parse, "Reed")
        assert listings == []

    def test_preserves_order(self) -> None:
        raw = [{"title": t} for t in ("C", "A", "B")]
        assert [l.title for l in map_records(raw, self._parse, "Reed")] == ["C", "A", "B"]
