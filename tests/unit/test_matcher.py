"""Tests for filter chain: each filter in isolation + full chain."""

import pytest

from jobstream.core.schemas import Listing, ProviderId, SearchFilters
from jobstream.pipeline.matcher import (
    DeduplicationFilter,
    ExperienceFilter,
    RemoteOnlyFilter,
    SalaryFloorFilter,
    TimezoneFilter,
    build_filter_chain,
    run_filter_chain,
)


def _listing(
    *,
    title: str = "Senior Python Engineer",
    company: str = "Acme",
    location: str = "Remote",
    description: str = "",
    salary: str = "Salary not specified",
    source: ProviderId = ProviderId.ADZUNA,
) -> Listing:
    return Listing(
        title=title,
        company=company,
        location=location,
        description=description,
        salary=salary,
        source=source,
    )


# ---------------------------------------------------------------------------
# RemoteOnlyFilter
# ---------------------------------------------------------------------------


class TestRemoteOnlyFilter:
    def test_disabled_is_noop(self) -> None:
        listings = [_listing(location="New York, NY")]
        assert RemoteOnlyFilter(False)(listings) == listings

    def test_keeps_remote_markers(self) -> None:
        listings = [
            _listing(title="A", location="New York, NY"),
            _listing(title="B", location="Remote"),
            _listing(title="C", location="Berlin", description="Fully distributed team"),
        ]
        assert [l.title for l in RemoteOnlyFilter(True)(listings)] == ["B", "C"]


# ---------------------------------------------------------------------------
# SalaryFloorFilter
# ---------------------------------------------------------------------------


class TestSalaryFloorFilter:
    def test_zero_threshold_is_noop(self) -> None:
        listings = [_listing(salary="$10k")]
        assert SalaryFloorFilter(0)(listings) == listings

    def test_threshold(self) -> None:
        listings = [
            _listing(title="A", salary="$80k - $120k"),
            _listing(title="B", salary="$50k - $70k"),
            _listing(title="C"),
        ]
        assert [l.title for l in SalaryFloorFilter(100_000)(listings)] == ["A", "C"]

    def test_gbp_converted(self) -> None:
        assert SalaryFloorFilter(75_000)([_listing(salary="£60k - £65k")])


# ---------------------------------------------------------------------------
# ExperienceFilter
# ---------------------------------------------------------------------------


class TestExperienceFilter:
    def test_none_is_noop(self) -> None:
        listings = [_listing(title="Intern")]
        assert ExperienceFilter(None)(listings) == listings

    def test_entry(self) -> None:
        listings = [
            _listing(title="Junior Developer"),
            _listing(title="Developer", description="An entry-level role"),
            _listing(title="Senior Developer"),
        ]
        assert [l.title for l in ExperienceFilter("entry")(listings)] == [
            "Junior Developer", "Developer",
        ]

    def test_mid_excludes_leveled_titles(self) -> None:
        listings = [_listing(title="Software Engineer"), _listing(title="Staff Engineer")]
        assert [l.title for l in ExperienceFilter("mid")(listings)] == ["Software Engineer"]

    def test_senior(self) -> None:
        listings = [
            _listing(title="Sr Engineer"),
            _listing(title="Engineer", description="You have 5+ years of Python"),
            _listing(title="Engineer II"),
        ]
        assert len(ExperienceFilter("senior")(listings)) == 2

    @pytest.mark.parametrize("title", ["Engineering Manager", "Head of Data", "Solutions Architect"])
    def test_lead(self, title: str) -> None:
        assert ExperienceFilter("lead")([_listing(title=title)])

    def test_lead_rejects_individual_contributor(self) -> None:
        assert ExperienceFilter("lead")([_listing(title="Backend Engineer")]) == []


# ---------------------------------------------------------------------------
# TimezoneFilter
# ---------------------------------------------------------------------------


class TestTimezoneFilter:
    def test_none_is_noop(self) -> None:
        listings = [_listing(location="Berlin")]
        assert TimezoneFilter(None)(listings) == listings

    def test_us_only(self) -> None:
        listings = [
            _listing(title="A", location="Remote - USA"),
            _listing(title="B", description="Must overlap with EST hours"),
            _listing(title="C", location="Berlin, Germany"),
        ]
        assert [l.title for l in TimezoneFilter("us-only")(listings)] == ["A", "B"]

    def test_europe(self) -> None:
        listings = [_listing(title="A", location="Remote (EMEA)"), _listing(title="B", location="Tokyo")]
        assert [l.title for l in TimezoneFilter("europe")(listings)] == ["A"]

    def test_word_boundaries(self) -> None:
        # "eu" inside "Eugene" is not a region marker
        assert TimezoneFilter("europe")([_listing(location="Eugene, Oregon")]) == []


# ---------------------------------------------------------------------------
# DeduplicationFilter
# ---------------------------------------------------------------------------


class TestDeduplicationFilter:
    def test_within_batch(self) -> None:
        f = DeduplicationFilter()
        listings = [_listing(title="A"), _listing(title="a "), _listing(title="B")]
        assert [l.title for l in f(listings)] == ["A", "B"]

    def test_across_calls(self) -> None:
        f = DeduplicationFilter()
        f([_listing(title="A")])
        assert f([_listing(title="A"), _listing(title="C")])[0].title == "C"

    def test_same_title_other_source_kept(self) -> None:
        f = DeduplicationFilter()
        listings = [_listing(source=ProviderId.REED), _listing(source=ProviderId.ADZUNA)]
        assert len(f(listings)) == 2


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------


class TestFilterChain:
    def test_empty_filters_pass_everything(self) -> None:
        listings = [_listing(title="A", location="Berlin"), _listing(title="B")]
        assert run_filter_chain(listings, build_filter_chain(SearchFilters())) == listings

    def test_filters_applied_in_order(self) -> None:
        listings = [
            _listing(title="Senior Engineer", salary="$150k"),
            _listing(title="Senior Analyst", salary="$40k"),
            _listing(title="Engineer", salary="$150k"),
        ]
        chain = build_filter_chain(SearchFilters(salary="100k", experience="senior"))
        assert [l.title for l in run_filter_chain(listings, chain)] == ["Senior Engineer"]

    def test_filter_that_empties_batch_is_skipped(self) -> None:
        listings = [_listing(title="Engineer", location="Berlin"), _listing(title="Analyst", location="Paris")]
        chain = build_filter_chain(SearchFilters(timezone="us-only", experience="mid"))
        assert run_filter_chain(listings, chain) == listings

    def test_empty_input(self) -> None:
        assert run_filter_chain([], build_filter_chain(SearchFilters(remote_only=True))) == []
