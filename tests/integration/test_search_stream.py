"""Integration test: HTTP API streaming a search end to end with mock adapters."""

import asyncio
from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from jobstream.api.app import create_app
from jobstream.client import SearchClient
from jobstream.core.config import ProviderConfig, SearchConfig, Settings
from jobstream.core.errors import ConfigurationError, SearchValidationError
from jobstream.core.schemas import Listing, ProviderId, SearchFilters
from jobstream.profile.schema import CandidateProfile
from jobstream.providers.base import ProviderAdapter
from jobstream.stream.consumer import FrameDecoder
from jobstream.stream.events import JobsFound, SearchComplete, StreamEvent, decode_event

# ---------------------------------------------------------------------------
# Mock adapter
# ---------------------------------------------------------------------------


class MockAdapter(ProviderAdapter):
    """Returns pre-configured listings for each query."""

    def __init__(
        self,
        provider: ProviderId,
        titles: list[str],
        *,
        delay: float = 0.0,
        configured: bool = True,
    ) -> None:
        self._provider = provider
        self._titles = titles
        self._delay = delay
        self._configured = configured

    @property
    def provider_id(self) -> ProviderId:
        return self._provider

    @property
    def display_name(self) -> str:
        return self._provider.value.capitalize()

    @property
    def env_vars(self) -> tuple[str, ...]:
        return (f"{self._provider.value.upper()}_API_KEY",)

    def is_configured(self) -> bool:
        return self._configured

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        await asyncio.sleep(self._delay)
        return [
            Listing(
                title=title,
                company="Acme",
                source=self._provider,
                link=f"https://jobs.test/{self._provider.value}/{i}",
                description="Python services on AWS",
            )
            for i, title in enumerate(self._titles)
        ]


def _make_settings() -> Settings:
    return Settings(
        search=SearchConfig(deadline_seconds=2, providers=["adzuna", "reed"], queries_per_provider=1),
        providers={
            "adzuna": ProviderConfig(timeout_seconds=1),
            "reed": ProviderConfig(timeout_seconds=0.2),
        },
    )


def _profile_body() -> dict:
    return {
        "technicalSkills": ["Python", "AWS"],
        "workExperience": ["Backend Engineer"],
        "seniorityLevel": "senior",
    }


def _decode(body: bytes) -> list[StreamEvent]:
    decoder = FrameDecoder()
    payloads = decoder.feed(body) + decoder.finish()
    return [decode_event(p) for p in payloads]


@pytest.fixture
def adapters() -> list[ProviderAdapter]:
    return [
        MockAdapter(ProviderId.ADZUNA, ["Python Engineer", "Backend Engineer", "Cloud Engineer"]),
        MockAdapter(ProviderId.REED, ["Never Delivered"], delay=5),
    ]


@pytest.fixture
def client(adapters: list[ProviderAdapter]) -> Iterator[TestClient]:
    with TestClient(create_app(_make_settings(), adapters=adapters)) as test_client:
        yield test_client


# ---------------------------------------------------------------------------
# POST /search
# ---------------------------------------------------------------------------


class TestSearchEndpoint:
    def test_streams_events(self, client: TestClient) -> None:
        response = client.post("/search", json={"profile": _profile_body()})

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        events = _decode(response.content)
        assert [e.type for e in events] == [
            "search_started",
            "scraper_start",
            "scraper_start",
            "jobs_found",
            "scraper_error",
            "search_complete",
        ]
        found = events[3]
        assert isinstance(found, JobsFound)
        assert found.provider == "adzuna"
        assert all(l.match_percentage is not None for l in found.listings)
        complete = events[-1]
        assert isinstance(complete, SearchComplete)
        assert complete.total_count == 3
        assert len(complete.listings) + len(complete.remaining_listings) == 3

    def test_wire_format_is_camel_case(self, client: TestClient) -> None:
        response = client.post("/search", json={"profile": _profile_body()})
        assert b'"runningTotal":3' in response.content
        assert b'"totalCount":3' in response.content
        assert response.content.endswith(b"\n\n")

    def test_filters_accepted(self, client: TestClient) -> None:
        response = client.post(
            "/search",
            json={"profile": _profile_body(), "filters": {"experience": "lead", "remoteOnly": True}},
        )
        assert response.status_code == 200
        assert _decode(response.content)[-1].type == "search_complete"

    def test_profile_without_signal_is_400(self, client: TestClient) -> None:
        response = client.post("/search", json={"profile": {"industries": ["Fintech"]}})
        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "INVALID_PROFILE"
        assert "at least one" in body["error"]

    def test_no_configured_providers_is_503(self) -> None:
        adapters = [MockAdapter(ProviderId.ADZUNA, ["A"], configured=False)]
        with TestClient(create_app(_make_settings(), adapters=adapters)) as client:
            response = client.post("/search", json={"profile": _profile_body()})
        assert response.status_code == 503
        assert response.json()["code"] == "NO_PROVIDERS"

    def test_missing_profile_is_422(self, client: TestClient) -> None:
        response = client.post("/search", json={})
        assert response.status_code == 422
        assert response.json() == {"errors": [{"field": "profile", "message": "Field required"}]}

    def test_bad_filter_is_422(self, client: TestClient) -> None:
        response = client.post(
            "/search", json={"profile": _profile_body(), "filters": {"experience": "guru"}},
        )
        assert response.status_code == 422
        assert response.json()["errors"][0]["field"] == "experience"


# ---------------------------------------------------------------------------
# GET /providers, GET /health
# ---------------------------------------------------------------------------


class TestStatusEndpoints:
    def test_providers(self) -> None:
        adapters = [
            MockAdapter(ProviderId.ADZUNA, []),
            MockAdapter(ProviderId.REED, [], configured=False),
        ]
        with TestClient(create_app(_make_settings(), adapters=adapters)) as client:
            body = client.get("/providers").json()
        assert body["configuredCount"] == 1
        assert body["providers"][1] == {
            "provider": "reed",
            "name": "Reed",
            "configured": False,
            "envVars": ["REED_API_KEY"],
            "exhausted": False,
            "retryInSeconds": None,
        }

    def test_providers_report_quota_pause(self) -> None:
        app = create_app(_make_settings(), adapters=[MockAdapter(ProviderId.ADZUNA, [])])
        app.state.quota.mark_exhausted("adzuna", "HTTP 429")
        with TestClient(app) as client:
            body = client.get("/providers").json()
        adzuna = body["providers"][0]
        assert adzuna["exhausted"] is True
        assert adzuna["retryInSeconds"] > 0

    def test_health(self, client: TestClient) -> None:
        assert client.get("/health").json() == {"status": "ok", "providers_configured": 2}


# ---------------------------------------------------------------------------
# SearchClient against the app
# ---------------------------------------------------------------------------


class TestSearchClientEndToEnd:
    async def test_client_aggregates_stream(self, adapters: list[ProviderAdapter]) -> None:
        app = create_app(_make_settings(), adapters=adapters)
        search_client = SearchClient("http://testserver", transport=httpx.ASGITransport(app=app))
        profile = CandidateProfile.model_validate(_profile_body())

        aggregate = await search_client.search(profile)

        assert aggregate.completed
        assert aggregate.total == 3
        assert aggregate.provider_counts == {"adzuna": 3}
        assert set(aggregate.provider_errors) == {"reed"}
        assert aggregate.reported_total == aggregate.total

    async def test_client_raises_pre_stream_errors(self, adapters: list[ProviderAdapter]) -> None:
        app = create_app(_make_settings(), adapters=adapters)
        search_client = SearchClient("http://testserver", transport=httpx.ASGITransport(app=app))
        with pytest.raises(SearchValidationError):
            await search_client.search(CandidateProfile(industries=["Fintech"]))

    async def test_client_no_providers(self) -> None:
        adapters = [MockAdapter(ProviderId.ADZUNA, ["A"], configured=False)]
        app = create_app(_make_settings(), adapters=adapters)
        search_client = SearchClient("http://testserver", transport=httpx.ASGITransport(app=app))
        with pytest.raises(ConfigurationError):
            await search_client.search(CandidateProfile(technical_skills=["Go"]))
