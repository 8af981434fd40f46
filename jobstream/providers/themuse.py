"""The Muse public jobs API adapter.

The Muse has no free-text search; listings are fetched by location/level and
then matched against the query words locally.
"""

import os
from typing import Any

import httpx

from jobstream.core.schemas import Listing, ProviderId, SearchFilters
from jobstream.providers.base import ProviderAdapter
from jobstream.providers.http import fetch_json, records
from jobstream.providers.normalize import (
    clean_text,
    extract_salary_from_description,
    first_text,
    map_records,
    parse_date,
)

BASE_URL = "https://www.themuse.com/api/public/jobs"

LEVEL_MAP: dict[str, str] = {
    "entry": "Entry Level",
    "mid": "Mid Level",
    "senior": "Senior Level",
    "lead": "Management",
}

# query word → words that also count as a hit
_SYNONYMS: dict[str, tuple[str, ...]] = {
    "developer": ("engineer",),
    "engineer": ("developer",),
    "manager": ("lead",),
    "analyst": ("analytics",),
}


def build_params(filters: SearchFilters, api_key: str, page: int = 0) -> dict[str, Any]:
    params: dict[str, Any] = {
        "api_key": api_key,
        "page": page,
        "location": "Flexible / Remote",
    }
    if filters.experience:
        params["level"] = LEVEL_MAP[filters.experience]
    return params


def query_words(query: str) -> list[str]:
    return [w for w in query.lower().split() if w != "remote" and len(w) >= 3]


def matches_query(title: str, description: str, query: str) -> bool:
    """True when any meaningful query word (or a synonym) appears in the text."""
    words = query_words(query)
    if not words:
        return True
    text = f"{title} {description}".lower()
    return any(
        word in text or any(syn in text for syn in _SYNONYMS.get(word, ()))
        for word in words
    )


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = first_text(raw.get("name"))
    if not title:
        return None

    company = raw.get("company") or {}
    locations = raw.get("locations") or []
    refs = raw.get("refs") or {}
    description = clean_text(raw.get("contents"))
    location = locations[0].get("name") if locations and isinstance(locations[0], dict) else None

    return Listing(
        title=title,
        company=first_text(company.get("name"), default="Unknown Company"),
        location=first_text(location, default="Remote"),
        link=first_text(refs.get("landing_page")),
        source=ProviderId.THEMUSE,
        description=description,
        salary=extract_salary_from_description(description),
        employment_type=first_text(raw.get("type"), default="Full-time"),
        date_posted=parse_date(raw.get("publication_date")),
    )


class TheMuseAdapter(ProviderAdapter):
    """The Muse: api key as query param, results under ``results``."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 30) -> None:
        self._client = client
        self._limit = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.THEMUSE

    @property
    def display_name(self) -> str:
        return "TheMuse"

    @property
    def env_vars(self) -> tuple[str, ...]:
        return ("THEMUSE_API_KEY",)

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        payload = await fetch_json(
            self._client,
            self.display_name,
            BASE_URL,
            params=build_params(filters, os.environ.get("THEMUSE_API_KEY", "")),
        )
        listings = map_records(records(payload, "results", self.display_name), parse_listing,
                               self.display_name)
        relevant = [l for l in listings if matches_query(l.title, l.description, query)]
        return relevant[: self._limit]
