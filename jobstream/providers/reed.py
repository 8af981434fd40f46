"""Reed (UK) jobseeker API adapter."""

import os
from typing import Any

import httpx

from jobstream.core.schemas import Listing, ProviderId, SearchFilters
from jobstream.providers.adzuna import rewrite_query
from jobstream.providers.base import ProviderAdapter
from jobstream.providers.http import fetch_json, records
from jobstream.providers.normalize import (
    clean_text,
    first_text,
    format_salary,
    map_records,
    parse_date,
)

BASE_URL = "https://www.reed.co.uk/api/1.0/search"


def build_params(query: str, filters: SearchFilters, results_to_take: int) -> dict[str, Any]:
    params: dict[str, Any] = {
        "keywords": rewrite_query(query),
        "locationName": "Remote",
        "resultsToTake": results_to_take,
        "resultsToSkip": 0,
    }
    return params


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = first_text(raw.get("jobTitle"))
    if not title:
        return None

    if raw.get("contractType"):
        employment_type = str(raw["contractType"])
    elif raw.get("partTime") and not raw.get("fullTime"):
        employment_type = "Part-time"
    else:
        employment_type = "Full-time"

    return Listing(
        title=title,
        company=first_text(raw.get("employerName"), default="Unknown Company"),
        location=first_text(raw.get("locationName"), default="Remote"),
        link=first_text(raw.get("jobUrl")),
        source=ProviderId.REED,
        description=clean_text(raw.get("jobDescription")),
        salary=format_salary(raw.get("minimumSalary"), raw.get("maximumSalary"), currency="£"),
        employment_type=employment_type,
        date_posted=parse_date(raw.get("date")),
    )


class ReedAdapter(ProviderAdapter):
    """Reed: HTTP basic auth with the key as username; GBP salaries."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 30) -> None:
        self._client = client
        self._results_to_take = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.REED

    @property
    def display_name(self) -> str:
        return "Reed"

    @property
    def env_vars(self) -> tuple[str, ...]:
        return ("REED_API_KEY",)

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        payload = await fetch_json(
            self._client,
            self.display_name,
            BASE_URL,
            params=build_params(query, filters, self._results_to_take),
            auth=(os.environ.get("REED_API_KEY", ""), ""),
        )
        return map_records(records(payload, "results", self.display_name), parse_listing,
                           self.display_name)
