"""Jobs API (jobs-api14 on RapidAPI) adapter."""

import os
from typing import Any

import httpx

from jobstream.core.schemas import Listing, ProviderId, SearchFilters
from jobstream.providers.base import ProviderAdapter
from jobstream.providers.http import fetch_json, records
from jobstream.providers.normalize import (
    NO_SALARY,
    clean_text,
    extract_salary_from_description,
    first_text,
    map_records,
    parse_date,
)

HOST = "jobs-api14.p.rapidapi.com"
BASE_URL = f"https://{HOST}/list"


def build_params(query: str, filters: SearchFilters) -> dict[str, Any]:
    return {
        "query": query,
        "location": "Remote",
        "distance": "1.0",
        "language": "en_GB",
        "remoteOnly": "true",
        "datePosted": "month",
        "jobType": "fulltime",
        "index": "0",
    }


def _link(raw: dict[str, Any]) -> str:
    providers = raw.get("jobProviders") or []
    provider_url = providers[0].get("url") if providers and isinstance(providers[0], dict) else None
    return first_text(raw.get("url"), provider_url)


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = first_text(raw.get("title"))
    if not title:
        return None

    description = clean_text(raw.get("description"))
    salary = first_text(raw.get("salaryRange"), raw.get("salary"), default=NO_SALARY)
    if salary == NO_SALARY:
        salary = extract_salary_from_description(description)

    return Listing(
        title=title,
        company=first_text(raw.get("company"), default="Unknown Company"),
        location=first_text(raw.get("location"), default="Remote"),
        link=_link(raw),
        source=ProviderId.JOBS_API,
        description=description,
        salary=salary,
        employment_type=first_text(raw.get("employmentType"), raw.get("jobType"),
                                   default="Full-time"),
        date_posted=parse_date(raw.get("datePosted")),
    )


class JobsApiAdapter(ProviderAdapter):
    """Jobs API: RapidAPI key header, results under ``jobs``."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 30) -> None:
        self._client = client
        self._limit = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.JOBS_API

    @property
    def display_name(self) -> str:
        return "JobsAPI"

    @property
    def env_vars(self) -> tuple[str, ...]:
        return ("RAPIDAPI_KEY",)

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        payload = await fetch_json(
            self._client,
            self.display_name,
            BASE_URL,
            params=build_params(query, filters),
            headers={"X-RapidAPI-Key": os.environ.get("RAPIDAPI_KEY", ""), "X-RapidAPI-Host": HOST},
        )
        listings = map_records(records(payload, "jobs", self.display_name), parse_listing,
                               self.display_name)
        return listings[: self._limit]
