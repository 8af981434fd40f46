"""JSearch (RapidAPI) adapter."""

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
    format_salary,
    map_records,
    parse_date,
)

HOST = "jsearch.p.rapidapi.com"
BASE_URL = f"https://{HOST}/search"

REQUIREMENTS_MAP: dict[str, str] = {
    "entry": "no_experience,under_3_years_experience",
    "mid": "more_than_3_years_experience",
    "senior": "more_than_3_years_experience",
    "lead": "more_than_3_years_experience",
}

_EMPLOYMENT_TYPES = {
    "FULLTIME": "Full-time",
    "PARTTIME": "Part-time",
    "CONTRACTOR": "Contract",
    "INTERN": "Internship",
}


def build_params(query: str, filters: SearchFilters) -> dict[str, Any]:
    params: dict[str, Any] = {
        "query": query,
        "page": "1",
        "num_pages": "1",
        "date_posted": "all",
        "remote_jobs_only": "true",
    }
    if filters.experience:
        params["job_requirements"] = REQUIREMENTS_MAP[filters.experience]
    return params


def _location(raw: dict[str, Any]) -> str:
    city = first_text(raw.get("job_city"))
    if not city:
        return "Remote"
    region = first_text(raw.get("job_state"), raw.get("job_country"))
    return f"{city}, {region}" if region else city


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = first_text(raw.get("job_title"))
    company = first_text(raw.get("employer_name"))
    if not title or not company:
        return None

    description = clean_text(raw.get("job_description"))
    salary = format_salary(raw.get("job_min_salary"), raw.get("job_max_salary"))
    if salary == NO_SALARY:
        salary = extract_salary_from_description(description)

    employment = first_text(raw.get("job_employment_type"))
    return Listing(
        title=title,
        company=company,
        location=_location(raw),
        link=first_text(raw.get("job_apply_link"), raw.get("job_google_link")),
        source=ProviderId.JSEARCH,
        description=description,
        salary=salary,
        employment_type=_EMPLOYMENT_TYPES.get(employment.upper(), employment or "Full-time"),
        date_posted=parse_date(
            raw.get("job_posted_at_datetime_utc") or raw.get("job_posted_at_timestamp"),
        ),
    )


class JSearchAdapter(ProviderAdapter):
    """JSearch: RapidAPI key header, results under ``data``."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 30) -> None:
        self._client = client
        self._limit = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.JSEARCH

    @property
    def display_name(self) -> str:
        return "JSearch"

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
        listings = map_records(records(payload, "data", self.display_name), parse_listing,
                               self.display_name)
        return listings[: self._limit]
