"""Adzuna search API adapter."""

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

BASE_URL = "https://api.adzuna.com/v1/api/jobs/us/search/1"

_CONTRACT_TIME = {"full_time": "Full-time", "part_time": "Part-time"}


def rewrite_query(query: str) -> str:
    """Adzuna scopes location via ``where``; drop "remote" from the keywords."""
    words = [w for w in query.split() if w.lower() != "remote"]
    return " ".join(words) or query


def build_params(
    query: str,
    filters: SearchFilters,
    app_id: str,
    app_key: str,
    results_per_page: int,
) -> dict[str, Any]:
    params: dict[str, Any] = {
        "app_id": app_id,
        "app_key": app_key,
        "what": rewrite_query(query),
        "where": "remote",
        "results_per_page": results_per_page,
        "sort_by": "relevance",
    }
    if filters.salary_threshold:
        params["salary_min"] = filters.salary_threshold
    return params


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = clean_text(raw.get("title"))
    if not title:
        return None

    company = raw.get("company") or {}
    location = raw.get("location") or {}
    description = clean_text(raw.get("description"))

    salary = format_salary(raw.get("salary_min"), raw.get("salary_max"))
    if salary == NO_SALARY:
        salary = extract_salary_from_description(description)

    contract = raw.get("contract_time")
    return Listing(
        title=title,
        company=first_text(company.get("display_name"), default="Unknown Company"),
        location=first_text(location.get("display_name"), default="Remote"),
        link=first_text(raw.get("redirect_url")),
        source=ProviderId.ADZUNA,
        description=description,
        salary=salary,
        employment_type=_CONTRACT_TIME.get(contract, first_text(contract, default="Full-time")),
        date_posted=parse_date(raw.get("created")),
    )


class AdzunaAdapter(ProviderAdapter):
    """Adzuna: app id + key as query params, results under ``results``."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 30) -> None:
        self._client = client
        self._results_per_page = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.ADZUNA

    @property
    def display_name(self) -> str:
        return "Adzuna"

    @property
    def env_vars(self) -> tuple[str, ...]:
        return ("ADZUNA_APP_ID", "ADZUNA_API_KEY")

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        params = build_params(
            query,
            filters,
            os.environ.get("ADZUNA_APP_ID", ""),
            os.environ.get("ADZUNA_API_KEY", ""),
            self._results_per_page,
        )
        payload = await fetch_json(self._client, self.display_name, BASE_URL, params=params)
        return map_records(records(payload, "results", self.display_name), parse_listing,
                           self.display_name)
