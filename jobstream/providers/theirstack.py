"""Theirstack jobs API adapter."""

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


BASE_URL = "https://api.theirstack.com/v1/jobs/search"

_CURRENCY_SYMBOLS = {"USD": "$", "GBP": "£", "EUR": "€"}


def build_params(query: str, filters: SearchFilters, limit: int) -> dict[str, Any]:
    """Theirstack takes the query verbatim, scoped to remote roles."""
    return {"query": query, "location": "Remote", "limit": limit}


def _salary(raw: dict[str, Any]) -> str:
    salary = raw.get("salary")
    if isinstance(salary, dict):
        bounds = salary.get("range") if isinstance(salary.get("range"), dict) else {}
        symbol = _CURRENCY_SYMBOLS.get(str(salary.get("currency") or "USD").upper(), "$")
        return format_salary(bounds.get("min"), bounds.get("max"), symbol)
    return NO_SALARY


def parse_listing(raw: dict[str, Any]) -> Listing | None:
    title = first_text(raw.get("title"), raw.get("job_title"))
    if not title:
        return None

    company = raw.get("company")
    company_name = company.get("name") if isinstance(company, dict) else company
    description = clean_text(raw.get("description"))

    salary = _salary(raw)
    if salary == NO_SALARY:
        salary = extract_salary_from_description(description)

    return Listing(
        title=title,
        company=first_text(company_name, raw.get("company_name"), default="Unknown Company"),
        location=first_text(raw.get("location"), default="Remote"),
        link=first_text(raw.get("url"), raw.get("final_url")),
        source=ProviderId.THEIRSTACK,
        description=description,
        salary=salary,
        employment_type=first_text(raw.get("type"), raw.get("employment_type"), default="Full-time"),
        date_posted=parse_date(raw.get("posted_at") or raw.get("date_posted")),
    )


class TheirstackAdapter(ProviderAdapter):
    """Theirstack: bearer-token JSON API, results under ``jobs``."""

    def __init__(self, client: httpx.AsyncClient, results_per_page: int = 50) -> None:
        self._client = client
        self._limit = results_per_page

    @property
    def provider_id(self) -> ProviderId:
        return ProviderId.THEIRSTACK

    @property
    def display_name(self) -> str:
        return "Theirstack"

    @property
    def env_vars(self) -> tuple[str, ...]:
        return ("THEIRSTACK_API_KEY",)

    async def search(self, query: str, filters: SearchFilters) -> list[Listing]:
        payload = await fetch_json(
            self._client,
            self.display_name,
            BASE_URL,
            params=build_params(query, filters, self._limit),
            headers={"Authorization": f"Bearer {os.environ.get('THEIRSTACK_API_KEY', '')}"},
        )
        return map_records(records(payload, "jobs", self.display_name), parse_listing,
                           self.display_name)
