"""Core data models: listings, match results, filters and provider status."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

SALARY_THRESHOLDS: dict[str, int] = {
    "50k": 50_000,
    "75k": 75_000,
    "100k": 100_000,
    "125k": 125_000,
    "150k": 150_000,
    "150000+": 150_000,
}


class WireModel(BaseModel):
    """Base for models that travel over the stream (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProviderId(str, Enum):
    THEIRSTACK = "theirstack"
    ADZUNA = "adzuna"
    THEMUSE = "themuse"
    REED = "reed"
    JSEARCH = "jsearch"
    JOBS_API = "jobs_api"


def normalize_key_part(value: str) -> str:
    """Lower-case and collapse whitespace for identity comparisons."""
    return " ".join(value.lower().split())


class MatchResult(WireModel):
    """Output of a match scorer for one listing."""

    match_percentage: int = Field(ge=0, le=100)
    industry_match: int | None = Field(default=None, ge=0, le=100)
    seniority_match: int | None = Field(default=None, ge=0, le=100)
    growth_potential: Literal["low", "medium", "high"] | None = None
    matched_technical_skills: list[str] = Field(default_factory=list)
    matched_soft_skills: list[str] = Field(default_factory=list)
    matched_experience: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    reasoning: str = ""


class Listing(WireModel):
    """A normalized job record.

    Frozen: scoring produces a new Listing via ``with_match``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str
    company: str = "Unknown Company"
    location: str = "Remote"
    link: str = ""
    source: ProviderId
    description: str = ""
    salary: str = "Salary not specified"
    employment_type: str = "Full-time"
    date_posted: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    match_percentage: int | None = Field(default=None, ge=0, le=100)
    matched_skills: list[str] = Field(default_factory=list)
    matched_soft_skills: list[str] = Field(default_factory=list)
    matched_experience: list[str] = Field(default_factory=list)
    missing_requirements: list[str] = Field(default_factory=list)
    industry_match: int | None = None
    seniority_match: int | None = None
    growth_potential: str | None = None
    match_reasoning: str = ""

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            msg = "title must not be empty"
            raise ValueError(msg)
        return v

    @property
    def identity_key(self) -> str:
        """Dedup/save key: stable under case and whitespace, distinct per source."""
        return "|".join(
            normalize_key_part(part)
            for part in (self.title, self.company, self.source.value)
        )

    def with_match(self, match: MatchResult) -> "Listing":
        """Return a copy carrying the given match breakdown."""
        return self.model_copy(update={
            "match_percentage": match.match_percentage,
            "matched_skills": match.matched_technical_skills,
            "matched_soft_skills": match.matched_soft_skills,
            "matched_experience": match.matched_experience,
            "missing_requirements": match.missing_requirements,
            "industry_match": match.industry_match,
            "seniority_match": match.seniority_match,
            "growth_potential": match.growth_potential,
            "match_reasoning": match.reasoning,
        })


class SearchFilters(WireModel):
    """Optional, advisory search constraints."""

    experience: Literal["entry", "mid", "senior", "lead"] | None = None
    salary: str | None = None
    timezone: Literal["us-only", "europe", "global"] | None = None
    remote_only: bool = False

    @field_validator("experience", "salary", "timezone", mode="before")
    @classmethod
    def blank_is_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def salary_threshold(self) -> int:
        """Minimum annual salary implied by the salary filter, 0 when unset."""
        if self.salary is None:
            return 0
        return SALARY_THRESHOLDS.get(self.salary.lower().strip(), 0)

    def is_empty(self) -> bool:
        return (
            self.experience is None
            and self.salary_threshold == 0
            and self.timezone is None
            and not self.remote_only
        )


class ProviderState(str, Enum):
    NOT_CONFIGURED = "not_configured"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed_out"
    EXHAUSTED = "exhausted"


class ProviderStatus(WireModel):
    """Per-provider state for the lifetime of one search session."""

    provider: str
    state: ProviderState = ProviderState.PENDING
    count: int = 0
    elapsed_seconds: float | None = None
    message: str = ""

    @property
    def settled(self) -> bool:
        return self.state in (
            ProviderState.SUCCEEDED, ProviderState.FAILED, ProviderState.TIMED_OUT,
        )
