from pydantic import BaseModel, Field

from jobstream.core.schemas import SearchFilters, WireModel
from jobstream.profile.schema import CandidateProfile


class SearchRequest(WireModel):
    profile: CandidateProfile
    filters: SearchFilters = Field(default_factory=SearchFilters)


class ProviderInfo(WireModel):
    provider: str
    name: str
    configured: bool
    env_vars: list[str]
    exhausted: bool = False
    retry_in_seconds: float | None = None


class ProvidersResponse(WireModel):
    providers: list[ProviderInfo]
    configured_count: int


class HealthResponse(BaseModel):
    status: str
    providers_configured: int
