import logging

from fastapi import APIRouter, Request

from jobstream.api.models import HealthResponse, ProviderInfo, ProvidersResponse
from jobstream.providers import provider_status_report

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    configured = sum(1 for a in request.app.state.adapters if a.is_configured())
    logger.debug("Health check | providers_configured=%d", configured)
    return HealthResponse(status="ok", providers_configured=configured)


@router.get("/providers", response_model=ProvidersResponse, response_model_by_alias=True)
async def providers(request: Request) -> ProvidersResponse:
    """Which providers have credentials configured. Never exposes the values."""
    report = [
        ProviderInfo.model_validate(p)
        for p in provider_status_report(request.app.state.adapters, request.app.state.quota)
    ]
    return ProvidersResponse(
        providers=report,
        configured_count=sum(1 for p in report if p.configured),
    )
