"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from jobstream.api.routes import health, search
from jobstream.core.config import Settings
from jobstream.core.errors import ConfigurationError, SearchValidationError
from jobstream.pipeline.llm_scorer import MatchScorer
from jobstream.pipeline.orchestrator import Orchestrator
from jobstream.pipeline.quota_manager import QuotaManager
from jobstream.providers import ProviderAdapter, build_adapters
from jobstream.providers.http import USER_AGENT

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    if app.state.adapters is not None:
        yield
        return

    settings: Settings = app.state.settings
    async with httpx.AsyncClient(
        headers={"User-Agent": USER_AGENT}, follow_redirects=True,
    ) as client:
        app.state.adapters = build_adapters(client, settings)
        configured = [a.display_name for a in app.state.adapters if a.is_configured()]
        logger.info(
            "Providers ready: %d of %d configured (%s)",
            len(configured), len(app.state.adapters), ", ".join(configured) or "none",
        )
        yield


def create_app(
    settings: Settings | None = None,
    adapters: list[ProviderAdapter] | None = None,
    scorer: MatchScorer | None = None,
) -> FastAPI:
    """Build the API.

    Args:
        settings: Loaded settings; defaults when None.
        adapters: Adapter instances to use. When None, adapters are built at
            startup around a shared httpx client.
        scorer: Match scorer; defaults to one built from ``settings.scoring``.
    """
    settings = settings or Settings()
    app = FastAPI(title="jobstream - streaming job search", lifespan=_lifespan)
    app.state.settings = settings
    app.state.adapters = adapters
    app.state.quota = QuotaManager(settings.search.quota_reset_seconds)
    app.state.orchestrator = Orchestrator(settings, scorer, app.state.quota)

    app.include_router(search.router)
    app.include_router(health.router)

    @app.exception_handler(SearchValidationError)
    async def invalid_profile_handler(request: Request, exc: SearchValidationError) -> JSONResponse:
        logger.info("Rejected search on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": str(exc), "code": exc.code})

    @app.exception_handler(ConfigurationError)
    async def no_providers_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.warning("Rejected search on %s: %s", request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": str(exc), "code": exc.code})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = [
            {"field": str(e["loc"][-1]), "message": e["msg"].replace("Value error, ", "")}
            for e in exc.errors()
        ]
        logger.warning("Validation error on %s: %s", request.url.path, errors)
        return JSONResponse(status_code=422, content={"errors": errors})

    return app
