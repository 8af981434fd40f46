import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from jobstream.api.models import SearchRequest
from jobstream.pipeline.orchestrator import prepare_search

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/search")
async def search(body: SearchRequest, request: Request) -> StreamingResponse:
    """
    Start a streamed search. Validation and provider configuration are checked
    before the stream opens; failures there are a plain JSON error response.
    """
    state = request.app.state
    session = prepare_search(body.profile, body.filters, state.adapters, state.settings, state.quota)
    logger.info(
        "Search request | providers=%s queries=%d filters=%s",
        [a.provider_id.value for a in session.adapters],
        len(session.queries),
        body.filters.model_dump(exclude_none=True),
    )
    return StreamingResponse(
        state.orchestrator.stream(session),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
