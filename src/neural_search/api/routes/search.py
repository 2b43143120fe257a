"""Search and follow-up API routes."""

from fastapi import APIRouter, Depends, Query, Request

from neural_search.api.models import (
    ErrorResponse,
    FollowUpRequest,
    FollowUpResponse,
    SearchResponse,
    Source,
)
from neural_search.core.errors import (
    FOLLOW_UP_ERROR_MESSAGE,
    SEARCH_ERROR_MESSAGE,
    InvalidInputError,
)
from neural_search.core.grounding import SourceRecord
from neural_search.core.search import SearchService

router = APIRouter(prefix="/api", tags=["search"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def get_search_service(request: Request) -> SearchService:
    """Get the search service built with the app."""
    return request.app.state.search_service


def error_message(message: str):
    """Set the message reported for server errors that carry none."""

    def set_error_message(request: Request):
        request.state.error_message = message

    return Depends(set_error_message)


def to_sources(records: list[SourceRecord]) -> list[Source]:
    return [Source(title=r.title, url=r.url, snippet=r.snippet) for r in records]


@router.get(
    "/search",
    response_model=SearchResponse,
    responses=ERROR_RESPONSES,
    dependencies=[error_message(SEARCH_ERROR_MESSAGE)],
)
async def search(
    q: str | None = Query(None, description="The search query"),
    service: SearchService = Depends(get_search_service),
) -> SearchResponse:
    """Answer a new query and open a session for follow-ups."""
    if not q or not q.strip():
        raise InvalidInputError("Query parameter 'q' is required")

    result = await service.search(q)

    return SearchResponse(
        session_id=result.session_id,
        summary=result.summary,
        sources=to_sources(result.sources),
    )


@router.post(
    "/follow-up",
    response_model=FollowUpResponse,
    responses=ERROR_RESPONSES,
    dependencies=[error_message(FOLLOW_UP_ERROR_MESSAGE)],
)
async def follow_up(
    request: FollowUpRequest,
    service: SearchService = Depends(get_search_service),
) -> FollowUpResponse:
    """Answer a follow-up question in an existing session."""
    if not request.session_id or not request.query or not request.query.strip():
        raise InvalidInputError("Both sessionId and query are required")

    result = await service.follow_up(request.session_id, request.query)

    return FollowUpResponse(
        summary=result.summary,
        sources=to_sources(result.sources),
    )
