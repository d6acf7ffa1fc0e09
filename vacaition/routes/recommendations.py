"""
FastAPI routes for recommendation endpoints.

This module exposes HTTP endpoints for both recommendation flows. Requests
are public (no authentication) and nothing is persisted.

Endpoints:
- POST /recommendations/activities: Things to do near a location
- POST /recommendations/destination: One vacation destination, excluding
  previously suggested ones

Both endpoints accept ?stream=true to relay the model reply as a chunked
text/plain body instead of a parsed JSON response.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, StreamingResponse

from vacaition.schemas.recommendations import (
    ActivityQueryRequest,
    DestinationQueryRequest,
    ErrorResponse,
    Recommendation,
    VacationSuggestion,
)
from vacaition.services.completion_client import (
    CompletionClient,
    UpstreamError,
    get_completion_client,
)
from vacaition.services.recommendation_service import (
    recommend_activities,
    recommend_destination,
    stream_activities,
    stream_destination,
)
from vacaition.utils.constants import STREAMING_HEADERS

logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    prefix="/recommendations",
    tags=["recommendations"]
)


def _upstream_error_response(error: UpstreamError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error=error.message).model_dump(),
    )


def _streaming_response(fragments) -> StreamingResponse:
    return StreamingResponse(
        fragments,
        media_type="text/plain",
        headers=STREAMING_HEADERS,
    )


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post(
    "/activities",
    response_model=List[Recommendation],
    status_code=status.HTTP_200_OK,
    responses={500: {"model": ErrorResponse}},
    summary="Find things to do near a location",
    description="""
    Returns 3-5 specific places matching the user's interests within their
    travel distance.

    **Frontend Flow:**
    1. User fills location, travel distance and activities
    2. POST /recommendations/activities
    3. Render the array; entries may lack website/location

    **Streaming:**
    With ?stream=true the body is text/plain and its concatenation is the
    same JSON array text, possibly wrapped in prose. Parse it client-side.
    """
)
async def recommend_activities_endpoint(
    request: ActivityQueryRequest,
    stream: bool = Query(False, description="Relay the model reply as a text stream"),
    client: CompletionClient = Depends(get_completion_client),
):
    """
    Activity recommendations endpoint.

    - Parse/Validate: Handled by Pydantic ActivityQueryRequest (422 on failure)
    - Call LLM: Single call via service layer
    - Map output: Service layer parses the reply into Recommendation models
    """
    logger.info(f"POST /recommendations/activities called, stream={stream}")

    if stream:
        return _streaming_response(stream_activities(request, client))

    try:
        return await recommend_activities(request, client)
    except UpstreamError as e:
        logger.error(f"Activity recommendations failed: {e.message}")
        return _upstream_error_response(e)


@router.post(
    "/destination",
    response_model=VacationSuggestion,
    status_code=status.HTTP_200_OK,
    responses={500: {"model": ErrorResponse}},
    summary="Suggest one vacation destination",
    description="""
    Returns exactly one destination reachable by the chosen transport within
    the travel time, with 3-5 activities that each have a mappable location.

    **Frontend Flow ("get more"):**
    1. Send previousSuggestions with every destination already shown
    2. POST /recommendations/destination once per destination, sequentially
    3. Append each result and add its destination to previousSuggestions

    **Streaming:**
    With ?stream=true the body is text/plain and its concatenation is the
    JSON object text.
    """
)
async def recommend_destination_endpoint(
    request: DestinationQueryRequest,
    stream: bool = Query(False, description="Relay the model reply as a text stream"),
    client: CompletionClient = Depends(get_completion_client),
):
    """
    Vacation destination endpoint.

    Same flow as the activities endpoint; an unreadable reply is a 500.
    """
    logger.info(
        f"POST /recommendations/destination called, stream={stream}, "
        f"previous_suggestions={len(request.previous_suggestions)}"
    )

    if stream:
        return _streaming_response(stream_destination(request, client))

    try:
        return await recommend_destination(request, client)
    except UpstreamError as e:
        logger.error(f"Destination recommendation failed: {e.message}")
        return _upstream_error_response(e)
