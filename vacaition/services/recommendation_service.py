"""
Recommendation Service - endpoint orchestration

Thin relay between the HTTP layer and the completion service:
1. Map the endpoint body to a RecommendationRequest
2. Build the prompt for the flow (activities or destination)
3. Call the completion client, single shot or streaming
4. Parse the reply (single shot) or relay raw fragments (streaming)

Error policy:
- UpstreamError propagates to the route, which answers HTTP 500
- Activities: an unparseable reply degrades to line-split placeholders
- Destination: an unparseable reply is reported as UpstreamError, since a
  placeholder destination cannot be plotted or excluded later
- Streaming: headers are already sent when the upstream fails, so the
  error is appended to the body as {"error": "Internal Server Error"}
"""

import logging
from typing import AsyncIterator, List

from vacaition.agents.recommendation import (
    RecommendationMode,
    build_prompt,
    fallback_recommendations,
    parse,
    shape_for_mode,
)
from vacaition.schemas.recommendations import (
    ActivityQueryRequest,
    DestinationQueryRequest,
    Recommendation,
    VacationSuggestion,
)
from vacaition.services.completion_client import CompletionClient, UpstreamError
from vacaition.utils.constants import STREAM_ERROR_BODY
from vacaition.utils.logging import preview

logger = logging.getLogger(__name__)


async def recommend_activities(
    request: ActivityQueryRequest,
    client: CompletionClient,
) -> List[Recommendation]:
    """
    Return 3-5 activity recommendations for the request.

    Raises:
        UpstreamError: If the completion service fails
    """
    prompt = build_prompt(request.to_recommendation_request(), RecommendationMode.ACTIVITIES)
    text = await client.complete(prompt)

    result = parse(text, shape_for_mode(RecommendationMode.ACTIVITIES))
    if result.ok:
        logger.info(f"Returning {len(result.value)} activity recommendations")
        return result.value

    placeholders = fallback_recommendations(result.raw_text)
    logger.warning(
        f"Activity reply unparseable ({result.reason}); returning "
        f"{len(placeholders)} placeholders. Preview: '{preview(text)}'"
    )
    return placeholders


async def recommend_destination(
    request: DestinationQueryRequest,
    client: CompletionClient,
) -> VacationSuggestion:
    """
    Return one vacation destination not in request.previous_suggestions.

    A repeated destination is returned as-is and logged; suppressing repeats
    is the caller's session policy.

    Raises:
        UpstreamError: If the completion service fails or its reply is unusable
    """
    prompt = build_prompt(request.to_recommendation_request(), RecommendationMode.VACATION)
    text = await client.complete(prompt)

    result = parse(text, shape_for_mode(RecommendationMode.VACATION))
    if not result.ok:
        logger.error(f"Destination reply unparseable: {result.reason}. Preview: '{preview(text)}'")
        raise UpstreamError("Recommendation service returned an unreadable destination.")

    suggestion: VacationSuggestion = result.value
    if suggestion.destination in request.previous_suggestions:
        logger.warning("Completion service repeated a previously suggested destination")

    logger.info(f"Returning destination with {len(suggestion.activities)} activities")
    return suggestion


async def _relay_stream(prompt: str, client: CompletionClient) -> AsyncIterator[str]:
    fragments = 0
    try:
        async with client.stream(prompt) as stream:
            async for fragment in stream:
                fragments += 1
                yield fragment
    except UpstreamError as e:
        logger.error(f"Streaming relay failed after {fragments} fragments: {e.message}")
        yield STREAM_ERROR_BODY
    else:
        logger.info(f"Streaming relay finished after {fragments} fragments")


def stream_activities(
    request: ActivityQueryRequest,
    client: CompletionClient,
) -> AsyncIterator[str]:
    """Raw reply fragments whose concatenation is the activity JSON array."""
    prompt = build_prompt(request.to_recommendation_request(), RecommendationMode.ACTIVITIES)
    return _relay_stream(prompt, client)


def stream_destination(
    request: DestinationQueryRequest,
    client: CompletionClient,
) -> AsyncIterator[str]:
    """Raw reply fragments whose concatenation is the destination JSON object."""
    prompt = build_prompt(request.to_recommendation_request(), RecommendationMode.VACATION)
    return _relay_stream(prompt, client)
