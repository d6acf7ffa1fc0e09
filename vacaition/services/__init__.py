"""
Service layer for the VacAItion backend.

Contains the orchestration between routes (HTTP layer) and the completion
service:
- completion_client: Gemini adapter (single shot and streaming)
- recommendation_service: endpoint orchestration (prompt, call, parse)
- recommendation_session: client-side session state machine
"""

from .completion_client import (
    CompletionClient,
    CompletionStream,
    GeminiCompletionClient,
    StreamBuffer,
    UpstreamError,
    get_completion_client,
)
from .recommendation_service import (
    recommend_activities,
    recommend_destination,
    stream_activities,
    stream_destination,
)
from .recommendation_session import RecommendationSession

__all__ = [
    # Completion client
    "CompletionClient",
    "CompletionStream",
    "GeminiCompletionClient",
    "StreamBuffer",
    "UpstreamError",
    "get_completion_client",
    # Endpoint orchestration
    "recommend_activities",
    "recommend_destination",
    "stream_activities",
    "stream_destination",
    # Session
    "RecommendationSession",
]
