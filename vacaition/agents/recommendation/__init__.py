"""
Recommendation System - Single-Shot LLM Pipeline

This package contains the pure parts of the recommendation pipeline:
- types: modes (which flow) and shapes (which JSON payload)
- prompts: system prompt and deterministic user prompt builders
- parser: never-raising extraction of the JSON payload from model replies

The network-facing parts live in:
- vacaition/services/completion_client.py (Gemini adapter, streaming)
- vacaition/services/recommendation_session.py (session state machine)
- vacaition/services/recommendation_service.py (HTTP endpoint orchestration)
"""

from vacaition.agents.recommendation.parser import (
    ParseFailure,
    ParseResult,
    ParseSuccess,
    fallback_recommendations,
    parse,
)
from vacaition.agents.recommendation.prompts import (
    ACTIVITY_ARRAY_SHAPE,
    RECOMMENDATION_SYSTEM_PROMPT,
    VACATION_OBJECT_SHAPE,
    build_activity_prompt,
    build_prompt,
    build_vacation_prompt,
)
from vacaition.agents.recommendation.types import (
    RecommendationMode,
    ResponseShape,
    shape_for_mode,
)

__all__ = [
    # Types
    "RecommendationMode",
    "ResponseShape",
    "shape_for_mode",
    # Prompts
    "RECOMMENDATION_SYSTEM_PROMPT",
    "ACTIVITY_ARRAY_SHAPE",
    "VACATION_OBJECT_SHAPE",
    "build_prompt",
    "build_activity_prompt",
    "build_vacation_prompt",
    # Parser
    "parse",
    "fallback_recommendations",
    "ParseResult",
    "ParseSuccess",
    "ParseFailure",
]
