"""
AI Components for the VacAItion backend.

Recommendation System (Single-Shot LLM)
   - Builds one prompt per request and asks Gemini for a strict JSON reply
   - Replies may be streamed; the parser tolerates incomplete prefixes
   - NOT an ADK agent - uses the Google Gen AI SDK directly
   - Located in: vacaition/agents/recommendation/
"""

from vacaition.agents.recommendation import (
    RecommendationMode,
    ResponseShape,
    build_prompt,
    parse,
)

__all__ = [
    "RecommendationMode",
    "ResponseShape",
    "build_prompt",
    "parse",
]
