"""
Recommendation pipeline type definitions.

Modes select the prompt the builder renders; shapes select what the parser
expects to find in the model reply. Each mode maps to exactly one shape.
"""

from enum import Enum
from typing import Dict


class RecommendationMode(str, Enum):
    """Which recommendation flow a prompt is built for."""
    ACTIVITIES = "activities"  # things to do near the user
    VACATION = "vacation"      # one destination with activities


class ResponseShape(str, Enum):
    """JSON shape the completion service is asked to return."""
    ACTIVITY_ARRAY = "activity_array"    # [{name, description, website?, location?}, ...]
    VACATION_OBJECT = "vacation_object"  # {destination, description, activities: [...]}


MODE_SHAPES: Dict[RecommendationMode, ResponseShape] = {
    RecommendationMode.ACTIVITIES: ResponseShape.ACTIVITY_ARRAY,
    RecommendationMode.VACATION: ResponseShape.VACATION_OBJECT,
}


def shape_for_mode(mode: RecommendationMode) -> ResponseShape:
    """Return the response shape the prompt for ``mode`` asks for."""
    return MODE_SHAPES[RecommendationMode(mode)]
