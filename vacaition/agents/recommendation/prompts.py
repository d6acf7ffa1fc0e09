"""
Recommendation System Prompt Templates

Contains the system prompt and the user prompt builders for both
recommendation flows.

Architecture:
- Pattern: Single-shot LLM (one prompt, one JSON reply; optionally streamed)
- Model: Gemini 2.5 Flash (configurable via GEMINI_MODEL)
- Output: JSON requested in the prompt and extracted by the response parser,
  since streamed replies cannot be constrained with response_schema

Prompt Engineering Pattern:
- System prompt defines ROLE only
- User prompt carries the request context, the exclusion list, and the
  exact output shape
- Builders are pure and deterministic: the same request always renders the
  same prompt, byte for byte
"""

from typing import List, Optional

from vacaition.agents.recommendation.types import RecommendationMode
from vacaition.schemas.recommendations import RecommendationRequest, TravelBudget

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

RECOMMENDATION_SYSTEM_PROMPT = """You are a travel assistant for VacAItion, an app that helps people find things to do and places to go.

<role>
You recommend REAL, specific places: named trails, parks, restaurants, museums, towns and attractions. You know travel times and distances well enough to keep every recommendation within the traveler's stated budget.
</role>

<limitations>
- Only recommend places that actually exist
- Never invent websites; omit a website you are not sure about
- Never repeat a destination the traveler has already been shown
</limitations>

<output_format>
Always return valid JSON matching the shape given in the user prompt.
No markdown code blocks, no explanatory text, only the JSON payload.
</output_format>"""


# =============================================================================
# OUTPUT SHAPES
# =============================================================================
# These are the only two shapes the response parser accepts.
# =============================================================================

ACTIVITY_ARRAY_SHAPE = """[
  {
    "name": "Specific name of the place/business/location",
    "description": "What they should do there, what activities are available, and why it's a great choice for their interests. Include practical details like best times to visit, costs if relevant, or any special features.",
    "website": "https://actual-website-url.com (only if you know a real website)",
    "location": "Specific address or area with approximate distance from their location"
  }
]"""

VACATION_OBJECT_SHAPE = """{
  "destination": "City, State, Country (e.g., Charleston, South Carolina, USA)",
  "description": "A detailed description of this destination including why it's perfect for their interests, best time to visit, and any special features or highlights. Make this 2-3 sentences.",
  "activities": [
    {
      "name": "Specific activity or attraction name",
      "location": "Full address or location (e.g., '1234 Main St, City, State' or 'National Park Name, City, State')",
      "description": "Brief 1-2 sentence description of what makes this activity/location special"
    }
  ]
}"""


# =============================================================================
# HELPERS
# =============================================================================

def _format_amount(amount: float) -> str:
    """Render 50.0 as '50' and 2.5 as '2.5'."""
    return f"{amount:g}"


def _format_budget(budget: TravelBudget) -> str:
    return f"{_format_amount(budget.amount)} {budget.unit}"


def _exclusion_section(excluded: List[str]) -> str:
    if not excluded:
        return ""
    return (
        "\n<already_suggested>\n"
        "You have already suggested these destinations, do NOT suggest them again: "
        f"{', '.join(excluded)}\n"
        "</already_suggested>\n"
    )


# =============================================================================
# USER PROMPT BUILDERS
# =============================================================================

def build_activity_prompt(request: RecommendationRequest) -> str:
    """
    Build the activity-finder prompt: 3-5 things to do near the user.

    Args:
        request: Validated, trimmed recommendation request

    Returns:
        str: Prompt asking for a JSON array of activity objects
    """
    if request.travel_budget is not None:
        reach = f"within {_format_budget(request.travel_budget)} of their location"
    else:
        reach = "near their location"

    return f"""You are a travel assistant helping someone located in {request.location} who wants to find things to do {reach}. They are interested in {request.activities}.
{_exclusion_section(request.excluded_destinations)}
Please provide 3-5 specific recommendations in the following JSON format:
{ACTIVITY_ARRAY_SHAPE}

For example:
- If someone in Washington DC wants camping within 100 miles, suggest specific campgrounds in nearby areas like Shenandoah National Park or Catoctin Mountain Park
- If someone wants swimming within 50 miles of their location, suggest specific lakes, rivers, pools, or beaches with their names and exact locations
- If someone wants restaurants, suggest specific restaurant names with their websites and what makes them special
- If someone wants hiking, suggest specific trail names, difficulty levels, and trailhead locations within their travel distance

Make sure all recommendations are actually within the specified distance from their location. Only include real, specific places. Do not make up websites. If you don't know a website, omit the website field.
Respond ONLY with the JSON array, no additional text."""


def build_vacation_prompt(request: RecommendationRequest) -> str:
    """
    Build the vacation-finder prompt: exactly one destination.

    The exclusion list is rendered in request order so that repeated rounds
    of a batch produce stable, comparable prompts.
    """
    transport = request.transport or "any convenient means of transport"
    if request.travel_budget is None:
        reach = "a reasonable distance"
    elif request.travel_budget.unit in ("minutes", "hours"):
        reach = f"approximately {_format_budget(request.travel_budget)} of travel time"
    else:
        reach = f"approximately {_format_budget(request.travel_budget)}"

    return f"""You are a travel assistant helping find vacation destinations near {request.location} that are accessible by {transport} within {reach}. The user is interested in activities like {request.activities}.
{_exclusion_section(request.excluded_destinations)}
Please provide exactly ONE vacation destination recommendation in the following JSON format:
{VACATION_OBJECT_SHAPE}

Include 3-5 specific activities or attractions that match the user's interests. Each activity should have a distinct location that can be used for directions.

Respond ONLY with the JSON object, no additional text."""


def build_prompt(
    request: RecommendationRequest,
    mode: RecommendationMode,
    excluded_destinations: Optional[List[str]] = None,
) -> str:
    """
    Render the prompt for ``mode``.

    Args:
        request: Validated recommendation request
        mode: RecommendationMode.ACTIVITIES or RecommendationMode.VACATION
        excluded_destinations: Overrides request.excluded_destinations when given
            (the session passes its accumulated exclusion list here)

    Returns:
        str: Prompt ready to be sent to the completion service
    """
    if excluded_destinations is not None:
        request = request.model_copy(
            update={"excluded_destinations": list(excluded_destinations)}
        )

    if RecommendationMode(mode) is RecommendationMode.ACTIVITIES:
        return build_activity_prompt(request)
    return build_vacation_prompt(request)
