"""
Pydantic schemas for the recommendation pipeline.

These models define the strict request/response contracts for the two
recommendation endpoints, the structured request consumed by the prompt
builder, the decoded shapes produced by the response parser, and the
session state read by the presentation layer.
"""

from typing import Any, List, Literal, Optional, Union
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from vacaition.utils.constants import (
    MAX_TRAVEL_AMOUNT,
    MIN_ACTIVITIES_LENGTH,
    MIN_LOCATION_LENGTH,
)

TransportMode = Literal["air", "car", "bike", "train", "walk"]
TravelUnit = Literal["minutes", "hours", "miles", "kilometers"]
DistanceUnit = Literal["miles", "kilometers"]
TimeUnit = Literal["minutes", "hours"]
SessionStatus = Literal["idle", "loading", "error", "ready"]


# ============================================================================
# DOMAIN REQUEST
# ============================================================================

class TravelBudget(BaseModel):
    """How far the user is willing to travel, in time or distance."""
    amount: float = Field(
        ...,
        description="Travel budget amount (time or distance)",
        gt=0,
        le=MAX_TRAVEL_AMOUNT,
        examples=[50, 2.5]
    )
    unit: TravelUnit = Field(
        ...,
        description="Unit of the travel budget",
        examples=["miles", "hours"]
    )


class RecommendationRequest(BaseModel):
    """
    Structured user input consumed by the prompt builder.

    Free-text fields are trimmed before length checks, so a location made of
    whitespace is rejected here and never reaches the completion service.
    """
    location: str = Field(
        ...,
        description="Where the user currently is",
        min_length=MIN_LOCATION_LENGTH,
        max_length=200,
        examples=["Washington DC"]
    )
    transport: Optional[TransportMode] = Field(
        None,
        description="Preferred transport (destination flow only)",
        examples=["car", "train"]
    )
    travel_budget: Optional[TravelBudget] = Field(
        None,
        description="Maximum travel time or distance; omitted means 'nearby'"
    )
    activities: str = Field(
        ...,
        description="Activities the user is interested in",
        min_length=MIN_ACTIVITIES_LENGTH,
        max_length=1000,
        examples=["hiking, local cuisine"]
    )
    excluded_destinations: List[str] = Field(
        default_factory=list,
        description="Destinations already suggested, in suggestion order"
    )

    @field_validator("location", "activities", mode="before")
    @classmethod
    def _strip_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


# ============================================================================
# HTTP REQUEST MODELS
# ============================================================================

class ActivityQueryRequest(BaseModel):
    """
    Request body for POST /recommendations/activities.

    Field names follow the web form (camelCase on the wire).
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    destination: str = Field(
        ...,
        description="Where the user currently is",
        min_length=MIN_LOCATION_LENGTH,
        max_length=200,
        examples=["Washington DC"]
    )
    activities: str = Field(
        ...,
        description="Activities the user is interested in",
        min_length=MIN_ACTIVITIES_LENGTH,
        max_length=1000,
        examples=["hiking"]
    )
    travel_distance: Optional[float] = Field(
        None,
        alias="travelDistance",
        description="How far the user is willing to travel",
        gt=0,
        le=MAX_TRAVEL_AMOUNT,
        examples=[50]
    )
    distance_unit: DistanceUnit = Field(
        "miles",
        alias="distanceUnit",
        description="Unit for travelDistance"
    )

    @field_validator("travel_distance", mode="before")
    @classmethod
    def _blank_distance_is_missing(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    def to_recommendation_request(self) -> RecommendationRequest:
        budget = None
        if self.travel_distance is not None:
            budget = TravelBudget(amount=self.travel_distance, unit=self.distance_unit)
        return RecommendationRequest(
            location=self.destination,
            travel_budget=budget,
            activities=self.activities,
        )


class DestinationQueryRequest(BaseModel):
    """
    Request body for POST /recommendations/destination.

    previousSuggestions carries the caller's exclusion list so repeated
    "get more" calls never suggest the same destination twice.
    """
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    location: str = Field(
        ...,
        description="Where the user currently is",
        min_length=MIN_LOCATION_LENGTH,
        max_length=200,
        examples=["Atlanta, GA"]
    )
    transport: TransportMode = Field(
        ...,
        description="Preferred method of transport",
        examples=["car"]
    )
    travel_time: float = Field(
        ...,
        alias="travelTime",
        description="Acceptable travel time",
        gt=0,
        le=MAX_TRAVEL_AMOUNT,
        examples=[5]
    )
    time_unit: TimeUnit = Field(
        "hours",
        alias="timeUnit",
        description="Unit for travelTime"
    )
    activities: str = Field(
        ...,
        description="Activities the user is interested in",
        min_length=MIN_ACTIVITIES_LENGTH,
        max_length=1000,
        examples=["beaches, seafood"]
    )
    previous_suggestions: List[str] = Field(
        default_factory=list,
        alias="previousSuggestions",
        description="Destinations already shown to the user"
    )

    def to_recommendation_request(self) -> RecommendationRequest:
        return RecommendationRequest(
            location=self.location,
            transport=self.transport,
            travel_budget=TravelBudget(amount=self.travel_time, unit=self.time_unit),
            activities=self.activities,
            excluded_destinations=list(self.previous_suggestions),
        )


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class Recommendation(BaseModel):
    """
    Single activity-finder recommendation, ready for UI display.

    website is kept only when it is an absolute http(s) URL; anything else
    the model invents is dropped rather than rejected.
    """
    name: str = Field(
        ...,
        description="Specific name of the place, business or location",
        examples=["Old Rag Mountain Trail"]
    )
    description: str = Field(
        ...,
        description="What to do there and why it fits the user's interests"
    )
    website: Optional[str] = Field(
        None,
        description="Official website, when known",
        examples=["https://www.nps.gov/shen"]
    )
    location: Optional[str] = Field(
        None,
        description="Address or area with approximate distance",
        examples=["Shenandoah National Park, VA (about 90 miles)"]
    )

    @field_validator("website", mode="before")
    @classmethod
    def _keep_valid_url(cls, value: Any) -> Optional[str]:
        if not isinstance(value, str):
            return None
        value = value.strip()
        parsed = urlparse(value)
        if parsed.scheme in ("http", "https") and parsed.netloc:
            return value
        return None


class VacationActivity(BaseModel):
    """Attraction inside a suggested destination; location feeds directions."""
    name: str
    location: str
    description: str


class VacationSuggestion(BaseModel):
    """One vacation destination with 3-5 activities."""
    destination: str = Field(
        ...,
        description="City, State, Country",
        examples=["Charleston, South Carolina, USA"]
    )
    description: str = Field(
        ...,
        description="Why the destination fits the user's interests"
    )
    activities: List[VacationActivity] = Field(
        default_factory=list,
        description="Specific activities or attractions at the destination"
    )


class ErrorResponse(BaseModel):
    """Error body returned with HTTP 500 when the completion service fails."""
    error: str = Field(
        ...,
        examples=["Recommendation service is unavailable. Please try again."]
    )


# ============================================================================
# SESSION STATE
# ============================================================================

SessionResult = Union[VacationSuggestion, Recommendation]


class SessionState(BaseModel):
    """
    Observable state of one RecommendationSession.

    Only the session mutates this object. results and excluded_destinations
    grow across rounds and are cleared only by reset(). partial holds the
    latest decoded prefix of a streaming reply and is for display only.
    """
    status: SessionStatus = "idle"
    results: List[SessionResult] = Field(default_factory=list)
    excluded_destinations: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None
    partial: Optional[Any] = None
    suppressed_duplicates: List[str] = Field(default_factory=list)
