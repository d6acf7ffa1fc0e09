"""
Tests for the recommendation prompt builders.

Covers:
- Determinism (same request, same prompt)
- Request context rendered into both flows
- Exclusion list rendering and override
- Request validation that guards the builders
"""

import pytest
from pydantic import ValidationError

from vacaition.agents.recommendation import (
    ACTIVITY_ARRAY_SHAPE,
    VACATION_OBJECT_SHAPE,
    RecommendationMode,
    ResponseShape,
    build_prompt,
    shape_for_mode,
)
from vacaition.schemas.recommendations import RecommendationRequest, TravelBudget


@pytest.fixture
def activity_request():
    return RecommendationRequest(
        location="Washington DC",
        travel_budget=TravelBudget(amount=50, unit="miles"),
        activities="hiking",
    )


@pytest.fixture
def vacation_request():
    return RecommendationRequest(
        location="Atlanta, GA",
        transport="car",
        travel_budget=TravelBudget(amount=5, unit="hours"),
        activities="beaches, seafood",
        excluded_destinations=["Savannah, GA", "Charleston, SC"],
    )


class TestDeterminism:
    """Equal requests always render byte-identical prompts."""

    @pytest.mark.parametrize("mode", list(RecommendationMode))
    def test_same_request_same_prompt(self, vacation_request, mode):
        first = build_prompt(vacation_request, mode)
        second = build_prompt(vacation_request, mode)
        assert first == second

    def test_equal_requests_same_prompt(self, vacation_request):
        clone = RecommendationRequest(**vacation_request.model_dump())
        assert build_prompt(clone, RecommendationMode.VACATION) == build_prompt(
            vacation_request, RecommendationMode.VACATION
        )


class TestActivityPrompt:

    def test_includes_request_context_and_shape(self, activity_request):
        prompt = build_prompt(activity_request, RecommendationMode.ACTIVITIES)

        assert "Washington DC" in prompt
        assert "within 50 miles of their location" in prompt
        assert "interested in hiking" in prompt
        assert ACTIVITY_ARRAY_SHAPE in prompt
        assert "Respond ONLY with the JSON array" in prompt

    def test_missing_budget_means_nearby(self):
        request = RecommendationRequest(location="Denver", activities="breweries")
        prompt = build_prompt(request, RecommendationMode.ACTIVITIES)

        assert "near their location" in prompt
        assert "within" not in prompt.split("\n")[0]

    def test_no_exclusion_block_when_list_empty(self, activity_request):
        prompt = build_prompt(activity_request, RecommendationMode.ACTIVITIES)
        assert "<already_suggested>" not in prompt


class TestVacationPrompt:

    def test_includes_transport_budget_and_shape(self, vacation_request):
        prompt = build_prompt(vacation_request, RecommendationMode.VACATION)

        assert "near Atlanta, GA" in prompt
        assert "accessible by car" in prompt
        assert "approximately 5 hours of travel time" in prompt
        assert "beaches, seafood" in prompt
        assert VACATION_OBJECT_SHAPE in prompt
        assert "exactly ONE vacation destination" in prompt

    def test_exclusions_rendered_in_order(self, vacation_request):
        prompt = build_prompt(vacation_request, RecommendationMode.VACATION)
        assert "do NOT suggest them again: Savannah, GA, Charleston, SC" in prompt

    def test_fractional_budget_keeps_decimals(self, vacation_request):
        request = vacation_request.model_copy(
            update={"travel_budget": TravelBudget(amount=2.5, unit="hours")}
        )
        assert "approximately 2.5 hours" in build_prompt(request, RecommendationMode.VACATION)

    def test_missing_transport_is_open(self):
        request = RecommendationRequest(location="Chicago", activities="museums")
        prompt = build_prompt(request, RecommendationMode.VACATION)
        assert "any convenient means of transport" in prompt


class TestExclusionOverride:

    def test_override_replaces_request_exclusions(self, vacation_request):
        prompt = build_prompt(
            vacation_request,
            RecommendationMode.VACATION,
            excluded_destinations=["Tybee Island, GA"],
        )

        assert "do NOT suggest them again: Tybee Island, GA\n" in prompt
        assert "Savannah" not in prompt

    def test_override_does_not_mutate_request(self, vacation_request):
        build_prompt(vacation_request, RecommendationMode.VACATION, excluded_destinations=[])
        assert vacation_request.excluded_destinations == ["Savannah, GA", "Charleston, SC"]

    def test_empty_override_drops_block(self, vacation_request):
        prompt = build_prompt(
            vacation_request, RecommendationMode.VACATION, excluded_destinations=[]
        )
        assert "<already_suggested>" not in prompt


class TestRequestValidation:
    """Invalid input never reaches the prompt builder."""

    def test_text_fields_are_trimmed(self):
        request = RecommendationRequest(location="  Denver  ", activities="  skiing ")
        assert request.location == "Denver"
        assert request.activities == "skiing"

    @pytest.mark.parametrize("location", ["", "   ", "D"])
    def test_blank_or_short_location_rejected(self, location):
        with pytest.raises(ValidationError):
            RecommendationRequest(location=location, activities="hiking")

    def test_short_activities_rejected(self):
        with pytest.raises(ValidationError):
            RecommendationRequest(location="Denver", activities="ab")

    @pytest.mark.parametrize("amount", [0, -5, 10001])
    def test_budget_out_of_range_rejected(self, amount):
        with pytest.raises(ValidationError):
            TravelBudget(amount=amount, unit="miles")

    def test_unknown_transport_rejected(self):
        with pytest.raises(ValidationError):
            RecommendationRequest(location="Denver", activities="hiking", transport="cruise")


class TestModeShapes:

    @pytest.mark.parametrize("mode,shape", [
        (RecommendationMode.ACTIVITIES, ResponseShape.ACTIVITY_ARRAY),
        (RecommendationMode.VACATION, ResponseShape.VACATION_OBJECT),
        ("vacation", ResponseShape.VACATION_OBJECT),
    ])
    def test_each_mode_has_one_shape(self, mode, shape):
        assert shape_for_mode(mode) is shape
