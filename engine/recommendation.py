import logging
from abc import ABC, abstractmethod
from typing import List, Optional

from models.schemas import (
    AdvisoryBuildingTotals,
    AdvisoryRequest,
    AdvisoryRoom,
    BuildingMetrics,
    Recommendation,
    RoomRecommendation,
    RoomWithMetrics,
    SuggestionTone,
)

logger = logging.getLogger(__name__)

SOLAR_ROI_THRESHOLD = 5.0
HYBRID_ROI_THRESHOLD = 10.0

CONVERT_TO_SOLAR = "Convert to Solar"
HYBRID_MODEL = "Hybrid Model"
STAY_ON_GRID = "Stay on Grid"

RULE_BASED_SOLAR = "Convert to Solar (Rule-Based)"
RULE_BASED_GRID = "Stay on Grid (Rule-Based)"

DEGRADED_SUMMARY = (
    "AI recommendation service is unavailable. Falling back to rule-based analysis: "
    "Rooms with ROI < 5 years are suggested for solar conversion."
)


class RecommendationUnavailable(Exception):
    """Raised when there is nothing to recommend on (no rooms or no usage)."""


def suggested_action(roi_years: float) -> str:
    if roi_years < SOLAR_ROI_THRESHOLD:
        return CONVERT_TO_SOLAR
    if roi_years < HYBRID_ROI_THRESHOLD:
        return HYBRID_MODEL
    return STAY_ON_GRID


def classify_suggestion(suggestion: str) -> SuggestionTone:
    """Tone of a free-text suggestion for display: solar, hybrid or grid."""
    text = suggestion.lower()
    if "solar" in text:
        return "solar"
    if "hybrid" in text:
        return "hybrid"
    return "grid"


def with_tones(recommendation: Recommendation) -> Recommendation:
    """Copy of ``recommendation`` with every room tagged by its suggestion tone."""
    rooms = [
        r.model_copy(update={"tone": classify_suggestion(r.suggestion)})
        for r in recommendation.room_recommendations
    ]
    return recommendation.model_copy(update={"room_recommendations": rooms})


def ensure_recommendable(rooms_with_metrics: List[RoomWithMetrics], building: BuildingMetrics) -> None:
    if not rooms_with_metrics or building.total_energy_kwh_day == 0:
        raise RecommendationUnavailable("Please add rooms and devices to generate recommendations.")


def build_advisory_request(
    rooms_with_metrics: List[RoomWithMetrics],
    building: BuildingMetrics,
) -> AdvisoryRequest:
    rooms = [
        AdvisoryRoom(
            room_name=r.name,
            yearly_cost=r.metrics.cost_year_grid,
            required_capacity=r.metrics.required_capacity_kw,
            roi_years=r.metrics.roi_years,
            suggested_action=suggested_action(r.metrics.roi_years),
        )
        for r in rooms_with_metrics
    ]
    return AdvisoryRequest(
        rooms=rooms,
        building_totals=AdvisoryBuildingTotals(
            total_cost_year_grid=building.total_cost_year_grid,
            total_required_capacity_kw=building.total_required_capacity_kw,
            total_installation_cost=building.total_installation_cost,
            total_roi_years=building.total_roi_years,
        ),
    )


class Advisor(ABC):
    """Turns an advisory request into a recommendation."""

    @abstractmethod
    async def advise(self, request: AdvisoryRequest) -> Recommendation:
        ...


class RuleBasedAdvisor(Advisor):
    """Deterministic offline advisor. Only the 5-year cutoff is used."""

    async def advise(self, request: AdvisoryRequest) -> Recommendation:
        return rule_based_recommendation(request)


def rule_based_recommendation(request: AdvisoryRequest) -> Recommendation:
    room_recommendations = []
    for room in request.rooms:
        if room.roi_years < SOLAR_ROI_THRESHOLD:
            suggestion = RULE_BASED_SOLAR
            reasoning = f"High usage and good ROI of {room.roi_years:.1f} years."
        else:
            suggestion = RULE_BASED_GRID
            reasoning = f"Low usage or high ROI of {room.roi_years:.1f} years."
        room_recommendations.append(
            RoomRecommendation(room_name=room.room_name, suggestion=suggestion, reasoning=reasoning)
        )
    return Recommendation(
        summary=DEGRADED_SUMMARY,
        total_savings=0,
        breakeven_period=0,
        capacity_needed=0,
        room_recommendations=room_recommendations,
        degraded=True,
    )


class FallbackAdvisor(Advisor):
    """Try the primary advisor once; on any failure use the rule-based result."""

    def __init__(self, primary: Advisor, fallback: Optional[Advisor] = None):
        self.primary = primary
        self.fallback = fallback or RuleBasedAdvisor()

    async def advise(self, request: AdvisoryRequest) -> Recommendation:
        try:
            return await self.primary.advise(request)
        except Exception as e:
            logger.warning(f"Advisory call failed, using rule-based recommendations: {e}")
            return await self.fallback.advise(request)


async def derive_recommendations(
    rooms_with_metrics: List[RoomWithMetrics],
    building: BuildingMetrics,
    advisor: Optional[Advisor] = None,
) -> Recommendation:
    """Build the advisory payload and ask ``advisor`` for a recommendation.

    Without an advisor the rule-based result is returned directly. With one,
    a single attempt is made and any failure falls back to the rules.
    """
    request = build_advisory_request(rooms_with_metrics, building)
    strategy = FallbackAdvisor(advisor) if advisor is not None else RuleBasedAdvisor()
    return with_tones(await strategy.advise(request))
