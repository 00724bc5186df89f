import logging
from typing import Callable, List, Optional

from engine.calculator import (
    calculate_building_totals,
    calculate_top_cost_centers,
    calculate_usage_breakdown,
)
from engine.recommendation import Advisor, derive_recommendations, ensure_recommendable
from models.schemas import BuildingTotals, CostCenter, Recommendation, UsageShare
from storage.client import ChangeEvent, StorageClient

logger = logging.getLogger(__name__)

MetricsListener = Callable[[str, BuildingTotals], None]


class PlannerCoordinator:
    """Re-runs the engine whenever a user's inventory or settings change.

    Nothing derived is kept between events; every read recomputes from a
    fresh storage snapshot.
    """

    def __init__(self, storage: StorageClient, advisor: Optional[Advisor] = None):
        self.storage = storage
        self.advisor = advisor
        self.is_generating = False
        self._listeners: List[MetricsListener] = []
        self._unsubscribe: Optional[Callable[[], None]] = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.storage.subscribe(self._on_change)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._listeners.clear()

    def subscribe(self, listener: MetricsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_change(self, event: ChangeEvent) -> None:
        logger.debug(f"Recomputing metrics for {event.user_id} after {event.kind.value} change")
        totals = self.totals(event.user_id)
        for listener in list(self._listeners):
            listener(event.user_id, totals)

    def totals(self, user_id: str) -> BuildingTotals:
        snapshot = self.storage.snapshot(user_id)
        return calculate_building_totals(snapshot.rooms, snapshot.devices, snapshot.settings)

    def usage_breakdown(self, user_id: str) -> List[UsageShare]:
        return calculate_usage_breakdown(self.totals(user_id).rooms)

    def top_cost_centers(self, user_id: str, limit: int = 3) -> List[CostCenter]:
        return calculate_top_cost_centers(self.totals(user_id).rooms, limit)

    async def recommend(self, user_id: str) -> Recommendation:
        """Single user-triggered advisory pass over the current metrics.

        Raises RecommendationUnavailable when there are no rooms or no usage.
        """
        totals = self.totals(user_id)
        ensure_recommendable(totals.rooms, totals.building)
        self.is_generating = True
        try:
            return await derive_recommendations(totals.rooms, totals.building, self.advisor)
        finally:
            self.is_generating = False
