from engine.calculator import calculate_building_totals as compute_building_totals
from engine.recommendation import derive_recommendations

__all__ = ["compute_building_totals", "derive_recommendations"]
