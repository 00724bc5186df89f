from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model: snake_case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RoomPurpose(str, Enum):
    CLASSROOM = "Classroom"
    LAB = "Lab"
    OFFICE = "Office"
    SERVER_ROOM = "ServerRoom"


# --- Inventory records (as stored) ---

class Room(CamelModel):
    id: str
    name: str
    purpose: RoomPurpose = RoomPurpose.CLASSROOM


class Device(CamelModel):
    id: str
    room_id: str
    name: str
    quantity: int = 1
    power_w: float = 100.0
    usage_hours: float = 4.0


class SolarSettings(CamelModel):
    electricity_rate: float = 9.0        # INR/kWh
    solar_cost_per_kw: float = Field(default=70000.0, alias="solarCostPerKW")  # INR/kW
    efficiency_factor: float = 1.0
    sunlight_hours: float = 5.0          # peak hours per day
    lifetime_years: int = 25
    annual_inflation: float = 0.05


# --- Inventory-entry boundary (validated input) ---

class RoomCreate(CamelModel):
    name: str = Field(min_length=1)
    purpose: RoomPurpose = RoomPurpose.CLASSROOM


class DeviceCreate(CamelModel):
    room_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    quantity: int = Field(default=1, gt=0)
    power_w: float = Field(default=100.0, ge=0)
    usage_hours: float = Field(default=4.0, ge=0, le=24)


class DeviceUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[int] = Field(default=None, gt=0)
    power_w: Optional[float] = Field(default=None, ge=0)
    usage_hours: Optional[float] = Field(default=None, ge=0, le=24)


class SolarSettingsUpdate(CamelModel):
    electricity_rate: Optional[float] = Field(default=None, gt=0)
    solar_cost_per_kw: Optional[float] = Field(default=None, ge=0, alias="solarCostPerKW")
    efficiency_factor: Optional[float] = Field(default=None, ge=0)
    sunlight_hours: Optional[float] = Field(default=None, ge=0)
    lifetime_years: Optional[int] = Field(default=None, gt=0)
    annual_inflation: Optional[float] = Field(default=None, ge=0)


# --- Derived metrics ---

class DeviceMetrics(CamelModel):
    energy_kwh_day: float = Field(alias="energyKWhDay")
    cost_day: float
    cost_month: float
    cost_year: float


class DeviceWithMetrics(Device):
    metrics: DeviceMetrics


class RoomMetrics(CamelModel):
    energy_kwh_day: float = Field(alias="energyKWhDay")
    cost_year_grid: float
    required_capacity_kw: float = Field(alias="requiredCapacityKW")
    installation_cost: float
    roi_years: float
    yearly_savings: float


class RoomWithMetrics(Room):
    devices: List[DeviceWithMetrics] = Field(default_factory=list)
    metrics: RoomMetrics


class BuildingMetrics(CamelModel):
    total_energy_kwh_day: float = Field(alias="totalEnergyKWhDay")
    total_cost_year_grid: float
    total_required_capacity_kw: float = Field(alias="totalRequiredCapacityKW")
    total_installation_cost: float
    total_roi_years: float = Field(alias="totalROIYears")
    long_term_savings: float
    payback_years: float
    yearly_savings: float


class BuildingTotals(CamelModel):
    rooms: List[RoomWithMetrics]
    building: BuildingMetrics


class UsageShare(CamelModel):
    room_id: str
    room_name: str
    energy_kwh_day: float = Field(alias="energyKWhDay")
    share: float


class CostCenter(CamelModel):
    room_id: str
    room_name: str
    cost_year_grid: float
    energy_kwh_day: float = Field(alias="energyKWhDay")


# --- Advisory contract ---

SuggestedAction = Literal["Convert to Solar", "Hybrid Model", "Stay on Grid"]


class AdvisoryRoom(CamelModel):
    room_name: str
    yearly_cost: float
    required_capacity: float
    roi_years: float
    suggested_action: SuggestedAction


class AdvisoryBuildingTotals(CamelModel):
    total_cost_year_grid: float
    total_required_capacity_kw: float = Field(alias="totalRequiredCapacityKW")
    total_installation_cost: float
    total_roi_years: float = Field(alias="totalROIYears")


class AdvisoryRequest(CamelModel):
    rooms: List[AdvisoryRoom]
    building_totals: AdvisoryBuildingTotals


SuggestionTone = Literal["solar", "hybrid", "grid"]


class RoomRecommendation(CamelModel):
    room_name: str
    suggestion: str
    reasoning: str
    # set from the suggestion text after the advisor answers
    tone: Optional[SuggestionTone] = None


class AdvisoryResponse(CamelModel):
    summary: str = Field(min_length=1)
    total_savings: float
    breakeven_period: float
    capacity_needed: float
    room_recommendations: List[RoomRecommendation]


class Recommendation(AdvisoryResponse):
    degraded: bool = False
