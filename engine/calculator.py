import math
from typing import Iterable, List

from models.schemas import (
    BuildingMetrics,
    BuildingTotals,
    CostCenter,
    Device,
    DeviceMetrics,
    DeviceWithMetrics,
    Room,
    RoomMetrics,
    RoomWithMetrics,
    SolarSettings,
    UsageShare,
)

DAYS_PER_YEAR = 365.25  # average-year convention, not calendar accurate
MONTHS_PER_YEAR = 12
ROI_DISPLAY_CAP = 999.0


def calculate_device_metrics(device: Device, rate: float) -> DeviceMetrics:
    """Energy and grid cost of one device line at the given tariff (INR/kWh)."""
    power_kw = device.power_w / 1000
    energy_kwh_day = power_kw * device.quantity * device.usage_hours
    cost_day = energy_kwh_day * rate
    return DeviceMetrics(
        energy_kwh_day=energy_kwh_day,
        cost_day=cost_day,
        cost_month=cost_day * (DAYS_PER_YEAR / MONTHS_PER_YEAR),
        cost_year=cost_day * DAYS_PER_YEAR,
    )


def annual_generation_per_kw(settings: SolarSettings) -> float:
    """kWh a 1 kW array produces in a year under the configured sunlight/efficiency."""
    return DAYS_PER_YEAR * settings.sunlight_hours * settings.efficiency_factor


def required_capacity_kw(energy_kwh_day: float, settings: SolarSettings) -> float:
    generation = annual_generation_per_kw(settings)
    if generation <= 0:
        return 0.0
    capacity = energy_kwh_day * DAYS_PER_YEAR / generation
    return capacity if capacity > 0 else 0.0


def roi_years(installation_cost: float, yearly_savings: float) -> float:
    """Unclamped payback period; inf when nothing is saved."""
    if yearly_savings > 0:
        return installation_cost / yearly_savings
    return math.inf


def clamp_roi(years: float) -> float:
    return min(years, ROI_DISPLAY_CAP)


def _room_devices(room: Room, devices: Iterable[Device]) -> List[Device]:
    return [d for d in devices if d.room_id == room.id]


def calculate_room_metrics(
    room: Room,
    devices: Iterable[Device],
    settings: SolarSettings,
) -> RoomWithMetrics:
    """Aggregate a room's devices and size a solar array for the room.

    Algorithm:
      energy/cost = sum of device metrics for devices with roomId == room.id
      requiredCapacityKW = annual consumption / annual generation per kW (0 if no generation)
      installationCost = requiredCapacityKW * solarCostPerKW
      yearlySavings = grid cost avoided by a full solar offset
      roiYears = installationCost / yearlySavings, capped at ROI_DISPLAY_CAP
    """
    devices_with_metrics: List[DeviceWithMetrics] = []
    energy_kwh_day = 0.0
    cost_year_grid = 0.0
    for device in _room_devices(room, devices):
        metrics = calculate_device_metrics(device, settings.electricity_rate)
        energy_kwh_day += metrics.energy_kwh_day
        cost_year_grid += metrics.cost_year
        devices_with_metrics.append(DeviceWithMetrics(**device.model_dump(), metrics=metrics))

    capacity = required_capacity_kw(energy_kwh_day, settings)
    installation_cost = capacity * settings.solar_cost_per_kw
    yearly_savings = cost_year_grid

    return RoomWithMetrics(
        **room.model_dump(),
        devices=devices_with_metrics,
        metrics=RoomMetrics(
            energy_kwh_day=energy_kwh_day,
            cost_year_grid=cost_year_grid,
            required_capacity_kw=capacity,
            installation_cost=installation_cost,
            roi_years=clamp_roi(roi_years(installation_cost, yearly_savings)),
            yearly_savings=yearly_savings,
        ),
    )


def project_grid_spend(first_year_cost: float, lifetime_years: int, annual_inflation: float) -> float:
    """Nominal grid spend over the system lifetime; the first year is uninflated."""
    future_savings = 0.0
    grid_cost = first_year_cost
    for _ in range(lifetime_years):
        future_savings += grid_cost
        grid_cost *= 1 + annual_inflation
    return future_savings


def calculate_building_metrics(
    rooms_with_metrics: List[RoomWithMetrics],
    settings: SolarSettings,
) -> BuildingMetrics:
    total_energy_kwh_day = sum(r.metrics.energy_kwh_day for r in rooms_with_metrics)
    total_cost_year_grid = sum(r.metrics.cost_year_grid for r in rooms_with_metrics)

    # ROI is not additive, so capacity/cost/ROI come from the building totals.
    total_capacity = required_capacity_kw(total_energy_kwh_day, settings)
    total_installation_cost = total_capacity * settings.solar_cost_per_kw
    total_roi = clamp_roi(roi_years(total_installation_cost, total_cost_year_grid))

    future_savings = project_grid_spend(
        total_cost_year_grid, settings.lifetime_years, settings.annual_inflation
    )

    return BuildingMetrics(
        total_energy_kwh_day=total_energy_kwh_day,
        total_cost_year_grid=total_cost_year_grid,
        total_required_capacity_kw=total_capacity,
        total_installation_cost=total_installation_cost,
        total_roi_years=total_roi,
        long_term_savings=future_savings - total_installation_cost,
        payback_years=total_roi,
        yearly_savings=total_cost_year_grid,
    )


def calculate_building_totals(
    rooms: Iterable[Room],
    devices: Iterable[Device],
    settings: SolarSettings,
) -> BuildingTotals:
    """Full recomputation of room and building metrics from inventory + settings.

    Devices whose roomId matches no room are ignored.
    """
    devices = list(devices)
    rooms_with_metrics = [calculate_room_metrics(room, devices, settings) for room in rooms]
    return BuildingTotals(
        rooms=rooms_with_metrics,
        building=calculate_building_metrics(rooms_with_metrics, settings),
    )


def calculate_usage_breakdown(rooms_with_metrics: List[RoomWithMetrics]) -> List[UsageShare]:
    """Share of building daily energy per room; rooms without usage are left out."""
    total = sum(r.metrics.energy_kwh_day for r in rooms_with_metrics)
    if total <= 0:
        return []
    return [
        UsageShare(
            room_id=r.id,
            room_name=r.name,
            energy_kwh_day=r.metrics.energy_kwh_day,
            share=r.metrics.energy_kwh_day / total,
        )
        for r in rooms_with_metrics
        if r.metrics.energy_kwh_day > 0
    ]



def calculate_top_cost_centers(rooms_with_metrics: List[RoomWithMetrics], limit: int = 3) -> List[CostCenter]:
    """Rooms with the highest yearly grid cost, most expensive first.

    The input list keeps its order; ties keep their original relative order.
    """
    ranked = sorted(rooms_with_metrics, key=lambda r: r.metrics.cost_year_grid, reverse=True)
    return [
        CostCenter(
            room_id=r.id,
            room_name=r.name,
            cost_year_grid=r.metrics.cost_year_grid,
            energy_kwh_day=r.metrics.energy_kwh_day,
        )
        for r in ranked[:limit]
    ]
