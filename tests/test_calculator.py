import math
import random

import pytest

from engine import compute_building_totals
from engine.calculator import (
    ROI_DISPLAY_CAP,
    annual_generation_per_kw,
    calculate_building_totals,
    calculate_device_metrics,
    calculate_room_metrics,
    calculate_top_cost_centers,
    calculate_usage_breakdown,
    clamp_roi,
    project_grid_spend,
    roi_years,
)
from models.schemas import Device, Room, SolarSettings


# -----------------------------------------------------------------------------
# Device metrics
# -----------------------------------------------------------------------------


def test_device_metrics_lab_heater(lab_a_heater):
    m = calculate_device_metrics(lab_a_heater, 9.0)
    assert m.energy_kwh_day == pytest.approx(18.0)
    assert m.cost_day == pytest.approx(162.0)
    assert m.cost_year == pytest.approx(59170.5)
    assert m.cost_month == pytest.approx(162.0 * 365.25 / 12)


@pytest.mark.parametrize(
    "quantity,usage_hours",
    [(0, 6), (3, 0), (0, 0)],
)
def test_device_metrics_zero_usage_or_quantity(quantity, usage_hours):
    device = Device(id="d", room_id="r", name="Idle", quantity=quantity, power_w=500, usage_hours=usage_hours)
    m = calculate_device_metrics(device, 9.0)
    assert m.energy_kwh_day == 0
    assert m.cost_day == 0
    assert m.cost_month == 0
    assert m.cost_year == 0


def test_device_cost_periods_follow_average_year():
    rng = random.Random(7)
    for i in range(25):
        device = Device(
            id=f"d-{i}",
            room_id="r",
            name="Random",
            quantity=rng.randint(1, 20),
            power_w=rng.uniform(1, 3000),
            usage_hours=rng.uniform(0, 24),
        )
        m = calculate_device_metrics(device, rng.uniform(1, 15))
        assert m.cost_year == pytest.approx(m.cost_day * 365.25)
        assert m.cost_month == pytest.approx(m.cost_day * 365.25 / 12)


# -----------------------------------------------------------------------------
# Room aggregation
# -----------------------------------------------------------------------------


def test_room_metrics_lab_a_example(lab_a, lab_a_heater, settings):
    room = calculate_room_metrics(lab_a, [lab_a_heater], settings)
    assert annual_generation_per_kw(settings) == pytest.approx(1826.25)
    assert room.metrics.energy_kwh_day == pytest.approx(18.0)
    assert room.metrics.energy_kwh_day * 365.25 == pytest.approx(6574.5)
    assert room.metrics.cost_year_grid == pytest.approx(59170.5)
    assert room.metrics.required_capacity_kw == pytest.approx(3.6)
    assert room.metrics.installation_cost == pytest.approx(3.6 * 70000)
    assert room.metrics.yearly_savings == room.metrics.cost_year_grid
    assert room.metrics.roi_years == pytest.approx(252000 / 59170.5)


def test_room_metrics_carry_device_breakdown(lab_a, lab_a_heater, settings):
    room = calculate_room_metrics(lab_a, [lab_a_heater], settings)
    assert [d.id for d in room.devices] == ["d-1"]
    assert room.devices[0].metrics.energy_kwh_day == pytest.approx(18.0)


def test_room_only_counts_its_own_devices(campus, settings):
    rooms, devices = campus
    office = calculate_room_metrics(rooms[1], devices, settings)
    assert {d.id for d in office.devices} == {"d-3", "d-4"}
    assert office.metrics.energy_kwh_day == pytest.approx(4 * 0.06 * 8 + 6 * 0.036 * 10)


def test_room_energy_independent_of_device_order(campus, settings):
    rooms, devices = campus
    expected = calculate_room_metrics(rooms[0], devices, settings).metrics.energy_kwh_day
    shuffled = list(devices)
    for seed in range(5):
        random.Random(seed).shuffle(shuffled)
        room = calculate_room_metrics(rooms[0], shuffled, settings)
        assert room.metrics.energy_kwh_day == pytest.approx(expected)
        assert room.metrics.energy_kwh_day == pytest.approx(
            sum(d.metrics.energy_kwh_day for d in room.devices)
        )


def test_empty_room_is_zero_capacity_and_capped_roi(campus, settings):
    rooms, devices = campus
    classroom = calculate_room_metrics(rooms[2], devices, settings)
    assert classroom.devices == []
    assert classroom.metrics.required_capacity_kw == 0
    assert classroom.metrics.installation_cost == 0
    assert classroom.metrics.yearly_savings == 0
    assert classroom.metrics.roi_years == ROI_DISPLAY_CAP


@pytest.mark.parametrize(
    "overrides",
    [{"sunlight_hours": 0}, {"efficiency_factor": 0}],
)
def test_no_generation_means_no_capacity(campus, overrides):
    rooms, devices = campus
    settings = SolarSettings(**overrides)
    totals = calculate_building_totals(rooms, devices, settings)
    for room in totals.rooms:
        assert room.metrics.required_capacity_kw == 0
        assert room.metrics.installation_cost == 0
    assert totals.building.total_required_capacity_kw == 0
    assert totals.building.total_installation_cost == 0


# -----------------------------------------------------------------------------
# ROI policy
# -----------------------------------------------------------------------------


def test_roi_is_infinite_without_savings_and_clamped_for_display():
    assert roi_years(1000.0, 0.0) == math.inf
    assert clamp_roi(roi_years(1000.0, 0.0)) == 999


@pytest.mark.parametrize("value", [0.0, 4.26, 12.5, 998.9, 999.0])
def test_clamp_leaves_small_values_alone(value):
    assert clamp_roi(value) == value


def test_zero_tariff_gives_capped_roi(lab_a, lab_a_heater):
    room = calculate_room_metrics(lab_a, [lab_a_heater], SolarSettings(electricity_rate=0))
    assert room.metrics.required_capacity_kw == pytest.approx(3.6)
    assert room.metrics.roi_years == 999


# -----------------------------------------------------------------------------
# Building aggregation
# -----------------------------------------------------------------------------


def test_building_sums_rooms(campus, settings):
    rooms, devices = campus
    totals = calculate_building_totals(rooms, devices, settings)
    b = totals.building
    assert b.total_energy_kwh_day == pytest.approx(sum(r.metrics.energy_kwh_day for r in totals.rooms))
    assert b.total_cost_year_grid == pytest.approx(sum(r.metrics.cost_year_grid for r in totals.rooms))
    assert b.total_installation_cost == pytest.approx(sum(r.metrics.installation_cost for r in totals.rooms))
    assert b.yearly_savings == b.total_cost_year_grid


def test_building_roi_recomputed_from_totals(campus, settings):
    rooms, devices = campus
    b = calculate_building_totals(rooms, devices, settings).building
    assert b.total_roi_years == pytest.approx(b.total_installation_cost / b.total_cost_year_grid)
    assert b.payback_years == b.total_roi_years


def test_long_term_savings_without_inflation(campus):
    rooms, devices = campus
    settings = SolarSettings(annual_inflation=0, lifetime_years=20)
    b = calculate_building_totals(rooms, devices, settings).building
    assert b.long_term_savings == pytest.approx(20 * b.total_cost_year_grid - b.total_installation_cost)


def test_grid_spend_projection_inflates_after_first_year():
    assert project_grid_spend(100.0, 1, 0.5) == pytest.approx(100.0)
    assert project_grid_spend(100.0, 3, 0.1) == pytest.approx(100 + 110 + 121)
    assert project_grid_spend(100.0, 0, 0.1) == 0


def test_orphan_devices_are_ignored(lab_a, lab_a_heater, settings):
    orphan = Device(id="d-x", room_id="gone", name="Ghost", quantity=10, power_w=1000, usage_hours=24)
    totals = compute_building_totals([lab_a], [lab_a_heater, orphan], settings)
    assert totals.building.total_energy_kwh_day == pytest.approx(18.0)


def test_empty_building(settings):
    totals = calculate_building_totals([], [], settings)
    assert totals.rooms == []
    assert totals.building.total_energy_kwh_day == 0
    assert totals.building.total_roi_years == 999
    assert totals.building.long_term_savings == 0


def test_building_totals_serialize_with_wire_names(lab_a, lab_a_heater, settings):
    data = calculate_building_totals([lab_a], [lab_a_heater], settings).model_dump(by_alias=True)
    assert data["building"]["totalROIYears"] == pytest.approx(252000 / 59170.5)
    assert data["rooms"][0]["metrics"]["requiredCapacityKW"] == pytest.approx(3.6)
    assert data["rooms"][0]["devices"][0]["roomId"] == "r-lab-a"


# -----------------------------------------------------------------------------
# Usage breakdown
# -----------------------------------------------------------------------------


def test_usage_breakdown_shares(campus, settings):
    rooms, devices = campus
    totals = calculate_building_totals(rooms, devices, settings)
    shares = calculate_usage_breakdown(totals.rooms)
    assert [s.room_id for s in shares] == ["r-1", "r-2"]
    assert sum(s.share for s in shares) == pytest.approx(1.0)


def test_usage_breakdown_empty_when_no_usage(settings):
    rooms = [Room(id="r", name="Empty")]
    totals = calculate_building_totals(rooms, [], settings)
    assert calculate_usage_breakdown(totals.rooms) == []


# -----------------------------------------------------------------------------
# Top cost centers
# -----------------------------------------------------------------------------


def test_top_cost_centers_ranked_by_yearly_cost(settings):
    rooms = [Room(id=f"r-{i}", name=f"Room {i}") for i in range(4)]
    devices = [
        Device(id=f"d-{i}", room_id=f"r-{i}", name="Load", quantity=1, power_w=watts, usage_hours=10)
        for i, watts in enumerate([100, 900, 400, 700])
    ]
    totals = calculate_building_totals(rooms, devices, settings)

    top = calculate_top_cost_centers(totals.rooms)

    assert [c.room_name for c in top] == ["Room 1", "Room 3", "Room 2"]
    assert top[0].cost_year_grid == pytest.approx(9.0 * 9.0 * 365.25)
    assert top[0].energy_kwh_day == pytest.approx(9.0)
    # ranking works on a copy
    assert [r.id for r in totals.rooms] == ["r-0", "r-1", "r-2", "r-3"]


def test_top_cost_centers_limit(campus, settings):
    rooms, devices = campus
    totals = calculate_building_totals(rooms, devices, settings)

    assert [c.room_name for c in calculate_top_cost_centers(totals.rooms, limit=1)] == ["Lab A"]
    assert len(calculate_top_cost_centers(totals.rooms, limit=10)) == 3
    assert calculate_top_cost_centers([]) == []
