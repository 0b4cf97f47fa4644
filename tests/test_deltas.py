# tests/test_deltas.py
from backend.lib.totalizer_core.models import EnergyReading, FlowReading
from backend.lib.totalizer_core.grouping import group_by_asset, sort_readings
from backend.lib.totalizer_core.deltas import compute_intervals, intervals_by_asset
from datetime import datetime, timedelta

T0 = datetime(2025, 11, 1, 8, 0)

def energy(rid, hours, asset="b_tbo_3", **fields):
    return EnergyReading(rid, T0 + timedelta(hours=hours), asset, **fields)

def flow(rid, hours, m3, asset="fit_tbo_3"):
    return FlowReading(rid, T0 + timedelta(hours=hours), asset, m3=m3)

def test_group_by_asset_sorts_and_keeps_unknown_ids():
    readings = [
        energy(1, 5, kwh=30),
        energy(2, 0, asset="ghost", kwh=1),
        energy(3, 1, kwh=10),
    ]
    grouped = group_by_asset(readings)
    assert set(grouped) == {"b_tbo_3", "ghost"}
    assert [r.id for r in grouped["b_tbo_3"]] == [3, 1]
    assert [r.id for r in grouped["ghost"]] == [2]

def test_group_by_asset_empty():
    assert group_by_asset([]) == {}

def test_sort_is_stable_on_ties():
    readings = [energy(1, 2, kwh=1), energy(2, 2, kwh=2), energy(3, 1, kwh=0)]
    assert [r.id for r in sort_readings(readings)] == [3, 1, 2]
    assert [r.id for r in sort_readings(readings, descending=True)] == [1, 2, 3]

def test_scenario_a_power_and_norm24():
    (iv,) = compute_intervals([energy(1, 0, kwh=100), energy(2, 1, kwh=150)])
    assert iv.delta_kwh == 50
    assert iv.elapsed_hours == 1
    assert iv.power == 50
    assert iv.norm24 == 1200
    assert iv.reading_id == 2
    assert iv.end == T0 + timedelta(hours=1)

def test_scenario_b_rollback_is_clamped():
    (iv,) = compute_intervals([energy(1, 0, kwh=200), energy(2, 1, kwh=150)])
    assert iv.delta_kwh == 0
    assert iv.power == 0
    assert iv.norm24 == 0

def test_fewer_than_two_readings_give_no_intervals():
    assert compute_intervals([]) == []
    assert compute_intervals([energy(1, 0, kwh=1)]) == []

def test_delta_needs_field_on_both_ends():
    (iv,) = compute_intervals([energy(1, 0, h_run=10), energy(2, 2, kwh=50, h_run=12)])
    assert iv.delta_kwh is None
    assert iv.power == 0
    assert iv.delta_h_run == 2

def test_volume_delta_and_no_power_for_flow_meters():
    (iv,) = compute_intervals([flow(1, 0, 1000), flow(2, 24, 3400)])
    assert iv.delta_m3 == 2400
    assert iv.delta_kwh is None
    assert iv.power == 0
    assert iv.read_m3 == 3400

def test_near_zero_interval_has_no_rate():
    (iv,) = compute_intervals([energy(1, 0, kwh=10), energy(2, 0.005, kwh=20)])
    assert iv.delta_kwh == 10
    assert iv.power == 0

def test_zero_elapsed_time_does_not_crash():
    (iv,) = compute_intervals([energy(1, 3, kwh=10), energy(2, 3, kwh=40)])
    assert iv.elapsed_hours == 0
    assert iv.delta_kwh == 30
    assert iv.power == 0

def test_hour_counters_are_carried_raw():
    (iv,) = compute_intervals([
        energy(1, 0, h_run=500, h_conn=520),
        energy(2, 10, h_run=490, h_conn=530),
    ])
    # not clamped, display only
    assert iv.delta_h_run == -10
    assert iv.delta_h_conn == 10

def test_clamping_law_over_noisy_counters():
    values = [100, 90, 95, 400, 0, 10]
    readings = [energy(i, i, kwh=v) for i, v in enumerate(values)]
    intervals = compute_intervals(readings)
    assert len(intervals) == len(values) - 1
    assert all(iv.delta_kwh >= 0 for iv in intervals)
    assert sum(iv.delta_kwh for iv in intervals) == 0 + 5 + 305 + 0 + 10

def test_intervals_by_asset_sorts_out_of_order_entry():
    readings = [energy(1, 2, kwh=30), energy(2, 0, kwh=10), energy(3, 1, kwh=20)]
    by_asset = intervals_by_asset(readings)
    assert [iv.delta_kwh for iv in by_asset["b_tbo_3"]] == [10, 10]
