# backend/lib/totalizer_core/deltas.py
from typing import Dict, Iterable, List, Optional
from .grouping import group_by_asset
from .models import EnergyReading, FlowReading, Interval, Reading

# Intervals shorter than this (in hours) yield no power figure
MIN_RATE_HOURS = 0.01


def _energy(r: Reading, name: str) -> Optional[float]:
    if isinstance(r, EnergyReading):
        return getattr(r, name)
    return None


def _volume(r: Reading) -> Optional[float]:
    if isinstance(r, FlowReading):
        return r.m3
    return None


def _clamped_delta(prev: Optional[float], curr: Optional[float]) -> Optional[float]:
    if prev is None or curr is None:
        return None
    return max(0.0, curr - prev)


def _raw_delta(prev: Optional[float], curr: Optional[float]) -> Optional[float]:
    if prev is None or curr is None:
        return None
    return curr - prev


def compute_interval(prev: Reading, curr: Reading) -> Interval:
    """
    Derives one interval from two consecutive readings of the same asset.

    Counter decreases (rollback or meter swap) are clamped to a zero delta.
    Across a meter replacement this under-counts the interval's consumption;
    nothing here tries to tell the two cases apart.
    """
    elapsed_hours = (curr.date - prev.date).total_seconds() / 3600.0

    delta_kwh = _clamped_delta(_energy(prev, "kwh"), _energy(curr, "kwh"))
    delta_m3 = _clamped_delta(_volume(prev), _volume(curr))

    power = 0.0
    if delta_kwh is not None and elapsed_hours > MIN_RATE_HOURS:
        power = delta_kwh / elapsed_hours

    return Interval(
        asset_id=curr.asset_id,
        reading_id=curr.id,
        start=prev.date,
        end=curr.date,
        elapsed_hours=elapsed_hours,
        delta_kwh=delta_kwh,
        delta_m3=delta_m3,
        delta_h_run=_raw_delta(_energy(prev, "h_run"), _energy(curr, "h_run")),
        delta_h_conn=_raw_delta(_energy(prev, "h_conn"), _energy(curr, "h_conn")),
        power=power,
        norm24=power * 24,
        read_kwh=_energy(curr, "kwh"),
        read_m3=_volume(curr),
    )


def compute_intervals(ordered: List[Reading]) -> List[Interval]:
    """
    One interval per consecutive pair of an already date-ordered sequence.
    Sequences with fewer than two readings produce no intervals.
    """
    return [compute_interval(ordered[i - 1], ordered[i]) for i in range(1, len(ordered))]


def intervals_by_asset(readings: Iterable[Reading]) -> Dict[str, List[Interval]]:
    return {aid: compute_intervals(group) for aid, group in group_by_asset(readings).items()}
