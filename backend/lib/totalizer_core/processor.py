from collections import defaultdict
from datetime import date
from typing import Dict, Iterable, List
from .deltas import intervals_by_asset
from .models import DailyStat, Interval, Reading, SummaryMetrics

# Floor for the observation window, in days, when averaging per day
MIN_SPAN_DAYS = 0.1


class ConsumptionAnalyzer:
    def __init__(self, readings: Iterable[Reading]):
        # Snapshot of the reading set; the analyzer never mutates it
        self.readings = list(readings)

    def intervals(self, asset_ids: Iterable[str]) -> Dict[str, List[Interval]]:
        """
        Returns {asset_id: intervals} for the selected assets that have readings.
        """
        selected = set(asset_ids)
        relevant = [r for r in self.readings if r.asset_id in selected]
        return intervals_by_asset(relevant)

    def summary(self, asset_ids: Iterable[str]) -> SummaryMetrics:
        """
        Totals and per-day averages of energy and volume over a selection.

        The averaging window runs from the earliest to the latest interval end
        seen across the selection, floored at MIN_SPAN_DAYS.
        """
        total_kwh = 0.0
        total_m3 = 0.0
        first = None
        last = None

        for asset_intervals in self.intervals(asset_ids).values():
            for iv in asset_intervals:
                if iv.delta_kwh is not None:
                    total_kwh += iv.delta_kwh
                if iv.delta_m3 is not None:
                    total_m3 += iv.delta_m3
                if first is None or iv.end < first:
                    first = iv.end
                if last is None or iv.end > last:
                    last = iv.end

        avg_kwh = 0.0
        avg_m3 = 0.0
        if first is not None and last > first:
            days = max((last - first).total_seconds() / 86400.0, MIN_SPAN_DAYS)
            avg_kwh = total_kwh / days
            avg_m3 = total_m3 / days

        return SummaryMetrics(
            total_energy=total_kwh,
            total_volume=total_m3,
            avg_energy_per_day=avg_kwh,
            avg_volume_per_day=avg_m3,
            has_data=total_kwh > 0 or total_m3 > 0,
        )

    def daily_series(self, asset_ids: Iterable[str]) -> List[DailyStat]:
        """
        Energy and volume per calendar day, summed across the selection.

        Each interval counts on the day of its later reading. Days without any
        interval are left out rather than zero-filled.
        """
        buckets: Dict[date, List[float]] = defaultdict(lambda: [0.0, 0.0])
        for asset_intervals in self.intervals(asset_ids).values():
            for iv in asset_intervals:
                bucket = buckets[iv.end.date()]
                if iv.delta_kwh is not None:
                    bucket[0] += iv.delta_kwh
                if iv.delta_m3 is not None:
                    bucket[1] += iv.delta_m3

        return [DailyStat(date=d, energy=kwh, volume=m3) for d, (kwh, m3) in sorted(buckets.items())]
