# backend/lib/totalizer_core/demo.py
"""
Synthetic reading history for trying out the dashboards.

Counters start at random values and grow once per day following a rough
operating profile per asset (daily run hours, rated kW, flow in m³/h).
"""
import random
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from .models import Asset, AssetType, EnergyReading, FlowReading, PlantConfig, Reading


def _profile(asset: Asset, rng: random.Random) -> Tuple[float, float, float]:
    """Returns (daily_hours, kw_rating, flow_m3_per_hour)."""
    aid = asset.id
    if "tbo_3" in aid:
        return 18 + rng.random() * 4, 35, 110
    if "tbo_4" in aid or "tbo_5" in aid:
        return 10 + rng.random() * 4, 45, 130
    if "42" in aid or "50" in aid or "64" in aid:
        return 20 + rng.random() * 4, 20, 60
    if "bes" in aid:
        return 24, 0, 250
    return 12, 10, 50


def generate_demo_readings(config: PlantConfig, days: int = 30, now: Optional[datetime] = None,
                           seed: Optional[int] = None) -> List[Reading]:
    rng = random.Random(seed)
    now = now or datetime.now()
    start = (now - timedelta(days=days)).replace(hour=8, minute=0, second=0, microsecond=0)

    counters = {}
    for asset_id in config.asset_ids():
        counters[asset_id] = {
            "kwh": rng.randint(10000, 59999),
            "m3": rng.randint(50000, 549999),
            "hours": rng.randint(1000, 5999),
        }

    readings: List[Reading] = []
    next_id = 1
    for d in range(days + 1):
        # operators never read at exactly the same minute
        ts = start + timedelta(days=d, minutes=rng.randint(-30, 29))
        for point in config.points:
            for asset in point.assets:
                acc = counters[asset.id]
                hours, kw, flow = _profile(asset, rng)
                hours = min(24, hours)

                if asset.type.is_rotating:
                    acc["kwh"] += hours * kw * (0.9 + rng.random() * 0.2)
                    acc["hours"] += hours
                    readings.append(EnergyReading(
                        id=next_id,
                        date=ts,
                        asset_id=asset.id,
                        kwh=round(acc["kwh"], 2),
                        h_run=round(acc["hours"], 1),
                        h_conn=round(acc["hours"] * 1.05, 1),
                    ))
                elif asset.type is AssetType.FIT:
                    acc["m3"] += hours * flow * (0.8 + rng.random() * 0.4)
                    readings.append(FlowReading(
                        id=next_id,
                        date=ts,
                        asset_id=asset.id,
                        m3=float(round(acc["m3"])),
                    ))
                next_id += 1
    return readings
