# backend/lib/totalizer_core/grouping.py
from collections import defaultdict
from typing import Dict, Iterable, List
from .models import Reading


def sort_readings(readings: Iterable[Reading], descending: bool = False) -> List[Reading]:
    # sorted() is stable, so readings sharing a timestamp keep their input order
    return sorted(readings, key=lambda r: r.date, reverse=descending)


def group_by_asset(readings: Iterable[Reading]) -> Dict[str, List[Reading]]:
    """
    Returns {asset_id: [readings ordered by date ascending]}.

    Every asset id present in the input gets a group, including ids that are
    no longer part of the configuration.
    """
    grouped = defaultdict(list)
    for r in sort_readings(readings):
        grouped[r.asset_id].append(r)
    return dict(grouped)
