# backend/lib/totalizer_core/selection.py
from typing import List, Optional
from .models import PlantConfig

ALL = "ALL"


def resolve_selection(config: PlantConfig, selection: Optional[str] = None) -> List[str]:
    """
    Expands a selection into asset ids.

    ALL (or None) means every configured asset, an extraction point id means its
    members, and anything else is taken as a single asset id, known or not.
    """
    if selection is None or selection == ALL:
        return config.asset_ids()
    point = config.find_point(selection)
    if point is not None:
        return [a.id for a in point.assets]
    return [selection]


def selection_label(config: PlantConfig, selection: Optional[str] = None) -> str:
    if selection is None or selection == ALL:
        return "Vista General Planta"
    point = config.find_point(selection)
    if point is not None:
        return point.name
    asset = config.find_asset(selection)
    return asset.name if asset else selection
