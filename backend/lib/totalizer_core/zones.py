# backend/lib/totalizer_core/zones.py
"""
Plant zones for the SCADA-style overview. A zone collects the extraction
points whose name or id matches its keywords, so renamed or added points
land in the right zone without extra configuration.
"""
from typing import Dict, List, Tuple
from .models import ExtractionPoint, PlantConfig

# (key, title, name keywords, id keywords)
ZONES: List[Tuple[str, str, Tuple[str, ...], Tuple[str, ...]]] = [
    ("tbo", "Planta Química (TBO 3, 4, 5)", ("TBO",), ("tbo",)),
    ("piles", "Pilas 42, 50, 64", ("PILA",), ("42", "64")),
    ("pes", "Ingreso a PES", ("BES", "OSMOSIS", "PES"), ()),
]


def _matches(point: ExtractionPoint, names: Tuple[str, ...], ids: Tuple[str, ...]) -> bool:
    name = point.name.upper()
    pid = point.id.lower()
    return any(k in name for k in names) or any(k in pid for k in ids)


def zone_asset_ids(config: PlantConfig) -> Dict[str, List[str]]:
    """
    Returns {zone_key: asset ids} in configuration order.
    A point matching several zones counts in each of them.
    """
    return {
        key: [a.id for p in config.points if _matches(p, names, ids) for a in p.assets]
        for key, _, names, ids in ZONES
    }


def zone_titles() -> Dict[str, str]:
    return {key: title for key, title, _, _ in ZONES}
