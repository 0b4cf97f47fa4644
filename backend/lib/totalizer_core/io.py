# backend/lib/totalizer_core/io.py
import csv
from datetime import datetime
from io import StringIO
from typing import Any, Dict, List, Optional
from .config import parse_asset_type
from .models import Asset, EnergyReading, ExtractionPoint, FlowReading, PlantConfig, Reading

ENERGY_FIELDS = ("kwh", "h_conn", "h_run")
VOLUME_FIELDS = ("m3",)


def parse_date(value: str) -> datetime:
    """
    Parses 'YYYY-MM-DDTHH:MM' (seconds and a space separator are accepted too).
    Readings are local wall-clock times, so any UTC offset is dropped.
    """
    ts = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    return ts.replace(tzinfo=None)


def format_date(ts: datetime) -> str:
    if ts.second == 0 and ts.microsecond == 0:
        return ts.isoformat(timespec="minutes")
    return ts.isoformat()


def _number(value: Any, name: str) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number, got {value!r}")


def reading_from_dict(obj: Dict[str, Any]) -> Reading:
    """
    Builds the reading variant matching the fields present:
    kwh/h_conn/h_run -> EnergyReading, m3 only -> FlowReading.
    """
    if not isinstance(obj, dict):
        raise ValueError(f"Reading must be an object, got {obj!r}")
    if not obj.get("date") or not obj.get("assetId"):
        raise ValueError(f"Missing field in reading: {obj}")

    values = {k: _number(obj.get(k), k) for k in ENERGY_FIELDS + VOLUME_FIELDS}
    has_energy = any(values[k] is not None for k in ENERGY_FIELDS)
    has_volume = values["m3"] is not None
    if has_energy and has_volume:
        raise ValueError(f"Reading mixes energy and volume fields: {obj}")

    common = dict(id=obj.get("id"), date=parse_date(obj["date"]), asset_id=str(obj["assetId"]))
    if has_volume:
        return FlowReading(m3=values["m3"], **common)
    return EnergyReading(kwh=values["kwh"], h_conn=values["h_conn"], h_run=values["h_run"], **common)


def reading_to_dict(r: Reading) -> Dict[str, Any]:
    obj = {"id": r.id, "date": format_date(r.date), "assetId": r.asset_id}
    fields = ENERGY_FIELDS if isinstance(r, EnergyReading) else VOLUME_FIELDS
    for name in fields:
        value = getattr(r, name)
        # absent fields stay absent, never 0
        if value is not None:
            obj[name] = value
    return obj


def readings_from_list(items: List[Dict[str, Any]]) -> List[Reading]:
    if not isinstance(items, list):
        raise ValueError("Readings must be a list")
    return [reading_from_dict(obj) for obj in items]


def readings_to_list(readings: List[Reading]) -> List[Dict[str, Any]]:
    return [reading_to_dict(r) for r in readings]


def config_from_list(items: List[Dict[str, Any]]) -> PlantConfig:
    if not isinstance(items, list):
        raise ValueError("Configuration must be a list of extraction points")
    points = []
    for p in items:
        if not isinstance(p, dict):
            raise ValueError(f"Extraction point must be an object, got {p!r}")
        if not p.get("id"):
            raise ValueError(f"Extraction point without id: {p}")
        assets = []
        for a in p.get("assets") or []:
            if not isinstance(a, dict):
                raise ValueError(f"Asset must be an object, got {a!r}")
            if not a.get("id"):
                raise ValueError(f"Asset without id in point {p['id']}: {a}")
            assets.append(Asset(id=a["id"], name=a.get("name") or a["id"], type=parse_asset_type(a.get("type", ""))))
        points.append(ExtractionPoint(id=p["id"], name=p.get("name") or p["id"], assets=assets))
    return PlantConfig(points)


def config_to_list(config: PlantConfig) -> List[Dict[str, Any]]:
    return [
        {
            "id": p.id,
            "name": p.name,
            "assets": [{"id": a.id, "name": a.name, "type": a.type.value} for a in p.assets],
        }
        for p in config.points
    ]


def parse_backup(data: Any):
    """
    Validates a backup document {"config": [...], "readings": [...]}.
    Returns (PlantConfig, readings).
    """
    if not isinstance(data, dict) or "config" not in data or "readings" not in data:
        raise ValueError("Backup must contain 'config' and 'readings'")
    return config_from_list(data["config"]), readings_from_list(data["readings"])


def build_backup(config: PlantConfig, readings: List[Reading]) -> Dict[str, Any]:
    return {"config": config_to_list(config), "readings": readings_to_list(readings)}


def parse_csv_string(csv_text: str, first_id: int = 1) -> List[Reading]:
    """
    Parse CSV text with header: asset_id,date[,id,kwh,h_conn,h_run,m3]
    Empty cells are absent fields. Rows without an id are numbered from first_id.
    """
    f = StringIO(csv_text.strip())
    reader = csv.DictReader(f)
    readings = []
    next_id = first_id
    for row in reader:
        if not row.get("asset_id") or not row.get("date"):
            raise ValueError(f"Missing field in row: {row}")
        if row.get("id"):
            reading_id = int(row["id"])
        else:
            reading_id = next_id
            next_id += 1
        obj = {k: row.get(k) for k in ENERGY_FIELDS + VOLUME_FIELDS}
        obj.update(id=reading_id, date=row["date"], assetId=row["asset_id"])
        readings.append(reading_from_dict(obj))
    return readings
