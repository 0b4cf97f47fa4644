# backend/lib/totalizer_core/report.py
import csv
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from io import StringIO
from typing import Iterable, List, Optional
from .deltas import intervals_by_asset
from .models import PlantConfig, Reading

CSV_HEADER = [
    "Fecha/Hora",
    "Equipo",
    "Lectura kWh",
    "Delta kWh",
    "Delta m³",
    "Horas Reales",
    "Pot. Media (kW)",
    "Consumo 24h (Calc)",
]


@dataclass
class ReportRow:
    reading_id: int
    date: datetime
    asset_id: str
    asset: str
    read_kwh: Optional[float]
    read_m3: Optional[float]
    delta_kwh: float
    delta_m3: float
    elapsed_hours: float
    power: float
    norm24: float


def round2(value: float) -> float:
    # half-up like the billing sheets, not banker's rounding
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def build_interval_report(config: PlantConfig, readings: Iterable[Reading]) -> List[ReportRow]:
    """
    One row per interval of every asset that has readings, newest first.
    Assets missing from the configuration are listed under their raw id.
    """
    rows = []
    for asset_id, intervals in intervals_by_asset(readings).items():
        asset = config.find_asset(asset_id)
        name = asset.name if asset else asset_id
        for iv in intervals:
            rows.append(ReportRow(
                reading_id=iv.reading_id,
                date=iv.end,
                asset_id=asset_id,
                asset=name,
                read_kwh=iv.read_kwh,
                read_m3=iv.read_m3,
                delta_kwh=iv.delta_kwh or 0.0,
                delta_m3=iv.delta_m3 or 0.0,
                elapsed_hours=iv.elapsed_hours,
                power=iv.power,
                norm24=iv.norm24,
            ))
    return sorted(rows, key=lambda row: row.date, reverse=True)


def report_to_csv(rows: Iterable[ReportRow]) -> str:
    out = StringIO()
    writer = csv.writer(out)
    writer.writerow(CSV_HEADER)
    for row in rows:
        writer.writerow([
            row.date.strftime("%Y-%m-%d %H:%M"),
            row.asset,
            row.read_kwh or 0,
            round2(row.delta_kwh) if row.delta_kwh > 0 else 0,
            round2(row.delta_m3) if row.delta_m3 > 0 else 0,
            round2(row.elapsed_hours),
            round2(row.power) if row.power > 0 else 0,
            round2(row.norm24) if row.norm24 > 0 else 0,
        ])
    return out.getvalue()
