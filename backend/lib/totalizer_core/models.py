# backend/lib/totalizer_core/models.py
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional, Union


class AssetType(str, Enum):
    SS = "SS"
    VDF = "VDF"
    FIT = "FIT"

    @property
    def is_rotating(self) -> bool:
        return self is not AssetType.FIT


@dataclass(frozen=True)
class Asset:
    id: str
    name: str
    type: AssetType


@dataclass(frozen=True)
class ExtractionPoint:
    id: str
    name: str
    assets: List[Asset] = field(default_factory=list)


class PlantConfig:
    """
    Ordered extraction points plus an asset index built once per snapshot.
    Treat instances as read-only; the editing helpers in config.py return new ones.
    """

    def __init__(self, points: List[ExtractionPoint]):
        self.points = list(points)
        self._assets: Dict[str, Asset] = {}
        for point in self.points:
            for asset in point.assets:
                self._assets.setdefault(asset.id, asset)

    def find_asset(self, asset_id: str) -> Optional[Asset]:
        return self._assets.get(asset_id)

    def find_point(self, point_id: str) -> Optional[ExtractionPoint]:
        for point in self.points:
            if point.id == point_id:
                return point
        return None

    def asset_ids(self) -> List[str]:
        return [a.id for p in self.points for a in p.assets]

    def __eq__(self, other):
        if not isinstance(other, PlantConfig):
            return NotImplemented
        return self.points == other.points

    def __repr__(self):
        return f"PlantConfig(points={self.points!r})"


@dataclass
class EnergyReading:
    """Reading of rotating equipment (SS/VDF): energy meter and hour counters."""
    id: int
    date: datetime
    asset_id: str
    kwh: Optional[float] = None
    h_conn: Optional[float] = None
    h_run: Optional[float] = None


@dataclass
class FlowReading:
    """Reading of a flow totalizer (FIT)."""
    id: int
    date: datetime
    asset_id: str
    m3: Optional[float] = None


Reading = Union[EnergyReading, FlowReading]


@dataclass
class Interval:
    asset_id: str
    reading_id: int
    start: datetime
    end: datetime
    elapsed_hours: float
    delta_kwh: Optional[float] = None
    delta_m3: Optional[float] = None
    delta_h_run: Optional[float] = None
    delta_h_conn: Optional[float] = None
    power: float = 0.0
    norm24: float = 0.0
    read_kwh: Optional[float] = None
    read_m3: Optional[float] = None


@dataclass
class SummaryMetrics:
    total_energy: float = 0.0
    total_volume: float = 0.0
    avg_energy_per_day: float = 0.0
    avg_volume_per_day: float = 0.0
    has_data: bool = False


@dataclass
class DailyStat:
    date: date
    energy: float = 0.0
    volume: float = 0.0
