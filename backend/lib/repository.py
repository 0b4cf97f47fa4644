"""
=============================================================================
PLANT REPOSITORY - Persistence of configuration and readings
=============================================================================

The application state is two named blobs:

    bes_v3_config    -> list of extraction points with their assets
    bes_v3_readings  -> list of counter readings

Both are JSON documents that mirror the data model field by field, e.g.

    {"id": 3, "date": "2025-11-01T08:00", "assetId": "b_tbo_3", "kwh": 15230.5}

Two backends are available:
- LocalJsonRepository: one JSON file per blob in a local folder
- S3Repository: one S3 object per blob (see s3_service.py)

Callers receive a repository instance and never touch the blobs directly.
=============================================================================
"""

import json
from pathlib import Path
from typing import Any, List, Optional

from backend.lib.totalizer_core.config import default_config
from backend.lib.totalizer_core.io import (
    build_backup,
    config_from_list,
    config_to_list,
    parse_backup,
    readings_from_list,
    readings_to_list,
)
from backend.lib.totalizer_core.models import PlantConfig, Reading

CONFIG_KEY = "bes_v3_config"
READINGS_KEY = "bes_v3_readings"


class PlantRepository:
    """
    Base class: subclasses implement the raw blob access (_read / _write / _delete),
    everything else is shared.
    """

    backend = "base"

    def _read(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def _write(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def load_config(self) -> PlantConfig:
        """Stored configuration, or the default plant layout if none was saved."""
        data = self._read(CONFIG_KEY)
        if data is None:
            return default_config()
        return config_from_list(data)

    def save_config(self, config: PlantConfig) -> None:
        self._write(CONFIG_KEY, config_to_list(config))

    # -------------------------------------------------------------------------
    # Readings
    # -------------------------------------------------------------------------

    def load_readings(self) -> List[Reading]:
        data = self._read(READINGS_KEY)
        if data is None:
            return []
        return readings_from_list(data)

    def save_readings(self, readings: List[Reading]) -> None:
        self._write(READINGS_KEY, readings_to_list(readings))

    def add_reading(self, reading: Reading) -> Reading:
        """
        Append a reading. A reading without id gets the next free one.
        """
        readings = self.load_readings()
        if reading.id is None:
            reading.id = max((r.id for r in readings if r.id is not None), default=0) + 1
        readings.append(reading)
        self.save_readings(readings)
        return reading

    def add_readings(self, new_readings: List[Reading]) -> int:
        """
        Append several readings (CSV import). Readings without an id, or whose
        id is already taken, get the next free one so ids stay unique.
        """
        readings = self.load_readings()
        taken = {r.id for r in readings if r.id is not None}
        next_id = max(taken | {r.id for r in new_readings if r.id is not None}, default=0) + 1
        for r in new_readings:
            if r.id is None or r.id in taken:
                r.id = next_id
                next_id += 1
            taken.add(r.id)
        readings.extend(new_readings)
        self.save_readings(readings)
        return len(new_readings)

    def delete_reading(self, reading_id) -> bool:
        """
        Remove the reading with this id.

        Returns:
            bool: False if no reading had that id
        """
        readings = self.load_readings()
        remaining = [r for r in readings if r.id != reading_id]
        if len(remaining) == len(readings):
            return False
        self.save_readings(remaining)
        return True

    # -------------------------------------------------------------------------
    # Backup / restore / reset
    # -------------------------------------------------------------------------

    def backup(self) -> dict:
        return build_backup(self.load_config(), self.load_readings())

    def restore(self, data: Any) -> int:
        """
        Overwrite configuration and readings with a backup document.
        The document is fully validated before anything is written.
        """
        config, readings = parse_backup(data)
        self.save_config(config)
        self.save_readings(readings)
        return len(readings)

    def clear(self) -> None:
        self._delete(CONFIG_KEY)
        self._delete(READINGS_KEY)


class LocalJsonRepository(PlantRepository):
    """Stores each blob as <data_dir>/<key>.json"""

    backend = "local"

    def __init__(self, data_dir):
        self.data_dir = Path(data_dir)

    def _path(self, key: str) -> Path:
        return self.data_dir / f"{key}.json"

    def _read(self, key: str) -> Optional[Any]:
        path = self._path(key)
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, key: str, value: Any) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        # atomic replace
        tmp = self._path(key).with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(value, f, ensure_ascii=False)
        tmp.replace(self._path(key))

    def _delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()


class S3Repository(PlantRepository):
    """Stores each blob as one S3 object through S3Service."""

    backend = "s3"

    def __init__(self, s3_service):
        self.s3 = s3_service

    def _read(self, key: str) -> Optional[Any]:
        content = self.s3.get_blob(key)
        if content is None:
            return None
        return json.loads(content.decode("utf-8"))

    def _write(self, key: str, value: Any) -> None:
        self.s3.put_blob(key, json.dumps(value, ensure_ascii=False).encode("utf-8"))

    def _delete(self, key: str) -> None:
        self.s3.delete_blob(key)
