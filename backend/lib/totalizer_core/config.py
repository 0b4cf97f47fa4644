# backend/lib/totalizer_core/config.py
"""
Plant configuration: the default layout and the editing operations behind
the configuration screen. Every edit returns a new PlantConfig.
"""
from dataclasses import replace
from typing import List
from .models import Asset, AssetType, ExtractionPoint, PlantConfig


def default_config() -> PlantConfig:
    return PlantConfig([
        ExtractionPoint("pe_tbo_3", "TBO 3 (Planta Química)", [
            Asset("b_tbo_3", "Bomba TBO 3", AssetType.VDF),
            Asset("fit_tbo_3", "FIT TBO 3", AssetType.FIT),
        ]),
        ExtractionPoint("pe_tbo_4_5", "TBO 4/5 (Planta Química)", [
            Asset("b_tbo_4", "Bomba TBO 4", AssetType.VDF),
            Asset("b_tbo_5", "Bomba TBO 5", AssetType.VDF),
            Asset("fit_tbo_4_5", "FIT TBO 4/5", AssetType.FIT),
        ]),
        ExtractionPoint("pe_42_50", "Pilas 42/50", [
            Asset("b_42", "Bomba Pila 42", AssetType.SS),
            Asset("b_50", "Bomba Pila 50", AssetType.SS),
            Asset("fit_42_50", "FIT 42/50", AssetType.FIT),
        ]),
        ExtractionPoint("pe_64", "Pila 64", [
            Asset("b_64", "Bomba Pila 64", AssetType.SS),
            Asset("fit_64", "FIT 64", AssetType.FIT),
        ]),
        ExtractionPoint("pe_osmosis", "Osmosis / Ingreso BES", [
            Asset("fit_bes_in", "FIT Ingreso BES", AssetType.FIT),
        ]),
    ])


def parse_asset_type(value: str) -> AssetType:
    try:
        return AssetType(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown asset type {value!r}, expected one of SS, VDF, FIT")


def _require_point(config: PlantConfig, point_id: str) -> ExtractionPoint:
    point = config.find_point(point_id)
    if point is None:
        raise KeyError(point_id)
    return point


def _with_point(config: PlantConfig, point_id: str, updated: ExtractionPoint) -> PlantConfig:
    return PlantConfig([updated if p.id == point_id else p for p in config.points])


def add_extraction_point(config: PlantConfig, point_id: str, name: str) -> PlantConfig:
    if not point_id or not name:
        raise ValueError("Extraction point needs an id and a name")
    if config.find_point(point_id) is not None:
        raise ValueError(f"Extraction point {point_id!r} already exists")
    return PlantConfig(config.points + [ExtractionPoint(point_id, name, [])])


def remove_extraction_point(config: PlantConfig, point_id: str) -> PlantConfig:
    _require_point(config, point_id)
    return PlantConfig([p for p in config.points if p.id != point_id])


def rename_extraction_point(config: PlantConfig, point_id: str, name: str) -> PlantConfig:
    point = _require_point(config, point_id)
    return _with_point(config, point_id, replace(point, name=name))


def add_asset(config: PlantConfig, point_id: str, asset_id: str, name: str, asset_type: str) -> PlantConfig:
    point = _require_point(config, point_id)
    if not asset_id or not name:
        raise ValueError("Asset needs an id and a name")
    if config.find_asset(asset_id) is not None:
        raise ValueError(f"Asset {asset_id!r} already exists")
    asset = Asset(asset_id, name, parse_asset_type(asset_type))
    return _with_point(config, point_id, replace(point, assets=point.assets + [asset]))


def remove_asset(config: PlantConfig, point_id: str, asset_id: str) -> PlantConfig:
    # Readings of the removed asset are kept; the engine handles orphaned ids
    point = _require_point(config, point_id)
    remaining: List[Asset] = [a for a in point.assets if a.id != asset_id]
    if len(remaining) == len(point.assets):
        raise KeyError(asset_id)
    return _with_point(config, point_id, replace(point, assets=remaining))


def rename_asset(config: PlantConfig, point_id: str, asset_id: str, name: str) -> PlantConfig:
    point = _require_point(config, point_id)
    if not any(a.id == asset_id for a in point.assets):
        raise KeyError(asset_id)
    assets = [replace(a, name=name) if a.id == asset_id else a for a in point.assets]
    return _with_point(config, point_id, replace(point, assets=assets))
