# tests/test_config_selection.py
from backend.lib.totalizer_core import config as plant_config
from backend.lib.totalizer_core.models import AssetType
from backend.lib.totalizer_core.selection import ALL, resolve_selection, selection_label
import pytest

def test_default_config_index():
    config = plant_config.default_config()
    assert len(config.points) == 5
    assert config.find_asset("b_tbo_5").type is AssetType.VDF
    assert config.find_asset("nope") is None
    assert config.asset_ids()[:2] == ["b_tbo_3", "fit_tbo_3"]

def test_resolve_selection():
    config = plant_config.default_config()
    assert resolve_selection(config, ALL) == config.asset_ids()
    assert resolve_selection(config, None) == config.asset_ids()
    assert resolve_selection(config, "pe_64") == ["b_64", "fit_64"]
    assert resolve_selection(config, "b_42") == ["b_42"]
    # unknown ids pass through as a single asset
    assert resolve_selection(config, "old_pump") == ["old_pump"]

def test_selection_label():
    config = plant_config.default_config()
    assert selection_label(config, ALL) == "Vista General Planta"
    assert selection_label(config, "pe_64") == "Pila 64"
    assert selection_label(config, "b_64") == "Bomba Pila 64"
    assert selection_label(config, "old_pump") == "old_pump"

def test_add_and_rename_point_returns_new_config():
    config = plant_config.default_config()
    updated = plant_config.add_extraction_point(config, "pe_new", "Nuevo Punto")
    assert updated.find_point("pe_new").assets == []
    assert config.find_point("pe_new") is None
    renamed = plant_config.rename_extraction_point(updated, "pe_new", "Pozo 7")
    assert renamed.find_point("pe_new").name == "Pozo 7"

def test_duplicate_point_rejected():
    with pytest.raises(ValueError):
        plant_config.add_extraction_point(plant_config.default_config(), "pe_64", "Otra")

def test_add_asset_validates_type():
    config = plant_config.default_config()
    updated = plant_config.add_asset(config, "pe_64", "b_65", "Bomba 65", "vdf")
    assert updated.find_asset("b_65").type is AssetType.VDF
    assert resolve_selection(updated, "pe_64") == ["b_64", "fit_64", "b_65"]
    with pytest.raises(ValueError):
        plant_config.add_asset(config, "pe_64", "x_1", "X", "PUMP")

def test_remove_and_rename_asset():
    config = plant_config.default_config()
    renamed = plant_config.rename_asset(config, "pe_64", "b_64", "Bomba Principal")
    assert renamed.find_asset("b_64").name == "Bomba Principal"
    removed = plant_config.remove_asset(renamed, "pe_64", "b_64")
    assert removed.find_asset("b_64") is None
    with pytest.raises(KeyError):
        plant_config.remove_asset(removed, "pe_64", "b_64")

def test_remove_point():
    config = plant_config.remove_extraction_point(plant_config.default_config(), "pe_osmosis")
    assert config.find_asset("fit_bes_in") is None
    with pytest.raises(KeyError):
        plant_config.remove_extraction_point(config, "pe_osmosis")
