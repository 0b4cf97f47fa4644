"""
=============================================================================
PUMPING ENERGY TRACKER - MAIN FLASK APPLICATION
=============================================================================

Backend for the plant's pumping/energy control sheets. Operators register
counter readings (kWh, hours, m³) of pumps, VFDs and flow meters; this
server turns them into consumption figures for the dashboards:

- Configuration of extraction points and their assets
- Registering and deleting readings (single or CSV upload)
- Summary metrics and daily series for any selection of assets
- Interval report (table + CSV export)
- Backup / restore / demo data

Storage:
- Local JSON files (default)
- Amazon S3 (USE_S3_STORAGE=true)

How to run:
    python -m backend.app

Then visit: http://127.0.0.1:5000/metrics
=============================================================================
"""

# =============================================================================
# IMPORTS
# =============================================================================

from flask import Flask, request, jsonify, Response

from datetime import datetime

import os

# dotenv - Load environment variables from .env file
from dotenv import load_dotenv

# This must be called before accessing any environment variables
load_dotenv()

# =============================================================================
# CUSTOM LIBRARY IMPORTS
# =============================================================================

from backend.lib.repository import LocalJsonRepository, S3Repository

from backend.lib.totalizer_core import config as plant_config
from backend.lib.totalizer_core.demo import generate_demo_readings
from backend.lib.totalizer_core.grouping import sort_readings
from backend.lib.totalizer_core.io import (
    config_from_list,
    config_to_list,
    format_date,
    parse_csv_string,
    reading_from_dict,
    reading_to_dict,
)
from backend.lib.totalizer_core.processor import ConsumptionAnalyzer
from backend.lib.totalizer_core.report import build_interval_report, report_to_csv
from backend.lib.totalizer_core.selection import ALL, resolve_selection, selection_label
from backend.lib.totalizer_core.zones import zone_asset_ids, zone_titles

# =============================================================================
# STORAGE INITIALIZATION
# =============================================================================
# USE_S3_STORAGE=true keeps configuration and readings in an S3 bucket.
# Otherwise (or if S3 fails) they live as JSON files under DATA_DIR.

USE_S3 = os.getenv('USE_S3_STORAGE', 'false').lower() == 'true'
DATA_DIR = os.getenv('DATA_DIR', 'backend/data')
repository = None

if USE_S3:
    try:
        from backend.lib.s3_service import S3Service
        s3_service = S3Service()
        if not s3_service.create_bucket_if_not_exists():
            raise RuntimeError(f"bucket {s3_service.bucket_name} not available")
        repository = S3Repository(s3_service)
        print("S3 storage enabled")
    except Exception as e:
        print(f"S3 initialization failed: {e}. Using local storage.")
        USE_S3 = False

if repository is None:
    repository = LocalJsonRepository(DATA_DIR)

# =============================================================================
# FLASK APPLICATION INITIALIZATION
# =============================================================================

app = Flask(__name__)


@app.errorhandler(ValueError)
def handle_value_error(e):
    # Invalid input from the client (bad number, unknown asset type, ...)
    return jsonify({"error": str(e)}), 400


@app.errorhandler(KeyError)
def handle_key_error(e):
    return jsonify({"error": f"Not found: {e.args[0]}"}), 404

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def parse_reading_id(value: str):
    """
    Reading ids are numbers; older data may carry fractional ids.
    """
    try:
        return int(value)
    except ValueError:
        return float(value)


def interval_to_dict(iv, config):
    asset = config.find_asset(iv.asset_id)
    return {
        "assetId": iv.asset_id,
        "asset": asset.name if asset else iv.asset_id,
        "readingId": iv.reading_id,
        "start": format_date(iv.start),
        "end": format_date(iv.end),
        "elapsedHours": iv.elapsed_hours,
        "deltaKwh": iv.delta_kwh,
        "deltaM3": iv.delta_m3,
        "deltaHRun": iv.delta_h_run,
        "deltaHConn": iv.delta_h_conn,
        "power": iv.power,
        "norm24": iv.norm24,
    }


def current_selection():
    """
    Returns (config, selection, asset_ids) for the ?selection= parameter.
    Missing parameter means the whole plant.
    """
    config = repository.load_config()
    selection = request.args.get("selection", ALL)
    return config, selection, resolve_selection(config, selection)

# =============================================================================
# API ROUTES - CONFIGURATION
# =============================================================================

@app.route("/config", methods=["GET"])
def get_config():
    return jsonify({"config": config_to_list(repository.load_config())})


@app.route("/config", methods=["PUT"])
def put_config():
    """
    Replace the whole configuration.

    Request Body (JSON):
        {"config": [{"id": "pe_64", "name": "Pila 64", "assets": [...]}]}
    """
    data = request.get_json(silent=True) or {}
    if "config" not in data:
        return jsonify({"error": "config required"}), 400
    config = config_from_list(data["config"])
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)})


@app.route("/config/points", methods=["POST"])
def add_point():
    """
    Add an extraction point.

    Request Body (JSON):
        {"id": "pe_new", "name": "Nuevo Punto"}
    """
    data = request.get_json(silent=True) or {}
    config = plant_config.add_extraction_point(
        repository.load_config(),
        data.get("id") or f"pe_{int(datetime.now().timestamp() * 1000)}",
        data.get("name", "Nuevo Punto"),
    )
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)}), 201


@app.route("/config/points/<point_id>", methods=["PATCH"])
def rename_point(point_id):
    data = request.get_json(silent=True) or {}
    if not data.get("name"):
        return jsonify({"error": "name required"}), 400
    config = plant_config.rename_extraction_point(repository.load_config(), point_id, data["name"])
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)})


@app.route("/config/points/<point_id>", methods=["DELETE"])
def remove_point(point_id):
    config = plant_config.remove_extraction_point(repository.load_config(), point_id)
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)})


@app.route("/config/points/<point_id>/assets", methods=["POST"])
def add_asset(point_id):
    """
    Add an asset to an extraction point.

    Request Body (JSON):
        {"id": "b_65", "name": "Bomba Pila 65", "type": "SS"}
    """
    data = request.get_json(silent=True) or {}
    config = plant_config.add_asset(
        repository.load_config(),
        point_id,
        data.get("id") or f"asset_{int(datetime.now().timestamp() * 1000)}",
        data.get("name", "Nuevo Equipo"),
        data.get("type", "SS"),
    )
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)}), 201


@app.route("/config/points/<point_id>/assets/<asset_id>", methods=["PATCH"])
def rename_asset(point_id, asset_id):
    data = request.get_json(silent=True) or {}
    if not data.get("name"):
        return jsonify({"error": "name required"}), 400
    config = plant_config.rename_asset(repository.load_config(), point_id, asset_id, data["name"])
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)})


@app.route("/config/points/<point_id>/assets/<asset_id>", methods=["DELETE"])
def remove_asset(point_id, asset_id):
    # Readings of the asset stay in storage
    config = plant_config.remove_asset(repository.load_config(), point_id, asset_id)
    repository.save_config(config)
    return jsonify({"config": config_to_list(config)})

# =============================================================================
# API ROUTES - READINGS
# =============================================================================

@app.route("/readings", methods=["GET"])
def get_readings():
    """
    Raw readings, newest first.

    Query Parameters:
        limit (optional): only return the N most recent readings
    """
    readings = sort_readings(repository.load_readings(), descending=True)
    limit = request.args.get("limit")
    if limit:
        try:
            limit = int(limit)
        except ValueError:
            return jsonify({"error": "limit must be an integer"}), 400
        if limit < 0:
            return jsonify({"error": "limit must not be negative"}), 400
        readings = readings[:limit]
    return jsonify({"readings": [reading_to_dict(r) for r in readings]})


@app.route("/readings", methods=["POST"])
def add_reading():
    """
    Register a reading.

    Request Body (JSON):
        {"assetId": "b_tbo_3", "date": "2025-11-01T08:00", "kwh": 15230.5, "h_run": 812.4}

    Only the fields the operator filled in are sent; "date" defaults to now.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "JSON object required"}), 400
    data = dict(data, id=None)
    if not data.get("date"):
        data["date"] = format_date(datetime.now().replace(second=0, microsecond=0))
    reading = repository.add_reading(reading_from_dict(data))
    return jsonify(reading_to_dict(reading)), 201


@app.route("/readings/<reading_id>", methods=["DELETE"])
def delete_reading(reading_id):
    try:
        rid = parse_reading_id(reading_id)
    except ValueError:
        return jsonify({"error": "reading id must be a number"}), 400
    if not repository.delete_reading(rid):
        return jsonify({"error": f"Reading {reading_id} not found"}), 404
    return jsonify({"deleted": rid})


@app.route("/upload", methods=["POST"])
def upload():
    """
    Bulk import of readings from a CSV file.

    Expected CSV format:
        asset_id,date,kwh,h_conn,h_run,m3
        b_tbo_3,2025-11-01T08:00,15230.5,850.2,812.4,
        fit_tbo_3,2025-11-01T08:05,,,,402113
    """
    if "file" not in request.files:
        return jsonify({"error": "No file uploaded"}), 400

    content = request.files["file"].read().decode("utf-8")
    existing = repository.load_readings()
    first_id = max((r.id for r in existing if r.id is not None), default=0) + 1
    readings = parse_csv_string(content, first_id=first_id)
    count = repository.add_readings(readings)
    print(f"Imported {count} readings")
    return jsonify({"processed_count": count}), 202

# =============================================================================
# API ROUTES - METRICS
# =============================================================================

@app.route("/metrics", methods=["GET"])
def metrics():
    """
    Summary metrics for a selection.

    Query Parameters:
        selection (optional): ALL (default), an extraction point id or an asset id

    Example Response:
        {
            "selection": "pe_64",
            "label": "Pila 64",
            "assetIds": ["b_64", "fit_64"],
            "totalEnergy": 14210.0, "totalVolume": 39000.0,
            "avgEnergyPerDay": 473.7, "avgVolumePerDay": 1300.0,
            "hasData": true,
            "days": 30
        }
    """
    config, selection, asset_ids = current_selection()
    analyzer = ConsumptionAnalyzer(repository.load_readings())
    summary = analyzer.summary(asset_ids)
    daily = analyzer.daily_series(asset_ids)

    return jsonify({
        "selection": selection,
        "label": selection_label(config, selection),
        "assetIds": asset_ids,
        "totalEnergy": summary.total_energy,
        "totalVolume": summary.total_volume,
        "avgEnergyPerDay": summary.avg_energy_per_day,
        "avgVolumePerDay": summary.avg_volume_per_day,
        "hasData": summary.has_data,
        "days": len(daily),
    })


@app.route("/daily", methods=["GET"])
def daily():
    """
    Energy and volume per calendar day for a selection (chart data).
    """
    config, selection, asset_ids = current_selection()
    analyzer = ConsumptionAnalyzer(repository.load_readings())
    data = [
        {"date": d.date.isoformat(), "energy": d.energy, "volume": d.volume}
        for d in analyzer.daily_series(asset_ids)
    ]
    return jsonify({"selection": selection, "data": data})


@app.route("/intervals", methods=["GET"])
def intervals():
    """
    Per-asset intervals (deltas, power, 24h projection) for a selection.
    """
    config, selection, asset_ids = current_selection()
    analyzer = ConsumptionAnalyzer(repository.load_readings())
    by_asset = analyzer.intervals(asset_ids)
    return jsonify({
        "selection": selection,
        "intervals": {aid: [interval_to_dict(iv, config) for iv in ivs] for aid, ivs in by_asset.items()},
    })


@app.route("/overview", methods=["GET"])
def overview():
    """
    Plant overview: summary metrics for each zone
    (chemical plant TBO, piles, PES ingress).
    """
    config = repository.load_config()
    analyzer = ConsumptionAnalyzer(repository.load_readings())
    titles = zone_titles()

    zones = []
    for key, asset_ids in zone_asset_ids(config).items():
        summary = analyzer.summary(asset_ids)
        zones.append({
            "zone": key,
            "title": titles[key],
            "assetIds": asset_ids,
            "totalEnergy": summary.total_energy,
            "totalVolume": summary.total_volume,
            "avgEnergyPerDay": summary.avg_energy_per_day,
            "avgVolumePerDay": summary.avg_volume_per_day,
            "hasData": summary.has_data,
        })
    return jsonify({"zones": zones})


@app.route("/report.csv", methods=["GET"])
def report_csv():
    """
    Interval report of every asset as CSV, newest interval first.
    """
    rows = build_interval_report(repository.load_config(), repository.load_readings())
    filename = f"Reporte_Bombeo_{datetime.now().strftime('%Y-%m-%d')}.csv"
    return Response(
        report_to_csv(rows),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )

# =============================================================================
# API ROUTES - BACKUP / DEMO / RESET
# =============================================================================

@app.route("/backup", methods=["GET"])
def backup():
    return jsonify(repository.backup())


@app.route("/restore", methods=["POST"])
def restore():
    """
    Overwrite configuration and readings with a backup document
    ({"config": [...], "readings": [...]}).
    """
    data = request.get_json(silent=True)
    count = repository.restore(data)
    print(f"Restored backup with {count} readings")
    return jsonify({"message": "restored", "readings_count": count})


@app.route("/demo", methods=["POST"])
def demo():
    """
    Replace all readings with generated demo data.

    Request Body (JSON, optional):
        {"days": 30, "seed": 42}
    """
    data = request.get_json(silent=True) or {}
    try:
        days = int(data.get("days", 30))
        seed = data.get("seed")
        seed = int(seed) if seed is not None else None
    except (TypeError, ValueError):
        return jsonify({"error": "days and seed must be integers"}), 400

    readings = generate_demo_readings(repository.load_config(), days=days, seed=seed)
    repository.save_readings(readings)
    return jsonify({"message": f"Generated {days} days of demo data", "readings_count": len(readings)})


@app.route("/reset", methods=["POST"])
def reset():
    # Back to the default configuration and no readings
    repository.clear()
    return jsonify({"message": "All data deleted"})


@app.route("/storage/status", methods=["GET"])
def storage_status():
    return jsonify({
        "backend": repository.backend,
        "s3_enabled": isinstance(repository, S3Repository),
        "bucket_name": repository.s3.bucket_name if isinstance(repository, S3Repository) else None,
        "data_dir": str(repository.data_dir) if isinstance(repository, LocalJsonRepository) else None,
    })


if __name__ == "__main__":
    app.run(debug=True)
