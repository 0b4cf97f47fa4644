# backend/run_local.py
from backend.lib.totalizer_core.config import default_config
from backend.lib.totalizer_core.io import parse_csv_string
from backend.lib.totalizer_core.processor import ConsumptionAnalyzer
from backend.lib.totalizer_core.selection import resolve_selection, selection_label
import sys
from pathlib import Path

def main(csv_path, selection="ALL"):
    text = Path(csv_path).read_text()
    readings = parse_csv_string(text)
    config = default_config()
    asset_ids = resolve_selection(config, selection)
    analyzer = ConsumptionAnalyzer(readings)

    summary = analyzer.summary(asset_ids)
    print(f"Parsed {len(readings)} readings - {selection_label(config, selection)}")
    print(f" total: {summary.total_energy:.1f} kWh, {summary.total_volume:.0f} m3")
    print(f" per day: {summary.avg_energy_per_day:.1f} kWh, {summary.avg_volume_per_day:.0f} m3")
    for d in analyzer.daily_series(asset_ids):
        print(f" - {d.date.isoformat()} : {d.energy:.1f} kWh, {d.volume:.0f} m3")

if __name__ == "__main__":
    csv = sys.argv[1] if len(sys.argv) > 1 else "tests/sample.csv"
    selection = sys.argv[2] if len(sys.argv) > 2 else "ALL"
    main(csv, selection)
