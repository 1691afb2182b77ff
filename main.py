"""Command-line entry point: run anomaly detection and a forecast over a JSON export."""

import json
import sys
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from app.core.config import get_settings
from app.core.logging_config import configure_logging
from app.services.analytics_service import AnalyticsService
from src.analytics import AnalyticsError, DailyMetricRecord, MetricKind

_RECORDS = TypeAdapter(List[DailyMetricRecord])


def load_records(file_path: Path) -> List[DailyMetricRecord]:
    """
    Load daily records from a JSON file.

    Accepts either a bare list of records or an object with a ``records`` key.
    """
    payload = json.loads(file_path.read_text())
    if isinstance(payload, dict):
        payload = payload.get("records", [])
    return _RECORDS.validate_python(payload)


def run_analysis(file_path: str, metric: str = "transactions", days: int = None) -> int:
    """
    Print the anomaly feed and a forecast feed for one merchant export.

    Returns:
        Process exit code
    """
    settings = get_settings()
    service = AnalyticsService(settings)

    path = Path(file_path)
    if not path.exists():
        print(f"File not found: {path}")
        return 1

    try:
        records = load_records(path)
        metric_kind = MetricKind.from_string(metric)
    except (ValueError, ValidationError) as e:
        print(f"Could not read input: {e}")
        return 1

    merchant_id = path.stem
    print(f"\n{'='*80}")
    print(f"ANOMALIES ({len(records)} days of records)")
    print(f"{'='*80}\n")
    try:
        print(service.anomaly_feed(merchant_id, records).model_dump_json(indent=2))
    except AnalyticsError as e:
        print(f"Anomaly detection failed: {e}")
        return 1

    print(f"\n{'='*80}")
    print(f"FORECAST ({metric_kind.value})")
    print(f"{'='*80}\n")
    try:
        print(service.forecast_feed(merchant_id, records, metric_kind, days).model_dump_json(indent=2))
    except AnalyticsError as e:
        print(f"Forecast unavailable: {e}")
        return 1

    return 0


def main():
    """Main entry point."""
    if len(sys.argv) < 2:
        print("Usage: python main.py <records.json> [metric] [days]")
        print("\nMetrics: transactions, revenue, customers, cashback")
        print("\nExamples:")
        print("  python main.py data/merchant_42.json")
        print("  python main.py data/merchant_42.json revenue 14")
        sys.exit(1)

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    file_path = sys.argv[1]
    metric = sys.argv[2] if len(sys.argv) > 2 else "transactions"
    days = int(sys.argv[3]) if len(sys.argv) > 3 else None

    sys.exit(run_analysis(file_path, metric, days))


if __name__ == "__main__":
    main()
