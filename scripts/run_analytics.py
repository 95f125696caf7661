#!/usr/bin/env python3
"""
Run a JSON file of detection records through the complete analytics pipeline
and print the report.

Usage:
    uv run python scripts/run_analytics.py <records.json>
    uv run python scripts/run_analytics.py detections.json --range week --now 2025-05-01T12:00
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from analytics_engine import DetectionAnalyticsEngine
from config import Config
from exceptions import AnalyticsError

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)


def load_records(path: Path) -> list:
    """Load records from a JSON array or an object with a "detections"/"data" list."""
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        for key in ("detections", "data", "results"):
            if isinstance(payload.get(key), list):
                return payload[key]
    return payload


def print_report(report) -> None:
    print(f"\n{'='*60}")
    print(f"Detection Analytics Report")
    print(f"{'='*60}")
    print(f"Generated: {report.generated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"Range: {report.date_range}")
    print(f"Detections: {report.total_detections}  Species: {report.total_species}")
    print(f"Today: {report.today.detections} detections, {report.today.species} species")
    print(f"{'='*60}\n")

    print(f"{'─'*60}")
    print("Top species")
    print(f"{'─'*60}")
    for stat in report.species_stats[:10]:
        print(f"  {stat.name:<30} {stat.count:>6}  avg conf {stat.avg_confidence:.1%}")

    diversity = report.diversity
    print(f"\n{'─'*60}")
    print("Diversity")
    print(f"{'─'*60}")
    print(f"  Shannon:  {diversity.shannon.value:.3f} ({diversity.shannon.interpretation})")
    print(f"  Simpson:  {diversity.simpson.value:.3f} ({diversity.simpson.interpretation})")
    print(f"  Evenness: {diversity.evenness.value:.3f} ({diversity.evenness.interpretation})")
    print(f"  Richness: {diversity.richness}")

    print(f"\n{'─'*60}")
    print("Migration")
    print(f"{'─'*60}")
    for profile in report.migration[:15]:
        next_date = profile.prediction.next_date.isoformat() if profile.prediction.next_date else "-"
        print(f"  {profile.species:<30} {profile.pattern_type.value:<10} "
              f"{profile.prediction.status.value:<10} {next_date:<12} {profile.confidence_level.value}")

    print(f"\n{'─'*60}")
    print("Estimated individuals")
    print(f"{'─'*60}")
    for estimate in report.individuals[:10]:
        print(f"  {estimate.species:<30} {estimate.cluster_count:>4} visits "
              f"({estimate.avg_cluster_size} detections each)")

    print(f"\n{'─'*60}")
    print("Insights")
    print(f"{'─'*60}")
    for insight in report.insights:
        print(f"  {insight.icon} {insight.title}: {insight.text}")
    print()


def print_forecast(forecast) -> None:
    print(f"{'─'*60}")
    print("Peak activity forecast")
    print(f"{'─'*60}")
    for day in forecast.peak_activity:
        marker = " (today)" if day.is_today else ""
        print(f"  {day.day_name:<10} {day.time_range}  peak {day.peak_activity:>4}  "
              f"{day.confidence}{marker}")

    print(f"\n{'─'*60}")
    print("Next expected detections")
    print(f"{'─'*60}")
    for item in forecast.next_detections[:10]:
        print(f"  {item.species:<30} {item.message} ({item.confidence})")

    if forecast.co_occurrences:
        print(f"\n{'─'*60}")
        print("Heard together")
        print(f"{'─'*60}")
        for pair in forecast.co_occurrences[:10]:
            print(f"  {pair.species1} + {pair.species2}: {pair.count} hours")

    if forecast.late_arrivals:
        print(f"\n{'─'*60}")
        print("Late spring arrivals")
        print(f"{'─'*60}")
        for late in forecast.late_arrivals[:10]:
            print(f"  {late.species:<30} expected {late.expected_date.isoformat()} "
                  f"({late.days_late} days late)")

    print(f"\nMigrants detected: {', '.join(forecast.migrants) or 'none'}")
    print()


def main():
    parser = argparse.ArgumentParser(
        description="Run detection records through the analytics pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  uv run python scripts/run_analytics.py detections.json
  uv run python scripts/run_analytics.py detections.json --range month
  uv run python scripts/run_analytics.py detections.json --forecast --compare "Blue Jay" "Northern Cardinal"
        """
    )
    parser.add_argument("records_path", type=Path, help="Path to a JSON file of detection records")
    parser.add_argument("--range", dest="date_range", default="all",
                        choices=["all", "today", "week", "month"], help="Date range to analyze")
    parser.add_argument("--now", type=datetime.fromisoformat, default=None,
                        help="Reference time (ISO format), defaults to the current time")
    parser.add_argument("--overdue", action="store_true", help="Also check for overdue visitors")
    parser.add_argument("--forecast", action="store_true",
                        help="Also print peak-activity, next-detection and late-arrival forecasts")
    parser.add_argument("--compare", nargs="+", metavar="SPECIES", default=None,
                        help="Compare hourly activity of two or more species")

    args = parser.parse_args()

    if not args.records_path.exists():
        print(f"Error: Records file not found: {args.records_path}")
        sys.exit(1)

    try:
        engine = DetectionAnalyticsEngine(Config())
        records = load_records(args.records_path)
        report = engine.analyze(records, now=args.now, date_range=args.date_range)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON in {args.records_path}: {e}")
        sys.exit(1)
    except AnalyticsError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print_report(report)

    if args.forecast:
        print_forecast(engine.forecast(records, now=args.now))

    if args.compare:
        comparison = engine.compare_species(args.compare, records, now=args.now)
        if comparison is None:
            print("Give at least two species to compare")
        else:
            for line in comparison.summary:
                print(f"  {line}")
            print()

    if args.overdue:
        result = engine.check_overdue(records, now=args.now)
        for alert in result.alerts:
            print(f"{alert.title}\n  {alert.message}")
        if not result.alerts:
            print("No overdue visitors")


if __name__ == "__main__":
    main()
