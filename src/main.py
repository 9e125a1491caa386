"""
Main entry point for the Mill Production Tracker.

Command-line interface over the production record store.

Usage Examples:
    # Statistics for every record, in KG
    mill-tracker stats

    # Night shift at Mill A during March, shown in Quintal
    mill-tracker stats --shift Night --location "Mill A" \\
        --from 2024-03-01 --to 2024-03-31 --unit Quintal

    # Full statistics as JSON
    mill-tracker stats --json

    # One record by batch id
    mill-tracker show BATCH-20240301-0001
"""

import argparse
import json
import logging
import sys

from src.services import production_record_service
from src.services.database import initialize_app_database
from src.services.dto import ProductionFilters
from src.services.exceptions import ServiceError
from src.services.production_stats_service import aggregate_production_stats
from src.services.unit_converter import WEIGHT_UNITS, format_quantity
from src.ui.utils.error_handler import handle_error
from src.utils.config import get_config
from src.utils.constants import OUTPUT_ITEM_NAMES, SHIFTS
from src.utils.datetime_utils import parse_iso_date


def _build_filters(args) -> ProductionFilters:
    return ProductionFilters(
        search=args.search,
        shift=args.shift,
        location=args.location,
        machine=args.machine,
        operator=args.operator,
        status=args.status,
        date_from=parse_iso_date(args.date_from) if args.date_from else None,
        date_to=parse_iso_date(args.date_to) if args.date_to else None,
    )


def stats_cmd(args) -> int:
    """Print aggregated statistics for the filtered records."""
    try:
        filters = _build_filters(args)
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    result = production_record_service.list_records(filters)
    stats = aggregate_production_stats(result.items, display_unit=args.unit)

    if args.as_json:
        print(json.dumps(stats.to_dict(), indent=2))
        return 0

    unit = stats.display_unit.value
    print(f"\nProduction Statistics ({unit})")
    print("-" * 40)
    print(f"Records: {stats.record_count}")
    print(f"Total input: {format_quantity(stats.total_input_consumption, unit)}")
    if stats.input_bag_count:
        print(f"Input bags: {stats.input_bag_count}")
    print(f"Total output: {format_quantity(stats.total_output, unit)}")
    print(f"Efficiency: {stats.overall_efficiency}%")
    print()
    for item_name in OUTPUT_ITEM_NAMES:
        total = stats.total_production_by_item.get(item_name, 0)
        average = stats.average_for(item_name)
        print(
            f"  {item_name}: total {format_quantity(total, unit)}, "
            f"average {format_quantity(average, unit)}"
        )
    if stats.unit_breakdown:
        print("\nBy recorded unit:")
        for unit_name, breakdown in stats.unit_breakdown.items():
            print(f"  {unit_name}: {breakdown.total_qty}")
    return 0


def show_cmd(args) -> int:
    """Print one production record."""
    record = production_record_service.get_record_by_batch_id(args.batch_id)
    if args.as_json:
        print(json.dumps(record.to_dict(include_relationships=True), indent=2))
        return 0

    print(f"\n{record.display_batch_id} [{record.status}]")
    print("-" * 40)
    print(f"Date: {record.production_date}  Shift: {record.shift}")
    print(f"Location: {record.location}  Machine: {record.machine or '-'}")
    print(f"Operator: {record.operator_name or '-'}")
    print(f"Input: {record.input_type} {format_quantity(record.input_quantity, record.input_unit)}")
    print("Outputs:")
    for output in record.outputs:
        print(f"  {output.item_name}: {output.quantity} {output.unit}")
    if record.attachments:
        print(f"Attachments: {', '.join(a.file_name for a in record.attachments)}")
    if record.remarks:
        print(f"Remarks: {record.remarks}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mill-tracker",
        description="Mill production records and statistics",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    stats_parser = subparsers.add_parser("stats", help="Aggregate production statistics")
    stats_parser.add_argument("--search", help="Match batch id, location, machine or operator")
    stats_parser.add_argument("--shift", choices=SHIFTS)
    stats_parser.add_argument("--location")
    stats_parser.add_argument("--machine")
    stats_parser.add_argument("--operator")
    stats_parser.add_argument("--status", choices=["In Production", "Finished"])
    stats_parser.add_argument("--from", dest="date_from", help="First production date (YYYY-MM-DD)")
    stats_parser.add_argument("--to", dest="date_to", help="Last production date (YYYY-MM-DD)")
    stats_parser.add_argument(
        "--unit", choices=WEIGHT_UNITS, default="KG", help="Display unit (default: KG)"
    )
    stats_parser.add_argument("--json", dest="as_json", action="store_true")

    show_parser = subparsers.add_parser("show", help="Show one production record")
    show_parser.add_argument("batch_id", help="Batch id, e.g. BATCH-20240301-0001")
    show_parser.add_argument("--json", dest="as_json", action="store_true")

    return parser


def main(argv=None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 1

    config = get_config()
    logging.getLogger(__name__).info(
        "Starting %s v%s (%s)", config.app_name, config.app_version, config.environment
    )
    initialize_app_database()

    try:
        if args.command == "stats":
            return stats_cmd(args)
        if args.command == "show":
            return show_cmd(args)
    except ServiceError as e:
        _, message = handle_error(e, operation=args.command.capitalize(), show_dialog=False)
        print(f"ERROR: {message}")
        return 1

    print(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
