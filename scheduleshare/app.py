"""
Command line entry point.

    scheduleshare extract [FILE]        extract an event from OCR text (stdin if no FILE)
    scheduleshare plan EVENTS_JSON      plan the route between events

EVENTS_JSON is a list of {"title", "startDate", "endDate", "location"} objects.
"""

import argparse
import json
import sys
from datetime import timedelta
from typing import List, Optional

from scheduleshare.datetime_resolver import parse_iso_datetime
from scheduleshare.event_extractor import EventInfoExtractor
from scheduleshare.event_models import CalendarEvent, LocationCoordinate
from scheduleshare.llm_client import get_llm_client
from scheduleshare.logging_helper import Log
from scheduleshare.route_planner import RoutePlanner
from scheduleshare.settings_manager import get_operating_timezone, load_settings


def _read_text(path: Optional[str]) -> str:
    if path is None or path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as handle:
        return handle.read()


def load_events(path: str, zone) -> List[CalendarEvent]:
    """Read CalendarEvents from a JSON file; raises ValueError on bad input."""
    with open(path, encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, list):
        raise ValueError("events file must contain a JSON array")

    events = []
    for index, item in enumerate(data):
        if not isinstance(item, dict) or not item.get("title") or not item.get("startDate"):
            raise ValueError(f"event {index} needs at least 'title' and 'startDate'")
        start = parse_iso_datetime(item["startDate"], zone)
        if start is None:
            raise ValueError(f"event {index} has an invalid startDate: {item['startDate']!r}")
        end = parse_iso_datetime(item.get("endDate"), zone) or start + timedelta(hours=1)
        events.append(CalendarEvent(
            title=item["title"],
            start_date=start,
            end_date=end,
            location=item.get("location"),
            notes=item.get("notes"),
        ))
    return events


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="scheduleshare", description="Event extraction and route planning")
    parser.add_argument("--stub", action="store_true", help="use the offline stub LLM client")
    commands = parser.add_subparsers(dest="command", required=True)

    extract = commands.add_parser("extract", help="extract an event from OCR text")
    extract.add_argument("file", nargs="?", help="text file (default: stdin)")

    plan = commands.add_parser("plan", help="plan a route between events")
    plan.add_argument("events", help="JSON file with the day's events")
    plan.add_argument("--start", nargs=2, type=float, metavar=("LAT", "LNG"), help="starting coordinate")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line."""
    args = build_parser().parse_args(argv)

    Log.section("ScheduleShare")
    Log.info(f"Log file: {Log.get_log_path()}")

    settings = load_settings()
    client = get_llm_client(settings, force_stub=args.stub)

    if args.command == "extract":
        text = _read_text(args.file)
        if not text.strip():
            Log.error("No input text")
            return 2
        info = EventInfoExtractor(client, settings=settings).extract(text)
        print(json.dumps(info.to_dict(), indent=2, ensure_ascii=False))
        return 0

    try:
        events = load_events(args.events, get_operating_timezone(settings))
    except (OSError, ValueError) as e:
        Log.error(f"Could not load events: {e}")
        return 2

    start = LocationCoordinate(latitude=args.start[0], longitude=args.start[1]) if args.start else None
    plan = RoutePlanner(client, settings=settings).plan(events, start)
    print(json.dumps(plan.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
