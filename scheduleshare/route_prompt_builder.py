"""
Prompt construction for route planning.
"""

import json
from datetime import datetime
from typing import Optional, Sequence

from scheduleshare.event_models import CalendarEvent, LocationCoordinate

NO_LOCATION = "No location"

# Shape shown to the model; travelTime/cost are literal numbers on purpose
_EXAMPLE_RESPONSE = {
    "segments": [
        {
            "fromLocation": "Starting Point",
            "toLocation": "First Event Location",
            "transportationMode": "subway",
            "travelTime": 1800,
            "cost": 2.75,
            "instructions": "Take the subway from Starting Point to First Event Location"
        },
        {
            "fromLocation": "First Event Location",
            "toLocation": "Second Event Location",
            "transportationMode": "walking",
            "travelTime": 900,
            "cost": 0,
            "instructions": "Walk from First Event Location to Second Event Location"
        }
    ],
    "totalTravelTime": 2700,
    "totalCost": 2.75
}


def format_event_time(value: datetime, zone) -> str:
    """Medium date + short time in the operating zone, e.g. 'Aug 10, 2025, 12:00 PM'."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    local = value.astimezone(zone)
    return local.strftime("%b %d, %Y, %I:%M %p").replace(" 0", " ")


def _describe_start(start: Optional[LocationCoordinate]) -> str:
    if start is None:
        return "User's current location is not available; the first segment starts at a reasonable Starting Point near the first event"
    label = f" ({start.address})" if start.address else ""
    return f"User's current location is available: {start.latitude:.4f}, {start.longitude:.4f}{label}"


def build_route_prompt(
    events: Sequence[CalendarEvent],
    start: Optional[LocationCoordinate],
    now: datetime,
    zone,
) -> str:
    """
    Build the user prompt for route planning.

    Args:
        events: Events in visiting order
        start: Optional starting coordinate
        now: Current instant
        zone: Operating timezone used for every displayed time

    Returns:
        Prompt text requiring exactly len(events) chained segments
    """
    count = len(events)

    event_details = "\n".join(
        f"Event {index}: {event.title}\n"
        f"Time: {format_event_time(event.start_date, zone)}\n"
        f"Location: {event.location or NO_LOCATION}"
        for index, event in enumerate(events, start=1)
    )
    event_times = ", ".join(f"{event.title}: {format_event_time(event.start_date, zone)}" for event in events)

    origin = "User Location" if start is not None else "Starting Point"
    chain = " → ".join([origin] + [f"Event {index}" for index in range(1, count + 1)])

    return (
        "Create realistic route segments for these events.\n\n"
        "Events for the day:\n"
        f"{event_details}\n\n"
        f"Event Times: {event_times}\n"
        f"Location: {_describe_start(start)}\n"
        f"Current time: {format_event_time(now, zone)}\n\n"
        f"CRITICAL: You must create exactly {count} route segments, one arriving at each event, chained in this order:\n"
        f"{chain}\n\n"
        "IMPORTANT RULES:\n"
        f"- First segment: {origin} → first event location\n"
        "- Middle segments: each event location → next event location\n"
        "- Last segment: second-to-last event location → last event location\n"
        "- NO segments that start and end at the same location\n"
        "- Consider event timing when choosing transportation (rush hour vs. off-peak)\n"
        "- transportationMode must be one of: walking, subway, bus, taxi, rideshare, driving\n\n"
        "Return ONLY valid JSON in this exact format:\n"
        f"{json.dumps(_EXAMPLE_RESPONSE, indent=2, ensure_ascii=False)}\n\n"
        "Consider:\n"
        "1. Real local transportation options (subway, bus, walking, rideshare)\n"
        "2. Actual travel times between locations\n"
        "3. Realistic costs (walking is free)\n"
        "4. Time of day and typical travel patterns\n\n"
        f"IMPORTANT: You must create exactly {count} segments for {count} events.\n"
        "CRITICAL: All travelTime values are seconds and must be actual numbers (e.g., 1800, 900) NOT expressions (e.g., 18 * 60). "
        "The same applies to cost, totalTravelTime and totalCost.\n"
        "Return ONLY the JSON object, no additional text or markdown."
    )
