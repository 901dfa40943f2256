"""
Fallback route plan used when the LLM path fails.
One subway leg per event, chained from the starting point.
"""

from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from scheduleshare.event_models import (
    CalendarEvent,
    LocationCoordinate,
    RoutePlan,
    RouteSegment,
    TransportationMode,
)
from scheduleshare.location_resolver import LandmarkLocationResolver, LocationResolver
from scheduleshare.logging_helper import Log

FALLBACK_MODE = TransportationMode.SUBWAY
FALLBACK_TRAVEL_TIME_SECONDS = 1800  # 30 minutes
FALLBACK_COST = 2.75


def departure_before(arrival: datetime, seconds: int) -> datetime:
    """arrival - seconds, clamped to the earliest representable moment."""
    try:
        return arrival - timedelta(seconds=seconds)
    except OverflowError:
        return arrival.replace(year=1, month=1, day=1, hour=0, minute=0, second=0, microsecond=0)


def fallback_segment(
    event: CalendarEvent,
    from_location: LocationCoordinate,
    to_location: LocationCoordinate,
) -> RouteSegment:
    """A fixed subway leg arriving at event.start_date."""
    return RouteSegment(
        from_location=from_location,
        to_location=to_location,
        mode=FALLBACK_MODE,
        travel_time_seconds=FALLBACK_TRAVEL_TIME_SECONDS,
        cost=FALLBACK_COST,
        instructions=f"Take subway to {event.title}",
        departure_time=departure_before(event.start_date, FALLBACK_TRAVEL_TIME_SECONDS),
        arrival_time=event.start_date,
    )


def fallback_segments(
    events: Sequence[CalendarEvent],
    origin: LocationCoordinate,
    resolver: LocationResolver,
) -> List[RouteSegment]:
    segments = []
    current = origin
    for event in events:
        destination = resolver.resolve(event.location)
        segments.append(fallback_segment(event, current, destination))
        current = destination
    return segments


def build_fallback_plan(
    events: Sequence[CalendarEvent],
    start: Optional[LocationCoordinate] = None,
    resolver: Optional[LocationResolver] = None,
) -> RoutePlan:
    """
    Synthesize a route plan without the LLM.

    Args:
        events: Events in visiting order
        start: Optional starting coordinate; the resolver's starting point otherwise
        resolver: Location resolver for event locations

    Returns:
        RoutePlan with exactly len(events) segments. Never raises.
    """
    resolver = resolver or LandmarkLocationResolver()
    origin = start or resolver.starting_point()

    segments = fallback_segments(events, origin, resolver)
    plan = RoutePlan(
        segments=segments,
        total_travel_time_seconds=FALLBACK_TRAVEL_TIME_SECONDS * len(segments),
        total_cost=FALLBACK_COST * len(segments),
    )

    Log.info(f"Fallback route plan with {len(segments)} segments")
    Log.kv({
        "stage": "fallback_route",
        "result": "success",
        "segments": len(segments),
        "total_travel_time": plan.total_travel_time_seconds,
        "total_cost": plan.total_cost
    })
    return plan
