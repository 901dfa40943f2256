"""
Data models for event extraction and route planning.
Defines ExtractedEventInfo (from text), CalendarEvent, and the route types
(LocationCoordinate, TransportationMode, RouteSegment, RoutePlan).
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Generic, List, Optional, TypeVar

DEFAULT_EVENT_DURATION = timedelta(hours=1)


@dataclass
class ExtractedEventInfo:
    """
    Event information pulled out of raw text.
    Every field except raw_text may be missing; confidence tells the caller
    whether the AI path (variable) or the fallback path (0.3) produced it.
    """
    raw_text: str
    title: Optional[str] = None
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    location: Optional[str] = None
    description: Optional[str] = None
    confidence: float = 0.5

    def to_dict(self) -> dict:
        return {
            "rawText": self.raw_text,
            "title": self.title,
            "startDateTime": self.start_date_time.isoformat() if self.start_date_time else None,
            "endDateTime": self.end_date_time.isoformat() if self.end_date_time else None,
            "location": self.location,
            "description": self.description,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class CalendarEvent:
    """
    A calendar entry. The id is assigned once and is the join key for every
    update/delete done by the surrounding application.
    """
    title: str
    start_date: datetime
    end_date: datetime
    location: Optional[str] = None
    notes: Optional[str] = None
    extracted_info: Optional[ExtractedEventInfo] = None
    external_calendar_ref: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def updated(self, **changes) -> "CalendarEvent":
        """Copy with edited fields; id and external_calendar_ref are kept."""
        changes.pop("id", None)
        changes.pop("external_calendar_ref", None)
        return replace(self, **changes)

    def duration_minutes(self) -> int:
        """Get event duration in minutes."""
        delta = self.end_date - self.start_date
        return int(delta.total_seconds() / 60)


@dataclass(frozen=True)
class LocationCoordinate:
    """Coordinates are advisory; most are a placeholder city-center point."""
    latitude: float
    longitude: float
    address: Optional[str] = None


class TransportationMode(Enum):
    WALKING = "walking"
    SUBWAY = "subway"
    BUS = "bus"
    TAXI = "taxi"
    RIDESHARE = "rideshare"
    DRIVING = "driving"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_label(cls, label: Optional[str], default: "TransportationMode") -> "TransportationMode":
        """Map a model-supplied label onto a mode, falling back to default."""
        if not label:
            return default
        try:
            return cls(label.strip().lower())
        except ValueError:
            return default


@dataclass(frozen=True)
class RouteSegment:
    """One leg of a route; arrival_time is the associated event's start."""
    from_location: LocationCoordinate
    to_location: LocationCoordinate
    mode: TransportationMode
    travel_time_seconds: int
    cost: float
    instructions: str
    departure_time: datetime
    arrival_time: datetime
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    @property
    def formatted_travel_time(self) -> str:
        minutes = self.travel_time_seconds // 60
        if minutes >= 60:
            return f"{minutes // 60}h {minutes % 60}m"
        return f"{minutes}m"

    @property
    def formatted_cost(self) -> str:
        return f"${self.cost:.2f}"

    def to_dict(self) -> dict:
        return {
            "id": str(self.id),
            "fromLocation": _coordinate_dict(self.from_location),
            "toLocation": _coordinate_dict(self.to_location),
            "transportationMode": self.mode.value,
            "travelTime": self.travel_time_seconds,
            "cost": self.cost,
            "instructions": self.instructions,
            "departureTime": self.departure_time.isoformat(),
            "arrivalTime": self.arrival_time.isoformat(),
        }


@dataclass(frozen=True)
class RoutePlan:
    segments: List[RouteSegment] = field(default_factory=list)
    total_travel_time_seconds: int = 0
    total_cost: float = 0.0

    @classmethod
    def empty(cls) -> "RoutePlan":
        return cls(segments=[], total_travel_time_seconds=0, total_cost=0.0)

    def to_dict(self) -> dict:
        return {
            "segments": [segment.to_dict() for segment in self.segments],
            "totalTravelTime": self.total_travel_time_seconds,
            "totalCost": self.total_cost,
        }


def _coordinate_dict(coordinate: LocationCoordinate) -> dict:
    return {
        "latitude": coordinate.latitude,
        "longitude": coordinate.longitude,
        "address": coordinate.address,
    }


T = TypeVar("T")


@dataclass(frozen=True)
class PipelineOutcome(Generic[T]):
    """
    Tagged result of a pipeline run.
    degraded is True when the value came from the deterministic fallback;
    reason names the failure that triggered it.
    """
    value: T
    degraded: bool = False
    reason: Optional[str] = None

    @classmethod
    def ok(cls, value: T) -> "PipelineOutcome[T]":
        return cls(value=value)

    @classmethod
    def fallback(cls, value: T, reason: str) -> "PipelineOutcome[T]":
        return cls(value=value, degraded=True, reason=reason)


def draft_calendar_event(info: ExtractedEventInfo, now: datetime) -> CalendarEvent:
    """
    Pre-fill a new CalendarEvent from extracted information.

    Title defaults to "New Event", start defaults to now, and a missing end
    becomes start + 1 hour. The extracted info is attached for reference.
    """
    start = info.start_date_time or now
    end = info.end_date_time or (start + DEFAULT_EVENT_DURATION)
    return CalendarEvent(
        title=info.title or "New Event",
        start_date=start,
        end_date=end,
        location=info.location,
        notes=info.description,
        extracted_info=info,
    )


def events_for_day(events: List[CalendarEvent], day, zone) -> List[CalendarEvent]:
    """Events whose start falls on the given civil day in zone, earliest first."""
    selected = []
    for event in events:
        start = event.start_date
        if start.tzinfo is None:
            start = start.replace(tzinfo=zone)
        if start.astimezone(zone).date() == day:
            selected.append(event)
    return sorted(selected, key=lambda event: _sort_key(event.start_date, zone))


def _sort_key(value: datetime, zone) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=zone)
