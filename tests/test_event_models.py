from datetime import date, datetime, timedelta

import pytest

from scheduleshare.event_models import (
    CalendarEvent,
    ExtractedEventInfo,
    LocationCoordinate,
    PipelineOutcome,
    RoutePlan,
    RouteSegment,
    TransportationMode,
    draft_calendar_event,
    events_for_day,
)


def _segment(seconds, cost=2.75):
    arrival = datetime(2025, 8, 10, 12, 0)
    here = LocationCoordinate(40.7128, -74.0060)
    return RouteSegment(
        from_location=here,
        to_location=here,
        mode=TransportationMode.BUS,
        travel_time_seconds=seconds,
        cost=cost,
        instructions="Take the M5",
        departure_time=arrival - timedelta(seconds=seconds),
        arrival_time=arrival,
    )


def test_extracted_info_needs_only_raw_text():
    info = ExtractedEventInfo(raw_text="hello")
    assert info.title is None
    assert info.start_date_time is None
    assert info.confidence == 0.5


def test_draft_uses_extracted_times(new_york):
    start = datetime(2025, 8, 5, 18, 30, tzinfo=new_york)
    info = ExtractedEventInfo(raw_text="x", title="Jazz", start_date_time=start, location="Park", description="Fun")

    event = draft_calendar_event(info, now=datetime(2025, 6, 1, tzinfo=new_york))

    assert event.title == "Jazz"
    assert event.start_date == start
    assert event.end_date == start + timedelta(hours=1)
    assert event.location == "Park"
    assert event.notes == "Fun"
    assert event.extracted_info is info


def test_draft_defaults(new_york):
    now = datetime(2025, 6, 1, 9, 0, tzinfo=new_york)
    event = draft_calendar_event(ExtractedEventInfo(raw_text="?"), now)
    assert event.title == "New Event"
    assert event.start_date == now
    assert event.end_date == now + timedelta(hours=1)


def test_updated_keeps_identity(new_york):
    start = datetime(2025, 8, 5, 18, 30, tzinfo=new_york)
    event = CalendarEvent("Jazz", start, start + timedelta(hours=2), external_calendar_ref="EK-1")

    edited = event.updated(title="Jazz Night", location="Sheep Meadow", id="other")

    assert edited.id == event.id
    assert edited.external_calendar_ref == "EK-1"
    assert edited.title == "Jazz Night"
    assert event.title == "Jazz"
    assert edited.duration_minutes() == 120


def test_ids_are_unique(new_york):
    start = datetime(2025, 8, 5, tzinfo=new_york)
    assert CalendarEvent("a", start, start).id != CalendarEvent("a", start, start).id


@pytest.mark.parametrize("seconds, expected", [(0, "0m"), (900, "15m"), (3600, "1h 0m"), (5400, "1h 30m")])
def test_formatted_travel_time(seconds, expected):
    assert _segment(seconds).formatted_travel_time == expected


def test_formatted_cost():
    assert _segment(60, cost=2.75).formatted_cost == "$2.75"
    assert _segment(60, cost=0).formatted_cost == "$0.00"


def test_mode_labels():
    assert TransportationMode.RIDESHARE.display_name == "Rideshare"
    assert TransportationMode.from_label(" Walking ", TransportationMode.SUBWAY) is TransportationMode.WALKING
    assert TransportationMode.from_label("uber", TransportationMode.SUBWAY) is TransportationMode.SUBWAY
    assert TransportationMode.from_label(None, TransportationMode.BUS) is TransportationMode.BUS


def test_plan_to_dict():
    plan = RoutePlan(segments=[_segment(600)], total_travel_time_seconds=600, total_cost=2.75)
    data = plan.to_dict()
    assert data["totalTravelTime"] == 600
    assert data["segments"][0]["transportationMode"] == "bus"
    assert data["segments"][0]["arrivalTime"] == "2025-08-10T12:00:00"


def test_outcome_tags():
    assert not PipelineOutcome.ok(1).degraded
    fallback = PipelineOutcome.fallback(2, "transport_error")
    assert fallback.degraded
    assert fallback.reason == "transport_error"


def test_events_for_day(new_york):
    def at(day, hour):
        start = datetime(2025, 8, day, hour, 0, tzinfo=new_york)
        return CalendarEvent(f"{day}-{hour}", start, start + timedelta(hours=1))

    late, early, other = at(10, 18), at(10, 8), at(11, 9)
    selected = events_for_day([late, other, early], date(2025, 8, 10), new_york)
    assert [event.title for event in selected] == ["10-8", "10-18"]
