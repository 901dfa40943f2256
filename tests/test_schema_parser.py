import json

from scheduleshare.schema_parser import (
    MALFORMED_RESPONSE,
    MAX_TRAVEL_TIME_SECONDS,
    MISSING_FIELD,
    ResponseShape,
    parse_event_info,
    parse_response,
    parse_route_plan,
)


def _segment(**overrides):
    segment = {
        "fromLocation": "Home",
        "toLocation": "Office",
        "transportationMode": "subway",
        "travelTime": 1800,
        "cost": 2.75,
        "instructions": "Take the A train",
    }
    segment.update(overrides)
    return segment


def _plan(segments, **overrides):
    plan = {"segments": segments, "totalTravelTime": 1800, "totalCost": 2.75}
    plan.update(overrides)
    return json.dumps(plan)


class TestEventInfo:
    def test_full_record(self):
        result = parse_event_info(json.dumps({
            "title": "Jazz Night",
            "startDateTime": "2025-08-05T18:30:00-04:00",
            "endDateTime": None,
            "location": "Sheep Meadow",
            "description": "Bring a blanket",
            "confidence": 0.8,
        }))
        assert result.ok
        assert result.value.title == "Jazz Night"
        assert result.value.start_date_time == "2025-08-05T18:30:00-04:00"
        assert result.value.end_date_time is None
        assert result.value.confidence == 0.8

    def test_optional_fields_absent(self):
        result = parse_event_info("{}")
        assert result.ok
        assert result.value.location is None
        assert result.value.description is None
        assert result.value.confidence is None

    def test_confidence_is_clamped(self):
        assert parse_event_info('{"confidence": 1.7}').value.confidence == 1.0
        assert parse_event_info('{"confidence": -2}').value.confidence == 0.0

    def test_not_json(self):
        result = parse_event_info("I could not find an event")
        assert not result.ok
        assert result.reason == MALFORMED_RESPONSE

    def test_null_document(self):
        result = parse_event_info("null")
        assert result.reason == MALFORMED_RESPONSE

    def test_wrong_field_type(self):
        assert parse_event_info('{"title": 42}').reason == MALFORMED_RESPONSE

    def test_confidence_expression_string(self):
        assert parse_event_info('{"confidence": "0.5 + 0.2"}').reason == MALFORMED_RESPONSE


class TestRoutePlan:
    def test_valid_plan(self):
        result = parse_route_plan(_plan([_segment()]))
        assert result.ok
        segment = result.value.segments[0]
        assert segment.from_location.address == "Home"
        assert segment.travel_time == 1800
        assert segment.cost == 2.75
        assert result.value.total_travel_time == 1800

    def test_expression_travel_time_rejected(self):
        result = parse_route_plan(_plan([_segment(travelTime="18 * 60")]))
        assert not result.ok
        assert result.reason == MALFORMED_RESPONSE
        assert "travelTime" in result.detail

    def test_numeric_string_rejected(self):
        assert parse_route_plan(_plan([_segment(cost="2.75")])).reason == MALFORMED_RESPONSE

    def test_boolean_rejected(self):
        assert parse_route_plan(_plan([_segment(travelTime=True)])).reason == MALFORMED_RESPONSE

    def test_fractional_travel_time_rejected(self):
        assert parse_route_plan(_plan([_segment(travelTime=90.5)])).reason == MALFORMED_RESPONSE

    def test_whole_float_travel_time_accepted(self):
        result = parse_route_plan(_plan([_segment(travelTime=900.0)]))
        assert result.value.segments[0].travel_time == 900

    def test_negative_cost_rejected(self):
        assert parse_route_plan(_plan([_segment(cost=-1)])).reason == MALFORMED_RESPONSE

    def test_missing_segment_field(self):
        segment = _segment()
        del segment["instructions"]
        result = parse_route_plan(_plan([segment]))
        assert result.reason == MISSING_FIELD

    def test_missing_totals(self):
        text = json.dumps({"segments": [_segment()], "totalTravelTime": 1800})
        assert parse_route_plan(text).reason == MISSING_FIELD

    def test_missing_segments(self):
        assert parse_route_plan('{"totalTravelTime": 0, "totalCost": 0}').reason == MISSING_FIELD

    def test_location_object_form(self):
        location = {"latitude": 40.7308, "longitude": -73.9976, "address": "Washington Square Park"}
        result = parse_route_plan(_plan([_segment(toLocation=location)]))
        to_location = result.value.segments[0].to_location
        assert to_location.address == "Washington Square Park"
        assert to_location.latitude == 40.7308

    def test_generic_entry_point(self):
        assert parse_response(_plan([]), ResponseShape.ROUTE_PLAN).ok
        assert parse_response("{}", ResponseShape.EVENT_INFO).ok

    def test_travel_time_over_a_day_rejected(self):
        result = parse_route_plan(_plan([_segment(travelTime=10**12)]))
        assert result.reason == MALFORMED_RESPONSE
        assert "travelTime" in result.detail

    def test_travel_time_of_a_day_accepted(self):
        assert parse_route_plan(_plan([_segment(travelTime=MAX_TRAVEL_TIME_SECONDS)])).ok


def test_decoder_recursion_is_malformed(monkeypatch):
    def too_deep(text):
        raise RecursionError("maximum recursion depth exceeded while decoding a JSON array")

    monkeypatch.setattr("scheduleshare.schema_parser.json.loads", too_deep)

    result = parse_event_info('{"title": "x"}')
    assert result.reason == MALFORMED_RESPONSE
    assert "recursion" in result.detail
    assert parse_route_plan(_plan([_segment()])).reason == MALFORMED_RESPONSE
