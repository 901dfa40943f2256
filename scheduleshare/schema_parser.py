"""
Schema parser for sanitized LLM responses.

Decodes text into EventInfoResponse or RoutePlanResponse. Structural problems
are reported through ParseResult instead of being raised, so the calling
pipeline can route to its fallback.
"""

import json
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, List, Optional, TypeVar, Union

from scheduleshare.logging_helper import Log

MALFORMED_RESPONSE = "malformed_response"
MISSING_FIELD = "missing_field"

# Upper bound for a single leg (one day)
MAX_TRAVEL_TIME_SECONDS = 24 * 60 * 60


class ResponseShape(Enum):
    EVENT_INFO = "eventInfo"
    ROUTE_PLAN = "routePlan"


@dataclass
class EventInfoResponse:
    """Event information as returned by the model, dates still strings."""
    title: Optional[str] = None
    start_date_time: Optional[str] = None
    end_date_time: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    confidence: Optional[float] = None


@dataclass
class LocationData:
    """A segment endpoint: address text plus coordinates when the model sent them."""
    address: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None


@dataclass
class RouteSegmentData:
    from_location: LocationData
    to_location: LocationData
    transportation_mode: str
    travel_time: int
    cost: float
    instructions: str


@dataclass
class RoutePlanResponse:
    segments: List[RouteSegmentData] = field(default_factory=list)
    total_travel_time: int = 0
    total_cost: float = 0.0


T = TypeVar("T")


@dataclass
class ParseResult(Generic[T]):
    value: Optional[T] = None
    reason: Optional[str] = None
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


class _SchemaError(ValueError):
    """Internal signal; never leaves this module."""

    def __init__(self, reason: str, detail: str):
        super().__init__(detail)
        self.reason = reason
        self.detail = detail


def _require(data: dict, key: str, where: str) -> Any:
    if key not in data or data[key] is None:
        raise _SchemaError(MISSING_FIELD, f"{where}: '{key}' is required")
    return data[key]


def _optional_string(data: dict, key: str, where: str) -> Optional[str]:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be a string, got {type(value).__name__}")
    value = value.strip()
    return value or None


def _string(value: Any, key: str, where: str) -> str:
    if not isinstance(value, str):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be a string, got {type(value).__name__}")
    return value.strip()


def _number(value: Any, key: str, where: str) -> float:
    # Strings are never evaluated, so "18 * 60" is rejected here
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be a number, got {value!r}")
    if not math.isfinite(value):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be finite, got {value!r}")
    return value


def _non_negative_int(value: Any, key: str, where: str) -> int:
    number = _number(value, key, where)
    if isinstance(number, float) and not number.is_integer():
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be a whole number, got {value!r}")
    if number < 0:
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must not be negative, got {value!r}")
    return int(number)


def _travel_time(value: Any, where: str) -> int:
    seconds = _non_negative_int(value, "travelTime", where)
    if seconds > MAX_TRAVEL_TIME_SECONDS:
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: 'travelTime' is implausibly large, got {value!r}")
    return seconds


def _non_negative_float(value: Any, key: str, where: str) -> float:
    number = _number(value, key, where)
    if number < 0:
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must not be negative, got {value!r}")
    return float(number)


def _location(value: Any, key: str, where: str) -> LocationData:
    if isinstance(value, str):
        return LocationData(address=value.strip())
    if isinstance(value, dict):
        # Object form: {"latitude": .., "longitude": .., "address": ..}
        address = _string(_require(value, "address", f"{where}.{key}"), "address", f"{where}.{key}")
        latitude = value.get("latitude")
        longitude = value.get("longitude")
        if latitude is None or longitude is None:
            return LocationData(address=address)
        return LocationData(
            address=address,
            latitude=float(_number(latitude, "latitude", f"{where}.{key}")),
            longitude=float(_number(longitude, "longitude", f"{where}.{key}")),
        )
    raise _SchemaError(MALFORMED_RESPONSE, f"{where}: '{key}' must be a string or object, got {type(value).__name__}")


def _load_object(text: str) -> dict:
    try:
        data = json.loads(text)
    except (ValueError, TypeError, RecursionError) as e:
        raise _SchemaError(MALFORMED_RESPONSE, f"invalid JSON: {e}")
    if not isinstance(data, dict):
        raise _SchemaError(MALFORMED_RESPONSE, f"expected a JSON object, got {type(data).__name__}")
    return data


def _decode_event_info(text: str) -> EventInfoResponse:
    data = _load_object(text)
    where = "eventInfo"

    confidence = data.get("confidence")
    if confidence is not None:
        confidence = min(1.0, max(0.0, float(_number(confidence, "confidence", where))))

    return EventInfoResponse(
        title=_optional_string(data, "title", where),
        start_date_time=_optional_string(data, "startDateTime", where),
        end_date_time=_optional_string(data, "endDateTime", where),
        location=_optional_string(data, "location", where),
        description=_optional_string(data, "description", where),
        confidence=confidence,
    )


def _decode_segment(data: Any, index: int) -> RouteSegmentData:
    where = f"segments[{index}]"
    if not isinstance(data, dict):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: expected an object, got {type(data).__name__}")
    return RouteSegmentData(
        from_location=_location(_require(data, "fromLocation", where), "fromLocation", where),
        to_location=_location(_require(data, "toLocation", where), "toLocation", where),
        transportation_mode=_string(_require(data, "transportationMode", where), "transportationMode", where),
        travel_time=_travel_time(_require(data, "travelTime", where), where),
        cost=_non_negative_float(_require(data, "cost", where), "cost", where),
        instructions=_string(_require(data, "instructions", where), "instructions", where),
    )


def _decode_route_plan(text: str) -> RoutePlanResponse:
    data = _load_object(text)
    where = "routePlan"

    raw_segments = _require(data, "segments", where)
    if not isinstance(raw_segments, list):
        raise _SchemaError(MALFORMED_RESPONSE, f"{where}: 'segments' must be an array")

    return RoutePlanResponse(
        segments=[_decode_segment(item, index) for index, item in enumerate(raw_segments)],
        total_travel_time=_non_negative_int(_require(data, "totalTravelTime", where), "totalTravelTime", where),
        total_cost=_non_negative_float(_require(data, "totalCost", where), "totalCost", where),
    )


_DECODERS = {
    ResponseShape.EVENT_INFO: _decode_event_info,
    ResponseShape.ROUTE_PLAN: _decode_route_plan,
}


def parse_response(text: str, shape: ResponseShape) -> ParseResult[Union[EventInfoResponse, RoutePlanResponse]]:
    """
    Decode sanitized text into the typed record for shape.

    Args:
        text: Sanitized response text
        shape: Which response record to decode

    Returns:
        ParseResult with value set on success, reason/detail set on failure
    """
    try:
        value = _DECODERS[shape](text)
    except _SchemaError as e:
        Log.warn(f"Could not parse {shape.value} response: {e.detail}")
        Log.kv({"stage": "parse", "shape": shape.value, "result": "failed", "reason": e.reason})
        return ParseResult(reason=e.reason, detail=e.detail)

    Log.kv({"stage": "parse", "shape": shape.value, "result": "success"})
    return ParseResult(value=value)


def parse_event_info(text: str) -> ParseResult[EventInfoResponse]:
    return parse_response(text, ResponseShape.EVENT_INFO)


def parse_route_plan(text: str) -> ParseResult[RoutePlanResponse]:
    return parse_response(text, ResponseShape.ROUTE_PLAN)
