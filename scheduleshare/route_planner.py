"""
Route planning for an ordered list of calendar events.

RoutePlanner asks the LLM for one inbound segment per event and pins every
segment's arrival to its event's start time. When the call or the response
fails, the deterministic fallback plan is returned instead.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from scheduleshare.event_models import (
    CalendarEvent,
    LocationCoordinate,
    PipelineOutcome,
    RoutePlan,
    RouteSegment,
    TransportationMode,
)
from scheduleshare.fallback_route_builder import FALLBACK_MODE, build_fallback_plan, fallback_segments
from scheduleshare.llm_client import ChatLLMClient, ChatRequest, LLMCallError
from scheduleshare.location_resolver import LandmarkLocationResolver, LocationResolver
from scheduleshare.logging_helper import Log
from scheduleshare.response_sanitizer import sanitize
from scheduleshare.route_prompt_builder import build_route_prompt
from scheduleshare.schema_parser import (
    MALFORMED_RESPONSE,
    LocationData,
    RoutePlanResponse,
    RouteSegmentData,
    parse_route_plan,
)
from scheduleshare.settings_manager import DEFAULT_SETTINGS, SettingsSchema, get_operating_timezone

SYSTEM_MESSAGE = (
    "You are an AI assistant that provides route planning between a person's events for the day. "
    "Return only valid JSON."
)

TRANSPORT_ERROR = "transport_error"
EMPTY_RESPONSE = "empty_response"


class RoutePlanner:
    """
    Produces a RoutePlan with exactly one segment per event.

    Collaborators are injected so tests can run against a fake client, a
    fixed clock and a custom location resolver.
    """

    def __init__(
        self,
        client: ChatLLMClient,
        resolver: Optional[LocationResolver] = None,
        settings: Optional[SettingsSchema] = None,
        clock: Optional[Callable[[], datetime]] = None,
        executor: Optional[Executor] = None,
    ):
        self.client = client
        self.resolver = resolver or LandmarkLocationResolver()
        self.settings = settings if settings is not None else DEFAULT_SETTINGS.copy()
        self.zone = get_operating_timezone(self.settings)
        self.clock = clock or (lambda: datetime.now(self.zone))
        self._executor = executor
        self._executor_lock = threading.Lock()

    def plan(self, events: Sequence[CalendarEvent], start: Optional[LocationCoordinate] = None) -> RoutePlan:
        """Plan the route; never raises."""
        return self.plan_with_outcome(events, start).value

    def plan_with_outcome(
        self,
        events: Sequence[CalendarEvent],
        start: Optional[LocationCoordinate] = None,
    ) -> PipelineOutcome[RoutePlan]:
        """
        Run the route planning pipeline.

        Returns:
            PipelineOutcome.ok with the AI plan, or PipelineOutcome.fallback
            with the synthesized plan and the failure reason
        """
        Log.section("Route Planning")
        events = list(events or [])
        Log.info(f"Starting AI route planning for {len(events)} events")

        if not events:
            Log.info("No events to analyze")
            Log.kv({"stage": "plan", "result": "empty"})
            return PipelineOutcome.ok(RoutePlan.empty())

        request = ChatRequest(
            system_message=SYSTEM_MESSAGE,
            user_message=build_route_prompt(events, start, self.clock(), self.zone),
            model=self.settings.get("model", DEFAULT_SETTINGS["model"]),
            max_output_tokens=self.settings.get("route_max_tokens", DEFAULT_SETTINGS["route_max_tokens"]),
            temperature=self.settings.get("temperature", DEFAULT_SETTINGS["temperature"]),
        )

        try:
            response = self.client.complete(request)
        except LLMCallError as e:
            return self._fallback(events, start, TRANSPORT_ERROR, str(e))
        except Exception as e:
            Log.error(f"Unexpected error from LLM client: {e}")
            return self._fallback(events, start, TRANSPORT_ERROR, str(e))

        content = response.content if response else None
        if not content or not content.strip():
            Log.warn("No content in AI response")
            return self._fallback(events, start, EMPTY_RESPONSE, "no content")

        Log.info(f"Raw AI route plan response: {content[:1000]}")
        parsed = parse_route_plan(sanitize(content))
        if not parsed.ok:
            return self._fallback(events, start, parsed.reason, parsed.detail)

        try:
            plan = self._build_plan(parsed.value, events, start)
        except (OverflowError, ValueError) as e:
            return self._fallback(events, start, MALFORMED_RESPONSE, f"segment times out of range: {e}")

        Log.info(f"Returning route plan with {len(plan.segments)} segments")
        Log.kv({
            "stage": "plan",
            "result": "success",
            "segments": len(plan.segments),
            "total_travel_time": plan.total_travel_time_seconds,
            "total_cost": plan.total_cost
        })
        return PipelineOutcome.ok(plan)

    def _location(self, data: LocationData) -> LocationCoordinate:
        if data.latitude is not None and data.longitude is not None:
            return LocationCoordinate(latitude=data.latitude, longitude=data.longitude, address=data.address)
        return self.resolver.resolve(data.address)

    def _segment(self, data: RouteSegmentData, event: CalendarEvent) -> RouteSegment:
        # Arrival is pinned to the event; departure is projected back from it
        arrival = event.start_date
        return RouteSegment(
            from_location=self._location(data.from_location),
            to_location=self._location(data.to_location),
            mode=TransportationMode.from_label(data.transportation_mode, FALLBACK_MODE),
            travel_time_seconds=data.travel_time,
            cost=data.cost,
            instructions=data.instructions,
            departure_time=arrival - timedelta(seconds=data.travel_time),
            arrival_time=arrival,
        )

    def _build_plan(
        self,
        response: RoutePlanResponse,
        events: List[CalendarEvent],
        start: Optional[LocationCoordinate],
    ) -> RoutePlan:
        last = len(events) - 1
        segments = [
            self._segment(data, events[min(index, last)])
            for index, data in enumerate(response.segments)
        ]

        if len(segments) == len(events):
            return RoutePlan(
                segments=segments,
                total_travel_time_seconds=response.total_travel_time,
                total_cost=response.total_cost,
            )

        # Segment count mismatch: trim extras or fill the missing legs, then
        # recompute totals from the segments actually returned
        Log.warn(f"AI returned {len(segments)} segments for {len(events)} events; reconciling")
        Log.kv({"stage": "plan", "result": "reconciled", "returned": len(segments), "expected": len(events)})
        if len(segments) > len(events):
            segments = segments[:len(events)]
        else:
            if segments:
                origin = segments[-1].to_location
            else:
                origin = start or self.resolver.starting_point()
            segments += fallback_segments(events[len(segments):], origin, self.resolver)

        return RoutePlan(
            segments=segments,
            total_travel_time_seconds=sum(segment.travel_time_seconds for segment in segments),
            total_cost=sum(segment.cost for segment in segments),
        )

    def _fallback(
        self,
        events: List[CalendarEvent],
        start: Optional[LocationCoordinate],
        reason: str,
        detail: Optional[str],
    ) -> PipelineOutcome[RoutePlan]:
        Log.error(f"AI route planning failed ({reason}): {detail}")
        Log.info("Using fallback route plan due to AI error")
        Log.kv({"stage": "plan", "result": "fallback", "reason": reason})
        return PipelineOutcome.fallback(build_fallback_plan(events, start, self.resolver), reason)

    def plan_async(
        self,
        events: Sequence[CalendarEvent],
        start: Optional[LocationCoordinate] = None,
        on_complete: Optional[Callable[[RoutePlan], None]] = None,
    ) -> "Future[RoutePlan]":
        """
        Run plan() on a worker thread.

        Args:
            events: Events in visiting order
            start: Optional starting coordinate
            on_complete: Optional callback receiving the plan when done;
                it runs on the worker thread

        Returns:
            Future resolving to RoutePlan
        """
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="plan")
            executor = self._executor
        future = executor.submit(self.plan, list(events or []), start)
        if on_complete is not None:
            future.add_done_callback(lambda done: on_complete(done.result()))
        return future

    def shutdown(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
