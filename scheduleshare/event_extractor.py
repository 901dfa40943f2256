"""
Event information extraction from raw (OCR) text.

EventInfoExtractor builds the prompt, calls the LLM, sanitizes and parses the
answer, and resolves the dates. Any failure along the way is absorbed and the
heuristic fallback result is returned instead, so extract() always yields a
value.
"""

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Optional

from scheduleshare.datetime_resolver import resolve
from scheduleshare.event_models import ExtractedEventInfo, PipelineOutcome
from scheduleshare.fallback_extractor import fallback_extract
from scheduleshare.llm_client import ChatLLMClient, ChatRequest, LLMCallError
from scheduleshare.logging_helper import Log
from scheduleshare.response_sanitizer import sanitize
from scheduleshare.schema_parser import MALFORMED_RESPONSE, parse_event_info
from scheduleshare.settings_manager import DEFAULT_SETTINGS, SettingsSchema, get_operating_timezone

SYSTEM_MESSAGE = "You are an AI assistant that extracts event information from text. Return only valid JSON."
DEFAULT_CONFIDENCE = 0.5

TRANSPORT_ERROR = "transport_error"
EMPTY_RESPONSE = "empty_response"


def _offset_literal(now: datetime) -> str:
    """UTC offset of now as '+HH:MM' / '-HH:MM'."""
    offset = now.strftime("%z") or "+0000"
    return f"{offset[:3]}:{offset[3:5]}"


def build_extraction_prompt(text: str, now: datetime) -> str:
    """
    Build the user prompt for event extraction.

    Args:
        text: Raw text to analyze
        now: Current instant in the operating timezone

    Returns:
        Prompt text with the target JSON schema and date rules
    """
    year = now.year
    offset = _offset_literal(now)
    zone_name = now.strftime("%Z") or offset

    return (
        "You are an expert at extracting event information from text. Look for event titles, dates, times, and locations.\n\n"
        "Extract event information from this text and return a JSON object with the following structure:\n"
        "{\n"
        '    "title": "Event title or name (be specific, not generic)",\n'
        f'    "startDateTime": "ISO 8601 date string (YYYY-MM-DDTHH:MM:SS{offset}) or null if not found",\n'
        f'    "endDateTime": "ISO 8601 date string (YYYY-MM-DDTHH:MM:SS{offset}) or null if not found",\n'
        '    "location": "Specific location/venue/address or null if not found",\n'
        '    "description": "Event description, details, or additional context or null if not found",\n'
        '    "confidence": 0.0-1.0 confidence score based on how clear the event information is\n'
        "}\n\n"
        "CRITICAL DATE EXTRACTION RULES:\n"
        "- Extract the EXACT date shown in the text, do not guess or assume\n"
        f'- If you see "Aug 5" or "8/5", extract as {year}-08-05T18:30:00{offset} when the time is 6:30 PM\n'
        "- Pay close attention to the specific day number in the text\n"
        "- Do not confuse similar-looking dates (5 vs 10, 1 vs 7, etc.)\n"
        "- If the date is ambiguous, use the most specific date mentioned\n"
        f'- Current year is {year}, so "Aug 5" = {year}-08-05\n'
        f"- ALWAYS use the {zone_name} offset {offset} in timestamps\n"
        f'- If you see "6:30 PM", extract as T18:30:00{offset}\n'
        f'- If you see "6:30 PM - 8:30 PM" or "6:30-8:30 PM", extract startDateTime as T18:30:00{offset} and endDateTime as T20:30:00{offset}\n'
        "- If only a start time is given, set endDateTime to null\n\n"
        "Important:\n"
        "- Look for actual event names, specific dates/times, and real locations\n"
        "- Don't make up information\n"
        f'- For dates like "Aug 10" or "8/10", assume current year ({year}) unless clearly specified otherwise\n\n'
        "Text to analyze:\n"
        f"{text}\n\n"
        "Return only the JSON object, no additional text or explanations."
    )


class EventInfoExtractor:
    """
    Turns raw text into ExtractedEventInfo using the LLM, with fallback.

    Collaborators are injected so tests can run against a fake client and a
    fixed clock.
    """

    def __init__(
        self,
        client: ChatLLMClient,
        settings: Optional[SettingsSchema] = None,
        clock: Optional[Callable[[], datetime]] = None,
        executor: Optional[Executor] = None,
    ):
        self.client = client
        self.settings = settings if settings is not None else DEFAULT_SETTINGS.copy()
        self.zone = get_operating_timezone(self.settings)
        self.clock = clock or (lambda: datetime.now(self.zone))
        self._executor = executor
        self._executor_lock = threading.Lock()

    def _now(self) -> datetime:
        now = self.clock()
        if now.tzinfo is None:
            now = now.replace(tzinfo=self.zone)
        return now.astimezone(self.zone)

    def extract(self, text: str) -> ExtractedEventInfo:
        """Extract event information; never raises."""
        return self.extract_with_outcome(text).value

    def extract_with_outcome(self, text: str) -> PipelineOutcome[ExtractedEventInfo]:
        """
        Run the extraction pipeline.

        Returns:
            PipelineOutcome.ok with the AI result, or PipelineOutcome.fallback
            with the heuristic result and the failure reason
        """
        Log.section("Event Extraction")
        text = text or ""
        now = self._now()
        Log.info(f"Extracting event information from {len(text)} chars of text")

        request = ChatRequest(
            system_message=SYSTEM_MESSAGE,
            user_message=build_extraction_prompt(text, now),
            model=self.settings.get("model", DEFAULT_SETTINGS["model"]),
            max_output_tokens=self.settings.get("extraction_max_tokens", DEFAULT_SETTINGS["extraction_max_tokens"]),
            temperature=self.settings.get("temperature", DEFAULT_SETTINGS["temperature"]),
        )

        try:
            response = self.client.complete(request)
        except LLMCallError as e:
            return self._fallback(text, now, TRANSPORT_ERROR, str(e))
        except Exception as e:
            Log.error(f"Unexpected error from LLM client: {e}")
            return self._fallback(text, now, TRANSPORT_ERROR, str(e))

        content = response.content if response else None
        if not content or not content.strip():
            Log.warn("Empty response from LLM")
            return self._fallback(text, now, EMPTY_RESPONSE, "no content")

        Log.info(f"AI content: {content[:500]}")
        parsed = parse_event_info(sanitize(content))
        if not parsed.ok:
            return self._fallback(text, now, parsed.reason, parsed.detail)

        data = parsed.value
        try:
            start = resolve(data.start_date_time, now, self.zone)
            end = resolve(data.end_date_time, now, self.zone)
        except (ValueError, OverflowError) as e:
            # Year rollover past datetime.max
            return self._fallback(text, now, MALFORMED_RESPONSE, str(e))

        info = ExtractedEventInfo(
            raw_text=text,
            title=data.title,
            start_date_time=start,
            end_date_time=end,
            location=data.location,
            description=data.description,
            confidence=data.confidence if data.confidence is not None else DEFAULT_CONFIDENCE,
        )

        Log.info(f"Event extracted: title={info.title}, start={info.start_date_time}, end={info.end_date_time}, location={info.location}")
        Log.kv({
            "stage": "extract",
            "result": "success",
            "event_title": info.title,
            "event_start": info.start_date_time.isoformat() if info.start_date_time else None,
            "event_end": info.end_date_time.isoformat() if info.end_date_time else None,
            "event_location": info.location,
            "confidence": info.confidence
        })
        return PipelineOutcome.ok(info)

    def _fallback(self, text: str, now: datetime, reason: str, detail: Optional[str]) -> PipelineOutcome[ExtractedEventInfo]:
        Log.warn(f"AI extraction failed ({reason}): {detail}; attempting fallback extraction")
        Log.kv({"stage": "extract", "result": "fallback", "reason": reason})
        return PipelineOutcome.fallback(fallback_extract(text, now), reason)

    def extract_async(
        self,
        text: str,
        on_complete: Optional[Callable[[ExtractedEventInfo], None]] = None,
    ) -> "Future[ExtractedEventInfo]":
        """
        Run extract() on a worker thread.

        Args:
            text: Raw text
            on_complete: Optional callback receiving the result when done;
                it runs on the worker thread

        Returns:
            Future resolving to ExtractedEventInfo
        """
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="extract")
            executor = self._executor
        future = executor.submit(self.extract, text)
        if on_complete is not None:
            future.add_done_callback(lambda done: on_complete(done.result()))
        return future

    def shutdown(self) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=True)
