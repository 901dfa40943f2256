"""
Fallback extraction used when the LLM path fails.
Builds a low-confidence ExtractedEventInfo from simple line heuristics.
"""

import re
from datetime import datetime
from typing import Optional

from scheduleshare.event_models import DEFAULT_EVENT_DURATION, ExtractedEventInfo
from scheduleshare.logging_helper import Log

FALLBACK_CONFIDENCE = 0.3
FALLBACK_TITLE = "Event"

# Words that mark a line as a field label rather than an event name
_LABEL_WORDS = ("Date", "Time", "Location")
_LOCATION_PATTERN = re.compile(r'^[ \t]*Location\b[:\s]*([^\n]+)', re.MULTILINE)


def _find_title(text: str) -> str:
    for line in text.splitlines():
        trimmed = line.strip()
        if trimmed and not any(word in trimmed for word in _LABEL_WORDS):
            return trimmed
    return FALLBACK_TITLE


def _find_location(text: str) -> Optional[str]:
    match = _LOCATION_PATTERN.search(text)
    if match is None:
        return None
    location = match.group(1).strip()
    return location or None


def fallback_extract(text: str, now: Optional[datetime] = None) -> ExtractedEventInfo:
    """
    Extract basic event information without the LLM.

    Args:
        text: Raw text (OCR output)
        now: Current instant; start defaults to it, end to one hour later

    Returns:
        ExtractedEventInfo with confidence 0.3. Never raises.
    """
    text = text or ""
    now = now or datetime.now().astimezone()

    info = ExtractedEventInfo(
        raw_text=text,
        title=_find_title(text),
        start_date_time=now,
        end_date_time=now + DEFAULT_EVENT_DURATION,
        location=_find_location(text),
        description=text,
        confidence=FALLBACK_CONFIDENCE,
    )

    Log.info(f"Fallback extraction: title={info.title}, location={info.location}")
    Log.kv({"stage": "fallback_extract", "result": "success", "title": info.title, "location": info.location})
    return info
