"""
Settings management for the extraction and route-planning pipelines.

Settings are read from a JSON file in the user's config directory and merged
over DEFAULT_SETTINGS, so a missing or broken file never stops the pipelines.
The file location can be overridden with SCHEDULESHARE_SETTINGS_FILE.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Dict, Optional, TypedDict

from dateutil import tz as dateutil_tz

from scheduleshare.logging_helper import Log


class SettingsSchema(TypedDict, total=False):
    api_url: str
    model: str
    operating_timezone: str
    request_timeout_seconds: float
    temperature: float
    extraction_max_tokens: int
    route_max_tokens: int


DEFAULT_SETTINGS_FILE = Path.home() / ".config" / "scheduleshare" / "settings.json"

DEFAULT_SETTINGS: SettingsSchema = {
    "api_url": "https://api.openai.com/v1/chat/completions",
    "model": "gpt-4.1",
    "operating_timezone": "America/New_York",
    "request_timeout_seconds": 30.0,
    "temperature": 0.1,
    "extraction_max_tokens": 500,
    "route_max_tokens": 1000,
}

_NUMERIC_KEYS = ("request_timeout_seconds", "temperature", "extraction_max_tokens", "route_max_tokens")


def settings_file() -> Path:
    override = os.getenv("SCHEDULESHARE_SETTINGS_FILE")
    return Path(override) if override else DEFAULT_SETTINGS_FILE


def _valid_value(key: str, value) -> bool:
    if key in _NUMERIC_KEYS:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        return value > 0 or (key == "temperature" and value == 0)
    if key == "operating_timezone":
        return isinstance(value, str) and dateutil_tz.gettz(value) is not None
    return isinstance(value, str) and bool(value)


def load_settings(path: Optional[Path] = None) -> SettingsSchema:
    """
    Load settings from disk, falling back to defaults if anything fails.
    """
    path = path or settings_file()
    if not path.exists():
        Log.info(f"Settings file not found, using defaults: {path}")
        return DEFAULT_SETTINGS.copy()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("Settings data is not a JSON object")
    except (OSError, ValueError) as err:
        Log.warn(f"Failed to read settings file ({path}): {err}")
        return DEFAULT_SETTINGS.copy()

    merged: SettingsSchema = DEFAULT_SETTINGS.copy()
    # Merge only known keys
    for key in DEFAULT_SETTINGS:
        if key not in data:
            continue
        if _valid_value(key, data[key]):
            merged[key] = data[key]  # type: ignore[literal-required]
        else:
            Log.warn(f"Invalid {key} value '{data[key]}', using default {DEFAULT_SETTINGS[key]}")  # type: ignore[literal-required]
    return merged


def save_settings(settings: SettingsSchema, path: Optional[Path] = None) -> None:
    """
    Persist settings to disk.
    """
    path = path or settings_file()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            json.dumps(settings, indent=2, sort_keys=True),
            encoding="utf-8",
        )
    except OSError as err:
        Log.warn(f"Failed to write settings file ({path}): {err}")


def get_operating_timezone(settings: Optional[SettingsSchema] = None):
    """Return the tzinfo every extracted date is anchored to."""
    settings = settings if settings is not None else load_settings()
    name = settings.get("operating_timezone", DEFAULT_SETTINGS["operating_timezone"])
    zone = dateutil_tz.gettz(name)
    if zone is None:
        Log.warn(f"Unknown operating timezone '{name}', defaulting to {DEFAULT_SETTINGS['operating_timezone']}")
        zone = dateutil_tz.gettz(DEFAULT_SETTINGS["operating_timezone"])
    return zone


def get_api_key() -> Optional[str]:
    """API key from the environment; 'apiKey' wins over OPENAI_API_KEY."""
    return os.getenv("apiKey") or os.getenv("OPENAI_API_KEY")


def describe(settings: SettingsSchema) -> Dict[str, str]:
    """Settings as loggable strings (never includes the API key)."""
    return {key: str(value) for key, value in settings.items()}
