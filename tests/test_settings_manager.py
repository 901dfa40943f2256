import json

from scheduleshare.settings_manager import (
    DEFAULT_SETTINGS,
    get_api_key,
    get_operating_timezone,
    load_settings,
    save_settings,
    settings_file,
)


def test_defaults_when_file_missing():
    assert load_settings() == DEFAULT_SETTINGS


def test_known_keys_are_merged(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"model": "gpt-4o-mini", "request_timeout_seconds": 10, "unknown": True}))

    settings = load_settings(path)

    assert settings["model"] == "gpt-4o-mini"
    assert settings["request_timeout_seconds"] == 10
    assert "unknown" not in settings
    assert settings["route_max_tokens"] == DEFAULT_SETTINGS["route_max_tokens"]


def test_invalid_values_fall_back(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "operating_timezone": "Mars/Olympus_Mons",
        "request_timeout_seconds": "thirty",
        "extraction_max_tokens": -5,
    }))

    settings = load_settings(path)

    assert settings["operating_timezone"] == DEFAULT_SETTINGS["operating_timezone"]
    assert settings["request_timeout_seconds"] == DEFAULT_SETTINGS["request_timeout_seconds"]
    assert settings["extraction_max_tokens"] == DEFAULT_SETTINGS["extraction_max_tokens"]


def test_broken_file_uses_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")
    assert load_settings(path) == DEFAULT_SETTINGS


def test_save_round_trip_through_env_path():
    settings = DEFAULT_SETTINGS.copy()
    settings["operating_timezone"] = "Europe/London"
    save_settings(settings)

    assert settings_file().exists()
    assert load_settings()["operating_timezone"] == "Europe/London"


def test_operating_timezone():
    zone = get_operating_timezone({"operating_timezone": "Asia/Tokyo"})
    assert zone is not None
    assert get_operating_timezone({"operating_timezone": "Nowhere/Else"}) is not None


def test_api_key_lookup(monkeypatch):
    assert get_api_key() is None
    monkeypatch.setenv("OPENAI_API_KEY", "sk-fallback")
    assert get_api_key() == "sk-fallback"
    monkeypatch.setenv("apiKey", "sk-primary")
    assert get_api_key() == "sk-primary"
