"""
Shared fixtures.

- Project root goes on sys.path so `import scheduleshare.*` resolves
- Log output goes to a temp directory instead of <project>/logs
- Fake LLM clients and a fixed clock for the pipelines
"""

import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
from dateutil import tz

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

os.environ.setdefault("SCHEDULESHARE_LOG_DIR", tempfile.mkdtemp(prefix="scheduleshare-logs-"))

from scheduleshare.llm_client import ChatLLMClient, ChatResponse, LLMCallError  # noqa: E402

NEW_YORK = tz.gettz("America/New_York")


class FakeChatClient(ChatLLMClient):
    """Returns a canned content string (or raises) and records every request."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.requests = []

    def complete(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return ChatResponse(content=self.content)


@pytest.fixture
def new_york():
    return NEW_YORK


@pytest.fixture
def fixed_now():
    return datetime(2025, 6, 1, 9, 0, tzinfo=NEW_YORK)


@pytest.fixture
def clock(fixed_now):
    return lambda: fixed_now


@pytest.fixture
def failing_client():
    return FakeChatClient(error=LLMCallError("connection refused"))


@pytest.fixture
def make_client():
    def _make(content=None, error=None):
        return FakeChatClient(content=content, error=error)
    return _make


@pytest.fixture(autouse=True)
def _no_settings_file(monkeypatch, tmp_path):
    """Keep tests away from the user's real settings file and API key."""
    monkeypatch.setenv("SCHEDULESHARE_SETTINGS_FILE", str(tmp_path / "settings.json"))
    monkeypatch.delenv("apiKey", raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("USE_STUB", raising=False)
