"""
Chat-completion LLM client interface used by both pipelines.
Supports StubChatClient (offline) and OpenAIChatClient (real provider).
"""

import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

from scheduleshare.logging_helper import Log
from scheduleshare.settings_manager import (
    DEFAULT_SETTINGS,
    SettingsSchema,
    describe,
    get_api_key,
    load_settings,
)


@dataclass(frozen=True)
class ChatRequest:
    system_message: str
    user_message: str
    model: str
    max_output_tokens: int
    temperature: float


@dataclass(frozen=True)
class ChatResponse:
    content: Optional[str] = None


class LLMCallError(Exception):
    """Transport-level failure: network error, timeout, or non-2xx status."""


class ChatLLMClient(ABC):
    """Abstract base class for chat-completion clients."""

    @abstractmethod
    def complete(self, request: ChatRequest) -> ChatResponse:
        """
        Send a system/user prompt pair to the model.

        Args:
            request: Prompt pair plus model parameters

        Returns:
            ChatResponse; content may be None or empty

        Raises:
            LLMCallError: if the service cannot be reached or returns an error
        """


class StubChatClient(ChatLLMClient):
    """
    Stub LLM client for offline use.
    Returns a canned event-info or route-plan response depending on the prompt.
    """

    def complete(self, request: ChatRequest) -> ChatResponse:
        Log.section("Stub LLM Client")
        Log.info("Using stub LLM client (offline mode)")

        if "route segments" in request.user_message:
            content = json.dumps({
                "segments": [],
                "totalTravelTime": 0,
                "totalCost": 0,
            })
        else:
            # Wrapped in a code block like real model output often is
            content = "```json\n" + json.dumps({
                "title": "Sample Meeting",
                "startDateTime": None,
                "endDateTime": None,
                "location": "Conference Room A",
                "description": "Dummy event returned by the stub client.",
                "confidence": 0.5,
            }) + "\n```"

        Log.kv({"stage": "llm", "provider": "stub", "result": "success", "content_length": len(content)})
        return ChatResponse(content=content)


class OpenAIChatClient(ChatLLMClient):
    """
    OpenAI chat-completions client over plain HTTPS.
    """

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_SETTINGS["api_url"],
        timeout: float = DEFAULT_SETTINGS["request_timeout_seconds"],
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key from environment
            api_url: Chat-completions endpoint
            timeout: Seconds before a request is abandoned
            session: Optional requests session (connection reuse, testing)
        """
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self._http = session or requests

    def complete(self, request: ChatRequest) -> ChatResponse:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        payload = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_message},
                {"role": "user", "content": request.user_message},
            ],
            "max_tokens": request.max_output_tokens,
            "temperature": request.temperature
        }

        Log.info(f"Calling OpenAI chat completions ({request.model})...")
        Log.kv({
            "stage": "llm",
            "provider": "openai",
            "model": request.model,
            "status": "requesting",
            "prompt_length": len(request.user_message),
            "timeout": self.timeout
        })

        try:
            response = self._http.post(
                self.api_url,
                headers=headers,
                json=payload,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            Log.error(f"OpenAI API request timed out after {self.timeout}s: {e}")
            Log.kv({"stage": "llm", "provider": "openai", "result": "failed", "reason": "timeout"})
            raise LLMCallError(f"request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            Log.error(f"OpenAI API request failed: {e}")
            Log.kv({"stage": "llm", "provider": "openai", "result": "failed", "reason": "api_error", "error": str(e)})
            raise LLMCallError(str(e)) from e

        Log.info(f"API response status: {response.status_code}")

        # If error, log the response body
        if response.status_code != 200:
            try:
                error_data = response.json()
                Log.error(f"OpenAI API error: {error_data}")
            except ValueError:
                Log.error(f"OpenAI API error (non-JSON): {response.text[:500]}")
            Log.kv({"stage": "llm", "provider": "openai", "result": "failed", "reason": "http_status", "status": response.status_code})
            raise LLMCallError(f"HTTP {response.status_code} from chat completions")

        try:
            result = response.json()
        except ValueError as e:
            Log.error(f"OpenAI API returned a non-JSON body: {response.text[:500]}")
            raise LLMCallError("response body is not JSON") from e

        if not isinstance(result, dict):
            raise LLMCallError("response body is not a JSON object")

        choices = result.get('choices')
        if not isinstance(choices, list) or not choices:
            choices = [{}]
        message = choices[0].get('message') if isinstance(choices[0], dict) else None
        content = message.get('content') if isinstance(message, dict) else None

        Log.kv({
            "stage": "llm",
            "provider": "openai",
            "result": "success" if content else "empty",
            "content_length": len(content) if content else 0
        })
        return ChatResponse(content=content)


def get_llm_client(settings: Optional[SettingsSchema] = None, force_stub: bool = False) -> ChatLLMClient:
    """
    Factory function to get the appropriate LLM client.
    Uses OpenAIChatClient when an API key is available, StubChatClient otherwise.

    Can be forced to use stub by setting USE_STUB environment variable.

    Returns:
        ChatLLMClient instance
    """
    settings = settings if settings is not None else load_settings()

    if force_stub or os.getenv("USE_STUB"):
        Log.info("USE_STUB flag set - using stub client")
        return StubChatClient()

    api_key = get_api_key()
    if api_key:
        Log.info("API key found - using OpenAI client")
        Log.kv({"stage": "config", **describe(settings)})
        return OpenAIChatClient(
            api_key,
            api_url=settings.get("api_url", DEFAULT_SETTINGS["api_url"]),
            timeout=settings.get("request_timeout_seconds", DEFAULT_SETTINGS["request_timeout_seconds"]),
        )

    Log.info("No API key - using stub client")
    return StubChatClient()
