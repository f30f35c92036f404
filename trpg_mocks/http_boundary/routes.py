"""Route table for the HTTP boundary.

A :class:`MockRoute` pairs a method and a URL pattern written in werkzeug
rule syntax (``/api/sessions/<campaign_id>``) with a handler that turns the
intercepted ``httpx.Request`` into a :class:`MockResponse`.
"""

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable
from urllib.parse import urlsplit

import httpx
from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule, RoutingException

from ..providers.content import select_content
from ..providers.scenarios import chat_completion_body, extract_prompt, messages_body

logger = logging.getLogger(__name__)

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/<model>:generateContent"


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def envelope(success: bool, data: Any = None, error: str | None = None, message: str | None = None) -> dict:
    """Build the REST response envelope ``{success, data?, error?, message?, timestamp}``."""
    body: dict[str, Any] = {"success": success}
    if data is not None:
        body["data"] = data
    if error is not None:
        body["error"] = error
    if message is not None:
        body["message"] = message
    body["timestamp"] = utc_now()
    return body


@dataclass
class MockResponse:
    status: int = 200
    body: Any = None
    delay_ms: float | None = None  # None uses the server's latency
    headers: dict[str, str] = field(default_factory=dict)

    def to_httpx(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(self.status, json=self.body, headers=self.headers, request=request)


Handler = Callable[[httpx.Request, dict[str, Any]], MockResponse]


class MockRoute:
    """One intercepted endpoint.

    Args:
        method: HTTP method, or ``"*"`` for any method.
        url_pattern: Absolute URL whose path uses werkzeug placeholders.
        handler: Called as ``handler(request, params)``.
    """

    def __init__(self, method: str, url_pattern: str, handler: Handler, name: str | None = None):
        parts = urlsplit(url_pattern)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Route pattern must be an absolute URL: {url_pattern}")
        self.method = method.upper()
        self.url_pattern = url_pattern
        self.handler = handler
        self.name = name or f"{self.method} {url_pattern}"
        self._scheme = parts.scheme.lower()
        self._netloc = parts.netloc.lower()
        methods = None if self.method == "*" else [self.method]
        self._map = Map([Rule(parts.path or "/", methods=methods)], strict_slashes=False)

    def __repr__(self) -> str:
        return f"MockRoute({self.method} {self.url_pattern})"

    def match(self, request: httpx.Request) -> dict[str, Any] | None:
        """Return path parameters if ``request`` hits this route, else None."""
        url = request.url
        if url.scheme.lower() != self._scheme or url.netloc.decode("ascii").lower() != self._netloc:
            return None
        adapter = self._map.bind(self._netloc, url_scheme=self._scheme)
        try:
            _, params = adapter.match(url.path, method=request.method)
        except (HTTPException, RoutingException):
            return None
        return params

    def respond(self, request: httpx.Request, params: dict[str, Any]) -> MockResponse:
        return self.handler(request, params)


def request_json(request: httpx.Request) -> dict[str, Any]:
    """Decode a JSON request body; empty or non-JSON bodies yield ``{}``."""
    if not request.content:
        return {}
    try:
        body = json.loads(request.content)
    except ValueError:
        logger.debug(f"Non-JSON body on {request.method} {request.url}")
        return {}
    return body if isinstance(body, dict) else {}


# ---------------------------------------------------------------------------
# Provider REST endpoints
# ---------------------------------------------------------------------------


def _openai(request: httpx.Request, params: dict[str, Any]) -> MockResponse:
    body = request_json(request)
    text = select_content("chat", extract_prompt("chat", body))
    return MockResponse(200, chat_completion_body(text, body))


def _anthropic(request: httpx.Request, params: dict[str, Any]) -> MockResponse:
    body = request_json(request)
    text = select_content("messages", extract_prompt("messages", body))
    return MockResponse(200, messages_body(text, body))


def _gemini(request: httpx.Request, params: dict[str, Any]) -> MockResponse:
    body = request_json(request)
    text = select_content("generate", extract_prompt("generate", body))
    return MockResponse(
        200,
        {
            "candidates": [{"content": {"parts": [{"text": text}]}}],
            "modelVersion": params.get("model"),
        },
    )


def provider_routes() -> list[MockRoute]:
    return [
        MockRoute("POST", OPENAI_URL, _openai, name="openai"),
        MockRoute("POST", ANTHROPIC_URL, _anthropic, name="anthropic"),
        MockRoute("POST", GEMINI_URL, _gemini, name="google"),
    ]


# ---------------------------------------------------------------------------
# Proxy API endpoints
# ---------------------------------------------------------------------------


def proxy_routes(base_url: str, latency_ms: float = 0) -> list[MockRoute]:
    """Default handlers for the proxy server's REST surface under ``base_url``."""
    base_url = base_url.rstrip("/")

    def test_key(request, params):
        body = request_json(request)
        provider = body.get("provider")
        api_key = body.get("apiKey")
        if not api_key or api_key == "invalid-key":
            return MockResponse(401, envelope(False, error="Invalid API key"))
        return MockResponse(
            200,
            envelope(
                True,
                data={"provider": provider, "model": "test-model", "latency": latency_ms},
                message=f"{provider} connection successful",
            ),
        )

    def generate_character(request, params):
        return MockResponse(
            200,
            envelope(
                True,
                data={
                    "characterData": {
                        "name": "Generated Character",
                        "race": "Elf",
                        "class": "Wizard",
                        "level": 1,
                        "background": "Scholar",
                        "stats": {"str": 8, "dex": 14, "con": 12, "int": 16, "wis": 13, "cha": 11},
                    },
                    "generatedCharacter": {
                        "personality": "Curious and careful",
                        "appearance": "Slender with a scholarly air",
                        "backstory": "A young scholar devoted to the study of ancient magic",
                    },
                },
            ),
        )

    def generate_event(request, params):
        return MockResponse(
            200,
            envelope(
                True,
                data={
                    "eventData": {
                        "title": "A Mysterious Merchant",
                        "description": "A strange merchant sells odd wares on a street corner.",
                        "eventType": "encounter",
                        "difficulty": "easy",
                    },
                    "generatedEvent": {
                        "choices": [
                            {"id": 1, "text": "Inspect the wares", "outcome": "information"},
                            {"id": 2, "text": "Talk to the merchant", "outcome": "dialogue"},
                            {"id": 3, "text": "Walk away", "outcome": "skip"},
                        ],
                        "rewards": ["information", "item", "experience"],
                    },
                },
            ),
        )

    def gm_assistance(request, params):
        return MockResponse(
            200,
            envelope(
                True,
                data={
                    "assistanceData": {
                        "suggestion": "The players seem stuck. Consider offering a hint.",
                        "options": ["A hint from an NPC", "A clue in the environment", "Direct guidance"],
                    },
                    "generatedAssistance": {
                        "type": "suggestion",
                        "content": '"Perhaps the old book holds the answer."',
                    },
                },
            ),
        )

    def list_campaigns(request, params):
        return MockResponse(
            200,
            envelope(
                True,
                data=[
                    {
                        "id": "1",
                        "name": "Test Campaign 1",
                        "description": "An adventure in a fantasy world",
                        "gameSystem": "D&D 5e",
                        "status": "active",
                    }
                ],
            ),
        )

    def create_campaign(request, params):
        now = utc_now()
        campaign = {"id": uuid.uuid4().hex[:9], **request_json(request), "createdAt": now, "updatedAt": now}
        return MockResponse(201, envelope(True, data=campaign))

    def list_sessions(request, params):
        return MockResponse(
            200,
            envelope(
                True,
                data=[
                    {
                        "id": "1",
                        "campaignId": params["campaign_id"],
                        "sessionNumber": 1,
                        "title": "Test Session",
                        "status": "scheduled",
                    }
                ],
            ),
        )

    def server_error(request, params):
        return MockResponse(500, envelope(False, error="Simulated server error"))

    def slow(request, params):
        return MockResponse(200, envelope(True), delay_ms=5000)

    return [
        MockRoute("POST", f"{base_url}/api/ai-agent/test-key", test_key),
        MockRoute("POST", f"{base_url}/api/ai-agent/generate-character", generate_character),
        MockRoute("POST", f"{base_url}/api/ai-agent/generate-event", generate_event),
        MockRoute("POST", f"{base_url}/api/ai-agent/gm-assistance", gm_assistance),
        MockRoute("GET", f"{base_url}/api/campaigns", list_campaigns),
        MockRoute("POST", f"{base_url}/api/campaigns", create_campaign),
        MockRoute("GET", f"{base_url}/api/sessions/<campaign_id>", list_sessions),
        MockRoute("GET", f"{base_url}/api/test/error", server_error),
        MockRoute("GET", f"{base_url}/api/test/timeout", slow),
    ]


def default_routes(base_url: str, latency_ms: float = 0) -> list[MockRoute]:
    return proxy_routes(base_url, latency_ms) + provider_routes()
