"""Fault-injection shortcuts over :class:`HTTPMockServer`."""

from typing import Any

from ..errors import ConfigurationError
from .routes import ANTHROPIC_URL, GEMINI_URL, OPENAI_URL, MockResponse, MockRoute, envelope
from .server import HTTPMockServer

PROVIDER_ENDPOINTS = {
    "openai": ("OpenAI", OPENAI_URL),
    "anthropic": ("Anthropic", ANTHROPIC_URL),
    "google": ("Google", GEMINI_URL),
}


class HTTPTestHelper:
    def __init__(self, server: HTTPMockServer | None = None, **options: Any):
        self.server = server or HTTPMockServer(**options)

    def setup_http_mocks(self) -> HTTPMockServer:
        self.server.start()
        return self.server

    def teardown_http_mocks(self) -> None:
        self.server.stop()

    def reset_mocks(self) -> None:
        self.server.reset()

    def use(self, *routes: MockRoute) -> None:
        self.server.use(*routes)

    def simulate_server_error(self, path: str) -> None:
        """Every method on ``path`` under the base URL answers 500."""
        self.server.use(
            MockRoute(
                "*",
                f"{self.server.base_url}{path}",
                lambda request, params: MockResponse(500, envelope(False, error="Simulated server error")),
            )
        )

    def simulate_network_delay(self, path: str, delay_ms: float) -> None:
        self.server.use(
            MockRoute(
                "*",
                f"{self.server.base_url}{path}",
                lambda request, params: MockResponse(200, envelope(True), delay_ms=delay_ms),
            )
        )

    def simulate_ai_provider_error(self, provider: str) -> None:
        """Make the REST endpoint of ``provider`` answer 500."""
        try:
            label, url = PROVIDER_ENDPOINTS[provider]
        except KeyError:
            raise ConfigurationError(f"Unknown AI provider: {provider}")
        self.server.use(
            MockRoute(
                "POST",
                url,
                lambda request, params: MockResponse(500, {"error": f"Simulated {label} error"}),
            )
        )
