"""Interception of outbound ``httpx`` traffic.

While started, :class:`HTTPMockServer` replaces the request entry points of
``httpx.HTTPTransport`` and ``httpx.AsyncHTTPTransport``. Requests that match
a route are answered locally; everything else reaches the real transport.
"""

import logging
import random
from typing import Any

import httpx

from ..clock import Clock, RealClock
from ..config import HTTP_BASE_URL
from .routes import MockResponse, MockRoute, default_routes, envelope

logger = logging.getLogger(__name__)


class HTTPMockServer:
    """Route table plus transport patches.

    Args:
        base_url: Prefix of the proxy API routes.
        clock: Clock used to await latency for async requests.
        simulate_latency: Default response delay in milliseconds.
        simulate_errors: Answer matched requests with a 500 at ``error_rate``.
        enable_logging: Log every handled and unhandled request.
        rng: Source of randomness for error injection.
    """

    def __init__(
        self,
        base_url: str = HTTP_BASE_URL,
        clock: Clock | None = None,
        simulate_latency: float = 100,
        simulate_errors: bool = False,
        error_rate: float = 0.05,
        enable_logging: bool = False,
        rng: random.Random | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.clock = clock or RealClock()
        self.simulate_latency = simulate_latency
        self.simulate_errors = simulate_errors
        self.error_rate = error_rate
        self.enable_logging = enable_logging
        self.rng = rng or random.Random()
        self.requests: list[httpx.Request] = []
        self._defaults = default_routes(self.base_url, simulate_latency)
        self._overrides: list[MockRoute] = []
        self._originals: dict[type, Any] = {}

    @property
    def started(self) -> bool:
        return bool(self._originals)

    @property
    def routes(self) -> list[MockRoute]:
        """Routes in match order: overrides (newest first), then defaults."""
        return self._overrides + self._defaults

    def use(self, *routes: MockRoute) -> None:
        """Add routes that take precedence over everything registered so far."""
        self._overrides = list(routes) + self._overrides

    def reset(self) -> None:
        """Drop overrides and the request log; defaults stay."""
        self._overrides = []
        self.requests = []

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def resolve(self, request: httpx.Request) -> tuple[MockResponse, float] | None:
        """Answer ``request`` from the route table, or None when no route matches."""
        for route in self.routes:
            params = route.match(request)
            if params is None:
                continue

            self.requests.append(request)
            if self.enable_logging:
                logger.info(f"HTTP mock {request.method} {request.url} -> {route.name}")

            if self.simulate_errors and self.rng.random() < self.error_rate:
                response = MockResponse(500, envelope(False, error=f"Simulated network error for {route.name}"))
            else:
                response = route.respond(request, params)

            delay = self.simulate_latency if response.delay_ms is None else response.delay_ms
            return response, delay

        if self.enable_logging:
            logger.warning(f"Unhandled HTTP request {request.method} {request.url}")
        return None

    def handle(self, request: httpx.Request) -> httpx.Response | None:
        """Synchronous dispatch. Latency is not applied."""
        request.read()
        resolved = self.resolve(request)
        if resolved is None:
            return None
        response, _ = resolved
        return response.to_httpx(request)

    async def handle_async(self, request: httpx.Request) -> httpx.Response | None:
        await request.aread()
        resolved = self.resolve(request)
        if resolved is None:
            return None
        response, delay = resolved
        if delay > 0:
            await self.clock.sleep(delay)
        return response.to_httpx(request)

    def _unmatched(self, request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404,
            json=envelope(False, error=f"No mock route for {request.method} {request.url}"),
            request=request,
        )

    # ------------------------------------------------------------------
    # Clients on a private transport
    # ------------------------------------------------------------------

    def client(self, **kwargs: Any) -> httpx.Client:
        """A client whose every request is answered by this server."""

        def handler(request: httpx.Request) -> httpx.Response:
            response = self.handle(request)
            return response if response is not None else self._unmatched(request)

        kwargs.setdefault("base_url", self.base_url)
        return httpx.Client(transport=httpx.MockTransport(handler), **kwargs)

    def async_client(self, **kwargs: Any) -> httpx.AsyncClient:
        async def handler(request: httpx.Request) -> httpx.Response:
            response = await self.handle_async(request)
            return response if response is not None else self._unmatched(request)

        kwargs.setdefault("base_url", self.base_url)
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), **kwargs)

    # ------------------------------------------------------------------
    # Global interception
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Patch the ``httpx`` transports. Calling twice is a no-op."""
        if self.started:
            logger.warning("HTTP mock server already started")
            return

        server = self
        sync_original = httpx.HTTPTransport.handle_request
        async_original = httpx.AsyncHTTPTransport.handle_async_request

        def handle_request(transport, request):
            response = server.handle(request)
            if response is None:
                return sync_original(transport, request)
            return response

        async def handle_async_request(transport, request):
            response = await server.handle_async(request)
            if response is None:
                return await async_original(transport, request)
            return response

        self._originals = {
            httpx.HTTPTransport: sync_original,
            httpx.AsyncHTTPTransport: async_original,
        }
        httpx.HTTPTransport.handle_request = handle_request
        httpx.AsyncHTTPTransport.handle_async_request = handle_async_request
        if self.enable_logging:
            logger.debug(f"HTTP mock server intercepting requests for {self.base_url}")

    def stop(self) -> None:
        """Restore the original transports."""
        if not self.started:
            return
        httpx.HTTPTransport.handle_request = self._originals[httpx.HTTPTransport]
        httpx.AsyncHTTPTransport.handle_async_request = self._originals[httpx.AsyncHTTPTransport]
        self._originals = {}
        if self.enable_logging:
            logger.debug("HTTP mock server stopped")
