"""Tests for the HTTP boundary simulator."""

import asyncio
import random

import httpx
import pytest

from trpg_mocks.errors import ConfigurationError
from trpg_mocks.http_boundary import HTTPMockServer, HTTPTestHelper, MockResponse, MockRoute, envelope
from trpg_mocks.providers.content import ACKNOWLEDGEMENTS

BASE_URL = "http://localhost:3001"
GEMINI = "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent"


class TestDefaultRoutes:
    """Tests for the built-in proxy and provider endpoints."""

    @pytest.mark.asyncio
    async def test_test_key_rejects_invalid_key(self, http_server):
        """The key check should answer 401 for a missing or invalid key."""
        async with http_server.async_client() as client:
            missing = await client.post("/api/ai-agent/test-key", json={"provider": "openai"})
            invalid = await client.post(
                "/api/ai-agent/test-key", json={"provider": "openai", "apiKey": "invalid-key"}
            )

        assert missing.status_code == 401
        assert invalid.status_code == 401
        assert invalid.json()["success"] is False
        assert invalid.json()["error"] == "Invalid API key"

    @pytest.mark.asyncio
    async def test_test_key_accepts_key(self, http_server):
        """A present key should succeed with the provider named in the message."""
        async with http_server.async_client() as client:
            response = await client.post(
                "/api/ai-agent/test-key", json={"provider": "anthropic", "apiKey": "sk-test"}
            )

        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["provider"] == "anthropic"
        assert body["message"] == "anthropic connection successful"
        assert "timestamp" in body

    @pytest.mark.asyncio
    async def test_sessions_path_parameter(self, http_server):
        """The campaign id in the path should be echoed in the listing."""
        async with http_server.async_client() as client:
            response = await client.get("/api/sessions/abc123")

        assert response.json()["data"][0]["campaignId"] == "abc123"

    @pytest.mark.asyncio
    async def test_create_campaign(self, http_server):
        """Creating a campaign should answer 201 with the posted fields and a new id."""
        async with http_server.async_client() as client:
            response = await client.post("/api/campaigns", json={"name": "New Campaign"})

        campaign = response.json()["data"]
        assert response.status_code == 201
        assert campaign["name"] == "New Campaign"
        assert campaign["id"]
        assert campaign["createdAt"] == campaign["updatedAt"]

    @pytest.mark.asyncio
    async def test_generate_character(self, http_server):
        """The character endpoint should return character data."""
        async with http_server.async_client() as client:
            response = await client.post("/api/ai-agent/generate-character", json={})

        assert response.json()["data"]["characterData"]["class"] == "Wizard"

    @pytest.mark.asyncio
    async def test_error_endpoint(self, http_server):
        """/api/test/error should always answer 500."""
        async with http_server.async_client() as client:
            response = await client.get("/api/test/error")

        assert response.status_code == 500
        assert response.json()["error"] == "Simulated server error"

    @pytest.mark.asyncio
    async def test_unmatched_request(self, http_server):
        """A private client should get a 404 envelope for unknown routes."""
        async with http_server.async_client() as client:
            response = await client.get("/api/unknown")

        assert response.status_code == 404
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_method_must_match(self, http_server):
        """A GET on a POST-only route should not match."""
        async with http_server.async_client() as client:
            response = await client.get("/api/ai-agent/test-key")

        assert response.status_code == 404

    def test_sync_client(self, http_server):
        """The synchronous client should use the same routes."""
        with http_server.client() as client:
            response = client.get("/api/campaigns")

        assert response.status_code == 200
        assert response.json()["data"][0]["name"] == "Test Campaign 1"
        assert len(http_server.requests) == 1


class TestProviderEndpoints:
    """Tests for the provider REST shapes."""

    @pytest.mark.asyncio
    async def test_openai_endpoint(self, http_server):
        """The OpenAI endpoint should answer with a chat completion."""
        async with http_server.async_client() as client:
            response = await client.post(
                "https://api.openai.com/v1/chat/completions",
                json={"model": "gpt-4", "messages": [{"role": "user", "content": "hi"}]},
            )

        body = response.json()
        assert body["model"] == "gpt-4"
        assert body["choices"][0]["message"]["content"] == ACKNOWLEDGEMENTS["chat"]

    @pytest.mark.asyncio
    async def test_anthropic_endpoint(self, http_server):
        """The Anthropic endpoint should answer with a text content block."""
        async with http_server.async_client() as client:
            response = await client.post(
                "https://api.anthropic.com/v1/messages",
                json={"messages": [{"role": "user", "content": "hi"}]},
            )

        assert response.json()["content"][0]["type"] == "text"

    @pytest.mark.asyncio
    async def test_gemini_endpoint(self, http_server):
        """The Gemini endpoint should answer with candidates and the model from the path."""
        async with http_server.async_client() as client:
            response = await client.post(GEMINI, json={"contents": [{"parts": [{"text": "hello"}]}]})

        body = response.json()
        assert body["modelVersion"] == "gemini-pro"
        assert body["candidates"][0]["content"]["parts"][0]["text"] == ACKNOWLEDGEMENTS["generate"]


class TestRouteOverrides:
    """Tests for use(), reset() and the fault shortcuts."""

    @pytest.mark.asyncio
    async def test_use_takes_precedence(self, http_server):
        """An added route should shadow the default until reset."""
        http_server.use(
            MockRoute("GET", f"{BASE_URL}/api/campaigns", lambda request, params: MockResponse(200, envelope(True, data=[])))
        )

        async with http_server.async_client() as client:
            overridden = await client.get("/api/campaigns")
            http_server.reset()
            restored = await client.get("/api/campaigns")

        assert overridden.json()["data"] == []
        assert len(restored.json()["data"]) == 1
        assert len(http_server.requests) == 1

    def test_route_requires_absolute_url(self):
        """Relative patterns should be rejected."""
        with pytest.raises(ValueError):
            MockRoute("GET", "/api/campaigns", lambda request, params: MockResponse())

    @pytest.mark.asyncio
    async def test_simulate_server_error(self, http_server):
        """simulate_server_error should turn every method on the path into a 500."""
        helper = HTTPTestHelper(http_server)
        helper.simulate_server_error("/api/campaigns")

        async with http_server.async_client() as client:
            get = await client.get("/api/campaigns")
            post = await client.post("/api/campaigns", json={})

        assert get.status_code == 500
        assert post.status_code == 500

    @pytest.mark.asyncio
    async def test_simulate_ai_provider_error(self, http_server):
        """simulate_ai_provider_error should fail the provider endpoint."""
        HTTPTestHelper(http_server).simulate_ai_provider_error("anthropic")

        async with http_server.async_client() as client:
            response = await client.post("https://api.anthropic.com/v1/messages", json={})

        assert response.status_code == 500
        assert response.json() == {"error": "Simulated Anthropic error"}

    def test_unknown_provider_error(self, http_server):
        """Unknown providers should raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            HTTPTestHelper(http_server).simulate_ai_provider_error("mistral")

    @pytest.mark.asyncio
    async def test_error_injection(self, clock):
        """error_rate=1 should answer every matched request with a 500."""
        server = HTTPMockServer(
            base_url=BASE_URL, clock=clock, simulate_latency=0, simulate_errors=True, error_rate=1.0,
            rng=random.Random(3),
        )

        async with server.async_client() as client:
            response = await client.get("/api/campaigns")

        assert response.status_code == 500
        assert "Simulated network error" in response.json()["error"]


class TestLatency:
    """Tests for simulated latency on the shared clock."""

    @pytest.mark.asyncio
    async def test_response_waits_for_latency(self, clock):
        """An async request should complete only once the latency elapses."""
        server = HTTPMockServer(base_url=BASE_URL, clock=clock, simulate_latency=50)
        client = server.async_client()

        task = asyncio.ensure_future(client.get("/api/campaigns"))
        await clock.advance(49)
        assert not task.done()

        await clock.advance(1)
        assert task.done()
        assert task.result().status_code == 200
        await client.aclose()

    @pytest.mark.asyncio
    async def test_simulate_network_delay(self, http_server, clock):
        """simulate_network_delay should override the default latency for one path."""
        HTTPTestHelper(http_server).simulate_network_delay("/api/slow", 200)
        client = http_server.async_client()

        task = asyncio.ensure_future(client.get("/api/slow"))
        await clock.advance(199)
        assert not task.done()

        await clock.advance(1)
        assert task.result().json()["success"] is True
        await client.aclose()


class TestInterception:
    """Tests for patching the global httpx transports."""

    @pytest.mark.asyncio
    async def test_async_client_intercepted_while_started(self, http_server):
        """A plain AsyncClient should be answered by the mock while started."""
        original = httpx.AsyncHTTPTransport.handle_async_request
        http_server.start()

        async with httpx.AsyncClient() as client:
            response = await client.get(f"{BASE_URL}/api/campaigns")

        assert response.json()["data"][0]["id"] == "1"
        assert httpx.AsyncHTTPTransport.handle_async_request is not original

        http_server.stop()
        assert httpx.AsyncHTTPTransport.handle_async_request is original
        assert not http_server.started

    def test_sync_client_intercepted_while_started(self, http_server):
        """A plain Client should be answered by the mock while started."""
        original = httpx.HTTPTransport.handle_request
        http_server.start()

        with httpx.Client() as client:
            response = client.post(f"{BASE_URL}/api/ai-agent/test-key", json={"apiKey": "k", "provider": "google"})

        assert response.status_code == 200
        http_server.stop()
        assert httpx.HTTPTransport.handle_request is original

    def test_start_twice_keeps_first_patch(self, http_server):
        """A second start should not stack patches."""
        original = httpx.HTTPTransport.handle_request
        http_server.start()
        patched = httpx.HTTPTransport.handle_request

        http_server.start()

        assert httpx.HTTPTransport.handle_request is patched
        http_server.stop()
        assert httpx.HTTPTransport.handle_request is original
