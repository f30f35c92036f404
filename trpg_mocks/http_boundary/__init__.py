"""Interception of outbound HTTP calls with canned REST envelopes."""

from .helper import HTTPTestHelper
from .routes import MockResponse, MockRoute, default_routes, envelope
from .server import HTTPMockServer

__all__ = [
    "HTTPMockServer",
    "HTTPTestHelper",
    "MockResponse",
    "MockRoute",
    "default_routes",
    "envelope",
]
