"""Test doubles for the TRPG backend's external dependencies.

Four simulators (AI providers, session broker, data store and HTTP
boundary) composed by :class:`IntegratedMockServer`.
"""

from .clock import Clock, FakeClock, RealClock
from .config import MockServerConfig, load_config
from .errors import (
    BrokerError,
    ConfigurationError,
    ConstraintViolation,
    ForeignKeyConstraintViolation,
    LifecycleError,
    MockInfraError,
    QueryError,
    ScenarioInducedError,
    UniqueConstraintViolation,
)
from .server import IntegratedMockServer, ServerState, ServiceBundle
from .testing import mock_environment

__version__ = "0.1.0"

__all__ = [
    "BrokerError",
    "Clock",
    "ConfigurationError",
    "ConstraintViolation",
    "FakeClock",
    "ForeignKeyConstraintViolation",
    "IntegratedMockServer",
    "LifecycleError",
    "MockInfraError",
    "MockServerConfig",
    "QueryError",
    "RealClock",
    "ScenarioInducedError",
    "ServerState",
    "ServiceBundle",
    "UniqueConstraintViolation",
    "load_config",
    "mock_environment",
]
