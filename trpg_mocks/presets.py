"""Named configurations for common test setups."""

from typing import Any, Callable

from .config import MockServerConfig


def _build(sections: dict[str, Any], overrides: dict[str, Any] | None = None) -> MockServerConfig:
    return MockServerConfig().merged(sections).merged(overrides)


def quick_mock_config(overrides: dict[str, Any] | None = None) -> MockServerConfig:
    """Everything mocked with short latencies."""
    return _build(
        {
            "general": {"enable_logging": False, "reset_between_tests": True},
            "ai_providers": {"enable_mocks": True, "simulate_latency": 10},
            "database": {"enable_mocks": True, "seed_test_data": True},
            "websocket": {"enable_mocks": True, "simulate_latency": 10},
            "http": {"enable_mocks": True, "simulate_latency": 10},
        },
        overrides,
    )


def ai_only_config() -> MockServerConfig:
    return _build(
        {
            "general": {"enable_logging": False},
            "ai_providers": {"enable_mocks": True, "simulate_latency": 10},
            "database": {"enable_mocks": False},
            "websocket": {"enable_mocks": False},
            "http": {"enable_mocks": False},
        }
    )


def database_only_config() -> MockServerConfig:
    return _build(
        {
            "general": {"enable_logging": False},
            "ai_providers": {"enable_mocks": False},
            "database": {"enable_mocks": True, "seed_test_data": True},
            "websocket": {"enable_mocks": False},
            "http": {"enable_mocks": False},
        }
    )


def websocket_only_config() -> MockServerConfig:
    return _build(
        {
            "general": {"enable_logging": False},
            "ai_providers": {"enable_mocks": False},
            "database": {"enable_mocks": False},
            "websocket": {"enable_mocks": True, "simulate_latency": 10},
            "http": {"enable_mocks": False},
        }
    )


def full_integration_config() -> MockServerConfig:
    return _build(
        {
            "general": {"enable_logging": False, "reset_between_tests": True},
            "ai_providers": {"enable_mocks": True, "simulate_latency": 5, "default_scenario": "success"},
            "database": {
                "enable_mocks": True,
                "seed_test_data": True,
                "in_memory": True,
                "enable_foreign_keys": True,
            },
            "websocket": {"enable_mocks": True, "simulate_latency": 5, "simulate_errors": False},
            "http": {"enable_mocks": True, "simulate_latency": 5, "simulate_errors": False},
        }
    )


def error_scenario_config() -> MockServerConfig:
    """Failing providers, unseeded data and flaky transports."""
    return _build(
        {
            "general": {"enable_logging": True, "reset_between_tests": True},
            "ai_providers": {"enable_mocks": True, "simulate_latency": 100, "default_scenario": "api_error"},
            "database": {"enable_mocks": True, "seed_test_data": False, "enable_foreign_keys": True},
            "websocket": {"enable_mocks": True, "simulate_latency": 100, "simulate_errors": True},
            "http": {"enable_mocks": True, "simulate_latency": 100, "simulate_errors": True},
        }
    )


PRESETS: dict[str, Callable[[], MockServerConfig]] = {
    "quick": quick_mock_config,
    "ai-only": ai_only_config,
    "database-only": database_only_config,
    "websocket-only": websocket_only_config,
    "full": full_integration_config,
    "errors": error_scenario_config,
}
