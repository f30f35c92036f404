"""Configuration for the integrated mock server."""

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigurationError

load_dotenv()

SCENARIOS = ("success", "api_error", "timeout", "rate_limit", "invalid_key", "model_not_found")

# Environment defaults
DEFAULT_SCENARIO = os.getenv("MOCK_DEFAULT_SCENARIO", "success")
AI_LATENCY_MS = int(os.getenv("MOCK_AI_LATENCY_MS", "100"))
WS_LATENCY_MS = int(os.getenv("MOCK_WS_LATENCY_MS", "50"))
WS_PORT = int(os.getenv("MOCK_WS_PORT", "3002"))
HTTP_BASE_URL = os.getenv("MOCK_HTTP_BASE_URL", "http://localhost:3001")
HTTP_LATENCY_MS = int(os.getenv("MOCK_HTTP_LATENCY_MS", "100"))
ENABLE_LOGGING = os.getenv("MOCK_ENABLE_LOGGING", "false").lower() == "true"
SEED_TEST_DATA = os.getenv("MOCK_SEED_TEST_DATA", "true").lower() == "true"

# Default credentials used when a test does not pass one
DEFAULT_CREDENTIALS = {
    "openai": "mock-openai-key",
    "anthropic": "mock-anthropic-key",
    "google": "mock-google-key",
}


class _Section(BaseModel):
    """Base for config sections: snake_case fields, camelCase aliases accepted."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        validate_assignment=True,
    )


class AIProvidersConfig(_Section):
    enable_mocks: bool = True
    default_scenario: str = DEFAULT_SCENARIO
    simulate_latency: int = Field(default=AI_LATENCY_MS, ge=0)

    @model_validator(mode="after")
    def _check_scenario(self) -> "AIProvidersConfig":
        if self.default_scenario not in SCENARIOS:
            raise ValueError(
                f"Unknown scenario '{self.default_scenario}'. Available: {list(SCENARIOS)}"
            )
        return self


class WebSocketConfig(_Section):
    enable_mocks: bool = True
    port: int = WS_PORT
    simulate_latency: int = Field(default=WS_LATENCY_MS, ge=0)
    simulate_errors: bool = False
    max_connections: int = Field(default=100, ge=1)


class DatabaseConfig(_Section):
    enable_mocks: bool = True
    in_memory: bool = True
    seed_test_data: bool = SEED_TEST_DATA
    enable_foreign_keys: bool = True

    @model_validator(mode="after")
    def _check_in_memory(self) -> "DatabaseConfig":
        if self.enable_mocks and not self.in_memory:
            raise ValueError("Database mocks only support in_memory=True")
        return self


class HTTPConfig(_Section):
    enable_mocks: bool = True
    base_url: str = Field(default=HTTP_BASE_URL, alias="baseURL")
    simulate_latency: int = Field(default=HTTP_LATENCY_MS, ge=0)
    simulate_errors: bool = False
    error_rate: float = Field(default=0.05, ge=0.0, le=1.0)


class GeneralConfig(_Section):
    enable_logging: bool = ENABLE_LOGGING
    reset_between_tests: bool = True


SECTIONS = ("ai_providers", "websocket", "database", "http", "general")


class MockServerConfig(_Section):
    """Full orchestrator configuration.

    Accepts both ``{"ai_providers": {"enable_mocks": True}}`` and the camelCase
    form ``{"aiProviders": {"enableMocks": True}}``.
    """

    ai_providers: AIProvidersConfig = Field(default_factory=AIProvidersConfig)
    websocket: WebSocketConfig = Field(default_factory=WebSocketConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    http: HTTPConfig = Field(default_factory=HTTPConfig)
    general: GeneralConfig = Field(default_factory=GeneralConfig)

    def merged(self, overrides: "MockServerConfig | dict[str, Any] | None") -> "MockServerConfig":
        """Return a new config with ``overrides`` applied section by section."""
        if overrides is None:
            return self.model_copy(deep=True)
        if isinstance(overrides, MockServerConfig):
            overrides = overrides.model_dump(exclude_unset=True)

        data = self.model_dump()
        for key, value in overrides.items():
            section = _section_name(key)
            if not isinstance(value, dict):
                raise ConfigurationError(f"Config section '{key}' must be a mapping")
            data[section].update(_normalize_keys(section, value))
        return load_config(data)


def _section_name(key: str) -> str:
    for section in SECTIONS:
        if key in (section, to_camel(section)):
            return section
    raise ConfigurationError(f"Unknown config section '{key}'. Available: {list(SECTIONS)}")


def _normalize_keys(section: str, values: dict[str, Any]) -> dict[str, Any]:
    """Translate camelCase keys of one section to field names."""
    model = MockServerConfig.model_fields[section].annotation
    by_alias = {
        (field.alias or to_camel(name)): name for name, field in model.model_fields.items()
    }
    normalized = {}
    for key, value in values.items():
        name = by_alias.get(key, key)
        if name not in model.model_fields:
            raise ConfigurationError(f"Unknown option '{section}.{key}'")
        normalized[name] = value
    return normalized


def load_config(data: "MockServerConfig | dict[str, Any] | None" = None) -> MockServerConfig:
    """Build a validated config, raising ConfigurationError on bad input."""
    if isinstance(data, MockServerConfig):
        return data.model_copy(deep=True)
    try:
        return MockServerConfig.model_validate(data or {})
    except ValidationError as e:
        raise ConfigurationError(f"Invalid mock server config: {e}") from e
