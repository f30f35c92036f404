"""Registry of simulated provider instances.

One registry belongs to one orchestrator. Instances are memoized by the
composite ``(provider_name, credential)`` key until :meth:`ProviderRegistry.clear`.
"""

import logging
from typing import Any, Type

from ..clock import Clock
from ..config import DEFAULT_CREDENTIALS
from ..errors import ConfigurationError
from .base import ProviderInstance
from .scenarios import ScenarioConfig

logger = logging.getLogger(__name__)

ALIASES = {"gemini": "google"}


def _get_provider_class(name: str) -> Type[ProviderInstance]:
    """Get the simulator class for a provider name."""
    if name == "openai":
        from .openai import OpenAIMock

        return OpenAIMock
    elif name == "anthropic":
        from .anthropic import AnthropicMock

        return AnthropicMock
    elif name == "google":
        from .google import GoogleGenerativeAIMock

        return GoogleGenerativeAIMock
    else:
        raise ConfigurationError(f"Unknown provider: {name}. Available: {list_providers()}")


def list_providers() -> list[str]:
    """List simulated provider names."""
    return ["openai", "anthropic", "google"]


class ProviderRegistry:
    """Memoizing factory for provider simulators."""

    def __init__(self, clock: Clock, default_scenario: ScenarioConfig | None = None):
        self._clock = clock
        self._default_scenario = default_scenario or ScenarioConfig()
        self._instances: dict[tuple[str, str], ProviderInstance] = {}

    def __len__(self) -> int:
        return len(self._instances)

    def create(self, provider_name: str, credential: str | None = None) -> ProviderInstance:
        """Return the instance for this identity, creating it on first use."""
        name = ALIASES.get(provider_name, provider_name)
        provider_class = _get_provider_class(name)
        credential = credential if credential is not None else DEFAULT_CREDENTIALS[name]

        key = (name, credential)
        instance = self._instances.get(key)
        if instance is None:
            instance = provider_class(credential, self._clock, self._default_scenario)
            self._instances[key] = instance
            logger.debug(f"Created {provider_class.__name__} mock ({len(self._instances)} live)")
        return instance

    def create_openai(self, credential: str | None = None):
        return self.create("openai", credential)

    def create_anthropic(self, credential: str | None = None):
        return self.create("anthropic", credential)

    def create_google(self, credential: str | None = None):
        return self.create("google", credential)

    def instances(self) -> list[ProviderInstance]:
        return list(self._instances.values())

    @property
    def default_scenario(self) -> ScenarioConfig:
        return self._default_scenario

    def set_default_scenario(self, config: ScenarioConfig | dict[str, Any]) -> None:
        """Apply a scenario to every live instance and to instances created later."""
        if not isinstance(config, ScenarioConfig):
            config = ScenarioConfig.model_validate(config)
        self._default_scenario = config
        for instance in self._instances.values():
            instance.set_scenario(config)

    def clear(self) -> None:
        """Drop every instance; later ``create`` calls return fresh objects."""
        self._instances.clear()
        logger.debug("AI provider mock instances cleared")

    clear_registry = clear
