"""Base class for simulated AI provider clients."""

import logging
from typing import Any

from ..clock import Clock
from ..errors import ScenarioInducedError
from .scenarios import Failure, ScenarioConfig, decide_outcome

logger = logging.getLogger(__name__)


class ProviderInstance:
    """A simulated provider client for one ``(provider_name, credential)`` identity.

    Subclasses expose the SDK-shaped surface (``chat.completions.create``,
    ``messages.create``, ``get_generative_model``) on top of :meth:`invoke`.
    """

    provider_name: str = "unknown"
    display_name: str = "Provider"
    style: str = "chat"

    def __init__(self, credential: str, clock: Clock, scenario: ScenarioConfig | None = None):
        self._credential = credential
        self._clock = clock
        self._scenario = scenario or ScenarioConfig()
        self.calls: list[Any] = []

    def __repr__(self) -> str:
        return f"<{type(self).__name__} provider={self.provider_name!r} scenario={self._scenario.scenario.value!r}>"

    @property
    def identity(self) -> tuple[str, str]:
        """Registry key. Kept off repr and error messages."""
        return (self.provider_name, self._credential)

    def set_scenario(self, config: ScenarioConfig | dict[str, Any]) -> None:
        """Replace the active scenario. Affects calls started after this point."""
        if not isinstance(config, ScenarioConfig):
            config = ScenarioConfig.model_validate(config)
        self._scenario = config
        logger.debug(f"{self.display_name} mock scenario set to {config.scenario.value}")

    def get_scenario(self) -> ScenarioConfig:
        return self._scenario

    async def invoke(self, request: Any) -> dict[str, Any]:
        """Run one simulated API call.

        The scenario is captured before the delay, so a ``set_scenario`` issued
        while this call is waiting does not change its outcome.

        Raises:
            ScenarioInducedError: For every non-success scenario.
        """
        snapshot = self._scenario
        self.calls.append(request)

        if snapshot.delay_ms > 0:
            await self._clock.sleep(snapshot.delay_ms)

        outcome = decide_outcome(snapshot, self.style, request, self.display_name)
        if isinstance(outcome, Failure):
            logger.debug(f"{self.display_name} mock raising {outcome.kind}")
            raise ScenarioInducedError(
                outcome.kind, outcome.message, provider=self.provider_name
            ) from outcome.cause
        return outcome.body
