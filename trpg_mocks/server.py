"""Integrated mock server: one lifecycle for every simulator.

``start()`` builds each enabled simulator in isolation and registers a
cleanup for it. ``stop()`` runs those cleanups in reverse registration order
and cancels every timer left on the shared clock.
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from .broker import BrokerTestHelper, SessionServer
from .clock import Clock, RealClock
from .config import MockServerConfig, load_config
from .errors import ConfigurationError, LifecycleError
from .http_boundary import HTTPMockServer, HTTPTestHelper
from .providers import ProviderRegistry, ScenarioConfig
from .storage import DatabaseTestHelper, MockDatabase

logger = logging.getLogger(__name__)


class ServerState(str, Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class ServiceBundle:
    """Handles to the running simulators. Disabled subsystems are None."""

    clock: Clock
    config: MockServerConfig
    providers: ProviderRegistry | None = None
    broker: BrokerTestHelper | None = None
    server: SessionServer | None = None
    database: DatabaseTestHelper | None = None
    db: MockDatabase | None = None
    http: HTTPTestHelper | None = None


class IntegratedMockServer:
    """Starts, resets and tears down the simulators as one unit.

    Args:
        config: A :class:`MockServerConfig`, or a (possibly camelCase) mapping
            of per-section overrides on top of the defaults.
        clock: Shared clock for every simulated delay. Defaults to a RealClock.
        rng: Randomness for every simulator's fault injection.
    """

    def __init__(
        self,
        config: MockServerConfig | dict[str, Any] | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ):
        if isinstance(config, MockServerConfig):
            self._config = load_config(config)
        else:
            self._config = MockServerConfig().merged(config)
        self.clock = clock or RealClock()
        self.rng = rng or random.Random()
        self.state = ServerState.STOPPED
        self._services: ServiceBundle | None = None
        self._cleanups: list[tuple[str, Callable[[], Any]]] = []

    def __repr__(self) -> str:
        return f"IntegratedMockServer(state={self.state.value})"

    def __enter__(self) -> ServiceBundle:
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    @property
    def is_running(self) -> bool:
        return self.state is ServerState.RUNNING

    def _log(self, level: int, message: str) -> None:
        if self._config.general.enable_logging:
            logger.log(level, message)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self, config: MockServerConfig | dict[str, Any] | None = None) -> ServiceBundle:
        """Start every enabled simulator and return the bundle.

        Starting a running server logs a warning and returns the existing bundle.
        """
        if self.is_running:
            logger.warning("Mock server is already running")
            return self._services

        if config is not None:
            self.update_config(config)

        self._log(logging.INFO, "Starting integrated mock server...")
        self._services = ServiceBundle(clock=self.clock, config=self._config)
        self._cleanups = []

        try:
            if self._config.ai_providers.enable_mocks:
                self._setup_providers()
            if self._config.database.enable_mocks:
                self._setup_database()
            if self._config.websocket.enable_mocks:
                self._setup_broker()
            if self._config.http.enable_mocks:
                self._setup_http()
        except Exception as e:
            logger.error(f"Failed to start integrated mock server: {e}")
            self._teardown()
            raise

        self.state = ServerState.RUNNING
        self._log(logging.INFO, "Integrated mock server started")
        return self._services

    def stop(self) -> None:
        """Run cleanups newest first and cancel all clock timers. No-op when stopped."""
        if not self.is_running:
            return
        self._log(logging.INFO, "Stopping integrated mock server...")
        self._teardown()
        self._log(logging.INFO, "Integrated mock server stopped")

    def _teardown(self) -> None:
        while self._cleanups:
            name, cleanup = self._cleanups.pop()
            try:
                cleanup()
            except Exception as e:
                logger.error(f"Error during {name} cleanup: {e}")
        cancelled = self.clock.cancel_all()
        if cancelled:
            self._log(logging.DEBUG, f"Cancelled {cancelled} outstanding timers")
        self._services = None
        self.state = ServerState.STOPPED

    def reset(self) -> None:
        """Restore every running simulator to its just-started state."""
        if not self.is_running:
            logger.debug("Reset requested while stopped; nothing to do")
            return

        services = self._services
        if services.providers is not None:
            services.providers.set_default_scenario(self._default_scenario())
        if services.db is not None:
            services.db.clear_all_data()
            if self._config.database.seed_test_data:
                services.db.seed_test_data()
        if services.broker is not None:
            services.broker.cleanup()
            services.broker = self._new_broker()
            services.server = services.broker.get_server()
        if services.http is not None:
            services.http.reset_mocks()

        self._log(logging.DEBUG, "Mock server reset completed")

    # ------------------------------------------------------------------
    # Subsystems
    # ------------------------------------------------------------------

    def _register_cleanup(self, name: str, cleanup: Callable[[], Any]) -> None:
        self._cleanups.append((name, cleanup))

    def _default_scenario(self) -> ScenarioConfig:
        ai = self._config.ai_providers
        return ScenarioConfig(scenario=ai.default_scenario, delay_ms=ai.simulate_latency)

    def _setup_providers(self) -> None:
        registry = ProviderRegistry(self.clock, self._default_scenario())
        self._services.providers = registry
        self._register_cleanup("AI provider", registry.clear)
        self._log(logging.DEBUG, "AI provider mocks initialized")

    def _setup_database(self) -> None:
        db_config = self._config.database
        database = MockDatabase(
            ":memory:",
            enable_foreign_keys=db_config.enable_foreign_keys,
            rng=self.rng,
        )
        helper = DatabaseTestHelper(database)
        helper.setup_test_database(seed=db_config.seed_test_data)
        self._services.database = helper
        self._services.db = database
        self._register_cleanup("database", helper.cleanup)
        self._log(logging.DEBUG, "Database mocks initialized")

    def _new_broker(self) -> BrokerTestHelper:
        ws = self._config.websocket
        return BrokerTestHelper(
            self.clock,
            simulate_latency=ws.simulate_latency,
            simulate_errors=ws.simulate_errors,
            max_connections=ws.max_connections,
            rng=self.rng,
        )

    def _setup_broker(self) -> None:
        helper = self._new_broker()
        self._services.broker = helper
        self._services.server = helper.get_server()
        services = self._services
        # reset() swaps the helper, so resolve it at cleanup time
        self._register_cleanup("WebSocket", lambda: services.broker and services.broker.cleanup())
        self._log(logging.DEBUG, "WebSocket mocks initialized")

    def _setup_http(self) -> None:
        http_config = self._config.http
        helper = HTTPTestHelper(
            HTTPMockServer(
                base_url=http_config.base_url,
                clock=self.clock,
                simulate_latency=http_config.simulate_latency,
                simulate_errors=http_config.simulate_errors,
                error_rate=http_config.error_rate,
                enable_logging=self._config.general.enable_logging,
                rng=self.rng,
            )
        )
        helper.setup_http_mocks()
        self._services.http = helper
        self._register_cleanup("HTTP", helper.teardown_http_mocks)
        self._log(logging.DEBUG, "HTTP mocks initialized")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    def get_services(self) -> ServiceBundle:
        if not self.is_running:
            raise LifecycleError("Mock server is not running. Call start() first.")
        return self._services

    def _require(self, attribute: str, label: str) -> Any:
        service = getattr(self.get_services(), attribute)
        if service is None:
            raise ConfigurationError(f"{label} mocks are disabled in this configuration")
        return service

    def get_providers(self) -> ProviderRegistry:
        return self._require("providers", "AI provider")

    def get_database(self) -> MockDatabase:
        return self._require("db", "Database")

    def get_database_helper(self) -> DatabaseTestHelper:
        return self._require("database", "Database")

    def get_broker(self) -> BrokerTestHelper:
        return self._require("broker", "WebSocket")

    def get_session_server(self) -> SessionServer:
        return self._require("server", "WebSocket")

    def get_http(self) -> HTTPTestHelper:
        return self._require("http", "HTTP")

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def update_config(self, overrides: MockServerConfig | dict[str, Any]) -> None:
        """Merge ``overrides`` into the configuration.

        While running this only logs a warning and leaves the config untouched.

        Raises:
            ConfigurationError: If the merged config is invalid.
        """
        if self.is_running:
            logger.warning("Cannot update config while server is running")
            return
        self._config = self._config.merged(overrides)

    def get_config(self) -> MockServerConfig:
        return self._config.model_copy(deep=True)
