"""Test-facing helper around the session server."""

import asyncio
import logging
import random
from typing import Any

from ..clock import Clock, Timer
from .client import SessionClient
from .server import SessionServer

logger = logging.getLogger(__name__)


class BrokerTestHelper:
    """Owns one :class:`SessionServer` and the clients created through it."""

    def __init__(
        self,
        clock: Clock,
        simulate_latency: float = 10,
        simulate_errors: bool = False,
        max_connections: int = 100,
        rng: random.Random | None = None,
    ):
        self.clock = clock
        self.simulate_latency = simulate_latency
        self.simulate_errors = simulate_errors
        self.server = SessionServer(
            clock,
            latency_ms=simulate_latency,
            max_connections=max_connections,
            simulate_connection_failures=simulate_errors,
            rng=rng,
        )
        self.clients: list[SessionClient] = []
        self._timers: list[Timer] = []

    def get_server(self) -> SessionServer:
        return self.server

    def create_client(
        self,
        id: str | None = None,
        auto_connect: bool = True,
        simulate_errors: bool | None = None,
        **options: Any,
    ) -> SessionClient:
        """Open a client on the server. ``simulate_errors`` defaults to the helper's setting."""
        if simulate_errors is None:
            simulate_errors = self.simulate_errors
        client = self.server.simulate_connection(
            id=id, auto_connect=auto_connect, simulate_errors=simulate_errors, **options
        )
        self.clients.append(client)
        return client

    def create_session_clients(self, session_id: str, player_count: int) -> list[SessionClient]:
        """Create ``player_count`` clients already joined to ``session_id``."""
        clients = []
        for i in range(player_count):
            client = self.create_client(id=f"player-{i}-{session_id}")
            client.join_session(session_id, f"player-{i}")
            clients.append(client)
        return clients

    def simulate_session_activity(self, session_id: str, clients: list[SessionClient]) -> None:
        """Script a round: each player moves north, then the GM answers."""
        for index, client in enumerate(clients):
            self._timers.append(
                self.clock.call_later(
                    100 * (index + 1),
                    self._send_if_connected,
                    client,
                    session_id,
                    f"player-{index}",
                    {
                        "action": "move",
                        "target": "north",
                        "message": f"Player {index} moves north",
                    },
                )
            )

        self._timers.append(
            self.clock.call_later(
                100 * (len(clients) + 1) + 100,
                self.server.broadcast_to_session,
                session_id,
                "gm_response",
                {
                    "message": "You all move north into a dark corridor...",
                    "newLocation": "Dark Corridor",
                    "availableActions": ["investigate", "continue", "retreat"],
                },
            )
        )

    @staticmethod
    def _send_if_connected(client: SessionClient, session_id: str, player_id: str, data: Any) -> None:
        if client.connected:
            client.send_player_action(session_id, player_id, data)

    async def wait_for_event(self, client: SessionClient, event: str, timeout_ms: float = 1000) -> Any:
        """Resolve with the next payload of ``event`` on ``client``.

        Raises:
            TimeoutError: If the event does not arrive within ``timeout_ms`` of clock time.
        """
        future = asyncio.get_running_loop().create_future()

        def on_event(*args: Any) -> None:
            if not future.done():
                future.set_result(args[0] if len(args) == 1 else args)

        def on_timeout() -> None:
            if not future.done():
                future.set_exception(TimeoutError(f"Timeout waiting for event: {event}"))

        client.once(event, on_event)
        timer = self.clock.call_later(timeout_ms, on_timeout)
        try:
            return await future
        finally:
            timer.cancel()
            client.off(event, on_event)

    def cleanup(self) -> None:
        """Disconnect everything and cancel scripted activity."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        for client in self.clients:
            client.disconnect()
        self.server.disconnect_all()
        self.clients = []
