"""Simulated Socket.IO client."""

import logging
import random
import uuid
from collections import defaultdict
from typing import TYPE_CHECKING, Any, Callable

from ..clock import Clock, Timer
from ..errors import BrokerError
from .messages import ConnectionState, SessionMessage

if TYPE_CHECKING:
    from .server import SessionServer

logger = logging.getLogger(__name__)

Listener = Callable[..., Any]


class SessionClient:
    """A client connection to the simulated session server.

    Joining or leaving a room takes effect immediately in every state but
    ``disconnected``. Messages sent while ``connecting`` hold their place in
    the room queue and are delivered once connected; sending while
    ``disconnected`` raises :class:`BrokerError`.

    Local events: ``connect``, ``disconnect``, ``session_message``,
    ``gm_notification``, ``error`` plus anything the server emits.
    """

    def __init__(
        self,
        server: "SessionServer",
        clock: Clock,
        id: str | None = None,
        auto_connect: bool = True,
        latency_ms: float = 10,
        simulate_errors: bool = False,
        error_threshold: int = 5,
        error_rate: float = 0.1,
        rng: random.Random | None = None,
    ):
        self.id = id or f"mock-socket-{uuid.uuid4().hex[:9]}"
        self.state = ConnectionState.DISCONNECTED
        self.joined_rooms: set[str] = set()
        self.latency_ms = latency_ms
        self.simulate_errors = simulate_errors
        self.error_threshold = error_threshold
        self.error_rate = error_rate

        self._server = server
        self._clock = clock
        self._rng = rng or random.Random()
        self._listeners: dict[str, list[tuple[Listener, bool]]] = defaultdict(list)
        self._connect_timer: Timer | None = None
        self._deliveries = 0

        if auto_connect:
            self.connect()

    def __repr__(self) -> str:
        return f"<SessionClient id={self.id!r} state={self.state.value}>"

    @property
    def connected(self) -> bool:
        return self.state is ConnectionState.CONNECTED

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Listener) -> "SessionClient":
        self._listeners[event].append((listener, False))
        return self

    def once(self, event: str, listener: Listener) -> "SessionClient":
        self._listeners[event].append((listener, True))
        return self

    def off(self, event: str, listener: Listener | None = None) -> "SessionClient":
        if listener is None:
            self._listeners.pop(event, None)
        else:
            self._listeners[event] = [
                entry for entry in self._listeners[event] if entry[0] is not listener
            ]
        return self

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

    def _emit_local(self, event: str, *args: Any) -> None:
        entries = list(self._listeners.get(event, []))
        if not entries:
            return
        self._listeners[event] = [entry for entry in self._listeners[event] if not entry[1]]
        for listener, _ in entries:
            listener(*args)

    # ------------------------------------------------------------------
    # Connection state machine
    # ------------------------------------------------------------------

    def connect(self) -> "SessionClient":
        """Start connecting. No-op while connecting or connected."""
        if self.state is not ConnectionState.DISCONNECTED:
            return self
        self.state = ConnectionState.CONNECTING
        self._connect_timer = self._clock.call_later(self.latency_ms, self._complete_connect)
        return self

    def _complete_connect(self) -> None:
        self._connect_timer = None
        if self.state is not ConnectionState.CONNECTING:
            return
        self.state = ConnectionState.CONNECTED
        logger.debug(f"Mock socket {self.id} connected")
        self._server._on_client_connected(self)
        self._emit_local("connect")

    def disconnect(self) -> "SessionClient":
        """Drop the connection, leaving every room. Sends still waiting on the connection are dropped."""
        if self.state is ConnectionState.DISCONNECTED:
            return self
        if self._connect_timer is not None:
            self._connect_timer.cancel()
            self._connect_timer = None
        self.state = ConnectionState.DISCONNECTED
        self.joined_rooms.clear()
        self._server._on_client_disconnected(self)
        logger.debug(f"Mock socket {self.id} disconnected")
        self._emit_local("disconnect", "client disconnect")
        return self

    # ------------------------------------------------------------------
    # Session messages
    # ------------------------------------------------------------------

    def join_session(self, session_id: str, participant_id: str | None = None) -> SessionMessage:
        return self._send(
            SessionMessage(type="join_session", session_id=session_id, player_id=participant_id)
        )

    def leave_session(self, session_id: str, participant_id: str | None = None) -> SessionMessage:
        return self._send(
            SessionMessage(type="leave_session", session_id=session_id, player_id=participant_id)
        )

    def send_player_action(self, session_id: str, player_id: str, data: Any) -> SessionMessage:
        return self._send(
            SessionMessage(type="player_action", session_id=session_id, player_id=player_id, data=data)
        )

    def send_gm_response(self, session_id: str, data: Any) -> SessionMessage:
        return self._send(SessionMessage(type="gm_response", session_id=session_id, data=data))

    def send_session_update(self, session_id: str, data: Any) -> SessionMessage:
        return self._send(SessionMessage(type="session_update", session_id=session_id, data=data))

    def _send(self, message: SessionMessage) -> SessionMessage:
        """Apply room membership now and queue the message in its room.

        While connecting, the message keeps its place in the room queue but is
        not delivered before the connection completes, and is dropped if the
        client disconnects first.
        """
        if self.state is ConnectionState.DISCONNECTED:
            raise BrokerError(f"Mock socket {self.id} is not connected")

        if message.type == "join_session":
            self.joined_rooms.add(message.session_id)
            self._server._join(self, message.session_id)

        if self.state is ConnectionState.CONNECTING and self._connect_timer is not None:
            self._server.route_message(message, not_before=self._connect_timer.due, sender=self)
        else:
            self._server.route_message(message)

        if message.type == "leave_session":
            self.joined_rooms.discard(message.session_id)
            self._server._leave(self, message.session_id)
        return message

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def _receive(self, event: str, payload: Any) -> None:
        """Called by the server when a scheduled delivery fires."""
        if not self.connected:
            return
        if (
            self.simulate_errors
            and self._deliveries >= self.error_threshold
            and self._rng.random() < self.error_rate
        ):
            logger.debug(f"Mock socket {self.id} injecting error for {event}")
            self._emit_local("error", BrokerError(f"Simulated socket error for event: {event}"))
            return
        self._deliveries += 1
        self._emit_local(event, payload)
