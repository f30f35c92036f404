"""Simulated Socket.IO server with session rooms."""

import logging
import random
from collections import defaultdict, deque
from typing import Any, Callable

from ..clock import Clock, Timer
from ..errors import BrokerError
from .client import SessionClient
from .messages import ConnectionState, GMNotification, SessionMessage, room_name

logger = logging.getLogger(__name__)


class SessionServer:
    """In-process broadcast hub.

    Each broadcast is queued per room. A clock timer per broadcast pops the
    head of that room's queue, so delivery order within a room always equals
    broadcast call order, whatever the latency. Recipients are the room's
    connected members at the moment the delivery fires.
    """

    def __init__(
        self,
        clock: Clock,
        latency_ms: float = 0,
        max_connections: int = 100,
        simulate_connection_failures: bool = False,
        failure_rate: float = 0.1,
        client_error_rate: float = 0.1,
        rng: random.Random | None = None,
    ):
        self.latency_ms = latency_ms
        self.max_connections = max_connections
        self.simulate_connection_failures = simulate_connection_failures
        self.failure_rate = failure_rate
        self.client_error_rate = client_error_rate

        self._clock = clock
        self._rng = rng or random.Random()
        self._clients: dict[str, SessionClient] = {}
        self._rooms: dict[str, list[str]] = {}
        self._queues: dict[str, deque] = defaultdict(deque)
        self._room_tail: dict[str, float] = {}
        self._timers: list[Timer] = []
        self._listeners: dict[str, list[Callable[..., Any]]] = defaultdict(list)

        logger.debug("Mock Socket.IO server created")

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def on(self, event: str, listener: Callable[..., Any]) -> "SessionServer":
        """Register a server-side listener (``connection``, ``disconnection``, ``message``)."""
        self._listeners[event].append(listener)
        return self

    def _emit_server(self, event: str, *args: Any) -> None:
        for listener in list(self._listeners.get(event, [])):
            listener(*args)

    def simulate_connection(self, **client_options: Any) -> SessionClient:
        """Create a client attached to this server.

        Raises:
            BrokerError: When the connection limit is reached or an injected
                connection failure triggers.
        """
        live = [c for c in self._clients.values() if c.state is not ConnectionState.DISCONNECTED]
        if len(live) >= self.max_connections:
            raise BrokerError("Maximum connections reached")
        if self.simulate_connection_failures and self._rng.random() < self.failure_rate:
            raise BrokerError("Simulated connection failure")

        requested_id = client_options.get("id")
        if requested_id is not None and requested_id in self._clients:
            raise BrokerError(f"Client id '{requested_id}' is already registered")

        client_options.setdefault("latency_ms", self.latency_ms)
        if client_options.get("simulate_errors"):
            client_options.setdefault("error_rate", self.client_error_rate)
            client_options.setdefault("rng", self._rng)
        client = SessionClient(self, self._clock, **client_options)
        self._clients[client.id] = client
        return client

    def _on_client_connected(self, client: SessionClient) -> None:
        self._clients.setdefault(client.id, client)
        self._emit_server("connection", client)

    def _on_client_disconnected(self, client: SessionClient) -> None:
        for room in list(self._rooms):
            self._remove_from_room(client.id, room)
        self._emit_server("disconnection", client)

    def _join(self, client: SessionClient, session_id: str) -> None:
        members = self._rooms.setdefault(room_name(session_id), [])
        if client.id not in members:
            members.append(client.id)
        logger.debug(f"Mock socket {client.id} joined room: {room_name(session_id)}")

    def _leave(self, client: SessionClient, session_id: str) -> None:
        self._remove_from_room(client.id, room_name(session_id))
        logger.debug(f"Mock socket {client.id} left room: {room_name(session_id)}")

    def _remove_from_room(self, client_id: str, room: str) -> None:
        members = self._rooms.get(room)
        if members and client_id in members:
            members.remove(client_id)
            if not members:
                del self._rooms[room]

    # ------------------------------------------------------------------
    # Broadcast
    # ------------------------------------------------------------------

    def route_message(
        self,
        message: SessionMessage,
        not_before: float | None = None,
        sender: SessionClient | None = None,
    ) -> None:
        """Rebroadcast a client-originated message to its session room.

        Args:
            not_before: Clock time the message leaves the sender, for senders
                that are still connecting.
            sender: When given, the message is dropped unless this client is
                connected at delivery time.
        """
        self._emit_server("message", message)
        self._broadcast(
            room_name(message.session_id), "session_message", message, not_before=not_before, sender=sender
        )

    def broadcast_to_session(
        self, session_id: str, type: str, data: Any = None, player_id: str | None = None
    ) -> SessionMessage:
        """Deliver a server-built message to every connected member of the session."""
        message = SessionMessage(type=type, session_id=session_id, player_id=player_id, data=data)
        self._broadcast(room_name(session_id), "session_message", message)
        return message

    def send_gm_notification(self, notification: GMNotification) -> None:
        self._broadcast(room_name(notification.session_id), "gm_notification", notification)

    def emit_all(self, event: str, payload: Any = None) -> None:
        """Send an event to every connected client regardless of room."""
        self._schedule("*", event, payload, room=None)

    def _broadcast(
        self,
        room: str,
        event: str,
        payload: Any,
        not_before: float | None = None,
        sender: SessionClient | None = None,
    ) -> None:
        logger.debug(f"Broadcasting to room {room}: {event} ({len(self._rooms.get(room, []))} members)")
        self._schedule(room, event, payload, room=room, not_before=not_before, sender=sender)

    def _schedule(
        self,
        channel: str,
        event: str,
        payload: Any,
        room: str | None,
        not_before: float | None = None,
        sender: SessionClient | None = None,
    ) -> None:
        self._queues[channel].append((event, payload, room, sender))
        start = self._clock.now() if not_before is None else max(self._clock.now(), not_before)
        due = max(start + self.latency_ms, self._room_tail.get(channel, float("-inf")))
        self._room_tail[channel] = due
        timer = self._clock.call_at(due, self._deliver_next, channel)
        self._timers.append(timer)

    def _recipients(self, room: str | None) -> list[SessionClient]:
        """Connected clients in ``room`` (every connected client for None), resolved now."""
        if room is None:
            return self.get_connected_clients()
        return [
            self._clients[client_id]
            for client_id in self._rooms.get(room, [])
            if client_id in self._clients and self._clients[client_id].connected
        ]

    def _deliver_next(self, channel: str) -> None:
        self._timers = [t for t in self._timers if t.active]
        queue = self._queues.get(channel)
        if not queue:
            return
        event, payload, room, sender = queue.popleft()
        if sender is not None and not sender.connected:
            logger.debug(f"Dropping {event} from {sender.id}: sender never connected")
            return
        for client in self._recipients(room):
            client._receive(event, payload)

    # ------------------------------------------------------------------
    # Introspection and cleanup
    # ------------------------------------------------------------------

    def get_connected_clients(self) -> list[SessionClient]:
        return [c for c in self._clients.values() if c.connected]

    def get_session_clients(self, session_id: str) -> list[SessionClient]:
        return [
            self._clients[client_id]
            for client_id in self._rooms.get(room_name(session_id), [])
            if client_id in self._clients
        ]

    def pending_deliveries(self) -> int:
        return sum(len(queue) for queue in self._queues.values())

    def disconnect_all(self) -> None:
        """Disconnect every client and drop undelivered broadcasts."""
        for timer in self._timers:
            timer.cancel()
        self._timers.clear()
        self._queues.clear()
        self._room_tail.clear()
        for client in list(self._clients.values()):
            client.disconnect()
        self._clients.clear()
        self._rooms.clear()
