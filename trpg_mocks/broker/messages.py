"""Wire shapes exchanged through the session broker."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

MessageType = Literal["join_session", "leave_session", "player_action", "gm_response", "session_update"]
NotificationType = Literal["milestone_completed", "player_stuck", "session_ready", "error_occurred"]
Priority = Literal["low", "medium", "high", "critical"]


def utc_timestamp() -> str:
    """Current time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        """camelCase envelope as sent over the real socket."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SessionMessage(_WireModel):
    """Unit of broadcast within a session room. Immutable once built."""

    type: MessageType
    session_id: str
    player_id: str | None = None
    data: Any = None
    timestamp: str = Field(default_factory=utc_timestamp)


class GMNotification(_WireModel):
    """Notification pushed to the GM of a session."""

    type: NotificationType
    session_id: str
    data: Any = None
    priority: Priority = "medium"
    timestamp: str = Field(default_factory=utc_timestamp)


def room_name(session_id: str) -> str:
    return f"session:{session_id}"
