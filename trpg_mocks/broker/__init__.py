"""In-process session broker simulating the realtime transport."""

from .client import SessionClient
from .helper import BrokerTestHelper
from .messages import ConnectionState, GMNotification, SessionMessage
from .server import SessionServer

__all__ = [
    "BrokerTestHelper",
    "ConnectionState",
    "GMNotification",
    "SessionClient",
    "SessionMessage",
    "SessionServer",
]
