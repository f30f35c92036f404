"""Context managers for using the integrated mock server from tests."""

from contextlib import contextmanager
from typing import Any, Iterator

from .clock import Clock
from .config import MockServerConfig
from .server import IntegratedMockServer


@contextmanager
def mock_environment(
    config: MockServerConfig | dict[str, Any] | None = None,
    clock: Clock | None = None,
    **kwargs: Any,
) -> Iterator[IntegratedMockServer]:
    """Start a server for the duration of the block and always stop it.

    Example:
        with mock_environment(ai_only_config(), clock=FakeClock()) as server:
            openai = server.get_providers().create_openai()
    """
    server = IntegratedMockServer(config, clock=clock, **kwargs)
    server.start()
    try:
        yield server
    finally:
        server.stop()


def reset_between_tests(server: IntegratedMockServer) -> bool:
    """Reset ``server`` if its config asks for it. Returns whether it reset."""
    if server.is_running and server.get_config().general.reset_between_tests:
        server.reset()
        return True
    return False
