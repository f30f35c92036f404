"""Exception hierarchy for the mock infrastructure."""

RETRYABLE_KINDS = frozenset({"api_error", "timeout", "rate_limit"})


class MockInfraError(Exception):
    """Base class for every error raised by the simulators."""

    pass


class ScenarioInducedError(MockInfraError):
    """Raised by a provider simulator when a failure scenario is active.

    The message always names the scenario (or is the caller's custom error
    message). Credentials never appear in it.
    """

    def __init__(self, kind: str, message: str, provider: str = "unknown"):
        self.kind = kind
        self.provider = provider
        super().__init__(message)

    @property
    def retryable(self) -> bool:
        """Whether production retry logic would normally retry this failure."""
        return self.kind in RETRYABLE_KINDS


class ConstraintViolation(MockInfraError):
    """A write was rejected by the data store; nothing was mutated."""

    def __init__(self, message: str, table: str, column: str | None = None):
        self.table = table
        self.column = column
        super().__init__(message)


class ForeignKeyConstraintViolation(ConstraintViolation):
    """A foreign-key column did not resolve to an existing parent row."""

    pass


class UniqueConstraintViolation(ConstraintViolation):
    """An insert reused an existing primary key."""

    pass


class QueryError(MockInfraError):
    """Unsupported statement, unknown table, or closed database."""

    pass


class BrokerError(MockInfraError):
    """Session broker failure (disconnected client, connection limit, injected fault)."""

    pass


class LifecycleError(MockInfraError):
    """Orchestrator accessor used while the server is stopped."""

    pass


class ConfigurationError(MockInfraError):
    """Invalid or conflicting configuration."""

    pass
