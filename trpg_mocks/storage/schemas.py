"""Logical schema of the simulated TRPG database."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ForeignKey:
    """``column`` must match ``references_table.references_column`` of an existing row."""

    column: str
    references_table: str
    references_column: str = "id"


@dataclass(frozen=True)
class TableSchema:
    name: str
    columns: tuple[str, ...]
    foreign_keys: tuple[ForeignKey, ...] = ()
    primary_key: str = "id"


@dataclass(frozen=True)
class SchemaDescriptor:
    """Immutable set of tables for one data store."""

    tables: tuple[TableSchema, ...] = field(default_factory=tuple)

    def table(self, name: str) -> TableSchema | None:
        for table in self.tables:
            if table.name == name:
                return table
        return None

    @property
    def table_names(self) -> list[str]:
        return [table.name for table in self.tables]


TRPG_SCHEMA = SchemaDescriptor(
    tables=(
        TableSchema(
            name="campaigns",
            columns=(
                "id", "name", "description", "game_system", "gm_id", "status",
                "created_at", "updated_at",
            ),
        ),
        TableSchema(
            name="characters",
            columns=(
                "id", "campaign_id", "name", "race", "character_class", "level",
                "character_type", "player_id", "created_at", "updated_at",
            ),
            foreign_keys=(ForeignKey("campaign_id", "campaigns"),),
        ),
        TableSchema(
            name="sessions",
            columns=(
                "id", "campaign_id", "session_number", "title", "status",
                "scheduled_start_time", "actual_start_time", "actual_end_time",
                "created_at", "updated_at",
            ),
            foreign_keys=(ForeignKey("campaign_id", "campaigns"),),
        ),
        TableSchema(
            name="events",
            columns=(
                "id", "session_id", "title", "description", "event_type", "timestamp",
                "created_at", "updated_at",
            ),
            foreign_keys=(ForeignKey("session_id", "sessions"),),
        ),
        TableSchema(
            name="quests",
            columns=(
                "id", "campaign_id", "title", "description", "status", "difficulty",
                "created_at", "updated_at",
            ),
            foreign_keys=(ForeignKey("campaign_id", "campaigns"),),
        ),
        TableSchema(
            name="locations",
            columns=(
                "id", "campaign_id", "name", "description", "location_type",
                "created_at", "updated_at",
            ),
            foreign_keys=(ForeignKey("campaign_id", "campaigns"),),
        ),
        TableSchema(
            name="ai_requests",
            columns=(
                "id", "provider", "model", "prompt", "context", "timestamp", "response",
                "tokens_used", "processing_time", "category",
            ),
        ),
    )
)
