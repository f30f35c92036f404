"""Test-facing helper for building rows with sensible defaults."""

from datetime import datetime, timezone
from typing import Any

from .database import MockDatabase


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class DatabaseTestHelper:
    def __init__(self, database: MockDatabase | None = None, **options: Any):
        self.database = database or MockDatabase(":memory:", **options)

    def setup_test_database(self, seed: bool = True) -> MockDatabase:
        if seed:
            self.database.seed_test_data()
        return self.database

    def create_test_campaign(self, **data: Any) -> dict[str, Any]:
        now = _now()
        campaign = {
            "name": "Test Campaign",
            "description": "Campaign created for a test",
            "game_system": "D&D 5e",
            "gm_id": "test-gm",
            "status": "active",
            "created_at": now,
            "updated_at": now,
            **data,
        }
        return self._create("campaigns", campaign)

    def create_test_character(self, campaign_id: str, **data: Any) -> dict[str, Any]:
        """Create a level 1 human fighter in ``campaign_id``."""
        now = _now()
        character = {
            "name": "Test Character",
            "race": "Human",
            "character_class": "Fighter",
            "level": 1,
            "campaign_id": campaign_id,
            "character_type": "PC",
            "player_id": "test-player",
            "created_at": now,
            "updated_at": now,
            **data,
        }
        return self._create("characters", character)

    def create_test_session(self, campaign_id: str, **data: Any) -> dict[str, Any]:
        now = _now()
        session = {
            "campaign_id": campaign_id,
            "session_number": 1,
            "title": "Test Session",
            "status": "scheduled",
            "scheduled_start_time": now,
            "created_at": now,
            "updated_at": now,
            **data,
        }
        return self._create("sessions", session)

    def _create(self, table: str, row: dict[str, Any]) -> dict[str, Any]:
        key = self.database.insert(table, row)
        return {**row, "id": key}

    def get_database(self) -> MockDatabase:
        return self.database

    def cleanup(self) -> None:
        self.database.close()
