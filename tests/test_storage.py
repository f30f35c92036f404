"""Tests for the in-memory data store, query parsing and database handle."""

import random

import pytest

from trpg_mocks.errors import ForeignKeyConstraintViolation, QueryError, UniqueConstraintViolation
from trpg_mocks.storage import (
    DatabaseTestHelper,
    DataStore,
    MockDatabase,
    RunResult,
    TRPG_SCHEMA,
    parse_query,
    setup_database,
)
from trpg_mocks.storage.query import PLACEHOLDER

SEEDED_COUNTS = {
    "campaigns": 2,
    "characters": 3,
    "sessions": 2,
    "events": 2,
    "quests": 1,
    "locations": 2,
    "ai_requests": 1,
}


class TestSchema:
    """Tests for the fixed TRPG schema."""

    def test_tables(self):
        """The schema should declare the seven logical tables."""
        assert TRPG_SCHEMA.table_names == list(SEEDED_COUNTS)

    def test_foreign_keys(self):
        """Child tables should reference their parents."""
        references = {
            table.name: [(fk.column, fk.references_table) for fk in table.foreign_keys]
            for table in TRPG_SCHEMA.tables
        }

        assert references["characters"] == [("campaign_id", "campaigns")]
        assert references["events"] == [("session_id", "sessions")]
        assert references["ai_requests"] == []


class TestDataStore:
    """Tests for DataStore writes and reads."""

    def test_insert_with_existing_parent(self, store):
        """Inserting a child whose parent exists should succeed."""
        store.insert("campaigns", {"id": "camp-1", "name": "Camp"})

        key = store.insert("characters", {"campaign_id": "camp-1", "name": "Hero"})

        assert key == "1"
        assert store.get("characters", key)["name"] == "Hero"

    def test_insert_with_missing_parent_is_atomic(self, store):
        """A dangling foreign key should raise and leave the table untouched."""
        store.insert("campaigns", {"id": "camp-1"})
        store.insert("characters", {"campaign_id": "camp-1"})
        before = store.count("characters")

        with pytest.raises(ForeignKeyConstraintViolation) as excinfo:
            store.insert("characters", {"campaign_id": "missing", "name": "Ghost"})

        assert str(excinfo.value).startswith("Foreign key constraint violation")
        assert "characters.campaign_id" in str(excinfo.value)
        assert excinfo.value.table == "characters"
        assert store.count("characters") == before

    def test_null_foreign_key_allowed(self, store):
        """A null reference is not checked."""
        key = store.insert("characters", {"campaign_id": None, "name": "Drifter"})

        assert store.get("characters", key)["campaign_id"] is None

    def test_foreign_keys_can_be_disabled(self):
        """enforce_foreign_keys=False should accept dangling references."""
        store = DataStore(enforce_foreign_keys=False)

        store.insert("events", {"session_id": "nowhere"})

        assert store.count("events") == 1

    def test_generated_keys_skip_used_ids(self, store):
        """Generated keys should never collide with explicit ones."""
        store.insert("campaigns", {"id": "1"})
        store.insert("campaigns", {"id": "2"})

        assert store.insert("campaigns", {"name": "third"}) == "3"

    def test_duplicate_primary_key(self, store):
        """Inserting an existing key should raise UniqueConstraintViolation."""
        store.insert("campaigns", {"id": "1", "name": "first"})

        with pytest.raises(UniqueConstraintViolation):
            store.insert("campaigns", {"id": "1", "name": "second"})

        assert store.get("campaigns", "1")["name"] == "first"

    def test_upsert_replaces(self, store):
        """upsert should replace the row with the same key."""
        store.upsert("campaigns", {"id": "1", "name": "first"})
        store.upsert("campaigns", {"id": "1", "name": "second"})

        assert store.count("campaigns") == 1
        assert store.get("campaigns", 1)["name"] == "second"

    def test_update_validates_foreign_keys(self, store):
        """update should reject a change to a dangling reference."""
        store.insert("campaigns", {"id": "c1"})
        key = store.insert("characters", {"campaign_id": "c1", "level": 1})

        assert store.update("characters", key, {"level": 2}) == 1
        with pytest.raises(ForeignKeyConstraintViolation):
            store.update("characters", key, {"campaign_id": "gone"})

        row = store.get("characters", key)
        assert row["campaign_id"] == "c1"
        assert row["level"] == 2

    def test_update_missing_row(self, store):
        """update on an unknown key changes nothing."""
        assert store.update("campaigns", "404", {"name": "x"}) == 0

    def test_delete(self, store):
        """delete should report how many rows it removed."""
        store.insert("campaigns", {"id": "1"})

        assert store.delete("campaigns", "1") == 1
        assert store.delete("campaigns", "1") == 0

    def test_select_with_conditions(self, store):
        """select should filter by equality and treat numeric ids like strings."""
        store.insert("campaigns", {"id": "1"})
        store.insert("characters", {"campaign_id": "1", "character_type": "PC"})
        store.insert("characters", {"campaign_id": 1, "character_type": "NPC"})

        assert len(store.select("characters", campaign_id="1")) == 2
        assert [r["character_type"] for r in store.select("characters", character_type="NPC")] == ["NPC"]

    def test_rows_are_copies(self, store):
        """Mutating a returned row should not change the store."""
        store.insert("campaigns", {"id": "1", "name": "original"})

        store.get("campaigns", "1")["name"] = "changed"

        assert store.get("campaigns", "1")["name"] == "original"

    def test_unknown_table(self, store):
        """Unknown tables should raise QueryError."""
        with pytest.raises(QueryError) as excinfo:
            store.insert("dragons", {})

        assert "dragons" in str(excinfo.value)

    def test_clear_keeps_schema(self, store):
        """clear should empty every table and reset sequences."""
        store.insert("campaigns", {"name": "x"})

        store.clear()

        assert store.counts() == {name: 0 for name in SEEDED_COUNTS}
        assert store.insert("campaigns", {"name": "y"}) == "1"


class TestParseQuery:
    """Tests for SQL to QueryDescriptor translation."""

    def test_select_with_where(self):
        """SELECT with placeholders and literals should parse into predicates."""
        query = parse_query("SELECT * FROM characters WHERE campaign_id = ? AND character_type = 'PC'")

        assert query.kind == "select"
        assert query.table == "characters"
        assert query.columns == ()
        assert query.where == (("campaign_id", PLACEHOLDER), ("character_type", "PC"))

    def test_select_columns_order_limit(self):
        """Column lists, ORDER BY and LIMIT should be captured."""
        query = parse_query("select id, name from campaigns order by name desc limit 5;")

        assert query.columns == ("id", "name")
        assert query.order_by == "name"
        assert query.descending is True
        assert query.limit == 5

    def test_count(self):
        """COUNT(*) should parse as a count query."""
        query = parse_query("SELECT COUNT(*) AS total FROM sessions WHERE campaign_id = ?")

        assert query.kind == "count"
        assert query.count_alias == "total"
        assert query.placeholder_count == 1

    def test_insert(self):
        """INSERT should pair columns with values."""
        query = parse_query("INSERT INTO campaigns (id, name) VALUES (?, 'Camp')")

        assert query.kind == "insert"
        assert query.columns == ("id", "name")
        assert query.values == (PLACEHOLDER, "Camp")

    def test_update_and_delete(self):
        """UPDATE and DELETE should carry their predicates."""
        update = parse_query("UPDATE sessions SET status = ?, title = ? WHERE id = ?")
        delete = parse_query("DELETE FROM events WHERE session_id = ?")

        assert update.columns == ("status", "title")
        assert update.placeholder_count == 3
        assert delete.kind == "delete"
        assert delete.where == (("session_id", PLACEHOLDER),)

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT * FROM a JOIN b ON a.id = b.a_id",
            "SELECT * FROM characters WHERE level > 3",
            "DROP TABLE campaigns",
        ],
    )
    def test_unsupported(self, sql):
        """Statements outside the supported subset should raise QueryError."""
        with pytest.raises(QueryError):
            parse_query(sql)


class TestMockDatabase:
    """Tests for the prepared-statement surface."""

    def test_prepare_select_with_parameter(self, database):
        """A character inserted for an existing campaign is returned by a parameterized select."""
        database.insert("campaigns", {"id": "camp-1", "name": "Camp"})
        database.insert("characters", {"campaign_id": "camp-1", "name": "Hero"})

        rows = database.prepare("SELECT * FROM characters WHERE campaign_id = ?").all("camp-1")

        assert len(rows) == 1
        assert rows[0]["name"] == "Hero"

    def test_failed_insert_leaves_count_unchanged(self, database):
        """An insert with a missing parent raises and does not change the count."""
        before = database.count_records("characters")

        with pytest.raises(ForeignKeyConstraintViolation) as excinfo:
            database.insert("characters", {"campaign_id": "missing"})

        assert "Foreign key constraint violation" in str(excinfo.value)
        assert database.count_records("characters") == before

    def test_run_insert(self, seeded_database):
        """run on an INSERT should report the change and the new row id."""
        statement = seeded_database.prepare(
            "INSERT INTO characters (campaign_id, name, level) VALUES (?, ?, ?)"
        )

        result = statement.run("2", "Newcomer", 1)

        assert result == RunResult(changes=1, last_insert_rowid=4)
        assert seeded_database.count_records("characters") == 4

    def test_run_insert_violating_foreign_key(self, seeded_database):
        """A SQL insert with a dangling reference should raise and write nothing."""
        statement = seeded_database.prepare("INSERT INTO events (session_id, title) VALUES (?, ?)")

        with pytest.raises(ForeignKeyConstraintViolation):
            statement.run("99", "Nowhere")

        assert seeded_database.count_records("events") == 2

    def test_insert_or_ignore(self, seeded_database):
        """INSERT OR IGNORE should skip duplicate keys."""
        result = seeded_database.prepare("INSERT OR IGNORE INTO campaigns (id, name) VALUES (?, ?)").run("1", "x")

        assert result.changes == 0
        assert seeded_database.data_store.get("campaigns", "1")["name"] == "Test Campaign 1"

    def test_update_and_delete(self, seeded_database):
        """UPDATE and DELETE should affect matching rows only."""
        updated = seeded_database.prepare("UPDATE sessions SET status = ? WHERE id = ?").run("active", "2")
        deleted = seeded_database.prepare("DELETE FROM events WHERE session_id = ?").run("1")

        assert updated.changes == 1
        assert seeded_database.data_store.get("sessions", "2")["status"] == "active"
        assert deleted.changes == 2
        assert seeded_database.count_records("events") == 0

    def test_get_and_pluck(self, seeded_database):
        """get returns the first row; pluck returns the first column."""
        first = seeded_database.prepare("SELECT * FROM characters ORDER BY level DESC").get()
        names = seeded_database.prepare("SELECT name FROM locations ORDER BY name").pluck().all()

        assert first["name"] == "Elder Wisdom"
        assert names == ["Ancient Ruins", "Greenleaf Village"]

    def test_count_statement(self, seeded_database):
        """COUNT(*) should return a single row with the count."""
        row = seeded_database.prepare("SELECT COUNT(*) AS total FROM characters WHERE campaign_id = ?").get("1")

        assert row == {"total": 3}

    def test_bind_and_limit(self, seeded_database):
        """Bound parameters should precede call parameters, including LIMIT."""
        statement = seeded_database.prepare(
            "SELECT id FROM characters WHERE campaign_id = ? LIMIT ?"
        ).bind("1")

        assert statement.pluck().all(2) == ["1", "2"]

    def test_parameter_count_mismatch(self, database):
        """Too few or too many parameters should raise QueryError."""
        statement = database.prepare("SELECT * FROM campaigns WHERE id = ?")

        with pytest.raises(QueryError):
            statement.all()
        with pytest.raises(QueryError):
            statement.all("1", "2")

    def test_all_on_write_statement(self, database):
        """all on a write statement should raise QueryError."""
        with pytest.raises(QueryError):
            database.prepare("DELETE FROM campaigns WHERE id = ?").all("1")

    def test_exec_is_noop(self, database):
        """exec should accept schema text without touching data."""
        assert database.exec("PRAGMA foreign_keys = ON; CREATE TABLE x (id TEXT)") is database
        assert database.count_records("campaigns") == 0

    def test_closed_database(self, database):
        """Operations on a closed database should raise QueryError."""
        statement = database.prepare("SELECT * FROM campaigns")
        database.close()

        assert database.is_open is False
        with pytest.raises(QueryError):
            database.prepare("SELECT * FROM campaigns")
        with pytest.raises(QueryError):
            statement.all()

    def test_simulated_errors(self):
        """error_rate=1 should fail every statement."""
        database = MockDatabase(simulate_errors=True, error_rate=1.0, rng=random.Random(0))

        with pytest.raises(QueryError) as excinfo:
            database.prepare("SELECT * FROM campaigns").all()

        assert "Simulated database error" in str(excinfo.value)


class TestSeeding:
    """Tests for canonical fixtures."""

    def test_seed_counts(self, seeded_database):
        """Seeding should produce the canonical row counts."""
        assert seeded_database.data_store.counts() == SEEDED_COUNTS

    def test_seed_is_idempotent(self, seeded_database):
        """Seeding twice should keep the same counts."""
        seeded_database.seed_test_data()

        assert seeded_database.data_store.counts() == SEEDED_COUNTS

    def test_clear_then_seed(self, seeded_database):
        """clear_all_data followed by seeding should restore the counts."""
        seeded_database.clear_all_data()
        assert seeded_database.count_records("campaigns") == 0

        seeded_database.seed_test_data()

        assert seeded_database.data_store.counts() == SEEDED_COUNTS

    def test_setup_database(self):
        """setup_database should optionally seed."""
        assert setup_database().count_records("campaigns") == 0
        assert setup_database(seed_test_data=True).count_records("campaigns") == 2


class TestDatabaseTestHelper:
    """Tests for row factories."""

    def test_create_rows(self):
        """The helper should create linked rows with defaults."""
        helper = DatabaseTestHelper()
        helper.setup_test_database(seed=False)

        campaign = helper.create_test_campaign(name="Custom")
        character = helper.create_test_character(campaign["id"], level=5)
        session = helper.create_test_session(campaign["id"])

        db = helper.get_database()
        assert campaign["name"] == "Custom"
        assert db.data_store.get("characters", character["id"])["level"] == 5
        assert db.data_store.get("sessions", session["id"])["campaign_id"] == campaign["id"]

    def test_create_character_for_missing_campaign(self):
        """The helper should surface foreign key violations."""
        helper = DatabaseTestHelper()

        with pytest.raises(ForeignKeyConstraintViolation):
            helper.create_test_character("missing")

    def test_cleanup_closes(self):
        """cleanup should close the database."""
        helper = DatabaseTestHelper()

        helper.cleanup()

        assert helper.get_database().is_open is False
