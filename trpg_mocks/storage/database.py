"""A ``sqlite3``-shaped database handle over :class:`DataStore`.

Statements are parsed once by :func:`parse_query` and executed against the
in-memory tables. ``exec`` accepts schema and PRAGMA text and ignores it.
"""

import logging
import random
from dataclasses import dataclass
from typing import Any

from ..errors import QueryError, UniqueConstraintViolation
from . import fixtures
from .datastore import DataStore, Row
from .query import PLACEHOLDER, QueryDescriptor, parse_query
from .schemas import SchemaDescriptor, TRPG_SCHEMA

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    changes: int
    last_insert_rowid: int | str


class Statement:
    """A prepared statement. ``bind`` parameters are prepended to call parameters."""

    def __init__(self, database: "MockDatabase", descriptor: QueryDescriptor):
        self.database = database
        self.descriptor = descriptor
        self._bound: list[Any] = []
        self._plucked = False

    @property
    def reader(self) -> bool:
        return self.descriptor.kind in ("select", "count")

    def bind(self, *params: Any) -> "Statement":
        self._bound.extend(params)
        return self

    def pluck(self, enabled: bool = True) -> "Statement":
        """Return only the first column of each row."""
        self._plucked = enabled
        return self

    def all(self, *params: Any) -> list[Any]:
        if not self.reader:
            raise QueryError("This statement does not return data. Use run() instead")
        rows = self._read(self._resolve(params))
        if self._plucked:
            return [next(iter(row.values()), None) for row in rows]
        return rows

    def get(self, *params: Any) -> Any:
        results = self.all(*params)
        return results[0] if results else None

    def run(self, *params: Any) -> RunResult:
        slots = self._resolve(params)
        if self.reader:
            self._read(slots)
            return RunResult(changes=0, last_insert_rowid=0)
        return self._write(slots)

    # ------------------------------------------------------------------

    def _resolve(self, params: tuple[Any, ...]) -> QueryDescriptor:
        """Substitute positional parameters for every ``?``."""
        self.database._check_open()
        self.database._maybe_fail(self.descriptor)

        queue = list(self._bound) + list(params)
        needed = self.descriptor.placeholder_count
        if len(queue) < needed:
            raise QueryError(f"Too few parameter values were provided: expected {needed}, got {len(queue)}")
        if len(queue) > needed:
            raise QueryError(f"Too many parameter values were provided: expected {needed}, got {len(queue)}")

        def fill(value: Any) -> Any:
            return queue.pop(0) if value is PLACEHOLDER else value

        d = self.descriptor
        values = tuple(fill(v) for v in d.values)
        where = tuple((column, fill(v)) for column, v in d.where)
        limit = fill(d.limit)
        return QueryDescriptor(
            kind=d.kind,
            table=d.table,
            columns=d.columns,
            values=values,
            where=where,
            order_by=d.order_by,
            descending=d.descending,
            limit=limit,
            count_alias=d.count_alias,
            replace=d.replace,
            ignore=d.ignore,
            sql=d.sql,
        )

    def _read(self, query: QueryDescriptor) -> list[Row]:
        store = self.database.data_store
        rows = store.select(query.table, **dict(query.where))

        if query.kind == "count":
            return [{query.count_alias: len(rows)}]

        if query.order_by:
            column = query.order_by
            rows.sort(
                key=lambda row: (row.get(column) is not None, row.get(column)),
                reverse=query.descending,
            )
        if query.limit is not None:
            rows = rows[: int(query.limit)]
        if query.columns:
            rows = [{column: row.get(column) for column in query.columns} for row in rows]
        return rows

    def _write(self, query: QueryDescriptor) -> RunResult:
        store = self.database.data_store

        if query.kind == "insert":
            row = dict(zip(query.columns, query.values))
            try:
                key = store.upsert(query.table, row) if query.replace else store.insert(query.table, row)
            except UniqueConstraintViolation:
                if query.ignore:
                    return RunResult(changes=0, last_insert_rowid=0)
                raise
            return RunResult(changes=1, last_insert_rowid=_rowid(key))

        pk = store._table_schema(query.table).primary_key
        targets = [row[pk] for row in store.select(query.table, **dict(query.where))]

        if query.kind == "update":
            changes = dict(zip(query.columns, query.values))
            changed = sum(store.update(query.table, key, changes) for key in targets)
            return RunResult(changes=changed, last_insert_rowid=0)

        changed = sum(store.delete(query.table, key) for key in targets)
        return RunResult(changes=changed, last_insert_rowid=0)


def _rowid(key: str) -> int | str:
    return int(key) if key.isdigit() else key


class MockDatabase:
    """Stand-in for a SQLite connection.

    Args:
        filename: Only ``:memory:`` semantics exist; the name is kept for logging.
        enable_foreign_keys: Enforce the schema's foreign keys on writes.
        simulate_errors: Fail statements at random with ``error_rate``.
        rng: Source of randomness for error injection.
    """

    def __init__(
        self,
        filename: str = ":memory:",
        enable_foreign_keys: bool = True,
        simulate_errors: bool = False,
        error_rate: float = 0.05,
        rng: random.Random | None = None,
        schema: SchemaDescriptor = TRPG_SCHEMA,
    ):
        self.filename = filename
        self.simulate_errors = simulate_errors
        self.error_rate = error_rate
        self.rng = rng or random.Random()
        self._store = DataStore(schema, enforce_foreign_keys=enable_foreign_keys)
        self._open = True
        logger.debug(f"Mock database created: {filename}")

    @property
    def data_store(self) -> DataStore:
        return self._store

    @property
    def is_open(self) -> bool:
        return self._open

    def _check_open(self) -> None:
        if not self._open:
            raise QueryError("Database is closed")

    def _maybe_fail(self, descriptor: QueryDescriptor) -> None:
        if self.simulate_errors and self.rng.random() < self.error_rate:
            raise QueryError(f"Simulated database error for query: {descriptor.sql[:50]}...")

    def prepare(self, query: str | QueryDescriptor) -> Statement:
        """Prepare a SQL string or an already-built descriptor."""
        self._check_open()
        descriptor = query if isinstance(query, QueryDescriptor) else parse_query(query)
        return Statement(self, descriptor)

    def exec(self, sql: str) -> "MockDatabase":
        self._check_open()
        logger.debug(f"Mock database exec ignored: {sql[:100]}")
        return self

    def insert(self, table: str, row: Row) -> str:
        self._check_open()
        return self._store.insert(table, row)

    def count_records(self, table: str) -> int:
        return self._store.count(table)

    def seed_test_data(self) -> dict[str, int]:
        self._check_open()
        counts = fixtures.seed(self._store)
        logger.debug(f"Seeded mock database: {counts}")
        return counts

    def clear_all_data(self) -> None:
        self._store.clear()

    def close(self) -> "MockDatabase":
        if self._open:
            self._open = False
            logger.debug("Mock database closed")
        return self


def setup_database(enable_foreign_keys: bool = True, seed_test_data: bool = False) -> MockDatabase:
    """Create an in-memory database, optionally seeded with the canonical fixtures."""
    database = MockDatabase(enable_foreign_keys=enable_foreign_keys)
    if seed_test_data:
        database.seed_test_data()
    return database
