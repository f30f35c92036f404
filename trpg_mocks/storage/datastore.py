"""In-memory tables with foreign-key enforcement.

Every write goes through :meth:`DataStore._write`, which validates all
declared foreign keys before touching any table. A rejected write leaves the
store exactly as it was.
"""

import copy
import logging
from typing import Any

from ..errors import ForeignKeyConstraintViolation, QueryError, UniqueConstraintViolation
from .schemas import SchemaDescriptor, TableSchema, TRPG_SCHEMA

logger = logging.getLogger(__name__)

Row = dict[str, Any]


class DataStore:
    """``{tables: name -> {id -> row}}`` over a fixed :class:`SchemaDescriptor`.

    Rows are loosely typed: columns beyond the schema are stored and echoed
    back unchanged. Primary keys are kept as strings.
    """

    def __init__(self, schema: SchemaDescriptor = TRPG_SCHEMA, enforce_foreign_keys: bool = True):
        self.schema = schema
        self.enforce_foreign_keys = enforce_foreign_keys
        self._tables: dict[str, dict[str, Row]] = {}
        self._sequences: dict[str, int] = {}
        self._initialize_tables()

    def _initialize_tables(self) -> None:
        self._tables = {table.name: {} for table in self.schema.tables}
        self._sequences = {table.name: 1 for table in self.schema.tables}

    def table_names(self) -> list[str]:
        return self.schema.table_names

    def _table_schema(self, table: str) -> TableSchema:
        schema = self.schema.table(table)
        if schema is None:
            raise QueryError(f"Table {table} does not exist")
        return schema

    def _rows(self, table: str) -> dict[str, Row]:
        self._table_schema(table)
        return self._tables[table]

    def _next_id(self, table: str) -> str:
        rows = self._tables[table]
        current = self._sequences[table]
        while str(current) in rows:
            current += 1
        self._sequences[table] = current + 1
        return str(current)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_foreign_keys(self, table: str, row: Row) -> None:
        """Raise ForeignKeyConstraintViolation if any declared reference is dangling.

        Null references are allowed, as in SQL.
        """
        schema = self._table_schema(table)
        if not self.enforce_foreign_keys:
            return

        for fk in schema.foreign_keys:
            value = row.get(fk.column)
            if value is None:
                continue
            parents = self._rows(fk.references_table).values()
            if not any(_same_key(parent.get(fk.references_column), value) for parent in parents):
                raise ForeignKeyConstraintViolation(
                    f"Foreign key constraint violation: {table}.{fk.column} references "
                    f"non-existent {fk.references_table}.{fk.references_column} = {value}",
                    table=table,
                    column=fk.column,
                )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(self, table: str, row: Row) -> str:
        """Insert a row and return its primary key.

        Raises:
            ForeignKeyConstraintViolation: A reference does not resolve. Nothing is written.
            UniqueConstraintViolation: The primary key is already taken.
        """
        return self._write(table, row, replace=False)

    def upsert(self, table: str, row: Row) -> str:
        """Insert, or replace the row with the same primary key."""
        return self._write(table, row, replace=True)

    def _write(self, table: str, row: Row, replace: bool) -> str:
        schema = self._table_schema(table)
        rows = self._tables[table]
        pk = schema.primary_key

        self.validate_foreign_keys(table, row)

        if row.get(pk) is not None:
            key = str(row[pk])
            if key in rows and not replace:
                raise UniqueConstraintViolation(
                    f"UNIQUE constraint failed: {table}.{pk} = {key}", table=table, column=pk
                )
        else:
            key = self._next_id(table)

        stored = copy.deepcopy(row)
        stored[pk] = key
        rows[key] = stored
        return key

    def update(self, table: str, row_id: Any, changes: Row) -> int:
        """Merge ``changes`` into an existing row. Returns the number of rows changed."""
        schema = self._table_schema(table)
        rows = self._tables[table]
        key = str(row_id)
        existing = rows.get(key)
        if existing is None:
            return 0

        updated = {**existing, **copy.deepcopy(changes)}
        if str(updated.get(schema.primary_key)) != key:
            raise QueryError(f"Cannot change primary key of {table} row {key}")
        self.validate_foreign_keys(table, updated)
        rows[key] = updated
        return 1

    def delete(self, table: str, row_id: Any) -> int:
        """Delete by primary key. No cascade."""
        rows = self._rows(table)
        return 1 if rows.pop(str(row_id), None) is not None else 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, table: str, row_id: Any) -> Row | None:
        row = self._rows(table).get(str(row_id))
        return copy.deepcopy(row) if row is not None else None

    def select(self, table: str, **conditions: Any) -> list[Row]:
        """Rows matching every ``column=value`` equality, in insertion order."""
        return [
            copy.deepcopy(row)
            for row in self._rows(table).values()
            if all(_same_key(row.get(column), value) for column, value in conditions.items())
        ]

    def count(self, table: str) -> int:
        return len(self._rows(table))

    def counts(self) -> dict[str, int]:
        return {name: len(rows) for name, rows in self._tables.items()}

    def clear(self) -> None:
        """Empty every table; the schema is untouched."""
        self._initialize_tables()
        logger.debug("Mock data store cleared")


def _same_key(left: Any, right: Any) -> bool:
    """Equality that treats ``1`` and ``"1"`` as the same key."""
    if left == right:
        return True
    if left is None or right is None:
        return False
    return str(left) == str(right)
