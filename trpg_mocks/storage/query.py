"""Query descriptors and the small SQL subset the system under test issues.

Only equality predicates joined by ``AND`` are understood. This is a
dispatcher onto :class:`~trpg_mocks.storage.datastore.DataStore`, not a SQL
engine.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from ..errors import QueryError

PLACEHOLDER = object()

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"

_SELECT_RE = re.compile(
    rf"^SELECT\s+(?P<columns>.+?)\s+FROM\s+(?P<table>{_IDENT})"
    rf"(?:\s+WHERE\s+(?P<where>.+?))?"
    rf"(?:\s+ORDER\s+BY\s+(?P<order>{_IDENT})(?:\s+(?P<direction>ASC|DESC))?)?"
    rf"(?:\s+LIMIT\s+(?P<limit>\d+|\?))?$",
    re.IGNORECASE | re.DOTALL,
)
_INSERT_RE = re.compile(
    rf"^INSERT(?:\s+OR\s+(?P<conflict>REPLACE|IGNORE))?\s+INTO\s+(?P<table>{_IDENT})\s*"
    rf"\((?P<columns>[^)]*)\)\s*VALUES\s*\((?P<values>[^)]*)\)$",
    re.IGNORECASE | re.DOTALL,
)
_UPDATE_RE = re.compile(
    rf"^UPDATE\s+(?P<table>{_IDENT})\s+SET\s+(?P<assignments>.+?)\s+WHERE\s+(?P<where>.+)$",
    re.IGNORECASE | re.DOTALL,
)
_DELETE_RE = re.compile(
    rf"^DELETE\s+FROM\s+(?P<table>{_IDENT})(?:\s+WHERE\s+(?P<where>.+))?$",
    re.IGNORECASE | re.DOTALL,
)
_PREDICATE_RE = re.compile(rf"^(?P<column>{_IDENT})\s*=\s*(?P<value>.+)$", re.DOTALL)
_COUNT_RE = re.compile(r"^COUNT\(\s*\*\s*\)(?:\s+AS\s+(?P<alias>" + _IDENT + r"))?$", re.IGNORECASE)


@dataclass(frozen=True)
class QueryDescriptor:
    """Structured form of one statement.

    ``where`` and ``values`` hold either literals or :data:`PLACEHOLDER`,
    which is filled from bound parameters in order.
    """

    kind: str  # "select", "count", "insert", "update", "delete"
    table: str
    columns: tuple[str, ...] = ()
    values: tuple[Any, ...] = ()
    where: tuple[tuple[str, Any], ...] = ()
    order_by: str | None = None
    descending: bool = False
    limit: Any = None
    count_alias: str = "count"
    replace: bool = False
    ignore: bool = False
    sql: str = field(default="", compare=False)

    @property
    def placeholder_count(self) -> int:
        slots = list(self.values) + [value for _, value in self.where] + [self.limit]
        return sum(1 for slot in slots if slot is PLACEHOLDER)


def _literal(token: str) -> Any:
    token = token.strip()
    if token == "?":
        return PLACEHOLDER
    if len(token) >= 2 and token[0] == token[-1] and token[0] in ("'", '"'):
        return token[1:-1].replace("''", "'")
    if token.upper() == "NULL":
        return None
    if token.upper() in ("TRUE", "FALSE"):
        return token.upper() == "TRUE"
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise QueryError(f"Unsupported value in query: {token}")


def _split_csv(text: str) -> list[str]:
    return [part.strip() for part in text.split(",") if part.strip()]


def _parse_where(text: str | None) -> tuple[tuple[str, Any], ...]:
    if not text:
        return ()
    predicates = []
    for clause in re.split(r"\s+AND\s+", text.strip(), flags=re.IGNORECASE):
        match = _PREDICATE_RE.match(clause.strip())
        if not match:
            raise QueryError(f"Unsupported predicate: {clause.strip()}")
        predicates.append((match.group("column"), _literal(match.group("value"))))
    return tuple(predicates)


def parse_query(sql: str) -> QueryDescriptor:
    """Translate a supported SQL statement into a :class:`QueryDescriptor`.

    Raises:
        QueryError: For any statement outside the supported subset.
    """
    text = sql.strip().rstrip(";").strip()

    match = _SELECT_RE.match(text)
    if match:
        columns_text = match.group("columns").strip()
        count = _COUNT_RE.match(columns_text)
        limit = match.group("limit")
        common = dict(
            table=match.group("table"),
            where=_parse_where(match.group("where")),
            order_by=match.group("order"),
            descending=(match.group("direction") or "").upper() == "DESC",
            limit=_literal(limit) if limit else None,
            sql=sql,
        )
        if count:
            return QueryDescriptor(kind="count", count_alias=count.group("alias") or "count", **common)
        columns = () if columns_text == "*" else tuple(_split_csv(columns_text))
        return QueryDescriptor(kind="select", columns=columns, **common)

    match = _INSERT_RE.match(text)
    if match:
        columns = tuple(_split_csv(match.group("columns")))
        values = tuple(_literal(v) for v in _split_csv(match.group("values")))
        if len(columns) != len(values):
            raise QueryError("INSERT column count does not match value count")
        conflict = (match.group("conflict") or "").upper()
        return QueryDescriptor(
            kind="insert",
            table=match.group("table"),
            columns=columns,
            values=values,
            replace=conflict == "REPLACE",
            ignore=conflict == "IGNORE",
            sql=sql,
        )

    match = _UPDATE_RE.match(text)
    if match:
        columns, values = [], []
        for assignment in _split_csv(match.group("assignments")):
            predicate = _PREDICATE_RE.match(assignment)
            if not predicate:
                raise QueryError(f"Unsupported assignment: {assignment}")
            columns.append(predicate.group("column"))
            values.append(_literal(predicate.group("value")))
        return QueryDescriptor(
            kind="update",
            table=match.group("table"),
            columns=tuple(columns),
            values=tuple(values),
            where=_parse_where(match.group("where")),
            sql=sql,
        )

    match = _DELETE_RE.match(text)
    if match:
        return QueryDescriptor(
            kind="delete",
            table=match.group("table"),
            where=_parse_where(match.group("where")),
            sql=sql,
        )

    raise QueryError(f"Unsupported statement: {text[:80]}")
