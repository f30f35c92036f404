"""In-memory relational store simulating the TRPG database."""

from .database import MockDatabase, RunResult, Statement, setup_database
from .datastore import DataStore
from .helper import DatabaseTestHelper
from .query import QueryDescriptor, parse_query
from .schemas import ForeignKey, SchemaDescriptor, TableSchema, TRPG_SCHEMA

__all__ = [
    "DataStore",
    "DatabaseTestHelper",
    "ForeignKey",
    "MockDatabase",
    "QueryDescriptor",
    "RunResult",
    "SchemaDescriptor",
    "Statement",
    "TRPG_SCHEMA",
    "TableSchema",
    "parse_query",
    "setup_database",
]
