"""
Pytest configuration and shared fixtures for pgdiff tests.

This module provides column row builders, an in-memory merge runner and a
fake asyncpg connection pool for the database layer.
"""

import logging
import os
import tempfile
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pytest
import yaml

from pgdiff.diff import (
    ColumnDiff,
    DiffSummary,
    ListSink,
    MergeDriver,
    SchemaCursor,
    iter_rows,
)


# ============================================================================
# Row Builders
# ============================================================================

def column_row(
    table_name: str,
    column_name: str,
    data_type: str = "integer",
    is_nullable: str = "YES",
    column_default: str = "null",
    character_maximum_length: str = "null",
) -> Dict[str, str]:
    """Build one information_schema.columns row as strings."""
    return {
        "table_name": table_name,
        "column_name": column_name,
        "data_type": data_type,
        "is_nullable": is_nullable,
        "column_default": column_default,
        "character_maximum_length": character_maximum_length,
    }


@pytest.fixture
def make_column():
    """Factory for column rows."""
    return column_row


@pytest.fixture
def users_columns() -> List[Dict[str, str]]:
    """A small, key-ordered users table."""
    return [
        column_row("users", "bio", "character varying", character_maximum_length="1000"),
        column_row("users", "email", "character varying", "NO", character_maximum_length="255"),
        column_row("users", "id", "integer", "NO", "nextval('users_id_seq'::regclass)"),
    ]


# ============================================================================
# Merge Helpers
# ============================================================================

async def run_merge(
    source_rows: Iterable[Mapping[str, str]],
    target_rows: Iterable[Mapping[str, str]],
    differ: Optional[ColumnDiff] = None,
) -> Tuple[DiffSummary, ListSink]:
    """Run a column merge diff over two in-memory row lists."""
    differ = differ or ColumnDiff()
    sink = ListSink()
    summary = await MergeDriver(differ, sink).run(
        SchemaCursor(iter_rows(list(source_rows)), name="source"),
        SchemaCursor(iter_rows(list(target_rows)), name="target"),
    )
    return summary, sink


@pytest.fixture
def merge():
    """Run a column merge diff and return (summary, sink)."""
    return run_merge


class RecordingDiff(ColumnDiff):
    """ColumnDiff that also records which rows each operation received."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls: List[Tuple[str, Tuple[str, ...]]] = []

    def add(self, row):
        self.calls.append(("add", (row["table_name"], row["column_name"])))
        return super().add(row)

    def drop(self, row):
        self.calls.append(("drop", (row["table_name"], row["column_name"])))
        return super().drop(row)

    def change(self, source_row, target_row):
        self.calls.append(("change", (source_row["table_name"], source_row["column_name"])))
        return super().change(source_row, target_row)


@pytest.fixture
def recording_diff() -> RecordingDiff:
    return RecordingDiff()


# ============================================================================
# Fake asyncpg Objects
# ============================================================================

class FakeRecord(dict):
    """Stand-in for asyncpg.Record (mapping with items())."""


class FakeConnection:
    """Minimal asyncpg.Connection with transaction() and cursor()."""

    def __init__(self, records: List[Dict[str, Any]], error: Optional[Exception] = None):
        self.records = records
        self.error = error
        self.queries: List[Tuple[str, Tuple[Any, ...]]] = []
        self.transactions: List[Dict[str, Any]] = []

    @asynccontextmanager
    async def _transaction(self, **kwargs):
        self.transactions.append(kwargs)
        yield

    def transaction(self, **kwargs):
        return self._transaction(**kwargs)

    def cursor(self, query: str, *args, prefetch: Optional[int] = None):
        self.queries.append((query, args))
        return self._iterate()

    async def _iterate(self):
        for record in self.records:
            yield FakeRecord(record)
        if self.error is not None:
            raise self.error


class FakePool:
    """ConnectionPool replacement handing out a single FakeConnection."""

    def __init__(self, records: List[Dict[str, Any]], error: Optional[Exception] = None):
        self.connection = FakeConnection(records, error)

    @asynccontextmanager
    async def acquire(self):
        yield self.connection


def as_db_records(rows: Iterable[Mapping[str, str]]) -> List[Dict[str, Any]]:
    """Turn string rows back into the typed values asyncpg would return."""
    records = []
    for row in rows:
        record: Dict[str, Any] = {}
        for key, value in row.items():
            if value == "null":
                record[key] = None
            elif key == "character_maximum_length":
                record[key] = int(value)
            else:
                record[key] = value
        records.append(record)
    return records


@pytest.fixture
def fake_pool():
    """Factory for fake pools returning the given rows."""
    def create(rows: Iterable[Mapping[str, str]], error: Optional[Exception] = None) -> FakePool:
        return FakePool(as_db_records(rows), error)
    return create


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config_data() -> Dict[str, Any]:
    """Complete pgdiff configuration as loaded from YAML."""
    return {
        "source": {
            "host": "db-prod",
            "port": 5432,
            "database": "app",
            "user": "reader",
            "password": "secret",
        },
        "target": {
            "host": "db-staging",
            "port": 5433,
            "database": "app",
            "user": "reader",
            "password": "secret",
        },
        "diff": {
            "table_schema": "public",
            "default_varchar_length": 2048,
        },
        "logging": {"level": "INFO"},
    }


@pytest.fixture
def temp_config_file(sample_config_data) -> str:
    """Temporary configuration file for testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(sample_config_data, f)
    yield f.name
    os.unlink(f.name)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Remove handlers installed by setup_logging during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler.get_name() == "pgdiff":
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
