"""
Schema diff package for pgdiff.

This package provides:
- Lazily fed metadata row sources and cursors
- Byte-wise key comparison of metadata rows
- The ordered merge diff driver
- Column change detection and DDL generation
"""

from .rows import (
    Row,
    NULL_MARKER,
    COLUMN_KEY_FIELDS,
    END_OF_STREAM,
    QueueRowSource,
    iter_rows,
    stringify_record,
)
from .comparator import compare_rows, row_key
from .cursor import SchemaCursor
from .statements import DiffOutcome, Statement, StatementKind, ListSink, StreamSink
from .engine import SchemaObjectDiff, MergeDriver, DiffSummary
from .columns import ColumnDiff

__all__ = [
    "Row",
    "NULL_MARKER",
    "COLUMN_KEY_FIELDS",
    "END_OF_STREAM",
    "QueueRowSource",
    "iter_rows",
    "stringify_record",
    "compare_rows",
    "row_key",
    "SchemaCursor",
    "DiffOutcome",
    "Statement",
    "StatementKind",
    "ListSink",
    "StreamSink",
    "SchemaObjectDiff",
    "MergeDriver",
    "DiffSummary",
    "ColumnDiff",
]
