"""
Database integration package for pgdiff.

This package provides:
- Async PostgreSQL connection pooling
- Column metadata queries streamed into row sources
"""

from .connection import ConnectionConfig, ConnectionPool
from .metadata import ColumnMetadataProducer, build_columns_query

__all__ = [
    "ConnectionConfig",
    "ConnectionPool",
    "ColumnMetadataProducer",
    "build_columns_query",
]
