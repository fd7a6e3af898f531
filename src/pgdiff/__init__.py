"""
pgdiff: PostgreSQL schema comparison.

pgdiff compares the column metadata of a source and a target database and
prints the ALTER TABLE statements that would make the target match the source.
"""

__version__ = "0.1.0"

from .config import PgDiffConfig
from .exceptions import PgDiffError, ConfigurationError, DatabaseError, DiffError

__all__ = [
    "__version__",
    "PgDiffConfig",
    "PgDiffError",
    "ConfigurationError",
    "DatabaseError",
    "DiffError",
]
