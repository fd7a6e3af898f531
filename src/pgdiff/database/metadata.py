"""
Column metadata streams for pgdiff.

Runs the column metadata query on one database and feeds the rows, in key
order, into a queue-backed row source that a SchemaCursor reads from.
"""

import asyncio
import logging
from typing import Any, List, Optional

from .connection import ConnectionPool
from ..config import DiffConfig
from ..diff.rows import QueueRowSource, stringify_record
from ..exceptions import MetadataQueryError


logger = logging.getLogger(__name__)


COLUMNS_QUERY = """
    SELECT
        table_name,
        column_name,
        data_type,
        is_nullable,
        column_default,
        character_maximum_length
    FROM information_schema.columns
    WHERE table_schema = $1
    {updatable_filter}
    ORDER BY table_name::text COLLATE "C" ASC, column_name::text COLLATE "C" ASC
"""

UPDATABLE_FILTER = "AND is_updatable = 'YES'"

CURSOR_PREFETCH = 500


def build_columns_query(updatable_only: bool = True) -> str:
    """Return the column metadata query, sorted byte-wise by table and column."""
    return COLUMNS_QUERY.format(
        updatable_filter=UPDATABLE_FILTER if updatable_only else ""
    )


class ColumnMetadataProducer:
    """
    Streams column metadata rows from one database into a row source.

    ``start()`` launches the query in a background task; rows are pushed as
    the server returns them. A query failure is delivered to the reader of
    ``source`` as a MetadataQueryError.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        config: Optional[DiffConfig] = None,
        name: str = "",
    ):
        self.pool = pool
        self.config = config or DiffConfig()
        self.name = name
        self.source = QueueRowSource(maxsize=self.config.queue_size, name=name)
        self.rows_produced = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def query(self) -> str:
        return build_columns_query(self.config.updatable_only)

    @property
    def query_args(self) -> List[Any]:
        return [self.config.table_schema]

    def start(self) -> asyncio.Task:
        """Start producing rows in the background."""
        if self._task is None:
            self._task = asyncio.create_task(self._produce(), name=f"pgdiff-{self.name}-columns")
        return self._task

    async def stop(self) -> None:
        """Cancel the producer if it is still running."""
        if self._task is None or self._task.done():
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def _produce(self) -> None:
        logger.info(
            f"Reading column metadata for schema '{self.config.table_schema}' "
            f"from {self.name or 'database'}"
        )
        try:
            async with self.pool.acquire() as conn:
                # Server-side cursors only live inside a transaction
                async with conn.transaction(readonly=True):
                    async for record in conn.cursor(
                        self.query, *self.query_args, prefetch=CURSOR_PREFETCH
                    ):
                        await self.source.put(stringify_record(record))
                        self.rows_produced += 1
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Column metadata query failed on {self.name or 'database'}: {e}")
            await self.source.fail(
                MetadataQueryError(
                    "Column metadata query failed",
                    details={"database": self.name} if self.name else None,
                    cause=e,
                )
            )
            return

        logger.debug(f"Read {self.rows_produced} column rows from {self.name or 'database'}")
        await self.source.close()
