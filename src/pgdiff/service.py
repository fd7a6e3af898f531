"""
Schema comparison runs for pgdiff.

Wires the metadata producers of both databases to cursors and runs the merge
diff, writing generated statements to a sink.
"""

import logging
from typing import Optional

from .config import DiffConfig
from .database.connection import ConnectionPool
from .database.metadata import ColumnMetadataProducer
from .diff.columns import ColumnDiff
from .diff.cursor import SchemaCursor
from .diff.engine import DiffSummary, MergeDriver
from .diff.statements import StatementSink


logger = logging.getLogger(__name__)


async def diff_columns(
    source_pool: ConnectionPool,
    target_pool: ConnectionPool,
    sink: StatementSink,
    config: Optional[DiffConfig] = None,
) -> DiffSummary:
    """
    Compare the columns of two databases.

    Statements that make the target's columns match the source's are written
    to ``sink``. Both metadata queries run concurrently; the comparison only
    ever holds the current row of each.
    """
    config = config or DiffConfig()
    differ = ColumnDiff(default_varchar_length=config.default_varchar_length)

    source_producer = ColumnMetadataProducer(source_pool, config, name="source")
    target_producer = ColumnMetadataProducer(target_pool, config, name="target")

    source_cursor = SchemaCursor(
        source_producer.source,
        name="source",
        key_fields=differ.key_fields,
        check_order=config.check_order,
    )
    target_cursor = SchemaCursor(
        target_producer.source,
        name="target",
        key_fields=differ.key_fields,
        check_order=config.check_order,
    )

    source_producer.start()
    target_producer.start()
    try:
        return await MergeDriver(differ, sink).run(source_cursor, target_cursor)
    finally:
        await source_producer.stop()
        await target_producer.stop()
