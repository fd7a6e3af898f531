"""
Cursor over one lazily delivered metadata stream.
"""

import logging
from typing import AsyncIterable, AsyncIterator, Optional, Sequence, Tuple

from .comparator import row_key
from .rows import COLUMN_KEY_FIELDS, Row, freeze_row, is_end_of_stream
from ..exceptions import StreamOrderError


logger = logging.getLogger(__name__)


class SchemaCursor:
    """
    Holds the current row of one stream and advances on demand.

    Once the end of the stream is seen ``done`` stays true and the
    underlying source is never read again.
    """

    def __init__(
        self,
        source: AsyncIterable[Row],
        name: str = "",
        key_fields: Sequence[str] = COLUMN_KEY_FIELDS,
        check_order: bool = True,
    ):
        self.name = name
        self.key_fields = tuple(key_fields)
        self.check_order = check_order
        self.row: Row = freeze_row({})
        self.done = False
        self.rows_read = 0
        self._iterator: AsyncIterator[Row] = source.__aiter__()
        self._last_key: Optional[Tuple[bytes, ...]] = None

    async def next_row(self) -> bool:
        """Read the next row. Returns False once the stream is exhausted."""
        if self.done:
            return False

        try:
            row = await self._iterator.__anext__()
        except StopAsyncIteration:
            row = None

        if row is None or is_end_of_stream(row):
            self.done = True
            self.row = freeze_row({})
            logger.debug(f"Cursor '{self.name}' exhausted after {self.rows_read} rows")
            return False

        if self.check_order:
            self._check_order(row)

        self.row = row
        self.rows_read += 1
        return True

    def _check_order(self, row: Row) -> None:
        key = row_key(row, self.key_fields)
        if self._last_key is not None and key <= self._last_key:
            raise StreamOrderError(
                tuple(v.decode("utf-8", "surrogateescape") for v in self._last_key),
                tuple(v.decode("utf-8", "surrogateescape") for v in key),
                stream=self.name or None,
            )
        self._last_key = key

    @property
    def key(self) -> Tuple[str, ...]:
        """Key of the current row."""
        return tuple(self.row.get(field, "") for field in self.key_fields)
