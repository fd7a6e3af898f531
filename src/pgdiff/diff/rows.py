"""
Metadata rows and the lazy row sources that deliver them.

A row is one schema object's attributes as strings, keyed by attribute name.
SQL NULL is carried as the literal marker ``"null"``. Sources deliver rows
ascending by key and finish with ``END_OF_STREAM``.
"""

import asyncio
import logging
from types import MappingProxyType
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Mapping, Optional, Union


logger = logging.getLogger(__name__)


Row = Mapping[str, str]

NULL_MARKER = "null"

COLUMN_KEY_FIELDS = ("table_name", "column_name")


class _EndOfStream:
    """Sentinel marking the end of a row stream."""

    _instance: Optional["_EndOfStream"] = None

    def __new__(cls) -> "_EndOfStream":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "END_OF_STREAM"


END_OF_STREAM = _EndOfStream()


def freeze_row(values: Mapping[str, Any]) -> Row:
    """Return a read-only copy of a row mapping."""
    return MappingProxyType(dict(values))


def stringify_record(record: Mapping[str, Any]) -> Row:
    """Convert a driver record into a row of strings, NULL becoming ``"null"``."""
    return freeze_row(
        {
            key: NULL_MARKER if value is None else str(value)
            for key, value in record.items()
        }
    )


def is_end_of_stream(item: Any) -> bool:
    """Check for the sentinel, or the legacy empty-mapping end signal."""
    if item is END_OF_STREAM:
        return True
    return isinstance(item, Mapping) and len(item) == 0


class QueueRowSource:
    """
    Row source fed by a producer through an ``asyncio.Queue``.

    The producer calls ``put()`` for each row, then ``close()``; a failing
    producer calls ``fail()`` so the consumer sees the error instead of
    blocking forever. Reads block until a row or the end signal arrives.
    """

    def __init__(self, maxsize: int = 0, name: Optional[str] = None):
        self.name = name
        self._queue: "asyncio.Queue[Any]" = asyncio.Queue(maxsize=maxsize)
        self._finished = False

    async def put(self, row: Mapping[str, Any]) -> None:
        await self._queue.put(freeze_row(row))

    async def close(self) -> None:
        await self._queue.put(END_OF_STREAM)

    async def fail(self, error: BaseException) -> None:
        await self._queue.put(error)

    def __aiter__(self) -> AsyncIterator[Row]:
        return self

    async def __anext__(self) -> Row:
        if self._finished:
            raise StopAsyncIteration

        item = await self._queue.get()
        if isinstance(item, BaseException):
            self._finished = True
            raise item
        if is_end_of_stream(item):
            self._finished = True
            logger.debug(f"Row source {self.name or ''} reached end of stream")
            raise StopAsyncIteration
        return item


RowSource = AsyncIterable[Row]


async def iter_rows(
    rows: Union[Iterable[Mapping[str, Any]], AsyncIterable[Mapping[str, Any]]],
) -> AsyncIterator[Row]:
    """Adapt a plain or async iterable of mappings into a row source."""
    if hasattr(rows, "__aiter__"):
        async for row in rows:
            if is_end_of_stream(row):
                return
            yield freeze_row(row)
    else:
        for row in rows:
            if is_end_of_stream(row):
                return
            yield freeze_row(row)
