"""
Unit tests for metadata rows and row sources.
"""

import asyncio

import pytest

from pgdiff.diff.rows import (
    END_OF_STREAM,
    NULL_MARKER,
    QueueRowSource,
    freeze_row,
    is_end_of_stream,
    iter_rows,
    stringify_record,
)


class TestStringifyRecord:
    """Test conversion of driver records into string rows."""

    def test_null_becomes_marker(self):
        row = stringify_record({"column_default": None, "character_maximum_length": 255})

        assert row["column_default"] == NULL_MARKER
        assert row["character_maximum_length"] == "255"

    def test_rows_are_read_only(self):
        row = stringify_record({"table_name": "users"})

        with pytest.raises(TypeError):
            row["table_name"] = "accounts"

    def test_freeze_copies_input(self):
        values = {"table_name": "users"}
        row = freeze_row(values)
        values["table_name"] = "changed"

        assert row["table_name"] == "users"


class TestEndOfStream:
    """Test the end-of-stream signal."""

    def test_sentinel_is_singleton(self):
        assert type(END_OF_STREAM)() is END_OF_STREAM
        assert repr(END_OF_STREAM) == "END_OF_STREAM"

    def test_sentinel_and_empty_mapping_end_stream(self):
        assert is_end_of_stream(END_OF_STREAM)
        assert is_end_of_stream({})

    def test_row_does_not_end_stream(self):
        assert not is_end_of_stream({"table_name": "users"})
        assert not is_end_of_stream(None)


class TestQueueRowSource:
    """Test the queue-backed row source."""

    @pytest.mark.asyncio
    async def test_rows_then_close(self):
        source = QueueRowSource()
        await source.put({"table_name": "a"})
        await source.put({"table_name": "b"})
        await source.close()

        rows = [row async for row in source]

        assert [row["table_name"] for row in rows] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_no_reads_after_end(self):
        source = QueueRowSource()
        await source.close()
        await source.put({"table_name": "late"})

        assert [row async for row in source] == []
        assert [row async for row in source] == []

    @pytest.mark.asyncio
    async def test_failure_is_raised_to_reader(self):
        source = QueueRowSource()
        await source.put({"table_name": "a"})
        await source.fail(RuntimeError("query died"))

        iterator = source.__aiter__()
        assert (await iterator.__anext__())["table_name"] == "a"
        with pytest.raises(RuntimeError, match="query died"):
            await iterator.__anext__()

    @pytest.mark.asyncio
    async def test_reader_waits_for_bounded_producer(self):
        source = QueueRowSource(maxsize=1, name="source")

        async def produce():
            for name in ("a", "b", "c"):
                await source.put({"table_name": name})
            await source.close()

        producer = asyncio.create_task(produce())
        rows = [row["table_name"] async for row in source]
        await producer

        assert rows == ["a", "b", "c"]


class TestIterRows:
    """Test adapting iterables into row sources."""

    @pytest.mark.asyncio
    async def test_plain_iterable(self):
        rows = [row async for row in iter_rows([{"a": "1"}, {"a": "2"}])]
        assert [row["a"] for row in rows] == ["1", "2"]

    @pytest.mark.asyncio
    async def test_stops_at_empty_mapping(self):
        rows = [row async for row in iter_rows([{"a": "1"}, {}, {"a": "2"}])]
        assert len(rows) == 1

    @pytest.mark.asyncio
    async def test_async_iterable(self):
        async def generate():
            yield {"a": "1"}
            yield END_OF_STREAM
            yield {"a": "2"}

        rows = [row async for row in iter_rows(generate())]
        assert [row["a"] for row in rows] == ["1"]
