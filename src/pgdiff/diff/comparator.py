"""
Key ordering for metadata rows.

Rows are ordered with byte-wise (``COLLATE "C"``) comparison of their key
fields, which must match the order the metadata query delivers them in.
"""

from typing import Mapping, Sequence, Tuple

from .rows import COLUMN_KEY_FIELDS


def _key_bytes(value: str) -> bytes:
    return value.encode("utf-8", "surrogateescape")


def row_key(row: Mapping[str, str], key_fields: Sequence[str] = COLUMN_KEY_FIELDS) -> Tuple[bytes, ...]:
    """Return the byte-wise sort key of a row."""
    return tuple(_key_bytes(row.get(field, "")) for field in key_fields)


def compare_rows(
    row_a: Mapping[str, str],
    row_b: Mapping[str, str],
    key_fields: Sequence[str] = COLUMN_KEY_FIELDS,
) -> int:
    """
    Compare two rows by key fields in priority order.

    Returns -1 if ``row_a`` sorts first, 1 if ``row_b`` does, 0 if the keys
    are equal.
    """
    for field in key_fields:
        a = _key_bytes(row_a.get(field, ""))
        b = _key_bytes(row_b.get(field, ""))
        if a < b:
            return -1
        if a > b:
            return 1
    return 0
