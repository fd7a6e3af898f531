"""
Column comparison: DDL for columns added, dropped or changed between databases.

Rows come from ``information_schema.columns`` with every value as a string
and SQL NULL as ``"null"``. Generated statements alter the target so that
its columns match the source.
"""

import logging
from collections.abc import Mapping
from typing import Any, List, Tuple

from .comparator import compare_rows
from .engine import SchemaObjectDiff
from .rows import COLUMN_KEY_FIELDS, NULL_MARKER, Row
from .statements import Statement
from ..exceptions import MetadataParseError


logger = logging.getLogger(__name__)


VARCHAR_TYPE = "character varying"
DEFAULT_VARCHAR_LENGTH = 1024

NO_MAX_LENGTH_WARNING = "varchar column has no maximum length.  Setting to {length}"
SHRINK_WARNING = "The next statement will shorten a character varying column."
TYPE_CHANGE_WARNING = "This type change may not work well: ({old} to {new})."


class ColumnDiff(SchemaObjectDiff):
    """Generates ALTER TABLE statements for column differences."""

    kind = "column"
    key_fields = COLUMN_KEY_FIELDS

    def __init__(self, default_varchar_length: int = DEFAULT_VARCHAR_LENGTH):
        self.default_varchar_length = default_varchar_length

    def compare(self, source_row: Row, target_row: Row) -> int:
        source_row, _ = self._coerce(source_row, "compare")
        target_row, _ = self._coerce(target_row, "compare")
        return compare_rows(source_row, target_row, self.key_fields)

    def add(self, row: Row) -> List[Statement]:
        row, statements = self._coerce(row, "add")
        table, column = row.get("table_name", ""), row.get("column_name", "")
        data_type = row.get("data_type", "")

        column_type = data_type
        if data_type == VARCHAR_TYPE:
            length, warnings = self._varchar_length(row.get("character_maximum_length", NULL_MARKER))
            statements.extend(warnings)
            column_type = f"{data_type}({length})"

        sql = f"ALTER TABLE {table} ADD COLUMN {column} {column_type}"
        if row.get("is_nullable") == "NO":
            sql += " NOT NULL"
        default = row.get("column_default", NULL_MARKER)
        if default != NULL_MARKER:
            sql += f" DEFAULT {default}"

        statements.append(Statement.sql(sql + ";"))
        return statements

    def drop(self, row: Row) -> List[Statement]:
        # No data loss warning for dropped columns.
        row, statements = self._coerce(row, "drop")
        statements.append(
            Statement.sql(
                f"ALTER TABLE {row.get('table_name', '')} DROP COLUMN {row.get('column_name', '')};"
            )
        )
        return statements

    def change(self, source_row: Row, target_row: Row) -> List[Statement]:
        source_row, statements = self._coerce(source_row, "change")
        target_row, target_diagnostics = self._coerce(target_row, "change")
        statements.extend(target_diagnostics)

        statements.extend(self._type_changes(source_row, target_row))
        statements.extend(self._default_changes(source_row, target_row))
        statements.extend(self._nullable_changes(source_row, target_row))
        return statements

    def _type_changes(self, source: Row, target: Row) -> List[Statement]:
        statements: List[Statement] = []
        source_type = source.get("data_type", "")
        target_type = target.get("data_type", "")

        if source_type == target_type:
            if source_type != VARCHAR_TYPE:
                return statements

            source_max = source.get("character_maximum_length", NULL_MARKER)
            target_max = target.get("character_maximum_length", NULL_MARKER)
            if source_max == target_max:
                return statements

            if source_max != NULL_MARKER and target_max != NULL_MARKER:
                if self._parse_length(source_max, source) < self._parse_length(target_max, target):
                    statements.append(Statement.warning(SHRINK_WARNING))

            length, warnings = self._varchar_length(source_max)
            statements.extend(warnings)
            statements.append(
                Statement.sql(
                    f"ALTER TABLE {source.get('table_name', '')} "
                    f"ALTER COLUMN {source.get('column_name', '')} TYPE {VARCHAR_TYPE}({length});"
                )
            )
            return statements

        # TODO: treat integer to bigint as a safe widening without the warning
        statements.append(
            Statement.warning(TYPE_CHANGE_WARNING.format(old=target_type, new=source_type))
        )
        statements.append(
            Statement.sql(
                f"ALTER TABLE {source.get('table_name', '')} "
                f"ALTER COLUMN {source.get('column_name', '')} TYPE {source_type};"
            )
        )
        return statements

    def _default_changes(self, source: Row, target: Row) -> List[Statement]:
        # A null source default never produces DROP DEFAULT, even when the
        # target has one.
        source_default = source.get("column_default", NULL_MARKER)
        if source_default == NULL_MARKER:
            return []
        if source_default == target.get("column_default", NULL_MARKER):
            return []
        return [
            Statement.sql(
                f"ALTER TABLE {source.get('table_name', '')} "
                f"ALTER COLUMN {source.get('column_name', '')} SET DEFAULT {source_default};"
            )
        ]

    def _nullable_changes(self, source: Row, target: Row) -> List[Statement]:
        source_nullable = source.get("is_nullable")
        if source_nullable == target.get("is_nullable"):
            return []

        action = "DROP NOT NULL" if source_nullable == "YES" else "SET NOT NULL"
        return [
            Statement.sql(
                f"ALTER TABLE {source.get('table_name', '')} "
                f"ALTER COLUMN {source.get('column_name', '')} {action};"
            )
        ]

    def _varchar_length(self, max_length: str) -> Tuple[str, List[Statement]]:
        """Length to declare for a varchar column, with the fallback warning."""
        if max_length == NULL_MARKER:
            length = str(self.default_varchar_length)
            return length, [Statement.warning(NO_MAX_LENGTH_WARNING.format(length=length))]
        return max_length, []

    def _parse_length(self, value: str, row: Row) -> int:
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Non-numeric character_maximum_length {value!r} for "
                f"{row.get('table_name')}.{row.get('column_name')}"
            )
            raise MetadataParseError(
                "character_maximum_length",
                value,
                table_name=row.get("table_name"),
                column_name=row.get("column_name"),
                cause=e,
            ) from e

    def _coerce(self, row: Any, operation: str) -> Tuple[Row, List[Statement]]:
        """
        Accept a column row, or report a row of the wrong kind.

        A wrong row is logged, noted in the output and replaced by an empty
        row so the run can continue.
        """
        if isinstance(row, Mapping):
            return row, []

        message = (
            f"ColumnDiff.{operation} needs a column row, got {type(row).__name__}"
        )
        logger.error(message)
        return {}, [Statement.warning(message)]
