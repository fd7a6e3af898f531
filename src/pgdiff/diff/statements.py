"""
Statement records produced by a schema diff, and the sinks they are written to.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, TextIO


class StatementKind(str, Enum):
    """Kinds of output lines."""

    SQL = "sql"
    WARNING = "warning"


class DiffOutcome(str, Enum):
    """Classification of one key after comparing both streams."""

    SOURCE_ONLY = "source_only"
    TARGET_ONLY = "target_only"
    MATCHED_SAME = "matched_same"
    MATCHED_CHANGED = "matched_changed"


WARNING_PREFIX = "-- WARNING: "


@dataclass(frozen=True)
class Statement:
    """One line of the generated script."""

    kind: StatementKind
    text: str

    @classmethod
    def sql(cls, text: str) -> "Statement":
        return cls(StatementKind.SQL, text)

    @classmethod
    def warning(cls, text: str) -> "Statement":
        return cls(StatementKind.WARNING, text)

    @property
    def is_warning(self) -> bool:
        return self.kind == StatementKind.WARNING

    def render(self) -> str:
        """Render as a line of script text, without the line break."""
        if self.is_warning:
            return f"{WARNING_PREFIX}{self.text}"
        return self.text

    def __str__(self) -> str:
        return self.render()


class StatementSink:
    """Append-only destination for generated statements."""

    def write(self, statement: Statement) -> None:
        raise NotImplementedError


class ListSink(StatementSink):
    """Collects statements in memory."""

    def __init__(self) -> None:
        self.statements: List[Statement] = []

    def write(self, statement: Statement) -> None:
        self.statements.append(statement)

    @property
    def lines(self) -> List[str]:
        return [statement.render() for statement in self.statements]

    @property
    def sql(self) -> List[str]:
        return [s.text for s in self.statements if not s.is_warning]

    @property
    def warnings(self) -> List[str]:
        return [s.text for s in self.statements if s.is_warning]


class StreamSink(StatementSink):
    """Writes each rendered statement as one line to a text stream."""

    def __init__(self, stream: TextIO, flush: bool = False) -> None:
        self.stream = stream
        self.flush = flush
        self.count = 0

    def write(self, statement: Statement) -> None:
        self.stream.write(statement.render() + "\n")
        self.count += 1
        if self.flush:
            self.stream.flush()
