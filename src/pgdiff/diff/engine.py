"""
Ordered merge diff over two metadata streams.

Both streams are sorted by the same key. The driver walks them in lockstep,
comparing only the two current rows, and classifies every key exactly once:
present only in source (add), only in target (drop), or in both (change).
Each schema object kind plugs in through ``SchemaObjectDiff``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .cursor import SchemaCursor
from .rows import Row
from .statements import DiffOutcome, Statement, StatementSink


logger = logging.getLogger(__name__)


class SchemaObjectDiff(ABC):
    """Add/Drop/Change/Compare contract for one schema object kind."""

    kind: str = "object"
    key_fields: Sequence[str] = ()

    @abstractmethod
    def compare(self, source_row: Row, target_row: Row) -> int:
        """Order two rows by key: -1, 0 or 1."""

    @abstractmethod
    def add(self, row: Row) -> List[Statement]:
        """Statements creating an object that only exists in source."""

    @abstractmethod
    def drop(self, row: Row) -> List[Statement]:
        """Statements removing an object that only exists in target."""

    @abstractmethod
    def change(self, source_row: Row, target_row: Row) -> List[Statement]:
        """Statements turning the target object into the source object."""


@dataclass
class DiffSummary:
    """Counts gathered during one merge diff run."""

    kind: str
    outcomes: Dict[DiffOutcome, int] = field(
        default_factory=lambda: {outcome: 0 for outcome in DiffOutcome}
    )
    steps: int = 0
    statements: int = 0
    warnings: int = 0

    @property
    def added(self) -> int:
        return self.outcomes[DiffOutcome.SOURCE_ONLY]

    @property
    def dropped(self) -> int:
        return self.outcomes[DiffOutcome.TARGET_ONLY]

    @property
    def unchanged(self) -> int:
        return self.outcomes[DiffOutcome.MATCHED_SAME]

    @property
    def changed(self) -> int:
        return self.outcomes[DiffOutcome.MATCHED_CHANGED]

    @property
    def has_differences(self) -> bool:
        return self.statements > 0 or self.warnings > 0


class MergeDriver:
    """Runs the two-way merge and writes the resulting statements to a sink."""

    def __init__(self, differ: SchemaObjectDiff, sink: StatementSink):
        self.differ = differ
        self.sink = sink

    async def run(self, source: SchemaCursor, target: SchemaCursor) -> DiffSummary:
        """Compare two cursors until both are exhausted."""
        summary = DiffSummary(kind=self.differ.kind)

        await source.next_row()
        await target.next_row()

        while True:
            summary.steps += 1

            if source.done and target.done:
                break

            if source.done:
                self._classify(summary, DiffOutcome.TARGET_ONLY, self.differ.drop(target.row))
                await target.next_row()
                continue

            if target.done:
                self._classify(summary, DiffOutcome.SOURCE_ONLY, self.differ.add(source.row))
                await source.next_row()
                continue

            result = self.differ.compare(source.row, target.row)
            if result < 0:
                self._classify(summary, DiffOutcome.SOURCE_ONLY, self.differ.add(source.row))
                await source.next_row()
            elif result > 0:
                self._classify(summary, DiffOutcome.TARGET_ONLY, self.differ.drop(target.row))
                await target.next_row()
            else:
                statements = self.differ.change(source.row, target.row)
                outcome = DiffOutcome.MATCHED_CHANGED if statements else DiffOutcome.MATCHED_SAME
                self._classify(summary, outcome, statements)
                await source.next_row()
                await target.next_row()

        logger.info(
            f"Compared {self.differ.kind}s in {summary.steps} steps: "
            f"{summary.added} added, {summary.dropped} dropped, "
            f"{summary.changed} changed, {summary.unchanged} unchanged"
        )
        return summary

    def _classify(
        self, summary: DiffSummary, outcome: DiffOutcome, statements: List[Statement]
    ) -> None:
        summary.outcomes[outcome] += 1
        for statement in statements:
            if statement.is_warning:
                summary.warnings += 1
            else:
                summary.statements += 1
            self.sink.write(statement)
