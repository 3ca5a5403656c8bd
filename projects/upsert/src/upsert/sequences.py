"""Sequence mappings for primary keys generated in the target database."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, NamedTuple

from traversal import ColumnKey

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from traversal import ColumnDefinition, TraversalResult

logger = getLogger(__name__)

SEPARATOR = "|"
COMMENT = "#"
HEADER = (
    "# Sequence mappings for primary key columns",
    "# Format: TABLE_NAME|PK_COLUMN|SEQUENCE_NAME",
)
# Date-like keys are never drawn from a sequence
TEMPORAL_TYPES = ("DATE", "DATETIME", "TIMESTAMP")


class SequenceMapping(NamedTuple):
    """Primary key column of a table whose values come from a sequence."""

    table: str
    column: str
    sequence: str

    @property
    def key(self) -> ColumnKey:
        """Return the mapped column as a ColumnKey."""
        return ColumnKey.of(self.table, self.column)


class SequenceStore:
    """Sequence mappings persisted in a pipe-delimited text file."""

    def __init__(self, location: Path) -> None:
        """Load the mappings stored at the given location."""
        self.location = location
        self._entries: list[SequenceMapping] = []
        if location.exists():
            with location.open(encoding="utf-8") as f:
                self._entries = [entry for line in f if (entry := parse_mapping(line))]

    def __iter__(self) -> Iterator[SequenceMapping]:
        """Iterate over all mappings."""
        return iter(tuple(self._entries))

    def find(self, table: str, column: str | None = None) -> SequenceMapping | None:
        """Return the first mapping for a table, optionally for a specific column."""
        return next(
            (
                entry
                for entry in self._entries
                if entry.table == table.upper()
                and (column is None or entry.column == column.upper())
            ),
            None,
        )

    def put(self, table: str, column: str, sequence: str) -> SequenceMapping:
        """Map a column to a sequence, replacing an existing mapping, and save."""
        mapping = SequenceMapping(table.upper(), column.upper(), sequence.upper())
        self._entries = [entry for entry in self._entries if entry.key != mapping.key]
        self._entries.append(mapping)
        self.save()
        return mapping

    def remove(self, table: str, column: str) -> bool:
        """Remove the mapping of a column and save; return whether one existed."""
        key = ColumnKey.of(table, column)
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if entry.key != key]
        if len(self._entries) == before:
            return False
        self.save()
        return True

    def as_generators(self) -> dict[ColumnKey, str]:
        """Return the mappings as generator names per column."""
        return {entry.key: entry.sequence for entry in self._entries}

    def save(self) -> None:
        """Write all mappings to the store file."""
        self.location.parent.mkdir(parents=True, exist_ok=True)
        lines = [*HEADER, *(SEPARATOR.join(entry) for entry in self._entries)]
        self.location.write_text("\n".join(lines) + "\n", encoding="utf-8")


def parse_mapping(line: str) -> SequenceMapping | None:
    """Parse one store line, returning None for comments and malformed lines."""
    line = line.strip()
    if not line or line.startswith(COMMENT):
        return None
    parts = [part.strip() for part in line.split(SEPARATOR)]
    if len(parts) != len(SequenceMapping._fields) or not all(parts):
        logger.warning("Ignoring malformed sequence mapping: %s", line)
        return None
    table, column, sequence = parts
    return SequenceMapping(table.upper(), column.upper(), sequence.upper())


def generator_candidates(
    result: TraversalResult,
) -> list[tuple[str, ColumnDefinition]]:
    """Return primary key columns of traversed tables that may use a sequence.

    Keys that are foreign keys take their value from the parent, and
    date-like keys are never generated, so both are left out.
    """
    fk_columns = {
        ColumnKey.of(relation.child_table, relation.fk_column)
        for relations in result.fk_relations.values()
        for relation in relations
    }

    candidates: list[tuple[str, ColumnDefinition]] = []
    seen: set[ColumnKey] = set()
    for row in result.rows:
        for column in row.primary_keys:
            key = ColumnKey.of(row.table, column.name)
            if key in seen or key in fk_columns:
                continue
            if column.data_type.upper().startswith(TEMPORAL_TYPES):
                continue
            seen.add(key)
            candidates.append((row.table, column))
    return candidates
