"""User-declared ("virtual") foreign key relations missing from the database."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from traversal.types import ForeignKeyRelation

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

logger = getLogger(__name__)

SEPARATOR = "|"
COMMENT = "#"
HEADER = (
    "# Virtual foreign key definitions",
    "# Format: CHILD_TABLE|FK_COLUMN|PARENT_TABLE|PARENT_PK_COLUMN",
)


class RelationOverlay(Protocol):
    """Relations declared by users on top of the real constraints."""

    def relations_for_parent(self, table: str) -> list[ForeignKeyRelation]:
        """Return overlay relations whose parent is the given table."""
        ...

    def reconcile(
        self,
        real_relations: Iterable[ForeignKeyRelation],
    ) -> list[ForeignKeyRelation]:
        """Drop entries now backed by a real constraint and return them."""
        ...


class MemoryOverlay:
    """Overlay kept in memory."""

    def __init__(self, relations: Iterable[ForeignKeyRelation] = ()) -> None:
        """Initialize with the given relations."""
        self._entries: list[ForeignKeyRelation] = []
        for relation in relations:
            self._append(relation)

    def __iter__(self) -> Iterator[ForeignKeyRelation]:
        """Iterate over all entries."""
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        """Return the number of entries."""
        return len(self._entries)

    def _append(self, relation: ForeignKeyRelation) -> bool:
        if any(entry.matches(relation) for entry in self._entries):
            return False
        self._entries.append(relation)
        return True

    def _discard(self, relation: ForeignKeyRelation) -> bool:
        before = len(self._entries)
        self._entries = [entry for entry in self._entries if not entry.matches(relation)]
        return len(self._entries) != before

    def relations_for_parent(self, table: str) -> list[ForeignKeyRelation]:
        """Return overlay relations whose parent is the given table (case-insensitive)."""
        return [
            entry
            for entry in self._entries
            if entry.parent_table.upper() == table.upper()
        ]

    def add(self, relation: ForeignKeyRelation) -> None:
        """Add a relation unless an equal one already exists."""
        self._append(relation)

    def remove(self, relation: ForeignKeyRelation) -> None:
        """Remove a relation, comparing all four fields; absent entries are ignored."""
        self._discard(relation)

    def reconcile(
        self,
        real_relations: Iterable[ForeignKeyRelation],
    ) -> list[ForeignKeyRelation]:
        """Remove entries whose child table and column now carry a real constraint."""
        real_relations = tuple(real_relations)
        superseded = [
            entry
            for entry in self._entries
            if any(real.same_child_column(entry) for real in real_relations)
        ]
        for entry in superseded:
            logger.info("Virtual relation %s now exists as a constraint", entry)
            self._discard(entry)
        return superseded


class FileOverlay(MemoryOverlay):
    """Overlay persisted in a pipe-delimited text file.

    Every mutation rewrites the file. A missing file is an empty overlay.
    """

    def __init__(self, location: Path) -> None:
        """Load the overlay stored at the given location."""
        super().__init__(load_relations(location))
        self.location = location

    def add(self, relation: ForeignKeyRelation) -> None:
        """Add a relation and save."""
        if self._append(relation):
            self.save()

    def remove(self, relation: ForeignKeyRelation) -> None:
        """Remove a relation and save."""
        if self._discard(relation):
            self.save()

    def reconcile(
        self,
        real_relations: Iterable[ForeignKeyRelation],
    ) -> list[ForeignKeyRelation]:
        """Reconcile against real relations and save when entries were dropped."""
        superseded = super().reconcile(real_relations)
        if superseded:
            self.save()
        return superseded

    def save(self) -> None:
        """Write all entries to the overlay file."""
        self.location.parent.mkdir(parents=True, exist_ok=True)
        lines = [*HEADER, *(SEPARATOR.join(entry) for entry in self)]
        self.location.write_text("\n".join(lines) + "\n", encoding="utf-8")


def parse_relation(line: str) -> ForeignKeyRelation | None:
    """Parse one overlay line, returning None for comments and malformed lines."""
    line = line.strip()
    if not line or line.startswith(COMMENT):
        return None
    parts = line.split(SEPARATOR)
    if len(parts) != len(ForeignKeyRelation._fields):
        logger.warning("Ignoring malformed virtual relation: %s", line)
        return None
    return ForeignKeyRelation(*(part.strip().upper() for part in parts))


def load_relations(location: Path) -> list[ForeignKeyRelation]:
    """Read relations from an overlay file."""
    if not location.exists():
        return []
    with location.open(encoding="utf-8") as f:
        return [relation for line in f if (relation := parse_relation(line))]
