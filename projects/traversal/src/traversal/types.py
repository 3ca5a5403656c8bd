"""Type definitions for row traversal."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple, Self

# Rows carry their values already rendered as SQL literals, e.g. 42, 'Text', NULL
type SqlLiteral = str

# Number of row labels shown in the text form of a node
MAX_LABELS_DISPLAY = 3


@dataclass(frozen=True)
class ColumnDefinition:
    """Metadata of a single table column."""

    name: str
    data_type: str
    nullable: bool = True
    primary_key: bool = False

    def __str__(self) -> str:
        """Return the column name with its type and key flag."""
        return f"{self.name} ({self.data_type}{', PK' if self.primary_key else ''})"


class ColumnKey(NamedTuple):
    """Upper-cased (table, column) pair used as a composite map key."""

    table: str
    column: str

    @classmethod
    def of(cls, table: str, column: str) -> Self:
        """Create a normalized key."""
        return cls(table.upper(), column.upper())

    def __str__(self) -> str:
        """Return the key as TABLE.COLUMN."""
        return f"{self.table}.{self.column}"


class ForeignKeyRelation(NamedTuple):
    """Directional edge: child_table.fk_column references parent_table.parent_pk_column."""

    child_table: str
    fk_column: str
    parent_table: str
    parent_pk_column: str

    @property
    def parent_key(self) -> ColumnKey:
        """Return the referenced parent column as a ColumnKey."""
        return ColumnKey.of(self.parent_table, self.parent_pk_column)

    def same_child_column(self, other: ForeignKeyRelation) -> bool:
        """Whether both relations start at the same child column (case-insensitive)."""
        return (
            self.child_table.upper() == other.child_table.upper()
            and self.fk_column.upper() == other.fk_column.upper()
        )

    def matches(self, other: ForeignKeyRelation) -> bool:
        """Whether all four fields are equal ignoring case."""
        return tuple(part.upper() for part in self) == tuple(
            part.upper() for part in other
        )

    def __str__(self) -> str:
        """Return the relation as CHILD.COL -> PARENT.COL."""
        return (
            f"{self.child_table}.{self.fk_column} -> "
            f"{self.parent_table}.{self.parent_pk_column}"
        )


@dataclass
class TableRow:
    """A single fetched row with its values rendered as SQL literals.

    ``values`` and ``columns`` are filled in lockstep by ``add_value`` and keep
    the physical column order of the table.
    """

    schema: str
    table: str
    values: dict[str, SqlLiteral] = field(default_factory=dict)
    columns: dict[str, ColumnDefinition] = field(default_factory=dict)

    def add_value(self, column: ColumnDefinition, literal: SqlLiteral) -> None:
        """Add a column with its literal value."""
        self.columns[column.name] = column
        self.values[column.name] = literal

    def value(self, column: str) -> SqlLiteral | None:
        """Return the literal value of a column, matching the name case-insensitively."""
        if column in self.values:
            return self.values[column]
        return next(
            (
                literal
                for name, literal in self.values.items()
                if name.upper() == column.upper()
            ),
            None,
        )

    @property
    def primary_keys(self) -> tuple[ColumnDefinition, ...]:
        """Return the primary key columns in physical order."""
        return tuple(column for column in self.columns.values() if column.primary_key)

    @property
    def identity(self) -> tuple[str, str, tuple[tuple[str, SqlLiteral], ...]]:
        """Return the deduplication key: schema, table and all values in order."""
        return (self.schema, self.table, tuple(self.values.items()))


@dataclass
class DependencyNode:
    """Node of the dependency tree shown to the user."""

    table: str
    column: str
    value: SqlLiteral
    row_count: int
    children: list[DependencyNode] = field(default_factory=list)
    row_labels: list[str] = field(default_factory=list)

    def add_child(self, child: DependencyNode) -> None:
        """Append a child node."""
        self.children.append(child)

    def __str__(self) -> str:
        """Return the table with its row count and the first few row labels."""
        noun = "row" if self.row_count == 1 else "rows"
        base = f"{self.table}  ({self.row_count} {noun})"
        if not self.row_labels:
            return base
        labels = ", ".join(self.row_labels[:MAX_LABELS_DISPLAY])
        if len(self.row_labels) > MAX_LABELS_DISPLAY:
            labels += ", ..."
        return f"{base}  -  {labels}"


type FkRelations = dict[str, list[ForeignKeyRelation]]


@dataclass
class TraversalResult:
    """Dependency tree plus the parent-before-child ordered rows of a traversal."""

    root: DependencyNode
    rows: list[TableRow]
    table_counts: dict[str, int]
    # Key: upper-cased child table name
    fk_relations: FkRelations = field(default_factory=dict)

    @property
    def total_rows(self) -> int:
        """Total number of collected rows."""
        return len(self.rows)


class QueueEntry(NamedTuple):
    """Pending traversal step."""

    table: str
    key_literal: SqlLiteral
    row: TableRow
    node: DependencyNode
