"""Breadth-first traversal of foreign key dependencies starting at one row."""

from __future__ import annotations

from collections import deque
from logging import getLogger
from typing import TYPE_CHECKING

from traversal.errors import SchemaError
from traversal.literals import to_sql_literal
from traversal.types import DependencyNode, QueueEntry, TraversalResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from traversal.overlay import RelationOverlay
    from traversal.provider import MetadataProvider
    from traversal.types import FkRelations, ForeignKeyRelation, TableRow

logger = getLogger(__name__)

type VisitedKey = tuple[str | None, ...]


def visited_key(
    table: str,
    row: TableRow,
    pk_columns: Sequence[str],
    key_literal: str | None,
) -> VisitedKey:
    """Return the key identifying a row within one traversal.

    Single-column keys use the key literal, composite keys use every key
    column so rows sharing the first component stay distinct. Tables without
    a primary key fall back to all values of the row.
    """
    if not pk_columns:
        return (table.upper(), *row.values.values())
    if len(pk_columns) == 1:
        return (table.upper(), key_literal)
    return (table.upper(), *(row.value(column) for column in pk_columns))


def row_label(row: TableRow, key_column: str) -> str:
    """Return a short label for a row in the dependency tree."""
    return f"{key_column}={row.value(key_column)}"


class Traverser:
    """Collects every row that depends on a root row through foreign keys.

    Rows are returned in breadth-first order, so a parent always precedes the
    rows that reference it. Each row is visited at most once, which also
    protects against cycles in the relation graph.
    """

    def __init__(
        self,
        provider: MetadataProvider,
        overlay: RelationOverlay | None = None,
    ) -> None:
        """Initialize with a metadata provider and an optional relation overlay."""
        self.provider = provider
        self.overlay = overlay

    def relations(self, table: str) -> list[ForeignKeyRelation]:
        """Return real and virtual relations referencing the table."""
        real = self.provider.child_relations(table)
        if self.overlay is None:
            return list(real)

        self.overlay.reconcile(real)
        return [*real, *self.overlay.relations_for_parent(table)]

    def traverse(
        self,
        root_table: str,
        seed_value: str,
        lookup_column: str | None = None,
    ) -> TraversalResult:
        """Traverse all rows depending on the row of root_table matching seed_value.

        Args:
            root_table: Table the traversal starts at
            seed_value: Value identifying the root row
            lookup_column: Column to look the seed up in, defaults to the first
                primary key column

        Raises:
            InputError: If the seed value is blank
            SchemaError: If the root table has no primary key
            NotFoundError: If no row matches the seed value

        """
        seed_literal = to_sql_literal(seed_value)

        pk_columns = self.provider.primary_key_columns(root_table)
        if not pk_columns:
            msg = "No primary key found"
            raise SchemaError(msg, table=root_table)
        root_pk = pk_columns[0]

        if lookup_column and lookup_column.strip():
            lookup_column = lookup_column.strip().upper()
        else:
            lookup_column = root_pk

        root_row = self.provider.fetch_row_by_lookup_column(
            root_table,
            lookup_column,
            seed_literal,
        )
        # Foreign keys reference the primary key, never the lookup column
        root_key = root_row.value(root_pk)
        if root_key is None:
            msg = "Primary key column missing from fetched row"
            raise SchemaError(msg, table=root_table, column=root_pk)

        root = DependencyNode(root_table, lookup_column, seed_literal, 1)
        root.row_labels.append(row_label(root_row, root_pk))

        rows: list[TableRow] = []
        table_counts: dict[str, int] = {}
        fk_relations: FkRelations = {}
        visited: set[VisitedKey] = set()

        queue = deque([QueueEntry(root_table, root_key, root_row, root)])
        while queue:
            entry = queue.popleft()
            table_pks = self.provider.primary_key_columns(entry.table)
            key = visited_key(entry.table, entry.row, table_pks, entry.key_literal)
            if key in visited:
                continue
            visited.add(key)

            rows.append(entry.row)
            table_counts[entry.row.table] = table_counts.get(entry.row.table, 0) + 1
            logger.debug("Visited %s %s", entry.table, entry.key_literal)

            relations = self.relations(entry.table)
            for relation in relations:
                fk_relations.setdefault(relation.child_table.upper(), []).append(
                    relation,
                )

            for relation in relations:
                queue.extend(self._children(entry, relation, visited))

        logger.info(
            "Traversal of %s %s collected %d rows in %d tables",
            root_table,
            seed_literal,
            len(rows),
            len(table_counts),
        )
        return TraversalResult(root, rows, table_counts, fk_relations)

    def _children(
        self,
        entry: QueueEntry,
        relation: ForeignKeyRelation,
        visited: set[VisitedKey],
    ) -> list[QueueEntry]:
        """Fetch the rows referencing the entry through one relation."""
        child_rows = self.provider.fetch_rows_by_foreign_key(
            relation.child_table,
            relation.fk_column,
            entry.key_literal,
        )
        if not child_rows:
            return []

        node = DependencyNode(
            relation.child_table,
            relation.fk_column,
            entry.key_literal,
            len(child_rows),
        )
        entry.node.add_child(node)

        child_pks = self.provider.primary_key_columns(relation.child_table)
        # Without a primary key the referencing column is the only usable key
        key_column = child_pks[0] if child_pks else relation.fk_column

        pending: list[QueueEntry] = []
        for row in child_rows:
            node.row_labels.append(row_label(row, key_column))
            key_literal = row.value(key_column)
            if key_literal is None:
                msg = "Key column missing from fetched row"
                raise SchemaError(msg, table=relation.child_table, column=key_column)
            if visited_key(relation.child_table, row, child_pks, key_literal) in visited:
                continue
            pending.append(QueueEntry(relation.child_table, key_literal, row, node))
        return pending
