"""Combining independent traversals into a single result."""

from __future__ import annotations

from typing import TYPE_CHECKING

from traversal.types import DependencyNode, TraversalResult

if TYPE_CHECKING:
    from collections.abc import Iterable

    from traversal.types import FkRelations, TableRow

BATCH_TABLE = "BATCH"


def merge_results(results: Iterable[TraversalResult]) -> TraversalResult:
    """Merge several traversal results, keeping each physical row once.

    Rows are deduplicated on schema, table and all rendered values. The
    merged tree gets a synthetic root whose children are the input roots.
    """
    results = tuple(results)
    root = DependencyNode(BATCH_TABLE, "", "", len(results))

    rows: list[TableRow] = []
    table_counts: dict[str, int] = {}
    fk_relations: FkRelations = {}
    seen: set[tuple[object, ...]] = set()

    for result in results:
        root.add_child(result.root)
        for row in result.rows:
            if row.identity in seen:
                continue
            seen.add(row.identity)
            rows.append(row)
            table_counts[row.table] = table_counts.get(row.table, 0) + 1

        for child_table, relations in result.fk_relations.items():
            fk_relations.setdefault(child_table, []).extend(relations)

    return TraversalResult(root, rows, table_counts, fk_relations)
