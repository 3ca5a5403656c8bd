"""Tests for merging traversal results."""

from traversal import (
    ColumnDefinition,
    DependencyNode,
    ForeignKeyRelation,
    TableRow,
    TraversalResult,
    merge_results,
)

LINE_TO_ORDER = ForeignKeyRelation("ORDER_LINE", "ORDER_ID", "ORDERS", "ORDER_ID")


def row(table: str, *values: str) -> TableRow:
    """Create a row with generic column names."""
    result = TableRow("APP", table)
    for i, value in enumerate(values):
        result.add_value(ColumnDefinition(f"C{i}", "NUMBER", primary_key=i == 0), value)
    return result


def result(root_value: str, *rows: TableRow) -> TraversalResult:
    """Create a traversal result with counts derived from the rows."""
    counts: dict[str, int] = {}
    for item in rows:
        counts[item.table] = counts.get(item.table, 0) + 1
    return TraversalResult(
        DependencyNode("ORDERS", "ORDER_ID", root_value, 1),
        list(rows),
        counts,
        {"ORDER_LINE": [LINE_TO_ORDER]},
    )


def test_merge_preserves_first_seen_order() -> None:
    """Test that merged rows keep their order and duplicates are dropped."""
    shared = row("CURRENCY", "1", "'EUR'")
    first = result("42", row("ORDERS", "42"), shared, row("ORDER_LINE", "1", "42"))
    second = result("43", row("ORDERS", "43"), row("CURRENCY", "1", "'EUR'"))

    merged = merge_results([first, second])

    assert [(item.table, item.value("C0")) for item in merged.rows] == [
        ("ORDERS", "42"),
        ("CURRENCY", "1"),
        ("ORDER_LINE", "1"),
        ("ORDERS", "43"),
    ]
    assert list(merged.table_counts.items()) == [
        ("ORDERS", 2),
        ("CURRENCY", 1),
        ("ORDER_LINE", 1),
    ]
    assert merged.total_rows == 4


def test_merge_root_and_relations() -> None:
    """Test the synthetic root node and the combined relations."""
    first = result("42", row("ORDERS", "42"))
    second = result("43", row("ORDERS", "43"))

    merged = merge_results([first, second])

    assert str(merged.root) == "BATCH  (2 rows)"
    assert [child.value for child in merged.root.children] == ["42", "43"]
    assert merged.fk_relations == {"ORDER_LINE": [LINE_TO_ORDER, LINE_TO_ORDER]}


def test_merge_single_result() -> None:
    """Test that merging one result keeps all of its rows."""
    only = result("42", row("ORDERS", "42"), row("ORDER_LINE", "1", "42"))

    merged = merge_results([only])

    assert merged.rows == only.rows
    assert merged.table_counts == only.table_counts
