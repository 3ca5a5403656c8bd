"""Rows of an order with two lines shared by the script tests."""

import pytest

from traversal import (
    ColumnDefinition,
    FkRelations,
    ForeignKeyRelation,
    TableRow,
)

ORDER_COLUMNS = (
    ColumnDefinition("ORDER_ID", "NUMBER", nullable=False, primary_key=True),
    ColumnDefinition("ORDER_NO", "VARCHAR2(20)"),
    ColumnDefinition("CUSTOMER", "VARCHAR2(50)"),
)
LINE_COLUMNS = (
    ColumnDefinition("LINE_ID", "NUMBER", nullable=False, primary_key=True),
    ColumnDefinition("ORDER_ID", "NUMBER"),
    ColumnDefinition("PRODUCT", "VARCHAR2(50)"),
)


def make_row(
    table: str,
    columns: tuple[ColumnDefinition, ...],
    *values: str,
) -> TableRow:
    """Create a row from column definitions and literals."""
    row = TableRow("APP", table)
    for column, value in zip(columns, values, strict=True):
        row.add_value(column, value)
    return row


@pytest.fixture(name="order")
def order_row() -> TableRow:
    """Create the root order row."""
    return make_row("ORDERS", ORDER_COLUMNS, "42", "'ORD-42'", "'Smith'")


@pytest.fixture(name="line")
def line_row() -> TableRow:
    """Create the first order line."""
    return make_row("ORDER_LINE", LINE_COLUMNS, "1", "42", "'Chair'")


@pytest.fixture(name="rows")
def order_rows(order: TableRow, line: TableRow) -> list[TableRow]:
    """Create an order followed by its two lines."""
    return [order, line, make_row("ORDER_LINE", LINE_COLUMNS, "2", "42", "'Table'")]


@pytest.fixture(name="audit")
def audit_row() -> TableRow:
    """Create a row of a table without primary key."""
    return make_row(
        "ORDER_AUDIT",
        (ColumnDefinition("ORDER_ID", "NUMBER"), ColumnDefinition("NOTE", "VARCHAR2(50)")),
        "42",
        "'created'",
    )


@pytest.fixture(name="fk_relations")
def order_relations() -> FkRelations:
    """Create the relation of order lines to orders."""
    return {
        "ORDER_LINE": [
            ForeignKeyRelation("ORDER_LINE", "ORDER_ID", "ORDERS", "ORDER_ID"),
        ],
    }
