"""In-memory metadata provider shared by the traversal tests."""

from collections.abc import Sequence

import pytest

from traversal import (
    ColumnDefinition,
    ForeignKeyRelation,
    NotFoundError,
    SchemaError,
    TableRow,
)


class FakeDatabase:
    """Tables with rows already rendered as SQL literals."""

    def __init__(self) -> None:
        self.tables: dict[str, list[str]] = {}
        self.keys: dict[str, list[str]] = {}
        self.rows: dict[str, list[tuple[str, ...]]] = {}
        self.relations: list[ForeignKeyRelation] = []
        self.fetches: list[tuple[str, str, str]] = []

    def add_table(
        self,
        name: str,
        columns: Sequence[str],
        keys: Sequence[str],
        rows: Sequence[tuple[str, ...]] = (),
    ) -> None:
        self.tables[name] = list(columns)
        self.keys[name] = list(keys)
        self.rows[name] = list(rows)

    def add_relation(
        self,
        child_table: str,
        fk_column: str,
        parent_table: str,
        parent_pk_column: str,
    ) -> None:
        self.relations.append(
            ForeignKeyRelation(child_table, fk_column, parent_table, parent_pk_column),
        )

    def _name(self, table: str) -> str:
        for name in self.tables:
            if name.upper() == table.upper():
                return name
        msg = "Table does not exist"
        raise SchemaError(msg, table=table)

    def primary_key_columns(self, table: str) -> list[str]:
        return self.keys[self._name(table)]

    def columns(self, table: str, pk_columns: Sequence[str]) -> list[ColumnDefinition]:
        name = self._name(table)
        return [
            ColumnDefinition(
                column,
                "NUMBER" if column.endswith("_ID") else "VARCHAR2(50)",
                primary_key=column in pk_columns,
            )
            for column in self.tables[name]
        ]

    def child_relations(self, table: str) -> list[ForeignKeyRelation]:
        return [
            relation
            for relation in self.relations
            if relation.parent_table.upper() == table.upper()
        ]

    def _select(self, table: str, column: str, literal: str) -> list[TableRow]:
        name = self._name(table)
        self.fetches.append((name, column, literal))
        columns = self.tables[name]
        index = [c.upper() for c in columns].index(column.upper())
        definitions = self.columns(name, self.keys[name])
        rows = []
        for values in self.rows[name]:
            if values[index] != literal:
                continue
            row = TableRow("APP", name)
            for definition, value in zip(definitions, values, strict=True):
                row.add_value(definition, value)
            rows.append(row)
        return rows

    def fetch_rows_by_foreign_key(
        self,
        child_table: str,
        fk_column: str,
        parent_key_literal: str,
    ) -> list[TableRow]:
        return self._select(child_table, fk_column, parent_key_literal)

    def fetch_row_by_lookup_column(
        self,
        table: str,
        column: str,
        literal: str,
    ) -> TableRow:
        rows = self._select(table, column, literal)
        if not rows:
            msg = "No row found"
            raise NotFoundError(msg, table=table, column=column, literal=literal)
        return rows[0]


@pytest.fixture(name="database")
def empty_database() -> FakeDatabase:
    """Create an empty in-memory database."""
    return FakeDatabase()


@pytest.fixture(name="orders")
def orders_database() -> FakeDatabase:
    """Create orders with lines, a link table and a table without primary key."""
    database = FakeDatabase()
    database.add_table(
        "ORDERS",
        ["ORDER_ID", "ORDER_NO", "CUSTOMER"],
        ["ORDER_ID"],
        [
            ("42", "'ORD-42'", "'Smith'"),
            ("43", "'ORD-43'", "'O''Brien'"),
            ("44", "'ORD-44'", "'Jones'"),
        ],
    )
    database.add_table(
        "ORDER_LINE",
        ["LINE_ID", "ORDER_ID", "PRODUCT"],
        ["LINE_ID"],
        [
            ("1", "42", "'Chair'"),
            ("2", "42", "'Table'"),
            ("3", "43", "'Lamp'"),
        ],
    )
    database.add_table(
        "ORDER_LINK",
        ["LINK_ID", "FROM_ORDER_ID", "TO_ORDER_ID"],
        ["LINK_ID"],
        [("7", "42", "43")],
    )
    database.add_table(
        "ORDER_AUDIT",
        ["ORDER_ID", "NOTE"],
        [],
        [("42", "'created'"), ("42", "'shipped'")],
    )
    database.add_relation("ORDER_LINE", "ORDER_ID", "ORDERS", "ORDER_ID")
    return database
