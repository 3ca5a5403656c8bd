"""Tests for sequence mappings and their candidates."""

from pathlib import Path

import pytest

from traversal import (
    ColumnDefinition,
    ColumnKey,
    DependencyNode,
    FkRelations,
    ForeignKeyRelation,
    TableRow,
    TraversalResult,
)
from upsert import SequenceMapping, SequenceStore, generator_candidates
from upsert.sequences import parse_mapping


@pytest.fixture(name="store_file")
def sequence_store_file(tmp_path: Path) -> Path:
    """Create a store file with comments, blank and malformed lines."""
    location = tmp_path / "sequence-mappings.txt"
    location.write_text(
        "# Sequence mappings for primary key columns\n"
        "orders|order_id|orders_seq\n"
        "\n"
        "ORDER_LINE|LINE_ID\n"
        "ORDER_LINE||LINE_SEQ\n"
        " ORDER_LINE | LINE_ID | LINE_SEQ \n",
        encoding="utf-8",
    )
    return location


def test_load(store_file: Path) -> None:
    """Test that valid lines are loaded upper-cased."""
    store = SequenceStore(store_file)

    assert list(store) == [
        SequenceMapping("ORDERS", "ORDER_ID", "ORDERS_SEQ"),
        SequenceMapping("ORDER_LINE", "LINE_ID", "LINE_SEQ"),
    ]


def test_find(store_file: Path) -> None:
    """Test lookups by table and by table and column."""
    store = SequenceStore(store_file)

    assert store.find("orders") == SequenceMapping("ORDERS", "ORDER_ID", "ORDERS_SEQ")
    assert store.find("ORDER_LINE", "line_id") is not None
    assert store.find("ORDER_LINE", "ORDER_ID") is None
    assert store.find("CUSTOMER") is None


def test_put_replaces_and_saves(store_file: Path) -> None:
    """Test that a new mapping for a column replaces the old one on disk."""
    store = SequenceStore(store_file)

    mapping = store.put("orders", "order_id", "order_id_seq")

    assert mapping == SequenceMapping("ORDERS", "ORDER_ID", "ORDER_ID_SEQ")
    assert list(SequenceStore(store_file)) == [
        SequenceMapping("ORDER_LINE", "LINE_ID", "LINE_SEQ"),
        SequenceMapping("ORDERS", "ORDER_ID", "ORDER_ID_SEQ"),
    ]


def test_remove(store_file: Path) -> None:
    """Test that removing reports whether a mapping existed."""
    store = SequenceStore(store_file)

    assert store.remove("order_line", "line_id")
    assert not store.remove("ORDER_LINE", "LINE_ID")
    assert [mapping.table for mapping in SequenceStore(store_file)] == ["ORDERS"]


def test_saved_format(tmp_path: Path) -> None:
    """Test the file written for a new store."""
    location = tmp_path / "nested" / "sequence-mappings.txt"
    SequenceStore(location).put("ORDERS", "ORDER_ID", "ORDERS_SEQ")

    assert location.read_text(encoding="utf-8") == (
        "# Sequence mappings for primary key columns\n"
        "# Format: TABLE_NAME|PK_COLUMN|SEQUENCE_NAME\n"
        "ORDERS|ORDER_ID|ORDERS_SEQ\n"
    )


def test_as_generators(store_file: Path) -> None:
    """Test conversion into generator names per column."""
    assert SequenceStore(store_file).as_generators() == {
        ColumnKey("ORDERS", "ORDER_ID"): "ORDERS_SEQ",
        ColumnKey("ORDER_LINE", "LINE_ID"): "LINE_SEQ",
    }


def test_missing_file(tmp_path: Path) -> None:
    """Test that a missing file means no mappings."""
    store = SequenceStore(tmp_path / "missing.txt")

    assert list(store) == []
    assert store.as_generators() == {}


@pytest.mark.parametrize("line", ["", "# comment", "A|B", "A|B|C|D", "A| |C"])
def test_parse_mapping_skips(line: str) -> None:
    """Test that comments, blank and malformed lines give no mapping."""
    assert parse_mapping(line) is None


def make_row(table: str, *columns: tuple[str, str, bool]) -> TableRow:
    """Create a row with placeholder values."""
    row = TableRow("APP", table)
    for name, data_type, primary_key in columns:
        row.add_value(ColumnDefinition(name, data_type, primary_key=primary_key), "1")
    return row


def test_generator_candidates() -> None:
    """Test that foreign key and date keys are not offered for sequences."""
    relations: FkRelations = {
        "ORDER_LINE": [
            ForeignKeyRelation("ORDER_LINE", "ORDER_ID", "ORDERS", "ORDER_ID"),
        ],
        "SHIPMENT": [
            ForeignKeyRelation("SHIPMENT", "ORDER_ID", "ORDERS", "ORDER_ID"),
        ],
    }
    rows = [
        make_row("ORDERS", ("ORDER_ID", "NUMBER", True), ("ORDER_NO", "VARCHAR2(20)", False)),
        make_row("ORDER_LINE", ("LINE_ID", "NUMBER(10)", True), ("ORDER_ID", "NUMBER", False)),
        make_row("ORDER_LINE", ("LINE_ID", "NUMBER(10)", True), ("ORDER_ID", "NUMBER", False)),
        make_row(
            "SHIPMENT",
            ("ORDER_ID", "NUMBER", True),
            ("SHIPPED_AT", "TIMESTAMP(6)", True),
            ("SEQ_NO", "INTEGER", True),
        ),
        make_row("PRICE", ("VALID_FROM", "DATE", True)),
    ]
    result = TraversalResult(
        DependencyNode("ORDERS", "ORDER_ID", "1", 1),
        rows,
        {"ORDERS": 1, "ORDER_LINE": 2, "SHIPMENT": 1, "PRICE": 1},
        relations,
    )

    candidates = generator_candidates(result)

    assert [(table, column.name) for table, column in candidates] == [
        ("ORDERS", "ORDER_ID"),
        ("ORDER_LINE", "LINE_ID"),
        ("SHIPMENT", "SEQ_NO"),
    ]
