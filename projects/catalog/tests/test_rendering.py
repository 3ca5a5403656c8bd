"""Tests for rendering fetched values and detecting trigger sequences."""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

import pytest

from catalog import detect_trigger_sequence, render_value


@pytest.mark.parametrize(
    ("value", "data_type", "expected"),
    [
        (None, "NUMBER", "NULL"),
        (None, "CLOB", "NULL"),
        (42, "NUMBER(10)", "42"),
        (Decimal("12.50"), "NUMBER(10,2)", "12.50"),
        (2.5, "FLOAT", "2.5"),
        (True, "NUMBER(1)", "1"),
        (False, "BOOLEAN", "0"),
        ("Smith", "VARCHAR2(50)", "'Smith'"),
        ("O'Brien's", "VARCHAR2(50)", "'O''Brien''s'"),
        (
            datetime(2024, 5, 1, 12, 30, 15),  # noqa: DTZ001
            "DATE",
            "TO_DATE('2024-05-01 12:30:15', 'YYYY-MM-DD HH24:MI:SS')",
        ),
        (
            datetime(2024, 5, 1, 12, 30, 15, 999),  # noqa: DTZ001
            "TIMESTAMP(6)",
            "TO_TIMESTAMP('2024-05-01 12:30:15', 'YYYY-MM-DD HH24:MI:SS')",
        ),
        (
            date(2024, 6, 1),
            "DATE",
            "TO_DATE('2024-06-01 00:00:00', 'YYYY-MM-DD HH24:MI:SS')",
        ),
        ("long text", "CLOB", "NULL /* CLOB value in COL not exportable */"),
        (b"\x00\x01", "RAW(16)", "NULL /* RAW value in COL not exportable */"),
        (b"\x00", "", "NULL /* BYTES value in COL not exportable */"),
    ],
)
def test_render_value(value: Any, data_type: str, expected: str) -> None:  # noqa: ANN401
    """Test the literal rendered for each kind of value."""
    assert render_value(value, data_type, "COL") == expected


@pytest.mark.parametrize(
    ("bodies", "expected"),
    [
        (["BEGIN :NEW.ID := orders_seq.nextval; END;"], "ORDERS_SEQ"),
        (["SELECT app.SEQ_A . NEXTVAL INTO :NEW.ID FROM DUAL"], "SEQ_A"),
        ([None, "BEGIN NULL; END;", "x := S2.NEXTVAL;"], "S2"),
        (["BEGIN NULL; END;"], None),
        ([], None),
    ],
)
def test_detect_trigger_sequence(bodies: list[str | None], expected: str | None) -> None:
    """Test that the first sequence referenced with NEXTVAL is suggested."""
    assert detect_trigger_sequence(bodies) == expected
