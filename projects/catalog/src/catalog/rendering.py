"""Rendering of fetched column values as Oracle SQL literals."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from traversal import quote

NULL = "NULL"
ORACLE_DATETIME_FORMAT = "YYYY-MM-DD HH24:MI:SS"
PYTHON_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"

# Large objects cannot be written inline
LOB_TYPES = frozenset({"BLOB", "CLOB", "NCLOB", "LONG RAW"})


def base_type(data_type: str) -> str:
    """Return the type name without length or precision, e.g. VARCHAR2(20) -> VARCHAR2."""
    return data_type.split("(", 1)[0].strip().upper()


def unsupported(data_type: str, column: str) -> str:
    """Return the NULL placeholder for a value that cannot be exported."""
    return f"{NULL} /* {data_type} value in {column} not exportable */"


def render_datetime(value: date, data_type: str) -> str:
    """Render a date or timestamp with an explicit conversion function."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)  # noqa: DTZ001
    function = "TO_TIMESTAMP" if data_type.startswith("TIMESTAMP") else "TO_DATE"
    text = value.strftime(PYTHON_DATETIME_FORMAT)
    return f"{function}('{text}', '{ORACLE_DATETIME_FORMAT}')"


def render_value(value: Any, data_type: str, column: str) -> str:  # noqa: ANN401, PLR0911
    """Convert a fetched value to a SQL literal.

    - NULL values of any type       -> NULL
    - numbers                       -> unquoted
    - DATE                          -> TO_DATE('...', 'YYYY-MM-DD HH24:MI:SS')
    - TIMESTAMP, other datetimes    -> TO_TIMESTAMP('...', 'YYYY-MM-DD HH24:MI:SS')
    - BLOB, CLOB, NCLOB, raw bytes  -> NULL with an explanatory comment
    - everything else               -> quoted, embedded quotes doubled
    """
    if value is None:
        return NULL

    type_name = base_type(data_type)
    if type_name in LOB_TYPES or isinstance(value, bytes | bytearray | memoryview):
        return unsupported(type_name or type(value).__name__.upper(), column)

    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int | Decimal):
        return str(value)
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, datetime):
        return render_datetime(value, "DATE" if type_name == "DATE" else "TIMESTAMP")
    if isinstance(value, date):
        return render_datetime(value, type_name or "DATE")
    return quote(str(value))
