"""SQL literal rendering for user supplied values."""

import re

from traversal.errors import InputError

_INTEGER = re.compile(r"[+-]?\d+")


def quote(text: str) -> str:
    """Quote text as a SQL string literal, doubling embedded single quotes."""
    return "'" + text.replace("'", "''") + "'"


def is_quoted(literal: str | None) -> bool:
    """Whether a rendered literal is a quoted string."""
    return literal is not None and len(literal) >= 2 and literal[0] == literal[-1] == "'"


def to_sql_literal(value: str | None) -> str:
    """Convert user input into a SQL literal.

    Values that are fully an integer are returned unquoted, everything else is
    quoted. Surrounding whitespace is ignored.

        "42"       -> 42
        "ORD-0001" -> 'ORD-0001'
        "O'Brien"  -> 'O''Brien'

    Raises:
        InputError: If the value is missing or blank.

    """
    if value is None or not value.strip():
        msg = "Seed value must not be empty"
        raise InputError(msg, literal=value)

    value = value.strip()
    if _INTEGER.fullmatch(value):
        return value
    return quote(value)
