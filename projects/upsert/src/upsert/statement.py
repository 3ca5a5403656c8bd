"""Oracle MERGE statement for a single row."""

from __future__ import annotations

from typing import TYPE_CHECKING

from traversal import ColumnKey, SchemaError, is_quoted

if TYPE_CHECKING:
    from collections.abc import Mapping

    from traversal import TableRow

    from upsert.variables import Generators

INDENT = "    "
NEVER_MATCH = "1=0"


def column_name(row: TableRow, name: str) -> str:
    """Return the row's spelling of a column name, or the name itself."""
    return next(
        (column for column in row.columns if column.upper() == name.upper()),
        name,
    )


def apply_test_suffix(literal: str, suffix: str) -> str:
    """Append a suffix inside a quoted literal, once.

    Numbers and other unquoted literals are returned unchanged.
    """
    if not is_quoted(literal):
        return literal
    suffix = suffix.replace("'", "''")
    if literal[1:-1].endswith(suffix):
        return literal
    return f"{literal[:-1]}{suffix}'"


def resolve_value(
    row: TableRow,
    column: str,
    generators: Generators,
    variables: Mapping[str, str],
) -> str:
    """Return the expression selected for a column.

    Priority: substituted variable, then the generator's next value, then the
    original literal.
    """
    if variable := variables.get(column):
        return variable
    if generator := generators.get(ColumnKey.of(row.table, column)):
        return f"{generator}.NEXTVAL"
    return row.values[column]


def match_condition(
    row: TableRow,
    *,
    is_root: bool,
    name_column: str | None,
) -> tuple[str, str | None]:
    """Return the ON condition of a row and an optional warning comment.

    The root table matches on the name column when one is given, other tables
    on all primary key columns. Rows without a primary key never match.
    """
    if is_root and name_column:
        name = column_name(row, name_column)
        if name not in row.columns:
            msg = "Name column not found in root row"
            raise SchemaError(msg, table=row.table, column=name_column)
        return f"tgt.{name} = src.{name}", None
    if keys := row.primary_keys:
        return " AND ".join(f"tgt.{key.name} = src.{key.name}" for key in keys), None
    warning = (
        f"-- WARNING: no primary key found for {row.table}, "
        "row is always inserted"
    )
    return NEVER_MATCH, warning


def update_columns(
    row: TableRow,
    generators: Generators,
    variables: Mapping[str, str],
    matched: str | None = None,
) -> list[str]:
    """Return the columns safe to overwrite when the row already exists.

    Primary keys, the matched column and columns driven by a generator or
    variable are excluded.
    """
    return [
        column.name
        for column in row.columns.values()
        if not column.primary_key
        and column.name != matched
        and ColumnKey.of(row.table, column.name) not in generators
        and column.name not in variables
    ]


def generate_merge(  # noqa: PLR0913
    row: TableRow,
    root_table: str,
    *,
    generators: Generators | None = None,
    variables: Mapping[str, str] | None = None,
    name_column: str | None = None,
    test_suffix: str | None = None,
    include_update: bool = False,
) -> str:
    """Render the MERGE statement inserting a row unless it already exists.

    Args:
        row: Row to render
        root_table: Table the traversal started at
        generators: Sequence name per (table, column) for generated columns
        variables: Variable name per column of this row
        name_column: Column of the root table identifying the same record
            across databases, used instead of the primary key
        test_suffix: Appended to the text value of the name column of root
            rows, so repeated test runs always insert new records
        include_update: Whether to update existing rows

    """
    generators = generators or {}
    variables = variables or {}
    is_root = row.table.upper() == root_table.upper()
    suffix_column = (
        column_name(row, name_column) if is_root and name_column and test_suffix else None
    )

    select_items = []
    for column in row.columns:
        value = resolve_value(row, column, generators, variables)
        if column == suffix_column and test_suffix:
            value = apply_test_suffix(value, test_suffix)
        select_items.append(f"{INDENT * 2}{value} AS {column}")

    condition, warning = match_condition(row, is_root=is_root, name_column=name_column)
    matched = column_name(row, name_column) if is_root and name_column else None

    lines = [
        f"MERGE INTO {row.table} tgt",
        "USING (",
        f"{INDENT}SELECT",
        ",\n".join(select_items),
        f"{INDENT}FROM DUAL",
        ") src",
    ]
    if warning:
        lines.append(warning)
    lines.append(f"ON ({condition})")

    columns = update_columns(row, generators, variables, matched)
    if include_update and columns:
        lines.append("WHEN MATCHED THEN")
        lines.append(f"{INDENT}UPDATE SET")
        lines.append(
            ",\n".join(f"{INDENT * 2}tgt.{column} = src.{column}" for column in columns),
        )

    lines.append("WHEN NOT MATCHED THEN")
    lines.append(f"{INDENT}INSERT ({', '.join(row.columns)})")
    lines.append(f"{INDENT}VALUES ({', '.join(f'src.{c}' for c in row.columns)});")
    return "\n".join(lines) + "\n"
