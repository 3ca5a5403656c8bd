"""Allocation of PL/SQL variables for primary keys drawn from sequences.

When a primary key gets a fresh value from a sequence in the target
database, every row referencing it must use that new value too. Each
distinct (table, column, original value) gets one variable; child rows
reuse the variable of the parent value they reference.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from traversal import ColumnKey, is_quoted

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from traversal import FkRelations, TableRow

# Oracle identifier limit before 12.2
MAX_IDENTIFIER_LENGTH = 30
VARIABLE_PREFIX = "v_"
NUMBER_TYPE = "NUMBER"
TEXT_TYPE = "VARCHAR2(200)"

type Generators = Mapping[ColumnKey, str]
type VariableKey = tuple[ColumnKey, str]


def variable_name(column: str, n: int) -> str:
    """Build a variable name for a column, never longer than the identifier limit.

    The base name is truncated so the numeric suffix always fits:

        ("ID", 1)                             -> v_ID_1
        ("A_VERY_LONG_PRIMARY_KEY_COLUMN", 1) -> v_A_VERY_LONG_PRIMARY_KEY_CO_1
    """
    suffix = f"_{n}"
    base = f"{VARIABLE_PREFIX}{column.upper()}"
    base = base[: max(MAX_IDENTIFIER_LENGTH - len(suffix), 0)]
    return f"{base}{suffix}"[:MAX_IDENTIFIER_LENGTH]


def variable_type(literal: str | None) -> str:
    """Infer the PL/SQL type of a variable from the literal it replaces."""
    return TEXT_TYPE if literal is None or is_quoted(literal) else NUMBER_TYPE


@dataclass
class Variables:
    """Variables allocated for one script."""

    # (table/column, original literal) -> variable name
    names: dict[VariableKey, str] = field(default_factory=dict)
    # variable name -> generator (sequence) name
    generators: dict[str, str] = field(default_factory=dict)
    # variable name -> PL/SQL type
    types: dict[str, str] = field(default_factory=dict)

    def lookup(self, table: str, column: str, literal: str | None) -> str | None:
        """Return the variable allocated for a column value, if any."""
        if literal is None:
            return None
        return self.names.get((ColumnKey.of(table, column), literal))

    def __bool__(self) -> bool:
        """Whether any variable was allocated."""
        return bool(self.names)


def allocate_variables(rows: Iterable[TableRow], generators: Generators) -> Variables:
    """Allocate one variable per generated primary key value.

    The same (table, column, original value) always maps to the same
    variable, however often the row is encountered.
    """
    variables = Variables()
    counters: defaultdict[str, int] = defaultdict(int)

    for row in rows:
        for column in row.primary_keys:
            key = ColumnKey.of(row.table, column.name)
            generator = generators.get(key)
            literal = row.value(column.name)
            if not generator or literal is None:
                continue
            if (key, literal) in variables.names:
                continue

            # truncated names of different columns may collide
            name = None
            while name is None or name in variables.generators:
                counters[key.column] += 1
                name = variable_name(key.column, counters[key.column])
            variables.names[key, literal] = name
            variables.generators[name] = generator.upper()
            variables.types[name] = variable_type(literal)

    return variables


def substitutions(
    row: TableRow,
    variables: Variables,
    generators: Generators,
    fk_relations: FkRelations,
) -> dict[str, str]:
    """Return the variable replacing each column value of a row.

    A primary key with its own variable wins. Otherwise a foreign key whose
    parent column is generated takes the parent's variable for the value
    it references.
    """
    relations = fk_relations.get(row.table.upper(), [])
    result: dict[str, str] = {}

    for column in row.columns.values():
        literal = row.value(column.name)
        if column.primary_key and (
            own := variables.lookup(row.table, column.name, literal)
        ):
            result[column.name] = own
            continue

        for relation in relations:
            if relation.fk_column.upper() != column.name.upper():
                continue
            if relation.parent_key not in generators:
                continue
            if parent := variables.lookup(
                relation.parent_table,
                relation.parent_pk_column,
                literal,
            ):
                result[column.name] = parent
                break

    return result
