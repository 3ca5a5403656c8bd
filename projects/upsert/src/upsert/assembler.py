"""Assembly of MERGE statements into a complete script.

Two shapes are produced:

- a flat script of independent MERGE statements grouped by table, and
- a PL/SQL block declaring variables for sequence generated keys, used when
  keys are generated or when child rows must be skipped because the root row
  was not inserted.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape
from traversal import ColumnKey

from upsert.statement import generate_merge
from upsert.variables import allocate_variables, substitutions

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from traversal import FkRelations, TableRow

    from upsert.variables import Generators, Variables

TEMPLATE_DIR = Path(__file__).parent / "templates"

BANNER = "-- " + "=" * 60
ROOT_COUNT = "v_root_count"
BLOCK_INDENT = "  "
FOOTER = "-- End of generated script"

_JINJA_ENV = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(),
    trim_blocks=True,
    lstrip_blocks=True,
)


def _is_root(row: TableRow, root_table: str) -> bool:
    return row.table.upper() == root_table.upper()


def needs_partial_insert_guard(
    rows: Iterable[TableRow],
    root_table: str,
    *,
    include_update: bool,
) -> bool:
    """Whether child rows must be skipped when no root row was inserted.

    Without updates, an existing root row is left alone, and inserting its
    children would attach them to a record that was not replayed.
    """
    return not include_update and any(not _is_root(row, root_table) for row in rows)


def root_groups(rows: Iterable[TableRow], root_table: str) -> int:
    """Count the runs of consecutive root table rows."""
    groups = 0
    previous = False
    for row in rows:
        is_root = _is_root(row, root_table)
        if is_root and not previous:
            groups += 1
        previous = is_root
    return groups


def uses_generators(rows: Iterable[TableRow], generators: Generators) -> bool:
    """Whether any row has a column drawn from a generator."""
    return any(
        ColumnKey.of(row.table, column) in generators
        for row in rows
        for column in row.columns
    )


def needs_scoped_program(
    rows: Sequence[TableRow],
    root_table: str,
    generators: Generators,
    *,
    include_update: bool,
) -> bool:
    """Whether the script must be a PL/SQL block rather than plain statements."""
    return uses_generators(rows, generators) or needs_partial_insert_guard(
        rows,
        root_table,
        include_update=include_update,
    )


def table_banner(table: str, count: int, indent: str = "") -> list[str]:
    """Return the comment block introducing the statements of a table."""
    noun = "row" if count == 1 else "rows"
    return [
        f"{indent}{BANNER}",
        f"{indent}-- Table: {table}  ({count} {noun})",
        f"{indent}{BANNER}",
    ]


def render_header(
    root_table: str,
    root_ids: Sequence[str],
    table_counts: Mapping[str, int],
    statement_count: int,
    generated_at: datetime,
) -> str:
    """Render the comment header of a script."""
    template = _JINJA_ENV.get_template("header.sql")
    return template.render(
        generated_at=generated_at.strftime("%Y-%m-%d %H:%M:%S"),
        root_table=root_table.upper(),
        root_ids=list(root_ids),
        statement_count=statement_count,
        table_counts=table_counts,
    )


class ScriptAssembler:
    """Renders ordered rows as a MERGE script."""

    def __init__(  # noqa: PLR0913
        self,
        root_table: str,
        *,
        generators: Generators | None = None,
        fk_relations: FkRelations | None = None,
        name_column: str | None = None,
        test_suffix: str | None = None,
        include_update: bool = False,
    ) -> None:
        """Initialize with the rendering options shared by all rows."""
        self.root_table = root_table
        self.generators = generators or {}
        self.fk_relations = fk_relations or {}
        self.name_column = name_column or None
        self.test_suffix = test_suffix or None
        self.include_update = include_update

    def merge(self, row: TableRow, variables: Mapping[str, str] | None = None) -> str:
        """Render the MERGE statement of one row."""
        return generate_merge(
            row,
            self.root_table,
            generators=self.generators,
            variables=variables,
            name_column=self.name_column,
            test_suffix=self.test_suffix,
            include_update=self.include_update,
        )

    def flat(self, rows: Sequence[TableRow], table_counts: Mapping[str, int]) -> list[str]:
        """Render independent statements grouped by table."""
        lines: list[str] = []
        current = None
        for row in rows:
            if row.table != current:
                current = row.table
                lines.extend(["", *table_banner(row.table, table_counts.get(row.table, 0))])
                lines.append("")
            lines.append(self.merge(row))
        return lines

    def scoped(
        self,
        rows: Sequence[TableRow],
        table_counts: Mapping[str, int],
        variables: Variables,
    ) -> list[str]:
        """Render a PL/SQL block binding generated keys to variables.

        With the partial insert guard, the dependents of a root row are only
        merged when the root row was inserted. A single root group ends the
        block early; with several groups (merged traversals) the counter is
        reset per root row and each group's dependents are wrapped in an IF.
        """
        guard = needs_partial_insert_guard(
            rows,
            self.root_table,
            include_update=self.include_update,
        )
        grouped = guard and root_groups(rows, self.root_table) > 1

        lines = ["DECLARE"]
        if guard:
            lines.append(f"{BLOCK_INDENT}{ROOT_COUNT} NUMBER := 0;")
        lines.extend(
            f"{BLOCK_INDENT}{name} {type_};" for name, type_ in variables.types.items()
        )
        lines.append("BEGIN")

        indent = BLOCK_INDENT
        current = None
        previous_root: bool | None = None
        guard_written = False
        generated: set[str] = set()
        for row in rows:
            is_root = _is_root(row, self.root_table)
            if guard and previous_root and not is_root:
                if grouped:
                    lines.extend(["", f"{BLOCK_INDENT}IF {ROOT_COUNT} > 0 THEN"])
                    indent = BLOCK_INDENT * 2
                elif not guard_written:
                    lines.extend(
                        [
                            "",
                            f"{BLOCK_INDENT}IF {ROOT_COUNT} = 0 THEN",
                            f"{BLOCK_INDENT * 2}RETURN;",
                            f"{BLOCK_INDENT}END IF;",
                        ],
                    )
                    guard_written = True
            elif is_root and indent != BLOCK_INDENT:
                lines.extend(["", f"{BLOCK_INDENT}END IF;"])
                indent = BLOCK_INDENT

            if row.table != current:
                current = row.table
                lines.append("")
                lines.extend(
                    table_banner(
                        row.table,
                        table_counts.get(row.table, 0),
                        indent,
                    ),
                )
            if grouped and is_root and previous_root is not None:
                lines.extend(["", f"{indent}{ROOT_COUNT} := 0;"])
            previous_root = is_root

            row_variables = substitutions(
                row,
                variables,
                self.generators,
                self.fk_relations,
            )
            for column in row.primary_keys:
                name = row_variables.get(column.name)
                generator = variables.generators.get(name) if name else None
                if name is None or generator is None or name in generated:
                    continue
                generated.add(name)
                lines.append("")
                lines.append(
                    f"{indent}SELECT {generator}.NEXTVAL INTO {name} FROM DUAL;",
                )

            lines.append("")
            lines.extend(
                f"{indent}{line}" if line else line
                for line in self.merge(row, row_variables).splitlines()
            )
            if guard and is_root:
                lines.append(
                    f"{indent}{ROOT_COUNT} := {ROOT_COUNT} + SQL%ROWCOUNT;",
                )

        if indent != BLOCK_INDENT:
            lines.extend(["", f"{BLOCK_INDENT}END IF;"])
        lines.extend(["", "END;", "/"])
        return lines


def assemble_script(  # noqa: PLR0913
    rows: Sequence[TableRow],
    table_counts: Mapping[str, int],
    root_table: str,
    *,
    name_column: str | None = None,
    test_suffix: str | None = None,
    fk_relations: FkRelations | None = None,
    include_update: bool = False,
    generators: Generators | None = None,
    root_ids: Sequence[str] = (),
    generated_at: datetime | None = None,
) -> str:
    """Render rows (parents before children) as a complete MERGE script.

    Args:
        rows: Rows in insertion order
        table_counts: Number of rows per table, in first-encountered order
        root_table: Table the traversal started at
        name_column: Column matching root rows instead of the primary key
        test_suffix: Suffix appended to the name column value of root rows
        fk_relations: Relations per upper-cased child table
        include_update: Whether existing rows are updated
        generators: Sequence name per generated primary key column
        root_ids: Seed values, shown in the header
        generated_at: Timestamp shown in the header, defaults to now

    """
    generators = generators or {}
    assembler = ScriptAssembler(
        root_table,
        generators=generators,
        fk_relations=fk_relations,
        name_column=name_column,
        test_suffix=test_suffix,
        include_update=include_update,
    )

    header = render_header(
        root_table,
        root_ids,
        table_counts,
        len(rows),
        generated_at or datetime.now(),  # noqa: DTZ005
    )

    if needs_scoped_program(rows, root_table, generators, include_update=include_update):
        variables = allocate_variables(rows, generators)
        body = assembler.scoped(rows, table_counts, variables)
    else:
        body = assembler.flat(rows, table_counts)

    return "\n".join([header, *body, "", FOOTER]) + "\n"
