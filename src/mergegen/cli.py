"""Command line interface for MergeGen."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Annotated

from catalog import Catalog, read_only_engine
from cyclopts import App, Parameter
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree
from traversal import (
    DependencyNode,
    FileOverlay,
    ForeignKeyRelation,
    MergeGenError,
    TraversalResult,
    Traverser,
    merge_results,
)
from upsert import SequenceStore, assemble_script, generator_candidates, write_script

from mergegen.config import DEFAULT_CONFIG, Settings, database_url, load_settings

app = App(help="Generate Oracle MERGE scripts replaying a row and its dependents")
overlay_app = App(name="overlay", help="Manage virtual foreign keys")
sequences_app = App(name="sequences", help="Manage sequences of generated primary keys")
app.command(overlay_app)
app.command(sequences_app)

console = Console()
err_console = Console(stderr=True)

TEST_SUFFIX_FORMAT = "_%Y%m%d%H%M%S"


def print_error(message: str) -> None:
    """Print error message to stderr."""
    err_console.print(f"[bold red]Error:[/] {escape(message)}")


def print_success(message: str) -> None:
    """Print success message to stderr."""
    err_console.print(f"[bold green]✓[/] {escape(message)}")


def print_info(message: str) -> None:
    """Print info message to stderr."""
    err_console.print(f"[bold blue]i[/] {escape(message)}")


def configure_logging(*, verbose: bool) -> None:
    """Send log records to stderr through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


@contextmanager
def reported_errors() -> Iterator[None]:
    """Print pipeline errors and exit with status 1."""
    try:
        yield
    except MergeGenError as err:
        print_error(str(err))
        sys.exit(1)


@contextmanager
def open_catalog(settings: Settings) -> Iterator[Catalog]:
    """Connect to the configured database, disposing the engine afterwards."""
    engine = read_only_engine(database_url(settings))
    print_info(f"Database: {engine.url.render_as_string(hide_password=True)}")
    try:
        yield Catalog(engine, settings["database"].get("schema"))
    finally:
        engine.dispose()


def collect(
    catalog: Catalog,
    settings: Settings,
    table: str,
    values: tuple[str, ...],
    column: str | None,
) -> TraversalResult:
    """Traverse from every seed value and merge the results."""
    if not values:
        print_error("At least one value is required")
        sys.exit(1)

    traverser = Traverser(
        catalog,
        FileOverlay(settings["files"]["overlay"]),
    )
    results = [traverser.traverse(table, value, column) for value in values]
    if len(results) == 1:
        return results[0]
    return merge_results(results)


def build_tree(node: DependencyNode, parent: Tree | None = None) -> Tree:
    """Convert a dependency tree into a rich tree."""
    label = escape(str(node))
    branch = Tree(f"[bold]{label}[/]") if parent is None else parent.add(label)
    for child in node.children:
        build_tree(child, branch)
    return branch


def format_counts_table(result: TraversalResult) -> Table:
    """Format the number of rows per table as a rich table."""
    table = Table(title=f"{result.total_rows} rows")
    table.add_column("Table", style="bold cyan")
    table.add_column("Rows", justify="right")
    for name, count in result.table_counts.items():
        table.add_row(name, str(count))
    return table


@app.command
def tree(
    table: str,
    *values: str,
    column: str | None = None,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Show the rows depending on one or more rows of a table.

    Parameters
    ----------
    table
        Table the traversal starts at.
    values
        Values identifying the root rows.
    column
        Column to look the values up in, defaults to the primary key.
    config
        Configuration file.

    """
    with reported_errors():
        settings = load_settings(config)
        with open_catalog(settings) as catalog:
            result = collect(catalog, settings, table, values, column)

    console.print(build_tree(result.root))
    console.print(format_counts_table(result))


@app.command
def generate(  # noqa: PLR0913
    table: str,
    *values: str,
    column: str | None = None,
    name_column: str | None = None,
    test_mode: bool = False,
    update: bool = False,
    output: Path | None = None,
    save: bool = False,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Generate the MERGE script for one or more rows and their dependents.

    Parameters
    ----------
    table
        Table the traversal starts at.
    values
        Values identifying the root rows.
    column
        Column to look the values up in, defaults to the primary key.
    name_column
        Column matching root rows in the target database, defaults to the
        lookup column.
    test_mode
        Append a timestamp to the name column so every run inserts new rows.
    update
        Update rows that already exist.
    output
        Folder to write the script to instead of stdout.
    save
        Write the script into the configured output folder.
    config
        Configuration file.

    """
    name_column = name_column or column
    test_suffix = datetime.now().strftime(TEST_SUFFIX_FORMAT) if test_mode else None  # noqa: DTZ005
    if test_suffix and not name_column:
        print_error("Test mode requires a name column")
        sys.exit(1)

    with reported_errors():
        settings = load_settings(config)
        with open_catalog(settings) as catalog:
            result = collect(catalog, settings, table, values, column)
        store = SequenceStore(settings["files"]["sequences"])
        script = assemble_script(
            result.rows,
            result.table_counts,
            table,
            name_column=name_column,
            test_suffix=test_suffix,
            fk_relations=result.fk_relations,
            include_update=update,
            generators=store.as_generators(),
            root_ids=values,
        )

    if output is None and not save:
        sys.stdout.write(script)
        print_success(f"Generated {result.total_rows} statements")
        return

    location = write_script(script, output or settings["files"]["output"], table)
    print_success(f"Generated {result.total_rows} statements into {location}")


@overlay_app.command(name="list")
def list_relations(*, config: Path = DEFAULT_CONFIG) -> None:
    """List virtual foreign keys."""
    with reported_errors():
        overlay = FileOverlay(load_settings(config)["files"]["overlay"])

    table = Table(title="Virtual foreign keys")
    for field in ForeignKeyRelation._fields:
        table.add_column(field.replace("_", " ").title())
    for relation in overlay:
        table.add_row(*relation)
    console.print(table)


@overlay_app.command(name="add")
def add_relation(
    child_table: str,
    fk_column: str,
    parent_table: str,
    parent_pk_column: str,
    *,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Declare that child_table.fk_column references parent_table.parent_pk_column."""
    relation = ForeignKeyRelation(
        child_table.upper(),
        fk_column.upper(),
        parent_table.upper(),
        parent_pk_column.upper(),
    )
    with reported_errors():
        overlay = FileOverlay(load_settings(config)["files"]["overlay"])
        overlay.add(relation)
    print_success(f"Added {relation}")


@overlay_app.command(name="remove")
def remove_relation(
    child_table: str,
    fk_column: str,
    parent_table: str,
    parent_pk_column: str,
    *,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Remove a virtual foreign key."""
    relation = ForeignKeyRelation(
        child_table.upper(),
        fk_column.upper(),
        parent_table.upper(),
        parent_pk_column.upper(),
    )
    with reported_errors():
        overlay = FileOverlay(load_settings(config)["files"]["overlay"])
        overlay.remove(relation)
    print_success(f"Removed {relation}")


@sequences_app.command(name="list")
def list_sequences(*, config: Path = DEFAULT_CONFIG) -> None:
    """List sequence mappings."""
    with reported_errors():
        store = SequenceStore(load_settings(config)["files"]["sequences"])

    table = Table(title="Sequence mappings")
    table.add_column("Table", style="bold cyan")
    table.add_column("Column")
    table.add_column("Sequence")
    for mapping in store:
        table.add_row(*mapping)
    console.print(table)


@sequences_app.command(name="set")
def set_sequence(
    table: str,
    column: str,
    sequence: str,
    *,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Draw new values of a primary key column from a sequence."""
    with reported_errors():
        store = SequenceStore(load_settings(config)["files"]["sequences"])
        mapping = store.put(table, column, sequence)
    print_success(f"{mapping.key} uses {mapping.sequence}")


@sequences_app.command(name="remove")
def remove_sequence(
    table: str,
    column: str,
    *,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """Stop drawing a primary key column from a sequence."""
    with reported_errors():
        store = SequenceStore(load_settings(config)["files"]["sequences"])
        removed = store.remove(table, column)
    if not removed:
        print_error(f"No sequence mapping for {table.upper()}.{column.upper()}")
        sys.exit(1)
    print_success(f"Removed sequence mapping for {table.upper()}.{column.upper()}")


@sequences_app.command(name="candidates")
def sequence_candidates(
    table: str,
    *values: str,
    column: str | None = None,
    config: Path = DEFAULT_CONFIG,
) -> None:
    """List primary key columns of a traversal that may use a sequence.

    Suggestions come from the stored mappings, then from insert triggers.
    """
    listing = Table(title="Sequence candidates")
    listing.add_column("Table", style="bold cyan")
    listing.add_column("Column")
    listing.add_column("Type")
    listing.add_column("Suggestion")

    with reported_errors():
        settings = load_settings(config)
        store = SequenceStore(settings["files"]["sequences"])
        with open_catalog(settings) as catalog:
            result = collect(catalog, settings, table, values, column)
            for candidate_table, definition in generator_candidates(result):
                stored = store.find(candidate_table, definition.name)
                suggestion = stored.sequence if stored else catalog.trigger_sequence(
                    candidate_table,
                )
                listing.add_row(
                    candidate_table,
                    definition.name,
                    definition.data_type,
                    suggestion or "",
                )

    console.print(listing)


@app.meta.default
def launcher(
    *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
    verbose: bool = False,
) -> None:
    """Run a command.

    Parameters
    ----------
    verbose
        Show debug logging on stderr.

    """
    configure_logging(verbose=verbose)
    app(tokens)


def main() -> None:
    """Entry point for the CLI."""
    app.meta()


if __name__ == "__main__":
    main()
