"""Metadata provider backed by SQLAlchemy reflection."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from functools import cached_property
from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Engine,
    Inspector,
    MetaData,
    Table,
    create_engine,
    inspect,
    literal_column,
    make_url,
    select,
    text,
)
from sqlalchemy.exc import CompileError, SQLAlchemyError
from traversal import (
    ColumnDefinition,
    ForeignKeyRelation,
    MetadataProviderError,
    NotFoundError,
    SchemaError,
    TableRow,
)

from catalog.rendering import render_value
from catalog.triggers import detect_trigger_sequence

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import Column

logger = getLogger(__name__)

TRIGGER_QUERY = text(
    """
    SELECT trigger_body FROM all_triggers
    WHERE table_name = :table_name AND owner = :owner
      AND trigger_type LIKE 'BEFORE%'
      AND triggering_event LIKE '%INSERT%'
    """,
)


def read_only_engine(url: str) -> Engine:
    """Create an engine for the given database URL.

    SQLite files are opened read-only; other backends rely on the account
    used in the URL.
    """
    with provider_errors():
        database_url = make_url(url)
        database = database_url.database
        sqlite_file = database_url.get_backend_name() == "sqlite" and database not in {
            None,
            "",
            ":memory:",
        }
        try:
            if sqlite_file:
                return create_engine(f"sqlite:///file:{database}?mode=ro&uri=true")
            return create_engine(database_url)
        except ImportError as err:
            msg = f"Database driver {database_url.drivername} is not installed"
            raise MetadataProviderError(msg) from err


@contextmanager
def provider_errors(table: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into MetadataProviderError."""
    try:
        yield
    except SQLAlchemyError as err:
        msg = f"Database access failed: {err}"
        raise MetadataProviderError(msg, table=table) from err


def type_name(column: Column[Any], engine: Engine) -> str:
    """Return the database specific type name of a column, e.g. VARCHAR(20)."""
    try:
        return column.type.compile(dialect=engine.dialect).upper()
    except CompileError:
        return type(column.type).__name__.upper()


class Catalog:
    """Reads keys, relations and rows of one schema through SQLAlchemy.

    Reflection results are cached for the lifetime of the instance.
    """

    def __init__(self, engine: Engine, schema: str | None = None) -> None:
        """Initialize with an engine and an optional schema name."""
        self.engine = engine
        self.schema = schema
        self._metadata = MetaData(schema=schema)
        self._tables: dict[str, Table] = {}
        self._primary_keys: dict[str, list[str]] = {}

    @cached_property
    def inspector(self) -> Inspector:
        """Return the inspector of the engine."""
        with provider_errors():
            return inspect(self.engine)

    @cached_property
    def schema_name(self) -> str:
        """Return the schema rows are attributed to."""
        return self.schema or self.inspector.default_schema_name or ""

    @cached_property
    def table_names(self) -> dict[str, str]:
        """Return the table names of the schema keyed by their upper-cased form."""
        with provider_errors():
            names = self.inspector.get_table_names(schema=self.schema)
        return {name.upper(): name for name in names}

    @cached_property
    def foreign_keys(self) -> list[ForeignKeyRelation]:
        """Return every foreign key column pair of the schema."""
        relations: list[ForeignKeyRelation] = []
        for name in self.table_names.values():
            with provider_errors(name):
                constraints = self.inspector.get_foreign_keys(name, schema=self.schema)
            for constraint in constraints:
                relations.extend(
                    ForeignKeyRelation(
                        name,
                        fk_column,
                        constraint["referred_table"],
                        pk_column,
                    )
                    for fk_column, pk_column in zip(
                        constraint["constrained_columns"],
                        constraint["referred_columns"],
                        strict=False,
                    )
                )
        return relations

    def table_name(self, table: str) -> str:
        """Return the stored spelling of a table name."""
        try:
            return self.table_names[table.upper()]
        except KeyError as err:
            msg = "Table does not exist"
            raise SchemaError(msg, table=table) from err

    def table(self, table: str) -> Table:
        """Return the reflected table."""
        name = self.table_name(table)
        if name not in self._tables:
            with provider_errors(name):
                self._tables[name] = Table(
                    name,
                    self._metadata,
                    autoload_with=self.engine,
                )
        return self._tables[name]

    def column(self, table: str, column: str) -> Column[Any]:
        """Return a column of a reflected table, matching the name case-insensitively."""
        reflected = self.table(table)
        for candidate in reflected.columns:
            if candidate.name.upper() == column.upper():
                return candidate
        msg = "Column does not exist"
        raise SchemaError(msg, table=table, column=column)

    def primary_key_columns(self, table: str) -> list[str]:
        """Return primary key column names in key order."""
        name = self.table_name(table)
        if name not in self._primary_keys:
            with provider_errors(name):
                constraint = self.inspector.get_pk_constraint(name, schema=self.schema)
            self._primary_keys[name] = list(constraint.get("constrained_columns") or [])
        return self._primary_keys[name]

    def columns(self, table: str, pk_columns: Sequence[str]) -> list[ColumnDefinition]:
        """Return the columns of a table in physical order."""
        keys = {column.upper() for column in pk_columns}
        return [
            ColumnDefinition(
                name=column.name,
                data_type=type_name(column, self.engine),
                nullable=bool(column.nullable),
                primary_key=column.name.upper() in keys,
            )
            for column in self.table(table).columns
        ]

    def child_relations(self, table: str) -> list[ForeignKeyRelation]:
        """Return the foreign keys referencing the table."""
        name = self.table_name(table)
        return [
            relation
            for relation in self.foreign_keys
            if relation.parent_table.upper() == name.upper()
        ]

    def fetch_rows(self, table: str, column: str, literal: str) -> list[TableRow]:
        """Return the rows of a table where the column equals a SQL literal."""
        reflected = self.table(table)
        definitions = self.columns(table, self.primary_key_columns(table))
        query = select(reflected).where(
            self.column(table, column) == literal_column(literal),
        )

        with provider_errors(reflected.name), self.engine.connect() as connection:
            result = connection.execute(query)
            rows = []
            for record in result.mappings():
                row = TableRow(self.schema_name, reflected.name)
                for definition in definitions:
                    row.add_value(
                        definition,
                        render_value(
                            record[definition.name],
                            definition.data_type,
                            definition.name,
                        ),
                    )
                rows.append(row)

        logger.debug("Fetched %d rows from %s", len(rows), reflected.name)
        return rows

    def fetch_rows_by_foreign_key(
        self,
        child_table: str,
        fk_column: str,
        parent_key_literal: str,
    ) -> list[TableRow]:
        """Return the rows of child_table referencing the given parent key."""
        return self.fetch_rows(child_table, fk_column, parent_key_literal)

    def fetch_row_by_lookup_column(
        self,
        table: str,
        column: str,
        literal: str,
    ) -> TableRow:
        """Return the first row where the column equals the literal."""
        rows = self.fetch_rows(table, column, literal)
        if not rows:
            msg = "No row found"
            raise NotFoundError(msg, table=table, column=column, literal=literal)
        return rows[0]

    def trigger_sequence(self, table: str) -> str | None:
        """Suggest the sequence a before-insert trigger draws the key from.

        Only Oracle keeps trigger bodies in a queryable view; other databases
        and lookup failures give no suggestion.
        """
        if self.engine.dialect.name != "oracle":
            return None

        owner = self.schema_name.upper()
        try:
            with self.engine.connect() as connection:
                bodies = connection.execute(
                    TRIGGER_QUERY,
                    {"table_name": table.upper(), "owner": owner},
                ).scalars()
                return detect_trigger_sequence(bodies)
        except SQLAlchemyError as err:
            logger.warning("Trigger sequence detection failed for %s: %s", table, err)
            return None
