"""Interface of the metadata provider consumed by the traversal engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from traversal.types import ColumnDefinition, ForeignKeyRelation, TableRow


class MetadataProvider(Protocol):
    """Supplies table metadata and rows with values rendered as SQL literals.

    Implementations raise ``MetadataProviderError`` for backend failures and
    ``NotFoundError`` when a lookup by column matches nothing.
    """

    def primary_key_columns(self, table: str) -> list[str]:
        """Return primary key column names in key order, empty if none."""
        ...

    def columns(
        self,
        table: str,
        pk_columns: Sequence[str],
    ) -> list[ColumnDefinition]:
        """Return the column definitions of a table in physical order."""
        ...

    def child_relations(self, table: str) -> list[ForeignKeyRelation]:
        """Return all foreign key relations that reference the given table."""
        ...

    def fetch_rows_by_foreign_key(
        self,
        child_table: str,
        fk_column: str,
        parent_key_literal: str,
    ) -> list[TableRow]:
        """Return every row of child_table whose fk_column equals the parent key."""
        ...

    def fetch_row_by_lookup_column(
        self,
        table: str,
        column: str,
        literal: str,
    ) -> TableRow:
        """Return the first row of table whose column equals the literal."""
        ...
