"""Foreign key traversal of dependent rows."""

from traversal.engine import Traverser, visited_key
from traversal.errors import (
    InputError,
    MergeGenError,
    MetadataProviderError,
    NotFoundError,
    SchemaError,
)
from traversal.literals import is_quoted, quote, to_sql_literal
from traversal.merge import merge_results
from traversal.overlay import FileOverlay, MemoryOverlay, RelationOverlay
from traversal.provider import MetadataProvider
from traversal.types import (
    ColumnDefinition,
    ColumnKey,
    DependencyNode,
    FkRelations,
    ForeignKeyRelation,
    TableRow,
    TraversalResult,
)

__all__ = [
    "ColumnDefinition",
    "ColumnKey",
    "DependencyNode",
    "FileOverlay",
    "FkRelations",
    "ForeignKeyRelation",
    "InputError",
    "MemoryOverlay",
    "MergeGenError",
    "MetadataProvider",
    "MetadataProviderError",
    "NotFoundError",
    "RelationOverlay",
    "SchemaError",
    "TableRow",
    "TraversalResult",
    "Traverser",
    "is_quoted",
    "merge_results",
    "quote",
    "to_sql_literal",
    "visited_key",
]
