"""Database metadata and row access through SQLAlchemy."""

from catalog.main import Catalog, read_only_engine
from catalog.rendering import render_value
from catalog.triggers import detect_trigger_sequence

__all__ = [
    "Catalog",
    "detect_trigger_sequence",
    "read_only_engine",
    "render_value",
]
