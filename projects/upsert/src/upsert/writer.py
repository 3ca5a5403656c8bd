"""Writing generated scripts to disk."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

logger = getLogger(__name__)


def script_location(output_dir: Path, root_table: str) -> Path:
    """Return the file a script for the given root table is written to."""
    table = root_table.upper()
    return output_dir / table / f"MERGE_{table}.sql"


def write_script(text: str, output_dir: Path, root_table: str) -> Path:
    """Write a script into a folder per root table, replacing older scripts."""
    location = script_location(output_dir, root_table)
    location.parent.mkdir(parents=True, exist_ok=True)

    for old_script in location.parent.glob("*.sql"):
        logger.debug("Removing old script %s", old_script)
        old_script.unlink()

    location.write_text(text, encoding="utf-8")
    logger.info("Script written to %s", location)
    return location
