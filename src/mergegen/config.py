"""Loading of the TOML configuration file."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
from tomllib import TOMLDecodeError, load
from typing import NotRequired, TypedDict

from traversal import InputError

logger = getLogger(__name__)

DEFAULT_CONFIG = Path("mergegen.toml")


class DatabaseSettings(TypedDict):
    """Connection of the source database."""

    url: NotRequired[str]
    schema: NotRequired[str]


class FileSettings(TypedDict):
    """Locations of the stores and of generated scripts."""

    overlay: Path
    sequences: Path
    output: Path


class Settings(TypedDict):
    """Complete configuration."""

    database: DatabaseSettings
    files: FileSettings


DEFAULT_FILES = {
    "overlay": "virtual-fks.txt",
    "sequences": "sequence-mappings.txt",
    "output": "scripts",
}


def load_settings(location: Path = DEFAULT_CONFIG) -> Settings:
    """Load settings, using defaults for everything the file leaves out.

    Relative file locations are resolved against the folder of the
    configuration file. A missing file gives the default settings.
    """
    data = {}
    if location.exists():
        try:
            with location.open("rb") as f:
                data = load(f)
        except TOMLDecodeError as err:
            msg = f"Invalid configuration file {location}: {err}"
            raise InputError(msg) from err
    else:
        logger.debug("No configuration file at %s, using defaults", location)

    base = location.parent
    files = {**DEFAULT_FILES, **data.get("files", {})}
    section = data.get("database", {})
    database: DatabaseSettings = {}
    if url := section.get("url"):
        database["url"] = str(url)
    if schema := section.get("schema"):
        database["schema"] = str(schema)

    return {
        "database": database,
        "files": {
            "overlay": base / files["overlay"],
            "sequences": base / files["sequences"],
            "output": base / files["output"],
        },
    }


def database_url(settings: Settings) -> str:
    """Return the configured database URL."""
    try:
        return settings["database"]["url"]
    except KeyError as err:
        msg = "No database URL configured, set [database] url in the configuration file"
        raise InputError(msg) from err
