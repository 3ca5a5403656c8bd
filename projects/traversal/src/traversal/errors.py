"""Error taxonomy for traversal and script generation."""

from __future__ import annotations


class MergeGenError(Exception):
    """Base class for all errors raised by the traversal and script pipeline."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        column: str | None = None,
        literal: str | None = None,
    ) -> None:
        """Initialize with a message and the context needed for diagnosis."""
        self.table = table
        self.column = column
        self.literal = literal
        super().__init__(message)

    def __str__(self) -> str:
        """Append the diagnostic context to the message."""
        context = [
            f"{key}={value}"
            for key, value in (
                ("table", self.table),
                ("column", self.column),
                ("value", self.literal),
            )
            if value is not None
        ]
        message = super().__str__()
        return f"{message} ({', '.join(context)})" if context else message


class SchemaError(MergeGenError):
    """A table has no primary key, or a referenced table or column does not exist."""


class NotFoundError(MergeGenError):
    """A lookup by column matched no rows."""


class InputError(MergeGenError, ValueError):
    """A seed value is empty or cannot be rendered as a literal."""


class MetadataProviderError(MergeGenError):
    """The metadata provider failed (connectivity, permissions, timeouts)."""
