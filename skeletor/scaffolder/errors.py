"""Exceptions raised while validating parameters and materializing templates.

Every error carries enough context (field name, entry path, token) for the
caller to fix either the template or the parameters.  None of them are
retried: generation is deterministic, so the same inputs fail the same way.
"""

from __future__ import annotations

from pathlib import Path


class SkeletorError(Exception):
    """Base class for every error raised by the scaffolder."""


class ParameterValidationError(SkeletorError):
    """Raised when a required parameter is missing or malformed.

    Reported before any file is written.
    """

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid parameter {field}: {reason}")


class GenerationError(SkeletorError):
    """Raised when a single template entry cannot be materialized."""

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"{path}: {message}")


class RenderError(GenerationError):
    """Unresolved token or malformed template syntax in one entry."""

    def __init__(self, path: str, message: str, token: str | None = None) -> None:
        self.token = token
        super().__init__(path, message)


class PathEscapeError(GenerationError):
    """The resolved destination path would leave the destination root."""

    def __init__(self, path: str, destination: str | Path) -> None:
        self.destination = Path(destination)
        super().__init__(path, f"resolved path escapes destination root {self.destination}")


class WriteError(GenerationError):
    """Filesystem failure while creating a directory or writing a file."""

    def __init__(self, path: str, cause: OSError) -> None:
        self.cause = cause
        super().__init__(path, f"write failed: {cause}")


class DestinationConflictError(GenerationError):
    """The destination file already exists and overwriting is disabled."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "destination file already exists")


class DuplicateDestinationError(GenerationError):
    """Two entries of the source resolve to the same destination path."""

    def __init__(self, path: str, destination: str, other: str) -> None:
        self.destination = destination
        self.other = other
        super().__init__(path, f"resolves to {destination}, which {other} already writes")


class TemplateConfigError(SkeletorError):
    """The ``template.json`` of a template tree is unreadable or malformed."""

    def __init__(self, path: str | Path, message: str) -> None:
        self.path = str(path)
        self.message = message
        super().__init__(f"{self.path}: {message}")
