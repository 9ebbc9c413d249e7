"""Exceptions raised by manifestsync."""

from typing import Any, Optional


class ManifestSyncError(Exception):
    """Base exception for all manifestsync errors."""


class SyncConfigError(ManifestSyncError):
    """Raised when the sync configuration is invalid."""


class ManifestParseError(ManifestSyncError):
    """Raised when a manifest stream contains a malformed record."""

    def __init__(self, origin: str, line_number: int, message: str):
        self.origin = origin
        self.line_number = line_number
        self.message = message
        super().__init__(f"{origin}, line {line_number}: {message}")


class ManifestReadError(ManifestSyncError):
    """Raised when an existing manifest file cannot be read."""


class ManifestSaveError(ManifestSyncError):
    """Raised when the new manifest cannot be persisted.

    The report of the sync that preceded the save is attached so it can
    still be shown to the user.
    """

    def __init__(self, message: str, report: Optional[Any] = None):
        super().__init__(message)
        self.report = report


class ManifestConflictError(ManifestSyncError):
    """Raised when paths are used as both sources and destinations."""

    def __init__(self, paths: list[str]):
        self.paths = paths
        listing = ", ".join(paths[:5])
        if len(paths) > 5:
            listing += f", ... ({len(paths) - 5} more)"
        super().__init__(
            f"{len(paths)} path(s) are both sources and destinations: {listing}"
        )


class GeneratorError(ManifestSyncError):
    """Raised when the generator cannot be launched or exits with an error."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        super().__init__(message)
        self.returncode = returncode


class SourceError(ManifestSyncError):
    """Raised when a source path exists but cannot be copied as a file."""


class VerificationError(ManifestSyncError):
    """Raised when a destination is still out of date right after a copy."""
