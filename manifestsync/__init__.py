"""manifestsync - incremental file sync driven by a generator's manifest."""

from .config import SyncConfig
from .exceptions import (
    GeneratorError,
    ManifestConflictError,
    ManifestParseError,
    ManifestReadError,
    ManifestSaveError,
    ManifestSyncError,
    SourceError,
    SyncConfigError,
    VerificationError,
)
from .sync import Manifest, ManifestStore, Pair, SyncEngine, SyncReport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "SyncConfig",
    "SyncEngine",
    "SyncReport",
    "Manifest",
    "ManifestStore",
    "Pair",
    "GeneratorError",
    "ManifestConflictError",
    "ManifestParseError",
    "ManifestReadError",
    "ManifestSaveError",
    "ManifestSyncError",
    "SourceError",
    "SyncConfigError",
    "VerificationError",
]
