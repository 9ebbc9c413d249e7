"""Configuration for a manifestsync run."""

from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .exceptions import SyncConfigError
from .sync.comparator import CompareMode
from .utils import DEFAULT_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_WORKERS


@dataclass
class SyncConfig:
    """Settings consumed by the sync engine.

    Examples:
        >>> config = SyncConfig(
        ...     manifest_path=Path("build/manifest.txt"),
        ...     command=["python", "gen.py"],
        ...     workers=8,
        ... )
    """

    manifest_path: Path
    """Persisted manifest file"""

    command: list[str]
    """Generator program and its arguments"""

    workers: int = DEFAULT_WORKERS
    """Number of parallel copy workers"""

    retries: int = DEFAULT_RETRIES
    """Retries for transient I/O errors"""

    retry_delay: float = DEFAULT_RETRY_DELAY
    """Initial delay between retries in seconds"""

    compare_mode: CompareMode = CompareMode.MTIME
    """How to decide whether a destination is up to date"""

    force: bool = False
    """Copy every pair regardless of change detection"""

    verify: bool = True
    """Re-check each destination right after copying it"""

    dry_run: bool = False
    """Plan and report only"""

    def __post_init__(self):
        """Normalize and validate settings."""
        if isinstance(self.manifest_path, str):
            self.manifest_path = Path(self.manifest_path)

        if isinstance(self.compare_mode, str):
            self.compare_mode = _parse_compare_mode(self.compare_mode)

        self.command = list(self.command)
        if not self.command:
            raise SyncConfigError("Generator command must not be empty")

        if isinstance(self.workers, bool) or not isinstance(self.workers, int):
            raise SyncConfigError(
                f"workers must be a positive integer, got {self.workers!r}"
            )
        if self.workers < 1:
            raise SyncConfigError(
                f"workers must be a positive integer, got {self.workers}"
            )

        if self.retries < 0:
            raise SyncConfigError(f"retries must not be negative, got {self.retries}")
        if self.retry_delay < 0:
            raise SyncConfigError(
                f"retry_delay must not be negative, got {self.retry_delay}"
            )


def _parse_compare_mode(value: Union[str, CompareMode]) -> CompareMode:
    try:
        return CompareMode(value)
    except ValueError:
        valid = ", ".join(m.value for m in CompareMode)
        raise SyncConfigError(
            f"Invalid compare mode {value!r}, expected one of: {valid}"
        ) from None
