"""Per-task outcomes and the run summary."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .diff import DiffResult
from .reader import Pair


class OutcomeStatus(str, Enum):
    """Result of a single copy task."""

    SKIPPED = "skipped"
    """Destination was already up to date"""

    COPIED = "copied"
    """Source was copied (or would be, in a dry run)"""

    FAILED = "failed"
    """Task failed; ``error`` holds the cause"""


@dataclass
class CopyOutcome:
    """Outcome of one copy task."""

    pair: Pair
    status: OutcomeStatus
    reason: str = ""
    error: Optional[BaseException] = None
    bytes_copied: int = 0
    elapsed: float = 0.0

    @property
    def failed(self) -> bool:
        return self.status == OutcomeStatus.FAILED

    def to_dict(self) -> dict:
        return {
            "source": self.pair.source,
            "destination": self.pair.destination,
            "status": self.status.value,
            "reason": self.reason,
            "error": str(self.error) if self.error else None,
            "bytes": self.bytes_copied,
        }


@dataclass
class DeleteOutcome:
    """Outcome of deleting one destination."""

    path: str
    existed: bool = False
    error: Optional[BaseException] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        return {
            "path": self.path,
            "existed": self.existed,
            "error": str(self.error) if self.error else None,
        }


@dataclass
class SyncReport:
    """Everything that happened during one run."""

    diff: DiffResult
    created_dirs: list[str] = field(default_factory=list)
    failed_dirs: dict[str, OSError] = field(default_factory=dict)
    copies: list[CopyOutcome] = field(default_factory=list)
    deletions: list[DeleteOutcome] = field(default_factory=list)
    dry_run: bool = False
    manifest_saved: bool = False

    def _copies_with(self, status: OutcomeStatus) -> list[CopyOutcome]:
        return [o for o in self.copies if o.status == status]

    @property
    def copied(self) -> list[CopyOutcome]:
        return self._copies_with(OutcomeStatus.COPIED)

    @property
    def skipped(self) -> list[CopyOutcome]:
        return self._copies_with(OutcomeStatus.SKIPPED)

    @property
    def copy_failures(self) -> list[CopyOutcome]:
        return self._copies_with(OutcomeStatus.FAILED)

    @property
    def deleted(self) -> list[DeleteOutcome]:
        return [d for d in self.deletions if not d.failed]

    @property
    def delete_failures(self) -> list[DeleteOutcome]:
        return [d for d in self.deletions if d.failed]

    @property
    def has_failures(self) -> bool:
        return bool(self.copy_failures or self.delete_failures)

    @property
    def bytes_copied(self) -> int:
        return sum(o.bytes_copied for o in self.copied)

    def to_dict(self) -> dict:
        """Convert the report to a JSON-serializable dictionary."""
        return {
            "dry_run": self.dry_run,
            "manifest_saved": self.manifest_saved,
            "created_dirs": list(self.created_dirs),
            "failed_dirs": {d: str(e) for d, e in self.failed_dirs.items()},
            "copies": [o.to_dict() for o in self.copies],
            "deletions": [d.to_dict() for d in self.deletions],
            "overrides": [
                {
                    "destination": o.winner.destination,
                    "source": o.winner.source,
                    "overridden_source": o.overridden.source,
                }
                for o in self.diff.overrides
            ],
            "summary": {
                "copied": len(self.copied),
                "skipped": len(self.skipped),
                "deleted": len(self.deleted),
                "failed": len(self.copy_failures) + len(self.delete_failures),
                "bytes_copied": self.bytes_copied,
            },
        }
