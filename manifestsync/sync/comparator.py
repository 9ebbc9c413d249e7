"""Change detection for copy tasks."""

import hashlib
import logging
import os
import stat
from dataclasses import dataclass
from enum import Enum

from ..exceptions import SourceError
from ..utils import DEFAULT_BUFFER_SIZE, DEFAULT_RETRIES, DEFAULT_RETRY_DELAY, retry_io
from .reader import Pair

logger = logging.getLogger(__name__)


class CompareMode(str, Enum):
    """How to decide whether a destination is up to date."""

    MTIME = "mtime"
    """Compare size, modification time and read-only state (cheap)"""

    HASH = "hash"
    """Compare size, then SHA-256 of both files (reads both files fully)"""


class CopyAction(str, Enum):
    """Actions that can be taken for a pair."""

    COPY = "copy"
    """Destination is missing or out of date"""

    SKIP = "skip"
    """Destination is up to date"""


@dataclass
class CopyDecision:
    """Represents a decision about a single pair."""

    action: CopyAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    pair: Pair
    """Pair the decision is about"""

    @property
    def needs_copy(self) -> bool:
        return self.action == CopyAction.COPY


def file_digest(path: str, buffer_size: int = DEFAULT_BUFFER_SIZE) -> str:
    """Return the SHA-256 hex digest of a file's content."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(buffer_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


class ChangeDetector:
    """Decides whether a pair's destination needs to be (re)copied.

    In ``MTIME`` mode a destination is up to date when it is a regular file
    with the same size, modification time and read-only state as the source.
    Copies preserve the modification time, so a synced pair compares equal
    on the next run. ``HASH`` mode replaces the time check with a content
    comparison; it is immune to timestamp changes but reads both files in
    full for every pair whose sizes match.
    """

    def __init__(
        self,
        mode: CompareMode = CompareMode.MTIME,
        force: bool = False,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        """Initialize the change detector.

        Args:
            mode: Comparison mode
            force: If True, every pair with a readable source needs a copy
            retries: Retries for transient stat errors
            retry_delay: Initial delay between retries in seconds
        """
        self.mode = mode
        self.force = force
        self.retries = retries
        self.retry_delay = retry_delay

    def _stat(self, path: str) -> os.stat_result:
        return retry_io(os.stat, path, retries=self.retries, delay=self.retry_delay)

    def check(self, pair: Pair) -> CopyDecision:
        """Compare a pair's source and destination.

        Args:
            pair: Pair to check

        Returns:
            CopyDecision for this pair

        Raises:
            OSError: If the source is missing or unreadable
            SourceError: If the source is not a regular file
        """
        src = self._stat(pair.source)
        if not stat.S_ISREG(src.st_mode):
            raise SourceError(f"Source is not a regular file: {pair.source}")

        if self.force:
            return self._copy(pair, "Forced copy")

        try:
            dst = self._stat(pair.destination)
        except (FileNotFoundError, NotADirectoryError):
            return self._copy(pair, "Destination does not exist")

        if not stat.S_ISREG(dst.st_mode):
            return self._copy(pair, "Destination is not a regular file")

        if src.st_size != dst.st_size:
            return self._copy(
                pair, f"Size differs ({src.st_size} vs {dst.st_size})"
            )

        if self.mode == CompareMode.HASH:
            return self._compare_content(pair)

        if src.st_mtime_ns != dst.st_mtime_ns:
            return self._copy(pair, "Modification time differs")

        if _is_readonly(src) != _is_readonly(dst):
            return self._copy(pair, "Read-only state differs")

        return CopyDecision(CopyAction.SKIP, "Up to date", pair)

    def _compare_content(self, pair: Pair) -> CopyDecision:
        if file_digest(pair.source) != file_digest(pair.destination):
            return self._copy(pair, "Content differs")
        return CopyDecision(CopyAction.SKIP, "Content identical", pair)

    @staticmethod
    def _copy(pair: Pair, reason: str) -> CopyDecision:
        logger.debug(f"{pair}: {reason}")
        return CopyDecision(CopyAction.COPY, reason, pair)


def _is_readonly(st: os.stat_result) -> bool:
    return not st.st_mode & stat.S_IWUSR
