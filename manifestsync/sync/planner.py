"""Creation of destination directories before any copy starts."""

import logging
import os
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from ..utils import parent_directory
from .reader import Pair

logger = logging.getLogger(__name__)


def plan_directories(pairs: Iterable[Pair]) -> list[str]:
    """Compute the distinct parent directories of all destinations.

    Args:
        pairs: Pairs whose destinations need a parent directory

    Returns:
        Sorted list of directories, parents before their children
    """
    directories = {parent_directory(pair.destination) for pair in pairs}
    directories.discard("")
    return sorted(directories)


@dataclass
class DirectoryResult:
    """Outcome of creating the planned directories."""

    created: list[str] = field(default_factory=list)
    """Directories that did not exist and were created"""

    failed: dict[str, OSError] = field(default_factory=dict)
    """Directories that could not be created, with the error"""

    def error_for(self, destination: str) -> Optional[OSError]:
        """Return the error blocking a copy into ``destination``, if any."""
        return self.failed.get(parent_directory(destination))


class DirectoryPlanner:
    """Creates missing destination directories.

    Failures are scoped to the directory that could not be created: copies
    into that directory fail, copies elsewhere proceed.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def create(self, directories: Iterable[str]) -> DirectoryResult:
        """Create every directory that does not exist yet.

        Args:
            directories: Directories to ensure, parents first

        Returns:
            DirectoryResult listing created and failed directories
        """
        result = DirectoryResult()

        for directory in directories:
            if os.path.isdir(directory):
                continue

            failed_ancestor = self._failed_ancestor(directory, result.failed)
            if failed_ancestor is not None:
                result.failed[directory] = result.failed[failed_ancestor]
                continue

            logger.debug(f"Creating directory {directory}")
            if self.dry_run:
                result.created.append(directory)
                continue

            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                logger.debug(f"Failed to create directory {directory}: {e}")
                result.failed[directory] = e
            else:
                result.created.append(directory)

        if result.failed:
            logger.warning(f"{len(result.failed)} directory(ies) could not be created")
        return result

    @staticmethod
    def _failed_ancestor(
        directory: str, failed: dict[str, OSError]
    ) -> Optional[str]:
        parent = parent_directory(directory)
        while parent:
            if parent in failed:
                return parent
            parent = parent_directory(parent)
        return None
