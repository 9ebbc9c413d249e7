"""File operations performed by sync workers."""

import logging
import os
import shutil
import tempfile

from ..utils import DEFAULT_BUFFER_SIZE, DEFAULT_RETRIES, DEFAULT_RETRY_DELAY, retry_io
from .reader import Pair

logger = logging.getLogger(__name__)

# Suffix of temporary files written next to a destination during a copy
TEMP_SUFFIX = ".msync-tmp"


def atomic_copy(source: str, destination: str) -> int:
    """Copy a file so that the destination is replaced in one step.

    The data is written to a temporary file in the destination's directory,
    the source's permission bits and timestamps are applied to it, and it is
    then renamed over the destination. If anything fails the temporary file
    is removed and the destination is left untouched.

    Args:
        source: File to copy
        destination: Final path; its directory must exist

    Returns:
        Number of bytes copied
    """
    directory = os.path.dirname(destination) or "."
    name = os.path.basename(destination)
    fd, tmp_path = tempfile.mkstemp(
        dir=directory, prefix=f".{name}.", suffix=TEMP_SUFFIX
    )
    try:
        with os.fdopen(fd, "wb") as dst, open(source, "rb") as src:
            shutil.copyfileobj(src, dst, DEFAULT_BUFFER_SIZE)
            dst.flush()
            os.fsync(dst.fileno())
            copied = dst.tell()
        shutil.copystat(source, tmp_path)
        os.replace(tmp_path, destination)
    except BaseException:
        try:
            os.unlink(tmp_path)
        except FileNotFoundError:
            pass
        raise
    return copied


def remove_file(path: str) -> bool:
    """Remove a file, tolerating its absence.

    Returns:
        True if a file was removed, False if it did not exist
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    return True


class SyncOperations:
    """Copy and delete operations with retries for transient errors."""

    def __init__(
        self,
        retries: int = DEFAULT_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
    ):
        """Initialize sync operations.

        Args:
            retries: Number of retries after a transient failure
            retry_delay: Initial delay between retries in seconds
        """
        self.retries = retries
        self.retry_delay = retry_delay

    def copy_file(self, pair: Pair) -> int:
        """Copy a pair's source to its destination.

        Args:
            pair: Pair to copy

        Returns:
            Number of bytes copied
        """
        logger.debug(f"Copying {pair}")
        return retry_io(
            atomic_copy,
            pair.source,
            pair.destination,
            retries=self.retries,
            delay=self.retry_delay,
        )

    def delete_file(self, path: str) -> bool:
        """Delete a destination file.

        Args:
            path: Destination to delete

        Returns:
            True if the file was removed, False if it was already gone
        """
        logger.debug(f"Deleting {path}")
        return retry_io(
            remove_file, path, retries=self.retries, delay=self.retry_delay
        )
