"""Utility functions for manifestsync."""

import errno
import logging
import os
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# Constants
# =============================================================================

# Number of parallel copy workers
DEFAULT_WORKERS: int = 20

# Retry configuration for transient I/O errors
DEFAULT_RETRIES: int = 5
DEFAULT_RETRY_DELAY: float = 1.0  # seconds, doubled after each attempt

# Read size used when copying and hashing files (1 MB)
DEFAULT_BUFFER_SIZE: int = 1024 * 1024

# Errors that almost never go away by trying again
NON_RETRYABLE_ERRNOS = frozenset(
    {
        errno.ENOENT,
        errno.EACCES,
        errno.EPERM,
        errno.EISDIR,
        errno.ENOTDIR,
    }
)


# =============================================================================
# Path utilities
# =============================================================================


def normalize_path(path: str) -> str:
    """Normalize a path read from a manifest.

    Both ``/`` and ``\\`` are accepted as separators and converted to the
    native one. Redundant separators and ``.``/``..`` components are
    collapsed.

    Args:
        path: Path as written by the generator

    Returns:
        Normalized path using the host separator

    Examples:
        >>> normalize_path("foo//bar/./baz")  # doctest: +SKIP
        'foo/bar/baz'
    """
    native = path.replace("\\", "/").replace("/", os.sep)
    return os.path.normpath(native)


def parent_directory(path: str) -> str:
    """Return the parent directory of ``path`` or an empty string.

    An empty string means the path lives directly in the current working
    directory, which never needs to be created.
    """
    parent = os.path.dirname(path)
    if parent and os.path.dirname(parent) == parent:
        # Filesystem root
        return ""
    return parent


# =============================================================================
# Retry utilities
# =============================================================================


def is_retryable(error: OSError) -> bool:
    """Check whether an I/O error is worth retrying."""
    return error.errno not in NON_RETRYABLE_ERRNOS


def retry_io(
    func: Callable[..., T],
    *args,
    retries: int = DEFAULT_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY,
) -> T:
    """Call ``func`` and retry it on transient ``OSError``s.

    The delay doubles after every failed attempt. Errors such as
    "not found" or "permission denied" are raised immediately.

    Args:
        func: Callable performing the I/O
        *args: Positional arguments for ``func``
        retries: Number of retries after the first attempt
        delay: Initial delay between attempts in seconds

    Returns:
        Whatever ``func`` returns
    """
    attempt = 0
    while True:
        try:
            return func(*args)
        except OSError as e:
            if not is_retryable(e) or attempt >= retries:
                raise
            attempt += 1
            logger.debug(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                getattr(func, "__name__", "operation"),
                attempt,
                retries,
                delay,
                e,
            )
            time.sleep(delay)
            delay *= 2


# =============================================================================
# Size formatting utilities
# =============================================================================


def format_size(size_bytes: int) -> str:
    """Format file size in human-readable format.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human-readable size string (e.g., "1.5 MB")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.1f} GB"
