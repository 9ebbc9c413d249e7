"""Persistence of the manifest between runs.

The manifest written at the end of a run becomes the *previous* manifest of
the next one, which is how deletions are detected: a destination that was in
the previous manifest but is missing from the generator's current output is
removed from disk.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..exceptions import ManifestReadError, ManifestSaveError
from .reader import Manifest, parse_manifest

logger = logging.getLogger(__name__)


class ManifestStore:
    """Loads and atomically replaces the persisted manifest file.

    The store is the only component that touches the manifest file. It is
    read once at the start of a run and replaced once at the end.
    """

    def __init__(self, path: Union[str, Path]):
        """Initialize the store.

        Args:
            path: Location of the manifest file
        """
        self.path = Path(path)

    def load(self) -> Manifest:
        """Load the previous manifest.

        Returns:
            The stored manifest, or an empty one if the file does not exist

        Raises:
            ManifestReadError: If the file exists but cannot be read
            ManifestParseError: If the file contains a malformed record
        """
        try:
            with open(self.path, "rb") as f:
                manifest = parse_manifest(f, origin=str(self.path))
        except FileNotFoundError:
            logger.debug(f"No manifest found at {self.path}, starting empty")
            return Manifest()
        except OSError as e:
            raise ManifestReadError(
                f"Failed to read manifest {self.path}: {e}"
            ) from e

        logger.debug(f"Loaded manifest with {len(manifest)} pair(s) from {self.path}")
        return manifest

    def save(self, manifest: Manifest) -> None:
        """Atomically replace the stored manifest.

        The content is written to a temporary file in the same directory,
        flushed to disk and then renamed over the old file, so readers see
        either the old or the new manifest, never a mix.

        Args:
            manifest: Manifest to persist

        Raises:
            ManifestSaveError: If the manifest cannot be written
        """
        directory = self.path.parent
        tmp_path = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=directory, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(os.fsencode(manifest.to_text()))
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, self.path)
            tmp_path = None
        except OSError as e:
            raise ManifestSaveError(
                f"Failed to save manifest {self.path}: {e}"
            ) from e
        finally:
            if tmp_path is not None:
                try:
                    os.unlink(tmp_path)
                except OSError:
                    logger.debug(f"Could not remove temporary file {tmp_path}")

        logger.debug(f"Saved manifest with {len(manifest)} pair(s) to {self.path}")
