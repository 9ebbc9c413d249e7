"""Invocation of the external manifest generator."""

import logging
import subprocess
import time
from collections.abc import Sequence
from typing import IO, cast

from ..exceptions import GeneratorError, ManifestParseError
from .reader import GENERATOR_ORIGIN, Manifest, iter_pairs

logger = logging.getLogger(__name__)


def run_generator(command: Sequence[str]) -> Manifest:
    """Run the generator and parse its standard output.

    The whole output is parsed before the exit status is checked, and nothing
    is returned unless the process exits with status zero, so partial output
    from a failing generator is never acted upon. The generator's stderr is
    passed through to the caller's stderr.

    Args:
        command: Program and arguments

    Returns:
        The current manifest

    Raises:
        GeneratorError: If the program cannot be started or exits non-zero
        ManifestParseError: If the output contains a malformed record
    """
    command = list(command)
    if not command:
        raise GeneratorError("No generator command given")

    logger.info("Running generator %s", command)
    start = time.time()

    try:
        process = subprocess.Popen(command, stdout=subprocess.PIPE)
    except OSError as e:
        raise GeneratorError(f"Failed to start generator {command[0]!r}: {e}") from e

    with process:
        stdout = cast(IO[bytes], process.stdout)
        try:
            pairs = list(iter_pairs(stdout, GENERATOR_ORIGIN))
        except ManifestParseError:
            process.kill()
            raise
        except OSError as e:
            process.kill()
            raise GeneratorError(f"Failed to read generator output: {e}") from e
        returncode = process.wait()

    if returncode != 0:
        raise GeneratorError(
            f"Generator {command[0]!r} exited with status {returncode}",
            returncode=returncode,
        )

    elapsed = time.time() - start
    logger.debug(f"Generator produced {len(pairs)} pair(s) in {elapsed:.2f}s")
    return Manifest.from_pairs(pairs)
