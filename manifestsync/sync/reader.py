"""Parsing of tab-separated source/destination streams.

The generator's stdout and the persisted manifest file share one format:
one ``source<TAB>destination`` record per line. Blank lines and lines
starting with ``#`` are ignored.
"""

import logging
import os
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import BinaryIO, Union

from ..exceptions import ManifestParseError
from ..utils import normalize_path

logger = logging.getLogger(__name__)

# Origin label used in parse errors for generator output
GENERATOR_ORIGIN = "generator"


@dataclass(frozen=True)
class Pair:
    """A single source-to-destination mapping."""

    source: str
    """Path of the file to copy from (native separators)"""

    destination: str
    """Path of the file to copy to (native separators)"""

    def __str__(self) -> str:
        return f'"{self.source}" -> "{self.destination}"'

    def to_line(self) -> str:
        """Encode this pair as a manifest record without the newline."""
        return f"{self.source}\t{self.destination}"


@dataclass(frozen=True)
class Manifest:
    """An immutable, ordered snapshot of pairs from one run."""

    pairs: tuple[Pair, ...] = ()

    @classmethod
    def from_pairs(cls, pairs: Iterable[Pair]) -> "Manifest":
        return cls(tuple(pairs))

    def __iter__(self) -> Iterator[Pair]:
        return iter(self.pairs)

    def __len__(self) -> int:
        return len(self.pairs)

    def destinations(self) -> set[str]:
        """Return the set of destination paths."""
        return {pair.destination for pair in self.pairs}

    def sources(self) -> set[str]:
        """Return the set of source paths."""
        return {pair.source for pair in self.pairs}

    def to_text(self) -> str:
        """Encode the manifest in its on-disk format."""
        return "".join(f"{pair.to_line()}\n" for pair in self.pairs)


def parse_line(line: str, origin: str, line_number: int) -> Union[Pair, None]:
    """Parse a single record.

    Args:
        line: Decoded line without its trailing newline
        origin: Stream origin for error messages
        line_number: 1-based line number for error messages

    Returns:
        The parsed Pair, or None for blank and comment lines

    Raises:
        ManifestParseError: If the line does not hold exactly two fields
    """
    line = line.rstrip("\r\n")
    if not line.strip() or line.lstrip().startswith("#"):
        return None

    fields = line.split("\t")
    if len(fields) != 2:
        raise ManifestParseError(
            origin,
            line_number,
            f"expected 'source<TAB>destination', found {len(fields)} field(s)",
        )

    source, destination = (f.strip() for f in fields)
    if not source:
        raise ManifestParseError(origin, line_number, "missing source path")
    if not destination:
        raise ManifestParseError(origin, line_number, "missing destination path")

    return Pair(normalize_path(source), normalize_path(destination))


def iter_pairs(
    lines: Iterable[Union[bytes, str]], origin: str = GENERATOR_ORIGIN
) -> Iterator[Pair]:
    """Lazily parse pairs from an iterable of lines.

    Byte lines are decoded with the filesystem encoding so that any path the
    operating system accepts survives a round trip through the manifest.

    Args:
        lines: Lines from a binary or text stream
        origin: Stream origin used in error messages

    Yields:
        Pair objects in stream order

    Raises:
        ManifestParseError: On the first malformed record
    """
    for line_number, raw in enumerate(lines, start=1):
        line = os.fsdecode(raw) if isinstance(raw, bytes) else raw
        pair = parse_line(line, origin, line_number)
        if pair is not None:
            yield pair


def parse_manifest(
    stream: Union[BinaryIO, Iterable[bytes]], origin: str = GENERATOR_ORIGIN
) -> Manifest:
    """Read a whole stream into a Manifest."""
    manifest = Manifest.from_pairs(iter_pairs(stream, origin))
    logger.debug(f"Parsed {len(manifest)} pair(s) from {origin}")
    return manifest
