"""Three-way diff between the previous and the current manifest."""

import logging
from dataclasses import dataclass, field

from ..exceptions import ManifestConflictError
from .planner import plan_directories
from .reader import Manifest, Pair

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Override:
    """A pair that was replaced by a later pair for the same destination."""

    overridden: Pair
    """Earlier pair that is ignored"""

    winner: Pair
    """Later pair that is used instead"""


@dataclass
class DiffResult:
    """What has to happen to bring the destinations in line with a manifest."""

    to_create: list[str] = field(default_factory=list)
    """Parent directories of current destinations, parents first"""

    to_copy: list[Pair] = field(default_factory=list)
    """Every current pair, one per destination"""

    to_delete: list[str] = field(default_factory=list)
    """Previous destinations missing from the current manifest, sorted"""

    overrides: list[Override] = field(default_factory=list)
    """Duplicate destinations resolved by the last-wins rule"""

    @property
    def manifest(self) -> Manifest:
        """The deduplicated current manifest."""
        return Manifest.from_pairs(self.to_copy)


def dedupe_destinations(manifest: Manifest) -> tuple[list[Pair], list[Override]]:
    """Resolve duplicate destinations: the last pair wins.

    A destination keeps the position of its first occurrence and the source
    of its last. Identical repeated pairs collapse without being reported.

    Args:
        manifest: Manifest that may contain duplicate destinations

    Returns:
        Tuple of (unique pairs in input order, overrides)
    """
    by_destination: dict[str, Pair] = {}
    overrides: list[Override] = []

    for pair in manifest:
        existing = by_destination.get(pair.destination)
        if existing is not None and existing != pair:
            overrides.append(Override(overridden=existing, winner=pair))
        by_destination[pair.destination] = pair

    return list(by_destination.values()), overrides


def find_overlaps(manifest: Manifest) -> list[str]:
    """Return paths used as a source by one pair and a destination by another.

    Copies run in any order, so such a manifest has no well-defined result.
    """
    return sorted(manifest.sources() & manifest.destinations())


def compute_diff(previous: Manifest, current: Manifest) -> DiffResult:
    """Compute the diff between two manifests keyed by destination.

    This is a pure function: the filesystem is not consulted. Change detection
    happens later, per copy task.

    Args:
        previous: Manifest persisted by the last run
        current: Manifest produced by the generator now

    Returns:
        DiffResult with directories, copy candidates and deletions

    Raises:
        ManifestConflictError: If a path is both a source and a destination
    """
    to_copy, overrides = dedupe_destinations(current)

    overlaps = find_overlaps(Manifest.from_pairs(to_copy))
    if overlaps:
        raise ManifestConflictError(overlaps)

    for override in overrides:
        logger.warning(
            "Duplicate destination %s: %s overrides %s",
            override.winner.destination,
            override.winner.source,
            override.overridden.source,
        )

    current_destinations = {pair.destination for pair in to_copy}
    to_delete = sorted(previous.destinations() - current_destinations)

    result = DiffResult(
        to_create=plan_directories(to_copy),
        to_copy=to_copy,
        to_delete=to_delete,
        overrides=overrides,
    )
    logger.debug(
        f"Diff: {len(result.to_create)} directories, {len(result.to_copy)} copy "
        f"candidates, {len(result.to_delete)} deletions"
    )
    return result
