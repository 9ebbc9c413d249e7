"""Tests for the manifest diff."""

import os

import pytest

from manifestsync.exceptions import ManifestConflictError
from manifestsync.sync.diff import compute_diff, dedupe_destinations, find_overlaps
from manifestsync.sync.reader import Manifest, Pair


def manifest(*pairs: tuple[str, str]) -> Manifest:
    return Manifest.from_pairs(Pair(s, d) for s, d in pairs)


class TestComputeDiff:
    """Tests for compute_diff."""

    def test_first_run_copies_everything_and_deletes_nothing(self):
        """With no previous manifest every pair is a candidate."""
        current = manifest(("a", "out/a"), ("b", "out/b"))

        diff = compute_diff(Manifest(), current)

        assert diff.to_copy == list(current)
        assert diff.to_delete == []
        assert diff.to_create == ["out"]

    def test_removed_destinations_are_deleted(self):
        """Destinations missing from the current manifest are deleted."""
        previous = manifest(("a", "out/a"), ("b", "out/b"), ("c", "out/c"))
        current = manifest(("a", "out/a"))

        diff = compute_diff(previous, current)

        assert diff.to_delete == ["out/b", "out/c"]

    def test_to_delete_is_disjoint_from_current(self):
        """Nothing in the current manifest is ever scheduled for deletion."""
        previous = manifest(("a", "x"), ("b", "y"), ("c", "z"))
        current = manifest(("a", "y"), ("d", "w"))

        diff = compute_diff(previous, current)

        assert set(diff.to_delete) == {"x", "z"}
        assert not set(diff.to_delete) & current.destinations()

    def test_changed_source_is_not_deleted(self):
        """Keying is by destination: a new source for it is just a copy."""
        previous = manifest(("old-src", "out/a"))
        current = manifest(("new-src", "out/a"))

        diff = compute_diff(previous, current)

        assert diff.to_delete == []
        assert diff.to_copy == [Pair("new-src", "out/a")]

    def test_unchanged_manifest_still_lists_every_copy_candidate(self):
        """Filtering happens at copy time, not in the diff."""
        pairs = manifest(("a", "out/a"), ("b", "out/b"))

        diff = compute_diff(pairs, pairs)

        assert diff.to_copy == list(pairs)
        assert diff.to_delete == []

    def test_directories_are_distinct_and_ordered(self):
        """Each parent directory is listed once, parents first."""
        current = manifest(
            ("a", os.path.join("out", "x", "y", "a")),
            ("b", os.path.join("out", "x", "b")),
            ("c", os.path.join("out", "x", "y", "c")),
            ("d", "top-level-file"),
        )

        diff = compute_diff(Manifest(), current)

        assert diff.to_create == [
            os.path.join("out", "x"),
            os.path.join("out", "x", "y"),
        ]

    def test_duplicate_destination_last_wins(self):
        """The last pair for a destination is used and the others reported."""
        current = manifest(("a", "out/x"), ("b", "out/y"), ("c", "out/x"))

        diff = compute_diff(Manifest(), current)

        assert diff.to_copy == [Pair("c", "out/x"), Pair("b", "out/y")]
        assert len(diff.overrides) == 1
        assert diff.overrides[0].overridden == Pair("a", "out/x")
        assert diff.overrides[0].winner == Pair("c", "out/x")

    def test_deduplicated_manifest(self):
        """The manifest property holds one pair per destination."""
        current = manifest(("a", "out/x"), ("b", "out/x"))

        diff = compute_diff(Manifest(), current)

        assert list(diff.manifest) == [Pair("b", "out/x")]

    def test_overlapping_source_and_destination_is_rejected(self):
        """A file that is copied and overwritten in one run is an error."""
        current = manifest(("a", "b"), ("b", "c"))

        with pytest.raises(ManifestConflictError) as exc_info:
            compute_diff(Manifest(), current)

        assert exc_info.value.paths == ["b"]


class TestDedupeDestinations:
    """Tests for dedupe_destinations."""

    def test_identical_duplicates_collapse_silently(self):
        """Repeating the exact same pair is not an override."""
        pairs, overrides = dedupe_destinations(manifest(("a", "x"), ("a", "x")))

        assert pairs == [Pair("a", "x")]
        assert overrides == []

    def test_multiple_overrides_are_reported_in_order(self):
        """Every replaced pair is reported, deterministically."""
        pairs, overrides = dedupe_destinations(
            manifest(("a", "x"), ("b", "x"), ("c", "x"))
        )

        assert pairs == [Pair("c", "x")]
        assert [o.overridden.source for o in overrides] == ["a", "b"]
        assert [o.winner.source for o in overrides] == ["b", "c"]


class TestFindOverlaps:
    """Tests for find_overlaps."""

    def test_no_overlap(self):
        assert find_overlaps(manifest(("a", "b"), ("c", "d"))) == []

    def test_overlaps_are_sorted(self):
        pairs = manifest(("z", "a"), ("a", "m"), ("m", "q"))
        assert find_overlaps(pairs) == ["a", "m"]
