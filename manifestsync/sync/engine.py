"""Core sync engine for executing sync operations."""

import logging
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Iterator,
    Optional,
    Sequence,
    Union,
)

from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn

from ..exceptions import ManifestSaveError, VerificationError
from ..output import OutputFormatter
from ..utils import format_size
from .comparator import ChangeDetector, CompareMode
from .diff import compute_diff
from .generator import run_generator
from .operations import SyncOperations
from .planner import DirectoryPlanner, DirectoryResult
from .reader import Manifest, Pair
from .report import CopyOutcome, DeleteOutcome, OutcomeStatus, SyncReport
from .state import ManifestStore

if TYPE_CHECKING:
    from ..config import SyncConfig

logger = logging.getLogger(__name__)

Outcome = Union[CopyOutcome, DeleteOutcome]


class SyncEngine:
    """Core sync engine that brings destinations in line with a manifest.

    A run goes through these steps:

    1. Load the previous manifest and run the generator. Any failure here
       aborts the run before the filesystem is touched.
    2. Diff both manifests by destination.
    3. Delete removed destinations, then create missing destination
       directories, then run copy tasks (filtered by change detection).
       Each batch runs on a bounded worker pool and finishes before the
       next starts. Task failures are collected, never raised.
    4. Save the current manifest, even if some tasks failed, so that the
       next run only has to retry the failures.
    """

    def __init__(
        self,
        config: "SyncConfig",
        output: Optional[OutputFormatter] = None,
        store: Optional[ManifestStore] = None,
    ):
        """Initialize sync engine.

        Args:
            config: Run configuration
            output: Output formatter for displaying progress/status
            store: Manifest store (defaults to one at ``config.manifest_path``)
        """
        self.config = config
        self.output = output or OutputFormatter(quiet=True)
        self.store = store or ManifestStore(config.manifest_path)
        self.operations = SyncOperations(config.retries, config.retry_delay)
        self.detector = ChangeDetector(
            mode=config.compare_mode,
            force=config.force,
            retries=config.retries,
            retry_delay=config.retry_delay,
        )
        self.verifier = ChangeDetector(
            mode=CompareMode.MTIME,
            retries=config.retries,
            retry_delay=config.retry_delay,
        )

    def run(self) -> SyncReport:
        """Run the generator and synchronize against its output.

        Returns:
            SyncReport describing the run

        Raises:
            GeneratorError: If the generator fails (nothing is modified)
            ManifestParseError: If either manifest is malformed
            ManifestReadError: If the previous manifest cannot be read
            ManifestConflictError: If a path is both source and destination
            ManifestSaveError: If the new manifest cannot be saved; the
                report is attached to the exception
        """
        previous = self.store.load()
        current = run_generator(self.config.command)

        report = self.sync(previous, current)

        if self.config.dry_run:
            return report

        try:
            self.store.save(report.diff.manifest)
        except ManifestSaveError as e:
            e.report = report
            raise
        report.manifest_saved = True
        return report

    def sync(self, previous: Manifest, current: Manifest) -> SyncReport:
        """Synchronize the filesystem with ``current``.

        Deletions run first so that a removed file can make way for a new
        directory. Removed destinations that ``current`` still reads as
        sources are deleted last, after every copy has finished.

        Args:
            previous: Manifest of the last successful run
            current: Manifest to converge to

        Returns:
            SyncReport with per-task outcomes
        """
        start_time = time.time()

        diff = compute_diff(previous, current)
        report = SyncReport(diff=diff, dry_run=self.config.dry_run)

        sources = diff.manifest.sources()
        delete_first = [path for path in diff.to_delete if path not in sources]
        delete_last = [path for path in diff.to_delete if path in sources]

        logger.info(
            f"Processing {len(diff.to_copy)} copy and {len(diff.to_delete)} "
            f"delete task(s) with {self.config.workers} worker(s)"
        )
        with self._progress(len(diff.to_copy) + len(diff.to_delete)) as advance:
            report.deletions = self._execute_tasks(
                self._execute_delete, delete_first, advance
            )

            logger.info(f"Creating {len(diff.to_create)} destination directories")
            directories = DirectoryPlanner(dry_run=self.config.dry_run).create(
                diff.to_create
            )
            report.created_dirs = directories.created
            report.failed_dirs = directories.failed

            report.copies = self._execute_tasks(
                lambda pair: self._execute_copy(pair, directories),
                diff.to_copy,
                advance,
            )

            if delete_last:
                logger.debug(
                    f"Deleting {len(delete_last)} destination(s) still used as "
                    f"sources after copying"
                )
            report.deletions += self._execute_tasks(
                self._execute_delete, delete_last, advance
            )

        elapsed = time.time() - start_time
        logger.info(
            f"Sync finished in {elapsed:.2f}s: {len(report.copied)} copied, "
            f"{len(report.skipped)} up to date, {len(report.deleted)} deleted, "
            f"{len(report.copy_failures) + len(report.delete_failures)} failed"
        )
        return report

    @contextmanager
    def _progress(self, total: int) -> Iterator[Callable[[], None]]:
        """Show a progress bar over ``total`` tasks; yields an advance callback."""
        if self.output.silent or total == 0:
            yield lambda: None
            return

        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.output.console,
            transient=True,
        )
        with progress:
            task = progress.add_task("Syncing files...", total=total)
            yield lambda: progress.update(task, advance=1)

    def _execute_tasks(
        self,
        execute: Callable[[Any], Outcome],
        items: Sequence[Union[Pair, str]],
        advance: Callable[[], None],
    ) -> list[Outcome]:
        """Execute one batch of copy or delete tasks.

        The batch runs on a ThreadPoolExecutor when more than one worker is
        configured, and inline otherwise. The call returns once every task of
        the batch has finished.

        Args:
            execute: ``_execute_copy`` or ``_execute_delete`` for one item
            items: Pairs to copy or paths to delete
            advance: Called after each finished task

        Returns:
            Outcomes, in completion order
        """
        if self.config.workers == 1 or len(items) <= 1:
            outcomes = []
            for item in items:
                outcomes.append(execute(item))
                advance()
            return outcomes

        return self._execute_tasks_parallel(execute, items, advance)

    def _execute_tasks_parallel(
        self,
        execute: Callable[[Any], Outcome],
        items: Sequence[Union[Pair, str]],
        advance: Callable[[], None],
    ) -> list[Outcome]:
        """Execute tasks in parallel using ThreadPoolExecutor.

        Every task is submitted exactly once. Outcomes are collected in
        completion order; a task failure never cancels its siblings.
        """
        outcomes: list[Outcome] = []

        with ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            futures: dict[Future, Union[Pair, str]] = {
                executor.submit(execute, item): item for item in items
            }

            for future in as_completed(futures):
                item = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error in parallel execution: {e}")
                    if isinstance(item, Pair):
                        outcome = CopyOutcome(item, OutcomeStatus.FAILED, error=e)
                    else:
                        outcome = DeleteOutcome(item, error=e)
                outcomes.append(outcome)
                advance()

        return outcomes

    def _execute_copy(self, pair: Pair, directories: DirectoryResult) -> CopyOutcome:
        """Run change detection and, if needed, the copy for one pair.

        Never raises: failures are returned as FAILED outcomes.
        """
        start = time.time()

        blocked = directories.error_for(pair.destination)
        if blocked is not None:
            return CopyOutcome(
                pair,
                OutcomeStatus.FAILED,
                reason="Destination directory could not be created",
                error=blocked,
            )

        try:
            decision = self.detector.check(pair)
            if not decision.needs_copy:
                return CopyOutcome(pair, OutcomeStatus.SKIPPED, reason=decision.reason)

            if self.config.dry_run:
                return CopyOutcome(pair, OutcomeStatus.COPIED, reason=decision.reason)

            copied = self.operations.copy_file(pair)

            if self.config.verify:
                after = self.verifier.check(pair)
                if after.needs_copy:
                    raise VerificationError(
                        f"{pair.destination} is still out of date after copying: "
                        f"{after.reason}"
                    )
        except Exception as e:
            elapsed = time.time() - start
            logger.debug(f"Failed {pair} in {elapsed:.2f}s: {e}")
            return CopyOutcome(
                pair, OutcomeStatus.FAILED, reason=str(e), error=e, elapsed=elapsed
            )

        elapsed = time.time() - start
        logger.debug(f"Completed {pair} ({format_size(copied)}) in {elapsed:.2f}s")
        return CopyOutcome(
            pair,
            OutcomeStatus.COPIED,
            reason=decision.reason,
            bytes_copied=copied,
            elapsed=elapsed,
        )

    def _execute_delete(self, path: str) -> DeleteOutcome:
        """Delete one destination that left the manifest. Never raises."""
        if self.config.dry_run:
            return DeleteOutcome(path, existed=os.path.lexists(path))

        try:
            existed = self.operations.delete_file(path)
        except OSError as e:
            logger.debug(f"Failed to delete {path}: {e}")
            return DeleteOutcome(path, error=e)

        if not existed:
            logger.debug(f"{path} was already gone")
        return DeleteOutcome(path, existed=existed)

    def display_report(self, report: SyncReport) -> None:
        """Display the run summary.

        Args:
            report: Report returned by ``sync`` or ``run``
        """
        out = self.output
        if report.dry_run:
            created, copied, deleted = "Would create", "Would copy", "Would delete"
        else:
            created, copied, deleted = "Created", "Copied", "Deleted"

        for override in report.diff.overrides:
            out.warning(
                f"Duplicate destination {override.winner.destination}: using "
                f"{override.winner.source}, ignoring {override.overridden.source}"
            )

        removed = [d for d in report.deleted if d.existed]
        for directory in report.created_dirs:
            out.info(f"{created} directory {directory}")
        for outcome in report.copied:
            out.info(f"{copied} {outcome.pair}")
        for deletion in removed:
            out.info(f"{deleted} {deletion.path}")

        for directory, error in sorted(report.failed_dirs.items()):
            out.error(f"Failed to create directory {directory}: {error}")
        for outcome in report.copy_failures:
            out.error(f"Failed to copy {outcome.pair}: {outcome.error}")
        for failure in report.delete_failures:
            out.error(f"Failed to delete {failure.path}: {failure.error}")

        out.print("")
        if report.has_failures:
            failed = len(report.copy_failures) + len(report.delete_failures)
            out.warning(f"Sync finished with {failed} failure(s)")
        elif report.dry_run:
            out.success("Dry run complete!")
        else:
            out.success("Sync complete!")

        if report.copied or removed:
            size = format_size(report.bytes_copied)
            out.info(f"  Copied: {len(report.copied)} ({size})")
            out.info(f"  Up to date: {len(report.skipped)}")
            out.info(f"  Deleted: {len(removed)}")
        elif not report.has_failures:
            out.info("No changes needed - everything is in sync!")
