"""Command line interface for manifestsync."""

import logging
import os
from typing import Any, Optional

import click

from . import __version__
from .config import SyncConfig
from .exceptions import ManifestSaveError, ManifestSyncError
from .output import OutputFormatter
from .sync import CompareMode, SyncEngine, SyncReport
from .utils import DEFAULT_RETRIES, DEFAULT_WORKERS

logger = logging.getLogger(__name__)

# Exit statuses
EXIT_OK = 0
EXIT_TASK_FAILURES = 1
EXIT_FATAL = 3
EXIT_SAVE_FAILED = 4
EXIT_INTERRUPTED = 130

LOG_ENV_VAR = "MANIFESTSYNC_LOG"


def configure_logging(verbose: bool) -> None:
    """Configure logging from the --verbose flag or MANIFESTSYNC_LOG."""
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    if verbose:
        level = logging.DEBUG
    else:
        name = os.environ.get(LOG_ENV_VAR, "").upper()
        level = logging.getLevelName(name) if name else logging.WARNING
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(level=level, format=log_format, datefmt="%H:%M:%S")
    logging.getLogger("manifestsync").setLevel(level)


@click.command(context_settings={"allow_interspersed_args": False})
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_WORKERS,
    show_default=True,
    envvar="MANIFESTSYNC_WORKERS",
    help="Number of parallel copy workers",
)
@click.option(
    "--retries",
    "-r",
    type=click.IntRange(min=0),
    default=DEFAULT_RETRIES,
    show_default=True,
    help="Times to retry a copy or deletion after a transient error",
)
@click.option(
    "--checksum",
    "-c",
    is_flag=True,
    help="Compare file contents instead of size and modification time",
)
@click.option(
    "--force", "-f", is_flag=True, help="Copy every file, even if it looks up to date"
)
@click.option(
    "--skip-verify",
    "-S",
    is_flag=True,
    help="Skip re-checking each destination after it was copied",
)
@click.option(
    "--dry-run", "-n", is_flag=True, help="Show what would happen without doing it"
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", "json_output", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose", "-v", is_flag=True, help="Enable verbose/debug logging output"
)
@click.version_option(version=__version__)
@click.argument("manifest", type=click.Path(dir_okay=False))
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def main(
    ctx: Any,
    workers: int,
    retries: int,
    checksum: bool,
    force: bool,
    skip_verify: bool,
    dry_run: bool,
    quiet: bool,
    json_output: bool,
    verbose: bool,
    manifest: str,
    command: tuple[str, ...],
) -> None:
    """Sync the files listed by COMMAND and remember them in MANIFEST.

    COMMAND is run with its ARGS and must print one "source<TAB>destination"
    line per file. Sources are copied to destinations when they changed, and
    destinations listed in MANIFEST by the previous run but no longer printed
    by COMMAND are deleted. MANIFEST is replaced at the end of the run.
    """
    configure_logging(verbose)
    out = OutputFormatter(json_output=json_output, quiet=quiet)

    try:
        config = SyncConfig(
            manifest_path=manifest,
            command=list(command),
            workers=workers,
            retries=retries,
            compare_mode=CompareMode.HASH if checksum else CompareMode.MTIME,
            force=force,
            verify=not skip_verify,
            dry_run=dry_run,
        )
        engine = SyncEngine(config, output=out)
        if dry_run:
            out.info("Dry run: No changes will be made")
        report = engine.run()
    except ManifestSaveError as e:
        _show_report(engine, out, e.report)
        out.error(str(e))
        out.error("The next run will not know about the changes made by this one.")
        ctx.exit(EXIT_SAVE_FAILED)
    except ManifestSyncError as e:
        out.error(str(e))
        out.error("Nothing was changed.")
        ctx.exit(EXIT_FATAL)
    except KeyboardInterrupt:
        out.warning("Interrupted")
        ctx.exit(EXIT_INTERRUPTED)

    _show_report(engine, out, report)
    ctx.exit(EXIT_TASK_FAILURES if report.has_failures else EXIT_OK)


def _show_report(
    engine: SyncEngine, out: OutputFormatter, report: Optional[SyncReport]
) -> None:
    if report is None:
        return
    if out.json_output:
        out.print_json(report.to_dict())
    else:
        engine.display_report(report)
