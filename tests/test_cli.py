"""Unit tests for the manifestsync command line."""

import json
import os
import sys
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from manifestsync.cli import (
    EXIT_FATAL,
    EXIT_OK,
    EXIT_SAVE_FAILED,
    EXIT_TASK_FAILURES,
    main,
)
from manifestsync.exceptions import ManifestSaveError
from manifestsync.sync.state import ManifestStore

CAT_SCRIPT = "import sys; sys.stdout.write(open(sys.argv[1]).read())"


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _setup(temp_dir: Path, names=("a.txt", "b.txt")) -> tuple[list[str], Path]:
    """Create sources and a listing; return the CLI args and the dest root."""
    src = temp_dir / "src"
    dst = temp_dir / "dst"
    src.mkdir()
    lines = []
    for name in names:
        (src / name).write_text(f"content of {name}")
        lines.append(f"{src / name}\t{dst / 'out' / name}\n")
    listing = temp_dir / "listing.txt"
    listing.write_text("".join(lines))
    manifest = temp_dir / "manifest.txt"
    args = [str(manifest), sys.executable, "-c", CAT_SCRIPT, str(listing)]
    return args, dst


class TestMainCommand:
    """Tests for the main command."""

    def test_help(self, runner):
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        assert "MANIFEST" in result.output
        assert "--dry-run" in result.output
        assert "--workers" in result.output

    def test_missing_command_is_a_usage_error(self, runner, temp_dir):
        result = runner.invoke(main, [str(temp_dir / "manifest.txt")])

        assert result.exit_code == 2

    def test_zero_workers_rejected(self, runner, temp_dir):
        args, _ = _setup(temp_dir)

        result = runner.invoke(main, ["--workers", "0"] + args)

        assert result.exit_code == 2

    def test_successful_sync(self, runner, temp_dir):
        args, dst = _setup(temp_dir)

        result = runner.invoke(main, args)

        assert result.exit_code == EXIT_OK
        assert "Sync complete!" in result.output
        assert (dst / "out" / "a.txt").read_text() == "content of a.txt"
        assert (temp_dir / "manifest.txt").exists()

    def test_second_run_has_nothing_to_do(self, runner, temp_dir):
        args, _ = _setup(temp_dir)
        runner.invoke(main, args)

        result = runner.invoke(main, args)

        assert result.exit_code == EXIT_OK
        assert "No changes needed" in result.output

    def test_generator_options_are_not_parsed(self, runner, temp_dir):
        """Options after the generator program belong to the generator."""
        args, dst = _setup(temp_dir)
        manifest, program, *rest = args
        script = "import sys; assert sys.argv[1] == '-n'; " + CAT_SCRIPT.replace(
            "sys.argv[1]", "sys.argv[2]"
        )

        result = runner.invoke(
            main, [manifest, program, "-c", script, "-n", rest[-1]]
        )

        assert result.exit_code == EXIT_OK
        assert (dst / "out" / "b.txt").exists()

    def test_dry_run_changes_nothing(self, runner, temp_dir):
        args, dst = _setup(temp_dir)

        result = runner.invoke(main, ["--dry-run"] + args)

        assert result.exit_code == EXIT_OK
        assert "Would copy" in result.output
        assert not dst.exists()
        assert not (temp_dir / "manifest.txt").exists()

    def test_missing_source_exits_with_failure(self, runner, temp_dir):
        args, dst = _setup(temp_dir)
        os.remove(temp_dir / "src" / "a.txt")

        result = runner.invoke(main, ["--retries", "0"] + args)

        assert result.exit_code == EXIT_TASK_FAILURES
        assert (dst / "out" / "b.txt").exists()
        # The manifest is still saved so the next run knows about b.txt
        assert (temp_dir / "manifest.txt").exists()

    def test_failing_generator_is_fatal(self, runner, temp_dir):
        manifest = temp_dir / "manifest.txt"

        result = runner.invoke(
            main, [str(manifest), sys.executable, "-c", "import sys; sys.exit(1)"]
        )

        assert result.exit_code == EXIT_FATAL
        assert not manifest.exists()

    def test_malformed_listing_is_fatal(self, runner, temp_dir):
        listing = temp_dir / "listing.txt"
        listing.write_text("only-one-field\n")
        manifest = temp_dir / "manifest.txt"

        result = runner.invoke(
            main, [str(manifest), sys.executable, "-c", CAT_SCRIPT, str(listing)]
        )

        assert result.exit_code == EXIT_FATAL
        assert not manifest.exists()

    def test_save_failure(self, runner, temp_dir):
        args, dst = _setup(temp_dir)

        with patch.object(
            ManifestStore,
            "save",
            side_effect=ManifestSaveError("Failed to save manifest: disk full"),
        ):
            result = runner.invoke(main, args)

        assert result.exit_code == EXIT_SAVE_FAILED
        assert (dst / "out" / "a.txt").exists()
        assert not (temp_dir / "manifest.txt").exists()


class TestJsonOutput:
    """Tests for --json output."""

    def test_json_report(self, runner, temp_dir):
        args, dst = _setup(temp_dir)

        result = runner.invoke(main, ["--json"] + args)

        assert result.exit_code == EXIT_OK
        data = json.loads(result.stdout)
        assert data["manifest_saved"] is True
        assert data["summary"]["copied"] == 2
        assert data["summary"]["failed"] == 0
        assert data["created_dirs"] == [str(dst / "out")]
        assert {c["status"] for c in data["copies"]} == {"copied"}

    def test_json_report_of_deletions(self, runner, temp_dir):
        args, dst = _setup(temp_dir)
        runner.invoke(main, args)
        (temp_dir / "listing.txt").write_text("")

        result = runner.invoke(main, ["--json"] + args)

        assert result.exit_code == EXIT_OK
        data = json.loads(result.stdout)
        assert data["summary"]["deleted"] == 2
        assert not (dst / "out" / "a.txt").exists()

    def test_json_dry_run(self, runner, temp_dir):
        args, _ = _setup(temp_dir)

        result = runner.invoke(main, ["--json", "--dry-run"] + args)

        assert result.exit_code == EXIT_OK
        data = json.loads(result.stdout)
        assert data["dry_run"] is True
        assert data["manifest_saved"] is False
