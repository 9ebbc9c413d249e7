"""Console output helpers built on rich."""

import json
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape


class OutputFormatter:
    """Formats user-facing messages.

    Messages go to stdout, errors and warnings to stderr. In quiet mode only
    errors are shown; in JSON mode human-readable messages are suppressed so
    that stdout carries a single JSON document.
    """

    def __init__(
        self,
        json_output: bool = False,
        quiet: bool = False,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.json_output = json_output
        self.quiet = quiet
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)

    @property
    def silent(self) -> bool:
        """True when informational messages should not be printed."""
        return self.quiet or self.json_output

    def print(self, message: str = "") -> None:
        if not self.silent:
            self.console.print(message, markup=False)

    def info(self, message: str) -> None:
        if not self.silent:
            self.console.print(message, markup=False)

    def success(self, message: str) -> None:
        if not self.silent:
            self.console.print(f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        if not self.quiet:
            self.err_console.print(f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        self.err_console.print(f"[red]Error:[/red] {escape(message)}")

    def print_json(self, data: Any) -> None:
        """Print data as a JSON document, regardless of quiet mode."""
        self.console.print_json(json.dumps(data))
