"""Console output helpers for the CLI and sync engine."""

import json
from typing import Any

from rich.console import Console
from rich.table import Table


class OutputFormatter:
    """Formats user-facing output, with JSON and quiet modes."""

    def __init__(self, json_output: bool = False, quiet: bool = False):
        """Initialize output formatter.

        Args:
            json_output: Emit machine-readable JSON instead of text
            quiet: Suppress informational messages
        """
        self.json_output = json_output
        self.quiet = quiet
        self.console = Console(highlight=False)
        self.err_console = Console(stderr=True, highlight=False)

    def info(self, message: str) -> None:
        if self.quiet or self.json_output:
            return
        self.console.print(message, markup=False)

    def warning(self, message: str) -> None:
        """Print a warning to stderr (shown even in quiet mode)."""
        self.err_console.print(message, style="yellow", markup=False)

    def error(self, message: str) -> None:
        """Print an error to stderr (shown even in quiet mode)."""
        self.err_console.print(f"Error: {message}", style="bold red", markup=False)

    def output_json(self, data: Any) -> None:
        """Print data as JSON regardless of quiet mode."""
        self.console.print_json(json.dumps(data, default=str))

    def print_summary(self, title: str, rows: list[tuple[str, Any]]) -> None:
        """Print a two-column key/value summary table.

        Args:
            title: Table title
            rows: (label, value) pairs
        """
        if self.quiet or self.json_output:
            return
        table = Table(title=title, show_header=False)
        table.add_column("Key", style="bold")
        table.add_column("Value")
        for label, value in rows:
            table.add_row(label, str(value))
        self.console.print(table)
