"""Console output for pipeline runs with Rich.

The ConsoleManager renders execution traces either as a Rich table or, for
machine-readable logs (CI/CD), as a single JSON line.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from ..models.trace import TraceEntry, trace_to_dicts
from ..utils.serialization import summarize_error


class ThreadSafeConsole:
    """Thread-safe wrapper around Rich Console."""

    def __init__(self, console: Console):
        self._console = console
        self._lock = threading.RLock()

    def print(self, *args, **kwargs):
        """Thread-safe print method."""
        with self._lock:
            self._console.print(*args, **kwargs)


def trace_rows(trace: Iterable[TraceEntry], depth: int = 0) -> List[Tuple[str, int, bool, str]]:
    """Flatten a trace into (stage, ms, ok, details) rows.

    Children follow their parent, indented two spaces per level. Details hold
    the notes, or the error summary for failed entries.
    """
    rows: List[Tuple[str, int, bool, str]] = []
    for entry in trace:
        details = entry.notes or ""
        if not entry.ok and entry.error is not None:
            details = summarize_error(entry.error) if not details else f"{details} ({summarize_error(entry.error)})"
        rows.append((f"{'  ' * depth}{entry.name}", entry.duration_ms, entry.ok, details))
        if entry.children:
            rows.extend(trace_rows(entry.children, depth + 1))
    return rows


class ConsoleManager:
    """Manages console output for workflow runs."""

    def __init__(self, verbose: bool = False, json_output: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.json_output = json_output
        if json_output:
            self.console = None
        else:
            self.console = ThreadSafeConsole(console or Console(stderr=True))

    def setup_logging(self, logger: logging.Logger) -> None:
        """Attach a Rich handler (or a plain one in JSON mode) to logger.

        Sets the logger level from `verbose`. Calling it twice does not add a
        second handler.
        """

        def _has_handler_of_type(h_type):
            return any(isinstance(h, h_type) for h in logger.handlers)

        if self.json_output:
            if not _has_handler_of_type(logging.StreamHandler):
                handler = logging.StreamHandler(sys.stderr)
                handler.setFormatter(logging.Formatter("%(message)s"))
                logger.addHandler(handler)
        else:
            if not _has_handler_of_type(RichHandler):
                handler = RichHandler(
                    console=self.console._console,
                    show_time=True,
                    show_path=self.verbose,
                    rich_tracebacks=True,
                )
                logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def build_trace_table(self, trace: Iterable[TraceEntry], title: str = "Pipeline Trace") -> Table:
        table = Table(title=title)
        table.add_column("Stage", style="cyan")
        table.add_column("ms", justify="right", style="green")
        table.add_column("OK", style="bold")
        table.add_column("Details")

        for name, duration_ms, ok, details in trace_rows(trace):
            status = "[green]yes[/green]" if ok else "[red]no[/red]"
            table.add_row(escape(name), str(duration_ms), status, escape(details))
        return table

    def print_trace(self, trace: List[TraceEntry], title: str = "Pipeline Trace") -> None:
        """Print a trace as a table, or as one JSON line in JSON mode."""
        if self.json_output:
            print(
                json.dumps(
                    {
                        "timestamp": datetime.now().isoformat(),
                        "type": "trace",
                        "title": title,
                        "trace": trace_to_dicts(trace),
                    }
                ),
                file=sys.stderr,
            )
        else:
            self.console.print(self.build_trace_table(trace, title))

    def print_error(self, message: Any) -> None:
        """Print an error message to stderr."""
        text = summarize_error(message)
        if self.json_output:
            print(
                json.dumps({"timestamp": datetime.now().isoformat(), "type": "error", "message": text}),
                file=sys.stderr,
            )
        else:
            self.console.print(f"[red]ERROR: {escape(text)}[/red]")
