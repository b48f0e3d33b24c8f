"""Console rendering of pipeline runs."""

from .console import ConsoleManager, ThreadSafeConsole, trace_rows

__all__ = ["ConsoleManager", "ThreadSafeConsole", "trace_rows"]
