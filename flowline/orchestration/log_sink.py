"""Append-only pipeline log.

Each stage writes one block: a header with the stage kind, name, timestamp and
serialized input, the task log lines, and a footer with the serialized output
or an error summary. Writing is a side channel; failures are reported through
the module logger and never reach the pipeline result.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

from ..utils.serialization import safe_json, summarize_error

logger = logging.getLogger(__name__)

RULE = "--------------"


def section_header(kind: str, name: str, value: Any) -> List[str]:
    """Lines opening a stage block."""
    return [
        "",
        f"{RULE} {kind}: {name} {RULE}",
        f"[TIME] {datetime.now(timezone.utc).isoformat()}",
        f"[INPUT] {safe_json(value)}",
        "",
    ]


def success_footer(kind: str, name: str, output: Any, duration_ms: int) -> List[str]:
    """Lines closing a successful stage block."""
    return [
        "",
        f"[OUTPUT] {safe_json(output)}",
        f"{RULE} END {kind}: {name} ({duration_ms}ms) {RULE}",
        "",
    ]


def failure_footer(kind: str, name: str, error: Any) -> List[str]:
    """Lines closing a failed stage block."""
    return [
        "",
        f"[ERROR] {summarize_error(error)}",
        f"{RULE} END {kind}: {name} (FAILED) {RULE}",
        "",
    ]


class LogSink:
    """Serialized appender for the pipeline log file.

    Blocks are written whole under a lock, so stages running concurrently
    never interleave their output. A sink without a path discards everything.
    """

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else None
        self.failures = 0
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self.path is not None

    async def append(self, lines: Sequence[str]) -> bool:
        """Append one block of lines.

        Args:
            lines: Lines of the block, without trailing newlines

        Returns:
            True if the block was written, False if the sink is disabled or
            the write failed
        """
        if self.path is None:
            return False
        text = "\n".join(lines) + "\n"
        return await asyncio.to_thread(self._write, text)

    def _write(self, text: str) -> bool:
        with self._lock:
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, "a", encoding="utf-8", errors="backslashreplace") as handle:
                    handle.write(text)
            except (OSError, ValueError) as e:
                self.failures += 1
                logger.error(f"Failed to write pipeline log {self.path}: {e}")
                return False
        return True
