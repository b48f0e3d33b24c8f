"""
Workflow step models and data structures.

This module defines the core data models for tasks, task attempts, run results,
graph node kinds and the options shared by every stage of a workflow.
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...models.trace import TraceEntry
from .errors import TaskCancelledError

T = TypeVar("T")

LogFn = Callable[..., None]

# (value, signal, log) -> output; coroutine functions are awaited, plain
# functions run in the default thread executor.
Task = Callable[[Any, "CancellationSignal", LogFn], Union[Any, Awaitable[Any]]]


class NodeKind(Enum):
    """Kinds of nodes in the workflow graph."""

    START = "start"
    STEP = "step"
    PARALLEL_GROUP = "parallel-group"
    PARALLEL_BRANCH = "parallel-branch"
    PARALLEL_JOIN = "parallel-join"
    FALLBACK_GROUP = "fallback-group"
    FALLBACK_PRIMARY = "fallback-primary"
    FALLBACK_SECONDARY = "fallback-secondary"
    FALLBACK_JOIN = "fallback-join"


class StageKind(Enum):
    """Stage kinds as they appear in log block headers."""

    STEP = "STEP"
    FALLBACK = "FALLBACK"
    PARALLEL = "PARALLEL"


class WorkflowOptions(BaseModel):
    """Options shared by every stage of a workflow."""

    model_config = ConfigDict(frozen=True)

    log_dir: Optional[Path] = None
    log_file: str = Field("pipeline.log", min_length=1)
    verbose: bool = False

    @field_validator("log_file")
    @classmethod
    def validate_log_file(cls, v):
        """Log file must be a bare file name inside log_dir."""
        if "/" in v or "\\" in v:
            raise ValueError(f"log_file must be a file name, not a path: {v!r}")
        return v

    @property
    def log_path(self) -> Optional[Path]:
        """Full path of the pipeline log, or None when file logging is off."""
        if self.log_dir is None:
            return None
        return self.log_dir / self.log_file


class CancellationSignal:
    """Cooperative cancellation flag handed to every task attempt.

    The engine never sets it; tasks that spawn their own work may check it or
    pass it along. Safe to use from tasks running in worker threads.
    """

    def __init__(self):
        self._event = threading.Event()
        self._reason: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        """Mark the signal as cancelled; later calls keep the first reason."""
        if not self._event.is_set():
            self._reason = reason
            self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise TaskCancelledError if the signal has been cancelled."""
        if self._event.is_set():
            raise TaskCancelledError(self._reason)

    async def wait(self, poll_interval: float = 0.05) -> None:
        """Wait until the signal is cancelled."""
        while not self._event.is_set():
            await asyncio.sleep(poll_interval)


@dataclass
class TaskAttempt(Generic[T]):
    """Uniform outcome of running a task once. Returned, never raised."""

    ok: bool
    duration_ms: int
    trace_entry: TraceEntry
    output: Optional[T] = None
    error: Optional[BaseException] = None
    log_lines: List[str] = field(default_factory=list)

    @classmethod
    def success(cls, name: str, output: T, duration_ms: int, log_lines: List[str]) -> "TaskAttempt[T]":
        return cls(
            ok=True,
            duration_ms=duration_ms,
            trace_entry=TraceEntry(name=name, duration_ms=duration_ms, ok=True),
            output=output,
            log_lines=log_lines,
        )

    @classmethod
    def failure(
        cls, name: str, error: BaseException, duration_ms: int, log_lines: List[str]
    ) -> "TaskAttempt[T]":
        return cls(
            ok=False,
            duration_ms=duration_ms,
            trace_entry=TraceEntry(name=name, duration_ms=duration_ms, ok=False, error=error),
            error=error,
            log_lines=log_lines,
        )


@dataclass
class RunResult(Generic[T]):
    """Output of a run together with the trace of every top-level stage."""

    output: T
    trace: List[TraceEntry] = field(default_factory=list)
