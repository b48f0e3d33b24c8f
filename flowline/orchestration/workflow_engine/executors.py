"""
Task attempts and stage execution strategies.

A task attempt runs one task once and always returns a TaskAttempt. Stages
build on attempts: a sequential stage forwards one task's output, a fallback
stage retries the same input on a secondary task, and a parallel stage fans
one input out to several tasks and waits for every branch to settle.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, NoReturn, Optional, Tuple

from ...models.trace import TraceEntry
from ...utils.logging_factory import TASK_LOGGER_NAME
from ...utils.serialization import format_log_arg, summarize_error
from ..log_sink import LogSink, failure_footer, section_header, success_footer
from .errors import WorkflowError, build_parallel_error
from .steps import CancellationSignal, RunResult, StageKind, Task, TaskAttempt, WorkflowOptions

logger = logging.getLogger(__name__)
task_logger = logging.getLogger(TASK_LOGGER_NAME)


def _elapsed_ms(start: float) -> int:
    return int(round((time.perf_counter() - start) * 1000))


async def _invoke(task: Task, value: Any, signal: CancellationSignal, log) -> Any:
    """Call a task, awaiting coroutine functions and threading plain ones."""
    if inspect.iscoroutinefunction(task):
        return await task(value, signal, log)

    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(None, task, value, signal, log)
    if inspect.isawaitable(result):
        result = await result
    return result


async def run_task_attempt(
    name: str,
    task: Task,
    value: Any,
    options: WorkflowOptions,
    log_label: Optional[str] = None,
) -> TaskAttempt:
    """Run a task once and capture its outcome.

    The task gets a fresh cancellation signal and a log function whose calls
    are buffered as ``[label] message`` lines. Exceptions raised by the task
    become a failed attempt; there is no deadline.

    Args:
        name: Trace entry name
        task: Task callable
        value: Input passed to the task
        options: Workflow options (verbose echoes log lines live)
        log_label: Tag for log lines, defaults to name

    Returns:
        TaskAttempt describing success or failure
    """
    label = log_label or name
    signal = CancellationSignal()
    log_lines: List[str] = []

    def log(*args: Any) -> None:
        message = " ".join(format_log_arg(arg) for arg in args)
        log_lines.append(f"[{label}] {message}")
        if options.verbose:
            task_logger.info(f"[{label}] {message}")

    start = time.perf_counter()
    try:
        output = await _invoke(task, value, signal, log)
    except Exception as e:
        duration_ms = _elapsed_ms(start)
        logger.debug(f"Task {name} failed after {duration_ms}ms: {summarize_error(e)}")
        return TaskAttempt.failure(name, e, duration_ms, log_lines)

    duration_ms = _elapsed_ms(start)
    logger.debug(f"Task {name} finished in {duration_ms}ms")
    return TaskAttempt.success(name, output, duration_ms, log_lines)


class StageRunner(ABC):
    """Abstract base class for pipeline stages.

    A stage takes the RunResult of everything before it and returns a new
    RunResult with exactly one more trace entry, or raises WorkflowError.
    """

    kind: StageKind

    def __init__(self, name: str, options: WorkflowOptions, sink: LogSink):
        self.name = name
        self.options = options
        self.sink = sink

    @abstractmethod
    async def execute(self, prior: RunResult) -> RunResult:
        """Run the stage against the previous stage's result."""
        pass

    def header(self, value: Any) -> List[str]:
        return section_header(self.kind.value, self.name, value)

    async def succeed(
        self, prior: RunResult, header: List[str], body: List[str], entry: TraceEntry, output: Any
    ) -> RunResult:
        footer = success_footer(self.kind.value, self.name, output, entry.duration_ms)
        await self.sink.append([*header, *body, *footer])
        logger.info(f"{self.kind.value} {self.name} completed in {entry.duration_ms}ms")
        return RunResult(output=output, trace=[*prior.trace, entry])

    async def fail(
        self, prior: RunResult, header: List[str], body: List[str], entry: TraceEntry, error: BaseException
    ) -> NoReturn:
        footer = failure_footer(self.kind.value, self.name, error)
        await self.sink.append([*header, *body, *footer])
        logger.warning(f"{self.kind.value} {self.name} failed: {summarize_error(error)}")
        raise WorkflowError([*prior.trace, entry], error) from error


class SequentialStage(StageRunner):
    """Run one task on the previous output."""

    kind = StageKind.STEP

    def __init__(self, name: str, task: Task, options: WorkflowOptions, sink: LogSink):
        super().__init__(name, options, sink)
        self.task = task

    async def execute(self, prior: RunResult) -> RunResult:
        header = self.header(prior.output)
        attempt = await run_task_attempt(self.name, self.task, prior.output, self.options)
        if attempt.ok:
            return await self.succeed(prior, header, attempt.log_lines, attempt.trace_entry, attempt.output)
        await self.fail(prior, header, attempt.log_lines, attempt.trace_entry, attempt.error)


class FallbackStage(StageRunner):
    """Run a primary task and, only if it fails, a secondary task on the same input."""

    kind = StageKind.FALLBACK

    def __init__(
        self, name: str, primary: Task, secondary: Task, options: WorkflowOptions, sink: LogSink
    ):
        super().__init__(name, options, sink)
        self.primary = primary
        self.secondary = secondary

    async def execute(self, prior: RunResult) -> RunResult:
        start = time.perf_counter()
        header = self.header(prior.output)

        primary = await run_task_attempt(f"{self.name}::primary", self.primary, prior.output, self.options)
        body = list(primary.log_lines)

        if primary.ok:
            body.append("[FALLBACK] Primary succeeded; fallback skipped.")
            entry = TraceEntry(
                name=self.name,
                duration_ms=_elapsed_ms(start),
                ok=True,
                children=[primary.trace_entry],
                notes="Primary task succeeded; fallback not executed.",
            )
            return await self.succeed(prior, header, body, entry, primary.output)

        primary_summary = summarize_error(primary.error)
        body.append(f"[FALLBACK] Primary failed: {primary_summary}. Executing fallback.")
        logger.info(f"FALLBACK {self.name}: primary failed ({primary_summary}), running fallback")

        secondary = await run_task_attempt(
            f"{self.name}::fallback", self.secondary, prior.output, self.options
        )
        body.extend(secondary.log_lines)

        children = [primary.trace_entry, secondary.trace_entry]
        if secondary.ok:
            entry = TraceEntry(
                name=self.name,
                duration_ms=_elapsed_ms(start),
                ok=True,
                children=children,
                notes=f"Fallback executed after primary failure: {primary_summary}",
            )
            return await self.succeed(prior, header, body, entry, secondary.output)

        entry = TraceEntry(
            name=self.name,
            duration_ms=_elapsed_ms(start),
            ok=False,
            error=secondary.error,
            children=children,
            notes=f"Fallback failed after primary failure: {primary_summary}",
        )
        await self.fail(prior, header, body, entry, secondary.error)


class ParallelStage(StageRunner):
    """Fan one input out to named tasks and join once every branch has settled.

    A failing branch does not cancel its siblings.
    """

    kind = StageKind.PARALLEL

    def __init__(self, name: str, tasks: Mapping[Any, Task], options: WorkflowOptions, sink: LogSink):
        if not tasks:
            raise ValueError(f'Parallel step "{name}" requires at least one task.')
        super().__init__(name, options, sink)
        self.tasks = dict(tasks)

    async def execute(self, prior: RunResult) -> RunResult:
        start = time.perf_counter()
        header = self.header(prior.output)
        keys = list(self.tasks)

        settled = await asyncio.gather(
            *(
                run_task_attempt(f"{self.name}::{key}", self.tasks[key], prior.output, self.options)
                for key in keys
            ),
            return_exceptions=True,
        )
        # Attempts only let caller cancellation escape; re-raise it once all have settled
        for outcome in settled:
            if isinstance(outcome, BaseException):
                raise outcome

        attempts: List[Tuple[Any, TaskAttempt]] = list(zip(keys, settled))
        body: List[str] = []
        for index, (key, attempt) in enumerate(attempts):
            if index > 0:
                body.append("")
            status = "ok" if attempt.ok else "error"
            body.append(f"[PARALLEL] Branch {key} ({status}) completed in {attempt.duration_ms}ms.")
            body.extend(attempt.log_lines)

        children = [attempt.trace_entry for _, attempt in attempts]
        failures = [(str(key), attempt.error) for key, attempt in attempts if not attempt.ok]

        if not failures:
            output: Dict[Any, Any] = {key: attempt.output for key, attempt in attempts}
            entry = TraceEntry(name=self.name, duration_ms=_elapsed_ms(start), ok=True, children=children)
            return await self.succeed(prior, header, body, entry, output)

        body.append("")
        body.append(f'[PARALLEL] {len(failures)} branch(es) failed in group "{self.name}".')
        error = build_parallel_error(self.name, failures)
        entry = TraceEntry(
            name=self.name, duration_ms=_elapsed_ms(start), ok=False, error=error, children=children
        )
        await self.fail(prior, header, body, entry, error)
