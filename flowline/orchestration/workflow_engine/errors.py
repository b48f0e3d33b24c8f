"""Exceptions raised by the workflow engine."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ...models.trace import TraceEntry
from ...utils.serialization import summarize_error


class FlowlineError(Exception):
    """Base class for engine errors."""


class TaskCancelledError(FlowlineError):
    """Raised by CancellationSignal.raise_if_cancelled inside a task.

    It is an ordinary Exception, so the attempt is recorded as failed.
    """

    def __init__(self, reason: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(f"Task cancelled: {reason}" if reason else "Task cancelled")


class WorkflowError(FlowlineError):
    """Raised by Workflow.run when a stage fails.

    Attributes:
        trace: Entries of every stage that ran, the failing one last
        error: The task failure or aggregate parallel failure
    """

    def __init__(self, trace: List[TraceEntry], error: BaseException) -> None:
        self.trace = trace
        self.error = error
        stage = trace[-1].name if trace else "<unknown>"
        super().__init__(f'Workflow failed at stage "{stage}": {summarize_error(error)}')

    @property
    def failed_stage(self) -> str:
        return self.trace[-1].name if self.trace else ""


class ParallelBranchError(FlowlineError):
    """Wraps a single failed parallel branch whose error is not an Exception.

    Stages never produce one: task attempts only capture Exception subclasses.
    It is built only when build_parallel_error is called directly with such an
    error.
    """

    def __init__(self, key: str, error: BaseException) -> None:
        self.key = key
        self.error = error
        super().__init__(f'Parallel branch "{key}" failed: {summarize_error(error)}')


class ParallelStageError(FlowlineError):
    """Aggregate failure of several branches of one parallel stage.

    Attributes:
        group: Name of the parallel stage
        branch_keys: Keys of the failing branches, in declaration order
        causes: The raw branch errors, aligned with branch_keys
    """

    def __init__(self, group: str, failures: Sequence[Tuple[str, BaseException]]) -> None:
        self.group = group
        self.branch_keys = [key for key, _ in failures]
        self.causes = [error for _, error in failures]
        lines = [f'Parallel step "{group}" failed in {len(failures)} branches:']
        lines.extend(f"- {key}: {summarize_error(error)}" for key, error in failures)
        super().__init__("\n".join(lines))


def build_parallel_error(group: str, failures: Sequence[Tuple[str, BaseException]]) -> Exception:
    """Build the single error surfaced for the failed branches of a group.

    One failure surfaces the branch's own error, several are aggregated. The
    ParallelBranchError wrap only applies to direct callers passing a
    BaseException that is not an Exception.
    """
    if not failures:
        raise ValueError("build_parallel_error requires at least one failure")
    if len(failures) == 1:
        key, error = failures[0]
        if isinstance(error, Exception):
            return error
        return ParallelBranchError(key, error)
    return ParallelStageError(group, failures)
