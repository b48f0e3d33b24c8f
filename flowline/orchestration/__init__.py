"""Pipeline orchestration: workflow builder, stages and the pipeline log."""

from .log_sink import LogSink
from .workflow_engine import (
    CancellationSignal,
    FlowlineError,
    GraphSnapshot,
    NodeKind,
    ParallelBranchError,
    ParallelStageError,
    TaskCancelledError,
    RunResult,
    TaskAttempt,
    Workflow,
    WorkflowError,
    WorkflowOptions,
    run_task_attempt,
    start,
)

__all__ = [
    "CancellationSignal",
    "FlowlineError",
    "GraphSnapshot",
    "LogSink",
    "NodeKind",
    "ParallelBranchError",
    "ParallelStageError",
    "TaskCancelledError",
    "RunResult",
    "TaskAttempt",
    "Workflow",
    "WorkflowError",
    "WorkflowOptions",
    "run_task_attempt",
    "start",
]
