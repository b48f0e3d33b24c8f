"""flowline - composable async workflow pipelines with traces and graphs."""

from .models import TraceEntry
from .orchestration import (
    CancellationSignal,
    FlowlineError,
    GraphSnapshot,
    NodeKind,
    ParallelBranchError,
    ParallelStageError,
    TaskCancelledError,
    RunResult,
    Workflow,
    WorkflowError,
    WorkflowOptions,
    start,
)

__version__ = "1.0.0"

__all__ = [
    "CancellationSignal",
    "FlowlineError",
    "GraphSnapshot",
    "NodeKind",
    "ParallelBranchError",
    "ParallelStageError",
    "TaskCancelledError",
    "RunResult",
    "TraceEntry",
    "Workflow",
    "WorkflowError",
    "WorkflowOptions",
    "start",
]
