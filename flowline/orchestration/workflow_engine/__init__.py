"""
Workflow orchestration engine.

This package contains the engine components:
- steps: Task, attempt and option models
- executors: Task attempts and stage execution strategies
- graph: Structure graph and its DOT/Mermaid renderings
- core: The immutable Workflow builder
- errors: Engine exceptions
"""

from __future__ import annotations

from .steps import (
    CancellationSignal,
    LogFn,
    NodeKind,
    RunResult,
    StageKind,
    Task,
    TaskAttempt,
    WorkflowOptions,
)

from .errors import (
    FlowlineError,
    ParallelBranchError,
    ParallelStageError,
    TaskCancelledError,
    WorkflowError,
    build_parallel_error,
)

from .graph import GraphEdge, GraphNode, GraphSnapshot, WorkflowGraphBuilder

from .executors import (
    FallbackStage,
    ParallelStage,
    SequentialStage,
    StageRunner,
    run_task_attempt,
)

from .core import Workflow, start

__all__ = [
    # Models
    "CancellationSignal",
    "LogFn",
    "NodeKind",
    "RunResult",
    "StageKind",
    "Task",
    "TaskAttempt",
    "WorkflowOptions",

    # Errors
    "FlowlineError",
    "ParallelBranchError",
    "ParallelStageError",
    "TaskCancelledError",
    "WorkflowError",
    "build_parallel_error",

    # Graph
    "GraphEdge",
    "GraphNode",
    "GraphSnapshot",
    "WorkflowGraphBuilder",

    # Stages
    "FallbackStage",
    "ParallelStage",
    "SequentialStage",
    "StageRunner",
    "run_task_attempt",

    # Builder
    "Workflow",
    "start",
]
