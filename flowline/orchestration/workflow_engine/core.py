"""
Workflow builder.

A Workflow is an immutable value. Every chaining call returns a new Workflow
that wraps the previous run function with one more stage, registers that stage
in the shared structure graph and moves the graph tail. Earlier handles stay
valid and unaffected.

Example::

    wf = (
        Workflow.start(log_dir=Path("out"))
        .step("fetch", fetch_candidates)
        .parallel("enrich", {"summary": summarize, "tags": tag})
        .fallback("publish", publish_primary, publish_backup)
    )
    result = await wf.run()
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from ...config import get_config
from ..log_sink import LogSink
from .executors import FallbackStage, ParallelStage, SequentialStage, StageRunner
from .graph import (
    GraphSnapshot,
    WorkflowGraphBuilder,
    register_fallback,
    register_parallel,
    register_step,
)
from .steps import CancellationSignal, LogFn, NodeKind, RunResult, Task, WorkflowOptions

logger = logging.getLogger(__name__)

RunFn = Callable[[Any], Awaitable[RunResult]]
GRAPH_FORMATS = ("mermaid", "dot")


def _chain(previous: RunFn, stage: StageRunner) -> RunFn:
    async def run(value: Any) -> RunResult:
        prior = await previous(value)
        return await stage.execute(prior)

    return run


async def _empty_run(value: Any) -> RunResult:
    return RunResult(output=value, trace=[])


class Workflow:
    """Immutable handle on a pipeline definition."""

    __slots__ = ("_fn", "_options", "_graph", "_tail", "_sink")

    def __init__(
        self,
        fn: RunFn,
        options: WorkflowOptions,
        graph: WorkflowGraphBuilder,
        tail_node_id: str,
        sink: LogSink,
    ):
        self._fn = fn
        self._options = options
        self._graph = graph
        self._tail = tail_node_id
        self._sink = sink

    @classmethod
    def start(
        cls,
        options: Union[WorkflowOptions, Mapping[str, Any], None] = None,
        *,
        log_dir: Union[str, Path, None] = None,
        log_file: Optional[str] = None,
        verbose: Optional[bool] = None,
    ) -> "Workflow":
        """Create a workflow with a single start node.

        Args:
            options: WorkflowOptions or a mapping of its fields. Defaults to
                the environment configuration.
            log_dir: Override for options.log_dir
            log_file: Override for options.log_file
            verbose: Override for options.verbose

        Returns:
            A new Workflow whose run passes its input through unchanged
        """
        if options is None:
            options = get_config().to_workflow_options()
        elif not isinstance(options, WorkflowOptions):
            options = WorkflowOptions.model_validate(dict(options))

        overrides = {
            key: value
            for key, value in (("log_dir", log_dir), ("log_file", log_file), ("verbose", verbose))
            if value is not None
        }
        if overrides:
            options = WorkflowOptions(**{**options.model_dump(), **overrides})

        graph = WorkflowGraphBuilder()
        start_id = graph.add_node(NodeKind.START, "Start")
        sink = LogSink(options.log_path)
        if sink.enabled:
            logger.debug(f"Pipeline log: {sink.path}")
        return cls(_empty_run, options, graph, start_id, sink)

    @property
    def options(self) -> WorkflowOptions:
        return self._options

    @property
    def tail_node_id(self) -> str:
        return self._tail

    @property
    def log_sink(self) -> LogSink:
        return self._sink

    def _extend(self, stage: StageRunner, tail_node_id: str) -> "Workflow":
        return Workflow(_chain(self._fn, stage), self._options, self._graph, tail_node_id, self._sink)

    def step(self, name: str, task: Task) -> "Workflow":
        """Add a sequential stage that runs task on the previous output."""
        stage = SequentialStage(name, task, self._options, self._sink)
        return self._extend(stage, register_step(self._graph, self._tail, name))

    def fallback(self, name: str, primary: Task, secondary: Task) -> "Workflow":
        """Add a stage that runs secondary on the same input only if primary fails."""
        stage = FallbackStage(name, primary, secondary, self._options, self._sink)
        _, join_id = register_fallback(self._graph, self._tail, name)
        return self._extend(stage, join_id)

    def parallel(self, name: str, tasks: Mapping[Any, Task]) -> "Workflow":
        """Add a fan-out/fan-in stage; the output is a dict keyed like tasks.

        Raises:
            ValueError: If tasks is empty
        """
        stage = ParallelStage(name, tasks, self._options, self._sink)
        _, join_id = register_parallel(self._graph, self._tail, name, [str(key) for key in tasks])
        return self._extend(stage, join_id)

    def tap(self, name: str, side_effect: Callable[[Any], Any]) -> "Workflow":
        """Add a step that calls side_effect and passes its input through."""

        async def passthrough(value: Any, signal: CancellationSignal, log: LogFn) -> Any:
            result = side_effect(value)
            if inspect.isawaitable(result):
                await result
            return value

        return self.step(name, passthrough)

    async def run(self, value: Any = None) -> RunResult:
        """Run every stage in order.

        Returns:
            RunResult with the final output and one trace entry per stage

        Raises:
            WorkflowError: If a stage fails; carries the trace up to and
                including the failed stage
        """
        return await self._fn(value)

    def get_graph_snapshot(self) -> GraphSnapshot:
        return self._graph.snapshot()

    def visualize_graph(self, fmt: str = "mermaid") -> str:
        """Render the structure graph as Mermaid or DOT text."""
        if fmt == "mermaid":
            return self._graph.to_mermaid()
        if fmt == "dot":
            return self._graph.to_dot()
        raise ValueError(f"Unsupported graph format {fmt!r}; expected one of {GRAPH_FORMATS}")

    async def write_graph_visualization(self, path: Union[str, Path], fmt: str = "mermaid") -> Path:
        """Write the rendered graph to a file and return its path."""
        content = self.visualize_graph(fmt)
        target = Path(path)

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")

        await asyncio.to_thread(_write)
        return target

    def __repr__(self) -> str:
        return f"Workflow(tail={self._tail!r}, log_path={self._options.log_path!s})"


start = Workflow.start
