"""Task factories shared by the test suite."""
from __future__ import annotations

import asyncio
from typing import Any, List, Optional


class TaskFailure(Exception):
    """Error raised by the failing task factory."""


def returning(value: Any, delay: float = 0.0, calls: Optional[List[Any]] = None):
    """Async task returning value after delay, recording its input in calls."""

    async def task(inp, signal, log):
        if calls is not None:
            calls.append(inp)
        if delay:
            await asyncio.sleep(delay)
        return value

    return task


def failing(message: str = "boom", delay: float = 0.0, calls: Optional[List[Any]] = None):
    """Async task raising TaskFailure(message) after delay."""

    async def task(inp, signal, log):
        if calls is not None:
            calls.append(inp)
        if delay:
            await asyncio.sleep(delay)
        raise TaskFailure(message)

    return task
