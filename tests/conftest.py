"""Global pytest fixtures and configuration.

This module provides shared fixtures for all tests including:
- A clean FLOWLINE_* environment and config singleton per test
- Workflow options pointing the pipeline log at a temp directory
"""
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from flowline.config import reset_config
from flowline.orchestration.workflow_engine import WorkflowOptions


@pytest.fixture(autouse=True)
def clean_flowline_env(monkeypatch):
    """Ensure no FLOWLINE_* variable leaks into a test and the config is re-read."""
    for key in (
        "FLOWLINE_LOG_DIR",
        "FLOWLINE_LOG_FILE",
        "FLOWLINE_VERBOSE",
        "FLOWLINE_LOG_LEVEL",
        "FLOWLINE_LOG_FORMAT",
    ):
        monkeypatch.delenv(key, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """Directory for the pipeline log."""
    return tmp_path / "logs"


@pytest.fixture
def options(log_dir: Path) -> WorkflowOptions:
    """Workflow options writing the pipeline log into log_dir."""
    return WorkflowOptions(log_dir=log_dir)


@pytest.fixture
def read_log(log_dir: Path) -> Callable[[], str]:
    """Read back the pipeline log written with the options fixture."""

    def _read() -> str:
        return (log_dir / "pipeline.log").read_text(encoding="utf-8")

    return _read
