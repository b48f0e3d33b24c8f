"""Centralized logging factory for consistent logger creation across flowline.

This module provides a singleton-based logging factory that ensures consistent
logger configuration throughout the engine. It handles:
- Lazy initialization of the logging system
- Optional application log file management
- Consistent formatting across all loggers
- Verbosity control for the live task echo

Usage:
    # Explicit initialization (optional - auto-initializes on first use)
    LoggingFactory.initialize(log_dir=Path("logs"), level=logging.INFO)

    # Get a logger for your module
    logger = LoggingFactory.get_logger(__name__)
    logger.info("Pipeline started")
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Logger used for the live echo of task log calls when a workflow is verbose
TASK_LOGGER_NAME = "flowline.tasks"


class LoggingFactory:
    """Factory for creating and configuring loggers consistently.

    The logging system is configured only once regardless of how many times
    initialize() is called. Output goes to the console and, when a log
    directory is given, also to ``<log_dir>/flowline.log``.

    Class Attributes:
        _initialized: Flag to ensure single initialization
        _log_dir: Directory path where the application log file is stored
    """

    _initialized = False
    _log_dir: Optional[Path] = None
    _handlers: List[logging.Handler] = []

    @classmethod
    def initialize(
        cls,
        log_dir: Optional[Path] = None,
        level: int = logging.INFO,
        format_string: Optional[str] = None,
    ) -> None:
        """Initialize the logging system once for the entire application.

        Note: Calling this method is optional. The factory will auto-initialize
        with defaults when get_logger() is first called.

        Args:
            log_dir: Directory for the application log file. If None, only
                     console output is configured.
            level: Default logging level for the root logger.
            format_string: Custom format string for log messages.

        Side Effects:
            - Creates log_dir if it doesn't exist
            - Configures the root logger with console (and file) handlers
            - Sets the task echo logger to the same level
        """
        if cls._initialized:
            return

        if format_string is None:
            format_string = DEFAULT_FORMAT

        handlers: List[logging.Handler] = [logging.StreamHandler()]
        if log_dir is not None:
            cls._log_dir = Path(log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(cls._log_dir / "flowline.log"))

        # basicConfig does nothing once the root logger has handlers
        root = logging.getLogger()
        formatter = logging.Formatter(format_string)
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
        root.setLevel(level)
        logging.getLogger(TASK_LOGGER_NAME).setLevel(level)

        cls._handlers = handlers
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Remove the handlers installed by initialize() and allow re-initialization."""
        root = logging.getLogger()
        for handler in cls._handlers:
            root.removeHandler(handler)
            handler.close()
        cls._handlers = []
        cls._log_dir = None
        cls._initialized = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a configured logger for the given module name.

        Args:
            name: Module name for the logger, typically __name__.

        Returns:
            Configured logger instance ready for use.
        """
        if not cls._initialized:
            cls.initialize()

        return logging.getLogger(name)

    @classmethod
    def set_level(cls, name: str, level: int) -> None:
        """Set the logging level for a specific logger."""
        logging.getLogger(name).setLevel(level)

    @classmethod
    def configure_verbose(cls, verbose: bool = False) -> None:
        """Switch the engine loggers between normal and verbose output.

        Args:
            verbose: If True, sets the flowline loggers to DEBUG, otherwise INFO.
        """
        level = logging.DEBUG if verbose else logging.INFO

        logging.getLogger().setLevel(level)
        logging.getLogger("flowline").setLevel(level)
        logging.getLogger(TASK_LOGGER_NAME).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Get a configured logger for the given module name.

    Convenience wrapper around LoggingFactory.get_logger().
    """
    return LoggingFactory.get_logger(name)
