"""Utility modules for the flowline engine."""

from .logging_factory import TASK_LOGGER_NAME, LoggingFactory, get_logger
from .serialization import UNSERIALIZABLE, format_log_arg, safe_json, summarize_error

__all__ = [
    "LoggingFactory",
    "TASK_LOGGER_NAME",
    "UNSERIALIZABLE",
    "format_log_arg",
    "get_logger",
    "safe_json",
    "summarize_error",
]
