"""Safe serialization helpers for log output.

Everything written to the pipeline log goes through these functions. They
never raise: values that cannot be encoded degrade to a fixed placeholder.
"""
from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel

UNSERIALIZABLE = '"[unserializable]"'


def _json_default(value: Any) -> Any:
    """Encode the common non-JSON types that tasks tend to return."""
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, PurePath):
        return str(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    if isinstance(value, BaseException):
        return summarize_error(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def safe_json(value: Any) -> str:
    """Serialize a value as indented JSON.

    Args:
        value: Any value

    Returns:
        JSON text, or UNSERIALIZABLE for cyclic or unsupported values
    """
    try:
        return json.dumps(value, indent=2, default=_json_default, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError):
        return UNSERIALIZABLE


def format_log_arg(arg: Any) -> str:
    """Render one argument of a task log call."""
    if arg is None or isinstance(arg, (bool, int, float)):
        return str(arg)
    if isinstance(arg, str):
        return arg
    return safe_json(arg)


def summarize_error(error: Any) -> str:
    """One-line description of an error value.

    Exceptions yield their message (or class name when the message is empty),
    strings are returned as-is and anything else is serialized.
    """
    if isinstance(error, BaseException):
        message = str(error)
        return message or type(error).__name__
    if isinstance(error, str):
        return error
    return safe_json(error)
