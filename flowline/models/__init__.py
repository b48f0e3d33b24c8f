"""Data models for the flowline engine.

This module provides the data structures for representing execution traces.
"""

from .trace import TraceEntry, trace_to_dicts

__all__ = [
    "TraceEntry",
    "trace_to_dicts",
]
