"""Data models for execution traces."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..utils.serialization import summarize_error


@dataclass
class TraceEntry:
    """Outcome of one executed stage or task attempt.

    Leaf entries (plain steps and single attempts) have no children. Composite
    entries (parallel and fallback groups) carry their branch attempts as
    children in declaration order.
    """

    name: str
    duration_ms: int
    ok: bool
    error: Optional[BaseException] = None
    children: Optional[List["TraceEntry"]] = None
    notes: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data: Dict[str, Any] = {
            "name": self.name,
            "duration_ms": self.duration_ms,
            "ok": self.ok,
        }
        if self.error is not None:
            data["error"] = summarize_error(self.error)
        if self.children is not None:
            data["children"] = [child.to_dict() for child in self.children]
        if self.notes is not None:
            data["notes"] = self.notes
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TraceEntry":
        """Create from dictionary.

        Errors come back as plain RuntimeError instances carrying the summary.
        """
        error = data.get("error")
        children = data.get("children")
        return cls(
            name=data["name"],
            duration_ms=data["duration_ms"],
            ok=data["ok"],
            error=RuntimeError(error) if error is not None else None,
            children=[cls.from_dict(child) for child in children] if children is not None else None,
            notes=data.get("notes"),
        )


def trace_to_dicts(trace: List[TraceEntry]) -> List[Dict[str, Any]]:
    """Convert a whole trace for JSON output."""
    return [entry.to_dict() for entry in trace]
