"""
Coding Arena - Lifecycle Events
Event records, observer fan-out types, and audit-log sinks.
"""
from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Callable

from .state import TaskKind

logger = logging.getLogger("coding-arena.events")


class EventType(str, Enum):
    ROUND_STARTED = "round-started"
    BASELINE_ATTEMPT = "baseline-attempt"
    BUG_INJECTION_ATTEMPT = "bug-injection-attempt"
    FIX_ATTEMPT = "fix-attempt"
    ROUND_FINISHED = "round-finished"


ATTEMPT_EVENTS = {
    TaskKind.BASELINE: EventType.BASELINE_ATTEMPT,
    TaskKind.BUG_INJECTION: EventType.BUG_INJECTION_ATTEMPT,
    TaskKind.FIX_ATTEMPT: EventType.FIX_ATTEMPT,
}
TASK_KINDS = {event: kind for kind, event in ATTEMPT_EVENTS.items()}


@dataclass
class LifecycleEvent:
    """One entry of a round's event stream."""
    type: EventType
    round: int
    participant: str | None = None
    success: bool | None = None
    message: str | None = None
    workspace_path: str | None = None
    duration_seconds: float | None = None
    baseline_author: str | None = None
    scores: dict[str, int] | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def task_kind(self) -> TaskKind | None:
        return TASK_KINDS.get(self.type)

    def to_dict(self) -> dict[str, Any]:
        data = {"type": self.type.value, "round": self.round, "timestamp": self.timestamp}
        for key in ("participant", "success", "message", "workspace_path",
                    "duration_seconds", "baseline_author", "scores"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LifecycleEvent:
        return cls(
            type=EventType(data["type"]),
            round=int(data["round"]),
            participant=data.get("participant"),
            success=data.get("success"),
            message=data.get("message"),
            workspace_path=data.get("workspace_path"),
            duration_seconds=data.get("duration_seconds"),
            baseline_author=data.get("baseline_author"),
            scores=data.get("scores"),
            timestamp=data.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        )


EventObserver = Callable[[LifecycleEvent], None]


class EventSink(ABC):
    """Append-only audit trail. Returns False when the event was not stored."""

    @abstractmethod
    def append(self, event: LifecycleEvent) -> bool:
        pass


class MemoryEventSink(EventSink):
    def __init__(self):
        self.events: list[LifecycleEvent] = []

    def append(self, event: LifecycleEvent) -> bool:
        self.events.append(event)
        return True


class JsonlEventSink(EventSink):
    """One JSON object per line, flushed per event."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def append(self, event: LifecycleEvent) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict()) + "\n")
            return True
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to append %s to %s: %s", event.type.value, self.path, e)
            return False


def read_events(path: str | Path) -> list[LifecycleEvent]:
    """Load a JSONL audit log. Blank lines are skipped; malformed lines raise ValueError."""
    events = []
    with open(path, encoding="utf-8") as f:
        for line_number, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(LifecycleEvent.from_dict(json.loads(line)))
            except (json.JSONDecodeError, KeyError, ValueError) as e:
                raise ValueError(f"{path}:{line_number}: invalid event: {e}") from e
    return events
