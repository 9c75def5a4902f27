"""
Coding Arena - State
Value types shared by the state machine, scoring, and orchestrator.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

SYSTEM_PARTICIPANT = "SYSTEM"


@dataclass(frozen=True)
class ParticipantId:
    """Opaque, trimmed, non-empty participant token."""
    value: str

    def __post_init__(self):
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("ParticipantId cannot be empty")
        object.__setattr__(self, "value", self.value.strip())

    @classmethod
    def from_string(cls, value: str) -> ParticipantId:
        return cls(value)

    @classmethod
    def system(cls) -> ParticipantId:
        return cls(SYSTEM_PARTICIPANT)

    def is_system(self) -> bool:
        return self.value == SYSTEM_PARTICIPANT

    def __str__(self) -> str:
        return self.value


class RoundPhase(str, Enum):
    IDLE = "idle"
    BASELINE = "baseline"
    BUG_INJECTION = "bug_injection"
    FIX_ATTEMPTS = "fix_attempts"
    ROUND_COMPLETE = "round_complete"


class TaskKind(str, Enum):
    BASELINE = "baseline"
    BUG_INJECTION = "bug_injection"
    FIX_ATTEMPT = "fix_attempt"

    @property
    def slug(self) -> str:
        """Workspace directory suffix for this task."""
        return self.value.replace("_", "")

    @property
    def label(self) -> str:
        return self.value.replace("_", " ")


@dataclass
class TaskOutcome:
    """Result of one agent task. success=False covers every TaskFailure cause."""
    success: bool
    message: str
    duration_seconds: float | None = None
    timed_out: bool = False

    @classmethod
    def ok(cls, message: str) -> TaskOutcome:
        return cls(success=True, message=message)

    @classmethod
    def failed(cls, message: str, timed_out: bool = False) -> TaskOutcome:
        return cls(success=False, message=message, timed_out=timed_out)


STAT_NAMES = ("fixes", "bugs_solved", "baseline_failures", "bug_injection_failures")


@dataclass(frozen=True)
class ScoreCard:
    """Per-participant counters. All fields only ever increase."""
    fixes: int = 0
    bugs_solved: int = 0  # injected bugs that went unfixed
    baseline_failures: int = 0
    bug_injection_failures: int = 0

    def to_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in STAT_NAMES}


@dataclass(frozen=True)
class RoundState:
    """The active round. Replaced wholesale on every transition."""
    round_number: int
    baseline_author: ParticipantId
    bug_author: ParticipantId | None = None
    baseline_success: bool = False
    bug_injection_success: bool = False
    fix_attempts: dict[ParticipantId, bool] = field(default_factory=dict)

    def has_successful_fix(self) -> bool:
        return any(self.fix_attempts.values())

    def failed_fix_count(self) -> int:
        return sum(1 for success in self.fix_attempts.values() if not success)


class NextStepType(str, Enum):
    WAITING_FOR_ROUND_START = "waiting_for_round_start"
    WAITING_FOR_BASELINE = "waiting_for_baseline"
    WAITING_FOR_BUG_INJECTION = "waiting_for_bug_injection"
    WAITING_FOR_FIX_ATTEMPTS = "waiting_for_fix_attempts"
    READY_TO_FINISH_ROUND = "ready_to_finish_round"


@dataclass(frozen=True)
class NextStep:
    type: NextStepType
    description: str
    expected_participant: str | None = None
    excluded_participant: str | None = None
    excluded_participants: tuple[str, ...] = ()
