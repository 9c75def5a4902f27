"""
Coding Arena - Configuration
Constants, paths, environment variables, and logging setup.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from .state import TaskKind

# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------
PACKAGE_DIR = Path(__file__).parent.resolve()
WORKSPACE_ROOT = Path(
    os.environ.get("ARENA_WORKSPACE_ROOT", Path(tempfile.gettempdir()) / "coding-arena")
)
REPORTS_DIR = Path(os.environ.get("ARENA_REPORTS_DIR", Path.cwd() / "arena-reports"))

# -----------------------------------------------------------------------------
# Task time budgets (seconds)
# -----------------------------------------------------------------------------
BASELINE_TIMEOUT_SECONDS = float(os.environ.get("ARENA_BASELINE_TIMEOUT_SECONDS", "300"))
BUG_INJECTION_TIMEOUT_SECONDS = float(os.environ.get("ARENA_BUG_INJECTION_TIMEOUT_SECONDS", "180"))
FIX_ATTEMPT_TIMEOUT_SECONDS = float(os.environ.get("ARENA_FIX_ATTEMPT_TIMEOUT_SECONDS", "180"))

# Contract validation (make setup / make test)
MAKE_TIMEOUT_SECONDS = float(os.environ.get("ARENA_MAKE_TIMEOUT_SECONDS", "60"))

# -----------------------------------------------------------------------------
# Scoring Constants
# -----------------------------------------------------------------------------
BASELINE_FAILURE_PENALTY = -1
BUG_INJECTION_FAILURE_PENALTY = -1
FIX_SUCCESS_REWARD = 1
UNFIXED_BUG_REWARD = 1

# -----------------------------------------------------------------------------
# Default Configuration
# -----------------------------------------------------------------------------
DEFAULT_ROUNDS = 3
DEFAULT_PARTICIPANTS = ["blazing-bulldozer", "radical-rampage", "turbo-terror"]
DEFAULT_AGENT = "mock"
MIN_PARTICIPANTS = 3

LOG_LEVEL = os.environ.get("ARENA_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass(frozen=True)
class TaskTimeouts:
    """Per-task time budgets. Baseline creation gets the largest budget."""
    baseline: float = BASELINE_TIMEOUT_SECONDS
    bug_injection: float = BUG_INJECTION_TIMEOUT_SECONDS
    fix_attempt: float = FIX_ATTEMPT_TIMEOUT_SECONDS

    def __post_init__(self):
        for name in ("baseline", "bug_injection", "fix_attempt"):
            if getattr(self, name) <= 0:
                raise ValueError(f"Timeout for {name} must be positive")

    def for_kind(self, kind: TaskKind) -> float:
        """Budget for a TaskKind; the kind's value names the matching field."""
        return getattr(self, kind.value)

    @classmethod
    def from_env(cls) -> TaskTimeouts:
        return cls(
            baseline=float(os.environ.get("ARENA_BASELINE_TIMEOUT_SECONDS", BASELINE_TIMEOUT_SECONDS)),
            bug_injection=float(os.environ.get("ARENA_BUG_INJECTION_TIMEOUT_SECONDS", BUG_INJECTION_TIMEOUT_SECONDS)),
            fix_attempt=float(os.environ.get("ARENA_FIX_ATTEMPT_TIMEOUT_SECONDS", FIX_ATTEMPT_TIMEOUT_SECONDS)),
        )


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once for CLI runs. Library code only uses getLogger."""
    logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
