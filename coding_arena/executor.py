"""
Coding Arena - Task Executor
Runs one agent call under the task's time budget.
"""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import replace
from typing import Any, Callable

from .config import TaskTimeouts
from .state import TaskKind, TaskOutcome

logger = logging.getLogger("coding-arena.executor")

TIMEOUT_MESSAGES = {
    TaskKind.BASELINE: "Baseline creation exceeded time limit",
    TaskKind.BUG_INJECTION: "Bug injection exceeded time limit",
    TaskKind.FIX_ATTEMPT: "Fix attempt exceeded time limit",
}


class TaskExecutor:
    """
    Races an agent call against a per-task timer.

    The call runs on a daemon thread. On timeout the orchestrator stops
    waiting and the thread is abandoned; it never blocks interpreter exit.
    Every way a call can go wrong comes back as a failed TaskOutcome.
    """

    def __init__(self, timeouts: TaskTimeouts | None = None):
        self.timeouts = timeouts or TaskTimeouts()

    def run(self, kind: TaskKind, call: Callable[[], TaskOutcome]) -> TaskOutcome:
        budget = self.timeouts.for_kind(kind)
        start = time.monotonic()
        result: dict[str, Any] = {}

        def target():
            try:
                result["outcome"] = call()
            except Exception as e:
                result["error"] = e

        worker = threading.Thread(target=target, name=f"arena-{kind.slug}", daemon=True)
        worker.start()
        worker.join(budget)

        if worker.is_alive():
            logger.warning("%s timed out after %ss", kind.label, budget)
            outcome = TaskOutcome.failed(f"{TIMEOUT_MESSAGES[kind]} ({budget:g}s)", timed_out=True)
        elif "error" in result:
            e = result["error"]
            logger.warning("%s raised %s: %s", kind.label, type(e).__name__, e)
            outcome = TaskOutcome.failed(str(e) or type(e).__name__)
        else:
            outcome = result.get("outcome")

        if not isinstance(outcome, TaskOutcome):
            outcome = TaskOutcome.failed(
                f"Agent returned {type(outcome).__name__} instead of a task outcome"
            )
        return replace(outcome, duration_seconds=time.monotonic() - start)
