"""
Coding Arena - Agent Adapters

Every participant is bound to an AgentCapability. The orchestrator only calls
the three task methods; how an agent does the work is its own business, as
long as it never writes outside the workspace it was given.
"""
from __future__ import annotations

import logging
import shutil
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from .config import TaskTimeouts
from .state import TaskKind, TaskOutcome

logger = logging.getLogger("coding-arena.agents")

COPY_IGNORE = shutil.ignore_patterns(".git", "__pycache__", "*.pyc", ".pytest_cache")


def copy_workspace(source: str | Path, destination: str | Path) -> None:
    """Copy a previous task's workspace into a fresh one."""
    shutil.copytree(source, destination, ignore=COPY_IGNORE, dirs_exist_ok=True)


class AgentCapability(ABC):
    """Contract every agent adapter implements."""

    name: str = "agent"

    @abstractmethod
    def create_baseline(self, workspace: Path, instructions: str) -> TaskOutcome:
        pass

    @abstractmethod
    def inject_bug(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        pass

    @abstractmethod
    def attempt_fix(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        pass


# -----------------------------------------------------------------------------
# Mock agent
# -----------------------------------------------------------------------------

CALCULATOR_SOURCE = '''"""Small calculator used as the mock baseline project."""


def add(a, b):
    return a + b


def subtract(a, b):
    return a - b


def divide(a, b):
    if b == 0:
        raise ZeroDivisionError("division by zero")
    return a / b
'''

CALCULATOR_TESTS = '''import unittest

from calculator import add, divide, subtract


class CalculatorTest(unittest.TestCase):
    def test_add(self):
        self.assertEqual(add(2, 3), 5)

    def test_subtract(self):
        self.assertEqual(subtract(5, 3), 2)

    def test_divide(self):
        self.assertEqual(divide(6, 3), 2)

    def test_divide_by_zero(self):
        with self.assertRaises(ZeroDivisionError):
            divide(1, 0)


if __name__ == "__main__":
    unittest.main()
'''

CALCULATOR_MAKEFILE = """setup:
\t@echo "Mock dependencies installed"

test:
\tpython3 -m unittest -q test_calculator

.PHONY: setup test
"""

CORRECT_LINE = "return a + b"
BUGGY_LINE = "return a - b  # BUG: should be addition"


class MockAgent(AgentCapability):
    """
    Deterministic agent for dry runs and tests.

    Baseline writes a calculator project honoring the Makefile contract, bug
    injection flips addition into subtraction, and the fix flips it back.
    Task kinds listed in `fail_on` return a failed outcome without touching
    the workspace.
    """

    name = "mock"

    def __init__(self, fail_on: set[TaskKind] | None = None):
        self.fail_on = set(fail_on or ())
        self.calls: list[tuple[TaskKind, Path]] = []

    def _configured_failure(self, kind: TaskKind) -> TaskOutcome | None:
        if kind in self.fail_on:
            return TaskOutcome.failed(f"Mock agent configured to fail {kind.label}")
        return None

    def create_baseline(self, workspace: Path, instructions: str) -> TaskOutcome:
        self.calls.append((TaskKind.BASELINE, Path(workspace)))
        failure = self._configured_failure(TaskKind.BASELINE)
        if failure:
            return failure
        workspace = Path(workspace)
        (workspace / "calculator.py").write_text(CALCULATOR_SOURCE)
        (workspace / "test_calculator.py").write_text(CALCULATOR_TESTS)
        (workspace / "Makefile").write_text(CALCULATOR_MAKEFILE)
        return TaskOutcome.ok("Mock baseline created successfully with a tested calculator project")

    def _rewrite_calculator(self, source_workspace: Path, workspace: Path, old: str, new: str) -> bool:
        copy_workspace(source_workspace, workspace)
        target = Path(workspace) / "calculator.py"
        if not target.exists():
            return False
        code = target.read_text()
        if old not in code:
            return False
        target.write_text(code.replace(old, new, 1))
        return True

    def inject_bug(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        self.calls.append((TaskKind.BUG_INJECTION, Path(workspace)))
        failure = self._configured_failure(TaskKind.BUG_INJECTION)
        if failure:
            return failure
        if not self._rewrite_calculator(source_workspace, workspace, CORRECT_LINE, BUGGY_LINE):
            return TaskOutcome.failed("Baseline does not contain the expected calculator code")
        return TaskOutcome.ok("Mock bug injected successfully - calculator now subtracts instead of adds")

    def attempt_fix(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        self.calls.append((TaskKind.FIX_ATTEMPT, Path(workspace)))
        failure = self._configured_failure(TaskKind.FIX_ATTEMPT)
        if failure:
            return failure
        if not self._rewrite_calculator(source_workspace, workspace, BUGGY_LINE, CORRECT_LINE):
            return TaskOutcome.failed("Could not locate the injected bug")
        return TaskOutcome.ok("Mock fix applied successfully - calculator now adds correctly")


# -----------------------------------------------------------------------------
# External CLI agents
# -----------------------------------------------------------------------------

class CliAgent(AgentCapability):
    """
    Runs an external coding agent CLI inside the workspace.

    Instructions go in on stdin. For bug injection and fix attempts the
    source workspace is copied in first so the agent edits its own copy.
    """

    def __init__(self, name: str, command: list[str], timeouts: TaskTimeouts | None = None):
        self.name = name
        self.command = list(command)
        self.timeouts = timeouts

    def _run(self, workspace: Path, instructions: str, kind: TaskKind, label: str) -> TaskOutcome:
        timeout = self.timeouts.for_kind(kind) if self.timeouts else None
        logger.info("%s: running %s in %s (timeout=%s)", self.name, label, workspace, timeout)
        try:
            result = subprocess.run(
                self.command,
                cwd=workspace,
                input=instructions,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError:
            return TaskOutcome.failed(f"Agent command not found: {self.command[0]}")
        except subprocess.TimeoutExpired:
            return TaskOutcome.failed(f"{label} exceeded time limit", timed_out=True)

        output = (result.stdout or result.stderr or "").strip()
        tail = output[-500:] if output else "no output"
        if result.returncode != 0:
            return TaskOutcome.failed(f"{self.name} exited with code {result.returncode}: {tail}")
        return TaskOutcome.ok(f"{label} completed: {tail}")

    def create_baseline(self, workspace: Path, instructions: str) -> TaskOutcome:
        return self._run(Path(workspace), instructions, TaskKind.BASELINE, "Baseline creation")

    def inject_bug(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        try:
            copy_workspace(source_workspace, workspace)
        except OSError as e:
            return TaskOutcome.failed(f"Failed to copy baseline: {e}")
        return self._run(Path(workspace), instructions, TaskKind.BUG_INJECTION, "Bug injection")

    def attempt_fix(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        try:
            copy_workspace(source_workspace, workspace)
        except OSError as e:
            return TaskOutcome.failed(f"Failed to copy buggy workspace: {e}")
        return self._run(Path(workspace), instructions, TaskKind.FIX_ATTEMPT, "Fix attempt")


AGENT_COMMANDS = {
    "claude": ["claude", "-p", "--dangerously-skip-permissions"],
    "codex": ["codex", "exec", "--full-auto", "--skip-git-repo-check", "-"],
}


def available_agents() -> list[str]:
    return ["mock", *AGENT_COMMANDS]


def create_agent(name: str, timeouts: TaskTimeouts | None = None) -> AgentCapability:
    """Build an adapter by name. CLI agents kill their child process after the task budget."""
    key = name.strip().lower()
    if key in ("mock", "mock-provider"):
        return MockAgent()
    if key in AGENT_COMMANDS:
        return CliAgent(key, AGENT_COMMANDS[key], timeouts or TaskTimeouts())
    raise ValueError(f"Unknown agent: {name}. Available agents: {', '.join(available_agents())}")
