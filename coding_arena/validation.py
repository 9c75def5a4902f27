"""
Coding Arena - Contract Validation
Confirms a task's claimed outcome by running the Makefile contract.

    baseline       make setup && make test   must pass
    bug injection  make test                 must FAIL
    fix attempt    make test                 must pass
"""
from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .agents import AgentCapability
from .config import MAKE_TIMEOUT_SECONDS
from .state import TaskKind, TaskOutcome

logger = logging.getLogger("coding-arena.validation")


def _as_text(value) -> str:
    # TimeoutExpired carries bytes even when text=True was requested
    if isinstance(value, bytes):
        return value.decode(errors="replace")
    return value or ""


@dataclass
class ValidationResult:
    success: bool
    message: str
    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None


class MakefileValidator:
    """Runs `make <target>` in a workspace and reports the verdict."""

    def __init__(self, timeout: float = MAKE_TIMEOUT_SECONDS):
        self.timeout = timeout

    def _run_make(self, workspace: Path, target: str) -> ValidationResult:
        try:
            result = subprocess.run(
                ["make", target],
                cwd=workspace,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired as e:
            return ValidationResult(False, f"'make {target}' timed out after {self.timeout:g}s",
                                    stdout=_as_text(e.stdout), stderr=_as_text(e.stderr))
        except FileNotFoundError:
            return ValidationResult(False, "'make' is not installed")

        if result.returncode == 0:
            return ValidationResult(True, f"'make {target}' completed successfully",
                                    result.stdout, result.stderr, 0)
        return ValidationResult(False, f"'make {target}' exited with code {result.returncode}",
                                result.stdout, result.stderr, result.returncode)

    @staticmethod
    def _missing_makefile(workspace: Path) -> ValidationResult | None:
        if not (Path(workspace) / "Makefile").exists():
            return ValidationResult(False, "Missing required Makefile in project root")
        return None

    def validate_setup_and_test(self, workspace: Path) -> ValidationResult:
        missing = self._missing_makefile(workspace)
        if missing:
            return missing
        setup = self._run_make(Path(workspace), "setup")
        if not setup.success:
            setup.message = f"'make setup' failed: {setup.message}"
            return setup
        test = self._run_make(Path(workspace), "test")
        test.message = (
            "Makefile contract validated successfully" if test.success
            else f"'make test' failed: {test.message}"
        )
        return test

    def validate_test_only(self, workspace: Path) -> ValidationResult:
        missing = self._missing_makefile(workspace)
        if missing:
            return missing
        test = self._run_make(Path(workspace), "test")
        test.message = (
            "Tests passed successfully" if test.success
            else f"'make test' failed: {test.message}"
        )
        return test

    def expect_test_failure(self, workspace: Path) -> ValidationResult:
        missing = self._missing_makefile(workspace)
        if missing:
            return missing
        test = self.validate_test_only(workspace)
        if test.exit_code is None:
            # make never produced a verdict (not installed or timed out)
            return test
        if test.success:
            return ValidationResult(False, "Expected tests to fail after bug injection, but they passed",
                                    test.stdout, test.stderr, test.exit_code)
        return ValidationResult(True, "Bug injection successful - tests are failing as expected",
                                test.stdout, test.stderr, test.exit_code)

    def validate_phase(self, kind: TaskKind, workspace: Path) -> ValidationResult:
        if kind is TaskKind.BASELINE:
            return self.validate_setup_and_test(workspace)
        if kind is TaskKind.BUG_INJECTION:
            return self.expect_test_failure(workspace)
        if kind is TaskKind.FIX_ATTEMPT:
            return self.validate_test_only(workspace)
        raise ValueError(f"Unknown validation phase: {kind}")


class ContractCheckedAgent(AgentCapability):
    """
    Wraps an agent so a claimed success only counts once the contract agrees.

    Failed delegate outcomes pass through untouched; validation is skipped.
    """

    def __init__(self, delegate: AgentCapability, validator: MakefileValidator | None = None):
        self.delegate = delegate
        self.validator = validator or MakefileValidator()
        self.name = delegate.name

    def _checked(self, kind: TaskKind, workspace: Path, outcome: TaskOutcome) -> TaskOutcome:
        if not outcome.success:
            return outcome
        verdict = self.validator.validate_phase(kind, Path(workspace))
        logger.info("%s %s contract check: %s", self.name, kind.label, verdict.message)
        if not verdict.success:
            return TaskOutcome.failed(f"Contract validation failed: {verdict.message}")
        return TaskOutcome.ok(f"{outcome.message} ({verdict.message})")

    def create_baseline(self, workspace: Path, instructions: str) -> TaskOutcome:
        outcome = self.delegate.create_baseline(workspace, instructions)
        return self._checked(TaskKind.BASELINE, workspace, outcome)

    def inject_bug(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        outcome = self.delegate.inject_bug(source_workspace, workspace, instructions)
        return self._checked(TaskKind.BUG_INJECTION, workspace, outcome)

    def attempt_fix(self, source_workspace: Path, workspace: Path, instructions: str) -> TaskOutcome:
        outcome = self.delegate.attempt_fix(source_workspace, workspace, instructions)
        return self._checked(TaskKind.FIX_ATTEMPT, workspace, outcome)
