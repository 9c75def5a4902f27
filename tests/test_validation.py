"""Tests for Makefile contract validation."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from coding_arena.agents import MockAgent
from coding_arena.state import TaskKind, TaskOutcome
from coding_arena.validation import ContractCheckedAgent, MakefileValidator, ValidationResult


def _completed(returncode, stdout="", stderr=""):
    return MagicMock(returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def project(tmp_path):
    (tmp_path / "Makefile").write_text("setup:\n\ttrue\ntest:\n\ttrue\n")
    return tmp_path


class TestMakefileValidator:
    """Tests for MakefileValidator."""

    def test_missing_makefile(self, tmp_path):
        """Test every phase fails without a Makefile."""
        validator = MakefileValidator()

        for kind in TaskKind:
            result = validator.validate_phase(kind, tmp_path)
            assert result.success is False
            assert "Missing required Makefile" in result.message

    @patch("coding_arena.validation.subprocess.run")
    def test_baseline_runs_setup_then_test(self, mock_run, project):
        """Test baseline validation runs both targets in order."""
        mock_run.return_value = _completed(0)

        result = MakefileValidator().validate_phase(TaskKind.BASELINE, project)

        assert result.success is True
        assert [c.args[0] for c in mock_run.call_args_list] == [["make", "setup"], ["make", "test"]]

    @patch("coding_arena.validation.subprocess.run")
    def test_baseline_setup_failure_skips_test(self, mock_run, project):
        """Test a failing setup stops validation."""
        mock_run.return_value = _completed(2, stderr="no rule")

        result = MakefileValidator().validate_phase(TaskKind.BASELINE, project)

        assert result.success is False
        assert "'make setup' failed" in result.message
        assert mock_run.call_count == 1

    @patch("coding_arena.validation.subprocess.run")
    def test_bug_injection_requires_failing_tests(self, mock_run, project):
        """Test injection succeeds only when make test fails."""
        validator = MakefileValidator()

        mock_run.return_value = _completed(1, stdout="FAILED")
        assert validator.validate_phase(TaskKind.BUG_INJECTION, project).success is True

        mock_run.return_value = _completed(0)
        result = validator.validate_phase(TaskKind.BUG_INJECTION, project)
        assert result.success is False
        assert "passed" in result.message

    @patch("coding_arena.validation.subprocess.run")
    def test_bug_injection_timeout_is_not_success(self, mock_run, project):
        """Test a hung test run does not count as a failing test suite."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="make", timeout=1, output=b"partial")

        result = MakefileValidator(timeout=1).validate_phase(TaskKind.BUG_INJECTION, project)

        assert result.success is False
        assert "timed out" in result.message
        assert result.stdout == "partial"

    @patch("coding_arena.validation.subprocess.run", side_effect=FileNotFoundError)
    def test_make_not_installed(self, mock_run, project):
        """Test a missing make binary is a failure."""
        result = MakefileValidator().validate_phase(TaskKind.FIX_ATTEMPT, project)

        assert result.success is False
        assert "not installed" in result.message

    @patch("coding_arena.validation.subprocess.run")
    def test_fix_requires_passing_tests(self, mock_run, project):
        """Test fix validation mirrors make test."""
        mock_run.return_value = _completed(0)

        assert MakefileValidator().validate_phase(TaskKind.FIX_ATTEMPT, project).success is True


class TestContractCheckedAgent:
    """Tests for ContractCheckedAgent."""

    def test_success_confirmed(self, tmp_path):
        """Test a confirmed success keeps the delegate message."""
        validator = MagicMock()
        validator.validate_phase.return_value = ValidationResult(True, "contract ok")
        agent = ContractCheckedAgent(MockAgent(), validator)

        outcome = agent.create_baseline(tmp_path, "")

        assert outcome.success is True
        assert "contract ok" in outcome.message
        validator.validate_phase.assert_called_once_with(TaskKind.BASELINE, tmp_path)

    def test_success_overturned(self, tmp_path):
        """Test a claimed success is downgraded when validation fails."""
        validator = MagicMock()
        validator.validate_phase.return_value = ValidationResult(False, "tests failed")
        agent = ContractCheckedAgent(MockAgent(), validator)

        outcome = agent.create_baseline(tmp_path, "")

        assert outcome.success is False
        assert outcome.message == "Contract validation failed: tests failed"

    def test_failure_not_validated(self, tmp_path):
        """Test delegate failures pass through without running make."""
        validator = MagicMock()
        delegate = MagicMock()
        delegate.name = "stub"
        delegate.attempt_fix.return_value = TaskOutcome.failed("gave up")
        agent = ContractCheckedAgent(delegate, validator)

        outcome = agent.attempt_fix(tmp_path, tmp_path, "")

        assert outcome.message == "gave up"
        validator.validate_phase.assert_not_called()

    def test_mock_project_honors_contract(self, tmp_path):
        """Test the mock baseline's Makefile declares both contract targets."""
        MockAgent().create_baseline(tmp_path, "")

        makefile = (tmp_path / "Makefile").read_text()

        assert makefile.startswith("setup:")
        assert "\ntest:\n" in makefile
