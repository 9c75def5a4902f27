"""Tests for agent adapters."""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from coding_arena.agents import (
    AGENT_COMMANDS,
    BUGGY_LINE,
    CliAgent,
    MockAgent,
    create_agent,
)
from coding_arena.config import TaskTimeouts
from coding_arena.state import TaskKind


@pytest.fixture
def dirs(tmp_path):
    paths = {name: tmp_path / name for name in ("baseline", "buggy", "fixed")}
    for path in paths.values():
        path.mkdir()
    return paths


class TestMockAgent:
    """Tests for MockAgent."""

    def test_baseline_writes_project(self, dirs):
        """Test baseline creates source, tests, and Makefile."""
        agent = MockAgent()

        outcome = agent.create_baseline(dirs["baseline"], "instructions")

        assert outcome.success is True
        assert "successfully" in outcome.message
        assert (dirs["baseline"] / "calculator.py").exists()
        assert (dirs["baseline"] / "test_calculator.py").exists()
        makefile = (dirs["baseline"] / "Makefile").read_text()
        assert "setup:" in makefile and "test:" in makefile

    def test_inject_and_fix(self, dirs):
        """Test injection breaks a copy and the fix repairs another copy."""
        agent = MockAgent()
        agent.create_baseline(dirs["baseline"], "")

        injected = agent.inject_bug(dirs["baseline"], dirs["buggy"], "")
        fixed = agent.attempt_fix(dirs["buggy"], dirs["fixed"], "")

        assert injected.success is True
        assert fixed.success is True
        assert BUGGY_LINE in (dirs["buggy"] / "calculator.py").read_text()
        assert BUGGY_LINE not in (dirs["fixed"] / "calculator.py").read_text()
        assert "return a + b" in (dirs["fixed"] / "calculator.py").read_text()
        # source workspaces are never modified
        assert BUGGY_LINE not in (dirs["baseline"] / "calculator.py").read_text()

    def test_inject_without_baseline_fails(self, dirs):
        """Test injection into an empty baseline fails."""
        outcome = MockAgent().inject_bug(dirs["baseline"], dirs["buggy"], "")

        assert outcome.success is False

    def test_fix_without_bug_fails(self, dirs):
        """Test fixing an unbroken project fails."""
        agent = MockAgent()
        agent.create_baseline(dirs["baseline"], "")

        outcome = agent.attempt_fix(dirs["baseline"], dirs["fixed"], "")

        assert outcome.success is False
        assert "Could not locate" in outcome.message

    def test_configured_failure(self, dirs):
        """Test fail_on makes the agent fail without touching the workspace."""
        agent = MockAgent(fail_on={TaskKind.BASELINE})

        outcome = agent.create_baseline(dirs["baseline"], "")

        assert outcome.success is False
        assert "configured to fail baseline" in outcome.message
        assert list(dirs["baseline"].iterdir()) == []

    def test_records_calls(self, dirs):
        """Test calls are recorded with their workspace."""
        agent = MockAgent()
        agent.create_baseline(dirs["baseline"], "")

        assert agent.calls == [(TaskKind.BASELINE, dirs["baseline"])]


class TestCliAgent:
    """Tests for CliAgent."""

    @patch("coding_arena.agents.subprocess.run")
    def test_success(self, mock_run, tmp_path):
        """Test exit code 0 is a success and instructions go on stdin."""
        mock_run.return_value = MagicMock(returncode=0, stdout="built it", stderr="")
        agent = CliAgent("claude", ["claude", "-p"])

        outcome = agent.create_baseline(tmp_path, "do the thing")

        assert outcome.success is True
        assert "built it" in outcome.message
        kwargs = mock_run.call_args.kwargs
        assert kwargs["input"] == "do the thing"
        assert kwargs["cwd"] == tmp_path

    @patch("coding_arena.agents.subprocess.run")
    def test_nonzero_exit(self, mock_run, tmp_path):
        """Test a non-zero exit is a failure."""
        mock_run.return_value = MagicMock(returncode=2, stdout="", stderr="rate limited")

        outcome = CliAgent("codex", ["codex"]).create_baseline(tmp_path, "")

        assert outcome.success is False
        assert "exited with code 2" in outcome.message
        assert "rate limited" in outcome.message

    @patch("coding_arena.agents.subprocess.run", side_effect=FileNotFoundError)
    def test_missing_binary(self, mock_run, tmp_path):
        """Test a missing CLI is a failure, not an exception."""
        outcome = CliAgent("claude", ["claude"]).create_baseline(tmp_path, "")

        assert outcome.success is False
        assert "not found" in outcome.message

    @patch("coding_arena.agents.subprocess.run")
    def test_subprocess_timeout(self, mock_run, tmp_path):
        """Test the CLI's own timeout is reported as timed out."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="claude", timeout=1)

        outcome = CliAgent("claude", ["claude"], TaskTimeouts(baseline=1)).create_baseline(tmp_path, "")

        assert outcome.success is False
        assert outcome.timed_out is True

    @patch("coding_arena.agents.subprocess.run")
    def test_inject_copies_source_first(self, mock_run, dirs):
        """Test the agent runs in a copy of the source workspace."""
        (dirs["baseline"] / "main.py").write_text("print('hi')\n")
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")

        outcome = CliAgent("claude", ["claude"]).inject_bug(dirs["baseline"], dirs["buggy"], "")

        assert outcome.success is True
        assert (dirs["buggy"] / "main.py").read_text() == "print('hi')\n"
        assert mock_run.call_args.kwargs["cwd"] == dirs["buggy"]

    @patch("coding_arena.agents.subprocess.run")
    def test_child_killed_after_task_budget(self, mock_run, dirs):
        """Test each task passes its own budget to the agent process."""
        mock_run.return_value = MagicMock(returncode=0, stdout="", stderr="")
        agent = CliAgent("codex", ["codex"], TaskTimeouts(baseline=30, bug_injection=20, fix_attempt=10))

        agent.create_baseline(dirs["baseline"], "")
        agent.inject_bug(dirs["baseline"], dirs["buggy"], "")
        agent.attempt_fix(dirs["buggy"], dirs["fixed"], "")

        assert [c.kwargs["timeout"] for c in mock_run.call_args_list] == [30, 20, 10]


class TestCreateAgent:
    """Tests for create_agent."""

    def test_mock(self):
        """Test mock aliases."""
        assert isinstance(create_agent("mock"), MockAgent)
        assert isinstance(create_agent("Mock-Provider"), MockAgent)

    def test_cli_agents(self):
        """Test known CLI agents."""
        for name, command in AGENT_COMMANDS.items():
            agent = create_agent(name)
            assert isinstance(agent, CliAgent)
            assert agent.command == command

    def test_cli_agents_get_task_budgets(self):
        """Test CLI agents are never built without a subprocess timeout."""
        timeouts = TaskTimeouts(baseline=12, bug_injection=8, fix_attempt=4)

        assert create_agent("claude", timeouts).timeouts == timeouts
        assert create_agent("codex").timeouts == TaskTimeouts()

    def test_unknown(self):
        """Test unknown names list the available agents."""
        with pytest.raises(ValueError, match="Available agents: mock"):
            create_agent("gpt-9")
