"""Tests for task workspace allocation."""

from unittest.mock import patch

import pytest

from coding_arena.errors import InfrastructureFailure, WorkspaceNotEmpty
from coding_arena.state import ParticipantId, TaskKind
from coding_arena.workspace import WorkspaceAllocator, task_workspace_name


class TestTaskWorkspaceName:
    """Tests for workspace naming."""

    def test_name_format(self):
        """Test names combine participant, round, and task kind."""
        alice = ParticipantId("alice")

        assert task_workspace_name(alice, 1, TaskKind.BASELINE) == "alice-round1-baseline"
        assert task_workspace_name(alice, 2, TaskKind.BUG_INJECTION) == "alice-round2-buginjection"
        assert task_workspace_name(alice, 3, TaskKind.FIX_ATTEMPT) == "alice-round3-fixattempt"

    def test_names_unique(self):
        """Test every (participant, round, kind) triple maps to its own name."""
        names = {
            task_workspace_name(ParticipantId(p), n, kind)
            for p in ("A", "B", "C")
            for n in range(1, 4)
            for kind in TaskKind
        }

        assert len(names) == 27

    def test_unsafe_participant_is_single_component(self):
        """Test separators in a participant never produce nested or escaping paths."""
        for token in ("team/a", "../up", "a\\b", "x y"):
            name = task_workspace_name(ParticipantId(token), 1, TaskKind.BASELINE)
            assert "/" not in name and "\\" not in name and " " not in name
            assert name.endswith("-round1-baseline")

    def test_sanitized_names_stay_unique(self):
        """Test a sanitized token never collides with the literal replacement."""
        escaped = task_workspace_name(ParticipantId("team/a"), 1, TaskKind.BASELINE)
        literal = task_workspace_name(ParticipantId("team_a"), 1, TaskKind.BASELINE)

        assert literal == "team_a-round1-baseline"
        assert escaped != literal
        assert escaped.startswith("team_a-")

    def test_unsafe_participant_allocates_under_root(self, tmp_path):
        """Test the allocator accepts workspace names built from unsafe tokens."""
        allocator = WorkspaceAllocator(tmp_path)
        name = task_workspace_name(ParticipantId("team/a"), 1, TaskKind.FIX_ATTEMPT)

        path = allocator.allocate(name)

        assert path.parent == tmp_path.resolve()


class TestWorkspaceAllocator:
    """Tests for WorkspaceAllocator."""

    def test_allocate_creates_directory(self, tmp_path):
        """Test allocate creates the root and an empty task dir."""
        allocator = WorkspaceAllocator(tmp_path / "arena")

        path = allocator.allocate("alice-round1-baseline")

        assert path.is_dir()
        assert list(path.iterdir()) == []
        assert path.parent == (tmp_path / "arena").resolve()
        assert allocator.allocated == [path]

    def test_allocate_existing_empty_directory(self, tmp_path):
        """Test an existing empty directory is reused."""
        (tmp_path / "ws").mkdir()
        allocator = WorkspaceAllocator(tmp_path)

        assert allocator.allocate("ws").is_dir()

    def test_non_empty_directory_rejected(self, tmp_path):
        """Test stale contents are never overwritten."""
        (tmp_path / "ws").mkdir()
        (tmp_path / "ws" / "b.txt").write_text("x")
        (tmp_path / "ws" / "a.txt").write_text("x")
        allocator = WorkspaceAllocator(tmp_path)

        with pytest.raises(WorkspaceNotEmpty) as exc_info:
            allocator.allocate("ws")

        assert exc_info.value.contents == ["a.txt", "b.txt"]
        assert "a.txt, b.txt" in str(exc_info.value)
        assert (tmp_path / "ws" / "a.txt").exists()

    def test_name_cannot_escape_root(self, tmp_path):
        """Test path traversal is refused."""
        allocator = WorkspaceAllocator(tmp_path / "arena")

        with pytest.raises(ValueError):
            allocator.allocate("../outside")

    def test_mkdir_failure_is_infrastructure_failure(self, tmp_path):
        """Test filesystem errors surface as InfrastructureFailure."""
        allocator = WorkspaceAllocator(tmp_path)

        with patch("pathlib.Path.mkdir", side_effect=PermissionError("denied")):
            with pytest.raises(InfrastructureFailure, match="denied"):
                allocator.allocate("ws")

    def test_release_removes_tree(self, tmp_path):
        """Test release deletes recursively."""
        allocator = WorkspaceAllocator(tmp_path)
        path = allocator.allocate("ws")
        (path / "nested").mkdir()
        (path / "nested" / "f.txt").write_text("x")

        allocator.release(path)

        assert not path.exists()

    def test_release_missing_path_is_silent(self, tmp_path):
        """Test releasing a missing directory never raises."""
        WorkspaceAllocator(tmp_path).release(tmp_path / "missing")

    def test_release_all(self, tmp_path):
        """Test release_all removes every allocated workspace."""
        allocator = WorkspaceAllocator(tmp_path)
        paths = [allocator.allocate(name) for name in ("a", "b")]

        allocator.release_all()

        assert not any(p.exists() for p in paths)
        assert allocator.allocated == []
