"""
Coding Arena - Workspaces
Isolated, uniquely named directories for every task of every round.
"""
from __future__ import annotations

import hashlib
import logging
import re
import shutil
from pathlib import Path

from .config import WORKSPACE_ROOT
from .errors import InfrastructureFailure, WorkspaceNotEmpty
from .state import ParticipantId, TaskKind

logger = logging.getLogger("coding-arena.workspace")


SAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_path_component(value: str) -> str:
    """
    Map an arbitrary participant token onto a single directory-name component.

    Tokens that need no escaping are returned unchanged. Anything else has its
    unsafe characters replaced and a short digest of the original appended, so
    "team/a" and "team_a" never share a directory.
    """
    cleaned = SAFE_NAME_CHARS.sub("_", value)
    if cleaned == value:
        return value
    digest = hashlib.sha1(value.encode("utf-8")).hexdigest()[:8]
    return f"{cleaned}-{digest}"


def task_workspace_name(participant: ParticipantId, round_number: int, kind: TaskKind) -> str:
    """Unique per (participant, round, task kind)."""
    return f"{safe_path_component(participant.value)}-round{round_number}-{kind.slug}"


class WorkspaceAllocator:
    """
    Creates and removes task workspaces under a shared root.

    The root itself is only a namespace; each task owns exactly one child
    directory and no two tasks ever share one.
    """

    def __init__(self, root: str | Path = WORKSPACE_ROOT):
        self.root = Path(root).resolve()
        self.allocated: list[Path] = []

    def path_for(self, name: str) -> Path:
        path = (self.root / name).resolve()
        if path.parent != self.root:
            raise ValueError(f"Workspace name escapes the workspace root: {name!r}")
        return path

    def allocate(self, name: str) -> Path:
        """
        Create a fresh empty directory.

        Raises:
            WorkspaceNotEmpty: the directory already exists and has contents
            InfrastructureFailure: the filesystem refused to create it
        """
        path = self.path_for(name)
        try:
            contents = sorted(item.name for item in path.iterdir()) if path.is_dir() else []
        except OSError as e:
            raise InfrastructureFailure(f"Failed to inspect workspace {path}: {e}") from e
        if contents:
            raise WorkspaceNotEmpty(path, contents)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InfrastructureFailure(f"Failed to create workspace {path}: {e}") from e
        self.allocated.append(path)
        logger.debug("Allocated workspace %s", path)
        return path

    def release(self, path: str | Path) -> None:
        """Best-effort recursive delete. Never raises."""
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to remove workspace %s: %s", path, e)

    def release_all(self) -> None:
        while self.allocated:
            self.release(self.allocated.pop())
