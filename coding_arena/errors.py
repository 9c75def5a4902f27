"""
Coding Arena - Exceptions

Task failures are not exceptions: they are recorded as a failed TaskOutcome.
Everything raised from here propagates to the orchestrator's caller, except
WorkspaceNotEmpty which the orchestrator folds into a failed task.
"""
from __future__ import annotations


class ArenaError(Exception):
    """Base class for all competition errors."""
    pass


class InvalidTransition(ArenaError):
    """A state machine or eligibility guard was violated. Never retry."""
    pass


class InfrastructureFailure(ArenaError):
    """Workspace allocation (or another environment primitive) failed."""
    pass


class AuditLogFailure(InfrastructureFailure):
    """The event sink refused a lifecycle event."""

    def __init__(self, event_type: str, reason: str = "append returned failure"):
        self.event_type = event_type
        super().__init__(f"Failed to record {event_type} event: {reason}")


class WorkspaceNotEmpty(ArenaError):
    """Target workspace already holds files from an earlier task."""

    def __init__(self, path, contents: list[str]):
        self.path = path
        self.contents = contents
        super().__init__(
            f"Workspace directory is not empty: {path}. Contains: {', '.join(contents)}"
        )
