"""
Coding Arena - Orchestrator
Drives rounds end-to-end: role selection, workspaces, agent calls under a
time budget, state transitions, scoring, and the lifecycle event stream.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Mapping

from .agents import AgentCapability
from .config import TaskTimeouts
from .errors import AuditLogFailure, InfrastructureFailure, WorkspaceNotEmpty
from .events import ATTEMPT_EVENTS, EventObserver, EventSink, EventType, LifecycleEvent
from .executor import TaskExecutor
from .prompts import instructions_for
from .roster import ParticipantRoster
from .scoring import RoundReferee, ScoreKeeper
from .state import NextStep, ParticipantId, RoundState, TaskKind, TaskOutcome
from .state_machine import RoundStateMachine
from .summary import CompetitionSummary, CompetitionSummaryBuilder
from .workspace import WorkspaceAllocator, task_workspace_name

logger = logging.getLogger("coding-arena.orchestrator")


class RoundOrchestrator:
    """
    Runs a competition one round at a time on a single thread.

    Round flow:
    1. BASELINE: author creates a project in a fresh workspace
    2. BUG INJECTION: next eligible participant breaks a copy of it
    3. FIX ATTEMPT: next eligible participant repairs a copy of the broken one
    A failed baseline or injection ends the round immediately.
    """

    def __init__(
        self,
        agents: Mapping[ParticipantId | str, AgentCapability],
        workspace: WorkspaceAllocator | str | Path,
        timeouts: TaskTimeouts | None = None,
        event_sink: EventSink | None = None,
        instructions: Callable[[TaskKind], str] | None = None,
    ):
        bound = {
            (p if isinstance(p, ParticipantId) else ParticipantId(p)): agent
            for p, agent in agents.items()
        }
        self.roster = ParticipantRoster(bound)
        self.agents = bound
        self.workspaces = (
            workspace if isinstance(workspace, WorkspaceAllocator) else WorkspaceAllocator(workspace)
        )
        self.timeouts = timeouts or TaskTimeouts()
        self.executor = TaskExecutor(self.timeouts)
        self.event_sink = event_sink
        self.instructions = instructions or (lambda kind: instructions_for(kind, self.timeouts))

        self.machine = RoundStateMachine()
        self.scores = ScoreKeeper()
        self.referee = RoundReferee(self.machine, self.scores)
        self.completed_rounds = 0
        self._observers: list[EventObserver] = []

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_event(self, observer: EventObserver) -> None:
        self._observers.append(observer)

    def _emit(self, event: LifecycleEvent) -> None:
        if self.event_sink is not None:
            try:
                stored = self.event_sink.append(event)
            except Exception as e:
                raise AuditLogFailure(event.type.value, str(e)) from e
            if not stored:
                raise AuditLogFailure(event.type.value)
        for observer in self._observers:
            observer(event)

    # ------------------------------------------------------------------
    # Competition
    # ------------------------------------------------------------------

    def run(self, total_rounds: int) -> CompetitionSummary:
        if total_rounds < 0:
            raise ValueError(f"Round count must be non-negative, got {total_rounds}")
        for participant in self.roster:
            self.scores.register_participant(participant)
        logger.info(
            "Starting competition: %d rounds, participants=%s",
            total_rounds, [p.value for p in self.roster],
        )
        for round_number in range(1, total_rounds + 1):
            self.run_round(round_number)
        return self.summary()

    def summary(self) -> CompetitionSummary:
        return CompetitionSummaryBuilder.build(self.scores, self.completed_rounds)

    def next_expected_step(self) -> NextStep:
        return self.machine.next_expected_step()

    def cleanup_workspaces(self) -> None:
        self.workspaces.release_all()

    # ------------------------------------------------------------------
    # Round
    # ------------------------------------------------------------------

    def run_round(self, round_number: int) -> RoundState:
        roles = self.roster.roles_for(round_number)
        author = roles.baseline_author

        self.machine.start_round(round_number, author)
        try:
            self._emit(LifecycleEvent(
                EventType.ROUND_STARTED, round_number, baseline_author=author.value,
            ))

            baseline_dir = self._attempt(TaskKind.BASELINE, author, round_number)
            if baseline_dir is not None:
                injector = roles.bug_injector
                buggy_dir = self._attempt(
                    TaskKind.BUG_INJECTION, injector, round_number, source=baseline_dir,
                )
                if buggy_dir is not None:
                    self._attempt(TaskKind.FIX_ATTEMPT, roles.fixer, round_number, source=buggy_dir)

            finished = self.referee.finish_round()
        except InfrastructureFailure:
            logger.error("Round %d aborted by infrastructure failure", round_number)
            self.machine.reset()
            raise
        except Exception:
            logger.exception("Round %d aborted by unexpected error", round_number)
            self.machine.reset()
            raise

        self.completed_rounds += 1
        self._emit(LifecycleEvent(
            EventType.ROUND_FINISHED, round_number, scores=self.scores.snapshot(),
        ))
        return finished

    def _attempt(
        self,
        kind: TaskKind,
        participant: ParticipantId,
        round_number: int,
        source: Path | None = None,
    ) -> Path | None:
        """Run one task, emit its event, record it. Returns the workspace on success."""
        workspace, outcome = self._execute_task(kind, participant, round_number, source)
        logger.info(
            "Round %d %s by %s: %s - %s",
            round_number, kind.label, participant,
            "SUCCESS" if outcome.success else "FAILED", outcome.message,
        )
        self._emit(LifecycleEvent(
            ATTEMPT_EVENTS[kind],
            round_number,
            participant=participant.value,
            success=outcome.success,
            message=outcome.message,
            workspace_path=str(workspace),
            duration_seconds=outcome.duration_seconds,
        ))
        self._record(kind, participant, outcome.success)
        return workspace if outcome.success else None

    def _record(self, kind: TaskKind, participant: ParticipantId, success: bool) -> None:
        if kind is TaskKind.BASELINE:
            if success:
                self.referee.record_baseline_success(participant)
            else:
                self.referee.record_baseline_failure(participant)
        elif kind is TaskKind.BUG_INJECTION:
            if success:
                self.referee.record_bug_injection_success(participant)
            else:
                self.referee.record_bug_injection_failure(participant)
        else:
            self.referee.record_fix_attempt(participant, success)

    def _execute_task(
        self,
        kind: TaskKind,
        participant: ParticipantId,
        round_number: int,
        source: Path | None,
    ) -> tuple[Path, TaskOutcome]:
        name = task_workspace_name(participant, round_number, kind)
        try:
            workspace = self.workspaces.allocate(name)
        except WorkspaceNotEmpty as e:
            return e.path, TaskOutcome.failed(str(e))

        agent = self.agents[participant]
        instructions = self.instructions(kind)
        if kind is TaskKind.BASELINE:
            call = lambda: agent.create_baseline(workspace, instructions)
        elif kind is TaskKind.BUG_INJECTION:
            call = lambda: agent.inject_bug(source, workspace, instructions)
        else:
            call = lambda: agent.attempt_fix(source, workspace, instructions)
        return workspace, self.executor.run(kind, call)
