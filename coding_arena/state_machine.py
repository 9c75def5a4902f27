"""
Coding Arena - Round State Machine
Enforces strict phase sequencing within a round.

    IDLE -> BASELINE -> BUG_INJECTION -> FIX_ATTEMPTS -> ROUND_COMPLETE -> (reset) IDLE
                 \\              \\
                  +--------------+--> ROUND_COMPLETE   (baseline / injection failure)
"""
from __future__ import annotations

import logging
from dataclasses import replace

from .errors import InvalidTransition
from .state import NextStep, NextStepType, ParticipantId, RoundPhase, RoundState

logger = logging.getLogger("coding-arena.state-machine")


class RoundStateMachine:
    """Gates every round mutation behind the active phase."""

    def __init__(self):
        self._phase = RoundPhase.IDLE
        self._round: RoundState | None = None

    @property
    def phase(self) -> RoundPhase:
        return self._phase

    @property
    def current_round(self) -> RoundState | None:
        return self._round

    @property
    def round_number(self) -> int:
        return self._round.round_number if self._round else 0

    def _require(self, *allowed: RoundPhase, reason: str) -> RoundState | None:
        if self._phase not in allowed:
            raise InvalidTransition(f"{reason} (current phase: {self._phase.value})")
        return self._round

    def _transition(self, phase: RoundPhase, round_state: RoundState | None) -> None:
        logger.debug("Phase %s -> %s", self._phase.value, phase.value)
        self._phase = phase
        self._round = round_state

    def start_round(self, round_number: int, baseline_author: ParticipantId) -> None:
        self._require(RoundPhase.IDLE, reason="Cannot start round while another is active")
        if round_number < 1:
            raise InvalidTransition(f"Round number must be >= 1, got {round_number}")
        self._transition(
            RoundPhase.BASELINE,
            RoundState(round_number=round_number, baseline_author=baseline_author),
        )

    def record_baseline_success(self) -> None:
        current = self._require(RoundPhase.BASELINE, reason="Not in baseline phase")
        self._transition(RoundPhase.BUG_INJECTION, replace(current, baseline_success=True))

    def record_baseline_failure(self) -> None:
        current = self._require(RoundPhase.BASELINE, reason="Not in baseline phase")
        self._transition(RoundPhase.ROUND_COMPLETE, replace(current, baseline_success=False))

    def record_bug_injection_success(self, author: ParticipantId) -> None:
        current = self._require(RoundPhase.BUG_INJECTION, reason="Not in bug injection phase")
        self._transition(
            RoundPhase.FIX_ATTEMPTS,
            replace(current, bug_author=author, bug_injection_success=True),
        )

    def record_bug_injection_failure(self) -> None:
        current = self._require(RoundPhase.BUG_INJECTION, reason="Not in bug injection phase")
        self._transition(
            RoundPhase.ROUND_COMPLETE, replace(current, bug_injection_success=False)
        )

    def record_fix_attempt(self, participant: ParticipantId, success: bool) -> None:
        current = self._require(RoundPhase.FIX_ATTEMPTS, reason="Not in fix attempts phase")
        # A repeated attempt by the same participant overwrites the earlier outcome.
        attempts = dict(current.fix_attempts)
        attempts[participant] = success
        self._transition(RoundPhase.FIX_ATTEMPTS, replace(current, fix_attempts=attempts))

    def finish_round(self) -> None:
        current = self._require(
            RoundPhase.FIX_ATTEMPTS,
            RoundPhase.ROUND_COMPLETE,
            reason="Cannot finish incomplete round",
        )
        self._transition(RoundPhase.ROUND_COMPLETE, current)

    def reset(self) -> None:
        self._transition(RoundPhase.IDLE, None)

    def next_expected_step(self) -> NextStep:
        """Describe what the machine is waiting for. Pure; no side effects."""
        phase, current = self._phase, self._round

        if phase is RoundPhase.IDLE:
            return NextStep(
                type=NextStepType.WAITING_FOR_ROUND_START,
                description="Game is ready to start a new round",
            )
        if phase is RoundPhase.BASELINE:
            return NextStep(
                type=NextStepType.WAITING_FOR_BASELINE,
                description="Waiting for baseline author to create baseline",
                expected_participant=current.baseline_author.value,
            )
        if phase is RoundPhase.BUG_INJECTION:
            return NextStep(
                type=NextStepType.WAITING_FOR_BUG_INJECTION,
                description="Waiting for participants to inject bugs",
                excluded_participant=current.baseline_author.value,
            )
        if phase is RoundPhase.FIX_ATTEMPTS:
            if current.fix_attempts:
                return NextStep(
                    type=NextStepType.READY_TO_FINISH_ROUND,
                    description="Round can be finished - bug injection completed and fix attempts made",
                )
            return NextStep(
                type=NextStepType.WAITING_FOR_FIX_ATTEMPTS,
                description="Waiting for participants to attempt bug fixes",
                excluded_participants=(current.baseline_author.value, current.bug_author.value),
            )
        if phase is RoundPhase.ROUND_COMPLETE:
            if not current.baseline_success:
                description = "Round can be finished - baseline failed"
            elif not current.bug_injection_success:
                description = "Round can be finished - bug injection failed"
            else:
                description = "Round can be finished - bug injection completed and fix attempts made"
            return NextStep(type=NextStepType.READY_TO_FINISH_ROUND, description=description)

        raise AssertionError(f"Unhandled phase: {phase}")
