"""
Coding Arena - Scoring System
Competition-lifetime ledger plus the per-round scoring rules.
"""
from __future__ import annotations

import logging
from dataclasses import replace

from .config import (
    BASELINE_FAILURE_PENALTY,
    BUG_INJECTION_FAILURE_PENALTY,
    FIX_SUCCESS_REWARD,
    UNFIXED_BUG_REWARD,
)
from .errors import InvalidTransition
from .state import STAT_NAMES, ParticipantId, RoundState, ScoreCard
from .state_machine import RoundStateMachine
from .validator import ParticipantValidator

logger = logging.getLogger("coding-arena.scoring")


class ScoreKeeper:
    """In-memory point ledger. Never reset between rounds."""

    def __init__(self):
        self._scores: dict[ParticipantId, int] = {}
        self._cards: dict[ParticipantId, ScoreCard] = {}

    def register_participant(self, participant: ParticipantId) -> None:
        self._scores.setdefault(participant, 0)
        self._cards.setdefault(participant, ScoreCard())

    def adjust_score(self, participant: ParticipantId, delta: int) -> None:
        self._scores[participant] = self._scores.get(participant, 0) + delta
        self._cards.setdefault(participant, ScoreCard())

    def increment_stat(self, participant: ParticipantId, stat_name: str, amount: int = 1) -> None:
        if stat_name not in STAT_NAMES:
            raise ValueError(f"Unknown stat: {stat_name}. Valid stats: {', '.join(STAT_NAMES)}")
        if amount < 0:
            raise ValueError("Stat increments must be non-negative")
        card = self._cards.get(participant, ScoreCard())
        self._cards[participant] = replace(card, **{stat_name: getattr(card, stat_name) + amount})
        self._scores.setdefault(participant, 0)

    def get_score(self, participant: ParticipantId) -> int:
        return self._scores.get(participant, 0)

    def get_score_card(self, participant: ParticipantId) -> ScoreCard:
        return self._cards.get(participant, ScoreCard())

    def get_all_participants(self) -> list[ParticipantId]:
        """Everyone ever touched, in first-touch order."""
        seen = dict.fromkeys(self._scores)
        seen.update(dict.fromkeys(self._cards))
        return list(seen)

    def snapshot(self) -> dict[str, int]:
        return {p.value: score for p, score in self._scores.items()}


class RoundReferee:
    """
    Applies the scoring rules on top of the state machine.

    Each record_* call validates eligibility, transitions, and only then
    scores, so a rejected call leaves both ledger and machine untouched.
    """

    def __init__(self, machine: RoundStateMachine, scores: ScoreKeeper):
        self.machine = machine
        self.scores = scores

    def _round(self) -> RoundState | None:
        return self.machine.current_round

    def record_baseline_success(self, participant: ParticipantId) -> None:
        ParticipantValidator.validate_baseline_author(participant, self._round())
        self.machine.record_baseline_success()

    def record_baseline_failure(self, participant: ParticipantId) -> None:
        ParticipantValidator.validate_baseline_author(participant, self._round())
        self.machine.record_baseline_failure()
        self.scores.adjust_score(participant, BASELINE_FAILURE_PENALTY)
        self.scores.increment_stat(participant, "baseline_failures")

    def record_bug_injection_success(self, participant: ParticipantId) -> None:
        ParticipantValidator.validate_not_baseline_author(participant, self._round())
        self.machine.record_bug_injection_success(participant)

    def record_bug_injection_failure(self, participant: ParticipantId) -> None:
        ParticipantValidator.validate_not_baseline_author(participant, self._round())
        self.machine.record_bug_injection_failure()
        self.scores.adjust_score(participant, BUG_INJECTION_FAILURE_PENALTY)
        self.scores.increment_stat(participant, "bug_injection_failures")

    def record_fix_attempt(self, participant: ParticipantId, success: bool) -> None:
        current = self._round()
        ParticipantValidator.validate_not_baseline_author(participant, current)
        ParticipantValidator.validate_not_bug_author(participant, current)
        # Only the first successful fixer of the round earns the point.
        first_success = success and current is not None and not current.has_successful_fix()
        self.machine.record_fix_attempt(participant, success)
        if first_success:
            self.scores.adjust_score(participant, FIX_SUCCESS_REWARD)
            self.scores.increment_stat(participant, "fixes")

    def finish_round(self) -> RoundState:
        """Credit the bug author for every failed fix, then seal and reset."""
        self.machine.finish_round()
        current = self._round()
        if current is None:
            raise InvalidTransition("Invalid state: no active round to finish")
        unfixed = current.failed_fix_count()
        if current.bug_injection_success and current.bug_author is not None and unfixed:
            self.scores.adjust_score(current.bug_author, UNFIXED_BUG_REWARD * unfixed)
            self.scores.increment_stat(current.bug_author, "bugs_solved", unfixed)
        logger.info(
            "Round %d finished: baseline=%s injection=%s fixes=%s",
            current.round_number,
            current.baseline_success,
            current.bug_injection_success,
            {p.value: ok for p, ok in current.fix_attempts.items()},
        )
        self.machine.reset()
        return current
