"""
Coding Arena - Summary and Reports
Final scoreboard, audit-log replay, and Markdown/JSON report generation.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

from .events import EventType, LifecycleEvent
from .scoring import RoundReferee, ScoreKeeper
from .state import ParticipantId, ScoreCard, TaskKind
from .state_machine import RoundStateMachine


@dataclass(frozen=True)
class ParticipantScore:
    participant_id: str
    score: int
    details: ScoreCard

    def to_dict(self) -> dict[str, Any]:
        return {"participant_id": self.participant_id, "score": self.score, "details": self.details.to_dict()}


@dataclass(frozen=True)
class CompetitionSummary:
    participant_scores: list[ParticipantScore] = field(default_factory=list)
    total_rounds: int = 0

    @property
    def leader(self) -> ParticipantScore | None:
        return self.participant_scores[0] if self.participant_scores else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "participant_scores": [p.to_dict() for p in self.participant_scores],
            "total_rounds": self.total_rounds,
        }


class CompetitionSummaryBuilder:
    """Projects the ledger into a scoreboard sorted by score, ties in encounter order."""

    @staticmethod
    def build(scores: ScoreKeeper, total_rounds: int) -> CompetitionSummary:
        board = [
            ParticipantScore(p.value, scores.get_score(p), scores.get_score_card(p))
            for p in scores.get_all_participants()
        ]
        board.sort(key=lambda entry: -entry.score)
        return CompetitionSummary(participant_scores=board, total_rounds=total_rounds)


def format_summary_json(summary: CompetitionSummary) -> str:
    return json.dumps(summary.to_dict(), indent=2)


def replay_events(events: Iterable[LifecycleEvent]) -> CompetitionSummary:
    """
    Rebuild the scoreboard from an audit log by replaying it through the
    state machine and scoring rules. An inconsistent log raises InvalidTransition.
    """
    machine = RoundStateMachine()
    scores = ScoreKeeper()
    referee = RoundReferee(machine, scores)
    completed = 0

    for event in events:
        participant = ParticipantId(event.participant) if event.participant else None
        if participant is not None:
            scores.register_participant(participant)

        if event.type is EventType.ROUND_STARTED:
            author = ParticipantId(event.baseline_author)
            scores.register_participant(author)
            machine.start_round(event.round, author)
        elif event.type is EventType.BASELINE_ATTEMPT:
            if event.success:
                referee.record_baseline_success(participant)
            else:
                referee.record_baseline_failure(participant)
        elif event.type is EventType.BUG_INJECTION_ATTEMPT:
            if event.success:
                referee.record_bug_injection_success(participant)
            else:
                referee.record_bug_injection_failure(participant)
        elif event.type is EventType.FIX_ATTEMPT:
            referee.record_fix_attempt(participant, bool(event.success))
        elif event.type is EventType.ROUND_FINISHED:
            # participants who sat the round out still appear on the board
            for name in event.scores or {}:
                scores.register_participant(ParticipantId(name))
            referee.finish_round()
            completed += 1

    return CompetitionSummaryBuilder.build(scores, completed)


def phase_statistics(events: Iterable[LifecycleEvent]) -> dict[str, Any]:
    """Success counts over attempt events, overall and per participant."""
    attempts = [e for e in events if e.task_kind is not None]
    total = len(attempts)
    successful = sum(1 for e in attempts if e.success)

    per_participant: dict[str, dict[str, Any]] = {}
    for event in attempts:
        stats = per_participant.setdefault(event.participant, {
            "total_phases": 0,
            "successful_phases": 0,
            "phases": {kind.value: {"attempts": 0, "successes": 0} for kind in TaskKind},
        })
        stats["total_phases"] += 1
        by_kind = stats["phases"][event.task_kind.value]
        by_kind["attempts"] += 1
        if event.success:
            stats["successful_phases"] += 1
            by_kind["successes"] += 1

    for stats in per_participant.values():
        stats["success_rate"] = stats["successful_phases"] / stats["total_phases"]

    return {
        "total_phases": total,
        "successful_phases": successful,
        "failed_phases": total - successful,
        "success_rate": successful / total if total else 0.0,
        "participant_stats": dict(sorted(per_participant.items())),
    }


def _mark(success: bool | None) -> str:
    if success is None:
        return "-"
    return "pass" if success else "FAIL"


def generate_report(summary: CompetitionSummary, events: list[LifecycleEvent] | None = None) -> str:
    """Generate a competition report in Markdown format."""
    leader = summary.leader
    headline = (
        f"**Leader: {leader.participant_id}** ({leader.score} points)" if leader else "No participants"
    )

    report = f"""# Coding Arena Report

## Executive Summary

{headline}

| Metric | Value |
|--------|-------|
| Rounds Completed | {summary.total_rounds} |
| Participants | {len(summary.participant_scores)} |

## Scoreboard

| Rank | Participant | Score | Fixes | Unfixed Bugs | Baseline Failures | Injection Failures |
|------|-------------|-------|-------|--------------|-------------------|--------------------|
"""
    for rank, entry in enumerate(summary.participant_scores, 1):
        d = entry.details
        report += (
            f"| {rank} | {entry.participant_id} | {entry.score} | {d.fixes} | {d.bugs_solved} "
            f"| {d.baseline_failures} | {d.bug_injection_failures} |\n"
        )

    if events:
        rounds: dict[int, dict[TaskKind, LifecycleEvent]] = {}
        for event in events:
            if event.task_kind is not None:
                rounds.setdefault(event.round, {})[event.task_kind] = event

        report += """
## Round-by-Round Summary

| Round | Baseline | Bug Injection | Fix Attempt |
|-------|----------|---------------|-------------|
"""
        for number in sorted(rounds):
            cells = []
            for kind in TaskKind:
                event = rounds[number].get(kind)
                cells.append(f"{event.participant} ({_mark(event.success)})" if event else "-")
            report += f"| {number} | " + " | ".join(cells) + " |\n"

        stats = phase_statistics(events)
        report += f"""
## Phase Statistics

Total Phases: {stats['total_phases']}
Successful: {stats['successful_phases']}
Failed: {stats['failed_phases']}
Success Rate: {stats['success_rate']:.1%}
"""

    report += f"""
---
Generated: {datetime.now().isoformat()}
"""
    return report
