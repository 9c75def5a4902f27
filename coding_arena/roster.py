"""
Coding Arena - Participant Roster
Ordered participant list with per-round role rotation.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .config import MIN_PARTICIPANTS
from .state import ParticipantId


@dataclass(frozen=True)
class RoundRoles:
    baseline_author: ParticipantId
    bug_injector: ParticipantId
    fixer: ParticipantId


class ParticipantRoster:
    """Participants in registration order; roles rotate by round index."""

    def __init__(self, participants: Iterable[ParticipantId | str]):
        members = [p if isinstance(p, ParticipantId) else ParticipantId(p) for p in participants]
        if any(p.is_system() for p in members):
            raise ValueError("SYSTEM is reserved and cannot compete")
        if len(set(members)) != len(members):
            raise ValueError("Participant identifiers must be unique")
        if len(members) < MIN_PARTICIPANTS:
            raise ValueError(
                f"At least {MIN_PARTICIPANTS} participants are required, got {len(members)}"
            )
        self._members = tuple(members)

    @property
    def participants(self) -> tuple[ParticipantId, ...]:
        return self._members

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self):
        return iter(self._members)

    def baseline_author(self, round_number: int) -> ParticipantId:
        if round_number < 1:
            raise ValueError(f"Round number must be >= 1, got {round_number}")
        return self._members[(round_number - 1) % len(self._members)]

    def _rotation_after(self, participant: ParticipantId) -> list[ParticipantId]:
        """Members in roster order, starting just after `participant` and wrapping."""
        start = self._members.index(participant) + 1
        return list(self._members[start:] + self._members[:start])

    def bug_injector(self, baseline_author: ParticipantId) -> ParticipantId:
        return next(p for p in self._rotation_after(baseline_author) if p != baseline_author)

    def fixer(self, baseline_author: ParticipantId, bug_injector: ParticipantId) -> ParticipantId:
        return next(
            p for p in self._rotation_after(baseline_author)
            if p not in (baseline_author, bug_injector)
        )

    def roles_for(self, round_number: int) -> RoundRoles:
        author = self.baseline_author(round_number)
        injector = self.bug_injector(author)
        return RoundRoles(author, injector, self.fixer(author, injector))
