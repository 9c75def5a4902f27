"""
Coding Arena - Participant Validator
Role-eligibility guards consulted before every state mutation.
"""
from __future__ import annotations

from .errors import InvalidTransition
from .state import ParticipantId, RoundState


class ParticipantValidator:
    """Stateless checks against the round's current author pointers."""

    @staticmethod
    def validate_baseline_author(participant: ParticipantId, round_state: RoundState | None) -> None:
        if round_state is None or participant != round_state.baseline_author:
            raise InvalidTransition(
                f"Only baseline author can perform this action (got {participant})"
            )

    @staticmethod
    def validate_not_baseline_author(participant: ParticipantId, round_state: RoundState | None) -> None:
        if round_state is not None and participant == round_state.baseline_author:
            raise InvalidTransition(
                f"Baseline author {participant} cannot perform this action"
            )

    @staticmethod
    def validate_not_bug_author(participant: ParticipantId, round_state: RoundState | None) -> None:
        if round_state is not None and participant == round_state.bug_author:
            raise InvalidTransition(f"Bug author {participant} cannot fix their own bug")
