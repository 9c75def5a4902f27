"""Shared fixtures for coding arena tests."""

import pytest

from coding_arena.agents import MockAgent
from coding_arena.config import TaskTimeouts
from coding_arena.state import ParticipantId


@pytest.fixture
def alice():
    return ParticipantId("alice")


@pytest.fixture
def bob():
    return ParticipantId("bob")


@pytest.fixture
def carol():
    return ParticipantId("carol")


@pytest.fixture
def mock_agents():
    """Three well-behaved mock agents keyed A, B, C."""
    return {"A": MockAgent(), "B": MockAgent(), "C": MockAgent()}


@pytest.fixture
def fast_timeouts():
    return TaskTimeouts(baseline=5, bug_injection=5, fix_attempt=5)
