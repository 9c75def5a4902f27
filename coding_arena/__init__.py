"""
Coding Arena - Rotating Coding-Agent Competition Orchestrator

Each round three participants take the three roles in turn:
- Baseline author writes a tested project honoring a Makefile contract
- Bug injector breaks a copy of that baseline
- Fixer repairs a copy of the broken project

Implementation is split across:
- config.py: Constants, paths, environment variables, logging setup
- state.py: Value types (participants, phases, outcomes, score cards)
- state_machine.py: Round phase sequencing
- validator.py: Role-eligibility guards
- scoring.py: Score ledger and round scoring rules
- roster.py: Role rotation
- workspace.py: Isolated task workspaces
- executor.py: Time-bounded agent calls
- orchestrator.py: Round loop and lifecycle events
- summary.py: Scoreboard and reports
"""
from .agents import AgentCapability, CliAgent, MockAgent, create_agent
from .config import TaskTimeouts
from .errors import (
    ArenaError,
    AuditLogFailure,
    InfrastructureFailure,
    InvalidTransition,
    WorkspaceNotEmpty,
)
from .events import EventType, JsonlEventSink, LifecycleEvent, MemoryEventSink
from .orchestrator import RoundOrchestrator
from .roster import ParticipantRoster
from .scoring import RoundReferee, ScoreKeeper
from .state import (
    NextStep,
    NextStepType,
    ParticipantId,
    RoundPhase,
    RoundState,
    ScoreCard,
    TaskKind,
    TaskOutcome,
)
from .state_machine import RoundStateMachine
from .summary import CompetitionSummary, CompetitionSummaryBuilder, ParticipantScore
from .validation import ContractCheckedAgent, MakefileValidator
from .validator import ParticipantValidator
from .workspace import WorkspaceAllocator

__version__ = "0.1.0"

__all__ = [
    # Config
    "TaskTimeouts",
    # Errors
    "ArenaError",
    "AuditLogFailure",
    "InfrastructureFailure",
    "InvalidTransition",
    "WorkspaceNotEmpty",
    # State
    "NextStep",
    "NextStepType",
    "ParticipantId",
    "RoundPhase",
    "RoundState",
    "ScoreCard",
    "TaskKind",
    "TaskOutcome",
    # Core
    "RoundStateMachine",
    "ParticipantValidator",
    "ScoreKeeper",
    "RoundReferee",
    "ParticipantRoster",
    "WorkspaceAllocator",
    "RoundOrchestrator",
    # Events
    "EventType",
    "LifecycleEvent",
    "JsonlEventSink",
    "MemoryEventSink",
    # Summary
    "CompetitionSummary",
    "CompetitionSummaryBuilder",
    "ParticipantScore",
    # Agents
    "AgentCapability",
    "CliAgent",
    "MockAgent",
    "create_agent",
    "ContractCheckedAgent",
    "MakefileValidator",
]
