"""
Coding Arena - Task Instructions
Technology-agnostic instructions handed to agents for each task kind.
All three share the Makefile contract used by contract validation.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from .config import TaskTimeouts
from .state import TaskKind

MAKEFILE_CONTRACT = """
**STANDARDIZED CONTRACT:**
Your project MUST include a Makefile with these exact targets:

- **make setup** - Install dependencies and prepare the project for execution
- **make test** - Run all tests and return exit code 0 for success, non-zero for failure

The system will use only these commands to validate your work - no manual intervention allowed.
""".strip()


@dataclass(frozen=True)
class TaskInstructions:
    task_description: str
    competitive_challenge: str
    validation_process: str
    requirements: list[str] = field(default_factory=list)
    contract: str = MAKEFILE_CONTRACT


BASELINE_CREATION = TaskInstructions(
    task_description="""
Create a software project that demonstrates your coding capabilities.

**YOUR MISSION:** Build a working application with comprehensive tests that showcases programming skill.

**TIME LIMIT:** You have {minutes} to complete this task. Focus on a functional project with passing tests.
""".strip(),
    competitive_challenge="""
**COMPETITIVE CHALLENGE:**
Other agents will try to break and then repair your project. Aim for a project that:
- Has clean architecture and non-trivial logic
- Includes tests that catch subtle regressions, not just the happy path
- Handles edge cases and errors explicitly

Think strategically: what code would challenge another agent's ability to understand and modify it correctly?
""".strip(),
    requirements=[
        "Choose any programming language and application type you prefer",
        'Create a non-trivial application (avoid simple "hello world" programs)',
        "Include comprehensive unit tests with good coverage",
        "Add proper error handling and edge case management",
        "Ensure the project builds and all tests pass",
    ],
    validation_process="""
**VALIDATION:**
The system will run: `make setup && make test`
Success requires both commands to complete with exit code 0.
""".strip(),
)

BUG_INJECTION = TaskInstructions(
    task_description="""
Inject a subtle bug into the existing project that will challenge other agents to find and fix.

**YOUR MISSION:** Introduce a realistic programming error that requires skill to identify and resolve.

**TIME LIMIT:** You have {minutes} to complete this task.
""".strip(),
    competitive_challenge="""
**COMPETITIVE CHALLENGE:**
Another agent will try to fix your bug. Your goal is to:
- Create a bug that looks like a genuine programming mistake
- Make it subtle enough to require careful analysis
- Prefer business-logic and boundary errors over syntax errors
""".strip(),
    requirements=[
        "Introduce exactly ONE realistic programming bug",
        "The bug must cause test failures (make test should fail)",
        "Modify only source code - never change tests",
        "Make it challenging but not impossible to debug",
    ],
    validation_process="""
**VALIDATION:**
The system will run: `make test`
Success requires the command to FAIL (exit code != 0) with clear test failure output.
""".strip(),
)

FIX_ATTEMPT = TaskInstructions(
    task_description="""
Analyze the failing project and fix the bug to restore full functionality.

**YOUR MISSION:** Identify and repair the injected error.

**TIME LIMIT:** You have {minutes} to complete this task.
""".strip(),
    competitive_challenge="""
**COMPETITIVE CHALLENGE:**
Another agent introduced a bug designed to challenge your debugging abilities. Your goal is to:
- Analyze the test failures to understand the problem
- Locate the root cause through code analysis
- Apply the minimal fix that restores functionality without breaking anything else
""".strip(),
    requirements=[
        "First run tests to understand what is failing",
        "Apply the minimal fix necessary to restore functionality",
        "Verify all tests pass after your fix",
        "Modify only source code - never change tests",
    ],
    validation_process="""
**VALIDATION:**
The system will run: `make test`
Success requires all tests to PASS (exit code 0) with no failures.
""".strip(),
)

INSTRUCTIONS = {
    TaskKind.BASELINE: BASELINE_CREATION,
    TaskKind.BUG_INJECTION: BUG_INJECTION,
    TaskKind.FIX_ATTEMPT: FIX_ATTEMPT,
}


def _format_budget(seconds: float) -> str:
    minutes = seconds / 60
    if minutes >= 1 and minutes == int(minutes):
        return f"exactly {int(minutes)} minute{'s' if minutes != 1 else ''}"
    return f"exactly {int(seconds)} seconds"


def format_instructions(config: TaskInstructions, time_budget_seconds: float) -> str:
    requirements = "\n".join(f"- {req}" for req in config.requirements)
    return f"""
{config.task_description.format(minutes=_format_budget(time_budget_seconds))}

{config.competitive_challenge}

{config.contract}

**REQUIREMENTS:**
{requirements}

{config.validation_process}

**BEGIN:** Start immediately. Create/modify files as needed and ensure the contract is fulfilled.
""".strip()


def instructions_for(kind: TaskKind, timeouts: TaskTimeouts | None = None) -> str:
    timeouts = timeouts or TaskTimeouts()
    return format_instructions(INSTRUCTIONS[kind], timeouts.for_kind(kind))
