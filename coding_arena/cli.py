#!/usr/bin/env python3
"""
Coding Arena - CLI

Agents rotate through three roles every round:
    baseline author -> bug injector -> fixer

Usage:
    python -m coding_arena run -p alpha -p bravo -p charlie --rounds 3
    python -m coding_arena run --agent claude --validate
    python -m coding_arena report arena-reports/run_20260101_120000.jsonl
"""
from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .agents import AgentCapability, available_agents, create_agent
from .config import (
    BASELINE_TIMEOUT_SECONDS,
    BUG_INJECTION_TIMEOUT_SECONDS,
    DEFAULT_AGENT,
    DEFAULT_PARTICIPANTS,
    DEFAULT_ROUNDS,
    FIX_ATTEMPT_TIMEOUT_SECONDS,
    REPORTS_DIR,
    WORKSPACE_ROOT,
    TaskTimeouts,
    configure_logging,
)
from .errors import ArenaError, InfrastructureFailure
from .events import EventType, JsonlEventSink, LifecycleEvent, read_events
from .orchestrator import RoundOrchestrator
from .summary import (
    CompetitionSummary,
    format_summary_json,
    generate_report,
    phase_statistics,
    replay_events,
)
from .validation import ContractCheckedAgent

app = typer.Typer(help="Coding Arena - rotating baseline / bug injection / fix competition")
console = Console()


def _print_event(event: LifecycleEvent) -> None:
    if event.type is EventType.ROUND_STARTED:
        console.print(f"\n[bold cyan]Round {event.round}[/bold cyan] - baseline author: {event.baseline_author}")
    elif event.type is EventType.ROUND_FINISHED:
        scores = ", ".join(f"{name}={score}" for name, score in (event.scores or {}).items())
        console.print(f"[dim]Round {event.round} finished: {scores}[/dim]")
    else:
        status = "[green]PASS[/green]" if event.success else "[red]FAIL[/red]"
        label = event.task_kind.label.capitalize()
        console.print(f"  {label:<14} {event.participant:<20} {status} {event.message}")


def _scoreboard_table(summary: CompetitionSummary, title: str = "Final Scoreboard") -> Table:
    table = Table(title=title)
    table.add_column("Rank", justify="right")
    table.add_column("Participant", style="bold")
    table.add_column("Score", justify="right")
    table.add_column("Fixes", justify="right")
    table.add_column("Unfixed Bugs", justify="right")
    table.add_column("Baseline Fails", justify="right")
    table.add_column("Injection Fails", justify="right")
    for rank, entry in enumerate(summary.participant_scores, 1):
        d = entry.details
        table.add_row(
            str(rank), entry.participant_id, str(entry.score), str(d.fixes),
            str(d.bugs_solved), str(d.baseline_failures), str(d.bug_injection_failures),
        )
    return table


@app.command()
def run(
    participant: list[str] = typer.Option(None, "--participant", "-p", help="Participant name (repeat; at least 3)"),
    rounds: int = typer.Option(DEFAULT_ROUNDS, help="Number of rounds to play"),
    agent: str = typer.Option(DEFAULT_AGENT, help=f"Agent adapter for every participant: {', '.join(available_agents())}"),
    workspace: Path = typer.Option(None, help="Workspace root (default: a fresh directory per run)"),
    event_log: Path = typer.Option(None, help="JSONL audit log path"),
    validate: bool = typer.Option(False, "--validate/--no-validate", help="Confirm outcomes with make setup / make test"),
    cleanup: bool = typer.Option(False, "--cleanup/--keep-workspaces", help="Delete task workspaces when done"),
    baseline_timeout: float = typer.Option(BASELINE_TIMEOUT_SECONDS, help="Baseline creation budget (seconds)"),
    bug_injection_timeout: float = typer.Option(BUG_INJECTION_TIMEOUT_SECONDS, help="Bug injection budget (seconds)"),
    fix_attempt_timeout: float = typer.Option(FIX_ATTEMPT_TIMEOUT_SECONDS, help="Fix attempt budget (seconds)"),
    json_output: bool = typer.Option(False, "--json", help="Print the final summary as JSON"),
    log_level: str = typer.Option("WARNING", help="Log level for library logging"),
):
    """Run a competition and print the final scoreboard."""
    configure_logging(log_level)
    run_id = f"run_{datetime.now().strftime('%Y%m%d_%H%M%S')}"
    names = participant or DEFAULT_PARTICIPANTS
    workspace = workspace or WORKSPACE_ROOT / run_id
    event_log = event_log or REPORTS_DIR / f"{run_id}.jsonl"

    try:
        timeouts = TaskTimeouts(baseline_timeout, bug_injection_timeout, fix_attempt_timeout)
        agents: dict[str, AgentCapability] = {}
        for name in names:
            adapter = create_agent(agent, timeouts)
            agents[name] = ContractCheckedAgent(adapter) if validate else adapter
        orchestrator = RoundOrchestrator(
            agents, workspace, timeouts=timeouts, event_sink=JsonlEventSink(event_log),
        )
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    events: list[LifecycleEvent] = []
    orchestrator.on_event(events.append)
    if not json_output:
        orchestrator.on_event(_print_event)
        console.print(Panel(
            f"[bold]Competition: {run_id}[/bold]\nParticipants: {', '.join(names)}\n"
            f"Rounds: {rounds}\nAgent: {agent}{' (contract-checked)' if validate else ''}\n"
            f"Workspace: {orchestrator.workspaces.root}",
            title="Coding Arena",
        ))

    try:
        summary = orchestrator.run(rounds)
    except InfrastructureFailure as e:
        console.print(f"\n[red]Competition aborted: {e}[/red]")
        console.print(f"[yellow]Completed rounds: {orchestrator.completed_rounds}[/yellow]")
        raise typer.Exit(1)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    finally:
        if cleanup:
            orchestrator.cleanup_workspaces()

    report_path = event_log.with_suffix(".md")
    report_path.parent.mkdir(parents=True, exist_ok=True)
    report_path.write_text(generate_report(summary, events))

    if json_output:
        typer.echo(format_summary_json(summary))
        return
    console.print()
    console.print(_scoreboard_table(summary))
    console.print(f"Rounds completed: {summary.total_rounds}")
    console.print(f"\n[green]Audit log: {event_log}[/green]")
    console.print(f"[green]Report saved: {report_path}[/green]")


@app.command()
def report(
    event_log: Path = typer.Argument(..., help="JSONL audit log written by `run`"),
    json_output: bool = typer.Option(False, "--json", help="Print summary and statistics as JSON"),
):
    """Rebuild the scoreboard and phase statistics from an audit log."""
    if not event_log.exists():
        console.print(f"[red]Audit log not found: {event_log}[/red]")
        raise typer.Exit(1)
    try:
        events = read_events(event_log)
        summary = replay_events(events)
    except (ValueError, ArenaError) as e:
        console.print(f"[red]Audit log is inconsistent: {e}[/red]")
        raise typer.Exit(1)

    stats = phase_statistics(events)
    if json_output:
        typer.echo(json.dumps({"summary": summary.to_dict(), "statistics": stats}, indent=2))
        return

    console.print(_scoreboard_table(summary, title=f"Scoreboard: {event_log.name}"))
    console.print(f"Rounds completed: {summary.total_rounds}")

    table = Table(title="Phase Statistics")
    table.add_column("Participant", style="bold")
    table.add_column("Phases", justify="right")
    table.add_column("Successful", justify="right")
    table.add_column("Success Rate", justify="right")
    for name, entry in stats["participant_stats"].items():
        table.add_row(name, str(entry["total_phases"]), str(entry["successful_phases"]),
                      f"{entry['success_rate']:.1%}")
    console.print(table)
    console.print(
        f"Overall: {stats['successful_phases']}/{stats['total_phases']} phases succeeded "
        f"({stats['success_rate']:.1%})"
    )


def main():
    app()


if __name__ == "__main__":
    main()
