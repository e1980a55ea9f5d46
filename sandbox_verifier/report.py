"""Human-readable rendering of scenario verdicts.

Every escaped path is listed individually with the boundary it crossed;
indeterminate entries are shown as warnings, separate from failures.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from sandbox_verifier.classifier import Classification
from sandbox_verifier.verdict import Outcome, ScenarioVerdict

_STYLES = {
    Classification.CONTAINED: "green",
    Classification.ESCAPED: "bold red",
    Classification.INDETERMINATE: "yellow",
}


def build_entries_table(verdict: ScenarioVerdict) -> Table:
    """Table of every classified path in probe order."""
    table = Table(show_header=True, header_style="bold", expand=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Strategy", style="cyan")
    table.add_column("Subject")
    table.add_column("Path", overflow="fold")
    table.add_column("Result")

    for index, entry in enumerate(verdict.entries, start=1):
        style = _STYLES[entry.classification]
        table.add_row(
            str(index),
            entry.strategy,
            escape(entry.label),
            escape(entry.path) if entry.path else "[dim](none)[/dim]",
            f"[{style}]{entry.classification.value.upper()}[/{style}]",
        )
    return table


def render_verdict(verdict: ScenarioVerdict, console: Console) -> None:
    """Print one verdict with its evidence."""
    color = "red" if verdict.outcome is Outcome.BUG_REPRODUCED else "green"
    console.print(
        Panel(
            f"[bold]{escape(verdict.scenario)}[/bold]\n"
            f"Mode: {verdict.mode.value}\n"
            f"Boundary: {escape(verdict.boundary)}",
            title="Sandbox boundary check",
            border_style=color,
        )
    )
    if verdict.entries:
        console.print(build_entries_table(verdict))
    else:
        console.print("[dim]No paths observed.[/dim]")

    for entry in verdict.escaped:
        console.print(f"[bold red]ESCAPED[/bold red] {escape(entry.evidence)}")
        if entry.detail:
            console.print(f"  [dim]{escape(entry.detail)}[/dim]")
    for entry in verdict.indeterminate:
        console.print(f"[yellow]WARNING[/yellow] could not observe: {escape(entry.evidence)}")
    for entry in verdict.entries:
        for note in entry.notes:
            console.print(f"[yellow]NOTE[/yellow] {escape(entry.label)}: {escape(note)}")

    if verdict.outcome is Outcome.BUG_REPRODUCED:
        strategies = ", ".join(verdict.offending_strategies)
        console.print(f"[bold red]RESULT: Bug reproduced[/bold red] - escaped via {strategies}.")
    else:
        console.print("[bold green]RESULT: No escape detected.[/bold green]")
    console.print()


def render_summary(verdicts: Sequence[ScenarioVerdict], console: Console) -> None:
    """Print a one-line-per-scenario summary after several runs."""
    table = Table(title="Summary", show_header=True, header_style="bold")
    table.add_column("Scenario", style="cyan")
    table.add_column("Outcome")
    table.add_column("Escaped", justify="right")
    table.add_column("Warnings", justify="right")

    for verdict in verdicts:
        if verdict.outcome is Outcome.BUG_REPRODUCED:
            outcome = "[red]BUG REPRODUCED[/red]"
        else:
            outcome = "[green]NO ESCAPE[/green]"
        table.add_row(
            verdict.scenario,
            outcome,
            str(len(verdict.escaped)),
            str(len(verdict.indeterminate)),
        )
    console.print(table)
