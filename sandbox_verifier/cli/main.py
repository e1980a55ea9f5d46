"""CLI entry point and commands.

Provides the main CLI application with commands for:
- run: Run built-in escape scenarios
- check: Classify paths gathered elsewhere
- list: Show the built-in scenarios
- version: Show the installed version

Exit codes: 0 when no path escaped, 1 when an escape was reproduced,
2 when the run could not start (no usable boundary, bad arguments).
"""

# Configure logging early before other imports
import sandbox_verifier.logging_config  # noqa: F401

import json
from collections.abc import Sequence
from enum import StrEnum
from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from sandbox_verifier.boundary import Boundary, boundary_from_environment, resolve_boundary
from sandbox_verifier.cli.utils import console, err_console
from sandbox_verifier.exceptions import (
    BoundaryUndetermined,
    ClassificationAmbiguous,
    ConfigurationError,
)
from sandbox_verifier.logging_config import configure_logging
from sandbox_verifier.probes import SuppliedPathProbe
from sandbox_verifier.report import render_summary, render_verdict
from sandbox_verifier.scenario import Scenario, run_scenario
from sandbox_verifier.scenarios import get_all_scenarios, get_scenario
from sandbox_verifier.settings import Settings, get_settings
from sandbox_verifier.verdict import ScenarioVerdict

EXIT_NO_ESCAPE = 0
EXIT_BUG_REPRODUCED = 1
EXIT_UNUSABLE = 2

app = typer.Typer(
    name="sandbox-verify",
    help="Detect path resolution that escapes a symlinked sandbox",
    add_completion=False,
    no_args_is_help=True,
)


class LogLevel(StrEnum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


SourceTreeOption = Annotated[
    Optional[str],  # noqa: UP007
    typer.Option(
        "--source-tree",
        "-s",
        help="Authoritative source tree (run mode). Overrides the environment signal.",
    ),
]
TestModeOption = Annotated[
    bool,
    typer.Option("--test-mode", "-t", help="Ignore the environment and check landmarks only"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print verdicts as JSON instead of a report"),
]
LogLevelOption = Annotated[
    Optional[LogLevel],  # noqa: UP007
    typer.Option("--log-level", "-l", help="Log level for diagnostics on stderr"),
]


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code=EXIT_UNUSABLE)


def _determine_boundary(
    source_tree: str | None,
    test_mode: bool,
    settings: Settings,
) -> Boundary:
    """Fix the execution mode once, from explicit flags or the environment."""
    if source_tree is not None and test_mode:
        raise ConfigurationError("--source-tree and --test-mode are mutually exclusive")
    if test_mode:
        return resolve_boundary(None, landmarks=settings.sandbox_landmarks)
    if source_tree is not None:
        if not source_tree:
            raise BoundaryUndetermined("--source-tree must not be empty", signal=source_tree)
        return resolve_boundary(source_tree, landmarks=settings.sandbox_landmarks)
    return boundary_from_environment(settings=settings)


def _emit(verdicts: Sequence[ScenarioVerdict], as_json: bool) -> int:
    if as_json:
        payload = [v.model_dump(mode="json") for v in verdicts]
        typer.echo(json.dumps(payload, indent=2))
    else:
        for verdict in verdicts:
            render_verdict(verdict, console)
        if len(verdicts) > 1:
            render_summary(verdicts, console)

    if any(v.exit_code == EXIT_BUG_REPRODUCED for v in verdicts):
        return EXIT_BUG_REPRODUCED
    return EXIT_NO_ESCAPE


@app.command()
def run(
    scenarios: Annotated[
        Optional[list[str]],  # noqa: UP007
        typer.Argument(help="Scenario names (default: all)"),
    ] = None,
    source_tree: SourceTreeOption = None,
    test_mode: TestModeOption = False,
    json_output: JsonOption = False,
    log_level: LogLevelOption = None,
) -> None:
    """Run built-in escape scenarios.

    Each scenario exercises one family of path-resolution strategies and
    reports every observed path with its classification.
    """
    if log_level is not None:
        configure_logging(log_level.value)
    settings = get_settings()

    try:
        boundary = _determine_boundary(source_tree, test_mode, settings)
        selected: list[Scenario] = (
            [get_scenario(name) for name in scenarios] if scenarios else get_all_scenarios()
        )
    except (BoundaryUndetermined, ConfigurationError, ValueError) as e:
        raise _fail(str(e)) from e

    try:
        verdicts = [run_scenario(s, boundary, settings=settings) for s in selected]
    except ClassificationAmbiguous as e:
        raise _fail(str(e)) from e
    raise typer.Exit(code=_emit(verdicts, json_output))


@app.command()
def check(
    paths: Annotated[list[str], typer.Argument(help="Absolute paths to classify")],
    source_tree: SourceTreeOption = None,
    test_mode: TestModeOption = False,
    json_output: JsonOption = False,
) -> None:
    """Classify paths gathered elsewhere against the boundary."""
    settings = get_settings()
    try:
        boundary = _determine_boundary(source_tree, test_mode, settings)
    except (BoundaryUndetermined, ConfigurationError) as e:
        raise _fail(str(e)) from e

    scenario = Scenario(
        name="check",
        description="Caller-supplied paths",
        probes=(SuppliedPathProbe(paths),),
    )
    try:
        verdict = run_scenario(scenario, boundary, settings=settings)
    except ClassificationAmbiguous as e:
        raise _fail(str(e)) from e
    raise typer.Exit(code=_emit([verdict], json_output))


@app.command("list")
def list_command() -> None:
    """Show the built-in scenarios."""
    table = Table(title="Scenarios", show_header=True, header_style="bold")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Strategies")
    table.add_column("Description")

    for scenario in get_all_scenarios():
        strategies = ", ".join(dict.fromkeys(str(p.strategy) for p in scenario.probes))
        table.add_row(scenario.name, strategies, scenario.description)
    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from sandbox_verifier import __version__

    console.print(
        Panel(
            f"[bold]sandbox-verify[/bold] {__version__}",
            title="Version",
            border_style="blue",
        )
    )


if __name__ == "__main__":
    app()
