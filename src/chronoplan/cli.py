"""Command-line interface for chronoplan."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Annotated

import typer

from . import context
from .blackouts import labelled_blackouts
from .exceptions import ChronoplanError
from .loader import load_plan
from .logger import setup_logger
from .report import dump_agenda_yaml, format_issues, format_schedule_text, summary
from .scheduler import DependencyGraph, ScheduleStatus, SchedulingService

app = typer.Typer(
    name="chronoplan",
    help="Heuristic timetabling for interdependent tasks with deadlines and blackout periods",
    add_completion=False,
)

EXIT_ERROR = 1
EXIT_NOT_ON_TIME = 2


class OutputFormat(str, Enum):
    """Available output formats."""

    TEXT = "text"
    YAML = "yaml"


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbosity level: 0=silent (default), 1=show commits, 2=show scores, 3=debug",
            min=0,
            max=3,
        ),
    ] = 0,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to plan config file (default: chronoplan.yaml)",
        ),
    ] = None,
) -> None:
    """Global options for chronoplan commands."""
    setup_logger(verbose)
    context.set_config_path(config)


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="Path to the task YAML file")] = Path("tasks.yaml"),
    *,
    output_format: Annotated[
        OutputFormat, typer.Option("--format", "-f", help="Output format")
    ] = OutputFormat.TEXT,
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Output file path")] = None,
    show_blackouts: Annotated[
        bool,
        typer.Option("--show-blackouts", help="Include blackout periods in the agenda"),
    ] = False,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with status 2 unless every task is on time"),
    ] = False,
) -> None:
    """Compute a timetable and display or persist it."""
    try:
        plan = load_plan(file)
        result = SchedulingService(plan.config).schedule(plan.tasks)
    except ChronoplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from e

    blackouts = (
        labelled_blackouts(
            plan.config.horizon_interval,
            plan.config.blackouts,
            plan.config.recurring_blackouts,
        )
        if show_blackouts
        else []
    )
    if output_format == OutputFormat.YAML:
        rendered = dump_agenda_yaml(result, blackouts)
    else:
        rendered = format_schedule_text(result, blackouts)

    if output:
        output.write_text(rendered, encoding="utf-8")
        typer.echo(f"Schedule written to {output}")
    else:
        typer.echo(rendered, nl=False)

    issues = format_issues(result)
    if issues:
        typer.echo("", err=True)
        for line in issues:
            typer.echo(line, err=True)

    counts = summary(result)
    typer.echo(
        f"Status: {counts['status']} ({counts['tasks']} tasks, {counts['slices']} slices, "
        f"{counts['late']} late, {counts['unresolved']} unresolved)",
        err=True,
    )

    if strict and result.status != ScheduleStatus.ON_TIME:
        raise typer.Exit(EXIT_NOT_ON_TIME)


@app.command()
def check(
    file: Annotated[Path, typer.Argument(help="Path to the task YAML file")] = Path("tasks.yaml"),
) -> None:
    """Validate tasks, configuration and dependencies without scheduling."""
    try:
        plan = load_plan(file)
        graph = DependencyGraph({task.id: task.dependencies for task in plan.tasks})
        SchedulingService(plan.config).create_scheduler(plan.tasks)
    except ChronoplanError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_ERROR) from e

    typer.echo(f"OK: {len(plan.tasks)} tasks")
    typer.echo(f"Order: {' -> '.join(graph.topological_order)}")


def main() -> int:
    """Main entry point."""
    app()
    return 0


if __name__ == "__main__":
    main()
