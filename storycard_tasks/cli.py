"""Thin CLI wrapper for storycard_tasks.

This module provides the command-line interface using Typer.
All task logic is delegated to the tasks package.
"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from storycard_tasks import __version__
from storycard_tasks.config import Settings, get_settings, print_settings_json
from storycard_tasks.errors import ConfigurationError, TaskError
from storycard_tasks.log import setup_logging
from storycard_tasks.tasks.registry import TaskRegistry

app = typer.Typer(
    name="storycard-tasks",
    help="Storycard Tasks - virtualenv, dependency, quality and test targets",
)
console = Console()


@dataclass
class CLIState:
    """Options given before the subcommand."""

    root: Path
    verbose: bool = False


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"storycard-tasks version {__version__}")
        raise typer.Exit()


def _fail(error: TaskError, json_output: bool = False) -> NoReturn:
    if json_output:
        typer.echo(json.dumps({"error": error.to_dict()}, indent=2))
    else:
        console.print(f"[red]Error: {escape(error.message)}[/red]")
    raise typer.Exit(code=error.exit_code)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as e:
        messages = "; ".join(
            str(err["msg"]).removeprefix("Value error, ") for err in e.errors()
        )
        raise ConfigurationError(messages) from e


def _bootstrap(ctx: typer.Context, json_output: bool = False) -> tuple[Settings, Path]:
    state: CLIState = ctx.obj
    try:
        settings = _load_settings()
    except ConfigurationError as e:
        _fail(e, json_output)
    setup_logging(settings.log_level, verbose=state.verbose)
    return settings, state.root


def _registry(settings: Settings, root: Path, json_output: bool = False) -> TaskRegistry:
    from storycard_tasks.tasks.service import build_registry

    try:
        return build_registry(settings, root)
    except TaskError as e:
        _fail(e, json_output)


def _echo(message: str) -> None:
    console.print(message, markup=False, highlight=False, soft_wrap=True)


def _print_targets(registry: TaskRegistry, show_all: bool = False) -> None:
    tasks = list(registry) if show_all else registry.documented()
    table = Table(show_header=show_all, box=None, pad_edge=False)
    table.add_column("Target", style="cyan", no_wrap=True, min_width=30)
    table.add_column("Description")
    if show_all:
        table.add_column("Section", style="dim")
        table.add_column("Prerequisites", style="dim")

    for task in tasks:
        name = task.name
        if task.aliases:
            name += f" ({', '.join(task.aliases)})"
        row = [name, task.help or ""]
        if show_all:
            row += [task.section, " ".join(task.deps)]
        table.add_row(*row)

    console.print("  storycard-tasks run [target]:", markup=False)
    console.print()
    console.print(table)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging"),
    ] = False,
    root: Annotated[
        Path | None,
        typer.Option(
            "--root",
            help="Project root (defaults to the current directory)",
            file_okay=False,
            dir_okay=True,
            exists=True,
        ),
    ] = None,
) -> None:
    """Storycard Tasks - virtualenv, dependency, quality and test targets.

    Without a command, lists the documented targets.
    """
    ctx.obj = CLIState(root=(root or Path.cwd()).resolve(), verbose=verbose)
    if ctx.invoked_subcommand is None:
        settings, project_root = _bootstrap(ctx)
        _print_targets(_registry(settings, project_root))


@app.command()
def run(
    ctx: typer.Context,
    targets: Annotated[
        list[str] | None,
        typer.Argument(help="Targets to run, in order (default: help)"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Print commands without running them"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output the run report as JSON"),
    ] = False,
) -> None:
    """Run targets and their prerequisites.

    Each target runs at most once. The run stops at the first failure and
    exits with the failing command's exit code.
    """
    from storycard_tasks.tasks.service import run_targets

    settings, root = _bootstrap(ctx, json_output)
    registry = _registry(settings, root, json_output)

    try:
        report = run_targets(
            targets or [],
            settings=settings,
            root=root,
            registry=registry,
            echo=None if json_output else _echo,
            dry_run=dry_run,
            quiet_stdout=json_output,
        )
    except TaskError as e:
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(report.to_dict(), indent=2))
    elif report.failed is not None:
        failed = report.failed
        console.print(
            f"[red]✗ {failed.name} failed (exit code {report.exit_code}): "
            f"{escape(failed.error_message or '')}[/red]"
        )

    raise typer.Exit(code=report.exit_code)


@app.command()
def plan(
    ctx: typer.Context,
    targets: Annotated[
        list[str] | None,
        typer.Argument(help="Targets to resolve (default: help)"),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show the tasks a run would execute, in order."""
    from storycard_tasks.tasks.service import describe_plan

    settings, root = _bootstrap(ctx, json_output)
    registry = _registry(settings, root, json_output)

    try:
        steps = describe_plan(
            targets or [], settings=settings, root=root, registry=registry
        )
    except TaskError as e:
        _fail(e, json_output)

    if json_output:
        typer.echo(json.dumps(steps, indent=2))
        return

    console.print(f"[bold]Plan ({len(steps)} task(s)):[/bold]")
    for index, step in enumerate(steps, start=1):
        console.print(f"  {index:>2}. [cyan]{step['name']}[/cyan]")
        for action in step["actions"]:
            console.print(f"        {action}", markup=False, highlight=False)


@app.command()
def targets(
    ctx: typer.Context,
    show_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include undocumented helper targets"),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """List available targets."""
    settings, root = _bootstrap(ctx, json_output)
    registry = _registry(settings, root, json_output)

    if json_output:
        tasks = list(registry) if show_all else registry.documented()
        typer.echo(json.dumps([t.to_dict() for t in tasks], indent=2))
        return
    _print_targets(registry, show_all=show_all)


@app.command()
def config(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output as JSON"),
    ] = False,
) -> None:
    """Show effective configuration."""
    from storycard_tasks.tasks.context import TaskContext

    settings, root = _bootstrap(ctx, json_output)
    if json_output:
        typer.echo(print_settings_json(settings))
        return

    task_ctx = TaskContext.create(settings, root=root)
    layout = task_ctx.layout
    console.print("[bold]Effective Configuration:[/bold]")
    console.print()
    console.print("[bold]Virtual environment:[/bold]")
    console.print(f"  Venv name:           {settings.venv_name}")
    console.print(f"  Host OS:             {layout.host_os.value}")
    console.print(f"  Path separator:      {layout.sep}", markup=False)
    console.print(f"  Python:              {layout.python}", markup=False)
    console.print(f"  Bootstrap Python:    {settings.bootstrap_python}")
    console.print()
    console.print("[bold]Project:[/bold]")
    console.print(f"  Root:                {root}")
    console.print(f"  Package:             {settings.package_name}")
    console.print(f"  Project name:        {settings.project_name}")
    console.print(f"  Project dir:         {task_ctx.project_dir}", markup=False)
    console.print(f"  Tests dir:           {settings.tests_dir}")
    console.print(f"  Git hooks dir:       {settings.hooks_dir}")
    console.print(f"  Requirements file:   {settings.requirements_file}")
    console.print(f"  Task file:           {settings.tasks_file}")
    console.print()
    console.print("[bold]Operational:[/bold]")
    console.print(f"  Log level:           {settings.log_level}")
    console.print(f"  Log directory:       {settings.log_dir or '(terminal)'}")
    timeout = settings.command_timeout
    console.print(f"  Command timeout:     {timeout if timeout else '(none)'}")


if __name__ == "__main__":
    app()
