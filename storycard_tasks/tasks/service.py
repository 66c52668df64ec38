"""Task run service.

This module provides the high-level run API:
- build_registry(): default targets plus the project's task file
- run_targets(): main entry point - resolve goals and run the plan
- describe_plan(): resolved plan with rendered actions, without running

A run stops at the first failing task. Nothing is retried and failures
are not aggregated: the report's exit code is the failing command's.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from storycard_tasks.config import Settings, get_settings
from storycard_tasks.errors import EXECUTION_ERROR, TaskError
from storycard_tasks.tasks.catalog import default_registry
from storycard_tasks.tasks.context import Echo, TaskContext
from storycard_tasks.tasks.graph import resolve_plan
from storycard_tasks.tasks.io import load_task_file, merge_tasks
from storycard_tasks.tasks.models import RunReport, Task, TaskResult
from storycard_tasks.tasks.registry import DEFAULT_GOAL, TaskRegistry
from storycard_tasks.types import TaskStatus

logger = logging.getLogger(__name__)


def build_registry(settings: Settings, root: Path) -> TaskRegistry:
    """Build the registry for a project.

    Args:
        settings: Effective settings.
        root: Project root the task file is looked up in.

    Returns:
        Default targets, merged with the task file when it exists.

    Raises:
        TaskDefinitionError: If the task file is invalid.
    """
    registry = default_registry()
    tasks_file = root / settings.tasks_file
    if tasks_file.is_file():
        logger.debug("Loading task file %s", tasks_file)
        merge_tasks(registry, load_task_file(tasks_file))
    return registry


def _goals(goals: Iterable[str]) -> list[str]:
    selected = list(goals)
    return selected or [DEFAULT_GOAL]


def check_templates(plan: Iterable[Task], variables: Mapping[str, str]) -> None:
    """Render every action of a plan so bad placeholders fail before a run.

    Raises:
        TaskDefinitionError: If an action references an unknown placeholder
            or holds a stray brace.
    """
    for task in plan:
        for action in task.actions:
            action.render(variables)


def run_task(task: Task, ctx: TaskContext) -> TaskResult:
    """Run the actions of a single task.

    Errors are recorded on the result, not raised.
    """
    result = TaskResult(name=task.name, status=TaskStatus.RUNNING)
    result.started_at = datetime.now(timezone.utc)
    ctx.current_task = task.name
    ctx.commands = result.commands
    logger.debug("Running task %s", task.name)

    try:
        for action in task.actions:
            action.execute(ctx)
    except TaskError as e:
        result.status = TaskStatus.FAILED
        result.exit_code = e.exit_code
        result.error_code = e.code
        result.error_message = e.message
        logger.error("%s: %s", task.name, e.message)
    except OSError as e:
        result.status = TaskStatus.FAILED
        result.exit_code = 1
        result.error_code = EXECUTION_ERROR
        result.error_message = str(e)
        logger.error("%s: %s", task.name, e)
    else:
        result.status = TaskStatus.SUCCEEDED
        result.exit_code = 0
    finally:
        result.finished_at = datetime.now(timezone.utc)
        ctx.current_task = None

    return result


def run_targets(
    goals: Iterable[str],
    settings: Settings | None = None,
    root: Path | None = None,
    registry: TaskRegistry | None = None,
    environ: Mapping[str, str] | None = None,
    echo: Echo | None = None,
    dry_run: bool = False,
    quiet_stdout: bool = False,
) -> RunReport:
    """Resolve goals and run the resulting plan.

    Args:
        goals: Target names; the default goal when empty.
        settings: Settings; loaded from the environment if not provided.
        root: Project root; the current directory if not provided.
        registry: Tasks; built for ``root`` if not provided.
        environ: Environment the run inherits; the process environment by default.
        echo: Sink for progress messages.
        dry_run: Print commands instead of running them.
        quiet_stdout: Send command output to stderr.

    Returns:
        RunReport; tasks after a failure are reported as skipped.

    Raises:
        UnknownTaskError: If a goal or prerequisite is not defined.
        TaskCycleError: If prerequisites form a cycle.
        TaskDefinitionError: If the task file or a command template is invalid.
    """
    if settings is None:
        settings = get_settings()
    root = (root or Path.cwd()).resolve()
    if registry is None:
        registry = build_registry(settings, root)

    selected = _goals(goals)
    plan = resolve_plan(registry, selected)
    report = RunReport(
        goals=selected,
        plan=[t.name for t in plan],
        dry_run=dry_run,
    )

    ctx = TaskContext.create(
        settings,
        root=root,
        environ=environ,
        echo=echo,
        dry_run=dry_run,
        quiet_stdout=quiet_stdout,
        registry=registry,
    )
    check_templates(plan, ctx.variables())

    logger.debug("Plan for %s: %s", ", ".join(selected), " -> ".join(report.plan))
    for task in plan:
        if not report.success:
            report.results.append(TaskResult(name=task.name, status=TaskStatus.SKIPPED))
            continue
        report.results.append(run_task(task, ctx))

    return report


def describe_plan(
    goals: Iterable[str],
    settings: Settings | None = None,
    root: Path | None = None,
    registry: TaskRegistry | None = None,
    environ: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """Return the resolved plan with rendered action descriptions.

    Raises:
        UnknownTaskError: If a goal or prerequisite is not defined.
        TaskCycleError: If prerequisites form a cycle.
    """
    if settings is None:
        settings = get_settings()
    root = (root or Path.cwd()).resolve()
    if registry is None:
        registry = build_registry(settings, root)

    ctx = TaskContext.create(settings, root=root, environ=environ, registry=registry)
    variables = ctx.variables()

    described = []
    for task in resolve_plan(registry, _goals(goals)):
        entry = task.to_dict()
        entry["actions"] = [a.render(variables) for a in task.actions]
        described.append(entry)
    return described


__all__ = [
    "build_registry",
    "check_templates",
    "describe_plan",
    "run_targets",
    "run_task",
]
