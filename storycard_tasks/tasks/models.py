"""Task definitions and run results."""

from __future__ import annotations

import shlex
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Union

from storycard_tasks.tasks.runner import render_argv
from storycard_tasks.types import TaskStatus

if TYPE_CHECKING:
    from storycard_tasks.tasks.context import TaskContext


@dataclass(frozen=True)
class CommandAction:
    """An external command run by a task.

    Attributes:
        argv: Command template; items may hold ``{placeholder}`` fields
            filled from the task context variables.
        stdout_path: Optional file (relative to the project root) that
            receives the command's standard output.
    """

    argv: tuple[str, ...]
    stdout_path: str | None = None

    def describe(self) -> str:
        text = shlex.join(self.argv)
        if self.stdout_path:
            text += f" > {self.stdout_path}"
        return text

    def render(self, variables: Mapping[str, str]) -> str:
        """Describe the command with placeholders filled in."""
        text = shlex.join(render_argv(list(self.argv), variables))
        if self.stdout_path:
            text += f" > {render_argv([self.stdout_path], variables)[0]}"
        return text

    def execute(self, ctx: TaskContext) -> None:
        ctx.run(list(self.argv), stdout_path=self.stdout_path)


@dataclass(frozen=True)
class PythonAction:
    """An in-process step, used where a target does more than call a tool."""

    func: Callable[[TaskContext], None]
    description: str

    def describe(self) -> str:
        return self.description

    def render(self, variables: Mapping[str, str]) -> str:
        return render_argv([self.description], variables)[0]

    def execute(self, ctx: TaskContext) -> None:
        self.func(ctx)


Action = Union[CommandAction, PythonAction]


def command(*argv: str, stdout: str | None = None) -> CommandAction:
    """Shorthand for building a CommandAction."""
    return CommandAction(argv=tuple(argv), stdout_path=stdout)


@dataclass(frozen=True)
class Task:
    """A named, invocable unit of build automation.

    Attributes:
        name: Target name used on the command line.
        help: One-line description; only documented tasks are listed by ``help``.
        deps: Prerequisite target names, run in this order before the task.
        actions: Steps run once all prerequisites have succeeded.
        section: Grouping used in listings.
        aliases: Alternative names resolving to this task.
    """

    name: str
    help: str | None = None
    deps: tuple[str, ...] = ()
    actions: tuple[Action, ...] = ()
    section: str = "misc"
    aliases: tuple[str, ...] = ()

    @property
    def is_aggregate(self) -> bool:
        """Whether the task only chains prerequisites."""
        return not self.actions

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "help": self.help,
            "section": self.section,
            "deps": list(self.deps),
            "aliases": list(self.aliases),
            "actions": [a.describe() for a in self.actions],
        }


@dataclass
class TaskResult:
    """Outcome of one task in a run."""

    name: str
    status: TaskStatus = TaskStatus.PENDING
    exit_code: int | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error_code: str | None = None
    error_message: str | None = None
    commands: list[str] = field(default_factory=list)

    @property
    def duration(self) -> float | None:
        if self.started_at is None or self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "status": self.status.value,
            "exit_code": self.exit_code,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "commands": self.commands,
        }


@dataclass
class RunReport:
    """Outcome of a run over a resolved plan."""

    goals: list[str]
    plan: list[str]
    results: list[TaskResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def failed(self) -> TaskResult | None:
        for result in self.results:
            if result.status is TaskStatus.FAILED:
                return result
        return None

    @property
    def success(self) -> bool:
        return self.failed is None

    @property
    def exit_code(self) -> int:
        failed = self.failed
        if failed is None:
            return 0
        return failed.exit_code if failed.exit_code else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "goals": self.goals,
            "plan": self.plan,
            "success": self.success,
            "exit_code": self.exit_code,
            "dry_run": self.dry_run,
            "results": [r.to_dict() for r in self.results],
        }


__all__ = [
    "Action",
    "CommandAction",
    "PythonAction",
    "RunReport",
    "Task",
    "TaskResult",
    "command",
]
