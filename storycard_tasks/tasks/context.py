"""Execution context shared by the tasks of one run."""

from __future__ import annotations

import logging
import os
import shlex
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from storycard_tasks.config import Settings
from storycard_tasks.environment.layout import (
    VenvLayout,
    current_host_os,
    resolve_project_dir,
)
from storycard_tasks.errors import TaskExecutionError
from storycard_tasks.tasks.registry import TaskRegistry
from storycard_tasks.tasks.runner import CommandResult, render_argv, run_command

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


def _log_echo(message: str) -> None:
    logger.info(message)


@dataclass
class TaskContext:
    """State shared by every task of a run.

    Attributes:
        root: Project root; commands run from here.
        settings: Effective settings.
        layout: Virtual environment layout for the host.
        inherited_env: Environment the runner was started with. Guards
            such as the active-venv check read from here.
        env: Environment passed to child processes; activation updates it.
        echo: Sink for user-facing progress messages.
        dry_run: Report commands instead of running them.
        quiet_stdout: Send command output to stderr, keeping stdout for a report.
        registry: Tasks of the run, for steps that describe other tasks.
        current_task: Name of the task being executed.
        commands: Commands issued by the current task.
    """

    root: Path
    settings: Settings
    layout: VenvLayout
    inherited_env: dict[str, str]
    env: dict[str, str]
    echo: Echo = _log_echo
    dry_run: bool = False
    quiet_stdout: bool = False
    registry: TaskRegistry | None = None
    current_task: str | None = None
    commands: list[str] = field(default_factory=list)

    @classmethod
    def create(
        cls,
        settings: Settings,
        root: Path | None = None,
        environ: Mapping[str, str] | None = None,
        echo: Echo | None = None,
        dry_run: bool = False,
        registry: TaskRegistry | None = None,
        quiet_stdout: bool = False,
    ) -> TaskContext:
        """Build a context from settings and the process environment."""
        if environ is None:
            environ = os.environ
        inherited = dict(environ)
        layout = VenvLayout.for_host(settings.venv_name, current_host_os(inherited))
        return cls(
            root=(root or Path.cwd()).resolve(),
            settings=settings,
            layout=layout,
            inherited_env=inherited,
            env=dict(inherited),
            echo=echo or _log_echo,
            dry_run=dry_run,
            quiet_stdout=quiet_stdout,
            registry=registry,
        )

    @property
    def project_dir(self) -> str:
        return resolve_project_dir(
            self.settings.package_name, self.layout, self.settings.project_dir
        )

    @property
    def venv_path(self) -> Path:
        return self.root / self.settings.venv_name

    @property
    def venv_python(self) -> Path:
        return self.root / self.layout.python

    def variables(self) -> dict[str, str]:
        """Placeholder values available to command templates."""
        return {
            "python": self.layout.python,
            "pip": self.layout.pip,
            "venv": self.layout.venv_name,
            "sep": self.layout.sep,
            "project_dir": self.project_dir,
            "package": self.settings.package_name,
            "project_name": self.settings.project_name,
            "tests_dir": self.settings.tests_dir,
            "bootstrap_python": self.settings.bootstrap_python,
            "requirements_file": self.settings.requirements_file,
            "hooks_dir": self.settings.hooks_dir,
        }

    def log_path(self) -> Path | None:
        if self.settings.log_dir is None or self.current_task is None:
            return None
        log_dir = self.settings.log_dir
        if not log_dir.is_absolute():
            log_dir = self.root / log_dir
        return log_dir / f"{self.current_task}.log"

    def execute(
        self,
        argv: list[str],
        stdout_path: str | None = None,
    ) -> CommandResult | None:
        """Render and run a command without judging its exit status.

        Returns:
            CommandResult, or None on a dry run.
        """
        variables = self.variables()
        rendered = render_argv(argv, variables)
        display = shlex.join(rendered)
        out_path: Path | None = None
        if stdout_path:
            out_name = render_argv([stdout_path], variables)[0]
            display += f" > {out_name}"
            out_path = self.root / out_name
        self.commands.append(display)

        if self.dry_run:
            self.echo(display)
            return None

        return run_command(
            rendered,
            cwd=self.root,
            env=self.env,
            stdout_path=out_path,
            log_path=self.log_path(),
            timeout=self.settings.command_timeout,
            quiet_stdout=self.quiet_stdout,
        )

    def run(self, argv: list[str], stdout_path: str | None = None) -> None:
        """Run a command and fail the task on a non-zero exit code.

        Raises:
            TaskExecutionError: If the command exits non-zero.
        """
        result = self.execute(argv, stdout_path=stdout_path)
        if result is not None and not result.success:
            raise TaskExecutionError(
                f"Command failed with exit code {result.exit_code}: {result.command}",
                exit_code=result.exit_code,
                command=result.command,
            )


__all__ = ["Echo", "TaskContext"]
