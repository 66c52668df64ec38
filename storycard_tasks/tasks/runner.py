"""Command runner for task actions.

This module handles:
- Filling ``{placeholder}`` fields of command templates
- Resolving the executable on the run's PATH
- Executing commands with subprocess, streamed or captured to files
- Enforcing command timeouts
"""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from collections.abc import Mapping
from contextlib import ExitStack
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from storycard_tasks.errors import (
    EXECUTION_ERROR,
    EXIT_NOT_FOUND,
    EXIT_TIMEOUT,
    TIMEOUT,
    TOOL_NOT_FOUND,
    TaskDefinitionError,
    TaskExecutionError,
)

logger = logging.getLogger(__name__)

# Child stdout goes here when the terminal stdout is reserved for a report
STDERR_FD = 2


@dataclass
class CommandResult:
    """Result of a command execution.

    Attributes:
        exit_code: Process exit code.
        command: Shell-quoted command that was executed.
        started_at: Start time.
        finished_at: Finish time.
        log_path: Log file the output was captured to, if any.
    """

    exit_code: int
    command: str
    started_at: datetime
    finished_at: datetime
    log_path: Path | None = None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def render_argv(argv: list[str], variables: Mapping[str, str]) -> list[str]:
    """Fill placeholders in a command template.

    Args:
        argv: Command template items.
        variables: Placeholder values.

    Returns:
        Rendered command.

    Raises:
        TaskDefinitionError: If a template references an unknown placeholder.
    """
    rendered: list[str] = []
    for item in argv:
        try:
            rendered.append(item.format_map(variables))
        except KeyError as e:
            raise TaskDefinitionError(
                f"Unknown placeholder {{{e.args[0]}}} in command item '{item}'"
            ) from e
        except (ValueError, IndexError) as e:
            raise TaskDefinitionError(
                f"Malformed command item '{item}': {e}"
            ) from e
    return rendered


def resolve_executable(name: str, env: Mapping[str, str], cwd: Path) -> str:
    """Locate an executable the way the shell would for ``env``.

    Names containing a path separator are resolved against ``cwd``.

    Raises:
        TaskExecutionError: If the executable cannot be found.
    """
    if "/" in name or "\\" in name:
        candidate = Path(name)
        if not candidate.is_absolute():
            candidate = cwd / candidate
        found = shutil.which(str(candidate))
    else:
        found = shutil.which(name, path=env.get("PATH"))
    if found is None:
        raise TaskExecutionError(
            f"Command not found: {name}",
            exit_code=EXIT_NOT_FOUND,
            code=TOOL_NOT_FOUND,
        )
    return found


def run_command(
    argv: list[str],
    cwd: Path,
    env: Mapping[str, str],
    stdout_path: Path | None = None,
    log_path: Path | None = None,
    timeout: int | None = None,
    quiet_stdout: bool = False,
) -> CommandResult:
    """Execute a command.

    Output is streamed to the terminal unless ``stdout_path`` or
    ``log_path`` redirect it. With both set, stdout goes to ``stdout_path``
    and stderr to ``log_path``. With ``quiet_stdout`` and no redirection,
    stdout is sent to the terminal's stderr.

    Args:
        argv: Rendered command.
        cwd: Working directory.
        env: Complete environment for the child process.
        stdout_path: Optional file receiving standard output.
        log_path: Optional log file receiving the remaining output.
        timeout: Timeout in seconds (None = no timeout).
        quiet_stdout: Keep the child off this process's stdout.

    Returns:
        CommandResult with execution details.

    Raises:
        TaskExecutionError: If the command cannot be started or times out.
    """
    if not argv:
        raise TaskDefinitionError("Empty command")

    cmd_str = shlex.join(argv)
    executable = resolve_executable(argv[0], env, cwd)
    logger.debug("Executing: %s (cwd=%s)", cmd_str, cwd)

    started_at = datetime.now(timezone.utc)
    try:
        with ExitStack() as stack:
            stdout = None
            stderr = None
            if log_path is not None:
                log_path.parent.mkdir(parents=True, exist_ok=True)
                log_file = stack.enter_context(log_path.open("a", encoding="utf-8"))
                log_file.write(f"# Command: {cmd_str}\n")
                log_file.write(f"# Started: {started_at.isoformat()}\n")
                log_file.flush()
                stdout = log_file
                stderr = subprocess.STDOUT
            if stdout_path is not None:
                stdout_path.parent.mkdir(parents=True, exist_ok=True)
                if stderr is subprocess.STDOUT:
                    stderr = stdout
                stdout = stack.enter_context(stdout_path.open("w", encoding="utf-8"))
            if stdout is None and quiet_stdout:
                stdout = STDERR_FD

            result = subprocess.run(
                [executable, *argv[1:]],
                cwd=cwd,
                env=dict(env),
                stdout=stdout,
                stderr=stderr,
                timeout=timeout,
                check=False,
            )
    except subprocess.TimeoutExpired as e:
        message = f"Command timed out after {timeout} seconds: {cmd_str}"
        logger.error(message)
        raise TaskExecutionError(
            message,
            exit_code=EXIT_TIMEOUT,
            code=TIMEOUT,
            command=cmd_str,
        ) from e
    except OSError as e:
        message = f"Failed to execute {cmd_str}: {e}"
        logger.error(message)
        raise TaskExecutionError(
            message,
            code=EXECUTION_ERROR,
            command=cmd_str,
        ) from e

    finished_at = datetime.now(timezone.utc)
    if result.returncode != 0:
        logger.debug("Command exited with %d: %s", result.returncode, cmd_str)

    if log_path is not None:
        with log_path.open("a", encoding="utf-8") as log_file:
            duration = (finished_at - started_at).total_seconds()
            log_file.write(f"# Exit code: {result.returncode}\n")
            log_file.write(f"# Duration: {duration:.1f}s\n\n")

    return CommandResult(
        exit_code=result.returncode,
        command=cmd_str,
        started_at=started_at,
        finished_at=finished_at,
        log_path=log_path,
    )


__all__ = [
    "CommandResult",
    "render_argv",
    "resolve_executable",
    "run_command",
]
