"""Error definitions for storycard_tasks.

Every error carries a stable ``code`` for programmatic handling and the
process ``exit_code`` the CLI should terminate with.
"""

from typing import Any

# Error code constants
UNKNOWN_TASK = "unknown_task"
TASK_CYCLE = "task_cycle"
TASK_DEFINITION = "task_definition"
COMMAND_FAILED = "command_failed"
TOOL_NOT_FOUND = "tool_not_found"
TIMEOUT = "timeout"
EXECUTION_ERROR = "execution_error"
VENV_ACTIVE = "venv_active"
CONFIGURATION = "configuration"

# Exit codes used when there is no wrapped process to take one from
EXIT_USAGE = 2
EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


class TaskError(Exception):
    """Base error for task definition and execution."""

    def __init__(
        self,
        message: str,
        code: str = EXECUTION_ERROR,
        exit_code: int = 1,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.exit_code = exit_code

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "exit_code": self.exit_code,
        }


class UnknownTaskError(TaskError):
    """Raised when a target name is not defined."""

    def __init__(self, name: str) -> None:
        super().__init__(
            f"No rule to make target '{name}'",
            code=UNKNOWN_TASK,
            exit_code=EXIT_USAGE,
        )
        self.name = name


class TaskCycleError(TaskError):
    """Raised when prerequisites form a cycle."""

    def __init__(self, cycle: list[str]) -> None:
        super().__init__(
            f"Circular dependency: {' -> '.join(cycle)}",
            code=TASK_CYCLE,
            exit_code=EXIT_USAGE,
        )
        self.cycle = cycle


class TaskDefinitionError(TaskError):
    """Raised when a task definition is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=TASK_DEFINITION, exit_code=EXIT_USAGE)


class TaskExecutionError(TaskError):
    """Raised when a task action fails."""

    def __init__(
        self,
        message: str,
        exit_code: int = 1,
        code: str = COMMAND_FAILED,
        command: str | None = None,
    ) -> None:
        super().__init__(message, code=code, exit_code=exit_code)
        self.command = command

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = super().to_dict()
        if self.command is not None:
            result["command"] = self.command
        return result


class VenvActiveError(TaskError):
    """Raised when removing a virtual environment that is currently active."""

    def __init__(self, virtual_env: str) -> None:
        super().__init__(
            "Virtual environment is active. Please deactivate it first.",
            code=VENV_ACTIVE,
            exit_code=1,
        )
        self.virtual_env = virtual_env


class ConfigurationError(TaskError):
    """Raised when settings cannot be loaded."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code=CONFIGURATION, exit_code=EXIT_USAGE)


__all__ = [
    "COMMAND_FAILED",
    "CONFIGURATION",
    "EXECUTION_ERROR",
    "EXIT_NOT_FOUND",
    "EXIT_TIMEOUT",
    "EXIT_USAGE",
    "TASK_CYCLE",
    "TASK_DEFINITION",
    "TIMEOUT",
    "TOOL_NOT_FOUND",
    "UNKNOWN_TASK",
    "VENV_ACTIVE",
    "ConfigurationError",
    "TaskCycleError",
    "TaskDefinitionError",
    "TaskError",
    "TaskExecutionError",
    "UnknownTaskError",
    "VenvActiveError",
]
