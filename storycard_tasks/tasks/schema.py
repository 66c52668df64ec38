"""Pydantic models for task file validation.

A task file declares extra targets, or replaces default ones by name:

    tasks:
      - name: docs
        help: Build the documentation
        deps: [venv-activate]
        commands:
          - mkdocs build --strict
      - name: freeze-dev
        commands:
          - argv: [poetry, export, --with, dev]
            stdout: requirements-dev.txt

Command items and ``stdout`` may use the placeholders ``{python}``,
``{pip}``, ``{venv}``, ``{sep}``, ``{project_dir}``, ``{package}``,
``{project_name}``, ``{tests_dir}``, ``{bootstrap_python}``,
``{requirements_file}`` and ``{hooks_dir}``. Write ``{{`` and ``}}`` for
literal braces. Unknown placeholders fail the run before any task starts.
"""

import re
import shlex

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storycard_tasks.tasks.models import CommandAction, Task

TASK_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_][a-zA-Z0-9_.\-]*$")


def _check_name(v: str) -> str:
    if not TASK_NAME_PATTERN.match(v):
        raise ValueError(
            f"task name must match {TASK_NAME_PATTERN.pattern}, got '{v}'"
        )
    return v


class CommandSchema(BaseModel):
    """Schema for a single command.

    Attributes:
        argv: Command and arguments; items may use placeholders.
        stdout: Optional file receiving standard output.
    """

    model_config = ConfigDict(extra="forbid")

    argv: list[str] = Field(min_length=1, description="Command and arguments")
    stdout: str | None = Field(default=None, description="Redirect stdout to file")

    def to_action(self) -> CommandAction:
        return CommandAction(argv=tuple(self.argv), stdout_path=self.stdout)


class TaskSchema(BaseModel):
    """Schema for one task definition.

    Commands may be given as a shell-like string, a list of arguments, or
    a mapping with ``argv`` and ``stdout``.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Target name")
    help: str | None = Field(default=None, description="One-line description")
    deps: list[str] = Field(default_factory=list, description="Prerequisites")
    commands: list[CommandSchema] = Field(default_factory=list)
    section: str = Field(default="custom")
    aliases: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _check_name(v)

    @field_validator("aliases")
    @classmethod
    def validate_aliases(cls, v: list[str]) -> list[str]:
        return [_check_name(alias) for alias in v]

    @field_validator("commands", mode="before")
    @classmethod
    def normalize_commands(cls, v: object) -> object:
        """Accept strings and argument lists as shorthand command forms."""
        if not isinstance(v, list):
            return v
        normalized: list[object] = []
        for item in v:
            if isinstance(item, str):
                argv = shlex.split(item)
                if not argv:
                    raise ValueError("command must not be empty")
                normalized.append({"argv": argv})
            elif isinstance(item, list):
                normalized.append({"argv": item})
            else:
                normalized.append(item)
        return normalized

    @model_validator(mode="after")
    def validate_not_self_dependent(self) -> "TaskSchema":
        if self.name in self.deps:
            raise ValueError(f"task '{self.name}' cannot depend on itself")
        return self

    def to_task(self) -> Task:
        return Task(
            name=self.name,
            help=self.help,
            deps=tuple(self.deps),
            actions=tuple(c.to_action() for c in self.commands),
            section=self.section,
            aliases=tuple(self.aliases),
        )


class TaskFileSchema(BaseModel):
    """Schema for a task file."""

    model_config = ConfigDict(extra="forbid")

    tasks: list[TaskSchema] = Field(default_factory=list)

    @field_validator("tasks")
    @classmethod
    def validate_unique_names(cls, v: list[TaskSchema]) -> list[TaskSchema]:
        seen: set[str] = set()
        for task in v:
            if task.name in seen:
                raise ValueError(f"duplicate task name '{task.name}'")
            seen.add(task.name)
        return v


__all__ = ["CommandSchema", "TaskFileSchema", "TaskSchema"]
