"""Registry of named tasks."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from storycard_tasks.errors import TaskDefinitionError, UnknownTaskError
from storycard_tasks.tasks.models import Task

DEFAULT_GOAL = "help"
HELP_NAME_WIDTH = 30


class TaskRegistry:
    """Tasks addressable by name or alias.

    Names and aliases share one namespace. Insertion order is kept and is
    the order used for listings grouped by section.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: dict[str, Task] = {}
        self._aliases: dict[str, str] = {}
        for task in tasks:
            self.add(task)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks or name in self._aliases

    def __iter__(self) -> Iterator[Task]:
        return iter(self._tasks.values())

    def __len__(self) -> int:
        return len(self._tasks)

    def names(self) -> list[str]:
        return list(self._tasks)

    def add(self, task: Task, replace: bool = False) -> None:
        """Register a task.

        Args:
            task: Task to add.
            replace: Allow replacing a task with the same name.

        Raises:
            TaskDefinitionError: If the name or an alias is already taken.
        """
        if task.name in self._aliases:
            raise TaskDefinitionError(
                f"Task name '{task.name}' is already an alias of "
                f"'{self._aliases[task.name]}'"
            )
        if task.name in self._tasks:
            if not replace:
                raise TaskDefinitionError(f"Duplicate task: {task.name}")
            self.remove(task.name)

        for alias in task.aliases:
            if alias in self._tasks or alias in self._aliases:
                raise TaskDefinitionError(
                    f"Alias '{alias}' of task '{task.name}' is already defined"
                )

        self._tasks[task.name] = task
        for alias in task.aliases:
            self._aliases[alias] = task.name

    def remove(self, name: str) -> Task:
        task = self.get(name)
        del self._tasks[task.name]
        for alias in task.aliases:
            self._aliases.pop(alias, None)
        return task

    def canonical_name(self, name: str) -> str:
        """Return the task name an identifier refers to.

        Raises:
            UnknownTaskError: If no task or alias matches.
        """
        if name in self._tasks:
            return name
        if name in self._aliases:
            return self._aliases[name]
        raise UnknownTaskError(name)

    def get(self, name: str) -> Task:
        return self._tasks[self.canonical_name(name)]

    def documented(self) -> list[Task]:
        """Tasks carrying a help string, sorted by name."""
        return sorted(
            (t for t in self._tasks.values() if t.help),
            key=lambda t: t.name,
        )

    def sections(self) -> dict[str, list[Task]]:
        grouped: dict[str, list[Task]] = {}
        for task in self._tasks.values():
            grouped.setdefault(task.section, []).append(task)
        return grouped

    def validate(self) -> None:
        """Check that every prerequisite refers to a defined task.

        Raises:
            TaskDefinitionError: On the first dangling prerequisite.
        """
        for task in self._tasks.values():
            for dep in task.deps:
                if dep not in self:
                    raise TaskDefinitionError(
                        f"Task '{task.name}' depends on undefined task '{dep}'"
                    )


def format_help(registry: TaskRegistry, prog: str = "storycard-tasks") -> list[str]:
    """Render the plain-text target listing of the ``help`` target."""
    lines = [f"  {prog} run [target]:", ""]
    for task in registry.documented():
        lines.append(f"{task.name:<{HELP_NAME_WIDTH}} {task.help}")
    return lines


__all__ = ["DEFAULT_GOAL", "TaskRegistry", "format_help"]
