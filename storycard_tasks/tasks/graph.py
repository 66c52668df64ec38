"""Plan resolution over task prerequisites.

Goals are resolved depth-first: a task's prerequisites, in declared
order, come before the task itself, and a task appears at most once in a
plan no matter how many tasks depend on it.
"""

from __future__ import annotations

from collections.abc import Iterable

from storycard_tasks.errors import TaskCycleError
from storycard_tasks.tasks.models import Task
from storycard_tasks.tasks.registry import TaskRegistry


def resolve_plan(registry: TaskRegistry, goals: Iterable[str]) -> list[Task]:
    """Resolve goals into an ordered, de-duplicated task list.

    Args:
        registry: Tasks to resolve against.
        goals: Target names or aliases, in command-line order.

    Returns:
        Tasks in execution order.

    Raises:
        UnknownTaskError: If a goal or prerequisite is not defined.
        TaskCycleError: If prerequisites form a cycle.
    """
    plan: list[Task] = []
    done: set[str] = set()
    stack: list[str] = []

    def visit(name: str) -> None:
        canonical = registry.canonical_name(name)
        if canonical in done:
            return
        if canonical in stack:
            start = stack.index(canonical)
            raise TaskCycleError([*stack[start:], canonical])

        task = registry.get(canonical)
        stack.append(canonical)
        for dep in task.deps:
            visit(dep)
        stack.pop()

        done.add(canonical)
        plan.append(task)

    for goal in goals:
        visit(goal)
    return plan


def plan_names(registry: TaskRegistry, goals: Iterable[str]) -> list[str]:
    return [task.name for task in resolve_plan(registry, goals)]


__all__ = ["plan_names", "resolve_plan"]
