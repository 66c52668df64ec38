"""Task file loading.

This module provides helpers for reading extra task definitions from
YAML or JSON files and merging them into a registry.
"""

import json
import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from storycard_tasks.errors import TaskDefinitionError
from storycard_tasks.tasks.models import Task
from storycard_tasks.tasks.registry import TaskRegistry
from storycard_tasks.tasks.schema import TaskFileSchema

logger = logging.getLogger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")
JSON_SUFFIXES = (".json",)


def read_task_file_data(path: Path) -> dict[str, Any]:
    """Read the raw mapping held by a task file.

    An empty YAML file reads as an empty mapping.

    Raises:
        TaskDefinitionError: If the extension is not supported.
        OSError: If the file cannot be read.
        yaml.YAMLError: If a YAML file does not parse.
        json.JSONDecodeError: If a JSON file does not parse.
        ValueError: If the top level is not a mapping.
    """
    suffix = path.suffix.lower()
    if suffix not in YAML_SUFFIXES + JSON_SUFFIXES:
        raise TaskDefinitionError(
            f"Unsupported task file extension: {suffix}. Use .yaml, .yml, or .json"
        )

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) if suffix in YAML_SUFFIXES else json.load(f)
    if data is None and suffix in YAML_SUFFIXES:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Task file must hold a mapping, got {type(data).__name__}")
    return data


def parse_task_file_data(data: dict[str, Any]) -> list[Task]:
    """Validate task file data and convert it to tasks.

    Raises:
        pydantic.ValidationError: If data does not match the schema.
    """
    schema = TaskFileSchema.model_validate(data)
    return [t.to_task() for t in schema.tasks]


def load_task_file(path: Path) -> list[Task]:
    """Load tasks from a YAML (.yaml, .yml) or JSON (.json) file.

    Args:
        path: Task file path.

    Returns:
        Tasks declared in the file.

    Raises:
        TaskDefinitionError: If the file cannot be read or is invalid.
    """
    try:
        return parse_task_file_data(read_task_file_data(path))
    except ValidationError as e:
        raise TaskDefinitionError(f"Invalid task file {path}:\n{e}") from e
    except (OSError, yaml.YAMLError, json.JSONDecodeError, ValueError) as e:
        raise TaskDefinitionError(f"Cannot load task file {path}: {e}") from e


def merge_tasks(registry: TaskRegistry, tasks: list[Task]) -> TaskRegistry:
    """Add tasks to a registry, replacing same-named tasks.

    Returns:
        The registry, validated after the merge.
    """
    for task in tasks:
        replaced = task.name in registry.names()
        registry.add(task, replace=True)
        logger.debug("%s task %s", "Replaced" if replaced else "Added", task.name)
    registry.validate()
    return registry


__all__ = [
    "load_task_file",
    "merge_tasks",
    "parse_task_file_data",
    "read_task_file_data",
]
