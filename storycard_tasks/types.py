"""Shared type definitions for storycard_tasks.

This module contains enums shared across subpackages to avoid circular
imports.
"""

from enum import Enum


class HostOS(str, Enum):
    """Operating system family of the host running the tasks."""

    WINDOWS = "WINDOWS"
    LINUX = "LINUX"
    MACOS = "MACOS"
    UNKNOWN = "UNKNOWN"


class TaskStatus(str, Enum):
    """Status of a task within a run."""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


__all__ = ["HostOS", "TaskStatus"]
