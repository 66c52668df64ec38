"""Task definition and execution module.

This module handles:
- Task models and the target registry
- The default workflow catalog and optional task files
- Plan resolution over prerequisites
- Running plans through external commands
"""

from storycard_tasks.tasks.models import RunReport, Task, TaskResult

__all__ = ["RunReport", "Task", "TaskResult"]

# Submodules are imported explicitly (storycard_tasks.tasks.service, etc.)
