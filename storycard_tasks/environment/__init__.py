"""Virtual environment handling.

This module handles:
- Host OS detection and path layout
- Virtual environment lifecycle (install, activate, upgrade, clean)
- Workspace housekeeping (build artifacts, git hooks)
"""

from storycard_tasks.environment.layout import VenvLayout, detect_host_os

__all__ = ["VenvLayout", "detect_host_os"]
