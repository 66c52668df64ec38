"""Storycard Tasks - developer workflow runner for the storycard package.

This package provides the named workflow targets (virtual environment,
dependencies, linting, formatting, security, tests and coverage) and the
prerequisite-aware runner that dispatches them to external tools.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
