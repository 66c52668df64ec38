"""Virtual environment and workspace service.

This module provides the in-process steps of the workflow targets:
- Creating, activating, upgrading and removing the virtual environment
- Making sure poetry is available
- Removing build artifacts
- Installing git hooks

Each step takes the run's TaskContext. External programs are started
through the context so dry runs and logging behave the same everywhere.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
from collections.abc import MutableMapping
from pathlib import Path
from typing import TYPE_CHECKING

from storycard_tasks.errors import TaskExecutionError, VenvActiveError

if TYPE_CHECKING:
    from storycard_tasks.tasks.context import TaskContext

logger = logging.getLogger(__name__)

BYTECODE_SUFFIXES = (".pyc", ".pyo")
BYTECODE_DIR = "__pycache__"
BUILD_DIRS = ("htmlcov", "build", "dist")


def activate_env(
    env: MutableMapping[str, str],
    venv_path: Path,
    bin_dir: Path,
) -> None:
    """Apply what the venv activate script does to an environment mapping.

    Args:
        env: Environment to update in place.
        venv_path: Virtual environment directory.
        bin_dir: Its executables directory.
    """
    env["VIRTUAL_ENV"] = str(venv_path)
    current = env.get("PATH", "")
    env["PATH"] = f"{bin_dir}{os.pathsep}{current}" if current else str(bin_dir)
    env.pop("PYTHONHOME", None)


def install_venv(ctx: TaskContext) -> None:
    """Create the virtual environment if its directory does not exist."""
    if ctx.venv_path.is_dir():
        logger.debug("Virtual environment present: %s", ctx.venv_path)
        return
    ctx.echo("Virtual environment is not installed. Installing...")
    ctx.run(["{bootstrap_python}", "-m", "venv", "{venv}"])


def activate_venv(ctx: TaskContext) -> None:
    """Activate the virtual environment for the remaining commands of the run.

    An environment that was already active when the run started is left
    in place.
    """
    if not ctx.venv_python.exists():
        ctx.echo("Python from virtual environment is not in PATH. Activating...")

    active = ctx.inherited_env.get("VIRTUAL_ENV")
    if active:
        ctx.echo(f"Virtual environment is already active: {active}")
        return

    ctx.echo("Activating virtual environment...")
    activate_env(ctx.env, ctx.venv_path, ctx.root / ctx.layout.bin_dir)


def upgrade_pip(ctx: TaskContext) -> None:
    ctx.echo("Upgrading pip.")
    ctx.run(["{python}", "-m", "pip", "install", "--upgrade", "pip"])


def clean_venv(ctx: TaskContext) -> None:
    """Remove the virtual environment.

    Raises:
        VenvActiveError: If a virtual environment is active in the calling shell.
    """
    active = ctx.inherited_env.get("VIRTUAL_ENV")
    if active:
        ctx.echo("Virtual environment is active. Please deactivate it first.")
        raise VenvActiveError(active)

    ctx.echo("Removing virtual environment...")
    if ctx.dry_run:
        return
    shutil.rmtree(ctx.venv_path, ignore_errors=True)


def ensure_poetry(ctx: TaskContext) -> None:
    """Install poetry with pip unless it is already installed."""
    result = ctx.execute(["pip", "show", "--quiet", "poetry"])
    if result is not None and result.success:
        logger.debug("poetry already installed")
        return
    ctx.run(["pip", "install", "poetry"])


def find_build_artifacts(root: Path) -> list[Path]:
    """List bytecode files, bytecode caches and build output under ``root``.

    Args:
        root: Directory to scan.

    Returns:
        Paths to remove, bytecode first, then top-level build directories.
    """
    found: list[Path] = []
    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)
        for filename in filenames:
            if filename.endswith(BYTECODE_SUFFIXES):
                found.append(current / filename)
        for dirname in list(dirnames):
            if dirname == BYTECODE_DIR:
                found.append(current / dirname)
                dirnames.remove(dirname)

    for name in BUILD_DIRS:
        path = root / name
        if path.exists():
            found.append(path)
    return found


def clean_artifacts(ctx: TaskContext) -> list[Path]:
    """Remove build artifacts from the project root.

    Returns:
        Paths that were removed (or would be, on a dry run).
    """
    artifacts = find_build_artifacts(ctx.root)
    for path in artifacts:
        if ctx.dry_run:
            ctx.echo(f"Would remove {path}")
            continue
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    logger.info("Removed %d build artifact(s)", len(artifacts))
    return artifacts


def install_git_hooks(ctx: TaskContext) -> list[Path]:
    """Copy the project's git hooks into ``.git/hooks`` and make them executable.

    Returns:
        Installed hook paths.

    Raises:
        TaskExecutionError: If the hooks directory or the git directory is missing.
    """
    source = ctx.root / ctx.settings.hooks_dir
    hooks_dir = ctx.root / ".git" / "hooks"

    if not source.is_dir():
        raise TaskExecutionError(f"Git hooks directory not found: {source}")
    if not hooks_dir.parent.is_dir():
        raise TaskExecutionError(f"Not a git repository: {ctx.root}")

    installed: list[Path] = []
    hooks = sorted(p for p in source.iterdir() if p.is_file())
    if not hooks:
        raise TaskExecutionError(f"No git hooks found in {source}")

    if ctx.dry_run:
        for hook in hooks:
            ctx.echo(f"Would install {hook.name} into {hooks_dir}")
        return [hooks_dir / hook.name for hook in hooks]

    hooks_dir.mkdir(exist_ok=True)
    for hook in hooks:
        target = hooks_dir / hook.name
        shutil.copy2(hook, target)
        installed.append(target)
        logger.debug("Installed git hook %s", target)

    for target in hooks_dir.iterdir():
        if target.is_file():
            mode = target.stat().st_mode
            target.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return installed


def set_env_vars(ctx: TaskContext) -> None:
    ctx.echo("Setting environment variables...")


__all__ = [
    "BUILD_DIRS",
    "activate_env",
    "activate_venv",
    "clean_artifacts",
    "clean_venv",
    "ensure_poetry",
    "find_build_artifacts",
    "install_git_hooks",
    "install_venv",
    "set_env_vars",
    "upgrade_pip",
]
