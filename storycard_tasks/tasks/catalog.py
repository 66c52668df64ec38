"""Default workflow targets for the storycard package.

Targets, their prerequisites and their order mirror the project's
historical make targets so existing muscle memory keeps working. Every
action is a thin dispatch to an external tool; results are judged only by
exit status.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

from storycard_tasks.environment import service as env_service
from storycard_tasks.errors import TaskDefinitionError
from storycard_tasks.tasks.models import PythonAction, Task, command
from storycard_tasks.tasks.registry import TaskRegistry, format_help

if TYPE_CHECKING:
    from storycard_tasks.tasks.context import TaskContext

VENV = "venv-activate"


def _print_help(ctx: TaskContext) -> None:
    if ctx.registry is None:
        raise TaskDefinitionError("help requires a task registry")
    for line in format_help(ctx.registry):
        ctx.echo(line)


def _step(func: Callable[[TaskContext], None], description: str) -> PythonAction:
    return PythonAction(func=func, description=description)


def _main_tasks() -> list[Task]:
    return [
        Task(
            "help",
            help="This help message.",
            actions=(_step(_print_help, "print documented targets"),),
            section="main",
        ),
    ]


def _venv_tasks() -> list[Task]:
    return [
        Task(
            "venv-init",
            help="Initialize Python Virtual Environment",
            deps=("venv-install", VENV, "venv-upgrade-pip"),
            section="venv",
        ),
        Task(
            "venv-upgrade-pip",
            deps=(VENV,),
            actions=(_step(env_service.upgrade_pip, "{python} -m pip install --upgrade pip"),),
            section="venv",
        ),
        Task(
            "venv-install",
            actions=(
                _step(env_service.install_venv, "{bootstrap_python} -m venv {venv} (if missing)"),
            ),
            section="venv",
        ),
        Task(
            VENV,
            deps=("venv-install",),
            actions=(_step(env_service.activate_venv, "activate {venv}"),),
            section="venv",
        ),
        Task(
            "venv-clean",
            help="Remove Python virtual environment",
            actions=(_step(env_service.clean_venv, "remove {venv} (refused while active)"),),
            section="venv",
        ),
        Task(
            "venv-rebuild",
            help="Rebuild Python virtual environment",
            deps=("venv-clean", "venv-init"),
            section="venv",
        ),
    ]


def _app_tasks() -> list[Task]:
    return [
        Task(
            "build",
            help="Build the package",
            deps=(VENV,),
            actions=(command("poetry", "build"),),
            section="app",
        ),
        Task(
            "publish",
            help="Publish the package to PyPI",
            deps=(VENV,),
            actions=(command("poetry", "publish", "--build"),),
            section="app",
        ),
        Task(
            "install",
            help="Install dependencies",
            deps=(VENV,),
            actions=(
                _step(env_service.ensure_poetry, "pip install poetry (if missing)"),
                command("poetry", "install"),
            ),
            section="app",
        ),
        Task(
            "clean",
            help="Clean build artifacts",
            actions=(_step(env_service.clean_artifacts, "remove bytecode, htmlcov, build, dist"),),
            section="app",
        ),
    ]


def _deps_tasks() -> list[Task]:
    return [
        Task(
            "deps-update",
            help="Update project dependencies",
            deps=(VENV,),
            actions=(command("poetry", "update"),),
            section="deps",
        ),
        Task(
            "deps-freeze",
            help="Freeze project dependencies",
            deps=(VENV,),
            actions=(
                command(
                    "poetry", "export", "--format", "requirements.txt",
                    stdout="{requirements_file}",
                ),
            ),
            section="deps",
        ),
        Task(
            "deps-all",
            help="Update and Freeze project dependencies",
            deps=(VENV, "deps-update", "deps-freeze"),
            section="deps",
        ),
    ]


def _lint_tasks() -> list[Task]:
    return [
        Task(
            "flake8",
            help="Lint the code with flake8",
            deps=(VENV,),
            actions=(command("flake8", "{project_dir}"),),
            section="lint",
        ),
        Task(
            "type-check",
            help="Type-check the code",
            deps=(VENV,),
            actions=(command("mypy", "{project_dir}"),),
            section="lint",
        ),
        Task(
            "docstring-check",
            help="Validate docstrings",
            deps=(VENV,),
            actions=(command("pydocstyle", "{project_dir}"),),
            section="lint",
        ),
        Task(
            "pylint",
            help="Run Pylint for code linting",
            deps=(VENV,),
            actions=(command("pylint", "{project_dir}"),),
            section="lint",
        ),
        Task(
            "lint-python",
            help="Lint Python Code.",
            deps=(VENV, "flake8", "type-check", "docstring-check", "pylint"),
            section="lint",
        ),
        Task(
            "lint",
            help="Lint the project's code.",
            deps=(VENV, "lint-python"),
            section="lint",
        ),
    ]


def _format_tasks() -> list[Task]:
    return [
        Task(
            "format-python",
            help="Auto-format the code using black",
            deps=(VENV,),
            actions=(command("black", "{project_dir}"),),
            section="format",
        ),
        Task(
            "sort-python",
            help="Sort the imports",
            deps=(VENV,),
            actions=(command("isort", "{project_dir}"),),
            section="format",
            aliases=("isort",),
        ),
        Task(
            "sort",
            help="Sort the project's dependencies.",
            deps=(VENV, "sort-python"),
            section="format",
        ),
        Task(
            "format",
            help="Format Project Files.",
            deps=(VENV, "format-python"),
            section="format",
        ),
    ]


def _security_tasks() -> list[Task]:
    return [
        Task(
            "owasp-check",
            help="Run OWASP Dependency-Check",
            deps=(VENV,),
            actions=(
                command(
                    "dependency-check",
                    "--project", "{project_name}",
                    "--scan", "{project_dir}",
                    "--out", ".",
                    "--format", "ALL",
                ),
            ),
            section="security",
        ),
        Task(
            "snyk-test",
            help="Run Snyk tests",
            deps=(VENV,),
            actions=(command("snyk", "test"),),
            section="security",
            aliases=("snyk-check",),
        ),
        Task(
            "bandit-check",
            help="Run Bandit Security Check",
            deps=(VENV,),
            actions=(command("bandit", "-r", "{project_dir}"),),
            section="security",
        ),
        Task(
            "security-python",
            help="Audit Python Code Security",
            deps=(VENV, "owasp-check", "snyk-test", "bandit-check"),
            section="security",
        ),
        Task(
            "security",
            help="Audit Project's Security.",
            deps=(VENV, "security-python"),
            section="security",
        ),
    ]


def _test_tasks() -> list[Task]:
    return [
        Task(
            "unit-test",
            help="Run unit tests",
            deps=(VENV,),
            actions=(command("pytest", "{tests_dir}{sep}unit_tests"),),
            section="test",
        ),
        Task(
            "integration-test",
            help="Run integration tests",
            deps=(VENV,),
            actions=(command("pytest", "{tests_dir}{sep}integration_tests"),),
            section="test",
        ),
        Task(
            "hypothesis",
            help="Run Hypothesis for property-based testing",
            deps=(VENV,),
            actions=(command("hypothesis", "write", "{package}"),),
            section="test",
        ),
        Task(
            "test-python",
            deps=(VENV, "unit-test", "integration-test", "hypothesis"),
            section="test",
        ),
        Task(
            "test",
            help="Run Unit and Integration Tests.",
            deps=(VENV, "test-python"),
            section="test",
        ),
    ]


def _quality_tasks() -> list[Task]:
    return [
        Task(
            "quality-python",
            help="Check Python Code Quality",
            deps=(VENV, "lint-python", "security-python", "test-python"),
            section="quality",
        ),
        Task(
            "quality-python-force",
            help="Format Python Code and Check Quality",
            deps=(VENV, "format-python", "sort-python", "quality-python"),
            section="quality",
        ),
        Task(
            "quality",
            help="Check Code Quality",
            deps=(VENV, "quality-python"),
            section="quality",
        ),
        Task(
            "quality-force",
            help="Format Code and Check Quality",
            deps=(VENV, "quality-python-force"),
            section="quality",
        ),
    ]


def _info_tasks() -> list[Task]:
    return [
        Task(
            "coverage",
            help="Generate code coverage report",
            deps=(VENV,),
            actions=(command("pytest", "{tests_dir}{sep}", "--cov={project_dir}"),),
            section="info",
        ),
        Task(
            "coverage-html",
            help="Generate HTML code coverage report",
            deps=(VENV,),
            actions=(
                command(
                    "pytest", "{tests_dir}{sep}", "--cov={project_dir}",
                    "--cov-report", "html",
                ),
            ),
            section="info",
        ),
    ]


def _misc_tasks() -> list[Task]:
    return [
        Task(
            "set-git-hooks",
            help="Set up Git hooks",
            actions=(_step(env_service.install_git_hooks, "copy {hooks_dir} into .git/hooks"),),
            section="misc",
        ),
        Task(
            "set-env-vars",
            help="Set environment variables",
            actions=(_step(env_service.set_env_vars, "announce environment variables"),),
            section="misc",
        ),
        Task(
            "pre-commit",
            help="Run pre-commit hooks",
            deps=(VENV,),
            actions=(command("pre-commit", "run", "--all-files"),),
            section="misc",
        ),
    ]


def default_tasks() -> list[Task]:
    """All workflow targets in listing order."""
    return [
        *_main_tasks(),
        *_venv_tasks(),
        *_app_tasks(),
        *_deps_tasks(),
        *_lint_tasks(),
        *_format_tasks(),
        *_security_tasks(),
        *_test_tasks(),
        *_quality_tasks(),
        *_info_tasks(),
        *_misc_tasks(),
    ]


def default_registry() -> TaskRegistry:
    """Build a registry holding the default workflow targets."""
    registry = TaskRegistry(default_tasks())
    registry.validate()
    return registry


__all__ = ["default_registry", "default_tasks"]
