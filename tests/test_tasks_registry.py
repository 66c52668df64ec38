"""Tests for tasks/registry.py and tasks/catalog.py modules."""

import pytest

from storycard_tasks.errors import TaskDefinitionError, UnknownTaskError
from storycard_tasks.tasks.catalog import default_registry, default_tasks
from storycard_tasks.tasks.models import CommandAction, PythonAction, Task
from storycard_tasks.tasks.registry import DEFAULT_GOAL, TaskRegistry, format_help

WORKFLOW_TARGETS = [
    "help",
    "venv-init",
    "venv-upgrade-pip",
    "venv-install",
    "venv-activate",
    "venv-clean",
    "venv-rebuild",
    "build",
    "publish",
    "install",
    "clean",
    "deps-update",
    "deps-freeze",
    "deps-all",
    "flake8",
    "type-check",
    "docstring-check",
    "pylint",
    "lint-python",
    "lint",
    "format-python",
    "sort-python",
    "sort",
    "format",
    "owasp-check",
    "snyk-test",
    "bandit-check",
    "security-python",
    "security",
    "unit-test",
    "integration-test",
    "hypothesis",
    "test-python",
    "test",
    "quality-python",
    "quality-python-force",
    "quality",
    "quality-force",
    "coverage",
    "coverage-html",
    "set-git-hooks",
    "set-env-vars",
    "pre-commit",
]


class TestTaskRegistry:
    """Tests for TaskRegistry."""

    def test_add_and_get(self):
        registry = TaskRegistry()
        task = Task("a", help="A task")
        registry.add(task)

        assert registry.get("a") is task
        assert "a" in registry
        assert len(registry) == 1

    def test_duplicate_rejected(self):
        registry = TaskRegistry([Task("a")])
        with pytest.raises(TaskDefinitionError):
            registry.add(Task("a"))

    def test_replace(self):
        """replace=True swaps the task and its aliases."""
        registry = TaskRegistry([Task("a", aliases=("old",))])
        registry.add(Task("a", help="new", aliases=("new",)), replace=True)

        assert registry.get("a").help == "new"
        assert "old" not in registry
        assert registry.canonical_name("new") == "a"

    def test_alias_conflicts(self):
        registry = TaskRegistry([Task("a", aliases=("x",))])
        with pytest.raises(TaskDefinitionError):
            registry.add(Task("b", aliases=("x",)))
        with pytest.raises(TaskDefinitionError):
            registry.add(Task("x"))
        with pytest.raises(TaskDefinitionError):
            registry.add(Task("c", aliases=("a",)))

    def test_unknown(self):
        registry = TaskRegistry()
        with pytest.raises(UnknownTaskError, match="No rule to make target 'nope'"):
            registry.get("nope")

    def test_documented_sorted_and_filtered(self):
        registry = TaskRegistry(
            [
                Task("zeta", help="Z"),
                Task("hidden"),
                Task("alpha", help="A"),
            ]
        )
        assert [t.name for t in registry.documented()] == ["alpha", "zeta"]

    def test_validate_dangling(self):
        registry = TaskRegistry([Task("a", deps=("missing",))])
        with pytest.raises(TaskDefinitionError, match="missing"):
            registry.validate()

    def test_validate_accepts_alias_prerequisite(self):
        registry = TaskRegistry([Task("a", aliases=("b",)), Task("c", deps=("b",))])
        registry.validate()

    def test_sections_keep_order(self):
        registry = TaskRegistry(
            [Task("a", section="one"), Task("b", section="two"), Task("c", section="one")]
        )
        sections = registry.sections()
        assert list(sections) == ["one", "two"]
        assert [t.name for t in sections["one"]] == ["a", "c"]


class TestFormatHelp:
    """Tests for format_help function."""

    def test_lines(self):
        registry = TaskRegistry([Task("build", help="Build the package"), Task("x")])
        lines = format_help(registry)

        assert lines[0] == "  storycard-tasks run [target]:"
        assert lines[1] == ""
        assert len(lines) == 3
        assert lines[2].startswith("build ")
        assert lines[2].endswith(" Build the package")
        assert lines[2].index("Build") == 31


class TestCatalog:
    """Tests for the default workflow targets."""

    def test_all_targets_present(self):
        registry = default_registry()
        assert sorted(registry.names()) == sorted(WORKFLOW_TARGETS)

    def test_default_goal_is_help(self):
        assert DEFAULT_GOAL == "help"
        assert DEFAULT_GOAL in default_registry()

    def test_registry_validates(self):
        default_registry().validate()

    def test_fresh_registry_each_call(self):
        assert default_registry() is not default_registry()

    def test_helper_targets_undocumented(self):
        """Helper targets stay out of the help listing."""
        documented = {t.name for t in default_registry().documented()}
        for name in ("venv-install", "venv-activate", "venv-upgrade-pip", "test-python"):
            assert name not in documented
        assert "venv-init" in documented
        assert "quality" in documented

    def test_aliases(self):
        registry = default_registry()
        assert registry.canonical_name("isort") == "sort-python"
        assert registry.canonical_name("snyk-check") == "snyk-test"

    def test_tool_targets_depend_on_activation(self):
        """Every target that calls a tool first activates the venv."""
        for task in default_tasks():
            if any(isinstance(a, CommandAction) for a in task.actions):
                assert task.deps[0] == "venv-activate", task.name

    def test_aggregates_have_no_actions(self):
        registry = default_registry()
        for name in ("venv-init", "lint", "lint-python", "quality", "security", "test"):
            assert registry.get(name).is_aggregate

    def test_tool_commands(self):
        registry = default_registry()

        def argv(name: str) -> tuple[str, ...]:
            action = registry.get(name).actions[-1]
            assert isinstance(action, CommandAction)
            return action.argv

        assert argv("build") == ("poetry", "build")
        assert argv("publish") == ("poetry", "publish", "--build")
        assert argv("install") == ("poetry", "install")
        assert argv("deps-update") == ("poetry", "update")
        assert argv("flake8") == ("flake8", "{project_dir}")
        assert argv("type-check") == ("mypy", "{project_dir}")
        assert argv("docstring-check") == ("pydocstyle", "{project_dir}")
        assert argv("pylint") == ("pylint", "{project_dir}")
        assert argv("format-python") == ("black", "{project_dir}")
        assert argv("sort-python") == ("isort", "{project_dir}")
        assert argv("bandit-check") == ("bandit", "-r", "{project_dir}")
        assert argv("snyk-test") == ("snyk", "test")
        assert argv("unit-test") == ("pytest", "{tests_dir}{sep}unit_tests")
        assert argv("integration-test") == ("pytest", "{tests_dir}{sep}integration_tests")
        assert argv("pre-commit") == ("pre-commit", "run", "--all-files")
        assert argv("coverage-html")[-2:] == ("--cov-report", "html")

    def test_deps_freeze_redirects_stdout(self):
        action = default_registry().get("deps-freeze").actions[0]
        assert isinstance(action, CommandAction)
        assert action.argv == ("poetry", "export", "--format", "requirements.txt")
        assert action.stdout_path == "{requirements_file}"

    def test_install_checks_poetry_first(self):
        actions = default_registry().get("install").actions
        assert isinstance(actions[0], PythonAction)
        assert isinstance(actions[1], CommandAction)
