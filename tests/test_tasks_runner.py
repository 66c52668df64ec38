"""Tests for tasks/runner.py module.

Uses the running interpreter as a stand-in for external tools and
mocked subprocess for failure modes.
"""

import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from storycard_tasks.errors import (
    EXECUTION_ERROR,
    TIMEOUT,
    TOOL_NOT_FOUND,
    TaskDefinitionError,
    TaskExecutionError,
)
from storycard_tasks.tasks.runner import (
    STDERR_FD,
    render_argv,
    resolve_executable,
    run_command,
)


@pytest.fixture
def env() -> dict[str, str]:
    return dict(os.environ)


class TestRenderArgv:
    """Tests for render_argv function."""

    def test_fills_placeholders(self):
        result = render_argv(
            ["pytest", "{tests_dir}{sep}unit_tests", "--cov={project_dir}"],
            {"tests_dir": "tests", "sep": "/", "project_dir": "src/storycard"},
        )
        assert result == ["pytest", "tests/unit_tests", "--cov=src/storycard"]

    def test_plain_items_unchanged(self):
        assert render_argv(["poetry", "build"], {}) == ["poetry", "build"]

    def test_unknown_placeholder(self):
        with pytest.raises(TaskDefinitionError, match="nope"):
            render_argv(["{nope}"], {})

    def test_malformed_item(self):
        with pytest.raises(TaskDefinitionError):
            render_argv(["{unclosed"], {})


class TestResolveExecutable:
    """Tests for resolve_executable function."""

    def test_missing_tool(self, tmp_path):
        with pytest.raises(TaskExecutionError) as exc_info:
            resolve_executable("surely-not-a-real-tool-xyz", {"PATH": str(tmp_path)}, tmp_path)
        assert exc_info.value.code == TOOL_NOT_FOUND
        assert exc_info.value.exit_code == 127

    def test_absolute_path(self, tmp_path):
        assert resolve_executable(sys.executable, {"PATH": ""}, tmp_path)

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_found_on_given_path(self, tmp_path):
        """Lookup uses the PATH of the given environment."""
        tool = tmp_path / "mytool"
        tool.write_text("#!/bin/sh\nexit 0\n")
        tool.chmod(0o755)

        found = resolve_executable("mytool", {"PATH": str(tmp_path)}, tmp_path)
        assert Path(found) == tool

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX paths")
    def test_relative_path_resolved_against_cwd(self, tmp_path):
        bin_dir = tmp_path / ".venv" / "bin"
        bin_dir.mkdir(parents=True)
        tool = bin_dir / "python"
        tool.write_text("#!/bin/sh\nexit 0\n")
        tool.chmod(0o755)

        found = resolve_executable(".venv/bin/python", {"PATH": ""}, tmp_path)
        assert Path(found) == tool


class TestRunCommand:
    """Tests for run_command function."""

    def test_success(self, tmp_path, env):
        result = run_command([sys.executable, "-c", "pass"], cwd=tmp_path, env=env)

        assert result.success
        assert result.exit_code == 0
        assert result.finished_at >= result.started_at
        assert result.log_path is None

    def test_exit_code_propagated(self, tmp_path, env):
        """Non-zero exit codes are returned, not raised."""
        result = run_command(
            [sys.executable, "-c", "import sys; sys.exit(3)"], cwd=tmp_path, env=env
        )
        assert not result.success
        assert result.exit_code == 3

    def test_runs_in_cwd(self, tmp_path, env):
        run_command(
            [sys.executable, "-c", "open('marker.txt', 'w').write('x')"],
            cwd=tmp_path,
            env=env,
        )
        assert (tmp_path / "marker.txt").exists()

    def test_env_passed(self, tmp_path, env):
        env["STORYCARD_TEST_VALUE"] = "hello"
        out = tmp_path / "out.txt"
        run_command(
            [
                sys.executable,
                "-c",
                "import os; print(os.environ['STORYCARD_TEST_VALUE'])",
            ],
            cwd=tmp_path,
            env=env,
            stdout_path=out,
        )
        assert out.read_text().strip() == "hello"

    def test_stdout_redirect(self, tmp_path, env):
        """stdout_path receives the output, replacing previous content."""
        out = tmp_path / "requirements.txt"
        out.write_text("stale\n")

        run_command(
            [sys.executable, "-c", "print('pkg==1.0')"],
            cwd=tmp_path,
            env=env,
            stdout_path=out,
        )
        assert out.read_text().strip() == "pkg==1.0"

    def test_log_capture(self, tmp_path, env):
        log_path = tmp_path / "logs" / "task.log"
        result = run_command(
            [sys.executable, "-c", "import sys; print('out'); print('err', file=sys.stderr)"],
            cwd=tmp_path,
            env=env,
            log_path=log_path,
        )

        assert result.log_path == log_path
        content = log_path.read_text()
        assert "# Command:" in content
        assert "out" in content
        assert "err" in content
        assert "# Exit code: 0" in content

    def test_log_and_stdout_split(self, tmp_path, env):
        """With both set, stdout goes to the file and stderr to the log."""
        out = tmp_path / "out.txt"
        log_path = tmp_path / "task.log"
        run_command(
            [sys.executable, "-c", "import sys; print('data'); print('noise', file=sys.stderr)"],
            cwd=tmp_path,
            env=env,
            stdout_path=out,
            log_path=log_path,
        )

        assert out.read_text().strip() == "data"
        assert "noise" in log_path.read_text()
        assert "data" not in log_path.read_text()

    def test_quiet_stdout_sends_output_to_stderr(self, tmp_path, env):
        with patch("storycard_tasks.tasks.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
            run_command([sys.executable, "-c", "pass"], cwd=tmp_path, env=env, quiet_stdout=True)

        assert mock_run.call_args.kwargs["stdout"] == STDERR_FD
        assert mock_run.call_args.kwargs["stderr"] is None

    def test_quiet_stdout_keeps_redirect(self, tmp_path, env):
        """An explicit stdout file wins over quiet_stdout."""
        out = tmp_path / "out.txt"
        run_command(
            [sys.executable, "-c", "print('data')"],
            cwd=tmp_path,
            env=env,
            stdout_path=out,
            quiet_stdout=True,
        )
        assert out.read_text().strip() == "data"

    def test_stdout_inherited_by_default(self, tmp_path, env):
        with patch("storycard_tasks.tasks.runner.subprocess.run") as mock_run:
            mock_run.return_value = subprocess.CompletedProcess(args=[], returncode=0)
            run_command([sys.executable, "-c", "pass"], cwd=tmp_path, env=env)

        assert mock_run.call_args.kwargs["stdout"] is None

    def test_missing_tool(self, tmp_path):
        with pytest.raises(TaskExecutionError) as exc_info:
            run_command(["surely-not-a-real-tool-xyz"], cwd=tmp_path, env={"PATH": str(tmp_path)})
        assert exc_info.value.code == TOOL_NOT_FOUND

    def test_empty_command(self, tmp_path, env):
        with pytest.raises(TaskDefinitionError):
            run_command([], cwd=tmp_path, env=env)

    def test_timeout(self, tmp_path, env):
        with patch(
            "storycard_tasks.tasks.runner.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="x", timeout=5),
        ):
            with pytest.raises(TaskExecutionError) as exc_info:
                run_command([sys.executable, "-c", "pass"], cwd=tmp_path, env=env, timeout=5)

        assert exc_info.value.code == TIMEOUT
        assert exc_info.value.exit_code == 124
        assert "timed out after 5 seconds" in exc_info.value.message

    def test_os_error(self, tmp_path, env):
        with patch(
            "storycard_tasks.tasks.runner.subprocess.run",
            side_effect=PermissionError("denied"),
        ):
            with pytest.raises(TaskExecutionError) as exc_info:
                run_command([sys.executable, "-c", "pass"], cwd=tmp_path, env=env)

        assert exc_info.value.code == EXECUTION_ERROR
        assert exc_info.value.command is not None
