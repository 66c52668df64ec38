"""Tests for environment/layout.py module."""

from storycard_tasks.environment.layout import (
    POSIX_SEP,
    WINDOWS_SEP,
    VenvLayout,
    current_host_os,
    detect_host_os,
    resolve_project_dir,
)
from storycard_tasks.types import HostOS


class TestDetectHostOS:
    """Tests for detect_host_os function."""

    def test_windows_from_os_variable(self):
        """OS=Windows_NT should win over the kernel name."""
        assert detect_host_os("Windows_NT", None) is HostOS.WINDOWS
        assert detect_host_os("Windows_NT", "MINGW64_NT-10.0") is HostOS.WINDOWS

    def test_windows_from_system(self):
        assert detect_host_os(None, "Windows") is HostOS.WINDOWS

    def test_linux(self):
        assert detect_host_os(None, "Linux") is HostOS.LINUX

    def test_macos(self):
        assert detect_host_os(None, "Darwin") is HostOS.MACOS

    def test_other_os_variable_ignored(self):
        """Only the exact Windows_NT value selects Windows."""
        assert detect_host_os("LINUX", "Linux") is HostOS.LINUX

    def test_unknown(self):
        assert detect_host_os(None, "FreeBSD") is HostOS.UNKNOWN
        assert detect_host_os(None, None) is HostOS.UNKNOWN

    def test_current_host_os_reads_os_variable(self):
        """current_host_os should honour OS from the given environment."""
        assert current_host_os({"OS": "Windows_NT"}) is HostOS.WINDOWS


class TestVenvLayout:
    """Tests for VenvLayout paths."""

    def test_unix_layout(self):
        """Unix hosts use '/' and bin/python."""
        layout = VenvLayout.for_host(".venv", HostOS.LINUX)

        assert layout.sep == POSIX_SEP
        assert layout.python == ".venv/bin/python"
        assert layout.pip == ".venv/bin/pip"
        assert layout.bin_dir == ".venv/bin"
        assert layout.activate_script == ".venv/bin/activate"
        assert not layout.is_windows

    def test_macos_uses_unix_layout(self):
        layout = VenvLayout.for_host(".venv", HostOS.MACOS)
        assert layout.python == ".venv/bin/python"

    def test_unknown_uses_unix_layout(self):
        """Anything that is not Windows gets the Unix layout."""
        layout = VenvLayout.for_host("env", HostOS.UNKNOWN)
        assert layout.sep == "/"
        assert layout.python == "env/bin/python"

    def test_windows_layout(self):
        """Windows hosts use backslash and Scripts\\python.exe."""
        layout = VenvLayout.for_host(".venv", HostOS.WINDOWS)

        assert layout.sep == WINDOWS_SEP
        assert layout.python == ".venv\\Scripts\\python.exe"
        assert layout.pip == ".venv\\Scripts\\pip.exe"
        assert layout.bin_dir == ".venv\\Scripts"
        assert layout.activate_script == ".venv\\Scripts\\activate.bat"
        assert layout.is_windows

    def test_windows_and_unix_differ(self):
        windows = VenvLayout.for_host(".venv", HostOS.WINDOWS)
        unix = VenvLayout.for_host(".venv", HostOS.LINUX)
        assert windows.python != unix.python
        assert windows.sep != unix.sep

    def test_join(self):
        layout = VenvLayout.for_host(".venv", HostOS.WINDOWS)
        assert layout.join("tests", "unit_tests") == "tests\\unit_tests"


class TestResolveProjectDir:
    """Tests for resolve_project_dir function."""

    def test_default_unix(self):
        layout = VenvLayout.for_host(".venv", HostOS.LINUX)
        assert resolve_project_dir("storycard", layout) == "src/storycard"

    def test_default_windows(self):
        layout = VenvLayout.for_host(".venv", HostOS.WINDOWS)
        assert resolve_project_dir("storycard", layout) == "src\\storycard"

    def test_override(self):
        """An explicit directory is used verbatim."""
        layout = VenvLayout.for_host(".venv", HostOS.WINDOWS)
        assert resolve_project_dir("storycard", layout, "lib/pkg") == "lib/pkg"
