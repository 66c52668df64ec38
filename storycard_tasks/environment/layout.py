"""Host detection and virtual environment path layout.

This module handles:
- Detecting the host OS family from the ``OS`` variable and ``uname -s``
- Choosing the path separator for the host
- Composing the virtual environment interpreter and script paths

Paths are composed as strings joined with the host separator so the
values match what the developer would type in that host's shell.
"""

from __future__ import annotations

import os
import platform
from collections.abc import Mapping
from dataclasses import dataclass

from storycard_tasks.types import HostOS

WINDOWS_SEP = "\\"
POSIX_SEP = "/"


def detect_host_os(os_env: str | None, system: str | None) -> HostOS:
    """Determine the host OS family.

    ``OS=Windows_NT`` is set by every Windows shell, including the POSIX
    emulation layers where ``uname -s`` reports something else.

    Args:
        os_env: Value of the ``OS`` environment variable.
        system: Kernel name as reported by ``uname -s``.

    Returns:
        Detected HostOS.
    """
    if os_env == "Windows_NT" or system == "Windows":
        return HostOS.WINDOWS
    if system == "Linux":
        return HostOS.LINUX
    if system == "Darwin":
        return HostOS.MACOS
    return HostOS.UNKNOWN


def current_host_os(environ: Mapping[str, str] | None = None) -> HostOS:
    """Detect the OS family of the running host."""
    if environ is None:
        environ = os.environ
    return detect_host_os(environ.get("OS"), platform.system())


@dataclass(frozen=True)
class VenvLayout:
    """Paths of a virtual environment on a given host.

    Attributes:
        venv_name: Virtual environment directory, relative to the project root.
        host_os: Host OS family the paths are composed for.
        sep: Path separator for the host.
        scripts_dir: Name of the executables directory (``bin`` or ``Scripts``).
        exe_suffix: Executable suffix (``.exe`` on Windows).
    """

    venv_name: str
    host_os: HostOS
    sep: str
    scripts_dir: str
    exe_suffix: str

    @classmethod
    def for_host(cls, venv_name: str, host_os: HostOS) -> VenvLayout:
        """Build the layout for ``venv_name`` on ``host_os``."""
        if host_os is HostOS.WINDOWS:
            return cls(venv_name, host_os, WINDOWS_SEP, "Scripts", ".exe")
        return cls(venv_name, host_os, POSIX_SEP, "bin", "")

    @property
    def is_windows(self) -> bool:
        return self.host_os is HostOS.WINDOWS

    def join(self, *parts: str) -> str:
        """Join path parts with the host separator."""
        return self.sep.join(parts)

    @property
    def bin_dir(self) -> str:
        return self.join(self.venv_name, self.scripts_dir)

    @property
    def python(self) -> str:
        """Interpreter inside the virtual environment."""
        return self.join(self.venv_name, self.scripts_dir, f"python{self.exe_suffix}")

    @property
    def pip(self) -> str:
        return self.join(self.venv_name, self.scripts_dir, f"pip{self.exe_suffix}")

    @property
    def activate_script(self) -> str:
        name = "activate.bat" if self.is_windows else "activate"
        return self.join(self.venv_name, self.scripts_dir, name)


def resolve_project_dir(
    package_name: str,
    layout: VenvLayout,
    override: str | None = None,
) -> str:
    """Return the source directory the quality tools run against.

    Args:
        package_name: Import name of the package under work.
        layout: Host layout providing the separator.
        override: Explicit directory from settings, used verbatim.

    Returns:
        ``src<SEP><package_name>`` unless overridden.
    """
    if override:
        return override
    return layout.join("src", package_name)


__all__ = [
    "POSIX_SEP",
    "WINDOWS_SEP",
    "VenvLayout",
    "current_host_os",
    "detect_host_os",
    "resolve_project_dir",
]
