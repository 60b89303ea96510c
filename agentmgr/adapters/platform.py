"""
Platform adapter — the OS facts the installer needs.

The installer never asks the OS directly which shell to use or where
an executable lives; it goes through a ``Platform``.  ``HostPlatform``
answers for the running machine, ``MockPlatform`` (see ``mock.py``)
answers for tests.
"""

from __future__ import annotations

import os
import shutil
import sys
from abc import ABC, abstractmethod
from enum import StrEnum


class PlatformID(StrEnum):
    """Supported platform identifiers (as used in catalog ``platforms``)."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"


def current_platform_id() -> PlatformID:
    """Platform identifier of the running interpreter."""
    if sys.platform == "darwin":
        return PlatformID.DARWIN
    if sys.platform.startswith("win"):
        return PlatformID.WINDOWS
    return PlatformID.LINUX


class Platform(ABC):
    """OS abstraction used by providers and the manager."""

    @property
    @abstractmethod
    def id(self) -> str:
        """Platform identifier (``darwin``, ``linux``, ``windows``)."""

    @abstractmethod
    def get_shell(self) -> str:
        """Shell used to run free-form install commands."""

    @abstractmethod
    def get_shell_arg(self) -> str:
        """Argument that makes the shell run the next argument as a command."""

    @abstractmethod
    def find_executable(self, name: str) -> str | None:
        """Absolute path of ``name`` on PATH, or ``None``."""

    def is_executable_in_path(self, name: str) -> bool:
        return self.find_executable(name) is not None

    def shell_command(self, command: str) -> list[str]:
        """argv that runs ``command`` through the platform shell."""
        return [self.get_shell(), self.get_shell_arg(), command]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} id={self.id!r}>"


class HostPlatform(Platform):
    """The machine we are running on."""

    def __init__(self, platform_id: str | None = None):
        self._id = platform_id or current_platform_id()

    @property
    def id(self) -> str:
        return self._id

    def get_shell(self) -> str:
        if self._id == PlatformID.WINDOWS:
            # Prefer PowerShell if available
            for candidate in ("pwsh", "powershell"):
                if shutil.which(candidate):
                    return candidate
            return "cmd"
        return os.environ.get("SHELL") or "/bin/bash"

    def get_shell_arg(self) -> str:
        shell = self.get_shell().lower()
        if "pwsh" in shell or "powershell" in shell:
            return "-Command"
        if shell.endswith("cmd") or shell.endswith("cmd.exe"):
            return "/C"
        return "-c"

    def find_executable(self, name: str) -> str | None:
        return shutil.which(name)
