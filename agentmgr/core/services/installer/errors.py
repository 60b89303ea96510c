"""
Installer error taxonomy.

Every failure of an install/update/uninstall/query is raised to the
immediate caller as one of these.  ``CommandFailed`` keeps the captured
stderr exactly as the tool wrote it so ``format_install_error`` can
match on it.
"""

from __future__ import annotations

from collections.abc import Sequence

from agentmgr.core.models.version import InvalidVersionFormat

__all__ = [
    "CommandCancelled",
    "CommandFailed",
    "InstallerError",
    "InvalidVersionFormat",
    "NoCommandSpecified",
    "NotSupported",
    "PackageNotSpecified",
    "ProviderUnavailable",
    "UnsupportedMethod",
]


class InstallerError(Exception):
    """Base class for installer failures."""


class UnsupportedMethod(InstallerError):
    """The method string does not belong to any provider family."""

    def __init__(self, method: str):
        self.method = method
        super().__init__(f"unsupported install method: {method}")


class ProviderUnavailable(InstallerError):
    """Right provider family, but the tool is not usable on this machine."""

    def __init__(self, method: str, provider: str):
        self.method = method
        self.provider = provider
        super().__init__(f"{provider} is not available (method {method})")


class NoCommandSpecified(InstallerError):
    """No command to run and nothing to fall back on."""


class PackageNotSpecified(InstallerError):
    """The package name could not be determined from the method definition."""

    def __init__(self, provider: str, command: str = ""):
        self.provider = provider
        self.command = command
        super().__init__(f"could not determine {provider} package name")


class NotSupported(InstallerError):
    """The operation has no meaning for this install method."""

    def __init__(self, method: str, operation: str = "version checking"):
        self.method = method
        self.operation = operation
        super().__init__(f"{operation} not supported for {method}")


class CommandFailed(InstallerError):
    """An external command exited non-zero.

    Attributes:
        command: argv that was run.
        returncode: Exit status (negative for signals on POSIX).
        stdout: Captured standard output.
        stderr: Captured standard error, verbatim.
    """

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
        operation: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.operation = operation
        prefix = f"{operation} failed" if operation else "command failed"
        msg = f"{prefix} (exit {returncode})"
        if stderr:
            msg += f"\n{stderr}"
        super().__init__(msg)


class CommandCancelled(CommandFailed):
    """The command was stopped because its cancel token fired."""

    def __init__(self, command: Sequence[str], stdout: str = "", stderr: str = "", reason: str = "cancelled"):
        super().__init__(command, returncode=-1, stdout=stdout, stderr=stderr)
        self.reason = reason
        self.args = (f"command {reason}: {' '.join(self.command)}",)
