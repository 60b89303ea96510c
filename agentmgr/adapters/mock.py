"""
Mock platform and runner — test doubles for the installer.

``MockPlatform`` answers platform questions from a dict of known
executables.  ``MockRunner`` records every command and replies with
canned output instead of starting processes.
"""

from __future__ import annotations

from collections.abc import Sequence

from agentmgr.adapters.platform import Platform, PlatformID
from agentmgr.core.services.installer.errors import CommandCancelled
from agentmgr.core.services.installer.runner import CancelToken, CommandOutput, CommandRunner


class MockPlatform(Platform):
    """Platform with a configurable identity and PATH.

    Args:
        platform_id: Identifier to report (default ``darwin``).
        executables: ``name -> path`` for everything "on PATH".
    """

    def __init__(
        self,
        platform_id: str = PlatformID.DARWIN,
        executables: dict[str, str] | None = None,
        shell: str = "sh",
    ):
        self._id = platform_id
        self.executables: dict[str, str] = dict(executables or {})
        self._shell = shell

    @property
    def id(self) -> str:
        return self._id

    @id.setter
    def id(self, value: str) -> None:
        self._id = value

    def get_shell(self) -> str:
        return self._shell

    def get_shell_arg(self) -> str:
        return "-c"

    def find_executable(self, name: str) -> str | None:
        return self.executables.get(name) or None

    def add_executable(self, name: str, path: str | None = None) -> None:
        self.executables[name] = path or f"/usr/local/bin/{name}"


class MockRunner(CommandRunner):
    """Runner that never spawns processes.

    Responses are keyed by the space-joined command line.  Lookup tries
    an exact match first, then the longest registered prefix; anything
    else gets the default (empty success).
    """

    def __init__(self, default_returncode: int = 0, default_stdout: str = ""):
        super().__init__()
        self._default_returncode = default_returncode
        self._default_stdout = default_stdout
        self._responses: dict[str, tuple[int, str, str]] = {}
        self._call_log: list[list[str]] = []

    @property
    def call_log(self) -> list[list[str]]:
        """Every argv this runner has received."""
        return self._call_log

    @property
    def call_count(self) -> int:
        return len(self._call_log)

    @property
    def command_lines(self) -> list[str]:
        return [" ".join(c) for c in self._call_log]

    def set_response(
        self,
        command: str | Sequence[str],
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> None:
        """Configure the reply for a command line (or prefix)."""
        key = command if isinstance(command, str) else " ".join(command)
        self._responses[key] = (returncode, stdout, stderr)

    def set_failure(self, command: str | Sequence[str], stderr: str = "mock failure", returncode: int = 1) -> None:
        self.set_response(command, stderr=stderr, returncode=returncode)

    def run(
        self,
        cmd: Sequence[str],
        *,
        ctx: CancelToken | None = None,
        merge_stderr: bool = False,
        env_overrides: dict[str, str] | None = None,
    ) -> CommandOutput:
        argv = list(cmd)
        self._call_log.append(argv)
        if ctx is not None and ctx.cancelled:
            raise CommandCancelled(argv, reason=ctx.reason())

        line = " ".join(argv)
        returncode, stdout, stderr = self._lookup(line)
        if merge_stderr:
            stdout = "\n".join(s for s in (stdout, stderr) if s)
            stderr = ""
        return CommandOutput(command=argv, returncode=returncode, stdout=stdout, stderr=stderr)

    def _lookup(self, line: str) -> tuple[int, str, str]:
        if line in self._responses:
            return self._responses[line]
        best = ""
        for key in self._responses:
            if line.startswith(key) and len(key) > len(best):
                best = key
        if best:
            return self._responses[best]
        return self._default_returncode, self._default_stdout, ""

    def reset(self) -> None:
        """Clear call log and canned responses."""
        self._call_log.clear()
        self._responses.clear()
