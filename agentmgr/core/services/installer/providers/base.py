"""
Provider base — the contract between the manager and package managers.

Each provider knows one family of install methods.  The manager only
talks to providers through this interface.  Unlike adapters elsewhere,
providers DO raise: failures surface as ``InstallerError`` subclasses
so callers can tell "tool missing" from "command failed".

To create a new provider:
    1. Subclass Provider
    2. Implement name, method, is_available, install, update, uninstall
    3. Override get_latest_version if the tool has a registry to query
    4. Route its method strings in ``Manager``
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from agentmgr.adapters.platform import HostPlatform, Platform
from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import InvalidVersionFormat, Version, parse_version
from agentmgr.core.services.installer.errors import CommandCancelled, CommandFailed, NotSupported
from agentmgr.core.services.installer.runner import CancelToken, CommandOutput, CommandRunner

logger = logging.getLogger(__name__)


class Result(BaseModel):
    """Outcome of an install or update.

    ``from_version`` and ``was_updated`` only carry meaning for updates;
    installs leave them at their zero values.
    """

    agent_id: str
    agent_name: str = ""
    method: str = ""
    version: Version = Field(default_factory=Version)
    from_version: Version = Field(default_factory=Version)
    install_path: str = ""
    executable_path: str = ""
    duration: float = 0.0           # seconds
    output: str = ""
    was_updated: bool = False


class Provider(ABC):
    """Abstract base class for install providers.

    Args:
        platform: OS abstraction (default: the host).
        runner: Command runner (default: a real ``CommandRunner``).
    """

    def __init__(self, platform: Platform | None = None, runner: CommandRunner | None = None):
        self.platform = platform if platform is not None else HostPlatform()
        self.runner = runner if runner is not None else CommandRunner()

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (``npm``, ``pip``, ``brew``, ...)."""

    @property
    @abstractmethod
    def method(self) -> InstallMethod:
        """Primary install method this provider handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the underlying tool is usable here.  Fast, never raises."""

    @abstractmethod
    def install(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        force: bool = False,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        """Install an agent."""

    @abstractmethod
    def update(
        self,
        inst: Installation,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        """Update an installed agent."""

    @abstractmethod
    def uninstall(
        self,
        inst: Installation,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> None:
        """Remove an installed agent."""

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        """Latest version published in the tool's registry.

        Raises:
            NotSupported: The provider has no registry to query.
        """
        raise NotSupported(method_def.method or self.name)

    # ── Shared helpers ──────────────────────────────────────────

    def _run(self, cmd: list[str], ctx: CancelToken | None, **kwargs) -> CommandOutput:
        return self.runner.run(cmd, ctx=ctx, **kwargs)

    def _probe(self, cmd: list[str], ctx: CancelToken | None, **kwargs) -> CommandOutput | None:
        """Best-effort query: output on exit 0, ``None`` otherwise.

        Cancellation still propagates.
        """
        try:
            out = self._run(cmd, ctx, **kwargs)
        except CommandCancelled:
            raise
        except CommandFailed as e:
            logger.debug("Probe %s did not start: %s", cmd[0], e)
            return None
        if not out.ok:
            logger.debug("Probe %s exited %d", cmd[0], out.returncode)
            return None
        return out

    def _detected_version(self, agent_def: AgentDef, ctx: CancelToken | None) -> Version:
        """Version reported by the agent's own version command (zero if unknown).

        Uses ``detection.version_regex`` when it matches, else the
        ``extract_version_string`` heuristic.
        """
        detection = agent_def.detection
        if not detection.version_cmd:
            return Version()

        out = self._probe(self.platform.shell_command(detection.version_cmd), ctx, merge_stderr=True)
        if out is None:
            return Version()

        text = out.stdout.strip()
        if detection.version_regex:
            try:
                m = re.search(detection.version_regex, text)
            except re.error as e:
                logger.debug("Bad version_regex for %s: %s", agent_def.id, e)
                m = None
            if m:
                return coerce_version(m.group(1) if m.groups() else m.group(0))

        return coerce_version(extract_version_string(text))

    def _find_executable(self, agent_def: AgentDef) -> str:
        """First detection executable found on PATH, or ``""``."""
        for name in agent_def.detection.executables:
            path = self.platform.find_executable(name)
            if path:
                return path
        return ""

    def _result(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        start: float,
        **fields,
    ) -> Result:
        return Result(
            agent_id=agent_def.id,
            agent_name=agent_def.name,
            method=method_def.method or self.method.value,
            duration=time.monotonic() - start,
            **fields,
        )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


def coerce_version(text: str) -> Version:
    """Best-effort version from tool output.

    Empty text gives the zero ``Version``; text that does not parse is
    kept as an opaque ``raw`` so it still reads as "present but unknown".
    """
    text = (text or "").strip()
    if not text:
        return Version()
    try:
        return parse_version(text)
    except InvalidVersionFormat:
        logger.debug("Unparseable version %r", text)
        return Version(raw=text)


def extract_version_string(output: str) -> str:
    """Pull a version token out of free-form ``--version`` output.

    Prefers the first line mentioning "version" (any case): its first
    token starting with a digit or with ``v`` plus a digit, with the
    ``v`` stripped.  Otherwise the first token anywhere that starts with
    a digit.  Returns ``""`` when nothing looks like a version.
    """
    for line in output.splitlines():
        if "version" in line.lower():
            for part in line.split():
                if _is_digit(part[0]):
                    return part
                if part[0] == "v" and len(part) > 1 and _is_digit(part[1]):
                    return part[1:]

    for part in output.split():
        if _is_digit(part[0]):
            return part
    return ""


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"
