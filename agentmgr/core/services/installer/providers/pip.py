"""
pip provider — Python packages through pip, pipx or uv.

One provider covers the whole family; the method string picks the
front-end.  pipx and ``uv tool`` give each agent its own environment,
plain pip installs into whatever interpreter owns ``pip3``/``pip``.
"""

from __future__ import annotations

import json
import logging
import re
import time

from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import Version
from agentmgr.core.services.installer.errors import PackageNotSpecified
from agentmgr.core.services.installer.providers.base import Provider, Result, coerce_version
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)

_FRONTENDS = ("pip", "pip3", "pipx", "uv")

# Characters that start a requirement specifier or marker
_SPEC_RE = re.compile(r"[=<>!~\[;@ ]")

# "ruff v0.4.2" as printed by ``uv tool list``
_UV_LINE_RE = re.compile(r"^(\S+)\s+v?(\S+)")

# "aider-chat (0.50.1)" as printed by ``pip index versions``
_INDEX_RE = re.compile(r"^\S+\s+\(([^)]+)\)")


class PipProvider(Provider):
    """Install agents with pip, pipx or ``uv tool``."""

    @property
    def name(self) -> str:
        return "pip"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.PIP

    def is_available(self) -> bool:
        return any(self.platform.is_executable_in_path(tool) for tool in _FRONTENDS)

    def install(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        force: bool = False,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        start = time.monotonic()
        pkg = self._package(method_def)
        method = method_def.method

        if method == InstallMethod.PIPX:
            cmd = ["pipx", "install", pkg]
            if force:
                cmd.append("--force")
        elif method == InstallMethod.UV:
            cmd = ["uv", "tool", "install", pkg]
            if force:
                cmd.append("--force")
        else:
            cmd = [self._pip(), "install", pkg]
            if force:
                cmd.append("--force-reinstall")

        logger.info("Installing %s (%s package %s)", agent_def.id, cmd[0], pkg)
        out = self._run(cmd, ctx).check(f"{cmd[0]} install")

        return self._result(
            agent_def,
            method_def,
            start,
            version=self._installed_version(method, pkg, agent_def, ctx),
            executable_path=self._find_executable(agent_def),
            output=out.stdout,
        )

    def update(
        self,
        inst: Installation,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        start = time.monotonic()
        pkg = self._package(method_def)
        method = method_def.method
        from_version = inst.installed_version

        if method == InstallMethod.PIPX:
            cmd = ["pipx", "upgrade", pkg]
        elif method == InstallMethod.UV:
            cmd = ["uv", "tool", "upgrade", pkg]
        else:
            cmd = [self._pip(), "install", "--upgrade", pkg]

        logger.info("Updating %s (%s package %s)", agent_def.id, cmd[0], pkg)
        out = self._run(cmd, ctx).check(f"{cmd[0]} update")
        to_version = self._installed_version(method, pkg, agent_def, ctx)

        return self._result(
            agent_def,
            method_def,
            start,
            version=to_version,
            from_version=from_version,
            install_path=inst.install_path,
            executable_path=inst.executable_path,
            output=out.stdout,
            was_updated=to_version.is_newer_than(from_version),
        )

    def uninstall(
        self,
        inst: Installation,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> None:
        pkg = self._package(method_def)
        method = method_def.method

        if method == InstallMethod.PIPX:
            cmd = ["pipx", "uninstall", pkg]
        elif method == InstallMethod.UV:
            cmd = ["uv", "tool", "uninstall", pkg]
        else:
            cmd = [self._pip(), "uninstall", "-y", pkg]

        logger.info("Uninstalling %s (%s package %s)", inst.agent_id, cmd[0], pkg)
        self._run(cmd, ctx).check(f"{cmd[0]} uninstall")

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        """Newest release on the package index (``pip index versions``)."""
        pkg = self._package(method_def)
        out = self._run([self._pip(), "index", "versions", pkg], ctx).check("pip index")
        for line in out.stdout.splitlines():
            m = _INDEX_RE.match(line.strip())
            if m:
                return coerce_version(m.group(1))
        return Version()

    # ── Internals ───────────────────────────────────────────────

    def _pip(self) -> str:
        if self.platform.is_executable_in_path("pip3"):
            return "pip3"
        return "pip"

    def _package(self, method_def: InstallMethodDef) -> str:
        pkg = method_def.package or extract_pip_package(method_def.command)
        if not pkg:
            raise PackageNotSpecified(self.name, method_def.command)
        return pkg

    def _installed_version(
        self,
        method: str,
        pkg: str,
        agent_def: AgentDef,
        ctx: CancelToken | None,
    ) -> Version:
        if method == InstallMethod.PIPX:
            version = self._pipx_version(pkg, ctx)
        elif method == InstallMethod.UV:
            version = self._uv_version(pkg, ctx)
        else:
            version = self._pip_show_version(pkg, ctx)

        if version.is_zero():
            logger.debug("%s reported no version for %s", method, pkg)
            return self._detected_version(agent_def, ctx)
        return version

    def _pip_show_version(self, pkg: str, ctx: CancelToken | None) -> Version:
        out = self._probe([self._pip(), "show", pkg], ctx)
        if out is None:
            return Version()
        for line in out.stdout.splitlines():
            if line.startswith("Version:"):
                return coerce_version(line.partition(":")[2])
        return Version()

    def _pipx_version(self, pkg: str, ctx: CancelToken | None) -> Version:
        out = self._probe(["pipx", "list", "--json"], ctx)
        if out is None:
            return Version()
        try:
            data = json.loads(out.stdout)
        except json.JSONDecodeError:
            return Version()
        if not isinstance(data, dict):
            return Version()
        venv = (data.get("venvs") or {}).get(pkg) or {}
        main = (venv.get("metadata") or {}).get("main_package") or {}
        return coerce_version(main.get("package_version", ""))

    def _uv_version(self, pkg: str, ctx: CancelToken | None) -> Version:
        out = self._probe(["uv", "tool", "list"], ctx)
        if out is None:
            return Version()
        for line in out.stdout.splitlines():
            m = _UV_LINE_RE.match(line)
            if m and m.group(1) == pkg:
                return coerce_version(m.group(2))
        return Version()


def extract_pip_package(command: str) -> str:
    """Package name from a pip/pipx/uv install command line.

    First non-flag token after ``install``, with any version specifier,
    extras or marker removed.
    """
    parts = command.split()
    for i, part in enumerate(parts):
        if part != "install":
            continue
        for candidate in parts[i + 1:]:
            if candidate.startswith("-"):
                continue
            return _SPEC_RE.split(candidate, maxsplit=1)[0]
    return ""
