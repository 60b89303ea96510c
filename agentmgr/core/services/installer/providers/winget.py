"""
winget provider — Windows Package Manager.

``winget`` prints tables, not machine-readable output, so versions are
pulled out of the row that mentions the package with a loose pattern
rather than the strict grammar ``parse_version`` enforces.
"""

from __future__ import annotations

import logging
import re
import time

from agentmgr.adapters.platform import PlatformID
from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import Version
from agentmgr.core.services.installer.errors import PackageNotSpecified
from agentmgr.core.services.installer.providers.base import Provider, Result, coerce_version
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)

# Unanchored: finds 1.2.3, 1.2, 1.2.3-rc.1, 1.2.3+build inside a table row
_EMBEDDED_VERSION_RE = re.compile(r"\d+\.\d+(?:\.\d+)?(?:-[0-9A-Za-z.\-]+)?(?:\+[0-9A-Za-z.\-]+)?")

_ACCEPT_FLAGS = ["--accept-package-agreements", "--accept-source-agreements"]

_NO_UPDATE = "No applicable update found"


class WingetProvider(Provider):
    """Install agents with ``winget``.  Windows only."""

    @property
    def name(self) -> str:
        return "winget"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.WINGET

    def is_available(self) -> bool:
        return self.platform.id == PlatformID.WINDOWS and self.platform.is_executable_in_path("winget")

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

        cmd = ["winget", "install", pkg, *_ACCEPT_FLAGS]
        if force:
            cmd.append("--force")

        logger.info("Installing %s (winget %s)", agent_def.id, pkg)
        out = self._run(cmd, ctx).check("winget install")

        return self._result(
            agent_def,
            method_def,
            start,
            version=self._installed_version(pkg, ctx),
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
        from_version = inst.installed_version

        logger.info("Updating %s (winget %s)", agent_def.id, pkg)
        out = self._run(["winget", "upgrade", pkg, *_ACCEPT_FLAGS], ctx)
        if not out.ok:
            # winget exits non-zero when already on the newest version
            if _NO_UPDATE not in out.stdout and _NO_UPDATE not in out.stderr:
                out.check("winget upgrade")
            logger.debug("winget: no applicable update for %s", pkg)

        to_version = self._installed_version(pkg, ctx)

        return self._result(
            agent_def,
            method_def,
            start,
            version=to_version,
            from_version=from_version,
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
        logger.info("Uninstalling %s (winget %s)", inst.agent_id, pkg)
        self._run(["winget", "uninstall", pkg], ctx).check("winget uninstall")

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        """Version ``winget show`` reports for the package."""
        pkg = self._package(method_def)
        out = self._run(["winget", "show", pkg, "--accept-source-agreements"], ctx).check("winget show")
        for line in out.stdout.splitlines():
            key, _, value = line.strip().partition(":")
            if key == "Version":
                return coerce_version(value)
        return Version()

    # ── Internals ───────────────────────────────────────────────

    def _package(self, method_def: InstallMethodDef) -> str:
        pkg = method_def.package or extract_winget_package(method_def.command)
        if not pkg:
            raise PackageNotSpecified(self.name, method_def.command)
        return pkg

    def _installed_version(self, pkg: str, ctx: CancelToken | None) -> Version:
        out = self._probe(["winget", "list", pkg], ctx)
        if out is None:
            return Version()
        return version_from_listing(out.stdout, pkg)


def version_from_listing(output: str, pkg: str) -> Version:
    """First version-shaped token on the first ``winget list`` row naming ``pkg``."""
    for line in output.splitlines():
        if pkg not in line:
            continue
        m = _EMBEDDED_VERSION_RE.search(line)
        if m:
            return coerce_version(m.group(0))
    return Version()


def extract_winget_package(command: str) -> str:
    """First non-flag token after ``install``, ``upgrade`` or ``uninstall``."""
    found = False
    for part in command.split():
        if found and not part.startswith("-"):
            return part
        if part in ("install", "upgrade", "uninstall"):
            found = True
    return ""
