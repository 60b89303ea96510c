"""
Homebrew provider — formulae and casks.

Homebrew also runs on Linux; only Windows is ruled out, whatever
happens to be on PATH there.
"""

from __future__ import annotations

import json
import logging
import time

from agentmgr.adapters.platform import PlatformID
from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import Version
from agentmgr.core.services.installer.errors import PackageNotSpecified
from agentmgr.core.services.installer.providers.base import Provider, Result, coerce_version
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)


class BrewProvider(Provider):
    """Install agents with ``brew install`` (``--cask`` for casks)."""

    @property
    def name(self) -> str:
        return "brew"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.BREW

    def is_available(self) -> bool:
        if self.platform.id == PlatformID.WINDOWS:
            return False
        return self.platform.is_executable_in_path("brew")

    def install(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        force: bool = False,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        start = time.monotonic()
        pkg, cask = self._package(method_def)

        cmd = ["brew", "install", *_cask_flag(cask), pkg]
        if force:
            cmd.append("--force")

        logger.info("Installing %s (brew %s %s)", agent_def.id, "cask" if cask else "formula", pkg)
        out = self._run(cmd, ctx).check("brew install")

        return self._result(
            agent_def,
            method_def,
            start,
            version=self._installed_version(pkg, cask, agent_def, ctx),
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
        pkg, cask = self._package(method_def)
        from_version = inst.installed_version

        logger.info("Updating %s (brew %s)", agent_def.id, pkg)
        out = self._run(["brew", "upgrade", *_cask_flag(cask), pkg], ctx).check("brew update")
        to_version = self._installed_version(pkg, cask, agent_def, ctx)

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
        pkg, cask = self._package(method_def)
        logger.info("Uninstalling %s (brew %s)", inst.agent_id, pkg)
        self._run(["brew", "uninstall", *_cask_flag(cask), pkg], ctx).check("brew uninstall")

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        """Current stable version according to ``brew info --json=v2``."""
        pkg, cask = self._package(method_def)
        out = self._run(["brew", "info", "--json=v2", *_cask_flag(cask), pkg], ctx).check("brew info")
        try:
            data = json.loads(out.stdout)
        except json.JSONDecodeError:
            logger.debug("brew info returned non-JSON for %s", pkg)
            return Version()

        if not isinstance(data, dict):
            logger.debug("brew info returned no object for %s", pkg)
            return Version()

        entries = data.get("casks" if cask else "formulae")
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            return Version()
        if cask:
            return coerce_version(str(entries[0].get("version") or ""))
        versions = entries[0].get("versions")
        if not isinstance(versions, dict):
            return Version()
        return coerce_version(str(versions.get("stable") or ""))

    # ── Internals ───────────────────────────────────────────────

    def _package(self, method_def: InstallMethodDef) -> tuple[str, bool]:
        pkg, cask = extract_brew_package_from_command(method_def.command)
        if method_def.package:
            pkg = method_def.package
        if not pkg:
            raise PackageNotSpecified(self.name, method_def.command)
        return pkg, cask or method_def.method == InstallMethod.BREW_CASK

    def _installed_version(self, pkg: str, cask: bool, agent_def: AgentDef, ctx: CancelToken | None) -> Version:
        out = self._probe(["brew", "list", "--versions", *_cask_flag(cask), pkg], ctx)
        if out is not None:
            # "gh 2.40.1" — the newest keg is listed last
            fields = out.stdout.split()
            if len(fields) >= 2:
                return coerce_version(fields[-1])
        logger.debug("brew list has no version for %s", pkg)
        return self._detected_version(agent_def, ctx)


def _cask_flag(cask: bool) -> list[str]:
    return ["--cask"] if cask else []


def extract_brew_package_from_command(command: str) -> tuple[str, bool]:
    """Package name and cask flag from a brew install command line.

    The name is the first non-flag token after ``install``; tap-qualified
    names (``user/tap/formula``) reduce to their last segment.  Either
    ``--cask`` or the legacy ``brew cask install`` form marks a cask.
    """
    parts = command.split()
    cask = "--cask" in parts or "cask" in parts

    for i, part in enumerate(parts):
        if part != "install":
            continue
        for candidate in parts[i + 1:]:
            if candidate.startswith("-"):
                continue
            return candidate.rsplit("/", 1)[-1], cask
    return "", cask
