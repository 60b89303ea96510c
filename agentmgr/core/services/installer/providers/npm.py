"""
npm provider — global Node packages.

Also carries bun/bunx updates that have no explicit ``update_cmd``:
bun reads the same registry and takes npm-style package specs, so the
only difference is the executable and its verbs.
"""

from __future__ import annotations

import json
import logging
import time

from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import Version
from agentmgr.core.services.installer.errors import PackageNotSpecified
from agentmgr.core.services.installer.providers.base import Provider, Result, coerce_version
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)

_BUN_METHODS = frozenset({InstallMethod.BUN, InstallMethod.BUNX})


class NPMProvider(Provider):
    """Install agents with ``npm install -g``."""

    @property
    def name(self) -> str:
        return "npm"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.NPM

    def is_available(self) -> bool:
        return self.platform.is_executable_in_path("npm")

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

        cmd = ["npm", "install", "-g", pkg]
        if force:
            cmd.append("--force")

        logger.info("Installing %s (npm package %s)", agent_def.id, pkg)
        out = self._run(cmd, ctx).check("npm install")

        return self._result(
            agent_def,
            method_def,
            start,
            version=self._installed_version(pkg, agent_def, ctx),
            install_path=self._install_path(pkg, ctx),
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

        if _is_bun(method_def):
            cmd = ["bun", "add", "-g", f"{pkg}@latest"]
            operation = "bun update"
        else:
            cmd = ["npm", "install", "-g", f"{pkg}@latest"]
            operation = "npm update"

        logger.info("Updating %s (%s)", agent_def.id, operation)
        out = self._run(cmd, ctx).check(operation)

        if _is_bun(method_def):
            to_version = self._detected_version(agent_def, ctx)
        else:
            to_version = self._installed_version(pkg, agent_def, ctx)

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
        logger.info("Uninstalling %s (npm package %s)", inst.agent_id, pkg)
        self._run(["npm", "uninstall", "-g", pkg], ctx).check("npm uninstall")

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        pkg = self._package(method_def)
        out = self._run(["npm", "view", pkg, "version"], ctx).check("npm view")
        return coerce_version(out.stdout)

    # ── Internals ───────────────────────────────────────────────

    def _package(self, method_def: InstallMethodDef) -> str:
        pkg = method_def.package or extract_npm_package(method_def.command)
        if not pkg:
            raise PackageNotSpecified(self.name, method_def.command)
        return pkg

    def _installed_version(self, pkg: str, agent_def: AgentDef, ctx: CancelToken | None) -> Version:
        """Version from ``npm list -g``; falls back to the agent's own version command."""
        out = self._probe(["npm", "list", "-g", pkg, "--depth=0", "--json"], ctx)
        if out is not None and out.stdout:
            try:
                data = json.loads(out.stdout)
            except json.JSONDecodeError:
                data = {}
            if not isinstance(data, dict):
                data = {}
            dep = (data.get("dependencies") or {}).get(pkg) or {}
            if dep.get("version"):
                return coerce_version(dep["version"])

        logger.debug("npm list has no version for %s", pkg)
        return self._detected_version(agent_def, ctx)

    def _install_path(self, pkg: str, ctx: CancelToken | None) -> str:
        out = self._probe(["npm", "root", "-g"], ctx)
        root = out.stdout.strip() if out else ""
        return f"{root}/{pkg}" if root else ""


def _is_bun(method_def: InstallMethodDef) -> bool:
    return method_def.method in _BUN_METHODS


def extract_npm_package(command: str) -> str:
    """Package name from an npm install command line.

    Takes the first non-flag token after ``-g``/``--global`` and strips a
    trailing ``@version`` (a leading ``@`` is a scope, not a version).

        >>> extract_npm_package("npm install -g @scope/pkg@1.2.3")
        '@scope/pkg'
    """
    parts = command.split()
    for i, part in enumerate(parts):
        if part in ("-g", "--global") and i + 1 < len(parts):
            pkg = parts[i + 1]
            if pkg.startswith("-"):
                continue
            at = pkg.rfind("@")
            if at > 0:
                pkg = pkg[:at]
            return pkg
    return ""
