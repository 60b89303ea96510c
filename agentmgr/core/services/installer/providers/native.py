"""
Native provider — free-form shell commands.

Backs every method without a dedicated provider: curl/install scripts,
binaries, cargo, go, scoop, chocolatey, powershell, dmg, krew, nix,
git, and winget when winget itself is not usable.  The catalog supplies
the exact command; this provider runs it through the platform shell and
then sniffs the installed version from the agent's version command.
"""

from __future__ import annotations

import logging
import os
import time

from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.services.installer.errors import InstallerError, NoCommandSpecified
from agentmgr.core.services.installer.providers.base import Provider, Result
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)


class NativeProvider(Provider):
    """Run catalog-supplied shell commands."""

    @property
    def name(self) -> str:
        return "native"

    @property
    def method(self) -> InstallMethod:
        return InstallMethod.NATIVE

    def is_available(self) -> bool:
        return True

    def install(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        force: bool = False,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        start = time.monotonic()
        if not method_def.command:
            raise NoCommandSpecified("no install command specified")

        logger.info("Installing %s via %s", agent_def.id, method_def.method or self.name)
        output = self._shell(method_def.command, ctx, "native install")

        return self._result(
            agent_def,
            method_def,
            start,
            version=self._detected_version(agent_def, ctx),
            executable_path=self._find_executable(agent_def),
            output=output,
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
        # Re-running the install command is the usual way to update scripts
        command = method_def.update_cmd or method_def.command
        if not command:
            raise NoCommandSpecified("no update command specified")

        from_version = inst.installed_version
        logger.info("Updating %s via %s", agent_def.id, method_def.method or self.name)
        output = self._shell(command, ctx, "native update")
        to_version = self._detected_version(agent_def, ctx)

        return self._result(
            agent_def,
            method_def,
            start,
            version=to_version,
            from_version=from_version,
            executable_path=inst.executable_path,
            output=output,
            was_updated=to_version.is_newer_than(from_version),
        )

    def uninstall(
        self,
        inst: Installation,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> None:
        if method_def.uninstall_cmd:
            logger.info("Uninstalling %s via %s", inst.agent_id, method_def.method or self.name)
            self._shell(method_def.uninstall_cmd, ctx, "native uninstall")
            return

        if not inst.executable_path:
            raise NoCommandSpecified("no uninstall command and no executable path")

        logger.info("Removing %s", inst.executable_path)
        try:
            os.remove(inst.executable_path)
        except OSError as e:
            raise InstallerError(f"failed to remove executable: {e}") from e

    # ── Internals ───────────────────────────────────────────────

    def _shell(self, command: str, ctx: CancelToken | None, operation: str) -> str:
        """Run through the platform shell; stdout on success."""
        cmd = self.platform.shell_command(command)
        return self._run(cmd, ctx).check(operation).stdout
