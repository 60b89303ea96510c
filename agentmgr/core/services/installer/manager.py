"""
Installer manager — routes install/update/uninstall/query by method.

The manager owns one provider per family and decides which one handles
a method string.  Availability is checked before anything runs, so a
missing tool fails with ``ProviderUnavailable`` instead of a spawn error.

Routing:
    npm                         → NPMProvider
    pip, pipx, uv               → PipProvider
    brew, brew-cask             → BrewProvider
    winget                      → WingetProvider (native when winget is unusable)
    bun, bunx (update)          → NPMProvider, or native with an update_cmd
    everything in NATIVE_METHODS → NativeProvider
"""

from __future__ import annotations

import logging

from agentmgr.adapters.platform import HostPlatform, Platform
from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, InstallMethodDef
from agentmgr.core.models.version import Version
from agentmgr.core.services.installer.errors import NotSupported, ProviderUnavailable, UnsupportedMethod
from agentmgr.core.services.installer.providers import (
    BrewProvider,
    NativeProvider,
    NPMProvider,
    PipProvider,
    Provider,
    Result,
    WingetProvider,
)
from agentmgr.core.services.installer.runner import CancelToken, CommandRunner

logger = logging.getLogger(__name__)

# Methods driven by catalog-supplied commands (no registry to query)
NATIVE_METHODS: frozenset[str] = frozenset({
    InstallMethod.NATIVE,
    InstallMethod.CURL,
    InstallMethod.BINARY,
    InstallMethod.BUN,
    InstallMethod.BUNX,
    InstallMethod.CARGO,
    InstallMethod.GO,
    InstallMethod.SCOOP,
    InstallMethod.CHOCOLATEY,
    InstallMethod.POWERSHELL,
    InstallMethod.WINGET,
    InstallMethod.DMG,
    InstallMethod.KREW,
    InstallMethod.NIX,
    InstallMethod.GIT,
})

PIP_METHODS: frozenset[str] = frozenset({InstallMethod.PIP, InstallMethod.PIPX, InstallMethod.UV})
BREW_METHODS: frozenset[str] = frozenset({InstallMethod.BREW, InstallMethod.BREW_CASK})
BUN_METHODS: frozenset[str] = frozenset({InstallMethod.BUN, InstallMethod.BUNX})


class Manager:
    """Entry point for installer operations.

    Args:
        platform: OS abstraction shared by every provider (default: host).
        runner: Command runner shared by every provider.

    Every operation blocks until its external command exits.  Pass a
    ``CancelToken`` as ``ctx`` to bound it; the child is terminated when
    the token fires.
    """

    def __init__(self, platform: Platform | None = None, runner: CommandRunner | None = None):
        self.platform = platform if platform is not None else HostPlatform()
        self.runner = runner if runner is not None else CommandRunner()
        self.npm = NPMProvider(self.platform, self.runner)
        self.pip = PipProvider(self.platform, self.runner)
        self.brew = BrewProvider(self.platform, self.runner)
        self.winget = WingetProvider(self.platform, self.runner)
        self.native = NativeProvider(self.platform, self.runner)

    # ── Operations ──────────────────────────────────────────────

    def install(
        self,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        force: bool = False,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        """Install ``agent_def`` with ``method_def``.

        Raises:
            UnsupportedMethod: Unknown method string.
            ProviderUnavailable: The provider's tool is not usable here.
            CommandFailed: The install command exited non-zero.
        """
        provider = self._provider_for(method_def.method)
        logger.debug("install %s via %s → %s", agent_def.id, method_def.method, provider.name)
        return provider.install(agent_def, method_def, force, ctx=ctx)

    def update(
        self,
        inst: Installation,
        agent_def: AgentDef,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Result:
        """Update an installed agent; ``Result.was_updated`` tells whether the version moved."""
        method = method_def.method
        if method in BUN_METHODS:
            provider = self._bun_update_provider(method_def)
        else:
            provider = self._provider_for(method)
        logger.debug("update %s via %s → %s", agent_def.id, method, provider.name)
        return provider.update(inst, agent_def, method_def, ctx=ctx)

    def uninstall(
        self,
        inst: Installation,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> None:
        provider = self._provider_for(method_def.method)
        logger.debug("uninstall %s via %s → %s", inst.agent_id, method_def.method, provider.name)
        provider.uninstall(inst, method_def, ctx=ctx)

    def get_latest_version(
        self,
        method_def: InstallMethodDef,
        *,
        ctx: CancelToken | None = None,
    ) -> Version:
        """Newest version the method's registry offers.

        Raises:
            NotSupported: Command-driven methods have no registry.
        """
        method = method_def.method
        if method == InstallMethod.WINGET and self.winget.is_available():
            return self.winget.get_latest_version(method_def, ctx=ctx)
        if method in NATIVE_METHODS:
            raise NotSupported(method)
        return self._provider_for(method).get_latest_version(method_def, ctx=ctx)

    # ── Availability ────────────────────────────────────────────

    def get_available_methods(self, agent_def: AgentDef) -> list[InstallMethodDef]:
        """Methods usable for ``agent_def`` here, in catalog order.

        A method qualifies when it lists the current platform and its
        provider is available.
        """
        platform_id = str(self.platform.id)
        available = []
        for method_def in agent_def.install_methods.values():
            if not method_def.supports_platform(platform_id):
                continue
            if self.is_method_available(method_def.method):
                available.append(method_def)
        return available

    def is_method_available(self, method: str) -> bool:
        """Whether ``method`` can run here.  Unknown methods are not."""
        if method == InstallMethod.NPM:
            return self.npm.is_available()
        if method in PIP_METHODS:
            return self.pip.is_available()
        if method in BREW_METHODS:
            return self.brew.is_available()
        return method in NATIVE_METHODS

    # ── Internals ───────────────────────────────────────────────

    def _provider_for(self, method: str) -> Provider:
        """Provider for ``method``, checked for availability."""
        if method == InstallMethod.NPM:
            return self._require(self.npm, method)
        if method in PIP_METHODS:
            return self._require(self.pip, method)
        if method in BREW_METHODS:
            return self._require(self.brew, method)
        if method == InstallMethod.WINGET and self.winget.is_available():
            return self.winget
        if method in NATIVE_METHODS:
            return self.native
        raise UnsupportedMethod(method)

    def _bun_update_provider(self, method_def: InstallMethodDef) -> Provider:
        if not self.platform.is_executable_in_path("bun"):
            raise ProviderUnavailable(method_def.method, "bun")
        if method_def.update_cmd:
            return self.native
        return self.npm

    @staticmethod
    def _require(provider: Provider, method: str) -> Provider:
        if not provider.is_available():
            raise ProviderUnavailable(method, provider.name)
        return provider
