"""
Agent models — install methods and installed copies.

``Installation`` records are produced by detection and storage
(outside this package).  The installer reads them and never mutates
them; callers refresh them from the returned ``Result``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, Field

from agentmgr.core.models.version import Version


def _now() -> datetime:
    return datetime.now(UTC)


class InstallMethod(StrEnum):
    """Package-manager kinds an agent can be installed with."""

    NPM = "npm"
    PIP = "pip"
    PIPX = "pipx"
    UV = "uv"
    BREW = "brew"
    BREW_CASK = "brew-cask"
    NATIVE = "native"
    CURL = "curl"
    BINARY = "binary"
    BUN = "bun"
    BUNX = "bunx"
    CARGO = "cargo"
    GO = "go"
    SCOOP = "scoop"
    CHOCOLATEY = "chocolatey"
    POWERSHELL = "powershell"
    WINGET = "winget"
    DMG = "dmg"
    KREW = "krew"
    NIX = "nix"
    GIT = "git"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES.get(self, self.value)

    @classmethod
    def parse(cls, value: str) -> InstallMethod | None:
        """Look up a method by its string id, ``None`` when unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


_DISPLAY_NAMES: dict[InstallMethod, str] = {
    InstallMethod.NPM: "npm",
    InstallMethod.BREW: "Homebrew",
    InstallMethod.BREW_CASK: "Homebrew Cask",
    InstallMethod.PIP: "pip",
    InstallMethod.PIPX: "pipx",
    InstallMethod.UV: "uv",
    InstallMethod.SCOOP: "Scoop",
    InstallMethod.WINGET: "winget",
    InstallMethod.CHOCOLATEY: "Chocolatey",
    InstallMethod.NATIVE: "Native Installer",
    InstallMethod.CURL: "curl",
    InstallMethod.BINARY: "Binary",
}


class Installation(BaseModel):
    """One installed copy of an agent.

    The same agent can be installed several times through different
    methods.  ``latest_version`` is ``None`` when unknown, which is not
    the same as "known and equal to the installed version".
    """

    agent_id: str
    agent_name: str = ""
    method: str = ""
    installed_version: Version = Field(default_factory=Version)
    latest_version: Version | None = None
    executable_path: str = ""
    install_path: str = ""
    is_global: bool = False
    detected_at: datetime = Field(default_factory=_now)
    last_checked: datetime = Field(default_factory=_now)
    metadata: dict[str, str] = Field(default_factory=dict)

    def key(self) -> str:
        """Unique identifier for this installation."""
        return f"{self.agent_id}:{self.method}:{self.executable_path}"

    def has_update(self) -> bool:
        if self.latest_version is None:
            return False
        return self.latest_version.is_newer_than(self.installed_version)

    def status(self) -> str:
        """``current``, ``outdated`` or ``unknown``."""
        if self.latest_version is None:
            return "unknown"
        if self.has_update():
            return "outdated"
        return "current"
