"""
Install providers — one per package-manager family.
"""

from agentmgr.core.services.installer.providers.base import (
    Provider,
    Result,
    coerce_version,
    extract_version_string,
)
from agentmgr.core.services.installer.providers.brew import BrewProvider, extract_brew_package_from_command
from agentmgr.core.services.installer.providers.native import NativeProvider
from agentmgr.core.services.installer.providers.npm import NPMProvider, extract_npm_package
from agentmgr.core.services.installer.providers.pip import PipProvider, extract_pip_package
from agentmgr.core.services.installer.providers.winget import WingetProvider, extract_winget_package

__all__ = [
    "BrewProvider",
    "NPMProvider",
    "NativeProvider",
    "PipProvider",
    "Provider",
    "Result",
    "WingetProvider",
    "coerce_version",
    "extract_brew_package_from_command",
    "extract_npm_package",
    "extract_pip_package",
    "extract_version_string",
    "extract_winget_package",
]
