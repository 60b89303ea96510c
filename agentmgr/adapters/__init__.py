"""Adapters — bindings to the host operating system.

Public re-exports for convenient access.  Test doubles live in
``agentmgr.adapters.mock`` and are imported explicitly.
"""

from agentmgr.adapters.platform import HostPlatform, Platform, PlatformID, current_platform_id

__all__ = [
    "HostPlatform",
    "Platform",
    "PlatformID",
    "current_platform_id",
]
