"""
Domain models — Pydantic types for the installer.

All models are re-exported here for convenient access:

    from agentmgr.core.models import AgentDef, Installation, Version
"""

from agentmgr.core.models.agent import InstallMethod, Installation
from agentmgr.core.models.catalog import AgentDef, DetectionDef, InstallMethodDef
from agentmgr.core.models.version import (
    InvalidVersionFormat,
    Version,
    VersionConstraint,
    VersionRange,
    must_parse_version,
    parse_constraint,
    parse_version,
)

__all__ = [
    "AgentDef",
    "DetectionDef",
    "InstallMethod",
    "InstallMethodDef",
    "Installation",
    "InvalidVersionFormat",
    "Version",
    "VersionConstraint",
    "VersionRange",
    "must_parse_version",
    "parse_constraint",
    "parse_version",
]
