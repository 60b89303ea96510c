"""
Catalog models — agent definitions as published by the catalog.

These are read-only inputs to every installer call.  The catalog
itself (fetching, caching, refreshing) lives elsewhere.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, model_validator


class InstallMethodDef(BaseModel):
    """One way to install an agent (e.g. ``npm install -g ...``)."""

    method: str
    package: str = ""
    command: str = ""
    update_cmd: str = ""
    uninstall_cmd: str = ""
    platforms: list[str] = Field(default_factory=list)

    def supports_platform(self, platform_id: str) -> bool:
        return platform_id in self.platforms


class DetectionDef(BaseModel):
    """How to recognise an installed agent."""

    executables: list[str] = Field(default_factory=list)
    version_cmd: str = ""
    version_regex: str = ""


class AgentDef(BaseModel):
    """Catalog entry for an agent."""

    id: str
    name: str = ""
    description: str = ""
    homepage: str = ""
    repository: str = ""
    install_methods: dict[str, InstallMethodDef] = Field(default_factory=dict)
    detection: DetectionDef = Field(default_factory=DetectionDef)

    @model_validator(mode="before")
    @classmethod
    def _fill_method_keys(cls, data: Any) -> Any:
        # YAML entries may omit ``method`` and rely on the mapping key
        if isinstance(data, dict):
            methods = data.get("install_methods")
            if isinstance(methods, dict):
                filled = {}
                for key, value in methods.items():
                    if isinstance(value, dict) and not value.get("method"):
                        value = {**value, "method": key}
                    filled[key] = value
                data = {**data, "install_methods": filled}
        return data

    def get_install_method(self, method: str) -> InstallMethodDef | None:
        """Look up a method definition by key, then by its ``method`` field."""
        if method in self.install_methods:
            return self.install_methods[method]
        for m in self.install_methods.values():
            if m.method == method:
                return m
        return None
