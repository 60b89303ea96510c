"""
Catalog loader — reads agents.yml into ``AgentDef`` models.

The file is either ``{agents: {<id>: {...}}}`` or a bare mapping of
agent id to definition.  Entries may omit ``id``; the mapping key is
used.  PyYAML parses, pydantic validates.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from agentmgr.core.models.catalog import AgentDef

logger = logging.getLogger(__name__)

# Default catalog filename
CATALOG_FILE = "agents.yml"

ENV_CATALOG = "AGENTMGR_CATALOG"
ENV_COMMAND_TIMEOUT = "AGENTMGR_COMMAND_TIMEOUT"

DEFAULT_COMMAND_TIMEOUT = 600.0


class ConfigError(Exception):
    """Raised when the catalog file is missing or invalid."""


def find_catalog_file(start_dir: Path | None = None) -> Path | None:
    """Locate the catalog file.

    ``AGENTMGR_CATALOG`` wins when set.  Otherwise search for agents.yml
    from ``start_dir`` (default: cwd) upward.

    Returns:
        Path to the catalog, or None if not found.
    """
    override = os.environ.get(ENV_CATALOG)
    if override:
        return Path(override)

    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CATALOG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_catalog(path: Path | None = None) -> dict[str, AgentDef]:
    """Load and validate agent definitions.

    Args:
        path: Explicit catalog path.  If None, uses ``find_catalog_file``.

    Returns:
        Agent definitions keyed by id, in file order.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_catalog_file()

    if path is None:
        raise ConfigError(f"No {CATALOG_FILE} found. Specify one with --catalog or {ENV_CATALOG}.")

    if not path.is_file():
        raise ConfigError(f"Catalog file not found: {path}")

    logger.debug("Loading catalog from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    entries = data.get("agents", data) if "agents" in data else data
    if not isinstance(entries, dict):
        raise ConfigError(f"'agents' in {path} must be a mapping of id to definition")

    agents: dict[str, AgentDef] = {}
    for agent_id, entry in entries.items():
        if not isinstance(entry, dict):
            raise ConfigError(f"Agent '{agent_id}' in {path} must be a mapping")
        try:
            agents[str(agent_id)] = AgentDef.model_validate({"id": str(agent_id), **entry})
        except ValidationError as e:
            raise ConfigError(f"Invalid definition for agent '{agent_id}': {e}") from e

    logger.info("Loaded %d agents from %s", len(agents), path)
    return agents


def command_timeout() -> float:
    """Per-operation deadline in seconds (``AGENTMGR_COMMAND_TIMEOUT``)."""
    raw = os.environ.get(ENV_COMMAND_TIMEOUT)
    if not raw:
        return DEFAULT_COMMAND_TIMEOUT
    try:
        value = float(raw)
    except ValueError as e:
        raise ConfigError(f"{ENV_COMMAND_TIMEOUT} must be a number of seconds, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{ENV_COMMAND_TIMEOUT} must be positive, got {raw!r}")
    return value
