"""
Bulk update — update every outdated installation, one at a time.

Each installation gets its own deadline so one hung package manager
cannot eat the budget of the rest.  Failures are tallied, not retried.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from agentmgr.core.models.agent import Installation
from agentmgr.core.models.catalog import AgentDef
from agentmgr.core.services.installer.errors import InstallerError
from agentmgr.core.services.installer.manager import Manager
from agentmgr.core.services.installer.providers.base import Result
from agentmgr.core.services.installer.runner import CancelToken

logger = logging.getLogger(__name__)

DEFAULT_UPDATE_TIMEOUT = 600.0


class UpdateSummary(BaseModel):
    """Tally of a bulk update run."""

    succeeded: int = 0
    failed: int = 0
    results: list[Result] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)     # installation key → message

    @property
    def attempted(self) -> int:
        return self.succeeded + self.failed

    def message(self) -> str:
        if self.failed == 0:
            return f"Successfully updated {self.succeeded} agents"
        return f"Updated {self.succeeded} agents, {self.failed} failed"


def update_all(
    manager: Manager,
    installations: Iterable[Installation],
    catalog: Mapping[str, AgentDef],
    *,
    timeout: float = DEFAULT_UPDATE_TIMEOUT,
    ctx: CancelToken | None = None,
) -> UpdateSummary:
    """Update every installation that reports an available update.

    Args:
        manager: Installer to route through.
        installations: Candidates; those without ``has_update()`` are skipped.
        catalog: Agent definitions by id.
        timeout: Per-installation deadline in seconds.
        ctx: Parent token; cancelling it stops the current update and
            fails the remaining ones.

    Returns:
        ``UpdateSummary`` with one entry per attempted installation.
    """
    summary = UpdateSummary()
    pending = [inst for inst in installations if inst.has_update()]
    if not pending:
        logger.debug("update_all: nothing to update")
        return summary

    logger.info("Updating %d agents", len(pending))
    parent = ctx if ctx is not None else CancelToken.background()

    for inst in pending:
        key = inst.key()
        agent_def = catalog.get(inst.agent_id)
        if agent_def is None:
            _fail(summary, key, f"agent {inst.agent_id} not found in catalog")
            continue

        method_def = agent_def.get_install_method(inst.method)
        if method_def is None:
            _fail(summary, key, f"install method {inst.method} not defined for {inst.agent_id}")
            continue

        job_ctx = parent.child(timeout=timeout)
        try:
            result = manager.update(inst, agent_def, method_def, ctx=job_ctx)
        except InstallerError as e:
            _fail(summary, key, str(e))
            continue

        summary.succeeded += 1
        summary.results.append(result)

    logger.info(summary.message())
    return summary


def _fail(summary: UpdateSummary, key: str, message: str) -> None:
    logger.warning("Update failed for %s: %s", key, message)
    summary.failed += 1
    summary.errors[key] = message
