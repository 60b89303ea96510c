"""
Tests for bulk updates.
"""

import pytest

from agentmgr.core.models import AgentDef
from agentmgr.core.services.installer import CancelToken, UpdateSummary, update_all


@pytest.fixture
def catalog(claude_def) -> dict[str, AgentDef]:
    aider = AgentDef.model_validate({
        "id": "aider",
        "install_methods": {"pipx": {"package": "aider-chat", "platforms": ["darwin"]}},
    })
    return {"claude-code": claude_def, "aider": aider}


class TestUpdateAll:
    def test_only_outdated_are_updated(self, manager, platform, runner, catalog, make_installation):
        platform.add_executable("npm")
        insts = [
            make_installation("claude-code", "npm", "1.0.0", latest="1.1.0"),
            make_installation("claude-code", "native", "1.0.0", latest="1.0.0"),
            make_installation("claude-code", "curl", "1.0.0", latest=None),
        ]
        summary = update_all(manager, insts, catalog)
        assert summary.succeeded == 1
        assert summary.failed == 0
        assert summary.attempted == 1
        assert runner.call_log[0][:2] == ["npm", "install"]
        assert summary.message() == "Successfully updated 1 agents"

    def test_failures_are_tallied_not_retried(self, manager, platform, runner, catalog, make_installation):
        platform.add_executable("pipx")
        runner.set_failure("pipx upgrade", stderr="boom")
        insts = [
            make_installation("aider", "pipx", "0.1.0", latest="0.2.0"),
            make_installation("claude-code", "native", "1.0.0", latest="1.1.0"),
        ]
        summary = update_all(manager, insts, catalog)

        assert summary.succeeded == 1
        assert summary.failed == 1
        assert [c[:2] for c in runner.call_log].count(["pipx", "upgrade"]) == 1
        assert "boom" in summary.errors["aider:pipx:"]
        assert summary.message() == "Updated 1 agents, 1 failed"

    def test_unknown_agent_and_method(self, manager, catalog, make_installation):
        insts = [
            make_installation("ghost", "npm", "1.0.0", latest="2.0.0"),
            make_installation("aider", "npm", "1.0.0", latest="2.0.0"),
        ]
        summary = update_all(manager, insts, catalog)
        assert summary.failed == 2
        assert "not found in catalog" in summary.errors["ghost:npm:"]
        assert "not defined" in summary.errors["aider:npm:"]

    def test_unavailable_provider_counts_as_failure(self, manager, catalog, make_installation):
        summary = update_all(manager, [make_installation("claude-code", "npm", "1.0.0", latest="2.0.0")], catalog)
        assert summary.failed == 1
        assert "npm is not available" in summary.errors["claude-code:npm:"]

    def test_each_job_gets_its_own_deadline(self, manager, runner, catalog, make_installation, monkeypatch):
        seen = []
        original = runner.run

        def spy(cmd, *, ctx=None, **kw):
            seen.append(ctx)
            return original(cmd, ctx=ctx, **kw)

        monkeypatch.setattr(runner, "run", spy)
        insts = [
            make_installation("claude-code", "native", "1.0.0", latest="2.0.0", path="/a"),
            make_installation("claude-code", "native", "1.0.0", latest="2.0.0", path="/b"),
        ]
        update_all(manager, insts, catalog, timeout=30)

        tokens = {id(t) for t in seen}
        assert len(tokens) == 2
        assert all(t.deadline is not None for t in seen)

    def test_cancelled_parent_fails_remaining(self, manager, catalog, make_installation):
        parent = CancelToken()
        parent.cancel()
        insts = [
            make_installation("claude-code", "native", "1.0.0", latest="2.0.0"),
        ]
        summary = update_all(manager, insts, catalog, ctx=parent)
        assert summary.failed == 1
        assert "cancelled" in summary.errors["claude-code:native:"]

    def test_nothing_to_do(self, manager, catalog):
        assert update_all(manager, [], catalog) == UpdateSummary()
