"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from agentmgr.adapters.mock import MockPlatform, MockRunner
from agentmgr.core.models import AgentDef, Installation, Version, parse_version
from agentmgr.core.services.installer import Manager


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def platform() -> MockPlatform:
    """A macOS-like platform with nothing on PATH."""
    return MockPlatform("darwin")


@pytest.fixture
def runner() -> MockRunner:
    return MockRunner()


@pytest.fixture
def manager(platform: MockPlatform, runner: MockRunner) -> Manager:
    return Manager(platform, runner)


@pytest.fixture
def claude_def() -> AgentDef:
    """An agent installable through npm, native script, bun and brew."""
    return AgentDef.model_validate({
        "id": "claude-code",
        "name": "Claude Code",
        "install_methods": {
            "npm": {
                "package": "@anthropic-ai/claude-code",
                "command": "npm install -g @anthropic-ai/claude-code",
                "platforms": ["darwin", "linux", "windows"],
            },
            "native": {
                "command": "curl -fsSL https://example.com/install.sh | bash",
                "platforms": ["darwin", "linux"],
            },
            "bun": {
                "command": "bun add -g @anthropic-ai/claude-code",
                "package": "@anthropic-ai/claude-code",
                "platforms": ["darwin", "linux"],
            },
            "brew": {
                "command": "brew install --cask claude-code",
                "platforms": ["darwin"],
            },
        },
        "detection": {
            "executables": ["claude"],
            "version_cmd": "claude --version",
        },
    })


@pytest.fixture
def make_installation():
    """Factory for ``Installation`` records."""

    def _make(agent_id="claude-code", method="npm", installed="1.0.0", latest=None, path=""):
        return Installation(
            agent_id=agent_id,
            agent_name=agent_id,
            method=method,
            installed_version=parse_version(installed) if installed else Version(),
            latest_version=parse_version(latest) if latest else None,
            executable_path=path,
        )

    return _make
