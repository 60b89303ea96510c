"""
Tests for the catalog loader and runtime settings.
"""

import textwrap
from pathlib import Path

import pytest

from agentmgr.core.config.loader import (
    ConfigError,
    DEFAULT_COMMAND_TIMEOUT,
    command_timeout,
    find_catalog_file,
    load_catalog,
)

CATALOG = textwrap.dedent("""\
    agents:
      claude-code:
        name: Claude Code
        install_methods:
          npm:
            package: "@anthropic-ai/claude-code"
            platforms: [darwin, linux, windows]
          native:
            command: curl -fsSL https://example.com/install.sh | bash
            update_cmd: claude update
            platforms: [darwin, linux]
        detection:
          executables: [claude]
          version_cmd: claude --version
      aider:
        install_methods:
          pipx:
            package: aider-chat
            platforms: [linux]
""")


def _write(tmp_path: Path, content: str, name: str = "agents.yml") -> Path:
    path = tmp_path / name
    path.write_text(content)
    return path


class TestLoadCatalog:
    def test_wrapped(self, tmp_path):
        agents = load_catalog(_write(tmp_path, CATALOG))
        assert list(agents) == ["claude-code", "aider"]

        claude = agents["claude-code"]
        assert claude.id == "claude-code"
        assert claude.install_methods["npm"].method == "npm"
        assert claude.install_methods["native"].update_cmd == "claude update"
        assert claude.detection.executables == ["claude"]

    def test_bare_mapping(self, tmp_path):
        agents = load_catalog(_write(tmp_path, "tool:\n  name: Tool\n"))
        assert agents["tool"].name == "Tool"

    def test_empty_file(self, tmp_path):
        assert load_catalog(_write(tmp_path, "")) == {}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError, match="not found"):
            load_catalog(tmp_path / "nope.yml")

    def test_invalid_yaml(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_catalog(_write(tmp_path, "agents: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="Expected a YAML mapping"):
            load_catalog(_write(tmp_path, "- a\n- b\n"))

    def test_agents_not_a_mapping(self, tmp_path):
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_catalog(_write(tmp_path, "agents: [a, b]\n"))

    def test_invalid_definition(self, tmp_path):
        with pytest.raises(ConfigError, match="Invalid definition for agent 'bad'"):
            load_catalog(_write(tmp_path, "bad:\n  install_methods: 3\n"))

    def test_no_catalog_anywhere(self, tmp_path, monkeypatch):
        monkeypatch.delenv("AGENTMGR_CATALOG", raising=False)
        monkeypatch.chdir(tmp_path)
        with pytest.raises(ConfigError, match="No agents.yml found"):
            load_catalog()


class TestFindCatalogFile:
    def test_walks_up(self, tmp_path, monkeypatch):
        monkeypatch.delenv("AGENTMGR_CATALOG", raising=False)
        _write(tmp_path, CATALOG)
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_catalog_file(nested) == (tmp_path / "agents.yml").resolve()

    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv("AGENTMGR_CATALOG", str(tmp_path / "custom.yml"))
        assert find_catalog_file(tmp_path) == tmp_path / "custom.yml"


class TestCommandTimeout:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("AGENTMGR_COMMAND_TIMEOUT", raising=False)
        assert command_timeout() == DEFAULT_COMMAND_TIMEOUT == 600.0

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("AGENTMGR_COMMAND_TIMEOUT", "45")
        assert command_timeout() == 45.0

    @pytest.mark.parametrize("value", ["soon", "0", "-5"])
    def test_invalid(self, monkeypatch, value):
        monkeypatch.setenv("AGENTMGR_COMMAND_TIMEOUT", value)
        with pytest.raises(ConfigError):
            command_timeout()
