"""
Tests for the native provider — shell commands and version sniffing.
"""

import sys

import pytest

from agentmgr.adapters.mock import MockPlatform, MockRunner
from agentmgr.core.models import AgentDef, InstallMethodDef, Installation, Version, parse_version
from agentmgr.core.services.installer import (
    CancelToken,
    CommandCancelled,
    CommandFailed,
    CommandRunner,
    InstallerError,
    NativeProvider,
    NoCommandSpecified,
    NotSupported,
)
from agentmgr.core.services.installer.providers import coerce_version, extract_version_string

posix_only = pytest.mark.skipif(sys.platform.startswith("win"), reason="needs sh")


def _agent(version_cmd="tool --version", version_regex="", executables=("tool",)):
    return AgentDef.model_validate({
        "id": "tool",
        "name": "Tool",
        "detection": {
            "executables": list(executables),
            "version_cmd": version_cmd,
            "version_regex": version_regex,
        },
    })


@pytest.fixture
def provider(platform: MockPlatform, runner: MockRunner) -> NativeProvider:
    return NativeProvider(platform, runner)


# ── Identity ─────────────────────────────────────────────────────────


class TestNativeIdentity:
    def test_name_and_method(self, provider):
        assert provider.name == "native"
        assert provider.method == "native"

    def test_always_available(self, provider):
        assert provider.is_available()

    def test_defaults_to_host(self):
        p = NativeProvider()
        assert p.platform is not None
        assert isinstance(p.runner, CommandRunner)

    def test_no_registry(self, provider):
        with pytest.raises(NotSupported, match="version checking not supported for curl"):
            provider.get_latest_version(InstallMethodDef(method="curl"))


# ── Install ──────────────────────────────────────────────────────────


class TestNativeInstall:
    def test_runs_command_through_shell(self, provider, runner, platform):
        platform.add_executable("tool", "/opt/bin/tool")
        runner.set_response("sh -c curl", stdout="installed\n")
        runner.set_response("sh -c tool --version", stdout="tool version 1.4.2\n")

        md = InstallMethodDef(method="curl", command="curl -fsSL https://x/install.sh | sh")
        result = provider.install(_agent(), md)

        assert runner.call_log[0] == ["sh", "-c", "curl -fsSL https://x/install.sh | sh"]
        assert result.output == "installed\n"
        assert str(result.version) == "1.4.2"
        assert result.executable_path == "/opt/bin/tool"
        assert result.method == "curl"
        assert result.agent_name == "Tool"
        assert result.duration >= 0

    def test_install_leaves_update_fields_zero(self, provider):
        result = provider.install(_agent(version_cmd=""), InstallMethodDef(method="native", command="true"))
        assert result.from_version.is_zero()
        assert result.was_updated is False

    def test_requires_command(self, provider, runner):
        with pytest.raises(NoCommandSpecified):
            provider.install(_agent(), InstallMethodDef(method="native"))
        assert runner.call_count == 0

    def test_failure_carries_stderr(self, provider, runner):
        runner.set_failure("sh -c cargo install", stderr="error: could not find `nope` in registry")
        with pytest.raises(CommandFailed) as exc:
            provider.install(_agent(), InstallMethodDef(method="cargo", command="cargo install nope"))
        assert exc.value.stderr == "error: could not find `nope` in registry"

    def test_version_regex_preferred(self, provider, runner):
        runner.set_response("sh -c tool --version", stdout="tool 9.9.9 (build 1.2.3)")
        agent = _agent(version_regex=r"build (\d+\.\d+\.\d+)")
        result = provider.install(agent, InstallMethodDef(method="native", command="true"))
        assert str(result.version) == "1.2.3"

    def test_failed_version_command_gives_zero(self, provider, runner):
        runner.set_failure("sh -c tool --version")
        result = provider.install(_agent(), InstallMethodDef(method="native", command="true"))
        assert result.version.is_zero()

    def test_no_executable_found(self, provider):
        result = provider.install(_agent(version_cmd=""), InstallMethodDef(method="native", command="true"))
        assert result.executable_path == ""

    def test_cancelled_before_start(self, provider, runner):
        tok = CancelToken()
        tok.cancel()
        with pytest.raises(CommandCancelled):
            provider.install(_agent(), InstallMethodDef(method="native", command="true"), ctx=tok)


# ── Update ───────────────────────────────────────────────────────────


class TestNativeUpdate:
    def _inst(self, version="1.0.0"):
        return Installation(
            agent_id="tool",
            method="curl",
            installed_version=parse_version(version),
            executable_path="/opt/bin/tool",
        )

    def test_prefers_update_cmd(self, provider, runner):
        runner.set_response("sh -c tool --version", stdout="2.0.0")
        md = InstallMethodDef(method="curl", command="install-it", update_cmd="update-it")
        result = provider.update(self._inst(), _agent(), md)

        assert runner.call_log[0] == ["sh", "-c", "update-it"]
        assert result.was_updated
        assert str(result.from_version) == "1.0.0"
        assert str(result.version) == "2.0.0"
        assert result.executable_path == "/opt/bin/tool"

    def test_falls_back_to_install_command(self, provider, runner):
        runner.set_response("sh -c tool --version", stdout="1.0.0")
        result = provider.update(self._inst(), _agent(), InstallMethodDef(method="curl", command="install-it"))
        assert runner.call_log[0] == ["sh", "-c", "install-it"]
        assert not result.was_updated

    def test_requires_some_command(self, provider):
        with pytest.raises(NoCommandSpecified):
            provider.update(self._inst(), _agent(), InstallMethodDef(method="curl"))


# ── Uninstall ────────────────────────────────────────────────────────


class TestNativeUninstall:
    def test_uses_uninstall_cmd(self, provider, runner):
        inst = Installation(agent_id="tool", method="native")
        provider.uninstall(inst, InstallMethodDef(method="native", uninstall_cmd="rm -rf ~/.tool"))
        assert runner.command_lines == ["sh -c rm -rf ~/.tool"]

    def test_removes_executable(self, provider, runner, tmp_path):
        exe = tmp_path / "tool"
        exe.write_text("#!/bin/sh\n")
        inst = Installation(agent_id="tool", method="binary", executable_path=str(exe))

        provider.uninstall(inst, InstallMethodDef(method="binary"))

        assert not exe.exists()
        assert runner.call_count == 0

    def test_missing_file_is_an_error(self, provider, tmp_path):
        inst = Installation(agent_id="tool", method="binary", executable_path=str(tmp_path / "gone"))
        with pytest.raises(InstallerError, match="failed to remove executable"):
            provider.uninstall(inst, InstallMethodDef(method="binary"))

    def test_nothing_to_do(self, provider):
        with pytest.raises(NoCommandSpecified):
            provider.uninstall(Installation(agent_id="tool"), InstallMethodDef(method="native"))


# ── Real shell ───────────────────────────────────────────────────────


@posix_only
class TestNativeWithShell:
    def test_echo_install(self):
        provider = NativeProvider(MockPlatform("linux", shell="sh"), CommandRunner())
        agent = _agent(version_cmd="echo version 2.0.0", executables=())
        result = provider.install(agent, InstallMethodDef(method="native", command="echo 1.0.0"))
        assert result.output.strip() == "1.0.0"
        assert result.version.equals(parse_version("2.0.0"))

    def test_failing_command(self):
        provider = NativeProvider(MockPlatform("linux", shell="sh"), CommandRunner())
        with pytest.raises(CommandFailed) as exc:
            provider.install(_agent(version_cmd=""), InstallMethodDef(method="native", command="echo nope >&2; exit 1"))
        assert exc.value.stderr.strip() == "nope"


# ── Version extraction heuristics ────────────────────────────────────


class TestExtractVersionString:
    @pytest.mark.parametrize(
        "output,expected",
        [
            ("1.2.3", "1.2.3"),
            ("tool version 1.2.3", "1.2.3"),
            ("Version: v2.0.0-beta", "2.0.0-beta"),
            ("claude 0.2.9 (Claude Code)", "0.2.9"),
            ("banner line\nVERSION 3.1.4\n", "3.1.4"),
            ("aider v0.50.1", ""),
            ("no digits here", ""),
            ("", ""),
        ],
    )
    def test_extract(self, output, expected):
        assert extract_version_string(output) == expected

    def test_version_line_beats_earlier_numbers(self):
        assert extract_version_string("build 42\nversion 1.0.0") == "1.0.0"


class TestCoerceVersion:
    def test_empty(self):
        assert coerce_version("  ").is_zero()

    def test_parses(self):
        assert coerce_version(" 1.2.3\n").equals(parse_version("1.2.3"))

    def test_unparseable_kept_raw(self):
        v = coerce_version("nightly")
        assert v == Version(raw="nightly")
        assert not v.is_zero()
