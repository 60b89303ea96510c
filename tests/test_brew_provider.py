"""
Tests for the Homebrew provider.
"""

import json

import pytest

from agentmgr.adapters.mock import MockPlatform, MockRunner
from agentmgr.core.models import AgentDef, InstallMethodDef, Installation, parse_version
from agentmgr.core.services.installer import BrewProvider, CommandFailed, PackageNotSpecified
from agentmgr.core.services.installer.providers import extract_brew_package_from_command


@pytest.fixture
def gh() -> AgentDef:
    return AgentDef.model_validate({
        "id": "gh",
        "install_methods": {
            "brew": {"command": "brew install gh", "platforms": ["darwin", "linux"]},
            "brew-cask": {"package": "gh-desktop", "platforms": ["darwin"]},
        },
        "detection": {"executables": ["gh"], "version_cmd": "gh --version"},
    })


@pytest.fixture
def provider(platform: MockPlatform, runner: MockRunner) -> BrewProvider:
    platform.add_executable("brew", "/opt/homebrew/bin/brew")
    return BrewProvider(platform, runner)


class TestBrewAvailability:
    def test_available(self, provider):
        assert provider.is_available()

    def test_not_on_path(self, runner):
        assert not BrewProvider(MockPlatform("linux"), runner).is_available()

    def test_never_on_windows(self, runner):
        platform = MockPlatform("windows")
        platform.add_executable("brew")
        assert not BrewProvider(platform, runner).is_available()


class TestBrewOperations:
    def test_install_formula(self, provider, runner, gh):
        runner.set_response("brew list --versions gh", stdout="gh 2.40.1\n")
        result = provider.install(gh, gh.install_methods["brew"])
        assert runner.call_log[0] == ["brew", "install", "gh"]
        assert str(result.version) == "2.40.1"

    def test_install_cask_by_method(self, provider, runner, gh):
        provider.install(gh, gh.install_methods["brew-cask"], force=True)
        assert runner.call_log[0] == ["brew", "install", "--cask", "gh-desktop", "--force"]

    def test_install_cask_from_command(self, provider, runner, gh):
        md = InstallMethodDef(method="brew", command="brew install --cask visual-studio-code")
        provider.install(gh, md)
        assert runner.call_log[0] == ["brew", "install", "--cask", "visual-studio-code"]

    def test_newest_keg_wins(self, provider, runner, gh):
        runner.set_response("brew list --versions gh", stdout="gh 2.39.0 2.40.1\n")
        assert str(provider.install(gh, gh.install_methods["brew"]).version) == "2.40.1"

    def test_update(self, provider, runner, gh):
        runner.set_response("brew list --versions gh", stdout="gh 2.41.0\n")
        inst = Installation(agent_id="gh", method="brew", installed_version=parse_version("2.40.1"))
        result = provider.update(inst, gh, gh.install_methods["brew"])
        assert runner.call_log[0] == ["brew", "upgrade", "gh"]
        assert result.was_updated

    def test_uninstall_cask(self, provider, runner, gh):
        provider.uninstall(Installation(agent_id="gh", method="brew-cask"), gh.install_methods["brew-cask"])
        assert runner.call_log == [["brew", "uninstall", "--cask", "gh-desktop"]]

    def test_no_formula(self, provider, runner, gh):
        runner.set_failure("brew install", stderr="Error: No available formula with the name \"gh\".")
        with pytest.raises(CommandFailed) as exc:
            provider.install(gh, gh.install_methods["brew"])
        assert "No available formula" in exc.value.stderr

    def test_no_package(self, provider, gh):
        with pytest.raises(PackageNotSpecified):
            provider.install(gh, InstallMethodDef(method="brew", command="brew update"))


class TestBrewLatest:
    def test_formula(self, provider, runner, gh):
        info = {"formulae": [{"name": "gh", "versions": {"stable": "2.42.0"}}], "casks": []}
        runner.set_response("brew info --json=v2 gh", stdout=json.dumps(info))
        assert str(provider.get_latest_version(gh.install_methods["brew"])) == "2.42.0"

    def test_cask(self, provider, runner, gh):
        info = {"formulae": [], "casks": [{"token": "gh-desktop", "version": "3.3.1"}]}
        runner.set_response("brew info --json=v2 --cask gh-desktop", stdout=json.dumps(info))
        assert str(provider.get_latest_version(gh.install_methods["brew-cask"])) == "3.3.1"

    def test_empty(self, provider, runner, gh):
        runner.set_response("brew info --json=v2 gh", stdout=json.dumps({"formulae": []}))
        assert provider.get_latest_version(gh.install_methods["brew"]).is_zero()

    @pytest.mark.parametrize("stdout", [
        "[]",
        "null",
        '"gh"',
        '{"formulae": ["gh"]}',
        '{"formulae": {"gh": {}}}',
        '{"formulae": [{"versions": null}]}',
        "not json",
    ])
    def test_unexpected_json_means_unknown(self, provider, runner, gh, stdout):
        runner.set_response("brew info --json=v2 gh", stdout=stdout)
        assert provider.get_latest_version(gh.install_methods["brew"]).is_zero()

    def test_unexpected_cask_json_means_unknown(self, provider, runner, gh):
        runner.set_response("brew info --json=v2 --cask gh-desktop", stdout='{"casks": [null]}')
        assert provider.get_latest_version(gh.install_methods["brew-cask"]).is_zero()


class TestExtractBrewPackage:
    @pytest.mark.parametrize(
        "command,pkg,cask",
        [
            ("brew install gh", "gh", False),
            ("brew install --cask visual-studio-code", "visual-studio-code", True),
            ("brew install user/tap/formula", "formula", False),
            ("brew install homebrew/core/package", "package", False),
            ("brew install -q package", "package", False),
            ("brew cask install app", "app", True),
            ("", "", False),
        ],
    )
    def test_extract(self, command, pkg, cask):
        assert extract_brew_package_from_command(command) == (pkg, cask)
