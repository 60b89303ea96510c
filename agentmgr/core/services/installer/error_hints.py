"""
Error hints — turn raw package-manager stderr into remediation text (pure).

Matching is plain substring search on the captured stderr, the same
text ``CommandFailed.stderr`` carries.  Manager-specific patterns run
first, then generic ones.  No I/O, no subprocess.
"""

from __future__ import annotations

from collections.abc import Callable

from agentmgr.core.services.installer.errors import CommandFailed

_HEADER = "\n\nSuggested fixes:\n"


def format_install_error(manager: str, operation: str, stderr: str) -> str:
    """Build a "Suggested fixes" block for a failed package-manager call.

    Args:
        manager: Tool that failed (``npm``, ``pip``, ``pip3``, ``pipx``,
            ``uv``, ``brew``, ``go``, ``cargo``; anything else only gets
            generic hints).
        operation: ``install``, ``update`` or ``uninstall``.  Kept for
            callers' symmetry; no current hint depends on it.
        stderr: The tool's standard error, unmodified.

    Returns:
        The hint block, or ``""`` when nothing matched.  Callers must not
        invent a hint when this is empty.
    """
    hints: list[str] = []
    collector = _MANAGER_HINTS.get(manager)
    if collector is not None:
        hints.extend(collector(stderr))
    hints.extend(_generic_hints(stderr))

    if not hints:
        return ""
    return _HEADER + "\n".join(hints)


def hints_for_error(manager: str, operation: str, error: BaseException) -> str:
    """``format_install_error`` for an exception; only ``CommandFailed`` carries stderr."""
    if isinstance(error, CommandFailed):
        return format_install_error(manager, operation, error.stderr)
    return ""


def _npm_hints(stderr: str) -> list[str]:
    hints = []
    if "EACCES" in stderr:
        hints.append(
            "• Permission denied. Configure npm to use a local directory:\n"
            "    mkdir -p ~/.npm-global\n"
            "    npm config set prefix '~/.npm-global'\n"
            "    echo 'export PATH=~/.npm-global/bin:$PATH' >> ~/.bashrc\n"
            "    source ~/.bashrc"
        )
    if "ENOENT" in stderr:
        hints.append("• Package or file not found. Verify the package name is correct.")
    if "network" in stderr or "ETIMEDOUT" in stderr:
        hints.append("• Network error. Check your internet connection and try again.")
    if "E404" in stderr or "404 Not Found" in stderr:
        hints.append("• Package not found in npm registry. Verify the package name.")
    return hints


def _pip_hints(stderr: str) -> list[str]:
    hints = []
    if "Permission denied" in stderr or "PermissionError" in stderr:
        hints.append(
            "• Permission denied. Use pipx instead for isolated installations:\n"
            "    pipx install <package>\n"
            "  Or use a virtual environment:\n"
            "    python -m venv .venv && source .venv/bin/activate"
        )
    if "externally-managed-environment" in stderr:
        hints.append(
            "• This Python installation is managed by your system.\n"
            "  Use pipx for isolated installations:\n"
            "    pipx install <package>\n"
            "  Or use uv for fast package management:\n"
            "    uv tool install <package>"
        )
    if "No matching distribution" in stderr:
        hints.append("• Package not found. Verify the package name and try again.")
    if "Could not find a version" in stderr:
        hints.append("• Version not found. Try without specifying a version.")
    return hints


def _pipx_hints(stderr: str) -> list[str]:
    hints = []
    if "not found" in stderr or "No such file" in stderr:
        hints.append(
            "• pipx not found. Install it first:\n"
            "    pip install --user pipx\n"
            "    python -m pipx ensurepath"
        )
    if "already installed" in stderr:
        hints.append("• Package already installed. Use 'pipx upgrade <package>' to update.")
    return hints


def _uv_hints(stderr: str) -> list[str]:
    if "not found" in stderr:
        return [
            "• uv not found. Install it:\n"
            "    curl -LsSf https://astral.sh/uv/install.sh | sh"
        ]
    return []


def _brew_hints(stderr: str) -> list[str]:
    hints = []
    if "No available formula" in stderr or "Error: No formulae found" in stderr:
        hints.append(
            "• Formula not found. Check if you need to tap a repository first:\n"
            "    brew tap <user>/<repo>\n"
            "  Then try the install again."
        )
    if "Permission denied" in stderr:
        hints.append(
            "• Permission denied. Fix Homebrew permissions:\n"
            "    sudo chown -R $(whoami) $(brew --prefix)/*"
        )
    if "Please update Homebrew" in stderr:
        hints.append(
            "• Homebrew is outdated. Update it first:\n"
            "    brew update"
        )
    if "already installed" in stderr:
        hints.append("• Package already installed. Use 'brew upgrade <package>' to update.")
    return hints


def _go_hints(stderr: str) -> list[str]:
    hints = []
    if "go: module" in stderr and "not found" in stderr:
        hints.append("• Module not found. Verify the package path is correct.")
    if "GOPATH" in stderr or "GOBIN" in stderr:
        hints.append(
            "• GOPATH issue. Ensure Go is properly configured:\n"
            "    export GOPATH=$HOME/go\n"
            "    export PATH=$PATH:$GOPATH/bin"
        )
    return hints


def _cargo_hints(stderr: str) -> list[str]:
    hints = []
    if "could not find" in stderr:
        hints.append("• Crate not found. Verify the package name on crates.io.")
    if "Permission denied" in stderr:
        hints.append(
            "• Permission denied. Check cargo installation:\n"
            "    curl --proto '=https' --tlsv1.2 -sSf https://sh.rustup.rs | sh"
        )
    return hints


def _generic_hints(stderr: str) -> list[str]:
    hints = []
    if "command not found" in stderr:
        hints.append("• Required command not found. Ensure it's installed and in your PATH.")
    if "timeout" in stderr or "timed out" in stderr:
        hints.append("• Operation timed out. Check your network connection and try again.")
    if "SSL" in stderr or "certificate" in stderr:
        hints.append("• SSL/certificate error. Check your system certificates and network proxy settings.")
    return hints


_MANAGER_HINTS: dict[str, Callable[[str], list[str]]] = {
    "npm": _npm_hints,
    "pip": _pip_hints,
    "pip3": _pip_hints,
    "pipx": _pipx_hints,
    "uv": _uv_hints,
    "brew": _brew_hints,
    "go": _go_hints,
    "cargo": _cargo_hints,
}
