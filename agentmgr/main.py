"""
agentmgr — CLI entrypoint.

Usage:
    agentmgr --help
    agentmgr methods claude-code
    agentmgr install aider --method pipx
    agentmgr version compare 1.2.3 1.10.0
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from agentmgr import __version__
from agentmgr.core.observability.logging_config import resolve_level, setup_from_env


@click.group()
@click.version_option(version=__version__, prog_name="agentmgr")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--catalog",
    "-c",
    "catalog_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to agents.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    catalog_path: str | None,
) -> None:
    """agentmgr — install, update and remove CLI agents across package managers."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["catalog_path"] = Path(catalog_path) if catalog_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_from_env(resolve_level(verbose=verbose, quiet=quiet, debug=debug))


# ── Helpers ─────────────────────────────────────────────────────


def _manager(ctx: click.Context):
    """The installer manager (tests inject one through ``obj``)."""
    from agentmgr.core.services.installer import Manager

    if ctx.obj.get("manager") is None:
        ctx.obj["manager"] = Manager()
    return ctx.obj["manager"]


def _agent(ctx: click.Context, agent_id: str):
    from agentmgr.core.config.loader import ConfigError, load_catalog

    try:
        catalog = load_catalog(ctx.obj.get("catalog_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    agent_def = catalog.get(agent_id)
    if agent_def is None:
        click.secho(f"❌ Unknown agent: {agent_id}", fg="red")
        sys.exit(1)
    return agent_def


def _method_def(agent_def, method: str):
    method_def = agent_def.get_install_method(method)
    if method_def is None:
        click.secho(f"❌ {agent_def.id} has no install method '{method}'", fg="red")
        sys.exit(1)
    return method_def


def _token():
    from agentmgr.core.config.loader import ConfigError, command_timeout
    from agentmgr.core.services.installer import CancelToken

    try:
        return CancelToken(timeout=command_timeout())
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)


def _hint_manager(method: str) -> str:
    """Tool name used for error hints."""
    return "brew" if method == "brew-cask" else method


def _fail(error: Exception, method: str, operation: str) -> None:
    """Report an installer error (with fix hints when known) and exit 1."""
    from agentmgr.core.services.installer import hints_for_error

    click.secho(f"❌ {error}", fg="red", err=True)
    hint = hints_for_error(_hint_manager(method), operation, error)
    if hint:
        click.echo(hint.lstrip("\n"), err=True)
    sys.exit(1)


def _result_dict(result) -> dict:
    data = result.model_dump(mode="json")
    data["version"] = str(result.version)
    data["from_version"] = str(result.from_version)
    return data


def _installation(agent_def, method: str, from_version: str | None, path: str | None):
    """Installation record for update/uninstall from CLI arguments."""
    from agentmgr.core.models import Installation, parse_version

    installed = parse_version(from_version) if from_version else None
    inst = Installation(
        agent_id=agent_def.id,
        agent_name=agent_def.name,
        method=method,
        executable_path=path or "",
    )
    if installed is not None:
        inst = inst.model_copy(update={"installed_version": installed})
    return inst


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.argument("agent_id")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def methods(ctx: click.Context, agent_id: str, as_json: bool) -> None:
    """List install methods usable for an agent on this machine."""
    from agentmgr.core.models import InstallMethod

    agent_def = _agent(ctx, agent_id)
    available = _manager(ctx).get_available_methods(agent_def)

    if as_json:
        click.echo(json.dumps([m.model_dump(mode="json") for m in available], indent=2))
        return

    if not available:
        click.secho(f"⚠️  No install method for {agent_id} is usable here", fg="yellow")
        sys.exit(1)

    click.secho(f"\n📦 {agent_def.name or agent_def.id}", fg="cyan", bold=True)
    for m in available:
        known = InstallMethod.parse(m.method)
        label = known.display_name if known else m.method
        detail = m.package or m.command
        click.echo(f"   • {m.method:<12} {label}  {detail}")


@cli.command()
@click.argument("agent_id")
@click.option("--method", "-m", "method", default=None, help="Install method (default: first available).")
@click.option("--force", is_flag=True, help="Reinstall even if already installed.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, agent_id: str, method: str | None, force: bool, as_json: bool) -> None:
    """Install an agent."""
    from agentmgr.core.services.installer import InstallerError

    manager = _manager(ctx)
    agent_def = _agent(ctx, agent_id)

    if method is None:
        available = manager.get_available_methods(agent_def)
        if not available:
            click.secho(f"❌ No install method for {agent_id} is usable here", fg="red")
            sys.exit(1)
        method_def = available[0]
    else:
        method_def = _method_def(agent_def, method)

    try:
        result = manager.install(agent_def, method_def, force, ctx=_token())
    except InstallerError as e:
        _fail(e, method_def.method, "install")
        return

    if as_json:
        click.echo(json.dumps(_result_dict(result), indent=2))
        return

    click.secho(f"✅ Installed {agent_def.name or agent_def.id} {result.version}", fg="green", bold=True)
    if result.executable_path and not ctx.obj.get("quiet"):
        click.echo(f"   → {result.executable_path}")


@cli.command()
@click.argument("agent_id")
@click.option("--method", "-m", "method", required=True, help="Method the agent was installed with.")
@click.option("--from-version", default=None, help="Currently installed version.")
@click.option("--path", "path", default=None, help="Path of the installed executable.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def update(
    ctx: click.Context,
    agent_id: str,
    method: str,
    from_version: str | None,
    path: str | None,
    as_json: bool,
) -> None:
    """Update an installed agent."""
    from agentmgr.core.models import InvalidVersionFormat
    from agentmgr.core.services.installer import InstallerError

    agent_def = _agent(ctx, agent_id)
    method_def = _method_def(agent_def, method)
    try:
        inst = _installation(agent_def, method_def.method, from_version, path)
    except InvalidVersionFormat as e:
        raise click.BadParameter(str(e), param_hint="--from-version") from e

    try:
        result = _manager(ctx).update(inst, agent_def, method_def, ctx=_token())
    except InstallerError as e:
        _fail(e, method_def.method, "update")
        return

    if as_json:
        click.echo(json.dumps(_result_dict(result), indent=2))
        return

    name = agent_def.name or agent_def.id
    if result.was_updated:
        click.secho(f"✅ Updated {name}: {result.from_version} → {result.version}", fg="green", bold=True)
    else:
        click.secho(f"✓ {name} is up to date ({result.version})", fg="green")


@cli.command()
@click.argument("agent_id")
@click.option("--method", "-m", "method", required=True, help="Method the agent was installed with.")
@click.option("--path", "path", default=None, help="Path of the installed executable.")
@click.pass_context
def uninstall(ctx: click.Context, agent_id: str, method: str, path: str | None) -> None:
    """Remove an installed agent."""
    from agentmgr.core.services.installer import InstallerError

    agent_def = _agent(ctx, agent_id)
    method_def = _method_def(agent_def, method)
    inst = _installation(agent_def, method_def.method, None, path)

    try:
        _manager(ctx).uninstall(inst, method_def, ctx=_token())
    except InstallerError as e:
        _fail(e, method_def.method, "uninstall")
        return

    click.secho(f"✅ Removed {agent_def.name or agent_def.id}", fg="green", bold=True)


@cli.command()
@click.argument("agent_id")
@click.option("--method", "-m", "method", required=True, help="Method whose registry to query.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def latest(ctx: click.Context, agent_id: str, method: str, as_json: bool) -> None:
    """Show the newest version an agent's registry offers."""
    from agentmgr.core.services.installer import InstallerError

    agent_def = _agent(ctx, agent_id)
    method_def = _method_def(agent_def, method)

    try:
        version = _manager(ctx).get_latest_version(method_def, ctx=_token())
    except InstallerError as e:
        _fail(e, method_def.method, "query")
        return

    if as_json:
        click.echo(json.dumps({"agent_id": agent_id, "method": method, "version": str(version)}))
        return
    click.echo(str(version))


@cli.command()
@click.argument("manager_name", metavar="MANAGER")
@click.argument("stderr")
@click.option("--operation", default="install", help="Operation that failed.")
def hint(manager_name: str, stderr: str, operation: str) -> None:
    """Suggest fixes for a package manager's error output."""
    from agentmgr.core.services.installer import format_install_error

    text = format_install_error(manager_name, operation, stderr)
    if not text:
        click.echo("No suggestions for this error.")
        return
    click.echo(text.lstrip("\n"))


# ── Version utilities ───────────────────────────────────────────


@cli.group("version")
def version_group() -> None:
    """Compare versions and check constraints."""


@version_group.command("compare")
@click.argument("a")
@click.argument("b")
def version_compare(a: str, b: str) -> None:
    """Print -1, 0 or 1 as A is older than, equal to, or newer than B."""
    from agentmgr.core.models import InvalidVersionFormat, parse_version

    try:
        result = parse_version(a).compare(parse_version(b))
    except InvalidVersionFormat as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(2)
    click.echo(str(result))


@version_group.command("satisfies")
@click.argument("version")
@click.argument("constraint")
def version_satisfies(version: str, constraint: str) -> None:
    """Exit 0 if VERSION satisfies CONSTRAINT (e.g. "^1.2"), 1 if not."""
    from agentmgr.core.models import parse_constraint, parse_version

    try:
        ok = parse_constraint(constraint).matches(parse_version(version))
    except ValueError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(2)

    click.echo("yes" if ok else "no")
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    cli()
