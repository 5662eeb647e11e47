"""
PowerCLI installer — CLI entrypoint.

Usage:
    powercli-install --help
    powercli-install install --trust-repository --disable-telemetry
    powercli-install probe
    powercli-install config check
"""

from __future__ import annotations

import json
import signal
import sys
from pathlib import Path

import click

from powercli_install import __version__
from powercli_install.core.observability.logging_config import level_from_flags, setup_from_env

_STATUS_STYLE = {
    "succeeded": ("✓", "green"),
    "failed": ("✗", "red"),
    "skipped": ("⊘", "yellow"),
    "not_attempted": ("·", "white"),
}


@click.group()
@click.version_option(version=__version__, prog_name="powercli-install")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to powercli-install.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """PowerCLI installer — install VMware.PowerCLI with automatic fallback."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    setup_from_env(level_from_flags(debug=debug, verbose=verbose, quiet=quiet))


@cli.command()
@click.option("--trust-repository", is_flag=True, default=None, help="Mark the repository as trusted first.")
@click.option("--disable-telemetry", is_flag=True, default=None, help="Opt out of VMware CEIP after install.")
@click.option("--force", is_flag=True, default=None, help="Reinstall even if the module is present.")
@click.option("--scope", type=click.Choice(["CurrentUser", "AllUsers"]), default=None, help="Install scope.")
@click.option("--version", "module_version", default=None, help="Exact module version (default: latest).")
@click.option("--destination", type=click.Path(file_okay=False), default=None, help="Module path for the save-module fallback.")
@click.option("--strategy", "strategies", multiple=True, help="Strategy order override (repeatable).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.option("--mock", is_flag=True, help="Use mock package sources (no real install).")
@click.pass_context
def install(
    ctx: click.Context,
    trust_repository: bool | None,
    disable_telemetry: bool | None,
    force: bool | None,
    scope: str | None,
    module_version: str | None,
    destination: str | None,
    strategies: tuple[str, ...],
    as_json: bool,
    mock: bool,
) -> None:
    """Install the module, falling back through every strategy.

    Examples:

        powercli-install install --trust-repository --disable-telemetry

        powercli-install install --scope AllUsers --version 13.3.0

        powercli-install install --strategy save-module --destination ~/Modules
    """
    from powercli_install.core.resolver import CancellationToken
    from powercli_install.core.use_cases.install import run_install

    overrides = {
        "trust_repository": trust_repository,
        "disable_telemetry": disable_telemetry,
        "force": force,
        "scope": scope,
        "version": module_version,
        "destination": Path(destination).expanduser() if destination else None,
        "strategies": list(strategies) if strategies else None,
    }

    cancel = CancellationToken()
    previous = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, lambda *_: cancel.cancel("interrupted"))
    try:
        result = run_install(
            config_path=ctx.obj.get("config_path"),
            overrides=overrides,
            mock_mode=mock,
            cancel=cancel,
        )
    finally:
        signal.signal(signal.SIGINT, previous)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error and result.resolution is None:
        click.secho(f"❌ {result.error}", fg="red")
        for problem in result.problems:
            click.echo(f"   • {problem}")
        sys.exit(1)

    resolution = result.resolution
    settings = result.config
    assert resolution is not None and settings is not None
    quiet = ctx.obj.get("quiet", False)

    if not quiet:
        mode_label = "[mock] " if result.mock else ""
        click.secho(f"\n📦 {mode_label}{settings.module} ({settings.scope})", fg="cyan", bold=True)
        click.echo()

    for attempt in resolution.attempts:
        icon, color = _STATUS_STYLE[attempt.status.value]
        click.secho(f"   {icon} {attempt.name} ", fg=color, nl=False)
        click.echo(f"({attempt.status.value})")
        if attempt.error and (attempt.status.value == "failed" or ctx.obj.get("verbose")):
            click.echo(f"     │ {attempt.error}")
        if attempt.rollback_error:
            click.secho(f"     │ rollback failed: {attempt.rollback_error}", fg="red")

    click.echo()
    if resolution.ok:
        where = f" → {resolution.location}" if resolution.location else ""
        click.secho(f"   ✅ Installed via {resolution.chosen}{where}", fg="green", bold=True)
    elif resolution.status.value == "cancelled":
        click.secho("   ⚠️  Cancelled", fg="yellow", bold=True)
    else:
        click.secho("   ❌ All install strategies failed", fg="red", bold=True)

    for warning in result.warnings:
        click.secho(f"   ⚠️  {warning}", fg="yellow")

    click.echo()
    sys.exit(result.exit_code)


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def probe(ctx: click.Context, as_json: bool) -> None:
    """Show what the installer sees on this machine."""
    from powercli_install.core.use_cases.status import get_environment

    result = get_environment(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error or result.problems else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    env = result.environment
    assert env is not None

    click.secho("\n🔍 Environment", fg="cyan", bold=True)
    click.echo(f"   PowerShell:  {env.powershell or 'not found'}"
               + (f" ({env.powershell_version})" if env.powershell_version else ""))
    click.echo(f"   Clients:     {', '.join(sorted(env.package_managers)) or 'none'}")
    click.echo(f"   Gallery:     {'reachable' if env.network_reachable else 'unreachable'}")
    click.echo(f"   Elevated:    {'yes' if env.is_elevated else 'no'}")
    click.echo(f"   Installed:   {', '.join(env.installed_versions) or 'no'}")
    click.echo("   Module paths:")
    for mp in env.module_paths:
        marker = "✓" if mp.writable else "✗"
        scope = "user" if mp.user_scope else "system"
        click.echo(f"     {marker} {mp.path} [{scope}]")

    if result.problems:
        click.echo()
        click.secho("   ❌ Problems:", fg="red")
        for problem in result.problems:
            click.echo(f"     • {problem}")
        click.echo()
        sys.exit(1)

    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def verify(ctx: click.Context, as_json: bool) -> None:
    """Check that the module is installed and visible to PowerShell."""
    from powercli_install.core.use_cases.status import verify_installation

    result = verify_installation(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.installed else 1)

    if result.installed:
        click.secho(f"✅ {result.module} {result.version}", fg="green", bold=True)
        if result.location:
            click.echo(f"   {result.location}")
        return

    click.secho(f"❌ {result.module or 'module'}: {result.error}", fg="red")
    sys.exit(1)


@cli.command()
@click.option("-n", "count", default=10, type=int, help="Number of runs to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history(ctx: click.Context, count: int, as_json: bool) -> None:
    """Show recent install runs from the audit ledger."""
    from powercli_install.core.config.loader import ConfigError, load_config
    from powercli_install.core.persistence.audit import AuditWriter

    try:
        settings = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    entries = AuditWriter(state_dir=settings.effective_state_dir()).read_recent(count)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No install runs recorded.")
        return

    status_color = {"done": "green", "cancelled": "yellow"}
    for entry in entries:
        click.echo(f"{entry.timestamp}  ", nl=False)
        click.secho(f"{entry.status:<20}", fg=status_color.get(entry.status, "red"), nl=False)
        click.echo(f" {entry.module} via {entry.chosen or '-'} ({entry.duration_ms}ms)")
        if ctx.obj.get("verbose"):
            for err in entry.errors:
                click.echo(f"     │ {err}")


@cli.group()
def config() -> None:
    """Installer configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate powercli-install.yml."""
    from powercli_install.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   File:       {result.config_path or '(none, defaults)'}")
        click.echo(f"   Module:     {result.config.module} {result.config.version or '(latest)'}")
        click.echo(f"   Scope:      {result.config.scope}")
        click.echo(f"   Strategies: {' → '.join(result.config.strategies)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


if __name__ == "__main__":
    cli()
