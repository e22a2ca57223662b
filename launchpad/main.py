"""
Launchpad — CLI entrypoint.

Usage:
    launchpad --help
    launchpad status
    launchpad install --yes
    launchpad config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from launchpad import __version__
from launchpad.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="launchpad")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to launchpad.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """Launchpad — bootstrap framework modules into a host project."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("LAUNCHPAD_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("LAUNCHPAD_LOG_FILE"),
        log_file_level=os.environ.get("LAUNCHPAD_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── status ──────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, as_json: bool) -> None:
    """Show module, mirror and manifest status."""
    from launchpad.core.use_cases.status import get_status

    result = get_status(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    if not ctx.obj.get("quiet", False):
        click.secho(f"\n🚀 {result.project_root}", fg="cyan", bold=True)
        if not result.manifest_exists:
            click.secho("   ⚠️  manifest not found", fg="yellow")
        click.echo()

    present = "yes" if result.modules_present else "no"
    click.secho(f"   Required modules loaded: {present}", fg="white", bold=True)
    for tool, available in result.tools.items():
        if not available:
            click.secho(f"   ⚠️  {tool} is not available; installs will fail", fg="yellow")
    click.secho(f"   Modules: {result.installed_count}/{len(result.modules)} installed", fg="white", bold=True)
    for mod in result.modules:
        marker = " ✓" if mod.registered else ""
        click.echo(f"     • {mod.name}{marker}  [{mod.mirror}]")

    if result.last_run:
        run = result.last_run
        click.echo()
        click.secho("   Last provisioning run:", fg="white", bold=True)
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(run.status, "white")
        click.echo(f"     {run.operation_id} — ", nl=False)
        click.secho(run.status, fg=status_color)
        click.echo(f"     at {run.timestamp}")

    click.echo()


# ── boot / install ──────────────────────────────────────────────


@cli.command()
@click.pass_context
def boot(ctx: click.Context) -> None:
    """Run the startup path: hand off if installed, otherwise offer to install."""
    _bootstrap(ctx, manual=False, yes=False, mock=False, as_json=False)


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Don't ask for confirmation.")
@click.option("--mock", is_flag=True, help="Simulate git, filesystem and host resolution.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(ctx: click.Context, yes: bool, mock: bool, as_json: bool) -> None:
    """Install framework modules and start the installer."""
    _bootstrap(ctx, manual=True, yes=yes, mock=mock, as_json=as_json)


def _bootstrap(ctx: click.Context, manual: bool, yes: bool, mock: bool, as_json: bool) -> None:
    from launchpad.core.config.loader import ConfigError, find_config_file, load_config, project_root
    from launchpad.core.context import BootstrapContext
    from launchpad.core.use_cases.bootstrap import Bootstrapper, RunPhase

    config_path = ctx.obj.get("config_path") or find_config_file()
    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    def _confirm(message: str) -> bool:
        if yes:
            return True
        return click.confirm(message, default=True)

    context = BootstrapContext.create(
        config,
        project_root(config_path),
        confirm=_confirm,
        mock=mock,
    )
    bootstrapper = Bootstrapper(context)
    run = bootstrapper.manual_install() if manual else bootstrapper.on_host_loaded()
    bootstrapper.wait(run)

    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2))
        sys.exit(0 if run.succeeded or run.phase is RunPhase.DECLINED else 1)

    if run.phase is RunPhase.DECLINED:
        click.secho("Installation declined.", fg="yellow")
        return

    report = run.report
    if report is not None:
        status_color = {"ok": "green", "partial": "yellow", "failed": "red"}.get(report.status, "white")
        click.secho(
            f"   Provisioned {report.installed}/{report.total} modules: {report.status}",
            fg=status_color,
        )
        for module in report.results:
            icon = "✅" if module.installed else "❌"
            click.echo(f"     {icon} {module.name}  fetch={module.fetch} patch={module.patch}")

    if run.phase is RunPhase.STALLED:
        click.secho(f"❌ Dependency resolution {run.resolution}", fg="red")
        sys.exit(1)
    if run.phase is RunPhase.FAILED:
        click.secho(f"❌ {run.error}", fg="red")
        sys.exit(1)
    if not run.succeeded:
        click.secho(f"❌ Installer hand-off: {run.handoff}", fg="red")
        sys.exit(1)

    click.secho("✅ Installer started", fg="green", bold=True)


# ── remove-launcher ─────────────────────────────────────────────


@cli.command("remove-launcher")
@click.pass_context
def remove_launcher_cmd(ctx: click.Context) -> None:
    """Remove the launcher's own entry from the manifest."""
    from launchpad.core.use_cases.remove_launcher import remove_launcher

    result = remove_launcher(config_path=ctx.obj.get("config_path"))
    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)
    if result.removed:
        click.secho(f"✅ Removed {result.launcher_name}", fg="green")
    else:
        click.echo(f"{result.launcher_name} is not registered; nothing to do.")


# ── config ──────────────────────────────────────────────────────


@cli.group()
def config() -> None:
    """Launchpad configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate launchpad.yml configuration."""
    from launchpad.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.config is not None
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Modules: {len(result.config.modules)}")
        click.echo(f"   Mirror root: {result.config.mirror_root}")
        click.echo(f"   Manifest: {result.config.manifest}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(1)

    click.echo()


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
