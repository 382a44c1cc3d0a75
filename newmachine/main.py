"""
newmachine — CLI entrypoint.

Usage:
    python -m newmachine.main --help
    python -m newmachine.main plan
    python -m newmachine.main run --profile server
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from newmachine import __version__
from newmachine.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    LOG_LEVEL_ENV,
    setup_logging,
)

PROFILE_CHOICES = click.Choice(["macos", "server"])


@click.group()
@click.version_option(version=__version__, prog_name="newmachine")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to machine.yml (default: $NEWMACHINE_CONFIG or ~/.config/newmachine).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """newmachine — provision a fresh Mac or Ubuntu server."""
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
        level = os.environ.get(LOG_LEVEL_ENV, "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


@cli.command()
@click.option("--profile", "profile_name", type=PROFILE_CHOICES, default=None,
              help="Profile to apply (default: detect from the OS).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, profile_name: str | None, as_json: bool) -> None:
    """Install everything the profile lists that is not already there.

    Safe to re-run: present tools are skipped.

    Examples:

        newmachine run

        newmachine run --profile server
    """
    from newmachine.core.use_cases.provision import run_provision
    from newmachine.ui.cli.report import error, print_header, print_outcome, print_summary

    verbose = ctx.obj.get("verbose", False)
    quiet = ctx.obj.get("quiet", False)

    def on_outcome(outcome):
        if quiet and outcome.status == "skipped":
            return
        print_outcome(outcome, verbose=verbose)

    result = run_provision(
        profile_name=profile_name,
        config_path=ctx.obj.get("config_path"),
        on_start=None if as_json else print_header,
        on_outcome=None if as_json else on_outcome,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        error(result.error)
        sys.exit(result.exit_code)

    report = result.report
    assert report is not None and result.profile is not None
    print_summary(report, result.profile)
    sys.exit(result.exit_code)


@cli.command()
@click.option("--profile", "profile_name", type=PROFILE_CHOICES, default=None,
              help="Profile to check (default: detect from the OS).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, profile_name: str | None, as_json: bool) -> None:
    """Show which steps are already satisfied. Installs nothing."""
    from newmachine.core.use_cases.status import get_status

    result = get_status(profile_name=profile_name, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    assert result.profile is not None
    click.secho(f"\n📋 {result.profile.title}", fg="cyan", bold=True)
    click.echo(f"   {result.present_count} present, {result.missing_count} missing")
    click.echo()

    if result.adapters:
        click.echo("   Installers:", nl=False)
        for name, available in result.adapters.items():
            icon, fg = ("✓", "green") if available else ("✗", "yellow")
            click.secho(f" {icon} {name}", fg=fg, nl=False)
        click.echo()
        click.echo()

    for entry in result.steps:
        if entry.present:
            click.secho(f"   ✓ {entry.step.label}", fg="green", nl=False)
            click.echo(f"  {entry.version}" if entry.version else "")
        else:
            click.secho(f"   ✗ {entry.step.label}", fg="red", nl=False)
            click.echo(f"  ({entry.detail})" if entry.detail else "")
    click.echo()


@cli.command()
@click.option("--profile", "profile_name", type=PROFILE_CHOICES, default=None,
              help="Profile to list (default: detect from the OS).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def plan(ctx: click.Context, profile_name: str | None, as_json: bool) -> None:
    """List the steps a run would resolve, in order."""
    from newmachine.core.use_cases.status import get_plan

    result = get_plan(profile_name=profile_name, config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(1 if result.error else 0)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(1)

    assert result.profile is not None
    click.secho(f"\n📋 {result.profile.title} — {len(result.steps)} steps", fg="cyan", bold=True)
    click.echo()
    for index, step in enumerate(result.steps, start=1):
        if step.fatal:
            click.secho(f"   {index:>2}. {step.label}", nl=False)
            click.secho(f"  [fatal, exit {step.exit_code}]", fg="red")
        else:
            click.echo(f"   {index:>2}. {step.label}")
    click.echo()


if __name__ == "__main__":
    cli()
