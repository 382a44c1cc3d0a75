"""
Run rendering — progress lines and the final summary.

Lines go through ``click.secho`` so they show at every log level.
Info and warnings go to stdout, errors to stderr.
"""

from __future__ import annotations

import click

from newmachine.core.engine.sequencer import RunReport
from newmachine.core.models.step import StepOutcome
from newmachine.profiles import Profile


def info(message: str) -> None:
    click.secho("[INFO] ", fg="green", nl=False)
    click.echo(message)


def warn(message: str) -> None:
    click.secho("[WARN] ", fg="yellow", nl=False)
    click.echo(message)


def error(message: str) -> None:
    click.secho("[ERROR] ", fg="red", nl=False, err=True)
    click.echo(message, err=True)


def print_header(profile: Profile, steps_planned: int) -> None:
    click.secho(f"\n⚡ {profile.title}", fg="cyan", bold=True)
    click.echo(f"   {profile.subtitle}")
    click.echo(f"   Profile: {profile.name} | Steps: {steps_planned}")
    click.echo()


def print_outcome(outcome: StepOutcome, verbose: bool = False) -> None:
    """One line per resolved step, as the run goes."""
    if outcome.status == "skipped":
        info(f"⊘ {outcome.label} already installed")
    elif outcome.status == "installed":
        timing = f" ({outcome.duration_ms}ms)" if verbose and outcome.duration_ms else ""
        info(f"✓ {outcome.label} installed{timing}")
    elif outcome.status == "failed_recoverable":
        warn(f"✗ {outcome.label} failed, continuing: {outcome.error}")
    else:
        error(f"{outcome.label}: {outcome.error}")
        if outcome.remedy:
            error(f"Run this first, then try again: {outcome.remedy}")

    for note in outcome.notes:
        warn(note)


_STATUS_ICONS = {
    "skipped": ("⊘", "white"),
    "installed": ("✓", "green"),
    "failed_recoverable": ("✗", "yellow"),
    "failed_fatal": ("✗", "red"),
}


def print_summary(report: RunReport, profile: Profile) -> None:
    """Every step by category, then what to do next.

    A halted run still lists what it resolved before the halt, but
    skips the reload hint and verify commands.
    """
    click.echo()
    if report.halted:
        click.secho(
            f"Setup halted at '{report.halted_at}' (exit {report.exit_code})",
            fg="red",
            bold=True,
            err=True,
        )
    else:
        color = "green" if report.status == "ok" else "yellow"
        click.secho("Setup complete!", fg=color, bold=True)
    click.echo(
        f"   {report.installed} installed, {report.skipped} already present, "
        f"{report.failed} failed"
    )

    for category, outcomes in report.by_category().items():
        click.echo()
        click.secho(f"   {category.capitalize()}:", bold=True)
        for outcome in outcomes:
            icon, fg = _STATUS_ICONS.get(outcome.status, ("•", "white"))
            click.secho(f"     {icon} ", fg=fg, nl=False)
            suffix = ""
            if outcome.status == "skipped":
                suffix = " (already present)"
            elif outcome.failed:
                suffix = f" (failed: {outcome.error})"
            click.echo(f"{outcome.label}{suffix}")

    notes = [note for o in report.outcomes for note in o.notes]
    if notes:
        click.echo()
        click.secho("   Notes:", fg="yellow", bold=True)
        for note in notes:
            click.echo(f"     • {note}")

    if report.halted:
        click.echo()
        return

    click.echo()
    click.secho(f"   {profile.reload_hint}", fg="cyan")
    if profile.verify_commands:
        click.echo()
        click.echo("   Verify with:")
        for command in profile.verify_commands:
            click.echo(f"     {command}")
    click.echo()
