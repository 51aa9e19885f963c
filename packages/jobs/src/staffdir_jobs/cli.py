"""
cli.py — Click CLI entrypoint for scheduled jobs.

Usage:
    staffdir-jobs compliance-reminders
    staffdir-jobs compliance-reminders --dry-run
    staffdir-jobs --log-level DEBUG compliance-reminders
"""

from __future__ import annotations

import asyncio
import json

import click
import structlog

from staffdir_shared.config import settings
from staffdir_shared.logging import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
def main(log_level: str) -> None:
    """Staffing directory scheduled jobs."""
    configure_logging(log_level=log_level)


@main.command("compliance-reminders")
@click.option("--dry-run", is_flag=True, help="Select reminders without stamping rows or sending email.")
def compliance_reminders(dry_run: bool) -> None:
    """Email agency owners about compliance documents expiring in ~30 and ~7 days."""
    from staffdir_jobs.compliance_reminders import run

    try:
        summary = asyncio.run(run(dry_run=dry_run))
    except RuntimeError as exc:
        raise click.ClickException(str(exc)) from exc

    if dry_run:
        click.echo("Dry run: no rows stamped, no email sent.")
    click.echo(json.dumps(summary.as_dict(), indent=2))
    if summary.errors:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
