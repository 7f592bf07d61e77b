# Overview: Flask CLI command groups for schema reset and offer maintenance.

# storefront/cli.py
# Commands Legend:
# - flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - flask system counters
#   Show the last id allocated per entity namespace.
# - flask offers sweep
#   Expire offers past their end date once and restore product prices.
# - flask offers run-sweeper --interval 3600
#   Run the expiry sweep in the foreground every --interval seconds.

import time

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .services import sequence_service
from .services.sweeper import OfferSweeper, sweep_expired_offers


@click.group('system')
def system_group():
    """System bootstrap and inspection commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@system_group.command('counters')
@with_appcontext
def show_counters():
    """Show the last allocated id per namespace."""
    click.echo(f"{'Namespace':<12} {'Last id'}")
    for namespace in sequence_service.NAMESPACES:
        click.echo(f"{namespace:<12} {sequence_service.current_value(namespace)}")


@click.group('offers')
def offers_group():
    """Offer maintenance commands."""


@offers_group.command('sweep')
@with_appcontext
def sweep_cli():
    """Expire offers whose end date has passed (one pass)."""
    result = sweep_expired_offers()
    click.echo(
        f"Expired {len(result.expired)} offers, restored {len(result.restored)} prices, "
        f"{len(result.failed)} failures."
    )
    if result.failed:
        click.echo(f"FAIL offer ids: {', '.join(str(i) for i in result.failed)}")


@offers_group.command('run-sweeper')
@click.option('--interval', type=int, default=None, help='Seconds between passes (default: OFFER_SWEEP_INTERVAL_SECONDS)')
@with_appcontext
def run_sweeper_cli(interval):
    """Run the expiry sweeper in the foreground until interrupted."""
    app = current_app._get_current_object()
    sweeper = OfferSweeper(app, interval_seconds=interval or app.config["OFFER_SWEEP_INTERVAL_SECONDS"])
    click.echo(f"Sweeping every {sweeper.interval_seconds}s. Ctrl+C to stop.")
    sweeper.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        sweeper.stop()
        click.echo("Stopped.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(offers_group)
