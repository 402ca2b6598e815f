# Overview: Flask CLI command groups for bootstrap, operator accounts, and scheduled jobs.

# backend/hazel/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap:
# - python -m flask system init
#   Create tables and seed built-in settings (categories, payment methods, card companies).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Operator accounts:
# - python -m flask users list
# - python -m flask users create --username admin --email admin@hazel.local --password "hazel1234"
#
# Reminders (same jobs as the /api/cron endpoints):
# - python -m flask reminders daily [--date 2024-03-15]
# - python -m flask reminders scheduled

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import reminder_service, settings_service
from .services.auth_service import create_user, PasswordValidationError
from .services.push_service import PushConfigurationError
from .time_utils import parse_iso_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all tables and seed the built-in settings defaults.

    Idempotent: tables that already have rows are left alone.
    """
    click.echo("START Initializing Hazel...")
    db.create_all()
    counts = settings_service.seed_defaults()
    for table, count in counts.items():
        click.echo(f"PASS {table}: {count} default row(s) inserted")
    click.echo("DONE Create an operator with 'python -m flask users create'.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to seed defaults.")


@click.group('users')
def users_group():
    """Operator account commands."""


@users_group.command('create')
@click.option('--username', prompt=True, help='Username')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_user_cli(username, email, password):
    """
    Create an operator account.

    Password must be at least 8 characters with at least one letter and one digit.
    """
    try:
        user = create_user(username=username, email=email, password=password)
    except PasswordValidationError as e:
        click.echo(f"FAIL Password validation failed: {e}")
        return
    except ValueError as e:
        click.echo(f"FAIL {e}")
        return
    click.echo(f"PASS Created user: {user.username} ({user.email}, ID: {user.id})")


@users_group.command('list')
@with_appcontext
def list_users():
    """List operator accounts."""
    users = db.session.query(User).order_by(User.id.asc()).all()
    if not users:
        click.echo("No users found.")
        return

    click.echo(f"{'ID':<5} {'Username':<20} {'Email':<30} {'Active'}")
    for user in users:
        click.echo(f"{user.id:<5} {user.username:<20} {user.email:<30} {'yes' if user.is_active else 'no'}")


@click.group('reminders')
def reminders_group():
    """Reservation reminder jobs."""


@reminders_group.command('daily')
@click.option('--date', 'on_date', default=None, help='Business date YYYY-MM-DD (default: today)')
@with_appcontext
def daily_reminder_cli(on_date):
    """Today's reservation summary plus advance reminders."""
    try:
        today = parse_iso_date(on_date) if on_date else None
    except ValueError:
        raise click.BadParameter("date must be YYYY-MM-DD", param_hint="--date")
    try:
        result = reminder_service.send_daily_reminder(today)
    except PushConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(
        f"PASS {result['today_reservations']} reservation(s) today, "
        f"{result['advance_reminders']} advance reminder(s); sent={result['sent']} failed={result['failed']}"
    )


@reminders_group.command('scheduled')
@with_appcontext
def scheduled_reminders_cli():
    """Reminders whose reminder time fell within the last hour."""
    try:
        result = reminder_service.send_scheduled_reminders()
    except PushConfigurationError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS {result['reminders']} reminder(s); sent={result['sent']} failed={result['failed']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reminders_group)
