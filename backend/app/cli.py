# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/app/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates tables, user types and notification channels.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users create --email admin@tienda.local --rut 11111111-1 --password "secret123" --user-type 1
#   Create a credentialed user (prompts if options are omitted).
# - python -m flask users list
#   List all users with user type and active status.
#
# Maintenance:
# - python -m flask maintenance purge-revoked-tokens
#   Delete revoked-token entries whose tokens have expired anyway.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .services import customer_service, token_blacklist_service
from .services.auth_service import create_default_user_types, create_user_with_password
from .services.notification_service import create_default_channels
from .validation import ServiceError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create tables and seed reference data.

    Creates (when missing):
    - All tables
    - User types: 1 administrator, 2 customer
    - Notification channels: 1 email, 2 sms
    """
    click.echo("START Initializing database...")

    db.create_all()
    click.echo("PASS Tables created")

    types = create_default_user_types()
    click.echo(f"PASS User types: {', '.join(t.name for t in types)}")

    channels = create_default_channels()
    click.echo(f"PASS Notification channels: {', '.join(c.name for c in channels)}")

    click.echo("DONE System initialized. Create an administrator with 'python -m flask users create'.")


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

    click.echo("PASS Database reset complete. Run 'python -m flask system init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('create')
@click.option('--email', prompt=True, help='Email address')
@click.option('--rut', prompt=True, help='National id (RUT) of the linked customer')
@click.option('--name', default=None, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--user-type', 'user_type_id', type=int, default=1, show_default=True,
              help='User type id (1 administrator, 2 customer)')
@with_appcontext
def create_user_cli(email, rut, name, password, user_type_id):
    """
    Create a credentialed user and its customer record.

    Only administrators (user type 1 by default) may place orders.
    """
    try:
        customer_service.find_or_create_customer({"rut": rut, "name": name, "email": email})
        user = create_user_with_password(
            email=email,
            password=password,
            rut=rut,
            name=name,
            user_type_id=user_type_id,
        )
    except ServiceError as e:
        click.echo(f"FAIL Failed to create user: {e.message}")
        raise SystemExit(1)

    click.echo(f"PASS Created user: {user.email} (ID: {user.id}, type {user.user_type_id})")
    click.echo("SECURITY Password securely hashed with bcrypt")


@users_group.command('list')
@with_appcontext
def list_users():
    """List all users with their user type."""
    users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*90)
    click.echo(f"{'ID':<5} {'Email':<35} {'RUT':<15} {'Type':<15} {'Active'}")
    click.echo("="*90)

    for user in users:
        type_name = user.user_type.name if user.user_type else str(user.user_type_id)
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.rut or '-':<15} {type_name:<15} {active_str}")

    click.echo("="*90 + "\n")


@click.group('maintenance')
def maintenance_group():
    """Maintenance commands."""


@maintenance_group.command('purge-revoked-tokens')
@with_appcontext
def purge_revoked_tokens_cli():
    """Delete revocation entries for tokens past their natural expiry."""
    deleted = token_blacklist_service.purge_expired()
    click.echo(f"Deleted {deleted} expired revoked-token entries.")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(maintenance_group)
