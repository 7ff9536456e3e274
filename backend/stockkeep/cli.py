# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: creates all collections and, on first run, the default owner.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all collections (deletes all data), then seed.
#
# User inspection/bootstrap:
# - python -m flask users list
#   List active users with roles and last login.
# - python -m flask users create --username ana --pin 4821 --name "Ana Reyes" --role manager
#   Create a user (prompts if options are omitted).
# - python -m flask users deactivate <user-id>
#   Soft-delete a user.
#
# Inventory inspection:
# - python -m flask items low-stock
#   List items at or below their low-stock threshold.
# - python -m flask items audit
#   Rebuild every item's quantity from the ledger and report mismatches.

import click
from flask.cli import with_appcontext

from .domain import Role
from .services.auth_service import PinValidationError
from .services.inventory import get_ledger
from .time_utils import to_utc_z
from .validation import LedgerError


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Create all collections and seed first-run data.

    Default credentials (CHANGE IN PRODUCTION!):
       owner -> PIN 1234
    """
    ledger = get_ledger()
    click.echo(f"START Initializing stockkeep ({ledger.backend.name} backend)...")
    ledger.schema.create_schema()
    click.echo("PASS Collections ready")

    if ledger.schema.apply_seed_data_if_empty():
        click.echo("PASS Seeded default owner: owner / PIN 1234")
        click.echo("\nSECURITY WARNING: change the owner PIN immediately!")
    else:
        click.echo("WARN  Users already exist, skipping seed data")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all collections and recreate them.

    This will DELETE ALL DATA, including the transaction ledger!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    ledger = get_ledger()
    click.echo("DELETE  Dropping all collections...")
    seeded = ledger.schema.reset()
    click.echo("PASS Schema recreated" + (" and seeded" if seeded else ""))


@click.group('users')
def users_group():
    """User inspection and bootstrap commands."""


@users_group.command('list')
@with_appcontext
def list_users():
    """List active users, newest first."""
    users = get_ledger().users.get_all()
    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<40} {'Username':<20} {'Name':<20} {'Role':<8} {'Last login'}")
    click.echo("="*100)
    for user in users:
        last_login = to_utc_z(user.last_login_at) or "never"
        click.echo(f"{user.id:<40} {user.username:<20} {user.name:<20} {user.role.value:<8} {last_login}")
    click.echo("")


@users_group.command('create')
@click.option('--username', prompt=True)
@click.option('--pin', prompt=True, hide_input=True, confirmation_prompt=True)
@click.option('--name', prompt=True)
@click.option('--role', type=click.Choice([r.value for r in Role]), default=Role.STAFF.value, show_default=True)
@with_appcontext
def create_user_command(username, pin, name, role):
    """Create a user with a hashed PIN."""
    try:
        user = get_ledger().users.register(username, pin, name, role)
    except PinValidationError as e:
        raise click.ClickException(f"PIN validation failed: {e}")
    except LedgerError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created user: {user.username} ({user.role.value}) id={user.id}")


@users_group.command('deactivate')
@click.argument('user_id')
@with_appcontext
def deactivate_user_command(user_id):
    """Soft-delete a user (idempotent)."""
    if get_ledger().users.deactivate(user_id):
        click.echo(f"PASS Deactivated user {user_id}")
    else:
        click.echo(f"WARN  User {user_id} not found or already inactive")


@click.group('items')
def items_group():
    """Inventory inspection commands."""


@items_group.command('low-stock')
@with_appcontext
def low_stock_command():
    """List items at or below their low-stock threshold."""
    items = get_ledger().items.get_low_stock_items()
    if not items:
        click.echo("No low-stock items.")
        return
    for item in items:
        click.echo(
            f"{item.name:<30} {item.category:<20} qty={item.quantity:<6} threshold={item.low_stock_threshold}"
        )


@items_group.command('audit')
@with_appcontext
def audit_items_command():
    """
    Rebuild every active item's quantity from the ledger.

    Exits non-zero if any item disagrees with its history.
    """
    reports = get_ledger().stock.audit_all()
    mismatches = [r for r in reports if not r["consistent"]]
    for report in mismatches:
        click.echo(
            f"FAIL {report['item_name']} ({report['item_id']}): stored={report['stored_quantity']} "
            f"ledger={report['reconstructed_quantity']}"
        )
    click.echo(f"Audited {len(reports)} items, {len(mismatches)} mismatches")
    if mismatches:
        raise SystemExit(1)


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(items_group)
