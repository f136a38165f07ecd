# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/storeportal/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py.
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: a demo store, its owner and a super admin.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list [--store-id 1]
# - python -m flask users create --email owner@example.com --password secret1 --first-name Ana --last-name Cruz --role store_owner
#
# Stores:
# - python -m flask stores list
# - python -m flask stores create --name "Main Street" --owner-id 2
# - python -m flask stores assign --user-id 3 --store-id 1 --store-id 2
#   Replace a user's assignments (first store is primary).
# - python -m flask stores feature --store-id 1 inventory_tracking on
# - python -m flask stores status --store-id 1 inactive
#   Inactive stores drop out of every store switcher.
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Store, User
from .models.auth import USER_ROLES, ROLE_STORE_OWNER, ROLE_SUPER_ADMIN
from .models.tenancy import STORE_FEATURES, STORE_STATUSES
from .services import auth_service, store_service, session_service, user_service
from .services.access_service import capabilities_for
from .services.assignment_service import replace_user_assignments, get_assigned_store_ids, AssignmentError
from .validation import ValidationError, ConflictError


DEFAULT_PASSWORD = "changeme123"


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@click.option('--store-name', default='Main Store', help='Name of the first store')
@with_appcontext
def init_system(store_name):
    """
    Create a first store, a store owner for it and a super admin.

    Existing rows are left alone; running twice is safe.
    """
    click.echo("START Initializing store portal...")

    default_users = [
        ("owner@laundropos.local", "Store", "Owner", ROLE_STORE_OWNER),
        ("superadmin@laundropos.local", "Super", "Admin", ROLE_SUPER_ADMIN),
    ]

    created = {}
    for email, first_name, last_name, role in default_users:
        existing = db.session.query(User).filter_by(email=email).first()
        if existing:
            click.echo(f"WARN  User '{email}' already exists, skipping...")
            created[role] = existing
            continue
        try:
            created[role] = auth_service.create_user(
                email=email,
                password=DEFAULT_PASSWORD,
                first_name=first_name,
                last_name=last_name,
                role=role,
            )
            click.echo(f"PASS Created user: {email} with role '{role}'")
        except ValidationError as e:
            click.echo(f"FAIL Failed to create user '{email}': {str(e)}")

    store = db.session.query(Store).first()
    if not store:
        owner = created.get(ROLE_STORE_OWNER)
        store = store_service.create_store(store_name, owner_id=owner.id if owner else None)
        click.echo(f"PASS Created store: {store.name} (ID: {store.id})")
    else:
        click.echo(f"PASS Using existing store: {store.name} (ID: {store.id})")

    # A super admin still needs a store link to pass the portal gate
    admin = created.get(ROLE_SUPER_ADMIN)
    if admin and not get_assigned_store_ids(admin.id):
        replace_user_assignments(admin.id, [store.id], assigned_by=admin.id)
        click.echo(f"PASS Assigned {admin.email} to {store.name}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    for email, _, _, role in default_users:
        click.echo(f"   {role:<12} -> {email} / {DEFAULT_PASSWORD}")
    click.echo("")


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
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--first-name', prompt=True, help='First name')
@click.option('--last-name', prompt=True, help='Last name')
@click.option('--role', type=click.Choice(list(USER_ROLES)), prompt=True, help='Role')
@click.option('--store-id', 'store_ids', type=int, multiple=True, help='Assign to store (repeatable)')
@with_appcontext
def create_user_cli(email, password, first_name, last_name, role, store_ids):
    """Create a user and their store assignments in one save."""
    try:
        user = auth_service.build_user(
            email=email,
            password=password,
            first_name=first_name,
            last_name=last_name,
            role=role,
        )
        user = user_service.save_new_user(user, list(dict.fromkeys(store_ids)))
        click.echo(f"PASS Created user: {user.email} with role '{role}' (ID: {user.id})")
        if store_ids:
            click.echo(f"PASS Assigned stores: {', '.join(str(s) for s in get_assigned_store_ids(user.id))}")

    except (ValidationError, ConflictError, user_service.UserServiceError) as e:
        click.echo(f"FAIL Failed to create user: {str(e)}")


@users_group.command('list')
@click.option('--store-id', type=int, help='Only users linked to this store')
@with_appcontext
def list_users(store_id):
    """List users with role, active flag and assigned stores."""
    if store_id:
        store = store_service.get_store(store_id)
        if not store:
            click.echo(f"FAIL Store {store_id} not found")
            return
        users = user_service.list_store_users(store)
    else:
        users = db.session.query(User).order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Email':<35} {'Role':<14} {'Active':<8} {'Stores'}")
    click.echo("="*100)

    for user in users:
        stores_str = ", ".join(str(s) for s in get_assigned_store_ids(user.id)) or "none"
        active_str = "Yes" if user.is_active else "No"
        click.echo(f"{user.id:<5} {user.email:<35} {user.role:<14} {active_str:<8} {stores_str}")

    click.echo("="*100 + "\n")


@click.group('stores')
def stores_group():
    """Store management commands."""


@stores_group.command('list')
@with_appcontext
def list_stores():
    stores = store_service.list_stores()
    if not stores:
        click.echo("No stores found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<5} {'Name':<30} {'Status':<10} {'Owner':<7} {'Features'}")
    click.echo("="*100)
    for store in stores:
        enabled = [flag for flag, on in store.to_dict()["features"].items() if on]
        owner_str = str(store.owner_id) if store.owner_id else "-"
        click.echo(f"{store.id:<5} {store.name:<30} {store.status:<10} {owner_str:<7} {', '.join(enabled) or 'none'}")
    click.echo("="*100 + "\n")


@stores_group.command('create')
@click.option('--name', required=True, help='Store name')
@click.option('--owner-id', type=int, help='Owning user ID')
@click.option('--address', help='Street address')
@with_appcontext
def create_store_cli(name, owner_id, address):
    try:
        store = store_service.create_store(name, owner_id=owner_id, address=address)
        click.echo(f"PASS Created store: {store.name} (ID: {store.id})")
    except (store_service.StoreError, ValidationError) as e:
        click.echo(f"FAIL Failed to create store: {str(e)}")


@stores_group.command('assign')
@click.option('--user-id', type=int, required=True, help='User ID')
@click.option('--store-id', 'store_ids', type=int, multiple=True, required=True, help='Store ID (repeatable, first is primary)')
@with_appcontext
def assign_stores(user_id, store_ids):
    """Replace a user's store assignments."""
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        click.echo(f"FAIL User {user_id} not found")
        return

    try:
        replace_user_assignments(user.id, list(dict.fromkeys(store_ids)))
        click.echo(f"PASS {user.email} now assigned to: {', '.join(str(s) for s in get_assigned_store_ids(user.id))}")
    except AssignmentError as e:
        click.echo(f"FAIL {str(e)}")


@stores_group.command('feature')
@click.option('--store-id', type=int, required=True, help='Store ID')
@click.argument('flag', type=click.Choice(list(STORE_FEATURES)))
@click.argument('state', type=click.Choice(['on', 'off']))
@with_appcontext
def set_feature(store_id, flag, state):
    """Turn a store feature on or off."""
    try:
        store = store_service.update_store_features(
            capabilities_for(ROLE_SUPER_ADMIN),
            store_id,
            {flag: state == 'on'},
        )
        click.echo(f"PASS {flag} is now {state} for {store.name}")
    except (store_service.StoreError, ValidationError) as e:
        click.echo(f"FAIL {str(e)}")


@stores_group.command('status')
@click.option('--store-id', type=int, required=True, help='Store ID')
@click.argument('status', type=click.Choice(list(STORE_STATUSES)))
@with_appcontext
def set_status(store_id, status):
    try:
        store = store_service.set_store_status(store_id, status)
        click.echo(f"PASS {store.name} is now {store.status}")
    except (store_service.StoreError, ValidationError) as e:
        click.echo(f"FAIL {str(e)}")


@click.group('maintenance')
def maintenance_group():
    """Housekeeping commands."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', type=int, default=30, show_default=True, help='Keep dead sessions this many days')
@with_appcontext
def cleanup_sessions(retention_days):
    deleted = session_service.cleanup_expired_sessions(retention_days)
    click.echo(f"PASS Deleted {deleted} expired or revoked sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(users_group)
    app.cli.add_command(stores_group)
    app.cli.add_command(maintenance_group)
