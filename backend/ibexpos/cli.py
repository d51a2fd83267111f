# Overview: Flask CLI command groups for bootstrap, seeding, and SQL migrations.

# backend/ibexpos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init
#   Idempotent bootstrap: default currencies plus the platform admin (admin@ibex.com).
# - python -m flask system seed-test-users
#   Development accounts: a merchant with store "test-store", its cashier, and a portal customer.
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
# - python -m flask system cleanup-sessions
#   Delete expired and revoked sessions older than 30 days.
#
# SQL migrations (backend/migrations/sql/*.sql):
# - python -m flask migrations apply-sql [--dir path]
#   Apply pending SQL files in name order; each file runs once.
# - python -m flask migrations status [--dir path]
#   List SQL files and whether each one has been applied.

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import Customer, CustomerStoreRelation, Store, User
from .models.auth import ROLE_CASHIER, ROLE_MERCHANT
from .services import auth_service, currency_service, session_service, sql_migration_service
from .services.customer_service import RELATION_ACTIVE


TEST_STORE_SLUG = "test-store"

TEST_MERCHANT = ("merchant@example.com", "merchant123", "تاجر تجريبي")
TEST_CASHIER = ("cashier@example.com", "cashier123", "كاشير تجريبي")
TEST_CUSTOMER = ("771234567", "customer123", "عميل تجريبي")


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init')
@with_appcontext
def init_system():
    """
    Initialize the platform: default currencies and the platform admin.

    Safe to run repeatedly.
    """
    click.echo("START Initializing ibexpos...")

    created = currency_service.seed_currencies()
    click.echo(f"PASS Currencies ready ({created} created)")

    admin, admin_created = auth_service.ensure_platform_admin()
    if admin_created:
        click.echo(f"PASS Created platform admin: {admin.email}")
    else:
        click.echo(f"PASS Using existing platform admin: {admin.email}")

    click.echo("\nDefault Credentials (CHANGE IN PRODUCTION!):")
    click.echo(f"   platform_admin -> {auth_service.PLATFORM_ADMIN_EMAIL} / {auth_service.PLATFORM_ADMIN_PASSWORD}")


def _ensure_user(email: str, password: str, name: str, role: str, store_id=None) -> User:
    user = auth_service.get_user_by_email(email)
    if user:
        click.echo(f"WARN  User '{email}' already exists, skipping...")
        return user
    user = auth_service.create_user(name=name, email=email, password=password, role=role, store_id=store_id)
    db.session.commit()
    click.echo(f"PASS Created {role}: {email}")
    return user


@system_group.command('seed-test-users')
@with_appcontext
def seed_test_users():
    """Development accounts for the desktop and portal clients."""
    email, password, name = TEST_MERCHANT
    merchant = _ensure_user(email, password, name, ROLE_MERCHANT)

    store = db.session.query(Store).filter(Store.slug == TEST_STORE_SLUG, Store.alive()).first()
    if not store:
        store = Store(
            merchant_id=merchant.id,
            name="Test Store",
            slug=TEST_STORE_SLUG,
            subscription_plan="basic",
            subscription_status="active",
            bank_accounts=[],
            contact_info={},
            settings={},
        )
        db.session.add(store)
        db.session.flush()
        click.echo(f"PASS Created store: {store.slug} (ID: {store.id})")
    if merchant.store_id is None:
        merchant.store_id = store.id
    db.session.commit()

    email, password, name = TEST_CASHIER
    _ensure_user(email, password, name, ROLE_CASHIER, store_id=store.id)

    phone, password, name = TEST_CUSTOMER
    customer = db.session.query(Customer).filter(Customer.phone == phone, Customer.alive()).first()
    if not customer:
        customer = Customer(
            name=name,
            phone=phone,
            whatsapp=phone,
            password_hash=auth_service.hash_password(password),
            registration_status="approved",
        )
        db.session.add(customer)
        db.session.flush()
        click.echo(f"PASS Created customer: {phone}")

    relation = (
        db.session.query(CustomerStoreRelation)
        .filter_by(customer_id=customer.id, store_id=store.id)
        .first()
    )
    if not relation:
        db.session.add(CustomerStoreRelation(
            customer_id=customer.id, store_id=store.id, balance=0, status=RELATION_ACTIVE
        ))
    db.session.commit()

    click.echo("\nTest Credentials:")
    click.echo(f"   merchant -> {TEST_MERCHANT[0]} / {TEST_MERCHANT[1]}")
    click.echo(f"   cashier  -> {TEST_CASHIER[0]} / {TEST_CASHIER[1]}")
    click.echo(f"   customer -> {TEST_CUSTOMER[0]} / {TEST_CUSTOMER[1]} (store: {TEST_STORE_SLUG})")


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


@system_group.command('cleanup-sessions')
@with_appcontext
def cleanup_sessions():
    deleted = session_service.cleanup_expired_sessions()
    click.echo(f"Deleted {deleted} expired or revoked sessions.")


@click.group('migrations')
def migrations_group():
    """Plain SQL migrations kept beside the Alembic history."""


@migrations_group.command('apply-sql')
@click.option('--dir', 'directory', default=None, help='Directory of .sql files')
@with_appcontext
def apply_sql(directory):
    result = sql_migration_service.apply_pending(directory)
    for name in result["applied"]:
        click.echo(f"PASS Applied {name}")
    click.echo(f"DONE {len(result['applied'])} applied, {result['skipped']} already applied")


@migrations_group.command('status')
@click.option('--dir', 'directory', default=None, help='Directory of .sql files')
@with_appcontext
def migration_status(directory):
    rows = sql_migration_service.status(directory)
    if not rows:
        click.echo("No SQL migration files found.")
        return
    for row in rows:
        marker = "PASS" if row["applied"] else "PENDING"
        click.echo(f"{marker} {row['name']}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(migrations_group)
