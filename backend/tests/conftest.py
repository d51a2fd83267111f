"""
Pytest fixtures for ibexpos backend tests.

Provides the in-memory database, two tenants (merchant + store each), staff
and customer principals, and helpers for calling IPC channels over the test
client.
"""

from decimal import Decimal

import pytest

from ibexpos import create_app
from ibexpos.extensions import db
from ibexpos.models import Customer, CustomerStoreRelation, Product, Store, User
from ibexpos.services import session_service
from ibexpos.services.auth_service import hash_password


PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'BCRYPT_ROUNDS': 4,
        'RUN_SQL_MIGRATIONS': False,
        'REGISTRATION_RETRY_DELAY': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Fresh rows (and a fresh g) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        db.session.rollback()


def make_user(session, *, email, role, name=None, store_id=None, status="active"):
    user = User(
        name=name or email.split("@")[0],
        email=email,
        password_hash=hash_password(PASSWORD),
        role=role,
        store_id=store_id,
        status=status,
    )
    session.add(user)
    session.commit()
    return user


def make_store(session, merchant, *, name, slug, status="active"):
    store = Store(
        merchant_id=merchant.id,
        name=name,
        slug=slug,
        subscription_plan="basic",
        subscription_status=status,
        bank_accounts=[],
        contact_info={},
        settings={},
    )
    session.add(store)
    session.flush()
    if merchant.store_id is None:
        merchant.store_id = store.id
    session.commit()
    return store


def make_product(session, store, *, name="Product", price="10.00", stock=20, cost="6.00", barcode=None):
    product = Product(
        store_id=store.id,
        name=name,
        price=Decimal(price),
        cost=Decimal(cost),
        stock=stock,
        barcode=barcode,
        show_in_portal=True,
    )
    session.add(product)
    session.commit()
    return product


def make_customer(session, store, *, phone="771234567", balance="0", status="approved", name="Customer"):
    customer = Customer(
        name=name,
        phone=phone,
        whatsapp=phone,
        password_hash=hash_password(PASSWORD),
        registration_status=status,
    )
    session.add(customer)
    session.flush()
    if store is not None:
        session.add(CustomerStoreRelation(
            customer_id=customer.id,
            store_id=store.id,
            balance=Decimal(balance),
            status="active",
        ))
    session.commit()
    return customer


@pytest.fixture(scope='function')
def platform_admin(db_session):
    return make_user(db_session, email="admin@ibex.com", role="platform_admin", name="Admin")


@pytest.fixture(scope='function')
def merchant(db_session):
    """Merchant A (first tenant)."""
    return make_user(db_session, email="merchant_a@example.com", role="merchant", name="Merchant A")


@pytest.fixture(scope='function')
def store(db_session, merchant):
    """Store A, owned by merchant A."""
    return make_store(db_session, merchant, name="Store A", slug="store-a")


@pytest.fixture(scope='function')
def other_merchant(db_session):
    """Merchant B (second tenant)."""
    return make_user(db_session, email="merchant_b@example.com", role="merchant", name="Merchant B")


@pytest.fixture(scope='function')
def other_store(db_session, other_merchant):
    return make_store(db_session, other_merchant, name="Store B", slug="store-b")


@pytest.fixture(scope='function')
def cashier(db_session, store):
    return make_user(db_session, email="cashier_a@example.com", role="cashier", name="Cashier A", store_id=store.id)


@pytest.fixture(scope='function')
def product(db_session, store):
    return make_product(db_session, store, name="Rice 5kg", price="10.00", stock=20)


@pytest.fixture(scope='function')
def other_product(db_session, other_store):
    return make_product(db_session, other_store, name="Store B product", price="15.00", stock=5)


@pytest.fixture(scope='function')
def customer(db_session, store):
    """Approved customer related to store A with 100.00 balance."""
    return make_customer(db_session, store, balance="100.00")


def token_for(user) -> str:
    _, token = session_service.create_session(user.id)
    return token


def customer_token_for(customer) -> str:
    _, token = session_service.create_customer_session(customer.id)
    return token


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def ipc(client, name, *args, token=None):
    """POST /api/ipc/<name> with positional args; returns the response."""
    headers = auth_headers(token) if token else {}
    return client.post(f'/api/ipc/{name}', json={'args': list(args)}, headers=headers)


@pytest.fixture(scope='function')
def merchant_token(merchant, store):
    return token_for(merchant)


@pytest.fixture(scope='function')
def cashier_token(cashier):
    return token_for(cashier)


@pytest.fixture(scope='function')
def admin_token(platform_admin):
    return token_for(platform_admin)


@pytest.fixture(scope='function')
def customer_token(customer):
    return customer_token_for(customer)
