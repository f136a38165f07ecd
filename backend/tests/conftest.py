"""
Pytest fixtures for store portal backend tests.

Provides an in-memory database, test client, and small factories for
users, stores, assignments and orders.
"""

import pytest
from storeportal import create_app
from storeportal.extensions import db
from storeportal.models import Store, User, UserStoreAssignment, Customer, Order, OrderItem
from storeportal.services.auth_service import hash_password


PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_user(db_session):
    """Factory: make_user("owner@x.com", role="store_owner")."""
    def _make(email, role="store_owner", first_name="Test", last_name="User", is_active=True):
        user = User(
            email=email,
            password_hash=hash_password(PASSWORD),
            first_name=first_name,
            last_name=last_name,
            role=role,
            is_active=is_active,
        )
        db_session.add(user)
        db_session.commit()
        return user
    return _make


@pytest.fixture(scope='function')
def make_store(db_session):
    """Factory: make_store("Main", owner=user, features={...})."""
    def _make(name, owner=None, manager=None, status="active", features=None):
        store = Store(
            name=name,
            status=status,
            owner_id=owner.id if owner else None,
            manager_id=manager.id if manager else None,
            features=features or {},
            settings={},
        )
        db_session.add(store)
        db_session.commit()
        return store
    return _make


@pytest.fixture(scope='function')
def assign(db_session):
    """Factory: assign(user, store, primary=False)."""
    def _assign(user, store, primary=False):
        row = UserStoreAssignment(user_id=user.id, store_id=store.id, is_primary=primary)
        db_session.add(row)
        db_session.commit()
        return row
    return _assign


@pytest.fixture(scope='function')
def make_order(db_session):
    """Factory: make_order(store, 1500, status="completed", items=[("Wash & Fold", 2, 500)])."""
    def _make(store, total_cents, status="pending", payment_status=None, customer=None,
              created_at=None, order_number=None, items=()):
        order = Order(
            store_id=store.id,
            customer_id=customer.id if customer else None,
            order_number=order_number,
            order_status=status,
            payment_status=payment_status,
            total_amount_cents=total_cents,
        )
        if created_at is not None:
            order.created_at = created_at
        db_session.add(order)
        db_session.flush()

        for name, quantity, unit_price in items:
            db_session.add(OrderItem(
                order_id=order.id,
                service_name=name,
                quantity=quantity,
                unit_price_cents=unit_price,
                total_price_cents=quantity * unit_price,
            ))
        db_session.commit()
        return order
    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(store, name=None, first_name=None, last_name=None):
        customer = Customer(store_id=store.id, name=name, first_name=first_name, last_name=last_name)
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


@pytest.fixture(scope='function')
def owner(make_user):
    return make_user("owner@laundry.test", role="store_owner", first_name="Olive", last_name="Owner")


@pytest.fixture(scope='function')
def main_store(make_store, owner):
    """Owned by `owner`, inventory tracking on."""
    return make_store("Main Street Laundry", owner=owner, features={"inventory_tracking": True})


@pytest.fixture(scope='function')
def branch_store(make_store, owner):
    """Owned by `owner`, no features."""
    return make_store("Bayview Laundry", owner=owner)


@pytest.fixture(scope='function')
def foreign_store(make_store, make_user):
    """A store `owner` has nothing to do with."""
    stranger = make_user("stranger@other.test", role="store_owner")
    return make_store("Zeta Wash", owner=stranger)


@pytest.fixture(scope='function')
def super_admin(make_user, assign, main_store):
    user = make_user("root@laundry.test", role="super_admin", first_name="Sam", last_name="Root")
    assign(user, main_store, primary=True)
    return user


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get an access token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('access_token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def owner_headers(client, owner, main_store, branch_store):
    """Signed-in owner of Main Street and Bayview."""
    return auth_headers(get_auth_token(client, owner.email))


@pytest.fixture(scope='function')
def super_admin_headers(client, super_admin):
    return auth_headers(get_auth_token(client, super_admin.email))
