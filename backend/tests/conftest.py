"""
Pytest fixtures for the store backend tests.

Provides test database setup, seeded reference data, catalog fixtures,
and a test client.
"""

import pytest
from app import create_app
from app.extensions import db, mailer
from app.models import Category, Customer, Product, Supplier
from app.models.auth import ADMINISTRATOR_USER_TYPE_ID, CUSTOMER_USER_TYPE_ID
from app.services.auth_service import create_default_user_types, create_user_with_password
from app.services.notification_service import create_default_channels


ADMIN_EMAIL = "admin@tienda.local"
ADMIN_PASSWORD = "Password123!"
ADMIN_RUT = "11111111-1"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'SECRET_KEY': 'test-secret-key',
        'BCRYPT_ROUNDS': 4,
        'MAIL_SUPPRESS_SEND': True,
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
    """Fresh data for each test, with user types and channels seeded."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        mailer.outbox.clear()

        create_default_user_types()
        create_default_channels()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    """Administrator (user type 1), allowed to place orders."""
    db_session.add(Customer(rut=ADMIN_RUT, name="Admin", email=ADMIN_EMAIL))
    db_session.commit()
    return create_user_with_password(
        email=ADMIN_EMAIL,
        password=ADMIN_PASSWORD,
        rut=ADMIN_RUT,
        name="Admin",
        user_type_id=ADMINISTRATOR_USER_TYPE_ID,
    )


@pytest.fixture(scope='function')
def customer_user(db_session):
    """Plain customer account (user type 2)."""
    db_session.add(Customer(rut="22222222-2", name="Ana Cliente", email="ana@example.com"))
    db_session.commit()
    return create_user_with_password(
        email="ana@example.com",
        password="secret123",
        rut="22222222-2",
        name="Ana Cliente",
        user_type_id=CUSTOMER_USER_TYPE_ID,
    )


@pytest.fixture(scope='function')
def supplier(db_session):
    s = Supplier(rut="76543210-K", name="Distribuidora Sur", email="ventas@sur.cl")
    db_session.add(s)
    db_session.commit()
    return s


@pytest.fixture(scope='function')
def category(db_session):
    c = Category(id=1, name="Bebidas", description="Bebidas y jugos")
    db_session.add(c)
    db_session.commit()
    return c


def make_product(db_session, supplier, category, *, id, name, price, stock, status=True):
    product = Product(
        id=id,
        name=name,
        price=price,
        stock=stock,
        status=status,
        rut_supplier=supplier.rut,
        category_id=category.id,
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_p(db_session, supplier, category):
    """Product P: price 1000, stock 5."""
    return make_product(db_session, supplier, category, id=1, name="Producto P", price=1000, stock=5)


@pytest.fixture(scope='function')
def product_q(db_session, supplier, category):
    """Product Q: price 2500, stock 10."""
    return make_product(db_session, supplier, category, id=2, name="Producto Q", price=2500, stock=10)


def get_auth_token(client, email: str, password: str) -> str:
    """Helper to get auth token for a user."""
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
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, ADMIN_EMAIL, ADMIN_PASSWORD))
