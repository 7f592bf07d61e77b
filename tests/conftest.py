"""
Pytest fixtures for storefront tests.

Provides test database setup, catalog fixtures (company, products, user)
and the test client.
"""

from datetime import timedelta

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.services import accounts_service, products_service
from storefront.time_utils import utcnow


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'OFFER_SWEEP_ENABLED': False,
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
def company(db_session):
    """Company that owns the test catalog."""
    return accounts_service.create_company({"name": "Acme Tea", "email": "shop@acme.test"})


@pytest.fixture(scope='function')
def user(db_session):
    return accounts_service.create_user({"name": "Ana", "email": "ana@example.com"})


@pytest.fixture(scope='function')
def mug(db_session, company):
    """1000 cents, 10 in stock."""
    return products_service.create_product(
        patch={"name": "Mug", "price_cents": 1000, "stock": 10, "photo": "mug.png"},
        company_id=company["id"],
    )


@pytest.fixture(scope='function')
def teapot(db_session, company):
    """2500 cents, 3 in stock."""
    return products_service.create_product(
        patch={"name": "Teapot", "price_cents": 2500, "stock": 3},
        company_id=company["id"],
    )


@pytest.fixture(scope='function')
def offer_window():
    """(start, end) bracketing now."""
    now = utcnow()
    return now - timedelta(days=1), now + timedelta(days=7)
