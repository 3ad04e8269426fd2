"""
Pytest fixtures for Motor Bersih backend tests.

Provides the application, a fresh database per test, seeded operators and
customers, and bearer-token headers for each role.
"""

from decimal import Decimal

import pytest
from motorbersih import create_app
from motorbersih.extensions import db
from motorbersih.models import Customer, Operator
from motorbersih.services.auth_service import issue_token
from motorbersih.services.transaction_service import WashRequest


# Operator tokens carry this uid; the operator fixture is linked to it
OPERATOR_USER_ID = 3

TEST_CONFIG = {
    'TESTING': True,
    'SECRET_KEY': 'test-secret',
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'BUSINESS_TIMEZONE': 'UTC',
    'ATTENDANCE_LATE_CUTOFF': '08:15',
    'LOYALTY_FREE_WASH_THRESHOLD': 5,
    'RATE_LIMIT_REQUESTS': 100000,
    'RATE_LIMIT_WINDOW_SECONDS': 60,
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

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
        app.extensions['rate_limiter'].reset()

        yield db.session

        # Cleanup after test
        db.session.rollback()


def make_operator(name="Budi", rate="30.00", status="active", user_id=None) -> Operator:
    operator = Operator(
        name=name,
        user_id=user_id,
        commission_rate=Decimal(rate),
        total_commission=0,
        total_washes=0,
        status=status,
    )
    db.session.add(operator)
    db.session.commit()
    return operator


def make_customer(plate="B1234ABC", name="Andi", loyalty_count=0, free_wash_available=False,
                  is_member=True) -> Customer:
    customer = Customer(
        license_plate=plate,
        name=name,
        is_member=is_member,
        loyalty_count=loyalty_count,
        free_wash_available=free_wash_available,
        total_washes=loyalty_count,
        total_spent=0,
    )
    db.session.add(customer)
    db.session.commit()
    return customer


def wash_request(operator_id, plate="B1234ABC", price=20000, **overrides) -> WashRequest:
    fields = {
        'operator_id': operator_id,
        'original_price': price,
        'payment_method': 'cash',
        'license_plate': plate,
        'customer_name': 'Walk In',
    }
    fields.update(overrides)
    return WashRequest(**fields)


@pytest.fixture(scope='function')
def operator(db_session):
    """Active operator earning 30%, linked to the operator token's user."""
    return make_operator(user_id=OPERATOR_USER_ID)


@pytest.fixture(scope='function')
def customer(db_session):
    """Registered member with an empty loyalty counter."""
    return make_customer()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(app):
    with app.app_context():
        return auth_headers(issue_token(1, 'admin'))


@pytest.fixture(scope='function')
def cashier_headers(app):
    with app.app_context():
        return auth_headers(issue_token(2, 'cashier'))


@pytest.fixture(scope='function')
def operator_headers(app):
    with app.app_context():
        return auth_headers(issue_token(OPERATOR_USER_ID, 'operator'))
