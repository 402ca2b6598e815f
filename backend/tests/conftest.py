"""
Pytest fixtures for Hazel backend tests.

Provides an in-memory database, a test client, and an authenticated operator.
"""

import pytest
from hazel import create_app
from hazel.extensions import db
from hazel.services.auth_service import create_user


OPERATOR_PASSWORD = "hazel1234"
CRON_SECRET = "cron-test-secret"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'APP_TIMEZONE': 'Asia/Seoul',
        'STORAGE_ROOT': str(tmp_path_factory.mktemp('storage')),
        'STORAGE_PUBLIC_URL': '/media',
        'CRON_SECRET': CRON_SECRET,
        'VAPID_PUBLIC_KEY': 'test-public-key',
        'VAPID_PRIVATE_KEY': 'test-private-key',
        'ERROR_WEBHOOK_URL': None,
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
def operator(db_session):
    """Shop operator account."""
    return create_user(username="florist", email="florist@hazel.local", password=OPERATOR_PASSWORD)


@pytest.fixture(scope='function')
def headers(client, operator):
    """Authorization headers for the operator."""
    token = get_auth_token(client, operator.username, OPERATOR_PASSWORD)
    assert token, "login failed in fixture"
    return auth_headers(token)


@pytest.fixture(scope='function')
def cron_headers():
    return auth_headers(CRON_SECRET)


def get_auth_token(client, username: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
