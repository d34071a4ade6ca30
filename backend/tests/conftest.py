"""
Pytest fixtures for Apple Rewards backend tests.

Provides an in-memory database, a test client, seeded staff/students and
authentication helpers.
"""

import pytest
from apple_rewards import create_app
from apple_rewards.config import Config
from apple_rewards.extensions import db
from apple_rewards.models import User, Student
from apple_rewards.services.auth_service import hash_password


PASSWORD = "Password123!"


class TestingConfig(Config):
    __test__ = False

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = "DEBUG"

    BASE_SESSION_VALUE = 150
    SESSION_VALUE_INCREMENT = 20
    SESSIONS_PER_MILESTONE = 20
    LOYALTY_BONUS_INTERVAL = 0
    LOYALTY_BONUS_APPLES = 0


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    # Clear all data but keep schema
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expire_all()

    yield db.session

    # Cleanup after test
    db.session.rollback()


def make_user(password_hash, *, name, email, role, barcode, apples=0, sessions_attended=0):
    user = User(
        name=name,
        email=email,
        password_hash=password_hash,
        role=role,
        barcode=barcode,
        apples=apples,
        sessions_attended=sessions_attended,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture(scope='function')
def admin(db_session, password_hash):
    return make_user(password_hash, name="Alice Admin", email="alice@example.com",
                     role="admin", barcode="200001")


@pytest.fixture(scope='function')
def assistant(db_session, password_hash):
    return make_user(password_hash, name="Bob Assistant", email="bob@example.com",
                     role="assistant", barcode="300001", apples=300, sessions_attended=2)


@pytest.fixture(scope='function')
def other_assistant(db_session, password_hash):
    return make_user(password_hash, name="Cara Assistant", email="cara@example.com",
                     role="assistant", barcode="300002", apples=900, sessions_attended=6)


@pytest.fixture(scope='function')
def student(db_session):
    student = Student(name="Sam Student", barcode="100001", apples=300)
    db_session.add(student)
    db_session.commit()
    return student


def get_auth_token(client, email: str, password: str = PASSWORD) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'email': email,
        'password': password
    })
    if response.status_code == 200:
        return response.get_json().get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(client, admin):
    return auth_headers(get_auth_token(client, admin.email))


@pytest.fixture(scope='function')
def assistant_headers(client, assistant):
    return auth_headers(get_auth_token(client, assistant.email))


def reload(model, pk):
    """Re-read a row, bypassing anything cached in the identity map."""
    db.session.expire_all()
    return db.session.get(model, pk)
