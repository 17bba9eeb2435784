import os

os.environ["TESTING"] = "true"
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from auth import create_access_token, hash_password
from core.cache import default_cache
from core.db import Base
from core.rate_limit import default_rate_limiter
from models import User

TEST_PASSWORD = "password123"


def create_test_engine():
    """In-memory SQLite shared across threads so TestClient sees the same data"""
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )


@pytest.fixture(scope="session")
def password_hash():
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope="function")
def test_engine():
    engine = create_test_engine()
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def test_db(test_engine, password_hash):
    """Fresh schema per test seeded with two users, an admin and a super admin"""
    TestingSessionLocal = sessionmaker(bind=test_engine, autoflush=False)
    db = TestingSessionLocal()

    db.add_all(
        [
            User(
                id="user-1",
                email="test1@example.com",
                password_hash=password_hash,
                first_name="Test",
                last_name="One",
                country="nigeria",
                tsu_balance=Decimal("100"),
            ),
            User(
                id="user-2",
                email="test2@example.com",
                password_hash=password_hash,
                first_name="Test",
                last_name="Two",
                country="nigeria",
                tsu_balance=Decimal("0"),
            ),
            User(
                id="admin-1",
                email="admin@example.com",
                password_hash=password_hash,
                first_name="Ada",
                last_name="Admin",
                role="admin",
            ),
            User(
                id="super-1",
                email="super@example.com",
                password_hash=password_hash,
                first_name="Sam",
                last_name="Super",
                role="super_admin",
            ),
        ]
    )
    db.commit()

    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def reset_shared_state():
    default_rate_limiter.reset()
    default_cache.clear()
    yield
    default_rate_limiter.reset()
    default_cache.clear()


@pytest.fixture
def user(test_db):
    return test_db.query(User).filter(User.id == "user-1").first()


@pytest.fixture
def other_user(test_db):
    return test_db.query(User).filter(User.id == "user-2").first()


@pytest.fixture
def admin_user(test_db):
    return test_db.query(User).filter(User.id == "admin-1").first()


@pytest.fixture
def super_admin(test_db):
    return test_db.query(User).filter(User.id == "super-1").first()


@pytest.fixture
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user_id=user.id, role=user.role)}"}

    return _headers
