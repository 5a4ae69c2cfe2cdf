import os
import tempfile
import time

# Configure the application before it is imported
TEST_SECRET = "test-signing-key-with-enough-length-for-hs256"
UPLOAD_DIR = tempfile.mkdtemp(prefix="test-uploads-")

os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["UPLOAD_DIR"] = UPLOAD_DIR
os.environ["AUTH_SECRET_KEY"] = TEST_SECRET
os.environ["AUTH_ALGORITHMS"] = '["HS256"]'
for name in ("REDIS_URL", "BASE_URL", "AUTH_ISSUER"):
    os.environ.pop(name, None)

import pytest
from authlib.jose import JsonWebToken
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.config import Settings, get_settings
from app.database import Base, get_db


# Create test database (SQLite in-memory for testing)
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency
app.dependency_overrides[get_db] = override_get_db


def make_token(sub, secret=TEST_SECRET, expires_in=3600, **claims):
    """Mint a bearer token the way the auth provider would."""
    now = int(time.time())
    payload = {"sub": sub, "iat": now, "exp": now + expires_in, **claims}
    token = JsonWebToken(["HS256"]).encode({"alg": "HS256"}, payload, secret)
    return token.decode("utf-8")


def auth(sub, **kwargs):
    """Authorization header for the given user."""
    return {"Authorization": f"Bearer {make_token(sub, **kwargs)}"}


@pytest.fixture(scope="function")
def client():
    """Create test client with fresh database for each test."""
    # Create tables
    Base.metadata.create_all(bind=engine)

    with TestClient(app) as test_client:
        yield test_client

    # Drop tables after test
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Create database session for direct database access in tests."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def override_settings():
    """Replace request-time settings with the given overrides for one test."""
    def apply(**overrides):
        settings = Settings(**overrides)
        app.dependency_overrides[get_settings] = lambda: settings
        return settings

    yield apply

    app.dependency_overrides.pop(get_settings, None)


@pytest.fixture
def product_payload():
    return {
        "title": "Mechanical Keyboard",
        "description": "Hot-swappable 75% board with brown switches",
        "imageUrl": "https://cdn.example.com/uploads/keyboard.png",
    }
