import os
os.environ.setdefault("ENV_FILE", "tests/.env.test")
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_champion_reviews.db")
os.environ.setdefault("TEST_MODE", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789abcdef")
try:
    from dotenv import load_dotenv
    load_dotenv(os.environ["ENV_FILE"])
except Exception:
    pass

import pytest
from fastapi.testclient import TestClient
from main import app
from services.database import get_db
from database_adapter import DatabaseAdapter, Champion, Region, Review, Role, User, model_to_dict
from config import get_settings
from .test_data import TEST_CHAMPIONS, TEST_REGIONS, TEST_ROLES, VALID_REVIEW_TEXT


class _AuthClient:
    """TestClient wrapper that sends a dev-token Authorization header on every request."""

    def __init__(self, base, user):
        self._base = base
        self._headers = {"Authorization": f"Bearer dev-token-{user['id']}"}

    def request(self, method, url, **kwargs):
        headers = kwargs.pop("headers", {}) or {}
        merged = {**self._headers, **headers}
        return self._base.request(method, url, headers=merged, **kwargs)

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self.request("POST", url, **kwargs)

    def patch(self, url, **kwargs):
        return self.request("PATCH", url, **kwargs)

    def delete(self, url, **kwargs):
        return self.request("DELETE", url, **kwargs)


@pytest.fixture
def client(clean_database):
    """Unauthenticated test client using SQLite."""
    app.dependency_overrides[get_db] = lambda: clean_database
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(clean_database, test_user):
    """Test client authenticated as the first test user."""
    app.dependency_overrides[get_db] = lambda: clean_database
    try:
        yield _AuthClient(TestClient(app), test_user)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_client_2(clean_database, test_user_2):
    """Test client authenticated as the second test user."""
    app.dependency_overrides[get_db] = lambda: clean_database
    try:
        yield _AuthClient(TestClient(app), test_user_2)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def test_settings():
    """Load test environment settings from ENV_FILE."""
    return get_settings(os.environ.get("ENV_FILE", "tests/.env.test"))


@pytest.fixture(scope="session")
def test_db(test_settings):
    """SQLite database for testing"""
    db = DatabaseAdapter(test_settings)
    db.init()  # Create tables
    yield db
    db.engine.dispose()


@pytest.fixture
def clean_database(test_db):
    """Drop and recreate tables, then seed champions, before each test"""
    test_db.cleanup()
    _seed_test_data(test_db)
    yield test_db


def _seed_test_data(db):
    """Seed regions, champion roles and champions from shared constants."""
    with db.session() as session:
        regions = {name: Region(name=name) for name in TEST_REGIONS}
        roles = {name: Role(name=name) for name in TEST_ROLES}
        session.add_all(list(regions.values()) + list(roles.values()))
        session.flush()

        for champion in TEST_CHAMPIONS:
            session.add(Champion(
                name=champion["name"],
                title=champion["title"],
                region_id=regions[champion["region"]].id,
                role_id=roles[champion["role"]].id,
            ))
        session.commit()


def insert_row(db, obj):
    """Persist a model instance and return it as a dict."""
    with db.session() as session:
        session.add(obj)
        session.commit()
        session.refresh(obj)
        return model_to_dict(obj)


@pytest.fixture
def test_user(clean_database):
    """Create a test user in the test database"""
    return insert_row(clean_database, User(username="testuser", email="test@example.com", role="user"))


@pytest.fixture
def test_user_2(clean_database):
    """Create a second test user in the test database"""
    return insert_row(clean_database, User(username="testuser2", email="test2@example.com", role="user"))


@pytest.fixture
def test_guest(clean_database):
    """Account whose role is outside the UserAllowed policy"""
    return insert_row(clean_database, User(username="guest", email="guest@example.com", role="guest"))


@pytest.fixture
def test_champion(clean_database):
    """The seeded champion "Ahri" as a dict"""
    with clean_database.session() as session:
        champion = session.query(Champion).filter(Champion.name == "Ahri").one()
        return model_to_dict(champion)


@pytest.fixture
def test_review(clean_database, test_user, test_champion):
    """A review of Ahri owned by test_user"""
    return insert_row(clean_database, Review(
        rating=4,
        title="Great mid laner",
        text=VALID_REVIEW_TEXT,
        user_id=test_user["id"],
        champion_id=test_champion["id"],
    ))


@pytest.fixture
def auth_headers():
    """Return a factory that builds dev-token Authorization headers for a given user dict."""
    def _make(user: dict):
        return {"Authorization": f"Bearer dev-token-{user['id']}"}
    return _make


@pytest.fixture
def fetch_review(clean_database):
    """Read a review straight from the database, bypassing the API."""
    def _fetch(review_id: int):
        with clean_database.session() as session:
            review = session.get(Review, review_id)
            return model_to_dict(review) if review else None
    return _fetch
