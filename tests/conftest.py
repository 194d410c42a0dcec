"""
Shared fixtures: an in-memory mongomock database with the production indexes,
a TestClient wired to it, and a couple of registered users.
"""
import mongomock
import pytest
from fastapi.testclient import TestClient

import users
from auth import create_access_token
from database import ensure_indexes, get_db
from main import app


@pytest.fixture
def mongo_db():
    client = mongomock.MongoClient()
    db = client["collab_test"]
    ensure_indexes(db)
    yield db
    client.close()


@pytest.fixture
def client(mongo_db):
    app.dependency_overrides[get_db] = lambda: mongo_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def alice(mongo_db):
    return users.register_user(mongo_db, "Alice", "alice@example.com", "secret123")


@pytest.fixture
def bob(mongo_db):
    return users.register_user(mongo_db, "Bob", "bob@example.com", "hunter22")


def bearer(user):
    return {"Authorization": f"Bearer {create_access_token(user['id'])}"}


@pytest.fixture
def chess_payload():
    return {
        "title": "Chess AI",
        "description": "build a chess engine",
        "requirements": "Comfortable with search algorithms",
        "techStack": ["Python", "TensorFlow"],
        "teamSize": 3,
        "timeframe": "2 months",
        "difficulty": "advanced",
        "category": "ai",
    }


@pytest.fixture
def unindexed_db():
    """A database where ensure_indexes never ran, so no unique constraints exist."""
    client = mongomock.MongoClient()
    yield client["collab_unindexed"]
    client.close()
