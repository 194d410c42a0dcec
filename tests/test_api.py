"""
HTTP-level tests: routing, authentication, status codes and response bodies.
"""
import logging

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import PyMongoError

import database
from config import DEFAULT_JWT_SECRET, settings
from conftest import bearer
from database import get_db
from main import app


def _create(client, user, payload):
    resp = client.post("/api/projects", json=payload, headers=bearer(user))
    assert resp.status_code == 201, resp.text
    return resp.json()["project"]


class TestRoot:

    def test_banner(self, client):
        assert client.get("/").json() == {"message": "Student Collaboration Backend Running"}

    def test_database_report(self, client, mongo_db, alice, monkeypatch):
        monkeypatch.setattr(database, "db", mongo_db)
        body = client.get("/test").json()
        assert body["connection_status"] == "Connected"
        assert "user" in body["collections"]


class TestAccounts:

    def test_register_then_login(self, client):
        resp = client.post("/api/auth/register", json={
            "name": "Carol", "email": "Carol@Example.com", "password": "pw-carol",
        })
        assert resp.status_code == 201
        assert resp.json()["user"]["email"] == "carol@example.com"
        assert "passwordHash" not in resp.json()["user"]

        resp = client.post("/api/auth/login", json={"email": "carol@example.com", "password": "pw-carol"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["token_type"] == "bearer"

        profile = client.get("/api/user/profile", headers={"Authorization": f"Bearer {body['access_token']}"})
        assert profile.json()["name"] == "Carol"

    def test_duplicate_email(self, client, alice):
        resp = client.post("/api/auth/register", json={
            "name": "Other", "email": "alice@example.com", "password": "x1",
        })
        assert resp.status_code == 400
        assert resp.json()["message"] == "User with this email already exists"

    def test_bad_password(self, client, alice):
        resp = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
        assert resp.status_code == 401
        assert resp.json() == {"message": "Invalid credentials"}

    def test_profile_requires_token(self, client):
        resp = client.get("/api/user/profile")
        assert resp.status_code == 401
        assert resp.json() == {"message": "Unauthorized"}

    def test_garbage_token_is_anonymous(self, client):
        resp = client.get("/api/user/profile", headers={"Authorization": "Bearer not.a.jwt"})
        assert resp.status_code == 401

    def test_update_profile(self, client, alice):
        resp = client.put("/api/user/profile", headers=bearer(alice), json={
            "name": "Alice L.",
            "bio": "CS student",
            "githubUsername": "alice-l",
            "links": [{"platform": "website", "url": "https://alice.dev"}],
        })
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["name"] == "Alice L."
        assert user["links"] == [{"platform": "website", "url": "https://alice.dev"}]


    def test_partial_profile_update_keeps_other_fields(self, client, alice):
        client.put("/api/user/profile", headers=bearer(alice), json={
            "bio": "CS student",
            "githubUsername": "alice-l",
            "links": [{"platform": "github", "url": "https://github.com/alice-l"}],
        })
        resp = client.put("/api/user/profile", headers=bearer(alice), json={"name": "Alice L."})
        assert resp.status_code == 200
        user = resp.json()["user"]
        assert user["name"] == "Alice L."
        assert user["bio"] == "CS student"
        assert user["githubUsername"] == "alice-l"
        assert user["links"] == [{"platform": "github", "url": "https://github.com/alice-l"}]

    def test_duplicate_email_without_unique_index(self, client, unindexed_db):
        app.dependency_overrides[get_db] = lambda: unindexed_db
        body = {"name": "Dana", "email": "dana@example.com", "password": "pw-dana"}
        assert client.post("/api/auth/register", json=body).status_code == 201

        resp = client.post("/api/auth/register", json=body)
        assert resp.status_code == 400
        assert unindexed_db["user"].count_documents({}) == 1


class TestProjects:

    def test_chess_scenario(self, client, alice, chess_payload):
        project = _create(client, alice, chess_payload)

        fetched = client.get(f"/api/projects/{project['id']}").json()
        for field, value in chess_payload.items():
            assert fetched[field] == value
        assert fetched["creator"]["email"] == "alice@example.com"

        ai = client.get("/api/projects", params={"category": "ai"}).json()["projects"]
        web = client.get("/api/projects", params={"category": "web"}).json()["projects"]
        assert [p["id"] for p in ai] == [project["id"]]
        assert web == []
        assert "email" not in ai[0]["creator"]

    def test_search_param(self, client, alice, chess_payload):
        _create(client, alice, chess_payload)
        found = client.get("/api/projects", params={"search": "ENGINE"}).json()["projects"]
        assert [p["title"] for p in found] == ["Chess AI"]

    def test_create_requires_auth(self, client, chess_payload):
        resp = client.post("/api/projects", json=chess_payload)
        assert resp.status_code == 401

    def test_create_missing_field(self, client, alice, chess_payload):
        del chess_payload["requirements"]
        resp = client.post("/api/projects", json=chess_payload, headers=bearer(alice))
        assert resp.status_code == 400
        assert resp.json()["message"] == "Missing required field: requirements"

    def test_create_bad_enum(self, client, alice, chess_payload):
        chess_payload["difficulty"] = "legendary"
        resp = client.post("/api/projects", json=chess_payload, headers=bearer(alice))
        assert resp.status_code == 400
        assert resp.json()["field"] == "difficulty"

    def test_get_unknown(self, client):
        resp = client.get(f"/api/projects/{ObjectId()}")
        assert resp.status_code == 404
        assert resp.json() == {"message": "Project not found"}

    def test_update_and_delete_are_owner_only(self, client, alice, bob, chess_payload):
        project = _create(client, alice, chess_payload)
        url = f"/api/projects/{project['id']}"

        assert client.put(url, json={"title": "x"}).status_code == 401
        assert client.put(url, json={"title": "x"}, headers=bearer(bob)).status_code == 403
        assert client.delete(url, headers=bearer(bob)).status_code == 403

        resp = client.put(url, json={**chess_payload, "title": "Chess AI 2"}, headers=bearer(alice))
        assert resp.status_code == 200
        assert resp.json()["project"]["title"] == "Chess AI 2"

        resp = client.delete(url, headers=bearer(alice))
        assert resp.json() == {"message": "Project deleted successfully"}
        assert client.get(url).status_code == 404

    def test_my_projects(self, client, alice, bob, chess_payload):
        _create(client, alice, chess_payload)
        assert len(client.get("/api/user/projects", headers=bearer(alice)).json()["projects"]) == 1
        assert client.get("/api/user/projects", headers=bearer(bob)).json()["projects"] == []


class TestCategoriesEndpoint:

    def test_empty_database_falls_back_to_seed(self, client):
        body = client.get("/api/categories").json()
        assert body["categories"] == []
        assert "web" in body["options"]

    def test_in_use_categories(self, client, alice, chess_payload):
        _create(client, alice, chess_payload)
        body = client.get("/api/categories").json()
        assert body["categories"] == ["ai"]
        assert "ai" in body["options"]


class TestInterestEndpoints:

    def test_interest_flow(self, client, alice, bob, chess_payload):
        project = _create(client, alice, chess_payload)
        check = {"projectId": project["id"]}

        assert client.get("/api/projects/interest/check", params=check).json() == {"hasInterest": False}

        resp = client.post("/api/projects/interest", json=check, headers=bearer(bob))
        assert resp.status_code == 200

        resp = client.post("/api/projects/interest", json=check, headers=bearer(bob))
        assert resp.status_code == 400
        assert resp.json()["message"] == "You have already expressed interest in this project"

        resp = client.get("/api/projects/interest/check", params=check, headers=bearer(bob))
        assert resp.json() == {"hasInterest": True}

    def test_owner_interest_rejected(self, client, alice, chess_payload):
        project = _create(client, alice, chess_payload)
        resp = client.post("/api/projects/interest", json={"projectId": project["id"]}, headers=bearer(alice))
        assert resp.status_code == 400

        resp = client.get("/api/projects/interest/check", params={"projectId": project["id"]}, headers=bearer(alice))
        assert resp.json() == {"hasInterest": False}

    def test_interest_requires_auth(self, client, alice, chess_payload):
        project = _create(client, alice, chess_payload)
        resp = client.post("/api/projects/interest", json={"projectId": project["id"]})
        assert resp.status_code == 401


class TestMessagesEndpoint:

    def test_send(self, client, alice, bob, chess_payload):
        project = _create(client, alice, chess_payload)
        resp = client.post("/api/messages", json={"projectId": project["id"], "message": "Hi"}, headers=bearer(bob))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["projectTitle"] == "Chess AI"
        assert data["recipientId"] == alice["id"]

    def test_self_message(self, client, alice, chess_payload):
        project = _create(client, alice, chess_payload)
        resp = client.post("/api/messages", json={"projectId": project["id"], "message": "Hi"}, headers=bearer(alice))
        assert resp.status_code == 400
        assert resp.json()["message"] == "You cannot message your own project"

    def test_missing_message(self, client, bob):
        resp = client.post("/api/messages", json={"projectId": str(ObjectId())}, headers=bearer(bob))
        assert resp.status_code == 400

    def test_unknown_project(self, client, bob):
        resp = client.post("/api/messages", json={"projectId": str(ObjectId()), "message": "Hi"}, headers=bearer(bob))
        assert resp.status_code == 404


class TestSuggestionsEndpoint:

    def test_suggestions(self, client, alice, chess_payload):
        _create(client, alice, chess_payload)
        body = client.get("/api/search/suggestions", params={"q": "Pyt"}).json()
        assert body == {"suggestions": {"titles": [], "techStacks": ["Python"], "categories": []}}

    def test_short_query(self, client):
        body = client.get("/api/search/suggestions", params={"q": " "}).json()
        assert body == {"suggestions": {"titles": [], "techStacks": [], "categories": []}}


# =============================================================================
# STORE FAILURES AND STARTUP
# =============================================================================

class _BrokenDb:
    """Stands in for a database whose server has gone away."""
    name = "broken"

    def __getitem__(self, collection_name):
        raise PyMongoError("connection refused")


class TestStoreErrors:

    def test_store_failure_is_internal_error(self, client):
        app.dependency_overrides[get_db] = lambda: _BrokenDb()
        resp = client.get("/api/projects")
        assert resp.status_code == 500
        assert resp.json() == {"message": "Something went wrong"}

    def test_unconfigured_database(self, client, monkeypatch):
        app.dependency_overrides.clear()
        monkeypatch.setattr(database, "db", None)
        resp = client.get("/api/categories")
        assert resp.status_code == 500
        assert resp.json() == {"message": "Database not configured"}


class TestStartup:

    def test_index_failure_aborts_startup(self, monkeypatch):
        monkeypatch.setattr(database, "db", _BrokenDb())
        with pytest.raises(PyMongoError):
            with TestClient(app):
                pass

    def test_default_jwt_secret_is_logged(self, monkeypatch, caplog):
        monkeypatch.setattr(database, "db", None)
        monkeypatch.setattr(settings, "JWT_SECRET", DEFAULT_JWT_SECRET)
        with caplog.at_level(logging.WARNING, logger="main"):
            with TestClient(app):
                pass
        assert "JWT_SECRET is not set" in caplog.text

    def test_configured_jwt_secret_is_quiet(self, monkeypatch, caplog):
        monkeypatch.setattr(database, "db", None)
        monkeypatch.setattr(settings, "JWT_SECRET", "a-long-deployment-secret-value-0123456789")
        with caplog.at_level(logging.WARNING, logger="main"):
            with TestClient(app):
                pass
        assert "JWT_SECRET is not set" not in caplog.text
