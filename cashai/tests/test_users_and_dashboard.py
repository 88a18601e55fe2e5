# cashai/tests/test_users_and_dashboard.py
# Tests for user listing, token verification, the dashboard and the OAuth redirect.

from datetime import timedelta
from urllib.parse import parse_qs, urlparse

from cashai import models
from cashai.errors import StorageError
from cashai.store import CredentialStore


def test_verify_token_missing_returns_401(client):
    response = client.post("/api/verify-token", json={})

    assert response.status_code == 401
    assert response.json() == {"error": "Token is required"}


def test_verify_token_invalid_returns_401(client):
    response = client.post("/api/verify-token", json={"token": "garbage"})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid token"}


def test_verify_token_valid(client, user, token_manager):
    response = client.post("/api/verify-token", json={"token": token_manager.issue(user)})

    assert response.status_code == 200
    body = response.json()
    assert body["valid"] is True
    assert body["user"]["userId"] == user.id
    assert body["user"]["email"] == user.email


def test_users_requires_session(client):
    response = client.get("/api/users")

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid authentication credentials"}


def test_users_lists_everyone(client, store, auth_headers):
    store.create_user("second@example.com", "Second")

    response = client.get("/api/users", headers=auth_headers)

    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Database is connected!"
    assert {u["email"] for u in body["data"]} == {"ada@example.com", "second@example.com"}


def seed_users(store, db_session):
    """Three users created now, two created ten days ago."""
    ids = [store.create_user(f"user{i}@example.com", f"User {i}") for i in range(5)]
    for user_id in ids[3:]:
        db_session.get(models.User, user_id).created_at = models.utc_now() - timedelta(days=10)
    db_session.commit()
    return ids


def test_dashboard_json_active_users(client, store, db_session):
    seed_users(store, db_session)

    response = client.get("/api/dashboard")

    assert response.status_code == 200
    body = response.json()
    assert body["totalUsers"] == 5
    assert body["activeUsers"] == 3
    assert body["totalBankAccounts"] == 0
    assert body["totalTransactions"] == 0


def test_dashboard_html(client, store, db_session):
    seed_users(store, db_session)

    response = client.get("/dashboard")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Active Users (7 days)" in response.text
    assert "user0@example.com" in response.text


def test_dashboard_escapes_user_input(client, store):
    store.create_user("x@example.com", "<script>alert(1)</script>")

    response = client.get("/dashboard")

    assert "<script>alert(1)</script>" not in response.text
    assert "&lt;script&gt;" in response.text


def test_oauth_callback_redirects_to_app(client):
    response = client.get(
        "/plaid-oauth-callback",
        params={"oauth_state_id": "state-123"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    location = urlparse(response.headers["location"])
    assert location.scheme == "cashai"
    assert parse_qs(location.query) == {"success": ["true"], "oauth_state_id": ["state-123"]}


def test_oauth_callback_error_redirect(client):
    response = client.get(
        "/plaid-oauth-callback",
        params={"error": "access_denied", "oauth_state_id": "state-123"},
        follow_redirects=False,
    )

    assert response.status_code == 302
    query = parse_qs(urlparse(response.headers["location"]).query)
    assert query["success"] == ["false"]
    assert query["error"] == ["access_denied"]


def raise_storage_error(*args, **kwargs):
    raise StorageError("database is locked")


def test_users_storage_failure(client, monkeypatch, auth_headers):
    monkeypatch.setattr(CredentialStore, "list_users", raise_storage_error)

    response = client.get("/api/users", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch users"}


def test_dashboard_storage_failure_renders_error_panel(client, monkeypatch):
    monkeypatch.setattr(CredentialStore, "dashboard_stats", raise_storage_error)

    response = client.get("/dashboard")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("text/html")
    assert 'class="error"' in response.text
    assert "database is locked" not in response.text
