"""
Tests for the profile, admin and billing routes.
"""
from types import SimpleNamespace

import pytest
import stripe

from companion.core.config import settings
from companion.models import AppUser, User
from conftest import PNG_BYTES


class TestProfile:

    def test_requires_token(self, anonymous_client):
        response = anonymous_client.get("/api/users/me")
        assert response.status_code == 401
        assert response.json() == {"error": "Could not validate credentials"}

    def test_rejects_bad_token(self, client):
        response = client.get("/api/users/me", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_profile_created_on_first_access(self, client, auth_headers, db_session):
        response = client.get("/api/users/me", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "user-1"
        assert body["email"] == "alex@example.com"
        assert body["timezone"] == "UTC"
        assert body["locale"] == "en"
        assert db_session.query(User).count() == 1

    def test_update_profile(self, client, auth_headers):
        response = client.patch("/api/users/me", headers=auth_headers, json={"timezone": "Europe/Berlin", "locale": "de"})

        assert response.json()["timezone"] == "Europe/Berlin"
        assert response.json()["locale"] == "de"
        assert response.json()["name"] == "Alex"

    def test_avatar_upload(self, client, auth_headers, storage, workspace):
        response = client.post(
            "/api/users/me/avatar",
            headers=auth_headers,
            data={"workspaceId": workspace.id},
            files={"file": ("me.png", PNG_BYTES, "image/png")},
        )

        assert response.status_code == 200
        assert response.json()["avatar_url"] == f"https://storage.test/images/{storage.uploads[0][0]}"

    def test_password_mismatch(self, client, auth_headers, identity):
        response = client.post("/api/users/me/password", headers=auth_headers, json={
            "new_password": "secret-1",
            "confirm_password": "secret-2",
        })
        assert response.status_code == 400
        assert response.json() == {"error": "New passwords do not match"}
        assert identity.passwords == []

    def test_password_change(self, client, auth_headers, identity):
        response = client.post("/api/users/me/password", headers=auth_headers, json={
            "new_password": "secret-1",
            "confirm_password": "secret-1",
        })
        assert response.json() == {"success": True}
        assert identity.passwords == [("user-1", "secret-1")]


class TestCreateUserPassword:

    def test_requires_email_and_password(self, client):
        response = client.post("/api/create-user-password", json={"email": "alex@example.com"})
        assert response.status_code == 400
        assert response.json() == {"error": "Email and password are required"}

    def test_unknown_user(self, client):
        response = client.post("/api/create-user-password", json={"email": "ghost@example.com", "password": "x"})
        assert response.status_code == 404

    def test_sets_password(self, client, identity, user):
        response = client.post("/api/create-user-password", json={"email": user.email, "password": "s3cret"})
        assert response.json() == {"success": True}
        assert identity.passwords == [("user-1", "s3cret")]

    def test_provider_error(self, client, identity, user):
        identity.fail_password = "Password should be at least 6 characters"
        response = client.post("/api/create-user-password", json={"email": user.email, "password": "x"})
        assert response.status_code == 400
        assert response.json() == {"error": "Password should be at least 6 characters"}


class TestCheckoutSession:

    @pytest.fixture(autouse=True)
    def stripe_key(self, monkeypatch):
        monkeypatch.setattr(settings, "stripe_secret_key", "sk_test_123")

    def fake_session(self, monkeypatch, email):
        session = SimpleNamespace(customer_details=SimpleNamespace(email=email))
        monkeypatch.setattr(stripe.checkout.Session, "retrieve", lambda session_id: session)

    def test_returns_email_and_billing_user(self, client, db_session, monkeypatch):
        db_session.add(AppUser(id="app-1", email="buyer@example.com", name="Buyer"))
        db_session.commit()
        self.fake_session(monkeypatch, "buyer@example.com")

        response = client.get("/api/checkout-session", params={"session_id": "cs_test_1"})

        assert response.json() == {
            "email": "buyer@example.com",
            "user": {"id": "app-1", "email": "buyer@example.com", "name": "Buyer"},
        }

    def test_unknown_billing_user(self, client, monkeypatch):
        self.fake_session(monkeypatch, "new@example.com")
        response = client.get("/api/checkout-session", params={"session_id": "cs_test_1"})
        assert response.json() == {"email": "new@example.com", "user": None}

    def test_no_email(self, client, monkeypatch):
        self.fake_session(monkeypatch, None)
        response = client.get("/api/checkout-session", params={"session_id": "cs_test_1"})
        assert response.status_code == 400
        assert response.json() == {"error": "No email found"}


class TestOperations:

    def test_root(self, client):
        assert client.get("/").json()["message"] == settings.app_name

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["database"]["status"] == "healthy"

    def test_metrics(self, client):
        client.get("/")
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "http_requests_total" in response.text
