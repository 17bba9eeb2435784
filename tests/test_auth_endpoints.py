from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

import config
from core.db import get_db
from models import KycVerification, LoginAttempt, Notification, PasswordResetToken, SecurityLog, Transaction, User
from routers.auth import service as auth_service
from routers.auth.api import router as auth_router

TEST_PASSWORD = "password123"


@pytest.fixture
def client(test_db):
    app = FastAPI()
    app.include_router(auth_router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


def _individual(email="new@example.com", **overrides):
    payload = {
        "accountType": "individual",
        "email": email,
        "password": "secret123",
        "firstName": "New",
        "lastName": "Person",
        "country": "kenya",
    }
    payload.update(overrides)
    return payload


def test_register_individual_returns_token_and_user(client, test_db):
    response = client.post("/api/auth/simple-register", json=_individual(email="New@Example.com"))
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["tokenType"] == "bearer"
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["role"] == "user"
    assert Decimal(body["user"]["tsuBalance"]) == 0

    stored = test_db.query(User).filter(User.email == "new@example.com").one()
    assert stored.password_hash != "secret123"
    assert test_db.query(SecurityLog).filter(SecurityLog.event_type == "user_registered").count() == 1


def test_register_business_requires_company_fields(client):
    payload = {
        "accountType": "business",
        "email": "corp@example.com",
        "password": "secret123",
        "companyName": "Acme",
    }
    response = client.post("/api/auth/simple-register", json=payload)
    assert response.status_code == 422

    payload["businessType"] = "trading"
    response = client.post("/api/auth/simple-register", json=payload)
    assert response.status_code == 201
    assert response.json()["user"]["companyName"] == "Acme"


def test_register_individual_requires_names(client):
    response = client.post("/api/auth/simple-register", json=_individual(firstName=""))
    assert response.status_code == 422


def test_register_rejects_unknown_country(client):
    response = client.post("/api/auth/simple-register", json=_individual(country="atlantis"))
    assert response.status_code == 422


def test_register_duplicate_email_is_case_insensitive(client):
    response = client.post("/api/auth/simple-register", json=_individual(email="TEST1@example.com"))
    assert response.status_code == 400
    assert response.json()["detail"] == "User already exists with this email"


def test_register_is_rate_limited_per_ip(client, monkeypatch):
    monkeypatch.setattr(config, "REGISTRATIONS_PER_IP_PER_HOUR", 2)
    assert client.post("/api/auth/simple-register", json=_individual(email="a@example.com")).status_code == 201
    assert client.post("/api/auth/simple-register", json=_individual(email="b@example.com")).status_code == 201

    response = client.post("/api/auth/simple-register", json=_individual(email="c@example.com"))
    assert response.status_code == 429
    assert "Retry-After" in response.headers


def test_register_rate_limit_ignores_spoofed_forwarded_for(client, monkeypatch):
    monkeypatch.setattr(config, "REGISTRATIONS_PER_IP_PER_HOUR", 3)
    monkeypatch.setattr(config, "TRUST_PROXY_HEADERS", False)
    for n in range(3):
        response = client.post(
            "/api/auth/simple-register",
            json=_individual(email=f"spoof{n}@example.com"),
            headers={"X-Forwarded-For": f"203.0.113.{n}"},
        )
        assert response.status_code == 201

    response = client.post(
        "/api/auth/simple-register",
        json=_individual(email="spoof3@example.com"),
        headers={"X-Forwarded-For": "203.0.113.99"},
    )
    assert response.status_code == 429


def test_register_rate_limit_uses_forwarded_for_behind_trusted_proxy(client, monkeypatch):
    monkeypatch.setattr(config, "REGISTRATIONS_PER_IP_PER_HOUR", 1)
    monkeypatch.setattr(config, "TRUST_PROXY_HEADERS", True)
    response = client.post(
        "/api/auth/simple-register",
        json=_individual(email="first@example.com"),
        headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.1"},
    )
    assert response.status_code == 201

    response = client.post(
        "/api/auth/simple-register",
        json=_individual(email="second@example.com"),
        headers={"X-Forwarded-For": "203.0.113.2, 10.0.0.1"},
    )
    assert response.status_code == 201

    response = client.post(
        "/api/auth/simple-register",
        json=_individual(email="third@example.com"),
        headers={"X-Forwarded-For": "203.0.113.1, 10.0.0.1"},
    )
    assert response.status_code == 429


def test_login_and_fetch_current_user(client):
    response = client.post(
        "/api/auth/simple-login", json={"email": "TEST1@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    token = response.json()["token"]

    response = client.get("/api/auth/user", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "user-1"
    assert Decimal(body["tsuBalance"]) == Decimal("100")


def test_current_user_requires_token(client):
    assert client.get("/api/auth/user").status_code == 401
    response = client.get("/api/auth/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_login_wrong_password_is_logged(client, test_db):
    response = client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": "wrong-password"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"
    assert test_db.query(LoginAttempt).filter(LoginAttempt.success.is_(False)).count() == 1
    log = test_db.query(SecurityLog).filter(SecurityLog.event_type == "login_failed").one()
    assert log.details["reason"] == "bad_password"


def test_login_unknown_email_gets_same_error(client):
    response = client.post(
        "/api/auth/simple-login", json={"email": "nobody@example.com", "password": "whatever"}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_login_locks_out_after_repeated_failures(client, monkeypatch):
    monkeypatch.setattr(config, "LOGIN_MAX_FAILURES", 3)
    for _ in range(3):
        response = client.post(
            "/api/auth/simple-login", json={"email": "test1@example.com", "password": "wrong-password"}
        )
        assert response.status_code == 401

    response = client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 429


def test_successful_login_resets_failure_window(client, test_db, monkeypatch):
    monkeypatch.setattr(config, "LOGIN_MAX_FAILURES", 2)
    client.post("/api/auth/simple-login", json={"email": "test1@example.com", "password": "wrong-password"})
    assert client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": TEST_PASSWORD}
    ).status_code == 200
    client.post("/api/auth/simple-login", json={"email": "test1@example.com", "password": "wrong-password"})

    response = client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 200


def test_login_deactivated_account(client, test_db, user):
    user.is_active = False
    test_db.commit()
    response = client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": TEST_PASSWORD}
    )
    assert response.status_code == 403


def test_admin_bootstrap_only_when_enabled(client, test_db, monkeypatch):
    credentials = {"email": "admin@tsu-wallet.com", "password": "bootstrap-pass"}
    monkeypatch.setattr(config, "ADMIN_BOOTSTRAP_EMAIL", "admin@tsu-wallet.com")
    monkeypatch.setattr(config, "ADMIN_BOOTSTRAP_PASSWORD", "bootstrap-pass")
    monkeypatch.setattr(config, "DEBUG", True)

    monkeypatch.setattr(config, "ALLOW_ADMIN_BOOTSTRAP", False)
    assert client.post("/api/auth/simple-login", json=credentials).status_code == 401

    monkeypatch.setattr(config, "ALLOW_ADMIN_BOOTSTRAP", True)
    response = client.post("/api/auth/simple-login", json=credentials)
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "super_admin"
    assert test_db.query(User).filter(User.email == "admin@tsu-wallet.com").count() == 1


def test_logout_is_stateless(client):
    response = client.post("/api/auth/simple-logout")
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out successfully"


def test_forgot_and_reset_password(client, test_db, monkeypatch):
    sent = []
    monkeypatch.setattr(auth_service, "send_email", lambda db, **kwargs: sent.append(kwargs))

    response = client.post("/api/auth/forgot-password", json={"email": "test1@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == auth_service.GENERIC_RESET_MESSAGE
    assert len(sent) == 1
    assert sent[0]["to_email"] == "test1@example.com"

    token = test_db.query(PasswordResetToken).one().token
    assert token in sent[0]["body"]

    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "brand-new-pass"})
    assert response.status_code == 200

    response = client.post("/api/auth/reset-password", json={"token": token, "newPassword": "another-pass"})
    assert response.status_code == 400

    response = client.post(
        "/api/auth/simple-login", json={"email": "test1@example.com", "password": "brand-new-pass"}
    )
    assert response.status_code == 200


def test_forgot_password_unknown_email_is_generic(client, monkeypatch):
    sent = []
    monkeypatch.setattr(auth_service, "send_email", lambda db, **kwargs: sent.append(kwargs))
    response = client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert response.status_code == 200
    assert response.json()["message"] == auth_service.GENERIC_RESET_MESSAGE
    assert sent == []


def test_forgot_password_email_failure(client, monkeypatch):
    def fail(db, **kwargs):
        raise auth_service.EmailDeliveryError("Email service is not configured")

    monkeypatch.setattr(auth_service, "send_email", fail)
    response = client.post("/api/auth/forgot-password", json={"email": "test1@example.com"})
    assert response.status_code == 500


def test_reset_password_expired_token(client, test_db):
    test_db.add(
        PasswordResetToken(user_id="user-1", token="expired", expires_at=datetime.utcnow() - timedelta(minutes=1))
    )
    test_db.commit()
    response = client.post("/api/auth/reset-password", json={"token": "expired", "newPassword": "brand-new-pass"})
    assert response.status_code == 400


def test_recent_transactions(client, test_db, user, auth_headers):
    for i in range(12):
        test_db.add(Transaction(user_id="user-1", type="transfer", amount=Decimal(i + 1), description=f"tx {i}"))
    test_db.add(Transaction(user_id="user-2", type="transfer", amount=Decimal("5")))
    test_db.commit()

    response = client.get("/api/users/transactions", headers=auth_headers(user))
    assert response.status_code == 200
    transactions = response.json()["transactions"]
    assert len(transactions) == 10
    assert all(tx["userId"] == "user-1" for tx in transactions)


def test_kyc_submit_and_status(client, test_db, user, auth_headers):
    headers = auth_headers(user)
    response = client.get("/api/kyc/status", headers=headers)
    assert response.json()["status"] == "not_submitted"

    payload = {"documentType": "passport", "documentNumber": "A1234567"}
    response = client.post("/api/kyc/submit", json=payload, headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "pending"
    assert test_db.query(Notification).filter(Notification.user_id == "user-1").count() == 1

    response = client.post("/api/kyc/submit", json=payload, headers=headers)
    assert response.status_code == 400

    test_db.query(KycVerification).update({"status": "rejected"})
    test_db.commit()
    response = client.post("/api/kyc/submit", json=payload, headers=headers)
    assert response.status_code == 200
