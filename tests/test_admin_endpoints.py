from decimal import Decimal

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from auth import verify_password
from core.db import get_db
from models import CoinSupply, Notification, SecurityLog, SmtpConfig, Transaction, TsuRate, User
from routers.admin import service as admin_service
from routers.admin.api import router as admin_router
from utils import storage
from utils.email_service import EmailDeliveryError


@pytest.fixture
def client(test_db):
    app = FastAPI()
    app.include_router(admin_router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


@pytest.fixture
def super_headers(super_admin, auth_headers):
    return auth_headers(super_admin)


def _seed_supply(test_db, total="1000", circulating="0"):
    supply = CoinSupply(total_supply=Decimal(total), circulating_supply=Decimal(circulating))
    test_db.add(supply)
    test_db.commit()
    return supply


def _latest_supply(test_db):
    return test_db.query(CoinSupply).order_by(CoinSupply.id.desc()).first()


class TestAccess:
    def test_requires_token(self, client):
        assert client.get("/api/admin/stats").status_code == 401

    def test_regular_user_forbidden(self, client, user, auth_headers):
        assert client.get("/api/admin/stats", headers=auth_headers(user)).status_code == 403

    def test_admin_cannot_use_super_admin_routes(self, client, admin_headers):
        response = client.post(
            "/api/admin/users/promote", json={"userId": "user-1", "role": "admin"}, headers=admin_headers
        )
        assert response.status_code == 403


class TestDashboard:
    def test_stats(self, client, test_db, admin_headers):
        _seed_supply(test_db, total="5000", circulating="1200")
        test_db.add(Transaction(user_id="user-1", type="purchase", amount=Decimal("10"), currency="USD", status="completed"))
        test_db.commit()

        body = client.get("/api/admin/stats", headers=admin_headers).json()
        assert body["totalUsers"] == 2
        assert body["totalAdmins"] == 2
        assert body["totalTransactions"] == 1
        assert Decimal(body["totalSupply"]) == Decimal("5000")
        assert Decimal(body["circulatingSupply"]) == Decimal("1200")

    def test_stats_without_supply(self, client, admin_headers):
        body = client.get("/api/admin/stats", headers=admin_headers).json()
        assert Decimal(body["totalSupply"]) == 0

    def test_user_listing_only_regular_users(self, client, admin_headers):
        users = client.get("/api/admin/users", headers=admin_headers).json()
        assert {u["id"] for u in users} == {"user-1", "user-2"}
        assert "passwordHash" not in users[0]

    def test_user_emails_only_active(self, client, test_db, admin_headers):
        test_db.get(User, "user-2").is_active = False
        test_db.commit()
        emails = [u["email"] for u in client.get("/api/admin/users/emails", headers=admin_headers).json()]
        assert "test1@example.com" in emails
        assert "test2@example.com" not in emails

    def test_country_stats(self, client, admin_headers):
        stats = client.get("/api/admin/country-stats", headers=admin_headers).json()
        assert stats == [{"country": "nigeria", "userCount": 2, "totalBalance": "100.00000000"}]

    def test_transactions_include_metadata(self, client, test_db, admin_headers):
        test_db.add(
            Transaction(
                user_id="user-1",
                type="purchase",
                amount=Decimal("20"),
                currency="TSU",
                status="completed",
                tx_metadata={"paymentMethod": "paypal"},
            )
        )
        test_db.commit()
        rows = client.get("/api/admin/transactions", headers=admin_headers).json()
        assert rows[0]["metadata"] == {"paymentMethod": "paypal"}

    def test_security_logs_filter(self, client, test_db, admin_headers):
        test_db.add_all(
            [
                SecurityLog(user_id="user-1", event_type="login_failed", ip_address="10.0.0.1"),
                SecurityLog(user_id="user-1", event_type="login_success", ip_address="10.0.0.1"),
            ]
        )
        test_db.commit()

        rows = client.get("/api/admin/security-logs", headers=admin_headers).json()
        assert len(rows) == 2
        rows = client.get("/api/admin/security-logs?eventType=login_failed", headers=admin_headers).json()
        assert [r["eventType"] for r in rows] == ["login_failed"]
        assert client.get("/api/admin/security-logs?limit=0", headers=admin_headers).status_code == 422


class TestUserManagement:
    def test_promote(self, client, test_db, super_headers):
        response = client.post(
            "/api/admin/users/promote", json={"userId": "user-1", "role": "admin"}, headers=super_headers
        )
        assert response.status_code == 200
        assert response.json()["role"] == "admin"
        test_db.expire_all()
        assert test_db.get(User, "user-1").role == "admin"

    def test_promote_self_or_unknown(self, client, super_headers):
        response = client.post(
            "/api/admin/users/promote", json={"userId": "super-1", "role": "user"}, headers=super_headers
        )
        assert response.status_code == 400
        response = client.post(
            "/api/admin/users/promote", json={"userId": "ghost", "role": "admin"}, headers=super_headers
        )
        assert response.status_code == 404
        response = client.post(
            "/api/admin/users/promote", json={"userId": "user-1", "role": "owner"}, headers=super_headers
        )
        assert response.status_code == 422

    def test_delete_user(self, client, test_db, super_headers):
        response = client.delete("/api/admin/users/user-2", headers=super_headers)
        assert response.status_code == 200
        assert "test2@example.com" in response.json()["message"]
        test_db.expire_all()
        assert test_db.get(User, "user-2") is None

    def test_delete_guards(self, client, test_db, super_headers):
        assert client.delete("/api/admin/users/super-1", headers=super_headers).status_code == 400
        test_db.add(User(id="super-2", email="other-super@example.com", role="super_admin"))
        test_db.commit()
        assert client.delete("/api/admin/users/super-2", headers=super_headers).status_code == 403
        assert client.delete("/api/admin/users/ghost", headers=super_headers).status_code == 404

    def test_register_admin(self, client, test_db, super_headers):
        payload = {
            "email": "New.Admin@Example.com",
            "password": "longenough1",
            "firstName": "New",
            "lastName": "Admin",
        }
        response = client.post("/api/admin/register", json=payload, headers=super_headers)
        assert response.status_code == 201
        body = response.json()
        assert body["email"] == "new.admin@example.com"
        assert body["role"] == "admin"

        response = client.post("/api/admin/register", json=payload, headers=super_headers)
        assert response.status_code == 400

    def test_reset_admin_password(self, client, test_db, super_headers):
        response = client.post(
            "/api/admin/reset-password",
            json={"userId": "admin-1", "newPassword": "brand-new-pass"},
            headers=super_headers,
        )
        assert response.status_code == 200
        test_db.expire_all()
        assert verify_password("brand-new-pass", test_db.get(User, "admin-1").password_hash)

        response = client.post(
            "/api/admin/reset-password",
            json={"userId": "user-1", "newPassword": "brand-new-pass"},
            headers=super_headers,
        )
        assert response.status_code == 400


class TestTreasury:
    def test_create_coins(self, client, test_db, admin_headers):
        response = client.post(
            "/api/admin/coins/create",
            json={"totalSupply": "1000000", "circulatingSupply": "0", "reserveGold": "250000"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["totalSupply"]) == Decimal("1000000")
        assert body["createdBy"] == "admin-1"

        entry = test_db.query(Transaction).filter(Transaction.type == "creation").one()
        assert entry.amount == Decimal("1000000")
        assert entry.tx_metadata["reserves"]["reserve_gold"] == "250000"

    def test_create_coins_circulating_exceeds_total(self, client, admin_headers):
        response = client.post(
            "/api/admin/coins/create",
            json={"totalSupply": "10", "circulatingSupply": "11"},
            headers=admin_headers,
        )
        assert response.status_code == 400

    def test_update_tsu_rate(self, client, test_db, admin_headers):
        response = client.put(
            "/api/admin/tsu-rates", json={"tsuPrice": "1.25", "goldPrice": "2300"}, headers=admin_headers
        )
        assert response.status_code == 200
        assert Decimal(response.json()["tsuPrice"]) == Decimal("1.25")
        assert test_db.query(TsuRate).one().updated_by == "admin-1"

        response = client.put("/api/admin/tsu-rates", json={"tsuPrice": "0"}, headers=admin_headers)
        assert response.status_code == 422

    def test_adjust_supply(self, client, test_db, super_headers):
        _seed_supply(test_db, total="1000", circulating="400")

        response = client.post(
            "/api/admin/balance/adjust", json={"amount": "500", "operation": "increase"}, headers=super_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Balance adjusted successfully"
        assert Decimal(body["newSupply"]["totalSupply"]) == Decimal("1500")
        assert Decimal(body["newSupply"]["circulatingSupply"]) == Decimal("900")
        assert test_db.query(Transaction).filter(Transaction.type == "creation").one().description == (
            "Created 500 TSU coins"
        )

        response = client.post(
            "/api/admin/balance/adjust",
            json={"amount": "900", "operation": "decrease", "reason": "Burn"},
            headers=super_headers,
        )
        assert response.status_code == 200
        new_supply = response.json()["newSupply"]
        assert Decimal(new_supply["totalSupply"]) == Decimal("600")
        assert Decimal(new_supply["circulatingSupply"]) == Decimal("0")
        assert test_db.query(CoinSupply).count() == 3
        assert test_db.query(Transaction).filter(Transaction.type == "sale").one().description == "Burn"

    def test_adjust_supply_starts_from_zero(self, client, test_db, super_headers):
        response = client.post(
            "/api/admin/balance/adjust", json={"amount": "250", "operation": "increase"}, headers=super_headers
        )
        assert response.status_code == 200
        new_supply = response.json()["newSupply"]
        assert Decimal(new_supply["totalSupply"]) == Decimal("250")
        assert Decimal(new_supply["circulatingSupply"]) == Decimal("250")
        assert Decimal(new_supply["reserveGold"]) == 0

    def test_adjust_supply_guards(self, client, test_db, super_headers):
        payload = {"amount": "10", "operation": "decrease"}
        response = client.post("/api/admin/balance/adjust", json=payload, headers=super_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot reduce supply below zero"

        _seed_supply(test_db, total="100", circulating="5")
        response = client.post("/api/admin/balance/adjust", json=payload, headers=super_headers)
        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot reduce supply below zero"
        assert test_db.query(CoinSupply).count() == 1

    def test_distribute_coins(self, client, test_db, super_headers):
        _seed_supply(test_db, total="1000", circulating="0")

        response = client.post(
            "/api/admin/distribute-coins",
            json={"country": "nigeria", "amount": "10", "reason": "Launch airdrop"},
            headers=super_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Coins distributed successfully"
        assert body["distributedTo"] == 2
        assert Decimal(body["amountPerUser"]) == Decimal("5")
        assert Decimal(body["totalDistributed"]) == Decimal("10")

        test_db.expire_all()
        assert test_db.get(User, "user-1").tsu_balance == Decimal("105")
        assert test_db.get(User, "user-2").tsu_balance == Decimal("5")
        assert _latest_supply(test_db).circulating_supply == Decimal("10")
        credits = test_db.query(Transaction).filter(Transaction.from_address == "TSU Treasury").all()
        assert len(credits) == 2
        assert test_db.query(Notification).count() == 2

    def test_distribute_rounds_down(self, client, test_db, super_headers):
        _seed_supply(test_db)
        test_db.add(User(id="user-3", email="test3@example.com", country="nigeria"))
        test_db.commit()

        body = client.post(
            "/api/admin/distribute-coins", json={"country": "nigeria", "amount": "1"}, headers=super_headers
        ).json()
        assert Decimal(body["amountPerUser"]) == Decimal("0.33333333")
        assert Decimal(body["totalDistributed"]) == Decimal("0.99999999")

    def test_distribute_guards(self, client, test_db, super_headers):
        response = client.post(
            "/api/admin/distribute-coins", json={"country": "ghana", "amount": "10"}, headers=super_headers
        )
        assert response.status_code == 404

        response = client.post(
            "/api/admin/distribute-coins", json={"country": "nigeria", "amount": "10"}, headers=super_headers
        )
        assert response.status_code == 400

        _seed_supply(test_db, total="100", circulating="95")
        response = client.post(
            "/api/admin/distribute-coins", json={"country": "nigeria", "amount": "10"}, headers=super_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient uncirculated supply"
        test_db.expire_all()
        assert test_db.get(User, "user-1").tsu_balance == Decimal("100")


class TestCommunications:
    def test_bulk_email_reports_partial_failure(self, client, monkeypatch, admin_headers):
        sent = []

        def fake_send(db, *, to_email, subject, body, is_html=False, settings=None):
            if to_email.startswith("bounce"):
                raise EmailDeliveryError("mailbox unavailable")
            sent.append(to_email)

        monkeypatch.setattr(admin_service, "load_smtp_settings", lambda db: None)
        monkeypatch.setattr(admin_service, "send_email", fake_send)

        response = client.post(
            "/api/admin/send-email",
            json={
                "recipients": ["a@example.com", "bounce@example.com"],
                "subject": "Update",
                "message": "<p>Hello</p>",
                "isHtml": True,
            },
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["successCount"] == 1
        assert body["failureCount"] == 1
        assert body["errors"] == ["bounce@example.com: mailbox unavailable"]
        assert sent == ["a@example.com"]

    def test_bulk_email_requires_recipients(self, client, admin_headers):
        response = client.post(
            "/api/admin/send-email", json={"recipients": [], "subject": "x", "message": "y"}, headers=admin_headers
        )
        assert response.status_code == 422

    def test_smtp_config_never_returns_password(self, client, test_db, admin_headers):
        assert client.get("/api/admin/smtp-config", headers=admin_headers).json()["configured"] is False

        payload = {
            "host": "smtp.example.com",
            "port": 465,
            "secure": True,
            "username": "mailer",
            "fromEmail": "noreply@example.com",
        }
        response = client.post("/api/admin/smtp-config", json=payload, headers=admin_headers)
        assert response.status_code == 400

        response = client.post(
            "/api/admin/smtp-config", json={**payload, "password": "s3cret"}, headers=admin_headers
        )
        assert response.status_code == 200
        body = response.json()
        assert body["configured"] is True
        assert body["hasPassword"] is True
        assert "password" not in body

        response = client.post(
            "/api/admin/smtp-config", json={**payload, "host": "smtp2.example.com"}, headers=admin_headers
        )
        assert response.status_code == 200
        row = test_db.query(SmtpConfig).one()
        assert row.host == "smtp2.example.com"
        assert row.password == "s3cret"

    def test_smtp_test(self, client, test_db, monkeypatch, admin_headers):
        response = client.post("/api/admin/smtp-test", json={"testEmail": "me@example.com"}, headers=admin_headers)
        assert response.status_code == 400

        test_db.add(
            SmtpConfig(host="smtp.example.com", username="mailer", password="pw", from_email="noreply@example.com")
        )
        test_db.commit()

        def failing_send(db, **kwargs):
            raise EmailDeliveryError("auth failed")

        monkeypatch.setattr(admin_service, "send_email", failing_send)
        response = client.post("/api/admin/smtp-test", json={"testEmail": "me@example.com"}, headers=admin_headers)
        assert response.status_code == 502

        monkeypatch.setattr(admin_service, "send_email", lambda db, **kwargs: None)
        response = client.post("/api/admin/smtp-test", json={"testEmail": "me@example.com"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["message"] == "Test email sent to me@example.com"


class TestUploads:
    def test_presigned_image_upload(self, client, monkeypatch, admin_headers):
        def fake_presign(*, content_type, filename=None, folder="images"):
            return {
                "uploadURL": "https://bucket.s3.amazonaws.com/images/abc.png?sig=1",
                "objectKey": "images/abc.png",
                "publicURL": "https://bucket.s3.amazonaws.com/images/abc.png",
            }

        monkeypatch.setattr(storage, "presign_image_upload", fake_presign)
        response = client.post(
            "/api/admin/upload-image",
            json={"contentType": "image/png", "filename": "logo.png"},
            headers=admin_headers,
        )
        assert response.status_code == 200
        body = response.json()
        assert body["uploadURL"].startswith("https://")
        assert body["objectKey"] == "images/abc.png"
        assert body["publicURL"].endswith("abc.png")

    def test_rejects_non_images(self, client, admin_headers):
        response = client.post(
            "/api/admin/upload-image", json={"contentType": "application/pdf"}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_storage_not_configured(self, client, monkeypatch, admin_headers):
        def unconfigured(**kwargs):
            raise storage.StorageError("Upload storage is not configured")

        monkeypatch.setattr(storage, "presign_image_upload", unconfigured)
        response = client.post("/api/admin/upload-image", json={"contentType": "image/jpeg"}, headers=admin_headers)
        assert response.status_code == 503
