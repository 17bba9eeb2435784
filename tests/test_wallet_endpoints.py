from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from eth_account import Account
from eth_account.messages import encode_defunct
from fastapi import FastAPI
from fastapi.testclient import TestClient

import config
from core.db import get_db
from models import CoinSupply, ExchangeRate, Notification, Transaction, TsuRate, User, WalletChallenge
from routers.dependencies import get_current_user
from routers.wallet import service as wallet_service
from routers.wallet.api import router as wallet_router


@pytest.fixture
def client(test_db, user):
    app = FastAPI()
    app.include_router(wallet_router)

    def override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: user

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides = {}


class TestSendTsu:
    def test_transfer_moves_balance_and_notifies(self, client, test_db):
        response = client.post(
            "/api/transactions/send",
            json={"recipientEmail": "TEST2@example.com", "amount": "25.5", "description": "rent"},
        )
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["newBalance"]) == Decimal("74.5")
        assert Decimal(body["transferAmount"]) == Decimal("25.5")
        assert body["recipient"] == "test2@example.com"

        test_db.expire_all()
        assert test_db.get(User, "user-1").tsu_balance == Decimal("74.5")
        assert test_db.get(User, "user-2").tsu_balance == Decimal("25.5")

        ledger = test_db.query(Transaction).filter(Transaction.type == "transfer").all()
        assert {tx.user_id for tx in ledger} == {"user-1", "user-2"}
        assert all(tx.amount == Decimal("25.5") for tx in ledger)
        assert test_db.query(Notification).count() == 2

    def test_insufficient_balance_changes_nothing(self, client, test_db):
        response = client.post(
            "/api/transactions/send", json={"recipientEmail": "test2@example.com", "amount": "100.00000001"}
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Insufficient balance"

        test_db.expire_all()
        assert test_db.get(User, "user-1").tsu_balance == Decimal("100")
        assert test_db.get(User, "user-2").tsu_balance == Decimal("0")
        assert test_db.query(Transaction).count() == 0

    def test_unknown_recipient(self, client):
        response = client.post(
            "/api/transactions/send", json={"recipientEmail": "ghost@example.com", "amount": "1"}
        )
        assert response.status_code == 404

    def test_cannot_send_to_self(self, client):
        response = client.post(
            "/api/transactions/send", json={"recipientEmail": "test1@example.com", "amount": "1"}
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("amount", ["0", "-5", "1.123456789"])
    def test_invalid_amounts_rejected(self, client, amount):
        response = client.post(
            "/api/transactions/send", json={"recipientEmail": "test2@example.com", "amount": amount}
        )
        assert response.status_code == 422


class TestWalletOwnership:
    def test_eth_challenge_and_signature(self, client, test_db):
        account = Account.create()
        response = client.post("/api/wallet/verify-challenge")
        assert response.status_code == 200
        challenge = response.json()
        assert "user-1" in challenge["message"]
        assert challenge["nonce"] in challenge["message"]

        signed = Account.sign_message(encode_defunct(text=challenge["message"]), private_key=account.key)
        payload = {
            "address": account.address,
            "signature": signed.signature.hex(),
            "nonce": challenge["nonce"],
        }
        response = client.post("/api/wallet/verify-signature", json=payload)
        assert response.status_code == 200
        assert response.json() == {"verified": True, "address": account.address.lower()}

        test_db.expire_all()
        assert test_db.get(User, "user-1").verified_eth_address == account.address.lower()

        # single use
        response = client.post("/api/wallet/verify-signature", json=payload)
        assert response.status_code == 400

    def test_eth_signature_from_other_key_rejected(self, client, test_db):
        signer = Account.create()
        claimed = Account.create()
        challenge = client.post("/api/wallet/verify-challenge").json()
        signed = Account.sign_message(encode_defunct(text=challenge["message"]), private_key=signer.key)

        response = client.post(
            "/api/wallet/verify-signature",
            json={"address": claimed.address, "signature": signed.signature.hex(), "nonce": challenge["nonce"]},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Signature verification failed"
        test_db.expire_all()
        assert test_db.get(User, "user-1").verified_eth_address is None

    def test_expired_challenge_rejected(self, client, test_db):
        account = Account.create()
        challenge = client.post("/api/wallet/verify-challenge").json()
        test_db.query(WalletChallenge).update({"expires_at": datetime.utcnow() - timedelta(seconds=1)})
        test_db.commit()

        signed = Account.sign_message(encode_defunct(text=challenge["message"]), private_key=account.key)
        response = client.post(
            "/api/wallet/verify-signature",
            json={"address": account.address, "signature": signed.signature.hex(), "nonce": challenge["nonce"]},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Challenge is invalid or expired"

    def test_btc_challenge_is_separate_from_eth(self, client):
        eth = client.post("/api/wallet/verify-challenge").json()
        response = client.post(
            "/api/wallet/bitcoin/verify-signature",
            json={
                "address": "1BoatSLRHtKNngkdXEeobR76b53LETtpyT",
                "signature": "H" + "A" * 87,
                "nonce": eth["nonce"],
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Challenge is invalid or expired"

    def test_btc_bad_signature_rejected(self, client):
        challenge = client.post("/api/wallet/bitcoin/verify-challenge").json()
        assert challenge["message"].startswith("Verify Bitcoin wallet ownership")
        response = client.post(
            "/api/wallet/bitcoin/verify-signature",
            json={
                "address": "1BoatSLRHtKNngkdXEeobR76b53LETtpyT",
                "signature": "not-base64-at-all",
                "nonce": challenge["nonce"],
            },
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "Signature verification failed"


class TestRatesAndSupply:
    def test_rates_use_default_price_and_fallback_crypto(self, client, monkeypatch):
        monkeypatch.setattr(wallet_service.crypto_prices, "fetch_prices", lambda: None)
        response = client.get("/api/tsu/rates")
        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["tsuPrice"]) == config.DEFAULT_TSU_PRICE
        assert Decimal(body["cryptoRates"]["ETH"]) == config.FALLBACK_ETH_USD
        assert Decimal(body["processingFeeRate"]) == Decimal("0.025")

    def test_rates_follow_latest_tsu_rate(self, client, test_db, monkeypatch):
        monkeypatch.setattr(
            wallet_service.crypto_prices, "fetch_prices", lambda: {"ETH": Decimal("3000"), "BTC": Decimal("60000")}
        )
        test_db.add(TsuRate(tsu_price=Decimal("1.5"), updated_at=datetime.utcnow() - timedelta(days=1)))
        test_db.add(TsuRate(tsu_price=Decimal("2.25")))
        test_db.commit()

        body = client.get("/api/tsu/rates").json()
        assert Decimal(body["tsuPrice"]) == Decimal("2.25")
        assert Decimal(body["cryptoRates"]["BTC"]) == Decimal("60000")

        history = client.get("/api/tsu-rates").json()
        assert [Decimal(r["tsuPrice"]) for r in history] == [Decimal("2.25"), Decimal("1.5")]

    def test_tsu_rates_default_when_empty(self, client):
        history = client.get("/api/tsu-rates").json()
        assert len(history) == 1
        assert Decimal(history[0]["tsuPrice"]) == config.DEFAULT_TSU_PRICE

    def test_exchange_rates_prefer_stored_rows(self, client, test_db, monkeypatch):
        monkeypatch.setattr(wallet_service.crypto_prices, "fetch_prices", lambda: None)
        live = client.get("/api/exchange-rates").json()
        assert {r["currency"] for r in live} == {"BTC", "ETH"}
        assert all(r["source"] == "live" for r in live)

        test_db.add(ExchangeRate(currency="ETH", rate_usd=Decimal("2500"), source="coingecko"))
        test_db.commit()
        stored = client.get("/api/exchange-rates").json()
        assert len(stored) == 1
        assert Decimal(stored[0]["rateUsd"]) == Decimal("2500")

    def test_refresh_exchange_rates_upserts(self, test_db, monkeypatch):
        monkeypatch.setattr(
            wallet_service.crypto_prices, "fetch_prices", lambda: {"ETH": Decimal("3000"), "BTC": Decimal("60000")}
        )
        assert wallet_service.refresh_exchange_rates(test_db) is True
        monkeypatch.setattr(
            wallet_service.crypto_prices, "fetch_prices", lambda: {"ETH": Decimal("3100"), "BTC": Decimal("61000")}
        )
        assert wallet_service.refresh_exchange_rates(test_db) is True

        rows = {row.currency: row.rate_usd for row in test_db.query(ExchangeRate).all()}
        assert rows == {"ETH": Decimal("3100"), "BTC": Decimal("61000")}

        monkeypatch.setattr(wallet_service.crypto_prices, "fetch_prices", lambda: None)
        assert wallet_service.refresh_exchange_rates(test_db) is False

    def test_coin_supply_empty_and_latest(self, client, test_db):
        body = client.get("/api/coin-supply").json()
        assert Decimal(body["totalSupply"]) == 0

        test_db.add(CoinSupply(total_supply=Decimal("1000000"), circulating_supply=Decimal("5000")))
        test_db.commit()
        body = client.get("/api/coin-supply").json()
        assert Decimal(body["totalSupply"]) == Decimal("1000000")
        assert Decimal(body["circulatingSupply"]) == Decimal("5000")
