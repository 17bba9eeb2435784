"""
Wallet service layer: balance changes, transfers, purchases and wallet
ownership proofs.

Every balance change happens on a row locked with SELECT ... FOR UPDATE and
writes a ledger row in the same database transaction.
"""

import logging
import secrets
from datetime import datetime, timedelta
from decimal import ROUND_DOWN, Decimal
from typing import Optional

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import config
from core.notifications import notify
from core.users import get_user_by_email, get_user_by_id_for_update, lock_users, set_verified_wallet
from utils import crypto_prices, paypal_client
from utils.payment_verification import (
    PaymentVerificationError,
    verify_bitcoin_payment,
    verify_ethereum_payment,
)
from utils.paypal_client import PayPalError
from utils.wallet_signatures import verify_btc_signature, verify_eth_signature

from . import repository as wallet_repository
from .schemas import PurchaseRequest

logger = logging.getLogger(__name__)

TSU_QUANT = Decimal("0.00000001")
PAYPAL_METHODS = ("paypal", "paypal-card")
CHALLENGE_TEMPLATES = {
    "eth": "Verify wallet ownership for TSU account {user_id} at {nonce}",
    "btc": "Verify Bitcoin wallet ownership for TSU account {user_id} at {nonce}",
}


class InsufficientBalance(ValueError):
    pass


# ---------------------------------------------------------------------------
# Ledger
# ---------------------------------------------------------------------------

def adjust_locked_balance(
    db: Session,
    *,
    user,
    delta: Decimal,
    tx_type: str,
    amount: Optional[Decimal] = None,
    description: Optional[str] = None,
    metadata: Optional[dict] = None,
    from_address: Optional[str] = None,
    to_address: Optional[str] = None,
):
    """
    Apply `delta` to a user row the caller has already locked and write the
    matching ledger row. Raises InsufficientBalance if the result would be
    negative. Does not commit.
    """
    current = Decimal(user.tsu_balance or 0)
    new_balance = current + Decimal(delta)
    if new_balance < 0:
        raise InsufficientBalance(f"Insufficient balance: have {current}, need {-Decimal(delta)}")

    user.tsu_balance = new_balance
    tx = wallet_repository.create_transaction(
        db,
        user_id=user.id,
        type=tx_type,
        amount=abs(Decimal(amount if amount is not None else delta)),
        currency="TSU",
        from_address=from_address,
        to_address=to_address,
        status="completed",
        description=description,
        metadata=metadata,
    )
    logger.info(
        f"BALANCE_CHANGED | user={user.id} | type={tx_type} | delta={delta} | before={current} | after={new_balance}"
    )
    return tx, new_balance


def apply_balance_change(
    db: Session,
    *,
    user_id: str,
    delta: Decimal,
    tx_type: str,
    description: Optional[str] = None,
    metadata: Optional[dict] = None,
    from_address: Optional[str] = None,
    to_address: Optional[str] = None,
):
    user = get_user_by_id_for_update(db, user_id=user_id)
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return adjust_locked_balance(
        db,
        user=user,
        delta=delta,
        tx_type=tx_type,
        description=description,
        metadata=metadata,
        from_address=from_address,
        to_address=to_address or user.email,
    )


# ---------------------------------------------------------------------------
# Transfers
# ---------------------------------------------------------------------------

def send_tsu(db: Session, *, sender_id: str, recipient_email: str, amount: Decimal, description: Optional[str]):
    recipient = get_user_by_email(db, email=recipient_email)
    if not recipient or not recipient.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recipient not found")
    if recipient.id == sender_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot send TSU to yourself")

    locked = lock_users(db, user_ids=[sender_id, recipient.id])
    sender = locked.get(sender_id)
    recipient = locked.get(recipient.id)
    if not sender or not recipient:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    try:
        _, sender_balance = adjust_locked_balance(
            db,
            user=sender,
            delta=-amount,
            tx_type="transfer",
            from_address=sender.email,
            to_address=recipient.email,
            description=description or f"Transfer to {recipient.email}",
        )
    except InsufficientBalance:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Insufficient balance")

    adjust_locked_balance(
        db,
        user=recipient,
        delta=amount,
        tx_type="transfer",
        from_address=sender.email,
        to_address=recipient.email,
        description=description or f"Transfer from {sender.email}",
    )
    notify(
        db,
        user_id=sender.id,
        title="TSU Sent",
        message=f"You sent {amount} TSU to {recipient.email}",
        type="transaction",
    )
    notify(
        db,
        user_id=recipient.id,
        title="TSU Received",
        message=f"You received {amount} TSU from {sender.email}",
        type="transaction",
    )
    db.commit()
    logger.info(f"TRANSFER_COMPLETED | from={sender.id} | to={recipient.id} | amount={amount}")
    return {
        "message": "Transfer completed successfully",
        "new_balance": sender_balance,
        "transfer_amount": amount,
        "recipient": recipient.email,
    }


# ---------------------------------------------------------------------------
# Wallet ownership
# ---------------------------------------------------------------------------

def create_challenge(db: Session, *, user_id: str, chain: str):
    nonce = secrets.token_hex(16)
    message = CHALLENGE_TEMPLATES[chain].format(user_id=user_id, nonce=nonce)
    expires_at = datetime.utcnow() + timedelta(minutes=config.WALLET_CHALLENGE_TTL_MINUTES)
    wallet_repository.create_challenge(
        db, user_id=user_id, chain=chain, nonce=nonce, message=message, expires_at=expires_at
    )
    db.commit()
    return {"message": message, "nonce": nonce, "expires_at": expires_at}


def verify_wallet_signature(db: Session, *, user_id: str, chain: str, address: str, signature: str, nonce: str):
    challenge = wallet_repository.get_challenge_for_update(db, user_id=user_id, chain=chain, nonce=nonce)
    if not challenge or challenge.used or challenge.expires_at < datetime.utcnow():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Challenge is invalid or expired")

    verifier = verify_eth_signature if chain == "eth" else verify_btc_signature
    if not verifier(message=challenge.message, signature=signature, address=address):
        logger.warning(f"WALLET_SIGNATURE_INVALID | user={user_id} | chain={chain} | address={address}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Signature verification failed")

    challenge.used = True
    user = set_verified_wallet(db, user_id=user_id, chain=chain, address=address)
    db.commit()
    verified = user.verified_eth_address if chain == "eth" else user.verified_btc_address
    logger.info(f"WALLET_VERIFIED | user={user_id} | chain={chain} | address={verified}")
    return {"verified": True, "address": verified}


# ---------------------------------------------------------------------------
# Rates and supply
# ---------------------------------------------------------------------------

def get_current_tsu_price(db: Session) -> Decimal:
    rate = wallet_repository.get_latest_tsu_rate(db)
    if rate and rate.tsu_price and Decimal(rate.tsu_price) > 0:
        return Decimal(rate.tsu_price)
    return config.DEFAULT_TSU_PRICE


def get_rates(db: Session):
    rate = wallet_repository.get_latest_tsu_rate(db)
    return {
        "tsu_price": get_current_tsu_price(db),
        "crypto_rates": crypto_prices.get_prices(),
        "processing_fee_rate": config.PURCHASE_FEE_RATE,
        "min_purchase": config.MIN_PURCHASE_USD,
        "updated_at": rate.updated_at if rate else None,
    }


def list_tsu_rates(db: Session, *, limit: int = 10):
    rows = wallet_repository.list_tsu_rates(db, limit=limit)
    if rows:
        return rows
    return [{"tsu_price": config.DEFAULT_TSU_PRICE}]


def list_exchange_rates(db: Session):
    rows = wallet_repository.list_exchange_rates(db)
    if rows:
        return rows
    return [
        {"currency": symbol, "rate_usd": price, "source": "live"}
        for symbol, price in sorted(crypto_prices.get_prices().items())
    ]


def refresh_exchange_rates(db: Session) -> bool:
    """Store fresh CoinGecko prices in exchange_rates. Returns False when the feed is down."""
    prices = crypto_prices.fetch_prices()
    if not prices:
        return False
    for symbol, price in prices.items():
        wallet_repository.upsert_exchange_rate(db, currency=symbol, rate_usd=price, source="coingecko")
    db.commit()
    crypto_prices.remember(prices)
    logger.info(f"EXCHANGE_RATES_REFRESHED | {', '.join(f'{k}={v}' for k, v in sorted(prices.items()))}")
    return True


def get_latest_supply(db: Session):
    return wallet_repository.get_latest_supply(db)


def get_supply_or_empty(db: Session):
    supply = wallet_repository.get_latest_supply(db)
    if supply:
        return supply
    zero = Decimal("0")
    return {
        "total_supply": zero,
        "circulating_supply": zero,
        "reserve_gold": zero,
        "reserve_brics": zero,
        "reserve_commodities": zero,
        "reserve_african": zero,
    }


# ---------------------------------------------------------------------------
# Purchases
# ---------------------------------------------------------------------------

def quote(amount: Decimal, tsu_price: Decimal):
    """Return (fee, net, tsu) for a USD purchase amount."""
    fee = (amount * config.PURCHASE_FEE_RATE).quantize(TSU_QUANT, rounding=ROUND_DOWN)
    net = amount - fee
    tsu = (net / tsu_price).quantize(TSU_QUANT, rounding=ROUND_DOWN)
    return fee, net, tsu


def _verify_paypal(reference: str, amount: Decimal, currency: str) -> dict:
    order = paypal_client.get_order(reference)
    if order.get("status") != "COMPLETED":
        raise PaymentVerificationError(f"PayPal order is not completed (status {order.get('status')})")
    foreign = sorted(paypal_client.capture_currencies(order) - {currency})
    if foreign:
        captured_in = ", ".join(foreign) or "an unknown currency"
        raise PaymentVerificationError(f"PayPal order was captured in {captured_in}, expected {currency}")
    captured = paypal_client.captured_amount(order, currency)
    if captured is None:
        raise PaymentVerificationError("PayPal order has no completed capture")
    if captured < amount:
        raise PaymentVerificationError("PayPal captured amount is less than the purchase amount")
    return {"orderId": order.get("id"), "status": order.get("status"), "capturedAmount": str(captured), "currency": currency}


def _verify_external_payment(user, data: PurchaseRequest):
    """Returns (crypto_currency, crypto_amount, verification_data)."""
    method = data.payment_method
    if method in PAYPAL_METHODS:
        return None, None, _verify_paypal(data.payment_reference, data.amount, data.currency)

    if method == "ethereum":
        if not config.CRYPTO_ETH_ADDRESS:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Ethereum receiving address is not configured",
            )
        if not user.verified_eth_address:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Verify ownership of your Ethereum wallet before purchasing",
            )
        result = verify_ethereum_payment(
            tx_hash=data.payment_reference,
            amount_usd=data.amount,
            eth_price_usd=crypto_prices.get_price("ETH"),
            expected_recipient=config.CRYPTO_ETH_ADDRESS,
            expected_sender=user.verified_eth_address,
        )
    else:
        if not config.CRYPTO_BTC_ADDRESS:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Bitcoin receiving address is not configured",
            )
        if not user.verified_btc_address:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Verify ownership of your Bitcoin wallet before purchasing",
            )
        result = verify_bitcoin_payment(
            tx_hash=data.payment_reference,
            amount_usd=data.amount,
            btc_price_usd=crypto_prices.get_price("BTC"),
            expected_recipient=config.CRYPTO_BTC_ADDRESS,
            expected_sender=user.verified_btc_address,
        )
    return result.crypto_currency, result.crypto_amount, result.details


def _fail_payment(db: Session, payment, reason: str):
    payment.status = "failed"
    payment.failure_reason = reason[:500]
    db.commit()
    logger.warning(
        f"PURCHASE_FAILED | user={payment.user_id} | method={payment.payment_method} | ref={payment.payment_reference} | reason={reason}"
    )


def purchase(db: Session, *, user, data: PurchaseRequest):
    reference = data.payment_reference
    method = data.payment_method

    if wallet_repository.get_processed_payment(db, payment_reference=reference):
        logger.warning(f"PURCHASE_DUPLICATE | user={user.id} | ref={reference}")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment already processed")

    if method in PAYPAL_METHODS and not paypal_client.is_configured():
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="PayPal payment processing is not configured")

    if data.amount < config.MIN_PURCHASE_USD:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Minimum purchase amount is ${config.MIN_PURCHASE_USD}",
        )

    tsu_price = get_current_tsu_price(db)
    fee, net, tsu_amount = quote(data.amount, tsu_price)
    if tsu_amount <= 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Purchase amount too small")

    user_id = user.id
    payment = wallet_repository.create_payment_transaction(
        db,
        user_id=user_id,
        payment_method=method,
        payment_reference=reference,
        fiat_amount=data.amount,
        fiat_currency=data.currency,
        tsu_amount=tsu_amount,
        processing_fee=fee,
        status="pending",
    )
    db.commit()
    payment_id = payment.id

    try:
        crypto_currency, crypto_amount, verification = _verify_external_payment(user, data)
    except PaymentVerificationError as e:
        _fail_payment(db, payment, str(e))
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Payment verification failed: {e}")
    except PayPalError as e:
        _fail_payment(db, payment, str(e))
        raise HTTPException(status_code=e.status_code if e.status_code < 500 else status.HTTP_502_BAD_GATEWAY, detail=str(e))
    except HTTPException as e:
        _fail_payment(db, payment, str(e.detail))
        raise

    try:
        wallet_repository.create_processed_payment(
            db,
            payment_reference=reference,
            payment_method=method,
            user_id=user_id,
            amount_processed=data.amount,
            tsu_credited=tsu_amount,
            verification_data=verification,
        )
        db.flush()
    except IntegrityError:
        db.rollback()
        logger.warning(f"PURCHASE_DUPLICATE_RACE | user={user_id} | ref={reference}")
        _fail_payment(db, wallet_repository.get_payment_transaction(db, payment_id), "Payment already processed")
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Payment already processed")

    locked_user = get_user_by_id_for_update(db, user_id=user_id)
    tx, new_balance = adjust_locked_balance(
        db,
        user=locked_user,
        delta=tsu_amount,
        tx_type="purchase",
        to_address=locked_user.email,
        description=f"Purchased {tsu_amount} TSU via {method}",
        metadata={
            "paymentMethod": method,
            "processingFee": str(fee),
            "tsuPrice": str(tsu_price),
            "paymentReference": reference,
            "usdAmount": str(data.amount),
        },
    )
    payment.status = "completed"
    payment.completed_at = datetime.utcnow()
    payment.crypto_currency = crypto_currency
    payment.crypto_amount = crypto_amount
    db.commit()
    db.refresh(tx)

    logger.info(
        f"PURCHASE_CREDITED | user={user_id} | method={method} | ref={reference} | usd={data.amount} | fee={fee} | tsu={tsu_amount} | balance={new_balance}"
    )
    return {"transaction": tx, "new_balance": new_balance, "tsu_amount": tsu_amount}


# ---------------------------------------------------------------------------
# PayPal proxy
# ---------------------------------------------------------------------------

def _paypal_call(fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except PayPalError as e:
        detail = {"message": str(e)}
        if e.details is not None:
            detail["details"] = e.details
        raise HTTPException(status_code=e.status_code, detail=detail)


def paypal_setup():
    return {"client_token": _paypal_call(paypal_client.generate_client_token)}


def paypal_create_order(*, amount: Decimal, currency: str, intent: str):
    return _paypal_call(paypal_client.create_order, amount=amount, currency=currency, intent=intent)


def paypal_capture_order(*, order_id: str):
    return _paypal_call(paypal_client.capture_order, order_id)
