"""Wallet schemas."""

import re
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field, field_validator, model_validator

from core.schemas import CamelModel

PaymentMethod = Literal["paypal", "paypal-card", "ethereum", "bitcoin"]

# on-chain references are matched in canonical lowercase form
TX_HASH_PATTERNS = {
    "ethereum": re.compile(r"^0x[0-9a-f]{64}$"),
    "bitcoin": re.compile(r"^[0-9a-f]{64}$"),
}


class TransactionResponse(CamelModel):
    id: int
    user_id: Optional[str] = None
    type: str
    amount: Decimal
    currency: str
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    status: str
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="tx_metadata")
    created_at: datetime


# ======== Transfers ========


class SendTsuRequest(CamelModel):
    recipient_email: EmailStr
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    description: Optional[str] = Field(None, max_length=500)


class SendTsuResponse(CamelModel):
    message: str
    new_balance: Decimal
    transfer_amount: Decimal
    recipient: str


# ======== Purchases ========


class PurchaseRequest(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=2)
    currency: Literal["USD"] = "USD"
    payment_method: PaymentMethod
    payment_reference: str = Field(..., min_length=1, max_length=200)

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, value):
        return value.upper() if isinstance(value, str) else value

    @field_validator("payment_reference")
    @classmethod
    def strip_reference(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Payment reference is required")
        return value

    @model_validator(mode="after")
    def canonical_tx_hash(self):
        pattern = TX_HASH_PATTERNS.get(self.payment_method)
        if pattern is None:
            return self
        reference = self.payment_reference.lower()
        if not pattern.match(reference):
            label = "Ethereum" if self.payment_method == "ethereum" else "Bitcoin"
            raise ValueError(f"Payment reference is not a valid {label} transaction hash")
        self.payment_reference = reference
        return self


class PurchaseResponse(CamelModel):
    transaction: TransactionResponse
    new_balance: Decimal
    tsu_amount: Decimal


# ======== Wallet ownership ========


class ChallengeResponse(CamelModel):
    message: str
    nonce: str
    expires_at: datetime


class EthSignatureRequest(CamelModel):
    address: str = Field(..., pattern=r"^0x[0-9a-fA-F]{40}$")
    signature: str = Field(..., min_length=1)
    nonce: str = Field(..., min_length=1)


class BtcSignatureRequest(CamelModel):
    address: str = Field(..., min_length=26, max_length=90)
    signature: str = Field(..., min_length=1)
    nonce: str = Field(..., min_length=1)


class VerifiedWalletResponse(CamelModel):
    verified: bool
    address: str


# ======== Rates ========


class TsuRatesResponse(CamelModel):
    tsu_price: Decimal
    crypto_rates: Dict[str, Decimal]
    processing_fee_rate: Decimal
    min_purchase: Decimal
    updated_at: Optional[datetime] = None


class TsuRateResponse(CamelModel):
    id: Optional[int] = None
    tsu_price: Decimal
    gold_price: Optional[Decimal] = None
    brics_index: Optional[Decimal] = None
    commodity_index: Optional[Decimal] = None
    updated_at: Optional[datetime] = None


class ExchangeRateResponse(CamelModel):
    currency: str
    rate_usd: Decimal
    source: str
    updated_at: Optional[datetime] = None


class CoinSupplyResponse(CamelModel):
    id: Optional[int] = None
    total_supply: Decimal
    circulating_supply: Decimal
    reserve_gold: Decimal
    reserve_brics: Decimal
    reserve_commodities: Decimal
    reserve_african: Decimal
    created_at: Optional[datetime] = None


# ======== PayPal ========


class PayPalOrderRequest(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    currency: Literal["USD"] = "USD"
    intent: Literal["CAPTURE", "AUTHORIZE", "capture", "authorize"] = "CAPTURE"

    @field_validator("currency", mode="before")
    @classmethod
    def upper_currency(cls, value):
        return value.upper() if isinstance(value, str) else value


class PayPalSetupResponse(CamelModel):
    client_token: str
