from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Numeric, JSON, UniqueConstraint
)
from sqlalchemy.orm import relationship
from decimal import Decimal
from datetime import datetime
import uuid

from core.db import Base

MONEY = Numeric(18, 8)


def generate_user_id():
    return str(uuid.uuid4())


# =================================
#  Users Table
# =================================
class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_user_id)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    profile_image_url = Column(String, nullable=True)

    # Account profile
    account_type = Column(String, nullable=False, default="individual")  # 'individual' or 'business'
    company_name = Column(String, nullable=True)
    business_type = Column(String, nullable=True)
    tax_id = Column(String, nullable=True)
    country = Column(String, nullable=True, index=True)

    role = Column(String, nullable=False, default="user")  # 'user', 'admin', 'super_admin'
    tsu_balance = Column(MONEY, nullable=False, default=Decimal("0"))
    is_active = Column(Boolean, nullable=False, default=True)

    # Wallet ownership proofs
    verified_eth_address = Column(String, nullable=True)
    verified_btc_address = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    transactions = relationship("Transaction", back_populates="user", cascade="all, delete-orphan")
    payment_transactions = relationship("PaymentTransaction", back_populates="user", cascade="all, delete-orphan")
    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.role in ("admin", "super_admin")

    @property
    def is_super_admin(self) -> bool:
        return self.role == "super_admin"


# =================================
#  Transactions (TSU ledger)
# =================================
class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    type = Column(String, nullable=False)  # 'purchase', 'sale', 'transfer', 'creation', 'exchange'
    amount = Column(MONEY, nullable=False)
    currency = Column(String, nullable=False, default="TSU")
    from_address = Column(String, nullable=True)
    to_address = Column(String, nullable=True)
    status = Column(String, nullable=False, default="completed")
    description = Column(Text, nullable=True)
    tx_metadata = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="transactions")


# =================================
#  PaymentTransaction Table
# =================================
class PaymentTransaction(Base):
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method = Column(String, nullable=False)  # 'paypal', 'paypal-card', 'ethereum', 'bitcoin'
    payment_reference = Column(String, nullable=False, index=True)
    fiat_amount = Column(MONEY, nullable=False)
    fiat_currency = Column(String, nullable=False, default="USD")
    crypto_amount = Column(MONEY, nullable=True)
    crypto_currency = Column(String, nullable=True)
    tsu_amount = Column(MONEY, nullable=True)
    processing_fee = Column(MONEY, nullable=True)
    status = Column(String, nullable=False, default="pending")  # 'pending', 'completed', 'failed'
    failure_reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    user = relationship("User", back_populates="payment_transactions")


# =================================
#  ProcessedPayment (idempotency)
# =================================
class ProcessedPayment(Base):
    __tablename__ = "processed_payments"

    id = Column(Integer, primary_key=True, index=True)
    payment_reference = Column(String, unique=True, nullable=False, index=True)
    payment_method = Column(String, nullable=False)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    amount_processed = Column(MONEY, nullable=False)
    tsu_credited = Column(MONEY, nullable=False)
    verification_data = Column(JSON, nullable=True)
    processed_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# =================================
#  CoinSupply Table
# =================================
class CoinSupply(Base):
    __tablename__ = "coin_supply"

    id = Column(Integer, primary_key=True, index=True)
    total_supply = Column(MONEY, nullable=False)
    circulating_supply = Column(MONEY, nullable=False, default=Decimal("0"))
    reserve_gold = Column(MONEY, nullable=False, default=Decimal("0"))
    reserve_brics = Column(MONEY, nullable=False, default=Decimal("0"))
    reserve_commodities = Column(MONEY, nullable=False, default=Decimal("0"))
    reserve_african = Column(MONEY, nullable=False, default=Decimal("0"))
    created_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# =================================
#  Content (CMS key/value)
# =================================
class Content(Base):
    __tablename__ = "content"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String, unique=True, nullable=False, index=True)
    title = Column(String, nullable=True)
    value = Column(Text, nullable=False)
    section = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class SiteMetadata(Base):
    __tablename__ = "site_metadata"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    keywords = Column(Text, nullable=True)
    og_image = Column(String, nullable=True)
    twitter_card = Column(String, nullable=False, default="summary_large_image")
    site_name = Column(String, nullable=False, default="TSU Wallet")
    updated_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# =================================
#  Rates
# =================================
class TsuRate(Base):
    __tablename__ = "tsu_rates"

    id = Column(Integer, primary_key=True, index=True)
    tsu_price = Column(MONEY, nullable=False)
    gold_price = Column(MONEY, nullable=True)
    brics_index = Column(MONEY, nullable=True)
    commodity_index = Column(MONEY, nullable=True)
    updated_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    id = Column(Integer, primary_key=True, index=True)
    currency = Column(String, unique=True, nullable=False)  # 'ETH', 'BTC'
    rate_usd = Column(MONEY, nullable=False)
    source = Column(String, nullable=False, default="coingecko")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# =================================
#  Registrations & contact
# =================================
class CommodityRegistration(Base):
    __tablename__ = "commodity_registrations"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=True)
    location = Column(String, nullable=False)
    commodity_type = Column(String, nullable=False)
    quantity = Column(String, nullable=False)
    additional_info = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")  # 'pending', 'approved', 'rejected'
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CurrencyRegistration(Base):
    __tablename__ = "currency_registrations"

    id = Column(Integer, primary_key=True, index=True)
    company_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=True)
    location = Column(String, nullable=False)
    currency_type = Column(String, nullable=False)
    amount = Column(String, nullable=False)
    purpose = Column(Text, nullable=False)
    additional_info = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="pending")
    admin_notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    admin_response = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


# =================================
#  Notifications & KYC
# =================================
class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="info")  # 'info', 'success', 'warning', 'transaction'
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="notifications")


class KycVerification(Base):
    __tablename__ = "kyc_verifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_type = Column(String, nullable=False)
    document_number = Column(String, nullable=False)
    document_url = Column(String, nullable=True)
    status = Column(String, nullable=False, default="pending")  # 'pending', 'approved', 'rejected'
    submitted_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    reviewed_at = Column(DateTime, nullable=True)


# =================================
#  Auth support tables
# =================================
class PasswordResetToken(Base):
    __tablename__ = "password_reset_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token = Column(String, unique=True, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class WalletChallenge(Base):
    __tablename__ = "wallet_challenges"
    __table_args__ = (UniqueConstraint("user_id", "chain", "nonce", name="uq_wallet_challenge_nonce"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    chain = Column(String, nullable=False)  # 'eth' or 'btc'
    nonce = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class LoginAttempt(Base):
    __tablename__ = "login_attempts"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, index=True)
    ip_address = Column(String, nullable=True)
    success = Column(Boolean, nullable=False, default=False)
    attempted_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class SecurityLog(Base):
    __tablename__ = "security_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    event_type = Column(String, nullable=False)  # 'login_success', 'login_failed', 'account_locked', ...
    ip_address = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class SmtpConfig(Base):
    __tablename__ = "smtp_config"

    id = Column(Integer, primary_key=True, index=True)
    host = Column(String, nullable=False)
    port = Column(Integer, nullable=False, default=587)
    secure = Column(Boolean, nullable=False, default=False)
    username = Column(String, nullable=False)
    password = Column(String, nullable=False)
    from_email = Column(String, nullable=False)
    from_name = Column(String, nullable=False, default="TSU Wallet")
    is_active = Column(Boolean, nullable=False, default=True)
    updated_by = Column(String, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
