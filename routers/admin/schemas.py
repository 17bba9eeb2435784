"""Admin schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field

from core.schemas import CamelModel

Role = Literal["user", "admin", "super_admin"]


class AdminStatsResponse(CamelModel):
    total_users: int
    total_admins: int
    total_transactions: int
    total_supply: Decimal
    circulating_supply: Decimal


class AdminUserResponse(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    account_type: str
    company_name: Optional[str] = None
    country: Optional[str] = None
    role: str
    tsu_balance: Decimal
    is_active: bool
    created_at: datetime


class UserEmailResponse(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class CountryStatResponse(CamelModel):
    country: str
    user_count: int
    total_balance: str


class AdminTransactionResponse(CamelModel):
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


class SecurityLogResponse(CamelModel):
    id: int
    user_id: Optional[str] = None
    event_type: str
    ip_address: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime


# ======== User management ========


class PromoteUserRequest(CamelModel):
    user_id: str
    role: Role


class RegisterAdminRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    role: Literal["admin", "super_admin"] = "admin"


class AdminResetPasswordRequest(CamelModel):
    user_id: str
    new_password: str = Field(..., min_length=8, max_length=72)


class MessageResponse(CamelModel):
    message: str


# ======== Treasury ========


class CreateCoinsRequest(CamelModel):
    total_supply: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    circulating_supply: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=8)
    reserve_gold: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=8)
    reserve_brics: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=8)
    reserve_commodities: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=8)
    reserve_african: Decimal = Field(Decimal("0"), ge=0, max_digits=18, decimal_places=8)


class CoinSupplyResponse(CamelModel):
    id: int
    total_supply: Decimal
    circulating_supply: Decimal
    reserve_gold: Decimal
    reserve_brics: Decimal
    reserve_commodities: Decimal
    reserve_african: Decimal
    created_by: Optional[str] = None
    created_at: datetime


class BalanceAdjustRequest(CamelModel):
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    operation: Literal["increase", "decrease"]
    reason: Optional[str] = Field(None, max_length=500)


class BalanceAdjustResponse(CamelModel):
    new_supply: CoinSupplyResponse
    message: str


class DistributeCoinsRequest(CamelModel):
    country: str = Field(..., min_length=2, max_length=50)
    amount: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    reason: Optional[str] = Field(None, max_length=500)


class DistributeCoinsResponse(CamelModel):
    message: str
    distributed_to: int
    amount_per_user: Decimal
    total_distributed: Decimal


class UpdateTsuRateRequest(CamelModel):
    tsu_price: Decimal = Field(..., gt=0, max_digits=18, decimal_places=8)
    gold_price: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=8)
    brics_index: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=8)
    commodity_index: Optional[Decimal] = Field(None, gt=0, max_digits=18, decimal_places=8)


class TsuRateResponse(CamelModel):
    id: int
    tsu_price: Decimal
    gold_price: Optional[Decimal] = None
    brics_index: Optional[Decimal] = None
    commodity_index: Optional[Decimal] = None
    updated_by: Optional[str] = None
    updated_at: datetime


# ======== Communications ========


class SendEmailRequest(CamelModel):
    recipients: List[EmailStr] = Field(..., min_length=1, max_length=1000)
    subject: str = Field(..., min_length=1, max_length=300)
    message: str = Field(..., min_length=1)
    is_html: bool = False


class SendEmailResponse(CamelModel):
    message: str
    success_count: int
    failure_count: int
    errors: List[str]


class SmtpConfigRequest(CamelModel):
    host: str = Field(..., min_length=1, max_length=255)
    port: int = Field(587, ge=1, le=65535)
    secure: bool = False
    username: str = Field(..., min_length=1, max_length=255)
    password: Optional[str] = Field(None, max_length=255)
    from_email: EmailStr
    from_name: str = Field("TSU Wallet", max_length=100)
    is_active: bool = True


class SmtpConfigResponse(CamelModel):
    configured: bool
    host: Optional[str] = None
    port: Optional[int] = None
    secure: Optional[bool] = None
    username: Optional[str] = None
    from_email: Optional[str] = None
    from_name: Optional[str] = None
    is_active: Optional[bool] = None
    has_password: bool = False
    updated_at: Optional[datetime] = None


class SmtpTestRequest(CamelModel):
    test_email: EmailStr


class UploadImageRequest(CamelModel):
    content_type: str = Field(..., min_length=1, max_length=100)
    filename: Optional[str] = Field(None, max_length=255)


class UploadImageResponse(CamelModel):
    upload_url: str = Field(..., serialization_alias="uploadURL")
    object_key: str
    public_url: str = Field(..., serialization_alias="publicURL")
