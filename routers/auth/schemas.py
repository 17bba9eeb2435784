"""Auth schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import EmailStr, Field, model_validator

from core.schemas import CamelModel

COUNTRIES = (
    "south_africa", "nigeria", "kenya", "ghana", "egypt", "morocco", "ethiopia",
    "tanzania", "uganda", "rwanda", "botswana", "namibia", "zambia", "zimbabwe",
    "angola", "mozambique", "madagascar", "mauritius", "senegal", "ivory_coast",
    "brazil", "russia", "india", "china", "iran", "egypt_brics", "ethiopia_brics",
    "uae", "saudi_arabia",
)

Country = Literal[COUNTRIES]


class RegisterRequest(CamelModel):
    account_type: Literal["individual", "business"] = "individual"
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    company_name: Optional[str] = Field(None, max_length=200)
    business_type: Optional[str] = Field(None, max_length=100)
    tax_id: Optional[str] = Field(None, max_length=100)
    country: Optional[Country] = None

    @model_validator(mode="after")
    def check_account_fields(self):
        if self.account_type == "individual":
            if not (self.first_name or "").strip() or not (self.last_name or "").strip():
                raise ValueError("First name and last name are required for individual accounts")
        else:
            if not (self.company_name or "").strip() or not (self.business_type or "").strip():
                raise ValueError("Company name and business type are required for business accounts")
        return self


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr


class ResetPasswordRequest(CamelModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=72)


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_image_url: Optional[str] = None
    account_type: str
    company_name: Optional[str] = None
    business_type: Optional[str] = None
    country: Optional[str] = None
    role: str
    tsu_balance: Decimal
    is_active: bool
    verified_eth_address: Optional[str] = None
    verified_btc_address: Optional[str] = None
    created_at: datetime


class AuthResponse(CamelModel):
    user: UserResponse
    token: str
    token_type: str = "bearer"


class MessageResponse(CamelModel):
    message: str


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


class TransactionListResponse(CamelModel):
    transactions: List[TransactionResponse]


class KycSubmitRequest(CamelModel):
    document_type: Literal["passport", "national_id", "drivers_license", "business_registration"]
    document_number: str = Field(..., min_length=3, max_length=100)
    document_url: Optional[str] = Field(None, max_length=500)


class KycStatusResponse(CamelModel):
    status: str
    document_type: Optional[str] = None
    submitted_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
