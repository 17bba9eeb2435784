"""Support schemas."""

from datetime import datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from core.schemas import CamelModel

RegistrationStatus = Literal["pending", "approved", "rejected"]


class CommodityRegistrationCreate(CamelModel):
    company_name: str = Field(..., min_length=2, max_length=200)
    contact_email: EmailStr
    contact_phone: Optional[str] = Field(None, max_length=50)
    location: str = Field(..., min_length=2, max_length=200)
    commodity_type: str = Field(..., min_length=2, max_length=100)
    quantity: str = Field(..., min_length=1, max_length=100)
    additional_info: Optional[str] = Field(None, max_length=5000)


class CurrencyRegistrationCreate(CamelModel):
    company_name: str = Field(..., min_length=2, max_length=200)
    contact_email: EmailStr
    contact_phone: Optional[str] = Field(None, max_length=50)
    location: str = Field(..., min_length=2, max_length=200)
    currency_type: str = Field(..., min_length=2, max_length=100)
    amount: str = Field(..., min_length=1, max_length=100)
    purpose: str = Field(..., min_length=2, max_length=5000)
    additional_info: Optional[str] = Field(None, max_length=5000)


class RegistrationUpdate(CamelModel):
    status: RegistrationStatus
    admin_notes: Optional[str] = Field(None, max_length=5000)


class CommodityRegistrationResponse(CommodityRegistrationCreate):
    id: int
    contact_email: str
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class CurrencyRegistrationResponse(CurrencyRegistrationCreate):
    id: int
    contact_email: str
    status: str
    admin_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ContactMessageCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=200)
    email: EmailStr
    subject: str = Field(..., min_length=2, max_length=300)
    message: str = Field(..., min_length=10, max_length=10000)


class ContactMessageUpdate(CamelModel):
    is_read: Optional[bool] = None
    admin_response: Optional[str] = Field(None, max_length=10000)


class ContactMessageResponse(CamelModel):
    id: int
    name: str
    email: str
    subject: str
    message: str
    is_read: bool
    admin_response: Optional[str] = None
    created_at: datetime
    updated_at: datetime
