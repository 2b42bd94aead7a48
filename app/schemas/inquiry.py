from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, EmailStr, Field, field_validator

# Values a form may send for a checked "I agree" box
ACCEPTED_VALUES = {"1", "true", "yes", "on"}
BOOLEAN_VALUES = {"1": True, "true": True, "0": False, "false": False}


def _strip(v: Any) -> Any:
    if isinstance(v, (int, float, Decimal)) and not isinstance(v, bool):
        return str(v)
    return v.strip() if isinstance(v, str) else v


class InquirySubmitIn(BaseModel):
    """Fields accepted from the public submission form."""

    price: str = Field(min_length=1, max_length=50)
    room_number: str = Field(min_length=1, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(min_length=1, max_length=255)
    email: EmailStr
    agreement: bool

    @field_validator("price", "room_number", "full_name", "contact_number", "email", mode="before")
    @classmethod
    def _strip_text(cls, v):
        return _strip(v)

    @field_validator("agreement", mode="before")
    @classmethod
    def _must_be_accepted(cls, v):
        if v is True or str(v).strip().lower() in ACCEPTED_VALUES:
            return True
        raise ValueError("The agreement must be accepted.")


class InquiryEditIn(BaseModel):
    """Fields accepted when staff edit an inquiry. Every field is required."""

    price: str
    room_number: str = Field(min_length=1, max_length=255)
    full_name: str = Field(min_length=1, max_length=255)
    contact_number: str = Field(min_length=1, max_length=20)
    email: EmailStr
    agreement: bool

    @field_validator("room_number", "full_name", "contact_number", "email", mode="before")
    @classmethod
    def _strip_text(cls, v):
        return _strip(v)

    @field_validator("email")
    @classmethod
    def _email_length(cls, v):
        if len(v) > 255:
            raise ValueError("The email may not be greater than 255 characters.")
        return v

    @field_validator("price", mode="before")
    @classmethod
    def _numeric_price(cls, v):
        if isinstance(v, bool) or v is None:
            raise ValueError("The price must be a number.")
        raw = str(v).strip()
        try:
            number = Decimal(raw)
        except InvalidOperation:
            raise ValueError("The price must be a number.")
        if not number.is_finite():
            raise ValueError("The price must be a number.")
        if len(raw) > 50:
            raise ValueError("The price may not be greater than 50 characters.")
        return raw

    @field_validator("agreement", mode="before")
    @classmethod
    def _boolean(cls, v):
        if isinstance(v, bool):
            return v
        key = str(v).strip().lower()
        if key in BOOLEAN_VALUES:
            return BOOLEAN_VALUES[key]
        raise ValueError("The agreement field must be true or false.")


class InquiryOut(BaseModel):
    id: int
    full_name: str
    contact_number: str
    email: str
    price: str
    room_number: str
    valid_id: Optional[str]
    agreement: bool
    inquiry_status: str
    status: int
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InquiryPageOut(BaseModel):
    items: List[InquiryOut]
    total: int
    page: int
    page_size: int


T = TypeVar("T")


class FieldErrorOut(BaseModel):
    field: str
    reason: str


class ApiResult(BaseModel, Generic[T]):
    """Envelope returned by every inquiry endpoint, on success and on failure."""

    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None
    warnings: List[str] = []
    errors: List[FieldErrorOut] = []
