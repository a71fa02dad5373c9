"""Payments domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, field_validator

from ...shared.validators import require_email, validate_indian_phone


class OrderCreate(BaseModel):
    """Booking details submitted at checkout"""

    userId: Optional[str] = None
    serviceId: str
    name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[str] = None
    maritalStatus: Optional[str] = None
    education: Optional[str] = None
    profession: Optional[str] = None
    birthPlace: Optional[str] = None
    birthDate: Optional[date] = None
    birthTime: Optional[str] = None
    consultationPurpose: Optional[str] = None

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return require_email(v)

    @field_validator("phone")
    @classmethod
    def check_phone(cls, v):
        if v:
            return validate_indian_phone(v)
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class CashfreeOrderCreate(OrderCreate):
    """Cashfree requires a customer phone number"""

    phone: str


class RazorpayVerifyRequest(BaseModel):
    consultationId: str
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class CashfreeVerifyRequest(BaseModel):
    consultationId: str
    orderId: str


class RazorpayOrderResponse(BaseModel):
    order: dict
    consultationId: str
    keyId: Optional[str] = None


class CashfreeOrder(BaseModel):
    orderId: str
    paymentSessionId: str


class CashfreeOrderResponse(BaseModel):
    order: CashfreeOrder
    consultationId: str


class VerifyResponse(BaseModel):
    success: bool
    status: str


class WebhookAck(BaseModel):
    received: bool
