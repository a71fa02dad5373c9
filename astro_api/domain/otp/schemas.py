"""OTP domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator

from ...shared.validators import require_email


class _EmailRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def check_email(cls, v):
        return require_email(v)


class SignupOtpRequest(_EmailRequest):
    """Start signup: stage password and name until the code is verified"""

    password: str
    name: str

    @field_validator("password")
    @classmethod
    def check_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("name")
    @classmethod
    def check_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class OtpVerifyRequest(_EmailRequest):
    otp: str


class PasswordResetRequest(_EmailRequest):
    pass


class PasswordResetConfirmRequest(OtpVerifyRequest):
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def check_password(cls, v):
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    name: Optional[str] = None
    role: str
    email_verified_at: Optional[datetime] = None


class MessageResponse(BaseModel):
    message: str


class SignupVerifyResponse(BaseModel):
    message: str
    user: UserResponse
