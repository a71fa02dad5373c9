"""OTP router - signup and password reset by emailed one-time code"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import (
    MessageResponse,
    OtpVerifyRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    SignupOtpRequest,
    SignupVerifyResponse,
    UserResponse,
)
from .service import OtpService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth/otp", tags=["OTP"])

# Per-IP ceiling on top of the per-email resend cooldown
rate_limit_otp_request = create_rate_limiter(limit=10, window_seconds=600, key_prefix="otp_request")
rate_limit_otp_verify = create_rate_limiter(limit=30, window_seconds=600, key_prefix="otp_verify")


def get_otp_service(db: Session = Depends(get_db)) -> OtpService:
    """Dependency injection for OtpService"""
    return OtpService(db)


# ============================================================================
# SIGNUP
# ============================================================================


@router.post("/signup", response_model=MessageResponse)
async def request_signup_otp(
    data: SignupOtpRequest,
    _: None = Depends(rate_limit_otp_request),
    service: OtpService = Depends(get_otp_service),
):
    """Send a signup code; the account is created once the code is verified"""
    await service.request_signup(data.email, data.password, data.name)
    return {"message": "OTP sent to your email."}


@router.post("/signup/verify", response_model=SignupVerifyResponse)
async def verify_signup_otp(
    data: OtpVerifyRequest,
    _: None = Depends(rate_limit_otp_verify),
    service: OtpService = Depends(get_otp_service),
):
    user = service.complete_signup(data.email, data.otp)
    return {"message": "Account created.", "user": UserResponse.model_validate(user)}


# ============================================================================
# PASSWORD RESET
# ============================================================================


@router.post("/reset", response_model=MessageResponse)
async def request_reset_otp(
    data: PasswordResetRequest,
    _: None = Depends(rate_limit_otp_request),
    service: OtpService = Depends(get_otp_service),
):
    await service.request_password_reset(data.email)
    return {"message": "OTP sent to your email."}


@router.post("/reset/verify", response_model=MessageResponse)
async def verify_reset_otp(
    data: OtpVerifyRequest,
    _: None = Depends(rate_limit_otp_verify),
    service: OtpService = Depends(get_otp_service),
):
    """Check the code without using it up; /reset/confirm consumes it"""
    service.verify_password_reset(data.email, data.otp)
    return {"message": "OTP verified."}


@router.post("/reset/confirm", response_model=MessageResponse)
async def confirm_reset(
    data: PasswordResetConfirmRequest,
    _: None = Depends(rate_limit_otp_verify),
    service: OtpService = Depends(get_otp_service),
):
    service.confirm_password_reset(data.email, data.otp, data.newPassword)
    return {"message": "Password updated. Please sign in."}
