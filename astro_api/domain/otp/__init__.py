"""OTP domain - Email one-time codes for signup and password reset"""

from .router import router
from .service import OtpService

__all__ = ["router", "OtpService"]
