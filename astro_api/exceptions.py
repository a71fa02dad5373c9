"""
Domain errors raised by the OTP and payment services.

Routers never build HTTP errors for these themselves; main.py renders every
AstroAPIError with its status code and message.
"""

from typing import Optional


class AstroAPIError(Exception):
    """Base class for errors that map onto an HTTP response"""

    status_code = 400
    default_message = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"message": self.message}


class RateLimited(AstroAPIError):
    """Resend cooldown or per-IP request limit hit; rendered with Retry-After"""

    status_code = 429

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message or f"Please wait {retry_after}s before requesting a new OTP.")

    def to_dict(self) -> dict:
        return {"message": self.message, "retryAfter": self.retry_after}


class InvalidOrExpired(AstroAPIError):
    """OTP verification failed (wrong code, wrong purpose or expired)"""

    default_message = "Invalid or expired OTP."


class NotFound(AstroAPIError):
    status_code = 404
    default_message = "Not found"


class Conflict(AstroAPIError):
    status_code = 409
    default_message = "Already exists"


class ProviderError(AstroAPIError):
    """Payment gateway call failed or returned a non-success response"""

    status_code = 502
    default_message = "Payment provider request failed. Please try again."


class InvalidSignature(AstroAPIError):
    """Webhook or client-asserted payment signature did not match"""

    default_message = "Invalid signature"

    def __init__(self, message: Optional[str] = None, status: Optional[str] = None):
        self.status = status
        super().__init__(message)

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.status:
            body["success"] = False
            body["status"] = self.status
        return body


class ConfigurationError(AstroAPIError):
    """Missing provider or notification credentials"""

    status_code = 500
    default_message = "Service not configured"


class NotificationError(AstroAPIError):
    """Email delivery failed after the OTP was stored"""

    status_code = 502
    default_message = "Failed to send OTP email. Please try again."
