"""
Security Utilities
Password hashing, audit logging and masking helpers
"""

import logging
from typing import Any, Optional

# Password hashing
from passlib.context import CryptContext

from .shared.clock import utcnow

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


# ============================================================================
# AUDIT LOGGING
# ============================================================================


def log_security_event(
    event_type: str,
    ip_address: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
):
    """
    Log security-related events for audit trail

    Args:
        event_type: Type of security event (webhook_signature_mismatch, rate_limited, ...)
        ip_address: Client IP address
        details: Additional event details (never secrets or OTP codes)
    """
    log_entry = {
        "timestamp": utcnow().isoformat(),
        "event_type": event_type,
        "ip_address": ip_address,
        "details": details or {},
    }

    logger.warning(f"SECURITY_EVENT: {log_entry}")


# ============================================================================
# UTILITY FUNCTIONS
# ============================================================================


def mask_email(email: str) -> str:
    """Mask email for logs: jo***@gmail.com"""
    if not email or "@" not in email:
        return "***"
    local, _, domain = email.partition("@")
    masked_local = f"{local[:2]}***" if len(local) > 2 else f"{local[:1]}***"
    return f"{masked_local}@{domain}"
