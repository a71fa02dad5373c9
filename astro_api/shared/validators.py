"""Shared validation utilities"""

import re
from typing import Optional

EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"


def normalize_email(email: str) -> str:
    """Trim and lowercase an email so lookups match regardless of input casing"""
    return (email or "").strip().lower()


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = normalize_email(email)

    if not re.match(EMAIL_PATTERN, email):
        raise ValueError("Please enter a valid email.")

    return email


def require_email(email: Optional[str]) -> str:
    """Validate an email on a field where one must be given"""
    if not normalize_email(email):
        raise ValueError("Email is required")
    return validate_email(email)


def validate_indian_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an Indian mobile number to its 10 digits.

    Accepts "+91 98765 43210", "09876543210", "9876543210" and similar.

    Raises:
        ValueError: If the number does not reduce to 10 digits
    """
    if not phone:
        return phone

    digits = re.sub(r"\D", "", str(phone))

    if digits.startswith("91") and len(digits) == 12:
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits")

    return digits
