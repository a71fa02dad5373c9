"""
Webhook Security Module

Signature helpers shared by the payment providers:
- Constant-time signature comparison
- HMAC-SHA256 in hex (Razorpay) and base64 (Cashfree) encodings
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional, Union

logger = logging.getLogger(__name__)


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Empty or missing values never match.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def _to_bytes(payload: Union[str, bytes]) -> bytes:
    return payload.encode("utf-8") if isinstance(payload, str) else payload


def compute_hmac_sha256(secret: str, payload: Union[str, bytes]) -> str:
    """Compute HMAC-SHA256 signature of payload as hex"""
    return hmac.new(secret.encode("utf-8"), _to_bytes(payload), hashlib.sha256).hexdigest()


def compute_hmac_sha256_base64(secret: str, payload: Union[str, bytes]) -> str:
    """Compute HMAC-SHA256 signature of payload and return base64 encoded"""
    signature = hmac.new(secret.encode("utf-8"), _to_bytes(payload), hashlib.sha256).digest()
    return base64.b64encode(signature).decode("utf-8")


def verify_hmac_signature(
    secret: Optional[str],
    payload: Union[str, bytes],
    signature: Optional[str],
    encoding: str = "hex",
) -> bool:
    """
    Recompute the signature for payload and compare it with the received one.

    Fails closed: a missing secret or signature is a mismatch.
    """
    if not secret:
        logger.error("Signature check attempted without a configured secret")
        return False
    if not signature:
        return False

    if encoding == "base64":
        expected = compute_hmac_sha256_base64(secret, payload)
    else:
        expected = compute_hmac_sha256(secret, payload)

    return constant_time_compare(expected, signature.strip())
