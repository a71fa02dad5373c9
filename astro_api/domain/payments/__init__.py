"""Payments domain - Consultation checkout through Razorpay and Cashfree"""

from .router import router
from .service import PaymentService

__all__ = ["router", "PaymentService"]
