"""Payments router - Razorpay and Cashfree checkout, verification and webhooks"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...database import get_db
from ...rate_limiter import create_rate_limiter, get_client_ip
from .cashfree_service import cashfree_provider
from .provider import PaymentProvider
from .razorpay_service import razorpay_provider
from .schemas import (
    CashfreeOrderCreate,
    CashfreeOrderResponse,
    CashfreeVerifyRequest,
    OrderCreate,
    RazorpayOrderResponse,
    RazorpayVerifyRequest,
    VerifyResponse,
    WebhookAck,
)
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])

rate_limit_order = create_rate_limiter(limit=20, window_seconds=600, key_prefix="payment_order")


def get_razorpay_provider() -> PaymentProvider:
    return razorpay_provider


def get_cashfree_provider() -> PaymentProvider:
    return cashfree_provider


def get_razorpay_service(
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_razorpay_provider),
) -> PaymentService:
    """Dependency injection for PaymentService bound to Razorpay"""
    return PaymentService(db, provider)


def get_cashfree_service(
    db: Session = Depends(get_db),
    provider: PaymentProvider = Depends(get_cashfree_provider),
) -> PaymentService:
    """Dependency injection for PaymentService bound to Cashfree"""
    return PaymentService(db, provider)


# ============================================================================
# RAZORPAY
# ============================================================================


@router.post("/razorpay/order", response_model=RazorpayOrderResponse)
async def create_razorpay_order(
    data: OrderCreate,
    _: None = Depends(rate_limit_order),
    service: PaymentService = Depends(get_razorpay_service),
):
    consultation, order = await service.create_order(data)
    return {
        "order": order.raw or {"id": order.order_id},
        "consultationId": consultation.id,
        "keyId": getattr(service.provider, "key_id", None),
    }


@router.post("/razorpay/verify", response_model=VerifyResponse)
async def verify_razorpay_payment(
    data: RazorpayVerifyRequest,
    service: PaymentService = Depends(get_razorpay_service),
):
    """Check the checkout signature, then confirm the order status with Razorpay"""
    return await service.verify(
        data.consultationId,
        data.razorpay_order_id,
        payment_id=data.razorpay_payment_id,
        signature=data.razorpay_signature,
    )


@router.post("/razorpay/webhook", response_model=WebhookAck)
async def razorpay_webhook(
    request: Request,
    service: PaymentService = Depends(get_razorpay_service),
):
    body = await request.body()
    return service.handle_webhook(
        body,
        request.headers.get("x-razorpay-signature"),
        ip_address=get_client_ip(request),
    )


# ============================================================================
# CASHFREE
# ============================================================================


@router.post("/cashfree/order", response_model=CashfreeOrderResponse)
async def create_cashfree_order(
    data: CashfreeOrderCreate,
    _: None = Depends(rate_limit_order),
    service: PaymentService = Depends(get_cashfree_service),
):
    consultation, order = await service.create_order(data)
    return {
        "order": {"orderId": order.order_id, "paymentSessionId": order.payment_session_id},
        "consultationId": consultation.id,
    }


@router.post("/cashfree/verify", response_model=VerifyResponse)
async def verify_cashfree_payment(
    data: CashfreeVerifyRequest,
    service: PaymentService = Depends(get_cashfree_service),
):
    return await service.verify(data.consultationId, data.orderId)


@router.post("/cashfree/webhook", response_model=WebhookAck)
async def cashfree_webhook(
    request: Request,
    service: PaymentService = Depends(get_cashfree_service),
):
    body = await request.body()
    return service.handle_webhook(
        body,
        request.headers.get("x-webhook-signature"),
        timestamp=request.headers.get("x-webhook-timestamp"),
        ip_address=get_client_ip(request),
    )
