"""Cashfree provider - PG Orders API, base64 HMAC webhook signatures"""

import logging
from typing import Optional

import httpx

from ...config import (
    CASHFREE_API_VERSION,
    CASHFREE_APP_ID,
    CASHFREE_ENV,
    CASHFREE_SECRET_KEY,
    FRONTEND_URL,
)
from ...exceptions import ProviderError
from ...models import PaymentStatus
from ...webhook_security import verify_hmac_signature
from .provider import (
    OrderRequest,
    PaymentProvider,
    ProviderOrder,
    ProviderOrderStatus,
    WebhookEvent,
)

logger = logging.getLogger(__name__)

SANDBOX_URL = "https://sandbox.cashfree.com/pg"
PRODUCTION_URL = "https://api.cashfree.com/pg"

FAILED_ORDER_STATUSES = {"FAILED", "CANCELLED", "EXPIRED", "TERMINATED"}
SUCCESS_EVENTS = {"PAYMENT_SUCCESS_WEBHOOK"}
FAILURE_EVENTS = {"PAYMENT_FAILED_WEBHOOK", "PAYMENT_USER_DROPPED_WEBHOOK"}


def cashfree_base_url(env: Optional[str]) -> str:
    if (env or "").strip().lower() in {"sandbox", "test"}:
        return SANDBOX_URL
    return PRODUCTION_URL


def normalize_order_status(order_status: Optional[str]) -> PaymentStatus:
    """PAID completes, terminal failures fail, ACTIVE and anything new stays pending"""
    value = (order_status or "").upper()
    if value == "PAID":
        return PaymentStatus.COMPLETED
    if value in FAILED_ORDER_STATUSES:
        return PaymentStatus.FAILED
    return PaymentStatus.PENDING


class CashfreeProvider(PaymentProvider):
    name = "cashfree"

    def __init__(
        self,
        app_id: Optional[str] = CASHFREE_APP_ID,
        secret_key: Optional[str] = CASHFREE_SECRET_KEY,
        api_version: str = CASHFREE_API_VERSION,
        environment: Optional[str] = CASHFREE_ENV,
        return_url_base: str = FRONTEND_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.app_id = app_id
        self.secret_key = secret_key
        self.api_version = api_version
        self.base_url = cashfree_base_url(environment)
        self.return_url_base = return_url_base.rstrip("/")
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.app_id and self.secret_key)

    def _headers(self) -> dict:
        return {
            "x-api-version": self.api_version,
            "x-client-id": self.app_id or "",
            "x-client-secret": self.secret_key or "",
            "Content-Type": "application/json",
        }

    async def create_order(self, request: OrderRequest) -> ProviderOrder:
        payload = {
            # The consultation id doubles as the merchant order id
            "order_id": request.consultation_id,
            "order_amount": round(request.amount, 2),
            "order_currency": request.currency,
            "customer_details": {
                "customer_id": request.customer_id,
                "customer_name": request.customer_name,
                "customer_email": request.customer_email,
                "customer_phone": request.customer_phone or "",
            },
            "order_note": request.description,
            "order_meta": {
                "return_url": f"{self.return_url_base}/dashboard/consultations?order_id={request.consultation_id}",
            },
        }

        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as http_client:
                response = await http_client.post(
                    f"{self.base_url}/orders", json=payload, headers=self._headers()
                )
        except httpx.HTTPError as e:
            logger.error(f"Cashfree order request failed for {request.consultation_id}: {e}")
            raise ProviderError() from e

        if response.status_code not in [200, 201]:
            logger.error(
                f"Cashfree order creation failed ({response.status_code}): {response.text}"
            )
            raise ProviderError()

        order = response.json()
        order_id = order.get("order_id")
        session_id = order.get("payment_session_id")
        if not order_id or not session_id:
            logger.error(f"Incomplete Cashfree order response: {order}")
            raise ProviderError()

        logger.info(f"Cashfree order {order_id} created")
        return ProviderOrder(
            order_id=order_id,
            amount=request.amount,
            currency=order.get("order_currency", request.currency),
            payment_session_id=session_id,
            raw=order,
        )

    async def get_order_status(self, order_id: str) -> ProviderOrderStatus:
        try:
            async with httpx.AsyncClient(timeout=30.0, transport=self.transport) as http_client:
                response = await http_client.get(
                    f"{self.base_url}/orders/{order_id}", headers=self._headers()
                )
        except httpx.HTTPError as e:
            logger.error(f"Cashfree order lookup failed for {order_id}: {e}")
            raise ProviderError() from e

        if response.status_code != 200:
            logger.error(f"Cashfree order lookup failed ({response.status_code}): {response.text}")
            raise ProviderError()

        order = response.json()
        cf_order_id = order.get("cf_order_id")
        return ProviderOrderStatus(
            status=normalize_order_status(order.get("order_status")),
            payment_id=str(cf_order_id) if cf_order_id is not None else None,
        )

    def verify_webhook_signature(
        self, raw_body: bytes, signature: Optional[str], timestamp: Optional[str] = None
    ) -> bool:
        """Signature is base64 HMAC-SHA256 of timestamp + raw body with the secret key"""
        if not timestamp:
            return False
        return verify_hmac_signature(
            self.secret_key, timestamp.encode("utf-8") + raw_body, signature, encoding="base64"
        )

    def parse_webhook_event(self, payload: dict) -> WebhookEvent:
        event_type = payload.get("type")
        data = payload.get("data") or {}
        order = data.get("order") or {}
        payment = data.get("payment") or {}

        if event_type in SUCCESS_EVENTS:
            status = PaymentStatus.COMPLETED
        elif event_type in FAILURE_EVENTS:
            status = PaymentStatus.FAILED
        else:
            status = None

        cf_payment_id = payment.get("cf_payment_id")
        return WebhookEvent(
            event_type=event_type,
            order_id=order.get("order_id"),
            payment_id=str(cf_payment_id) if cf_payment_id is not None else None,
            status=status,
        )


cashfree_provider = CashfreeProvider()
