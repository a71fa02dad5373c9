"""Razorpay provider - Orders API over HTTP basic auth, hex HMAC signatures"""

import logging
from typing import Optional

import httpx

from ...config import (
    RAZORPAY_API_URL,
    RAZORPAY_KEY_ID,
    RAZORPAY_KEY_SECRET,
    RAZORPAY_WEBHOOK_SECRET,
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

SUCCESS_EVENTS = {"payment.captured", "payment.authorized"}
FAILURE_EVENTS = {"payment.failed"}


def to_paise(amount: float) -> int:
    """Razorpay amounts are integers in the smallest currency unit"""
    return int(round(amount * 100))


class RazorpayProvider(PaymentProvider):
    name = "razorpay"
    requires_signature = True

    def __init__(
        self,
        key_id: Optional[str] = RAZORPAY_KEY_ID,
        key_secret: Optional[str] = RAZORPAY_KEY_SECRET,
        webhook_secret: Optional[str] = RAZORPAY_WEBHOOK_SECRET,
        api_url: str = RAZORPAY_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self.key_secret = key_secret
        self.webhook_secret = webhook_secret
        self.api_url = api_url.rstrip("/")
        self.transport = transport

    def is_configured(self) -> bool:
        return bool(self.key_id and self.key_secret)

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=30.0,
            auth=(self.key_id or "", self.key_secret or ""),
            transport=self.transport,
        )

    async def create_order(self, request: OrderRequest) -> ProviderOrder:
        payload = {
            "amount": to_paise(request.amount),
            "currency": request.currency,
            "receipt": request.consultation_id,
            "notes": {
                "consultation_id": request.consultation_id,
                "email": request.customer_email,
            },
        }

        try:
            async with self._client() as http_client:
                response = await http_client.post(f"{self.api_url}/orders", json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order request failed for {request.consultation_id}: {e}")
            raise ProviderError() from e

        if response.status_code not in [200, 201]:
            logger.error(
                f"Razorpay order creation failed ({response.status_code}): {response.text}"
            )
            raise ProviderError()

        order = response.json()
        order_id = order.get("id")
        if not order_id:
            logger.error(f"No order id in Razorpay response: {order}")
            raise ProviderError()

        logger.info(f"Razorpay order {order_id} created for consultation {request.consultation_id}")
        return ProviderOrder(
            order_id=order_id,
            amount=request.amount,
            currency=order.get("currency", request.currency),
            raw=order,
        )

    async def get_order_status(self, order_id: str) -> ProviderOrderStatus:
        try:
            async with self._client() as http_client:
                response = await http_client.get(f"{self.api_url}/orders/{order_id}")
        except httpx.HTTPError as e:
            logger.error(f"Razorpay order lookup failed for {order_id}: {e}")
            raise ProviderError() from e

        if response.status_code != 200:
            logger.error(f"Razorpay order lookup failed ({response.status_code}): {response.text}")
            raise ProviderError()

        order = response.json()
        # created and attempted both still await payment
        if order.get("status") == "paid":
            return ProviderOrderStatus(PaymentStatus.COMPLETED)
        return ProviderOrderStatus(PaymentStatus.PENDING)

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        """Checkout signature is HMAC-SHA256 of "order_id|payment_id" with the key secret"""
        return verify_hmac_signature(self.key_secret, f"{order_id}|{payment_id}", signature)

    def verify_webhook_signature(
        self, raw_body: bytes, signature: Optional[str], timestamp: Optional[str] = None
    ) -> bool:
        return verify_hmac_signature(self.webhook_secret, raw_body, signature)

    def parse_webhook_event(self, payload: dict) -> WebhookEvent:
        event_type = payload.get("event")
        entity = (
            ((payload.get("payload") or {}).get("payment") or {}).get("entity") or {}
        )

        if event_type in SUCCESS_EVENTS:
            status = PaymentStatus.COMPLETED
        elif event_type in FAILURE_EVENTS:
            status = PaymentStatus.FAILED
        else:
            status = None

        return WebhookEvent(
            event_type=event_type,
            order_id=entity.get("order_id"),
            payment_id=entity.get("id"),
            status=status,
        )


razorpay_provider = RazorpayProvider()
