"""Payment provider capability shared by Razorpay and Cashfree"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from ...models import PaymentStatus


@dataclass
class OrderRequest:
    """What a provider needs to open a checkout for one consultation"""

    consultation_id: str
    amount: float  # Rupees
    currency: str
    customer_id: str
    customer_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    description: Optional[str] = None


@dataclass
class ProviderOrder:
    order_id: str
    amount: float
    currency: str
    # Cashfree checkout needs the session id; Razorpay returns the raw order
    payment_session_id: Optional[str] = None
    raw: dict = field(default_factory=dict)


@dataclass
class ProviderOrderStatus:
    """Provider order state mapped onto pending, completed or failed"""

    status: PaymentStatus
    payment_id: Optional[str] = None


@dataclass
class WebhookEvent:
    """Parsed webhook; status is None for events that change nothing"""

    event_type: Optional[str]
    order_id: Optional[str]
    payment_id: Optional[str]
    status: Optional[PaymentStatus]


class PaymentProvider(ABC):
    """A gateway the payment service can open, query and hear back from"""

    name: str = ""
    # Razorpay checkout hands the client a signature to verify; Cashfree does not
    requires_signature: bool = False

    @abstractmethod
    def is_configured(self) -> bool:
        ...

    @abstractmethod
    async def create_order(self, request: OrderRequest) -> ProviderOrder:
        ...

    @abstractmethod
    async def get_order_status(self, order_id: str) -> ProviderOrderStatus:
        ...

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        return True

    @abstractmethod
    def verify_webhook_signature(
        self, raw_body: bytes, signature: Optional[str], timestamp: Optional[str] = None
    ) -> bool:
        ...

    @abstractmethod
    def parse_webhook_event(self, payload: dict) -> WebhookEvent:
        ...
