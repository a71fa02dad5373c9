"""Payment service - Booking checkout and the pending/completed/failed state machine"""

import json
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...exceptions import ConfigurationError, InvalidSignature, NotFound
from ...models import Consultation, PaymentStatus, User
from ...security_utils import log_security_event, mask_email
from .provider import OrderRequest, PaymentProvider, ProviderOrder
from .repository import PaymentRepository
from .schemas import OrderCreate

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Drives one Consultation per checkout through its payment lifecycle.

    Status only ever moves pending -> completed or pending -> failed. Every
    write goes through PaymentRepository.apply_transition, so a late or
    replayed provider event cannot undo a terminal status.
    """

    def __init__(self, db: Session, provider: PaymentProvider):
        self.db = db
        self.provider = provider
        self.repo = PaymentRepository()

    def _ensure_configured(self) -> None:
        if not self.provider.is_configured():
            logger.error(f"{self.provider.name} credentials are not configured")
            raise ConfigurationError(f"{self.provider.name.capitalize()} keys not configured")

    def _resolve_user(self, user_id: Optional[str], email: str, name: str) -> User:
        """Known user by id, then by email, otherwise a new guest account"""
        user = self.repo.get_user_by_id(self.db, user_id) if user_id else None
        if not user:
            user = self.repo.get_user_by_email(self.db, email)
        if not user:
            user = self.repo.create_guest_user(self.db, email, name)
            logger.info(f"Guest user created for checkout: {mask_email(email)}")
        return user

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_order(self, data: OrderCreate) -> tuple[Consultation, ProviderOrder]:
        """
        Snapshot the service onto a pending Consultation, then open a provider order.

        A provider failure propagates as ProviderError and leaves the pending
        Consultation in place for later verify/webhook reconciliation.
        """
        self._ensure_configured()

        service = self.repo.get_service_by_id(self.db, data.serviceId)
        if not service:
            raise NotFound("Service not found")

        user = self._resolve_user(data.userId, data.email, data.name)

        consultation = self.repo.create_consultation(
            self.db,
            {
                "user_id": user.id,
                "email": data.email,
                "name": data.name,
                "service_name": service.name,
                "price": service.price,
                "currency": service.currency,
                "payment_provider": self.provider.name,
                "payment_status": PaymentStatus.PENDING.value,
                "phone": data.phone,
                "gender": data.gender,
                "marital_status": data.maritalStatus,
                "education": data.education,
                "profession": data.profession,
                "birth_place": data.birthPlace,
                "birth_date": data.birthDate,
                "birth_time": data.birthTime,
                "consultation_purpose": data.consultationPurpose,
            },
        )
        logger.info(
            f"Consultation {consultation.id} created ({service.name}, {service.price} {service.currency})"
        )

        order = await self.provider.create_order(
            OrderRequest(
                consultation_id=consultation.id,
                amount=consultation.price,
                currency=consultation.currency,
                customer_id=user.id,
                customer_name=data.name,
                customer_email=data.email,
                customer_phone=data.phone,
                description=f"{service.name} consultation",
            )
        )

        consultation = self.repo.set_payment_order(
            self.db, consultation, self.provider.name, order.order_id
        )
        return consultation, order

    # ------------------------------------------------------------------
    # Verify (client initiated)
    # ------------------------------------------------------------------

    async def verify(
        self,
        consultation_id: str,
        order_id: str,
        payment_id: Optional[str] = None,
        signature: Optional[str] = None,
    ) -> dict:
        """Confirm a checkout with the provider and apply the resulting status"""
        self._ensure_configured()

        consultation = self.repo.get_consultation_by_id(self.db, consultation_id)
        if not consultation:
            raise NotFound("Consultation not found")

        # A booking whose provider order was never opened has nothing to verify
        if consultation.payment_order_id != order_id:
            logger.warning(
                f"Order {order_id} does not belong to consultation {consultation_id}"
            )
            raise NotFound("Payment order not found for this consultation")

        if self.provider.requires_signature and not self.provider.verify_payment_signature(
            order_id, payment_id or "", signature or ""
        ):
            log_security_event(
                "payment_signature_mismatch",
                details={"provider": self.provider.name, "consultation_id": consultation_id},
            )
            self.repo.apply_transition(self.db, order_id, PaymentStatus.FAILED)
            self.db.refresh(consultation)
            raise InvalidSignature(status=consultation.payment_status)

        order_status = await self.provider.get_order_status(order_id)

        if order_status.status != PaymentStatus.PENDING:
            self.repo.apply_transition(
                self.db,
                order_id,
                order_status.status,
                payment_id=order_status.payment_id or payment_id,
            )
            self.db.refresh(consultation)
            logger.info(
                f"Consultation {consultation_id} verified via {self.provider.name}: "
                f"{consultation.payment_status}"
            )

        return {
            "success": consultation.payment_status == PaymentStatus.COMPLETED.value,
            "status": consultation.payment_status,
        }

    # ------------------------------------------------------------------
    # Webhook (provider initiated)
    # ------------------------------------------------------------------

    def handle_webhook(
        self,
        raw_body: bytes,
        signature: Optional[str],
        timestamp: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> dict:
        """
        Authenticate a provider callback and apply it by provider order id.

        The signature is checked before the body is parsed. Anything that
        authenticates is acknowledged, even when it changes nothing, since
        providers retry on non-2xx responses.
        """
        if not self.provider.verify_webhook_signature(raw_body, signature, timestamp):
            log_security_event(
                "webhook_signature_invalid",
                ip_address=ip_address,
                details={"provider": self.provider.name, "has_signature": bool(signature)},
            )
            raise InvalidSignature()

        try:
            payload = json.loads(raw_body)
        except ValueError:
            logger.warning(f"{self.provider.name} webhook body is not valid JSON; ignoring")
            return {"received": True}

        event = self.provider.parse_webhook_event(payload if isinstance(payload, dict) else {})
        logger.info(f"{self.provider.name} webhook received: {event.event_type}")

        if event.status is None:
            logger.info(f"Ignoring {self.provider.name} event {event.event_type}")
            return {"received": True}

        if not event.order_id:
            logger.warning(f"{self.provider.name} event {event.event_type} has no order id")
            return {"received": True}

        updated = self.repo.apply_transition(
            self.db,
            event.order_id,
            event.status,
            payment_id=event.payment_id,
        )
        if updated:
            logger.info(f"Order {event.order_id} marked {event.status.value} ({updated} row(s))")

        return {"received": True}
