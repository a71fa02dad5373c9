"""Payments repository - Database operations for bookings and their payment state"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Consultation, PaymentStatus, Service, User

logger = logging.getLogger(__name__)


class PaymentRepository:
    """Repository for consultation payment database operations"""

    @staticmethod
    def get_service_by_id(db: Session, service_id: str) -> Optional[Service]:
        return db.query(Service).filter(Service.id == service_id).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        """Get user by ID"""
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_guest_user(db: Session, email: str, name: str) -> User:
        """User without password or verified email, upgraded later by OTP signup"""
        user = User(email=email, name=name, role="USER", email_verified_at=None)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def create_consultation(db: Session, consultation_data: dict) -> Consultation:
        consultation = Consultation(**consultation_data)
        db.add(consultation)
        db.commit()
        db.refresh(consultation)
        return consultation

    @staticmethod
    def get_consultation_by_id(db: Session, consultation_id: str) -> Optional[Consultation]:
        return db.query(Consultation).filter(Consultation.id == consultation_id).first()

    @staticmethod
    def set_payment_order(
        db: Session, consultation: Consultation, provider: str, order_id: str
    ) -> Consultation:
        consultation.payment_provider = provider
        consultation.payment_order_id = order_id
        db.commit()
        db.refresh(consultation)
        return consultation

    @staticmethod
    def apply_transition(
        db: Session,
        order_id: str,
        target: PaymentStatus,
        payment_id: Optional[str] = None,
    ) -> int:
        """
        Move every booking with this provider order id to a terminal status.

        Only rows that are still pending, or already at the target, are touched;
        a completed booking never becomes failed and vice versa. Returns the
        number of rows updated.
        """
        allowed = [PaymentStatus.PENDING.value, target.value]
        values = {Consultation.payment_status: target.value}
        if payment_id:
            values[Consultation.payment_id] = payment_id

        updated = (
            db.query(Consultation)
            .filter(
                Consultation.payment_order_id == order_id,
                Consultation.payment_status.in_(allowed),
            )
            .update(values, synchronize_session=False)
        )
        db.commit()

        if not updated:
            current = (
                db.query(Consultation.payment_status)
                .filter(Consultation.payment_order_id == order_id)
                .all()
            )
            if current:
                logger.warning(
                    f"Ignored {target.value} for order {order_id}: "
                    f"already {', '.join(row[0] for row in current)}"
                )
            else:
                logger.warning(f"No consultation found for payment order {order_id}")

        return updated
