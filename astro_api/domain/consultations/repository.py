"""Consultation repository - Read queries for booked consultations"""

from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ...models import Consultation


class ConsultationRepository:
    """Repository for consultation database operations"""

    @staticmethod
    def list_consultations(
        db: Session, user_id: Optional[str] = None, email: Optional[str] = None
    ) -> list[Consultation]:
        """Consultations owned by the user id or booked under the email, newest first"""
        conditions = []
        if user_id:
            conditions.append(Consultation.user_id == user_id)
        if email:
            conditions.append(Consultation.email == email)
        if not conditions:
            return []

        return (
            db.query(Consultation)
            .filter(or_(*conditions))
            .order_by(Consultation.created_at.desc())
            .all()
        )

    @staticmethod
    def get_consultation_by_id(db: Session, consultation_id: str) -> Optional[Consultation]:
        return db.query(Consultation).filter(Consultation.id == consultation_id).first()
