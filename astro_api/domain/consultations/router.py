"""Consultation router - Booked consultations for the dashboard"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...database import get_db
from ...exceptions import NotFound
from ...models import Consultation
from ...shared.validators import normalize_email
from .repository import ConsultationRepository
from .schemas import ConsultationResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/consultations", tags=["Consultations"])


def to_response(c: Consultation) -> ConsultationResponse:
    return ConsultationResponse(
        id=c.id,
        userId=c.user_id,
        email=c.email,
        name=c.name,
        serviceName=c.service_name,
        price=c.price,
        currency=c.currency,
        paymentProvider=c.payment_provider,
        paymentOrderId=c.payment_order_id,
        paymentId=c.payment_id,
        paymentStatus=c.payment_status,
        consultationStatus=c.consultation_status,
        consultationDate=c.consultation_date,
        phone=c.phone,
        gender=c.gender,
        maritalStatus=c.marital_status,
        education=c.education,
        profession=c.profession,
        birthPlace=c.birth_place,
        birthDate=c.birth_date,
        birthTime=c.birth_time,
        consultationPurpose=c.consultation_purpose,
        notes=c.notes,
        reportUrl=c.report_url,
        reportFileName=c.report_file_name,
        reportUploadedAt=c.report_uploaded_at,
        createdAt=c.created_at,
    )


@router.get("", response_model=list[ConsultationResponse])
async def list_consultations(
    userId: Optional[str] = Query(None),
    email: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    """Match on user id or email so guest bookings show up after signup"""
    consultations = ConsultationRepository.list_consultations(
        db, user_id=userId, email=normalize_email(email) if email else None
    )
    return [to_response(c) for c in consultations]


@router.get("/{consultation_id}", response_model=ConsultationResponse)
async def get_consultation(consultation_id: str, db: Session = Depends(get_db)):
    consultation = ConsultationRepository.get_consultation_by_id(db, consultation_id)
    if not consultation:
        raise NotFound("Consultation not found")
    return to_response(consultation)
