"""Consultation domain schemas - Pydantic models for responses"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class ConsultationResponse(BaseModel):
    """Schema for consultation response"""

    id: str
    userId: str
    email: str
    name: str
    serviceName: str
    price: float
    currency: str
    paymentProvider: Optional[str] = None
    paymentOrderId: Optional[str] = None
    paymentId: Optional[str] = None
    paymentStatus: str
    consultationStatus: str
    consultationDate: Optional[datetime] = None
    phone: Optional[str] = None
    gender: Optional[str] = None
    maritalStatus: Optional[str] = None
    education: Optional[str] = None
    profession: Optional[str] = None
    birthPlace: Optional[str] = None
    birthDate: Optional[date] = None
    birthTime: Optional[str] = None
    consultationPurpose: Optional[str] = None
    notes: Optional[str] = None
    reportUrl: Optional[str] = None
    reportFileName: Optional[str] = None
    reportUploadedAt: Optional[datetime] = None
    createdAt: Optional[datetime] = None
