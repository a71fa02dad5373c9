import enum
import uuid

from sqlalchemy import JSON, Column, Date, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a string primary key"""
    return str(uuid.uuid4())


class OtpPurpose(str, enum.Enum):
    SIGNUP = "SIGNUP"
    RESET_PASSWORD = "RESET_PASSWORD"


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class ConsultationStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    password_hash = Column(String(255), nullable=True)  # Null for guest checkout and OAuth users
    email_verified_at = Column(DateTime, nullable=True)
    role = Column(String(20), default="USER", nullable=False)  # USER, ADMIN
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    consultations = relationship("Consultation", back_populates="user")


class Service(Base):
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=False)
    price = Column(Float, nullable=False)  # Rupees
    currency = Column(String(3), default="INR", nullable=False)
    description = Column(Text, nullable=True)
    icon = Column(String(100), nullable=True)
    features = Column(JSON, default=list, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class OtpChallenge(Base):
    __tablename__ = "otp_challenges"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), index=True, nullable=False)
    code = Column(String(6), nullable=False)
    purpose = Column(String(20), nullable=False)  # SIGNUP, RESET_PASSWORD
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False)
    # Staged signup data, committed to a User only after the code is verified
    pending_password_hash = Column(String(255), nullable=True)
    pending_name = Column(String(255), nullable=True)


class Consultation(Base):
    __tablename__ = "consultations"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), index=True, nullable=False)
    email = Column(String(255), index=True, nullable=False)  # Fallback match key for guest bookings
    name = Column(String(255), nullable=False)
    # Snapshot of the service at booking time; later catalog edits must not change it
    service_name = Column(String(255), nullable=False)
    price = Column(Float, nullable=False)
    currency = Column(String(3), default="INR", nullable=False)
    payment_provider = Column(String(20), nullable=True)  # razorpay, cashfree
    payment_order_id = Column(String(255), index=True, nullable=True)
    payment_id = Column(String(255), nullable=True)
    payment_status = Column(String(20), default=PaymentStatus.PENDING.value, nullable=False)
    consultation_status = Column(
        String(20), default=ConsultationStatus.PENDING.value, nullable=False
    )
    consultation_date = Column(DateTime, nullable=True)
    phone = Column(String(50), nullable=True)
    gender = Column(String(20), nullable=True)
    marital_status = Column(String(50), nullable=True)
    education = Column(String(255), nullable=True)
    profession = Column(String(255), nullable=True)
    birth_place = Column(String(255), nullable=True)
    birth_date = Column(Date, nullable=True)
    birth_time = Column(String(20), nullable=True)
    consultation_purpose = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    report_url = Column(String(500), nullable=True)
    report_file_name = Column(String(255), nullable=True)
    report_uploaded_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="consultations")
