"""OTP repository - Database operations for one-time codes and the users they create"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import OtpChallenge, OtpPurpose, User


class OtpRepository:
    """Repository for OTP challenge database operations"""

    @staticmethod
    def get_latest_challenge(db: Session, email: str, purpose: OtpPurpose) -> Optional[OtpChallenge]:
        """Most recently created challenge for an (email, purpose) pair"""
        return (
            db.query(OtpChallenge)
            .filter(OtpChallenge.email == email, OtpChallenge.purpose == purpose.value)
            .order_by(OtpChallenge.created_at.desc())
            .first()
        )

    @staticmethod
    def replace_challenge(
        db: Session,
        email: str,
        purpose: OtpPurpose,
        code: str,
        created_at: datetime,
        expires_at: datetime,
        pending_password_hash: Optional[str] = None,
        pending_name: Optional[str] = None,
    ) -> OtpChallenge:
        """Delete every challenge for the pair, then insert the new one"""
        db.query(OtpChallenge).filter(
            OtpChallenge.email == email, OtpChallenge.purpose == purpose.value
        ).delete(synchronize_session=False)

        challenge = OtpChallenge(
            email=email,
            code=code,
            purpose=purpose.value,
            created_at=created_at,
            expires_at=expires_at,
            pending_password_hash=pending_password_hash,
            pending_name=pending_name,
        )
        db.add(challenge)
        db.commit()
        db.refresh(challenge)
        return challenge

    @staticmethod
    def find_valid_challenge(
        db: Session, email: str, code: str, purpose: OtpPurpose, now: datetime
    ) -> Optional[OtpChallenge]:
        """Challenge matching email, code and purpose that has not expired"""
        return (
            db.query(OtpChallenge)
            .filter(
                OtpChallenge.email == email,
                OtpChallenge.code == code,
                OtpChallenge.purpose == purpose.value,
                OtpChallenge.expires_at > now,
            )
            .first()
        )

    @staticmethod
    def delete_challenge(db: Session, challenge: OtpChallenge) -> None:
        db.delete(challenge)
        db.commit()

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, **user_data) -> User:
        """Create a new user"""
        user = User(**user_data)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        """Update a user with provided fields"""
        for key, value in updates.items():
            if hasattr(user, key):
                setattr(user, key, value)

        db.commit()
        db.refresh(user)
        return user
