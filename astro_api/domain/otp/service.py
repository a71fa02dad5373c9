"""OTP service - issue, rate-limit, verify and consume one-time codes"""

import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from sqlalchemy.orm import Session

from ...config import OTP_RESEND_COOLDOWN_SECONDS, OTP_TTL_MINUTES
from ...email_service import is_email_configured, send_otp_email
from ...exceptions import (
    ConfigurationError,
    Conflict,
    InvalidOrExpired,
    NotFound,
    NotificationError,
    RateLimited,
)
from ...models import OtpChallenge, OtpPurpose, User
from ...security_utils import hash_password_bcrypt, mask_email
from ...shared.clock import utcnow
from .repository import OtpRepository

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str, OtpPurpose], Awaitable[object]]


def generate_otp() -> str:
    """Uniformly random 6-digit code in 100000-999999"""
    return str(100000 + secrets.randbelow(900000))


class OtpService:
    """
    One live challenge per (email, purpose).

    Verification does not consume: a verified code stays valid until consume()
    or expiry, which the two-step password reset relies on.
    """

    def __init__(
        self,
        db: Session,
        notifier: Notifier = send_otp_email,
        notifier_configured: Callable[[], bool] = is_email_configured,
        clock: Callable[[], datetime] = utcnow,
        ttl_minutes: int = OTP_TTL_MINUTES,
        cooldown_seconds: int = OTP_RESEND_COOLDOWN_SECONDS,
    ):
        self.db = db
        self.repo = OtpRepository()
        self.notifier = notifier
        self.notifier_configured = notifier_configured
        self.clock = clock
        self.ttl = timedelta(minutes=ttl_minutes)
        self.cooldown_seconds = cooldown_seconds

    # ------------------------------------------------------------------
    # Core engine
    # ------------------------------------------------------------------

    def seconds_until_resend(self, email: str, purpose: OtpPurpose) -> int:
        """Remaining cooldown for the pair; 0 when a new code may be issued"""
        now = self.clock()
        latest = self.repo.get_latest_challenge(self.db, email, purpose)
        if not latest or latest.expires_at <= now:
            return 0

        elapsed = (now - latest.created_at).total_seconds()
        return max(0, math.ceil(self.cooldown_seconds - elapsed))

    async def issue(
        self,
        email: str,
        purpose: OtpPurpose,
        pending_password_hash: Optional[str] = None,
        pending_name: Optional[str] = None,
    ) -> OtpChallenge:
        """Store a fresh code for the pair and deliver it by email"""
        if not self.notifier_configured():
            raise ConfigurationError("Email service not configured.")

        remaining = self.seconds_until_resend(email, purpose)
        if remaining > 0:
            logger.info(f"OTP resend for {mask_email(email)} ({purpose.value}) blocked for {remaining}s")
            raise RateLimited(remaining)

        now = self.clock()
        code = generate_otp()
        challenge = self.repo.replace_challenge(
            self.db,
            email=email,
            purpose=purpose,
            code=code,
            created_at=now,
            expires_at=now + self.ttl,
            pending_password_hash=pending_password_hash,
            pending_name=pending_name,
        )
        logger.info(f"OTP issued for {mask_email(email)} ({purpose.value})")

        # The stored challenge stays valid even if delivery fails
        try:
            await self.notifier(email, code, purpose)
        except Exception as e:
            logger.error(f"Failed to deliver OTP to {mask_email(email)}: {e}")
            raise NotificationError() from e

        return challenge

    def verify(self, email: str, code: str, purpose: OtpPurpose) -> OtpChallenge:
        """Matching, unexpired challenge; every failure looks the same to the caller"""
        challenge = self.repo.find_valid_challenge(
            self.db, email, (code or "").strip(), purpose, self.clock()
        )
        if not challenge:
            logger.info(f"OTP verification failed for {mask_email(email)} ({purpose.value})")
            raise InvalidOrExpired()
        return challenge

    def consume(self, challenge: OtpChallenge) -> None:
        """Delete a challenge once the action it authorised has been saved"""
        self.repo.delete_challenge(self.db, challenge)

    # ------------------------------------------------------------------
    # Account flows
    # ------------------------------------------------------------------

    async def request_signup(self, email: str, password: str, name: str) -> OtpChallenge:
        existing = self.repo.get_user_by_email(self.db, email)
        # Guests created at checkout have neither a password nor a verified email
        if existing and (existing.password_hash or existing.email_verified_at):
            raise Conflict("Email already registered. Please sign in.")

        return await self.issue(
            email,
            OtpPurpose.SIGNUP,
            pending_password_hash=hash_password_bcrypt(password),
            pending_name=name,
        )

    def complete_signup(self, email: str, code: str) -> User:
        challenge = self.verify(email, code, OtpPurpose.SIGNUP)
        now = self.clock()

        user = self.repo.get_user_by_email(self.db, email)
        if user and (user.password_hash or user.email_verified_at):
            raise Conflict("Email already registered. Please sign in.")

        if user:
            user = self.repo.update_user(
                self.db,
                user,
                name=challenge.pending_name or user.name,
                password_hash=challenge.pending_password_hash,
                email_verified_at=now,
            )
            logger.info(f"Guest account upgraded for {mask_email(email)}")
        else:
            user = self.repo.create_user(
                self.db,
                email=email,
                name=challenge.pending_name,
                password_hash=challenge.pending_password_hash,
                email_verified_at=now,
                role="USER",
            )
            logger.info(f"Account created for {mask_email(email)}")

        self.consume(challenge)
        return user

    async def request_password_reset(self, email: str) -> OtpChallenge:
        if not self.repo.get_user_by_email(self.db, email):
            raise NotFound("No account found for this email.")

        return await self.issue(email, OtpPurpose.RESET_PASSWORD)

    def verify_password_reset(self, email: str, code: str) -> None:
        self.verify(email, code, OtpPurpose.RESET_PASSWORD)

    def confirm_password_reset(self, email: str, code: str, new_password: str) -> User:
        challenge = self.verify(email, code, OtpPurpose.RESET_PASSWORD)

        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise NotFound("No account found for this email.")

        user = self.repo.update_user(
            self.db, user, password_hash=hash_password_bcrypt(new_password)
        )
        self.consume(challenge)
        logger.info(f"Password reset for {mask_email(email)}")
        return user
