"""Email verification — issue 6-digit codes through a notification sink and
confirm them.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.common.clock import local_now
from timekeeper.common.exceptions import ValidationException
from timekeeper.config import settings
from timekeeper.notifications.models import EmailVerification
from timekeeper.notifications.schemas import VerificationCodeResponse, VerifyEmailResponse
from timekeeper.notifications.sinks import NotificationSink
from timekeeper.organization.models import Employee

logger = logging.getLogger(__name__)

CODE_LENGTH = 6


def _now() -> datetime:
    return local_now()


def generate_code() -> str:
    """Random 6-digit numeric code (never starts with 0)."""
    return str(10 ** (CODE_LENGTH - 1) + secrets.randbelow(9 * 10 ** (CODE_LENGTH - 1)))


def verification_message(code: str, ttl_minutes: int) -> str:
    return (
        f"Your {settings.FROM_NAME} verification code is {code}.\n"
        f"It expires in {ttl_minutes} minutes. If you did not request it, ignore this email."
    )


class VerificationService:
    """Issue and check email verification codes."""

    @staticmethod
    async def send_verification_code(
        db: AsyncSession,
        email: str,
        sink: NotificationSink,
        *,
        now: Optional[datetime] = None,
    ) -> VerificationCodeResponse:
        """Upsert a fresh code for *email* and hand it to *sink*.

        Delivery failure is reported through ``sent``; the code is stored
        either way so a retry can resend.
        """
        email = email.strip().lower()
        now = now or _now()
        ttl = settings.VERIFICATION_CODE_TTL_MINUTES
        code = generate_code()
        expires_at = now + timedelta(minutes=ttl)

        result = await db.execute(
            select(EmailVerification).where(EmailVerification.email == email)
        )
        verification = result.scalars().first()
        if verification is None:
            verification = EmailVerification(email=email, code=code, expires_at=expires_at)
            db.add(verification)
        else:
            verification.code = code
            verification.expires_at = expires_at
            verification.verified = False
            verification.verified_at = None
        await db.flush()

        sent = await sink.send(email, f"{settings.FROM_NAME} verification code", verification_message(code, ttl))
        if sent:
            logger.info("Verification code sent to %s", email)
        else:
            logger.warning("Verification code for %s could not be delivered", email)

        return VerificationCodeResponse(email=email, sent=sent, expires_at=expires_at)

    @staticmethod
    async def verify_email(
        db: AsyncSession,
        email: str,
        code: str,
        *,
        now: Optional[datetime] = None,
    ) -> VerifyEmailResponse:
        """Confirm *code* for *email* and flag matching employees as verified.

        Raises:
            ValidationException: unknown, mismatched, used or expired code.
            A code is single-use; requesting a new one re-arms the address.
        """
        email = email.strip().lower()
        now = now or _now()

        result = await db.execute(
            select(EmailVerification).where(EmailVerification.email == email)
        )
        verification = result.scalars().first()
        if verification is None or verification.code != code.strip():
            raise ValidationException({"code": ["Invalid verification code."]})
        if verification.verified:
            raise ValidationException({"code": ["Verification code has already been used."]})
        if verification.expires_at < now:
            raise ValidationException({"code": ["Verification code has expired."]})

        verification.verified = True
        verification.verified_at = now
        await db.execute(
            update(Employee).where(Employee.email == email).values(email_verified=True)
        )
        await db.flush()

        logger.info("Email %s verified", email)
        return VerifyEmailResponse(email=email, verified=True)
