"""Notifications router — email verification codes (public, rate limited)."""


from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from timekeeper.common.rate_limit import VERIFICATION_RATE_LIMIT, limiter
from timekeeper.database import get_db
from timekeeper.notifications.schemas import (
    VerificationCodeRequest,
    VerificationCodeResponse,
    VerifyEmailRequest,
    VerifyEmailResponse,
)
from timekeeper.notifications.service import VerificationService
from timekeeper.notifications.sinks import NotificationSink, get_notification_sink

router = APIRouter()


@router.post("/verification-code", response_model=VerificationCodeResponse)
@limiter.limit(VERIFICATION_RATE_LIMIT)
async def send_verification_code(
    request: Request,
    body: VerificationCodeRequest,
    sink: NotificationSink = Depends(get_notification_sink),
    db: AsyncSession = Depends(get_db),
):
    """Send a 6-digit code; ``sent`` is false when delivery failed."""
    return await VerificationService.send_verification_code(db, str(body.email), sink)


@router.post("/verify", response_model=VerifyEmailResponse)
@limiter.limit(VERIFICATION_RATE_LIMIT)
async def verify_email(
    request: Request,
    body: VerifyEmailRequest,
    db: AsyncSession = Depends(get_db),
):
    return await VerificationService.verify_email(db, str(body.email), body.code)
