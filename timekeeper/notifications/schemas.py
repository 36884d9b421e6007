"""Email verification Pydantic v2 schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class VerificationCodeRequest(BaseModel):
    email: EmailStr


class VerificationCodeResponse(BaseModel):
    email: str
    sent: bool
    expires_at: datetime


class VerifyEmailRequest(BaseModel):
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6, pattern=r"^\d{6}$")


class VerifyEmailResponse(BaseModel):
    email: str
    verified: bool = True
