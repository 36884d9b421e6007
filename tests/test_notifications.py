"""Email verification tests — code issue/upsert, sink outcomes, verification rules."""

from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sqlalchemy import select

from timekeeper.common.exceptions import ValidationException
from timekeeper.notifications.models import EmailVerification
from timekeeper.notifications.service import VerificationService, generate_code
from timekeeper.notifications.sinks import (
    LogNotificationSink,
    ResendNotificationSink,
    get_notification_sink,
)

NOW = datetime(2025, 3, 10, 9, 0)


class _CapturingSink:
    def __init__(self):
        self.sent = []

    async def send(self, address, subject, message):
        self.sent.append((address, subject, message))
        return True

    def last_code(self) -> str:
        return self.sent[-1][2].split("code is ")[1][:6]


class _FailingSink:
    async def send(self, address, subject, message):
        return False


def test_generate_code_is_six_digits():
    codes = {generate_code() for _ in range(200)}
    assert all(len(c) == 6 and c.isdigit() and c[0] != "0" for c in codes)


def test_default_sink_is_demo():
    assert isinstance(get_notification_sink(), LogNotificationSink)


async def test_demo_sink_keeps_nothing_in_memory():
    sink = get_notification_sink()
    for i in range(50):
        assert await sink.send(f"user{i}@acme.io", "Code", "123456") is True

    assert vars(sink) == {}
    assert get_notification_sink() is not sink


async def test_send_code_stores_and_delivers(db):
    sink = _CapturingSink()

    result = await VerificationService.send_verification_code(db, "Ada@Acme.io", sink, now=NOW)

    stored = (await db.execute(select(EmailVerification))).scalars().one()
    assert result.sent is True
    assert result.email == "ada@acme.io"
    assert result.expires_at == NOW + timedelta(minutes=10)
    assert sink.sent[0][0] == "ada@acme.io"
    assert stored.code in sink.sent[0][2]


async def test_resend_upserts_single_row(db):
    sink = _CapturingSink()
    await VerificationService.send_verification_code(db, "ada@acme.io", sink, now=NOW)
    await VerificationService.send_verification_code(db, "ada@acme.io", sink, now=NOW + timedelta(minutes=5))

    rows = (await db.execute(select(EmailVerification))).scalars().all()
    assert len(rows) == 1
    assert rows[0].expires_at == NOW + timedelta(minutes=15)


async def test_delivery_failure_is_reported_not_raised(db):
    result = await VerificationService.send_verification_code(db, "ada@acme.io", _FailingSink(), now=NOW)
    assert result.sent is False


async def test_verify_marks_employee_verified(db, worker):
    sink = _CapturingSink()
    await VerificationService.send_verification_code(db, worker.email, sink, now=NOW)
    code = (await db.execute(select(EmailVerification.code))).scalar_one()

    result = await VerificationService.verify_email(db, worker.email, code, now=NOW + timedelta(minutes=3))
    await db.refresh(worker)

    assert result.verified is True
    assert worker.email_verified is True


async def test_verify_rejects_wrong_and_expired_codes(db):
    await VerificationService.send_verification_code(db, "ada@acme.io", _CapturingSink(), now=NOW)
    code = (await db.execute(select(EmailVerification.code))).scalar_one()
    wrong = "000000" if code != "000000" else "111111"

    with pytest.raises(ValidationException):
        await VerificationService.verify_email(db, "ada@acme.io", wrong, now=NOW)
    with pytest.raises(ValidationException):
        await VerificationService.verify_email(db, "ada@acme.io", code, now=NOW + timedelta(minutes=11))
    with pytest.raises(ValidationException):
        await VerificationService.verify_email(db, "nobody@acme.io", code, now=NOW)


async def test_resend_sink_posts_to_api():
    sink = ResendNotificationSink("re_key", "noreply@acme.io", "Acme")
    fake = AsyncMock(return_value=httpx.Response(200, json={"id": "email_1"}))

    with patch("httpx.AsyncClient.post", fake):
        assert await sink.send("ada@acme.io", "Code", "123456") is True

    _, kwargs = fake.call_args
    assert kwargs["json"]["to"] == ["ada@acme.io"]
    assert kwargs["json"]["from"] == "Acme <noreply@acme.io>"
    assert kwargs["headers"]["Authorization"] == "Bearer re_key"


async def test_resend_sink_reports_http_errors():
    sink = ResendNotificationSink("re_key", "noreply@acme.io", "Acme")

    with patch("httpx.AsyncClient.post", AsyncMock(return_value=httpx.Response(422, text="bad"))):
        assert await sink.send("ada@acme.io", "Code", "123456") is False
    with patch("httpx.AsyncClient.post", AsyncMock(side_effect=httpx.ConnectError("down"))):
        assert await sink.send("ada@acme.io", "Code", "123456") is False


async def test_api_send_and_verify(client, app):
    sink = _CapturingSink()
    app.dependency_overrides[get_notification_sink] = lambda: sink

    sent = await client.post("/api/v1/notifications/verification-code", json={"email": "ada@acme.io"})
    code = sink.last_code()
    verified = await client.post("/api/v1/notifications/verify", json={"email": "ada@acme.io", "code": code})
    bad = await client.post("/api/v1/notifications/verify", json={"email": "ada@acme.io", "code": "12ab56"})

    assert sent.status_code == 200
    assert sent.json()["sent"] is True
    assert verified.status_code == 200
    assert verified.json()["verified"] is True
    assert bad.status_code == 422


async def test_code_is_single_use_until_reissued(db):
    sink = _CapturingSink()
    await VerificationService.send_verification_code(db, "ada@acme.io", sink, now=NOW)
    first = sink.last_code()
    await VerificationService.verify_email(db, "ada@acme.io", first, now=NOW + timedelta(minutes=1))

    with pytest.raises(ValidationException) as exc:
        await VerificationService.verify_email(db, "ada@acme.io", first, now=NOW + timedelta(minutes=2))
    assert "already been used" in exc.value.errors["code"][0]

    await VerificationService.send_verification_code(db, "ada@acme.io", sink, now=NOW + timedelta(minutes=3))
    result = await VerificationService.verify_email(
        db, "ada@acme.io", sink.last_code(), now=NOW + timedelta(minutes=4),
    )
    assert result.verified is True


async def test_api_verify_is_rate_limited(client):
    payload = {"email": "ada@acme.io", "code": "123456"}

    statuses = [
        (await client.post("/api/v1/notifications/verify", json=payload)).status_code
        for _ in range(6)
    ]

    assert statuses[:5] == [422] * 5
    assert statuses[5] == 429
