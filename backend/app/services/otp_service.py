# Overview: Email one-time codes (send and verify).

"""
OTP Service

send_otp issues a 6-digit code valid OTP_EXPIRY_MINUTES (10 by default)
and mails it with the ``otp-email`` template. Issuing a code expires
every other active code of the same user, so at most one is active.

verify_otp never raises for a bad code: it answers is_valid False. A
matching code is marked used and cannot be verified twice.
"""

from __future__ import annotations

import secrets
from datetime import timedelta

from flask import current_app

from ..extensions import db, mailer
from ..mail import MailDeliveryFailed
from ..models import Otp
from ..models.communications import OTP_STATUS_ACTIVE, OTP_STATUS_EXPIRED, OTP_STATUS_USED
from ..validation import MailDeliveryError, NotFoundError, ValidationError
from .auth_service import get_user_by_email
from .identifier_service import next_id
from .transaction import atomic
from app.time_utils import utcnow


OTP_EMAIL_SUBJECT = "OTP Verification Code"
OTP_EMAIL_TEMPLATE = "otp-email"


def otp_expiry_minutes() -> int:
    return int(current_app.config.get("OTP_EXPIRY_MINUTES", 10))


def generate_otp_code() -> str:
    """Six random digits, never starting with zero."""
    return str(100000 + secrets.randbelow(900000))


def invalidate_active_otps(user_id: int) -> int:
    """Mark every active code of the user expired. Returns count updated."""
    return (
        db.session.query(Otp)
        .filter(Otp.user_id == user_id, Otp.status == OTP_STATUS_ACTIVE)
        .update({Otp.status: OTP_STATUS_EXPIRED}, synchronize_session=False)
    )


def _require_email(email) -> str:
    if not isinstance(email, str) or not email.strip():
        raise ValidationError("email is required")
    return email.strip()


def send_otp(email: str) -> dict:
    """
    Issue and mail a fresh code.

    Raises NotFoundError if no user has this email, MailDeliveryError if
    the mail could not be sent (nothing is stored in that case).
    """
    email = _require_email(email)
    user = get_user_by_email(email)
    if user is None:
        raise NotFoundError("User not found with this email")

    expiry_minutes = otp_expiry_minutes()
    code = generate_otp_code()
    now = utcnow()

    with atomic("Send OTP"):
        invalidate_active_otps(user.id)
        db.session.add(Otp(
            id=next_id(Otp),
            code=code,
            expiration_date=now + timedelta(minutes=expiry_minutes),
            user_id=user.id,
            status=OTP_STATUS_ACTIVE,
            creation_date=now,
        ))
        db.session.flush()

        try:
            mailer.send(
                email,
                OTP_EMAIL_SUBJECT,
                OTP_EMAIL_TEMPLATE,
                {"otp_code": code, "expiry_minutes": expiry_minutes},
            )
        except MailDeliveryFailed as exc:
            current_app.logger.error("Error sending email with OTP to %s: %s", email, exc)
            raise MailDeliveryError("Error sending email with OTP code") from exc

    current_app.logger.info("OTP code sent: user_id=%s", user.id)
    return {
        "message": "OTP code sent successfully",
        "email": email,
        "expires_in": expiry_minutes,
    }


def verify_otp(email: str, code: str) -> dict:
    """Check code for email; a valid code is consumed."""
    email = _require_email(email)
    if not isinstance(code, str) or not code.strip():
        raise ValidationError("code is required")

    user = get_user_by_email(email)
    if user is None:
        return {"message": "User not found", "is_valid": False}

    with atomic("Verify OTP"):
        otp = (
            db.session.query(Otp)
            .filter(
                Otp.user_id == user.id,
                Otp.code == code.strip(),
                Otp.status == OTP_STATUS_ACTIVE,
                Otp.expiration_date > utcnow(),
            )
            .order_by(Otp.id.desc())
            .first()
        )
        if otp is None:
            return {"message": "Invalid or expired OTP code", "is_valid": False}
        otp.status = OTP_STATUS_USED

    current_app.logger.info("OTP code verified: user_id=%s", user.id)
    return {"message": "OTP code verified successfully", "is_valid": True}
