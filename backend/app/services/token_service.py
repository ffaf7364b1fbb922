# Overview: Signed, time-limited session tokens (issue, decode, validate, revoke).

"""
Session tokens.

A token is an itsdangerous URL-safe timed signature over
{sub, email, iat, jti}. It is stateless: validity is the signature plus
its age (TOKEN_MAX_AGE_SECONDS, one hour by default), minus anything in
the revocation table.

jti is a random nonce so two logins in the same second never produce the
same token (revoking one must not revoke the other).
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..validation import SigningError
from . import token_blacklist_service
from app.time_utils import as_naive_utc, epoch_seconds, utcnow


TOKEN_SALT = "session-token"
BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class TokenClaims:
    sub: int
    email: str
    iat: int
    jti: str
    issued_at: datetime

    @property
    def expires_at(self) -> datetime:
        return self.issued_at + timedelta(seconds=token_max_age())


def token_max_age() -> int:
    return int(current_app.config.get("TOKEN_MAX_AGE_SECONDS", 3600))


def _serializer() -> URLSafeTimedSerializer:
    secret = current_app.config.get("TOKEN_SECRET") or current_app.config.get("SECRET_KEY")
    if not secret:
        raise SigningError("Token signing secret is not configured")
    return URLSafeTimedSerializer(secret, salt=TOKEN_SALT)


def strip_bearer(token: str) -> str:
    token = token.strip()
    if token.startswith(BEARER_PREFIX):
        return token[len(BEARER_PREFIX):].strip()
    return token


def issue_token(user_id: int, email: str) -> str:
    """
    Sign a session token for the user.

    Raises SigningError when no signing secret is configured.
    """
    payload = {
        "sub": user_id,
        "email": email,
        "iat": epoch_seconds(utcnow()),
        "jti": secrets.token_hex(8),
    }
    return _serializer().dumps(payload)


def decode_token(token: str) -> TokenClaims | None:
    """
    Verify signature and age only (revocation is not consulted).

    Returns None for malformed, tampered or expired tokens.
    """
    token = strip_bearer(token)
    if not token:
        return None
    try:
        payload, signed_at = _serializer().loads(token, max_age=token_max_age(), return_timestamp=True)
    except SignatureExpired:
        return None
    except BadSignature:
        return None

    if not isinstance(payload, dict) or not isinstance(payload.get("sub"), int):
        return None

    return TokenClaims(
        sub=payload["sub"],
        email=payload.get("email") or "",
        iat=int(payload.get("iat") or 0),
        jti=str(payload.get("jti") or ""),
        issued_at=as_naive_utc(signed_at),
    )


def validate_token(token: str) -> TokenClaims | None:
    """
    Full validation for authenticated requests.

    Returns None when the token is malformed, expired, badly signed or
    revoked.
    """
    token = strip_bearer(token)
    if not token or token_blacklist_service.is_blacklisted(token):
        return None
    return decode_token(token)


def revoke_token(token: str, user_id: int | None = None) -> bool:
    """
    Add the raw token (transport prefix stripped) to the revocation set.

    Idempotent. Tokens that do not decode are still recorded, expiring one
    token lifetime from now.
    """
    token = strip_bearer(token)
    claims = decode_token(token)
    if claims is not None:
        expires_at = claims.expires_at
        user_id = user_id if user_id is not None else claims.sub
    else:
        expires_at = utcnow() + timedelta(seconds=token_max_age())
    return token_blacklist_service.add_to_blacklist(token, expires_at=expires_at, user_id=user_id)
