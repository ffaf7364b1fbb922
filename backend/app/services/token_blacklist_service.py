# Overview: Persistent revocation set for session tokens.

"""
Token blacklist.

Revoked tokens are kept in the revoked_tokens table (hash only), so a
logout holds across process restarts and across every instance sharing
the database. Entries carry the token's natural expiry; after that the
signature check rejects the token anyway and the row can be purged.
"""

from __future__ import annotations

import hashlib
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import RevokedToken
from app.time_utils import utcnow


def hash_token(token: str) -> str:
    """
    SHA-256 of the raw token.

    Tokens are high-entropy, so a fast hash is enough for lookup keys.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def add_to_blacklist(token: str, expires_at: datetime, user_id: int | None = None) -> bool:
    """
    Record token as revoked.

    Idempotent: returns False if it was already present.
    """
    token_hash = hash_token(token)
    if db.session.get(RevokedToken, token_hash) is not None:
        return False

    db.session.add(RevokedToken(token_hash=token_hash, user_id=user_id, expires_at=expires_at))
    try:
        db.session.commit()
    except IntegrityError:
        # Revoked by a concurrent request between the lookup and the insert
        db.session.rollback()
        return False
    return True


def is_blacklisted(token: str) -> bool:
    return db.session.get(RevokedToken, hash_token(token)) is not None


def purge_expired(now: datetime | None = None) -> int:
    """
    Delete entries whose token has expired naturally.

    Returns count of rows deleted.
    """
    cutoff = now or utcnow()
    deleted = (
        db.session.query(RevokedToken)
        .filter(RevokedToken.expires_at < cutoff)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    return deleted


def blacklist_size() -> int:
    return db.session.query(RevokedToken).count()
