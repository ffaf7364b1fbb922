from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


ADMINISTRATOR_USER_TYPE_ID = 1
CUSTOMER_USER_TYPE_ID = 2


class UserType(db.Model):
    """Account classification (administrator, customer)."""
    __tablename__ = "user_types"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(64), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


class User(db.Model):
    """
    Credentialed account.

    Ids are allocated by identifier_service, not by the database.
    The bcrypt hash lives in password_hash and is never serialized.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_users_email"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(100), nullable=True)
    rut = db.Column(db.String(20), db.ForeignKey("customers.rut"), nullable=True, index=True)
    email = db.Column(db.String(100), nullable=False)
    phone_number = db.Column(db.String(20), nullable=True)

    password_hash = db.Column(db.String(255), nullable=True)

    register_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    is_verified = db.Column(db.Boolean, nullable=False, default=False)

    user_type_id = db.Column(db.Integer, db.ForeignKey("user_types.id"), nullable=False)

    user_type = db.relationship("UserType")
    customer = db.relationship("Customer", backref=db.backref("users", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "rut": self.rut,
            "email": self.email,
            "phone_number": self.phone_number,
            "register_date": to_utc_z(self.register_date),
            "updated_at": to_utc_z(self.updated_at),
            "is_active": self.is_active,
            "is_verified": self.is_verified,
            "user_type_id": self.user_type_id,
        }


class RevokedToken(db.Model):
    """
    Session tokens invalidated before their natural expiry (logout).

    Keyed by the SHA-256 of the raw token so the token itself is never
    stored. Rows past expires_at are dead weight and can be purged.
    """
    __tablename__ = "revoked_tokens"

    token_hash = db.Column(db.String(64), primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False, index=True)

    def to_dict(self) -> dict:
        return {
            "token_hash": self.token_hash,
            "user_id": self.user_id,
            "revoked_at": to_utc_z(self.revoked_at),
            "expires_at": to_utc_z(self.expires_at),
        }
