from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


NOTIFICATION_STATUS_PENDING = "pending"

OTP_STATUS_ACTIVE = "active"
OTP_STATUS_USED = "used"
OTP_STATUS_EXPIRED = "expired"


class NotificationChannel(db.Model):
    __tablename__ = "notification_channels"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    name = db.Column(db.String(50), nullable=False, unique=True)

    def to_dict(self) -> dict:
        return {"channel_id": self.id, "name": self.name}


class Notification(db.Model):
    """Message addressed to a customer over a channel."""
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    rut = db.Column(db.String(20), db.ForeignKey("customers.rut"), nullable=False, index=True)
    channel_id = db.Column(db.Integer, db.ForeignKey("notification_channels.id"), nullable=False)
    message = db.Column(db.String(150), nullable=False)
    creation_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    sending_date = db.Column(db.DateTime(timezone=True), nullable=True)
    status = db.Column(db.String(50), nullable=False, default=NOTIFICATION_STATUS_PENDING)

    channel = db.relationship("NotificationChannel")
    customer = db.relationship("Customer", backref=db.backref("notifications", lazy=True))

    def to_dict(self) -> dict:
        return {
            "notification_id": self.id,
            "rut": self.rut,
            "channel_id": self.channel_id,
            "message": self.message,
            "creation_date": to_utc_z(self.creation_date),
            "sending_date": to_utc_z(self.sending_date),
            "status": self.status,
            "channel": self.channel.to_dict() if self.channel else None,
        }


class Otp(db.Model):
    """
    One-time verification code.

    At most one ACTIVE code per user: issuing a new one expires the rest.
    """
    __tablename__ = "otps"
    __table_args__ = (
        db.Index("ix_otps_user_status", "user_id", "status"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    code = db.Column(db.String(6), nullable=False)
    expiration_date = db.Column(db.DateTime(timezone=True), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=OTP_STATUS_ACTIVE)
    creation_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "otp_id": self.id,
            "user_id": self.user_id,
            "status": self.status,
            "expiration_date": to_utc_z(self.expiration_date),
            "creation_date": to_utc_z(self.creation_date),
        }
