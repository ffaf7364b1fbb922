# Overview: Notification records addressed to customers, and channel seeding.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Notification, NotificationChannel
from ..models.communications import NOTIFICATION_STATUS_PENDING
from ..validation import BadRequestError, ValidationError, parse_positive_int, require_fields
from . import customer_service
from .identifier_service import next_id
from .transaction import atomic
from app.time_utils import utcnow


DEFAULT_CHANNELS = (
    (1, "email"),
    (2, "sms"),
)

MAX_MESSAGE_LENGTH = 150


def create_notification(data: dict, *, commit: bool = True) -> dict:
    """
    Record a notification for the customer data["rut"].

    Status defaults to "pending". Raises BadRequestError for an unknown
    customer or channel.
    """
    require_fields(data, "rut", "channel_id", "message")
    rut = customer_service.require_rut(data)
    channel_id = parse_positive_int(data["channel_id"], "channel_id")
    message = str(data["message"]).strip()
    if len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"message exceeds max length {MAX_MESSAGE_LENGTH}")
    status = str(data.get("status") or NOTIFICATION_STATUS_PENDING).strip()

    with atomic("Create notification", commit=commit):
        if customer_service.find_customer_by_rut(rut) is None:
            raise BadRequestError(f"Customer {rut} does not exist")
        if db.session.get(NotificationChannel, channel_id) is None:
            raise BadRequestError(f"Notification channel {channel_id} does not exist")

        notification = Notification(
            id=next_id(Notification),
            rut=rut,
            channel_id=channel_id,
            message=message,
            creation_date=utcnow(),
            status=status,
        )
        db.session.add(notification)
        db.session.flush()

    current_app.logger.info("Notification created: id=%s rut=%s", notification.id, rut)
    return notification.to_dict()


def find_notifications_by_rut(rut: str) -> list[dict]:
    notifications = (
        db.session.query(Notification)
        .filter(Notification.rut == rut)
        .order_by(Notification.creation_date.desc(), Notification.id.desc())
        .all()
    )
    return [n.to_dict() for n in notifications]


def create_default_channels() -> list[NotificationChannel]:
    """Create the standard notification channels if they don't exist."""
    channels = []
    for channel_id, name in DEFAULT_CHANNELS:
        existing = db.session.get(NotificationChannel, channel_id)
        if existing is None:
            existing = NotificationChannel(id=channel_id, name=name)
            db.session.add(existing)
        channels.append(existing)
    db.session.commit()
    return channels
