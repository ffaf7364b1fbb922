from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


class IdSequence(db.Model):
    """
    Last primary key reserved per table.

    WHY: ids are allocated by the application (max + 1). The row is bumped
    with a compare-and-swap so two requests can never reserve the same id.
    """
    __tablename__ = "id_sequences"

    entity = db.Column(db.String(64), primary_key=True)
    last_value = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "entity": self.entity,
            "last_value": self.last_value,
            "updated_at": to_utc_z(self.updated_at),
        }
