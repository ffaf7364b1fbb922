from __future__ import annotations

from ..extensions import db


PROFILE_COMPLETE = "COMPLETE"
PROFILE_INCOMPLETE = "INCOMPLETE"


class Customer(db.Model):
    """
    Shipping/contact profile keyed by national id (RUT).

    INCOMPLETE rows are placeholders created while placing an order for an
    unknown RUT; only the key is known. customer_service completes them
    when profile data arrives.
    """
    __tablename__ = "customers"

    rut = db.Column(db.String(20), primary_key=True)
    name = db.Column(db.String(100), nullable=True)
    phone = db.Column(db.String(20), nullable=True)
    email = db.Column(db.String(100), nullable=True)
    address = db.Column(db.String(255), nullable=True)

    profile_status = db.Column(db.String(16), nullable=False, default=PROFILE_COMPLETE)

    @property
    def is_incomplete(self) -> bool:
        return self.profile_status == PROFILE_INCOMPLETE

    def to_dict(self) -> dict:
        return {
            "rut": self.rut,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "profile_status": self.profile_status,
        }

    def to_summary(self) -> dict:
        return {"rut": self.rut, "name": self.name, "email": self.email}
