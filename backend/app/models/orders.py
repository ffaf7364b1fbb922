from __future__ import annotations

from ..extensions import db
from app.time_utils import to_utc_z, utcnow


ORDER_STATUS_PENDING = "pending"


class Order(db.Model):
    """
    Customer order.

    total_amount is the sum of its details' subtotals, fixed at creation.
    status is free-form; "pending" on creation.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_rut_status", "rut", "status"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    rut = db.Column(db.String(20), db.ForeignKey("customers.rut"), nullable=False, index=True)
    order_date = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(50), nullable=False, default=ORDER_STATUS_PENDING)
    shipping_address = db.Column(db.String(255), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    customer = db.relationship("Customer", backref=db.backref("orders", lazy=True))
    user = db.relationship("User")
    details = db.relationship(
        "OrderDetail",
        back_populates="order",
        lazy=True,
        order_by="OrderDetail.id",
    )

    def to_dict(self) -> dict:
        return {
            "order_id": self.id,
            "rut": self.rut,
            "order_date": to_utc_z(self.order_date),
            "total_amount": self.total_amount,
            "status": self.status,
            "shipping_address": self.shipping_address,
            "user_id": self.user_id,
            "customer": self.customer.to_summary() if self.customer else None,
            "order_details": [d.to_dict() for d in self.details],
        }


class OrderDetail(db.Model):
    """One product line of an order with its price snapshot."""
    __tablename__ = "order_details"

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    subtotal = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="details")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "order_detail_id": self.id,
            "order_id": self.order_id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "subtotal": self.subtotal,
            "product": {
                "product_id": self.product.id,
                "name": self.product.name,
                "image_url": self.product.image_url,
                "price": self.product.price,
            } if self.product else None,
        }
