# Overview: Order placement, listing and status changes; encapsulates the order transaction.

"""
Order Service

create_order is one unit of work: placeholder customer, order row, its
lines and the stock decrements commit together or not at all.

Preconditions are checked in order and fail with BadRequestError before
anything is written:
1. the acting user passes the order authorization policy
2. every requested product exists
3. the summed quantity per product fits its stock (NULL stock = unlimited)

Ids come from identifier_service; losing an allocation race raises
ConflictError and the whole order is rolled back.
"""

from __future__ import annotations

import math

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..formatting import format_clp, format_long_date_es, format_order_number
from ..models import Order, OrderDetail, Product
from ..models.orders import ORDER_STATUS_PENDING
from ..validation import (
    BadRequestError,
    NotFoundError,
    ServiceError,
    ValidationError,
    parse_positive_int,
    require_fields,
)
from . import auth_service, customer_service, notification_service
from .auth_service import UserCreationOutcome, UserCreationResult
from .identifier_service import next_id
from .order_policy import get_order_policy
from .transaction import atomic, lock_for_update, savepoint
from app.time_utils import parse_iso_datetime, utcnow


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def _parse_order_lines(raw_lines) -> list[tuple[int, int]]:
    if not isinstance(raw_lines, list) or not raw_lines:
        raise ValidationError("order_details must be a non-empty list")

    lines = []
    for raw in raw_lines:
        if not isinstance(raw, dict):
            raise ValidationError("Each order detail must be an object")
        product_id = parse_positive_int(raw.get("product_id"), "product_id")
        quantity = parse_positive_int(raw.get("quantity"), "quantity")
        lines.append((product_id, quantity))
    return lines


def _parse_order_date(value):
    if value in (None, ""):
        return utcnow()
    if not isinstance(value, str):
        raise ValidationError("order_date must be an ISO-8601 datetime")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError("order_date must be an ISO-8601 datetime")


def _load_products(product_ids: set[int]) -> dict[int, Product]:
    products = lock_for_update(
        db.session.query(Product).filter(Product.id.in_(product_ids))
    ).all()
    found = {p.id: p for p in products}
    missing = sorted(product_ids - set(found))
    if missing:
        raise BadRequestError(
            "One or more products do not exist",
            details={"product_ids": missing},
        )
    return found


def _validate_stock(lines: list[tuple[int, int]], products: dict[int, Product]) -> None:
    requested: dict[int, int] = {}
    for product_id, quantity in lines:
        requested[product_id] = requested.get(product_id, 0) + quantity

    insufficient = []
    for product_id, qty in requested.items():
        stock = products[product_id].stock
        if stock is not None and stock < qty:
            insufficient.append({
                "product_id": product_id,
                "requested_quantity": qty,
                "stock": stock,
            })

    if insufficient:
        raise BadRequestError(
            "Insufficient stock for one or more products",
            details={"items": insufficient},
        )


def _decrement_stock(product: Product, quantity: int) -> None:
    """Conditional decrement; never lets stock go below zero."""
    if product.stock is None:
        return
    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id, Product.stock >= quantity)
        .values(stock=Product.stock - quantity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise BadRequestError(
            f"Insufficient stock for product {product.id}",
            details={"product_id": product.id, "requested_quantity": quantity},
        )
    db.session.expire(product, ["stock"])


def create_order(data: dict, acting_user_id: int, *, commit: bool = True) -> dict:
    """
    Place an order for the customer identified by data["rut"].

    data: {rut, shipping_address, order_date?, order_details: [{product_id, quantity}]}

    Raises:
        ValidationError: malformed request
        BadRequestError: user not allowed, unknown product, insufficient stock
        ConflictError: id allocation race or duplicate key
        StorageFailureError: any other persistence failure
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    rut = customer_service.require_rut(data)
    require_fields(data, "shipping_address")
    lines = _parse_order_lines(data.get("order_details"))
    order_date = _parse_order_date(data.get("order_date"))

    with atomic("Create order", commit=commit):
        customer = customer_service.ensure_customer_placeholder(rut)

        if not get_order_policy().may_create_orders(acting_user_id):
            current_app.logger.warning("Order rejected: user %s may not create orders", acting_user_id)
            raise BadRequestError("User not found or not allowed to create orders")

        products = _load_products({product_id for product_id, _ in lines})
        _validate_stock(lines, products)

        total = sum(products[pid].price * qty for pid, qty in lines)

        order = Order(
            id=next_id(Order),
            rut=customer.rut,
            order_date=order_date,
            total_amount=total,
            status=ORDER_STATUS_PENDING,
            shipping_address=str(data["shipping_address"]).strip(),
            user_id=acting_user_id,
        )
        db.session.add(order)
        db.session.flush()

        for product_id, quantity in lines:
            product = products[product_id]
            db.session.add(OrderDetail(
                id=next_id(OrderDetail),
                order_id=order.id,
                product_id=product_id,
                quantity=quantity,
                unit_price=product.price,
                subtotal=product.price * quantity,
            ))
            db.session.flush()
            _decrement_stock(product, quantity)

    current_app.logger.info("Order created: id=%s rut=%s total=%s", order.id, order.rut, order.total_amount)
    return order.to_dict()


def find_all_orders(
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
    rut: str | None = None,
    status: str | None = None,
) -> dict:
    """Page of orders, highest id first, with optional rut/status filters."""
    page = max(page, 1)
    limit = min(max(limit, 1), MAX_PAGE_SIZE)

    query = db.session.query(Order)
    if rut:
        query = query.filter(Order.rut == rut)
    if status:
        query = query.filter(Order.status == status)

    total = query.count()
    orders = (
        query.order_by(Order.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "orders": [o.to_dict() for o in orders],
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit),
    }


def get_order(order_id: int) -> Order:
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")
    return order


def find_order_by_id(order_id: int) -> dict:
    return get_order(order_id).to_dict()


def update_order_status(order_id: int, status: str) -> dict:
    """
    Overwrite the order's status.

    Any non-blank string is accepted; there is no transition check.
    """
    if not isinstance(status, str) or not status.strip():
        raise ValidationError("status is required")
    if len(status.strip()) > 50:
        raise ValidationError("status exceeds max length 50")

    with atomic("Update order status"):
        order = get_order(order_id)
        order.status = status.strip()

    current_app.logger.info("Order %s status set to %s", order_id, order.status)
    return order.to_dict()


def _open_customer_account(customer, customer_data: dict) -> UserCreationResult:
    """
    Best-effort account for the customer of a complete order.

    Never raises: a missing password is SKIPPED, any service error
    (weak password, allocation race, duplicate key) is FAILED and its
    writes are undone through a savepoint.
    """
    email = customer_data.get("email")
    password = customer_data.get("password")
    if not password:
        current_app.logger.info("No password supplied, account not created: %s", email)
        return UserCreationResult(UserCreationOutcome.SKIPPED, reason="password not supplied")

    try:
        with savepoint():
            result = auth_service.ensure_user_with_password(
                email=email,
                password=password,
                rut=customer.rut,
                name=customer_data.get("name"),
                phone=customer_data.get("phone_number") or customer_data.get("phone"),
                commit=False,
            )
    except ServiceError as e:
        current_app.logger.warning("Account creation failed, order continues: %s (%s)", email, e.message)
        return UserCreationResult(UserCreationOutcome.FAILED, reason=e.message)

    if result.outcome is UserCreationOutcome.ALREADY_EXISTS:
        current_app.logger.info("User already exists, continuing with order creation: %s", email)
    return result


def create_complete_order(data: dict, acting_user_id: int) -> dict:
    """
    Customer, order, account and notification in one go.

    data: {customer: {rut, name?, phone?, phone_number?, email, address, password?},
           shipping_address, order_date?, order_details, notification: {channel_id, message, status?}}

    The account step is optional: an existing account, a missing or weak
    password or a failed insert are logged and the order goes ahead. Any
    failure in the order or notification step rolls back the whole call.
    Returns a display summary with Spanish date and CLP total.
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    customer_data = data.get("customer")
    notification_data = data.get("notification")
    if not isinstance(customer_data, dict):
        raise ValidationError("customer is required")
    if not isinstance(notification_data, dict):
        raise ValidationError("notification is required")
    require_fields(customer_data, "rut", "email", "address")

    with atomic("Create complete order"):
        customer = customer_service.find_or_create_customer(customer_data, commit=False)

        order = create_order(
            {
                "rut": customer.rut,
                "order_date": data.get("order_date"),
                "shipping_address": data.get("shipping_address"),
                "order_details": data.get("order_details"),
            },
            acting_user_id,
            commit=False,
        )

        account = _open_customer_account(customer, customer_data)

        notification = notification_service.create_notification(
            {
                "rut": customer.rut,
                "channel_id": notification_data.get("channel_id"),
                "message": notification_data.get("message"),
                "status": notification_data.get("status"),
            },
            commit=False,
        )

    current_app.logger.info(
        "Complete order created: customer=%s order=%s account=%s notification=%s",
        customer.rut, order["order_id"], account.outcome.value, notification["notification_id"],
    )

    placed = get_order(order["order_id"])
    return {
        "order_number": format_order_number(placed.id),
        "status": placed.status,
        "customer": customer.name or customer.rut,
        "shipping_address": placed.shipping_address,
        "order_date": format_long_date_es(placed.order_date),
        "total": format_clp(placed.total_amount),
    }
