# Overview: Who may place orders on behalf of customers.

from __future__ import annotations

from abc import ABC, abstractmethod

from flask import current_app

from ..extensions import db
from ..models import User


class OrderAuthorizationPolicy(ABC):
    """Decides whether a user may create orders."""

    @abstractmethod
    def may_create_orders(self, user_id: int) -> bool:
        ...


class UserTypeOrderPolicy(OrderAuthorizationPolicy):
    """
    Allow users of one user type (ORDER_CREATOR_USER_TYPE_ID, the
    administrator type by default).
    """

    def __init__(self, user_type_id: int | None = None):
        self.user_type_id = user_type_id

    def may_create_orders(self, user_id: int) -> bool:
        allowed_type = self.user_type_id
        if allowed_type is None:
            allowed_type = current_app.config["ORDER_CREATOR_USER_TYPE_ID"]
        user = db.session.get(User, user_id)
        return user is not None and user.user_type_id == allowed_type


def get_order_policy() -> OrderAuthorizationPolicy:
    """Policy registered on the app, or the user-type default."""
    return current_app.extensions.get("order_policy") or UserTypeOrderPolicy()
