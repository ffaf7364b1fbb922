from .customers import Customer
from .auth import User, UserType, RevokedToken
from .catalog import Category, Supplier, Product
from .orders import Order, OrderDetail
from .communications import NotificationChannel, Notification, Otp
from .sequences import IdSequence

__all__ = [
    'Customer',
    'User', 'UserType', 'RevokedToken',
    'Category', 'Supplier', 'Product',
    'Order', 'OrderDetail',
    'NotificationChannel', 'Notification', 'Otp',
    'IdSequence',
]
