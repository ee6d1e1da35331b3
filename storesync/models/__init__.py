from .tenant import Tenant
from .customer import Customer
from .product import Product
from .order import Order, OrderItem
from .webhook import WebhookEvent

__all__ = [
    "Tenant",
    "Customer",
    "Product",
    "Order",
    "OrderItem",
    "WebhookEvent",
]
