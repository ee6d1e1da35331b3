"""
Shared enums and constants used across the application.
"""

from enum import Enum


class ResourceType(str, Enum):
    """Shopify REST resources that can be fully synced."""
    CUSTOMERS = "customers"
    PRODUCTS = "products"
    ORDERS = "orders"

    @property
    def endpoint(self) -> str:
        return f"{self.value}.json"


# Customers first so that order -> customer lookups resolve, products before
# orders for the same reason with line items.
SYNC_ORDER = (ResourceType.CUSTOMERS, ResourceType.PRODUCTS, ResourceType.ORDERS)


class WebhookTopic(str, Enum):
    CUSTOMERS_CREATE = "customers/create"
    CUSTOMERS_UPDATE = "customers/update"
    PRODUCTS_CREATE = "products/create"
    PRODUCTS_UPDATE = "products/update"
    ORDERS_CREATE = "orders/create"
    ORDERS_UPDATED = "orders/updated"
    ORDERS_PAID = "orders/paid"
    ORDERS_CANCELLED = "orders/cancelled"

    @property
    def resource(self) -> ResourceType:
        return ResourceType(self.value.split("/")[0])


# Shopify financial_status values are opaque strings; only this one drives
# the customer spend aggregate.
FINANCIAL_STATUS_PAID = "paid"
