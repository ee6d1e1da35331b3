from sqlalchemy import (
    Column,
    Integer,
    String,
    Numeric,
    DateTime,
    Boolean,
    ForeignKey,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from storesync.database import Base


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint("tenant_id", "external_id", name="uq_orders_tenant_external"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    external_id = Column(String(64), nullable=False)  # Shopify order id
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)  # null for guest orders

    order_number = Column(String(64))  # 1001, or the #1001 name

    # Financial details
    total_price = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    subtotal_price = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    total_tax = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    total_discounts = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    currency = Column(String(8))

    # Order status, opaque Shopify values
    financial_status = Column(String(32))  # pending, paid, refunded, etc.
    fulfillment_status = Column(String(32))  # fulfilled, partial, null
    tags = Column(String)

    # Dates
    order_date = Column(DateTime)
    processed_at = Column(DateTime)
    cancelled_at = Column(DateTime)
    platform_updated_at = Column(DateTime)

    # Set once this order's total has been added to its customer's spend
    aggregate_applied = Column(Boolean, nullable=False, default=False, server_default=text("false"))

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.position",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return f"<Order(id={self.id}, tenant_id={self.tenant_id}, external_id='{self.external_id}')>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)  # null until the product is synced

    external_line_item_id = Column(String(64))
    position = Column(Integer, nullable=False, default=0)
    title = Column(String(255))
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    total_discount = Column(Numeric(12, 2), nullable=False, default=0)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(id={self.id}, order_id={self.order_id}, title='{self.title}')>"
