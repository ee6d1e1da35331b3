from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.sql import func

from storesync.database import Base


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        UniqueConstraint("tenant_id", "external_id", name="uq_customers_tenant_external"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    external_id = Column(String(64), nullable=False)  # Shopify customer id

    email = Column(String(255))
    first_name = Column(String(255))
    last_name = Column(String(255))
    phone = Column(String(64))
    tags = Column(String)

    # Derived aggregate: overwritten by full sync with Shopify's snapshot,
    # incremented by paid-order webhooks.
    total_spent = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    orders_count = Column(Integer, nullable=False, default=0, server_default=text("0"))

    platform_created_at = Column(DateTime)
    platform_updated_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Customer(id={self.id}, tenant_id={self.tenant_id}, external_id='{self.external_id}')>"
