from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint, text
from sqlalchemy.sql import func

from storesync.database import Base


class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        UniqueConstraint("tenant_id", "external_id", name="uq_products_tenant_external"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    external_id = Column(String(64), nullable=False)  # Shopify product id

    title = Column(String(255))
    handle = Column(String(255))
    description = Column(String)
    vendor = Column(String(255))
    product_type = Column(String(255))
    status = Column(String(20))  # active, draft, archived
    tags = Column(String)

    # Taken from the first variant
    price = Column(Numeric(12, 2), nullable=False, default=0, server_default=text("0"))
    compare_at_price = Column(Numeric(12, 2), nullable=True)

    platform_created_at = Column(DateTime)
    platform_updated_at = Column(DateTime)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Product(id={self.id}, tenant_id={self.tenant_id}, external_id='{self.external_id}')>"
