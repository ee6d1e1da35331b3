from sqlalchemy import Column, Integer, String, Boolean, DateTime, text
from sqlalchemy.sql import func

from storesync.database import Base


class Tenant(Base):
    """
    One merchant organisation and its Shopify store.

    shop_domain is always stored normalised (``<shop>.myshopify.com``) since it
    is what inbound webhooks are matched on.
    """
    __tablename__ = "tenants"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    shop_domain = Column(String(255), nullable=False, unique=True, index=True)
    access_token = Column(String(255), nullable=True)
    webhook_secret = Column(String(255), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=text("true"))

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Tenant(id={self.id}, shop_domain='{self.shop_domain}')>"
