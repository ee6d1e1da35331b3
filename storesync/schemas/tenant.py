from typing import Optional

from pydantic import Field, model_validator

from .base import BaseSchema


class TenantRead(BaseSchema):
    """Tenant as exposed over the API. Credentials are reported, never returned."""
    id: int
    name: str
    shop_domain: str
    is_active: bool
    has_access_token: bool = False
    has_webhook_secret: bool = False

    @classmethod
    def from_tenant(cls, tenant) -> "TenantRead":
        return cls(
            id=tenant.id,
            name=tenant.name,
            shop_domain=tenant.shop_domain,
            is_active=tenant.is_active,
            has_access_token=bool(tenant.access_token),
            has_webhook_secret=bool(tenant.webhook_secret),
        )


class TenantCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    shop_domain: str = Field(..., min_length=1, max_length=255)
    access_token: Optional[str] = None
    webhook_secret: Optional[str] = None


class TenantCredentialsUpdate(BaseSchema):
    access_token: Optional[str] = None
    webhook_secret: Optional[str] = None

    @model_validator(mode="after")
    def require_one(self):
        if not self.access_token and not self.webhook_secret:
            raise ValueError("Provide access_token and/or webhook_secret")
        return self


class SyncStatusRead(BaseSchema):
    tenant: TenantRead
    customers: int
    products: int
    orders: int
