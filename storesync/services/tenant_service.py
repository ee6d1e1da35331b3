import logging
from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.exceptions import TenantConflictError, TenantNotFoundError
from storesync.models.customer import Customer
from storesync.models.order import Order
from storesync.models.product import Product
from storesync.models.tenant import Tenant
from storesync.services.shopify.utils import normalize_shop_domain

logger = logging.getLogger(__name__)


class TenantService:
    """Tenant lookups and Shopify credential management."""

    def __init__(self, db_session: AsyncSession):
        self.session = db_session

    async def create_tenant(
        self,
        name: str,
        shop_domain: str,
        access_token: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ) -> Tenant:
        """
        Onboard a tenant for a Shopify store.

        Raises:
            ValueError: shop_domain is empty
            TenantConflictError: the normalised domain already belongs to a tenant
        """
        domain = normalize_shop_domain(shop_domain)
        if not domain:
            raise ValueError("A Shopify shop domain is required")

        if await self.get_tenant_by_domain(domain) is not None:
            raise TenantConflictError(f"A tenant already exists for {domain}")

        tenant = Tenant(
            name=name,
            shop_domain=domain,
            access_token=access_token or None,
            webhook_secret=webhook_secret or None,
        )
        self.session.add(tenant)
        try:
            await self.session.commit()
        except IntegrityError:
            # Lost a race with a concurrent onboarding of the same domain
            await self.session.rollback()
            raise TenantConflictError(f"A tenant already exists for {domain}")

        await self.session.refresh(tenant)
        logger.info(f"Created tenant {tenant.id} ({tenant.name}) for {domain}")
        return tenant

    async def get_tenant(self, tenant_id: int) -> Tenant:
        tenant = await self.session.get(Tenant, tenant_id)
        if tenant is None:
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def get_tenant_by_domain(self, shop_domain: Optional[str]) -> Optional[Tenant]:
        """Find the tenant owning a shop domain, in any of the forms Shopify or a user may send it."""
        domain = normalize_shop_domain(shop_domain)
        if not domain:
            return None
        result = await self.session.execute(select(Tenant).where(Tenant.shop_domain == domain))
        return result.scalar_one_or_none()

    async def update_credentials(
        self,
        tenant: Tenant,
        access_token: Optional[str] = None,
        webhook_secret: Optional[str] = None,
    ) -> Tenant:
        """Replace the API token and/or webhook secret. Values that are not supplied are kept."""
        if access_token:
            tenant.access_token = access_token
        if webhook_secret:
            tenant.webhook_secret = webhook_secret

        await self.session.commit()
        logger.info(
            f"Updated Shopify credentials for tenant {tenant.id} "
            f"(token={'yes' if access_token else 'no'}, webhook_secret={'yes' if webhook_secret else 'no'})"
        )
        return tenant

    async def get_sync_status(self, tenant_id: int) -> Dict[str, int]:
        """Row counts of each synced entity for a tenant."""
        counts = {}
        for key, model in (("customers", Customer), ("products", Product), ("orders", Order)):
            result = await self.session.execute(
                select(func.count()).select_from(model).where(model.tenant_id == tenant_id)
            )
            counts[key] = result.scalar_one()
        return counts
