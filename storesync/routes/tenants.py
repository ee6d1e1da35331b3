from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.exceptions import TenantConflictError, TenantNotFoundError
from storesync.dependencies import get_db
from storesync.schemas.tenant import TenantCreate, TenantCredentialsUpdate, TenantRead
from storesync.services.tenant_service import TenantService

router = APIRouter(prefix="/api/tenants", tags=["tenants"])


@router.post("", response_model=TenantRead, status_code=201)
async def create_tenant(payload: TenantCreate, db: AsyncSession = Depends(get_db)):
    """Onboard a tenant. The shop domain is stored as ``<shop>.myshopify.com``."""
    try:
        tenant = await TenantService(db).create_tenant(
            name=payload.name,
            shop_domain=payload.shop_domain,
            access_token=payload.access_token,
            webhook_secret=payload.webhook_secret,
        )
    except TenantConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return TenantRead.from_tenant(tenant)


@router.get("/{tenant_id}", response_model=TenantRead)
async def get_tenant(tenant_id: int, db: AsyncSession = Depends(get_db)):
    try:
        tenant = await TenantService(db).get_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=404, detail="Tenant not found")
    return TenantRead.from_tenant(tenant)


@router.put("/{tenant_id}/credentials", response_model=TenantRead)
async def update_credentials(
    tenant_id: int,
    credentials: TenantCredentialsUpdate,
    db: AsyncSession = Depends(get_db),
):
    """Set the Shopify access token and/or webhook secret."""
    service = TenantService(db)
    try:
        tenant = await service.get_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=404, detail="Tenant not found")

    tenant = await service.update_credentials(
        tenant,
        access_token=credentials.access_token,
        webhook_secret=credentials.webhook_secret,
    )
    return TenantRead.from_tenant(tenant)
