# storesync/routes/platforms/shopify.py
"""
API routes for Shopify full sync.

This module provides endpoints for:
- Syncing customers, products or orders from a tenant's store
- Syncing everything in dependency order
- Row counts of what has been synced
- Testing a tenant's Shopify credentials
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.enums import ResourceType
from storesync.core.exceptions import AuthenticationError, ExternalServiceError, TenantNotFoundError
from storesync.dependencies import get_db
from storesync.models.tenant import Tenant
from storesync.schemas.sync import ConnectionTestRead, SyncAllRead, SyncSummaryRead
from storesync.schemas.tenant import SyncStatusRead, TenantRead
from storesync.services.shopify.client import ShopifyClient
from storesync.services.sync_service import FullSyncService
from storesync.services.tenant_service import TenantService

router = APIRouter(prefix="/api/tenants/{tenant_id}", tags=["shopify"])

logger = logging.getLogger(__name__)


async def _load_tenant(tenant_id: int, db: AsyncSession) -> Tenant:
    try:
        return await TenantService(db).get_tenant(tenant_id)
    except TenantNotFoundError:
        raise HTTPException(status_code=404, detail="Tenant not found")


def _client_for(tenant: Tenant) -> ShopifyClient:
    if not tenant.access_token:
        raise HTTPException(status_code=400, detail="Shopify credentials not configured")
    return ShopifyClient.for_tenant(tenant)


def _raise_for_shopify_error(e: Exception, include_resume_cursor: bool = False):
    if isinstance(e, AuthenticationError):
        status_code, message = 401, "Invalid Shopify access token"
    else:
        status_code, message = 502, f"Shopify request failed: {str(e)}"

    if not include_resume_cursor:
        raise HTTPException(status_code=status_code, detail=message)

    resource_type = getattr(e, "resource_type", None)
    raise HTTPException(
        status_code=status_code,
        detail={
            "message": message,
            "resource_type": resource_type.value if resource_type else None,
            "resume_cursor": getattr(e, "resume_cursor", None),
        },
    )


@router.post("/sync/{resource_type}", response_model=SyncSummaryRead)
async def sync_resource(
    tenant_id: int,
    resource_type: ResourceType,
    cursor: Optional[str] = Query(None, description="Resume from the resume_cursor of an aborted run"),
    db: AsyncSession = Depends(get_db),
):
    """Pull every item of one resource from Shopify and reconcile it."""
    tenant = await _load_tenant(tenant_id, db)
    client = _client_for(tenant)

    try:
        summary = await FullSyncService(db, client).sync_resource(tenant_id, resource_type, start_cursor=cursor)
    except (AuthenticationError, ExternalServiceError) as e:
        _raise_for_shopify_error(e, include_resume_cursor=True)

    return SyncSummaryRead.from_summary(summary)


@router.post("/sync", response_model=SyncAllRead)
async def sync_all(tenant_id: int, db: AsyncSession = Depends(get_db)):
    """Sync customers, products and orders, in that order."""
    tenant = await _load_tenant(tenant_id, db)
    client = _client_for(tenant)

    try:
        summaries = await FullSyncService(db, client).sync_all(tenant_id)
    except (AuthenticationError, ExternalServiceError) as e:
        _raise_for_shopify_error(e, include_resume_cursor=True)

    return SyncAllRead(results=[SyncSummaryRead.from_summary(s) for s in summaries.values()])


@router.get("/sync/status", response_model=SyncStatusRead)
async def sync_status(tenant_id: int, db: AsyncSession = Depends(get_db)):
    tenant = await _load_tenant(tenant_id, db)
    counts = await TenantService(db).get_sync_status(tenant_id)
    return SyncStatusRead(tenant=TenantRead.from_tenant(tenant), **counts)


@router.post("/shopify/test-connection", response_model=ConnectionTestRead)
async def test_connection(tenant_id: int, db: AsyncSession = Depends(get_db)):
    """Check the tenant's token by fetching shop details."""
    tenant = await _load_tenant(tenant_id, db)
    client = _client_for(tenant)

    try:
        shop = await client.get_shop()
    except (AuthenticationError, ExternalServiceError) as e:
        logger.error(f"Shopify connection test failed for tenant {tenant_id}: {str(e)}")
        _raise_for_shopify_error(e)

    return ConnectionTestRead(
        success=True,
        shop={key: shop.get(key) for key in ("name", "domain", "email", "currency", "timezone")},
    )
