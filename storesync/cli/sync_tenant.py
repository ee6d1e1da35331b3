# storesync/cli/sync_tenant.py
import asyncio
import logging
from datetime import datetime

import click

from storesync.core.enums import ResourceType, SYNC_ORDER
from storesync.core.exceptions import BaseServiceError, ShopifyAPIError, SyncError, TenantNotFoundError
from storesync.core.logging_config import configure_logging
from storesync.database import async_session
from storesync.services.shopify.client import ShopifyClient
from storesync.services.sync_service import FullSyncService
from storesync.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

RESOURCE_CHOICES = [resource.value for resource in ResourceType] + ["all"]


@click.command()
@click.option('--shop-domain', required=True, help='Tenant shop domain, e.g. my-store.myshopify.com')
@click.option('--resource', type=click.Choice(RESOURCE_CHOICES), default='all', show_default=True,
              help='Resource to sync')
@click.option('--cursor', default=None,
              help='Resume a single-resource sync from the cursor reported by an aborted run')
@click.option('--log-level', default=None, help='Override LOG_LEVEL')
def sync_tenant(shop_domain, resource, cursor, log_level):
    """Run a full Shopify sync for one tenant"""
    if cursor and resource == "all":
        raise click.UsageError("--cursor needs a single --resource")

    configure_logging(log_level)

    start_time = datetime.now()
    logger.info(f"Starting {resource} sync for {shop_domain} at {start_time}")

    try:
        summaries = asyncio.run(run_sync(shop_domain, resource, cursor))
    except ShopifyAPIError as e:
        logger.exception(f"Sync for {shop_domain} aborted")
        message = str(e)
        if e.resource_type is not None:
            message += f"\nResume with: --resource {e.resource_type.value}"
            if e.resume_cursor:
                message += f" --cursor {e.resume_cursor}"
        raise click.ClickException(message)
    except BaseServiceError as e:
        logger.exception(f"Sync for {shop_domain} failed")
        raise click.ClickException(str(e))

    click.echo("\nSync completed!")
    for summary in summaries:
        click.echo(f"{summary.resource_type.value}:")
        click.echo(f"  Fetched: {summary.fetched}")
        click.echo(f"  Reconciled: {summary.reconciled}")
        click.echo(f"  Failed: {summary.failed}")
        click.echo(f"  Pages: {summary.pages}")
        for error in summary.errors[:10]:
            click.echo(f"    - {error}")

    logger.info(f"Completed sync for {shop_domain} in {datetime.now() - start_time}")


async def run_sync(shop_domain, resource="all", cursor=None):
    """Sync one resource, or all of them in dependency order, for the tenant owning shop_domain."""
    async with async_session() as session:
        tenant_service = TenantService(session)
        tenant = await tenant_service.get_tenant_by_domain(shop_domain)
        if tenant is None:
            raise TenantNotFoundError(f"No tenant for shop domain {shop_domain!r}")
        if not tenant.access_token:
            raise SyncError(f"Tenant {tenant.name} has no Shopify access token")

        tenant_id = tenant.id
        client = ShopifyClient.for_tenant(tenant)
        service = FullSyncService(session, client)

        resources = SYNC_ORDER if resource == "all" else (ResourceType(resource),)
        summaries = []
        for resource_type in resources:
            summaries.append(await service.sync_resource(tenant_id, resource_type, start_cursor=cursor))
        return summaries


if __name__ == '__main__':
    sync_tenant()
