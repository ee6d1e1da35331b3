# storesync/services/sync_service.py
"""
Full sync: pull every customer, product or order of a tenant's store and
reconcile it locally.

Pages are consumed one at a time and every item on a page is reconciled
before the next page is requested, so memory is bounded by the page size.
Items are reconciled sequentially (Shopify rate limits) and each one is
committed on its own; a failing item is rolled back, logged and skipped.
API failures (bad credentials, network, 5xx) abort the resource's run.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.enums import ResourceType, SYNC_ORDER
from storesync.core.exceptions import ShopifyAPIError
from storesync.services.reconciliation_service import ReconciliationService
from storesync.services.shopify.client import ShopifyClient

logger = logging.getLogger(__name__)

# Keep at most this many per-item error messages on a summary
MAX_REPORTED_ERRORS = 50


@dataclass
class SyncSummary:
    """Outcome of one resource's full sync."""
    resource_type: ResourceType
    fetched: int = 0
    reconciled: int = 0
    failed: int = 0
    pages: int = 0
    errors: List[str] = field(default_factory=list)
    # page_info of the next page still to be processed; None once the last page is done
    last_cursor: Optional[str] = None
    duration_seconds: float = 0.0

    def record_error(self, message: str) -> None:
        self.failed += 1
        if len(self.errors) < MAX_REPORTED_ERRORS:
            self.errors.append(message)


class FullSyncService:
    """Drives ShopifyClient over a resource and feeds each item to ReconciliationService."""

    def __init__(self, db_session: AsyncSession, client: ShopifyClient):
        self.session = db_session
        self.client = client
        self.reconciler = ReconciliationService(db_session)

    def _reconciler_for(self, resource_type: ResourceType):
        if resource_type == ResourceType.CUSTOMERS:
            return self.reconciler.reconcile_customer
        if resource_type == ResourceType.PRODUCTS:
            return self.reconciler.reconcile_product

        async def reconcile_order(tenant_id, data):
            # Pull path: look references up only, leave aggregates to the customer snapshot
            return await self.reconciler.reconcile_order(
                tenant_id, data, create_missing_references=False, apply_aggregate=False
            )

        return reconcile_order

    async def sync_resource(
        self, tenant_id: int, resource_type: ResourceType, start_cursor: Optional[str] = None
    ) -> SyncSummary:
        """
        Sync every item of one resource for a tenant.

        Args:
            start_cursor: Resume from this page_info instead of the first page,
                e.g. the resume_cursor of an aborted run

        Returns:
            SyncSummary with fetched / reconciled / failed counts

        Raises:
            AuthenticationError, ExternalServiceError: when a page cannot be fetched.
                The error carries resume_cursor for restarting the run.
        """
        resource_type = ResourceType(resource_type)
        reconcile = self._reconciler_for(resource_type)
        summary = SyncSummary(resource_type=resource_type, last_cursor=start_cursor)
        start_time = datetime.now()

        logger.info(
            f"Starting {resource_type.value} sync for tenant {tenant_id} ({self.client.shop_domain})"
            + (f" from cursor {start_cursor}" if start_cursor else "")
        )

        try:
            async for page in self.client.iter_pages(resource_type, start_cursor=start_cursor):
                summary.pages += 1
                summary.fetched += len(page.items)

                for item in page.items:
                    try:
                        await reconcile(tenant_id, item)
                        await self.session.commit()
                        summary.reconciled += 1
                    except Exception as e:
                        await self.session.rollback()
                        item_id = item.get("id", "unknown") if isinstance(item, dict) else "unknown"
                        logger.error(f"Error syncing {resource_type.value[:-1]} {item_id} for tenant {tenant_id}: {str(e)}")
                        summary.record_error(f"{item_id}: {str(e)}")

                summary.last_cursor = page.next_cursor
                logger.info(
                    f"{resource_type.value} page {summary.pages}: "
                    f"{summary.reconciled}/{summary.fetched} reconciled so far"
                )
        except ShopifyAPIError as e:
            e.resource_type = resource_type
            e.resume_cursor = summary.last_cursor
            logger.exception(
                f"{resource_type.value} sync for tenant {tenant_id} aborted after "
                f"{summary.pages} pages ({summary.reconciled} items reconciled); "
                f"resume cursor: {summary.last_cursor or '<first page>'}"
            )
            raise

        summary.duration_seconds = (datetime.now() - start_time).total_seconds()
        logger.info(
            f"Finished {resource_type.value} sync for tenant {tenant_id}: "
            f"{summary.reconciled}/{summary.fetched} reconciled, {summary.failed} failed "
            f"in {summary.duration_seconds:.1f}s"
        )
        return summary

    async def sync_all(self, tenant_id: int) -> Dict[ResourceType, SyncSummary]:
        """Sync customers, products, then orders so order references resolve."""
        results = {}
        for resource_type in SYNC_ORDER:
            results[resource_type] = await self.sync_resource(tenant_id, resource_type)
        return results
