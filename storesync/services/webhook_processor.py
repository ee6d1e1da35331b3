"""
Processing of inbound Shopify webhooks.

Steps, in order:
    1. resolve the tenant from the X-Shopify-Shop-Domain header
    2. verify the X-Shopify-Hmac-Sha256 signature against the raw body
    3. parse the body
    4. skip deliveries whose X-Shopify-Webhook-Id was already processed
    5. route by topic to the reconciliation service
    6. record the delivery and commit, all in one transaction

Tenant and signature failures are raised before anything is written.
Processing is synchronous within the request; Shopify's own redelivery
policy is the retry mechanism for failures.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.config import Settings, get_settings
from storesync.core.enums import ResourceType, WebhookTopic
from storesync.core.exceptions import (
    SignatureMismatchError,
    TenantNotFoundError,
    UnsupportedTopicError,
    WebhookPayloadError,
)
from storesync.core.security import verify_webhook_signature
from storesync.models.tenant import Tenant
from storesync.models.webhook import WebhookEvent
from storesync.services.reconciliation_service import ReconciliationService
from storesync.services.tenant_service import TenantService

logger = logging.getLogger(__name__)

# Shopify retries a failed delivery for up to 48 hours
REDELIVERY_WINDOW = timedelta(hours=48)


@dataclass
class WebhookResult:
    topic: str
    tenant_id: int
    entity_id: Optional[int] = None
    duplicate: bool = False
    verified: bool = True


class WebhookProcessor:

    def __init__(self, db_session: AsyncSession, settings: Settings = None):
        self.session = db_session
        self.settings = settings or get_settings()
        self.reconciler = ReconciliationService(db_session)
        self.tenants = TenantService(db_session)

    async def process(
        self,
        topic: str,
        shop_domain: Optional[str],
        signature: Optional[str],
        raw_body: bytes,
        webhook_id: Optional[str] = None,
    ) -> WebhookResult:
        """
        Verify and apply one webhook delivery.

        Raises:
            TenantNotFoundError: no tenant owns shop_domain
            SignatureMismatchError: missing or wrong signature
            WebhookPayloadError: body is not a JSON object with an id
            UnsupportedTopicError: no handler for the topic
        """
        tenant = await self.tenants.get_tenant_by_domain(shop_domain)
        if tenant is None:
            logger.warning(f"Webhook {topic} for unknown shop {shop_domain!r}")
            raise TenantNotFoundError(f"No tenant for shop domain {shop_domain!r}")

        # A rollback expires the tenant instance; keep what is logged later
        tenant_id, tenant_name = tenant.id, tenant.name

        verified = self._authenticate(tenant, raw_body, signature, topic)
        webhook_topic = self._parse_topic(topic)
        payload = self._parse_body(raw_body)

        result = WebhookResult(topic=webhook_topic.value, tenant_id=tenant_id, verified=verified)

        try:
            if webhook_id and not await self._claim_delivery(tenant_id, webhook_id, webhook_topic, payload):
                logger.info(f"Duplicate webhook {webhook_id} ({webhook_topic.value}) for tenant {tenant_id}, skipping")
                result.duplicate = True
                return result

            result.entity_id = await self._dispatch(tenant_id, webhook_topic, payload)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(f"{webhook_topic.value} {payload.get('id')} processed for tenant {tenant_name}")
        return result

    def _authenticate(self, tenant: Tenant, raw_body: bytes, signature: Optional[str], topic: str) -> bool:
        """Returns whether the delivery was signature-verified."""
        if not tenant.webhook_secret:
            if not self.settings.ALLOW_UNVERIFIED_WEBHOOKS:
                logger.warning(f"Rejected {topic} for tenant {tenant.id}: no webhook secret configured")
                raise SignatureMismatchError(
                    f"Tenant {tenant.id} has no webhook secret and unverified webhooks are disabled"
                )
            logger.warning(f"Accepting UNVERIFIED {topic} for tenant {tenant.id}: no webhook secret configured")
            return False

        if not verify_webhook_signature(raw_body, signature, tenant.webhook_secret):
            logger.warning(f"Rejected {topic} for tenant {tenant.id}: signature mismatch")
            raise SignatureMismatchError("Webhook signature mismatch")
        return True

    def _parse_topic(self, topic: str) -> WebhookTopic:
        try:
            return WebhookTopic(topic)
        except ValueError:
            raise UnsupportedTopicError(f"Unsupported webhook topic {topic!r}")

    def _parse_body(self, raw_body: bytes) -> Dict[str, Any]:
        try:
            payload = json.loads(raw_body)
        except (TypeError, ValueError) as e:
            raise WebhookPayloadError(f"Webhook body is not valid JSON: {str(e)}")
        if not isinstance(payload, dict) or payload.get("id") in (None, ""):
            raise WebhookPayloadError("Webhook body must be a JSON object with an id")
        return payload

    async def _claim_delivery(
        self, tenant_id: int, webhook_id: str, topic: WebhookTopic, payload: Dict[str, Any]
    ) -> bool:
        """
        Insert the ledger row for this delivery. False when the id is already
        recorded (including by a concurrent delivery that committed first).
        """
        self.session.add(
            WebhookEvent(
                tenant_id=tenant_id,
                webhook_id=webhook_id,
                topic=topic.value,
                entity_external_id=str(payload.get("id")),
            )
        )
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            return False
        return True

    async def prune_ledger(self, older_than: timedelta = REDELIVERY_WINDOW) -> int:
        """
        Delete ledger rows processed before now - older_than, for all tenants.

        Shopify stops redelivering after REDELIVERY_WINDOW, so older rows no
        longer guard anything. Returns the number of rows deleted.
        """
        cutoff = datetime.now(timezone.utc).replace(tzinfo=None) - older_than
        result = await self.session.execute(delete(WebhookEvent).where(WebhookEvent.processed_at < cutoff))
        await self.session.commit()
        logger.info(f"Pruned {result.rowcount} webhook ledger rows processed before {cutoff}")
        return result.rowcount

    async def _dispatch(self, tenant_id: int, topic: WebhookTopic, payload: Dict[str, Any]) -> int:
        resource = topic.resource
        if resource == ResourceType.CUSTOMERS:
            return await self.reconciler.reconcile_customer(tenant_id, payload)
        if resource == ResourceType.PRODUCTS:
            return await self.reconciler.reconcile_product(tenant_id, payload)
        # Push path: the referenced customer/products may not be synced yet
        return await self.reconciler.reconcile_order(
            tenant_id, payload, create_missing_references=True, apply_aggregate=True
        )
