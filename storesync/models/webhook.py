from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func

from storesync.database import Base


class WebhookEvent(Base):
    """
    Ledger of processed Shopify webhook deliveries, keyed by X-Shopify-Webhook-Id.

    A row is written in the same transaction as the reconciliation it guards,
    so a redelivered event is recognised and skipped.

    Rows are never removed while processing webhooks. Once a row is older than
    Shopify's redelivery window it can go; operators run storesync-prune-webhooks
    (WebhookProcessor.prune_ledger) on a schedule to keep the table bounded.
    """
    __tablename__ = "webhook_events"
    __table_args__ = (
        UniqueConstraint("tenant_id", "webhook_id", name="uq_webhook_events_tenant_webhook"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, ForeignKey("tenants.id"), nullable=False, index=True)
    webhook_id = Column(String(128), nullable=False)
    topic = Column(String(64), nullable=False)
    entity_external_id = Column(String(64))

    processed_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<WebhookEvent(id={self.id}, topic='{self.topic}', webhook_id='{self.webhook_id}')>"
