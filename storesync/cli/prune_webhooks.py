# storesync/cli/prune_webhooks.py
import asyncio
import logging
from datetime import timedelta

import click

from storesync.core.logging_config import configure_logging
from storesync.database import async_session
from storesync.services.webhook_processor import REDELIVERY_WINDOW, WebhookProcessor

logger = logging.getLogger(__name__)


@click.command()
@click.option('--older-than-hours', type=click.IntRange(min=48), default=int(REDELIVERY_WINDOW.total_seconds() // 3600),
              show_default=True, help='Delete ledger rows processed more than this many hours ago')
@click.option('--log-level', default=None, help='Override LOG_LEVEL')
def prune_webhooks(older_than_hours, log_level):
    """Delete webhook ledger rows older than Shopify's redelivery window"""
    configure_logging(log_level)

    deleted = asyncio.run(run_prune(timedelta(hours=older_than_hours)))
    click.echo(f"Deleted {deleted} webhook ledger rows")


async def run_prune(older_than):
    async with async_session() as session:
        return await WebhookProcessor(session).prune_ledger(older_than)


if __name__ == '__main__':
    prune_webhooks()
