import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storesync.core.config import Settings, get_settings
from storesync.core.exceptions import (
    ItemReconciliationError,
    SignatureMismatchError,
    TenantNotFoundError,
    UnsupportedTopicError,
    WebhookPayloadError,
)
from storesync.dependencies import get_db
from storesync.schemas.webhook import WebhookAck
from storesync.services.webhook_processor import WebhookProcessor

router = APIRouter(prefix="/webhooks", tags=["webhooks"])

logger = logging.getLogger(__name__)


@router.post("/shopify/{resource}/{event}", response_model=WebhookAck)
async def shopify_webhook(
    resource: str,
    event: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    x_shopify_shop_domain: Optional[str] = Header(None),
    x_shopify_hmac_sha256: Optional[str] = Header(None),
    x_shopify_webhook_id: Optional[str] = Header(None),
):
    """
    Receive a Shopify webhook, e.g. /webhooks/shopify/orders/paid.

    The body is read raw because the HMAC is computed over the exact bytes sent.
    Non-2xx responses make Shopify redeliver the event.
    """
    raw_body = await request.body()
    topic = f"{resource}/{event}"

    processor = WebhookProcessor(db, settings)
    try:
        result = await processor.process(
            topic=topic,
            shop_domain=x_shopify_shop_domain,
            signature=x_shopify_hmac_sha256,
            raw_body=raw_body,
            webhook_id=x_shopify_webhook_id,
        )
    except TenantNotFoundError:
        raise HTTPException(status_code=404, detail="Tenant not found")
    except SignatureMismatchError:
        raise HTTPException(status_code=401, detail="Unauthorized")
    except UnsupportedTopicError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except WebhookPayloadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ItemReconciliationError as e:
        logger.error(f"{topic} webhook from {x_shopify_shop_domain} could not be reconciled: {str(e)}")
        raise HTTPException(status_code=422, detail=str(e))
    except Exception:
        logger.exception(f"{topic} webhook from {x_shopify_shop_domain} failed")
        raise HTTPException(status_code=500, detail="Webhook processing failed")

    return WebhookAck(
        topic=result.topic,
        duplicate=result.duplicate,
        verified=result.verified,
        entity_id=result.entity_id,
    )
