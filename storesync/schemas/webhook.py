from typing import Optional

from .base import BaseSchema


class WebhookAck(BaseSchema):
    success: bool = True
    topic: str
    duplicate: bool = False
    verified: bool = True
    entity_id: Optional[int] = None
