from .base import BaseSchema
from .tenant import TenantRead, TenantCreate, TenantCredentialsUpdate, SyncStatusRead
from .sync import SyncSummaryRead, SyncAllRead, ConnectionTestRead
from .webhook import WebhookAck
