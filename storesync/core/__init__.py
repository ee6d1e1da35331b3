"""
Core module exports.
"""
from .enums import (
    ResourceType,
    WebhookTopic,
    SYNC_ORDER,
    FINANCIAL_STATUS_PAID,
)

from .exceptions import (
    BaseServiceError,
    ShopifyServiceError,
    ShopifyAPIError,
    AuthenticationError,
    ExternalServiceError,
    TenantNotFoundError,
    TenantConflictError,
    SignatureMismatchError,
    WebhookPayloadError,
    UnsupportedTopicError,
    ItemReconciliationError,
    SyncError,
)
