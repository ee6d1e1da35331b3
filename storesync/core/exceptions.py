class BaseServiceError(Exception):
    """Base exception for all service-related errors."""
    pass

class ShopifyServiceError(BaseServiceError):
    """Base exception for Shopify-specific errors."""
    pass

class ShopifyAPIError(ShopifyServiceError):
    """
    Raised when Shopify API calls fail.

    When a full sync is aborted, resource_type and resume_cursor name where a
    re-run should start (resume_cursor None means from the first page).
    """
    resource_type = None
    resume_cursor = None

class AuthenticationError(ShopifyAPIError):
    """Raised when Shopify rejects, or the tenant lacks, the API credential. Aborts a sync."""
    pass

class ExternalServiceError(ShopifyAPIError):
    """Raised on network failures and non-auth error responses from Shopify."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code

class TenantNotFoundError(BaseServiceError):
    """Raised when no tenant matches a shop domain or id."""
    pass

class TenantConflictError(BaseServiceError):
    """Raised when a tenant is created for a shop domain that already has one."""
    pass

class SignatureMismatchError(BaseServiceError):
    """Raised when a webhook fails HMAC verification."""
    pass

class WebhookPayloadError(BaseServiceError):
    """Raised when a webhook body cannot be parsed."""
    pass

class UnsupportedTopicError(BaseServiceError):
    """Raised when a webhook topic has no handler."""
    pass

class ItemReconciliationError(BaseServiceError):
    """Raised when a single external entity cannot be mapped or persisted."""
    pass

class SyncError(BaseServiceError):
    """Raised when a full sync cannot be started."""
    pass
