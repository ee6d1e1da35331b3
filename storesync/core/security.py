import base64
import binascii
import hashlib
import hmac
from typing import Optional


def compute_webhook_signature(raw_body: bytes, secret: str) -> str:
    """Base64 HMAC-SHA256 digest of the raw body, as sent in X-Shopify-Hmac-Sha256."""
    digest = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")


def verify_webhook_signature(raw_body: bytes, provided_signature: Optional[str], secret: str) -> bool:
    """
    Verify a Shopify webhook signature against the un-parsed request body.

    The comparison is done on the decoded digests with hmac.compare_digest so
    the time taken does not depend on how many bytes match.
    """
    if not provided_signature:
        return False

    try:
        provided = base64.b64decode(provided_signature.strip(), validate=True)
    except (binascii.Error, ValueError):
        return False

    expected = hmac.new(secret.encode("utf-8"), raw_body, hashlib.sha256).digest()
    return hmac.compare_digest(provided, expected)
