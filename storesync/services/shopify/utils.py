"""Helpers for reading Shopify REST payloads and response headers."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

logger = logging.getLogger(__name__)

SHOPIFY_DOMAIN_SUFFIX = ".myshopify.com"

_CENTS = Decimal("0.01")
_WHITESPACE = re.compile(r"\s+")
_LINK_PART = re.compile(r'<(?P<url>[^>]+)>\s*;\s*rel="?(?P<rel>[a-z]+)"?', re.IGNORECASE)


def normalize_shop_domain(shop_domain: Optional[str]) -> Optional[str]:
    """
    Normalise a shop domain to ``<shop>.myshopify.com``.

    Accepts bare shop names, full domains and URLs with a scheme or path.
    """
    if not shop_domain:
        return None

    domain = shop_domain.strip().lower()
    if "://" in domain:
        domain = urlparse(domain).netloc
    domain = domain.split("/")[0]
    if not domain:
        return None
    if not domain.endswith(SHOPIFY_DOMAIN_SUFFIX):
        domain = f"{domain}{SHOPIFY_DOMAIN_SUFFIX}"
    return domain


def parse_next_page_info(link_header: Optional[str]) -> Optional[str]:
    """
    Extract the page_info cursor of the rel="next" entry of a Link header.

    Shopify sends e.g.
    ``<https://x.myshopify.com/admin/api/2024-01/products.json?limit=250&page_info=abc>; rel="next"``
    and may include a rel="previous" entry alongside it.
    """
    if not link_header:
        return None

    for match in _LINK_PART.finditer(link_header):
        if match.group("rel").lower() != "next":
            continue
        query = parse_qs(urlparse(match.group("url")).query)
        cursors = query.get("page_info")
        if cursors and cursors[0]:
            return cursors[0]
    return None


def normalize_external_id(raw_id: Any) -> str:
    """
    Shopify ids arrive as integers in REST payloads and as GIDs
    (gid://shopify/Product/123) elsewhere; both map to the numeric string.
    """
    if raw_id is None or raw_id == "":
        raise ValueError("missing Shopify id")
    return str(raw_id).split("/")[-1]


def to_decimal(value: Any, default: Optional[Decimal] = Decimal("0.00")) -> Optional[Decimal]:
    """Convert a Shopify money string to a 2dp Decimal; empty values give ``default``."""
    if value is None or value == "":
        return default
    try:
        amount = Decimal(str(value)).quantize(_CENTS)
    except InvalidOperation:
        raise ValueError(f"invalid money amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"invalid money amount: {value!r}")
    return amount


def parse_shopify_date(date_string: Optional[str]) -> Optional[datetime]:
    """Parse Shopify ISO date string to naive UTC datetime object."""
    if not date_string:
        return None

    try:
        # Shopify uses ISO format: "2024-06-02T13:03:46-04:00" or "...Z"
        if date_string.endswith('Z'):
            date_string = date_string[:-1] + '+00:00'

        aware_dt = datetime.fromisoformat(date_string)

        if aware_dt.tzinfo is not None:
            return aware_dt.astimezone(timezone.utc).replace(tzinfo=None)
        return aware_dt

    except (ValueError, TypeError):
        logger.warning(f"Could not parse date: {date_string}")
        return None


def handle_from_title(title: Optional[str]) -> Optional[str]:
    """Slug handle for products created from an order line item title."""
    if not title:
        return None
    return _WHITESPACE.sub("-", title.strip().lower())


def first_variant(product_data: Dict[str, Any]) -> Dict[str, Any]:
    """Primary variant of a product payload, tolerating list or GraphQL node shapes."""
    variants_raw = product_data.get("variants")
    if isinstance(variants_raw, dict):
        nodes = variants_raw.get("nodes", [])
        return nodes[0] if nodes else {}
    if isinstance(variants_raw, list):
        return variants_raw[0] if variants_raw else {}
    return {}
