# storesync/services/shopify/client.py

import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from storesync.core.config import get_settings
from storesync.core.enums import ResourceType
from storesync.core.exceptions import AuthenticationError, ExternalServiceError
from storesync.services.shopify.utils import normalize_shop_domain, parse_next_page_info

logger = logging.getLogger(__name__)


@dataclass
class ShopifyPage:
    """One page of a paginated Shopify resource listing."""
    resource_type: ResourceType
    items: List[Dict[str, Any]] = field(default_factory=list)
    next_cursor: Optional[str] = None


class ShopifyClient:
    """
    Asynchronous client for the Shopify Admin REST API, bound to one tenant's store.

    Functionality:
        - fetch_page: one page of customers / products / orders, with the next
          page_info cursor taken from the Link response header.
        - iter_pages: lazily walks every page of a resource, one request per
          page, so callers can process a page before the next is fetched.
        - get_shop: shop details, used to test a tenant's credentials.

    Errors:
        - 401/403 raise AuthenticationError (the credential is bad or revoked).
        - Any other failure raises ExternalServiceError.
        There is no retry; callers re-run the sync.

    Documentation: https://shopify.dev/docs/api/admin-rest
    """

    AUTH_FAILURE_STATUSES = (401, 403)

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        api_version: Optional[str] = None,
        page_size: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the Shopify client

        Args:
            shop_domain: Store domain, with or without the .myshopify.com suffix
            access_token: Admin API access token
            api_version: Admin API version, defaults to settings.SHOPIFY_API_VERSION
            page_size: Items per page (Shopify caps this at 250)
            timeout: Per-request timeout in seconds
        """
        settings = get_settings()

        self.shop_domain = normalize_shop_domain(shop_domain)
        if not self.shop_domain:
            raise ValueError("A Shopify shop domain is required")
        if not access_token:
            raise AuthenticationError(f"No Shopify access token configured for {self.shop_domain}")

        self.access_token = access_token
        self.api_version = api_version or settings.SHOPIFY_API_VERSION
        self.page_size = page_size or settings.SHOPIFY_PAGE_SIZE
        self.timeout = timeout or settings.SHOPIFY_REQUEST_TIMEOUT
        self.base_url = f"https://{self.shop_domain}/admin/api/{self.api_version}"

    @classmethod
    def for_tenant(cls, tenant, **kwargs) -> "ShopifyClient":
        """Build a client from a Tenant row."""
        return cls(tenant.shop_domain, tenant.access_token, **kwargs)

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests"""
        return {
            "X-Shopify-Access-Token": self.access_token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _make_request(self, method: str, endpoint: str, params: Optional[Dict] = None) -> httpx.Response:
        """
        Make a request to the Shopify API

        Returns:
            httpx.Response: the successful response

        Raises:
            AuthenticationError: on 401/403
            ExternalServiceError: on any other failure
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        headers = self._get_headers()

        masked_headers = headers.copy()
        masked_headers["X-Shopify-Access-Token"] = "[REDACTED]"
        logger.debug(f"Making {method} request to {url} params={params} headers={masked_headers}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(
                    method=method,
                    url=url,
                    headers=headers,
                    params=params,
                )
        except httpx.TimeoutException as e:
            logger.error(f"Timeout calling Shopify {url}: {str(e)}")
            raise ExternalServiceError(f"Request timed out: {str(e)}")
        except httpx.RequestError as e:
            logger.error(f"Network error calling Shopify {url}: {str(e)}")
            raise ExternalServiceError(f"Network error: {str(e)}")

        if response.status_code in self.AUTH_FAILURE_STATUSES:
            logger.error(f"Shopify rejected credentials for {self.shop_domain} ({response.status_code})")
            raise AuthenticationError(
                f"Shopify rejected the access token for {self.shop_domain} (HTTP {response.status_code})"
            )

        if response.status_code not in (200, 201):
            logger.error(f"Shopify API error {response.status_code}: {response.text}")
            raise ExternalServiceError(
                f"Request failed ({response.status_code}): {response.text}",
                status_code=response.status_code,
            )

        return response

    def _decode(self, response: httpx.Response) -> Dict[str, Any]:
        try:
            return response.json()
        except ValueError as e:
            raise ExternalServiceError(f"Invalid JSON from Shopify: {str(e)}")

    async def fetch_page(self, resource_type: ResourceType, cursor: Optional[str] = None) -> ShopifyPage:
        """
        Fetch one page of a resource.

        Args:
            resource_type: customers, products or orders
            cursor: page_info from the previous page, None for the first page

        Returns:
            ShopifyPage with the raw items and the next cursor (None on the last page)
        """
        resource_type = ResourceType(resource_type)
        params: Dict[str, Any] = {"limit": self.page_size}
        if cursor:
            # Shopify rejects filters other than limit alongside page_info
            params["page_info"] = cursor
        elif resource_type == ResourceType.ORDERS:
            params["status"] = "any"

        response = await self._make_request("GET", resource_type.endpoint, params=params)
        payload = self._decode(response)

        items = payload.get(resource_type.value) or []
        next_cursor = parse_next_page_info(response.headers.get("link"))

        logger.debug(f"Fetched {len(items)} {resource_type.value} from {self.shop_domain} (next={bool(next_cursor)})")
        return ShopifyPage(resource_type=resource_type, items=items, next_cursor=next_cursor)

    async def iter_pages(
        self, resource_type: ResourceType, start_cursor: Optional[str] = None
    ) -> AsyncIterator[ShopifyPage]:
        """
        Yield every page of a resource in order. Pass start_cursor to resume an
        aborted run at the first page it did not finish.
        """
        cursor = start_cursor
        while True:
            page = await self.fetch_page(resource_type, cursor)
            yield page
            if not page.next_cursor:
                break
            cursor = page.next_cursor

    async def get_shop(self) -> Dict[str, Any]:
        """Fetch the shop record (name, domain, currency, timezone...)."""
        response = await self._make_request("GET", "shop.json")
        payload = self._decode(response)
        shop = payload.get("shop")
        if not shop:
            raise ExternalServiceError("Invalid response from Shopify: missing shop")
        return shop
