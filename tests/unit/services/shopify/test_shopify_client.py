# Shopify API client unit tests
import httpx
import pytest
from unittest.mock import AsyncMock

from storesync.core.enums import ResourceType
from storesync.core.exceptions import AuthenticationError, ExternalServiceError
from storesync.services.shopify.client import ShopifyClient

SHOP = "acme-guitars.myshopify.com"
BASE = f"https://{SHOP}/admin/api/2024-01"


def _link(page_info):
    return f'<{BASE}/orders.json?limit=250&page_info={page_info}>; rel="next"'


def _response(status_code=200, json_data=None, link=None, text=None):
    headers = {"link": link} if link else {}
    if text is not None:
        return httpx.Response(status_code, text=text, headers=headers)
    return httpx.Response(status_code, json=json_data if json_data is not None else {}, headers=headers)


@pytest.fixture
def mock_request(mocker):
    """Patch httpx.AsyncClient and return the awaited request mock."""
    mock_client = mocker.patch("httpx.AsyncClient")
    request = AsyncMock()
    mock_client.return_value.__aenter__.return_value.request = request
    return request


"""
1. Client construction
"""

def test_client_requires_access_token():
    with pytest.raises(AuthenticationError):
        ShopifyClient(SHOP, None)


def test_client_normalizes_domain():
    client = ShopifyClient("Acme-Guitars", "shpat_x", api_version="2024-04")
    assert client.base_url == "https://acme-guitars.myshopify.com/admin/api/2024-04"


async def test_access_token_header(mock_request):
    mock_request.return_value = _response(json_data={"customers": []})

    client = ShopifyClient(SHOP, "shpat_token")
    await client.fetch_page(ResourceType.CUSTOMERS)

    _, kwargs = mock_request.call_args
    assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_token"
    assert kwargs["url"] == f"{BASE}/customers.json"


"""
2. Pagination
"""

async def test_fetch_page_reads_next_cursor(mock_request):
    mock_request.return_value = _response(json_data={"products": [{"id": 1}, {"id": 2}]}, link=_link("cursor2"))

    client = ShopifyClient(SHOP, "shpat_token")
    page = await client.fetch_page(ResourceType.PRODUCTS)

    assert [item["id"] for item in page.items] == [1, 2]
    assert page.next_cursor == "cursor2"
    _, kwargs = mock_request.call_args
    assert kwargs["params"] == {"limit": 250}


async def test_first_orders_page_requests_all_statuses(mock_request):
    mock_request.return_value = _response(json_data={"orders": []})

    client = ShopifyClient(SHOP, "shpat_token")
    await client.fetch_page(ResourceType.ORDERS)

    _, kwargs = mock_request.call_args
    assert kwargs["params"] == {"limit": 250, "status": "any"}


async def test_cursor_page_sends_only_limit_and_page_info(mock_request):
    mock_request.return_value = _response(json_data={"orders": []})

    client = ShopifyClient(SHOP, "shpat_token")
    await client.fetch_page(ResourceType.ORDERS, cursor="abc")

    _, kwargs = mock_request.call_args
    assert kwargs["params"] == {"limit": 250, "page_info": "abc"}


async def test_iter_pages_follows_cursors_until_last_page(mock_request):
    mock_request.side_effect = [
        _response(json_data={"orders": [{"id": i} for i in range(3)]}, link=_link("p2")),
        _response(json_data={"orders": [{"id": i} for i in range(3, 6)]}, link=_link("p3")),
        _response(json_data={"orders": [{"id": 6}]}),
    ]

    client = ShopifyClient(SHOP, "shpat_token", page_size=3)
    pages = [page async for page in client.iter_pages(ResourceType.ORDERS)]

    assert [len(page.items) for page in pages] == [3, 3, 1]
    assert [page.next_cursor for page in pages] == ["p2", "p3", None]
    assert mock_request.call_count == 3
    cursors = [call.kwargs["params"].get("page_info") for call in mock_request.call_args_list]
    assert cursors == [None, "p2", "p3"]


async def test_empty_resource_yields_single_empty_page(mock_request):
    mock_request.return_value = _response(json_data={"customers": []})

    client = ShopifyClient(SHOP, "shpat_token")
    pages = [page async for page in client.iter_pages(ResourceType.CUSTOMERS)]

    assert len(pages) == 1
    assert pages[0].items == []
    assert pages[0].next_cursor is None


"""
3. Errors
"""

@pytest.mark.parametrize("status_code", [401, 403])
async def test_auth_failure_raises_authentication_error(mock_request, status_code):
    mock_request.return_value = _response(status_code, json_data={"errors": "Invalid API key"})

    client = ShopifyClient(SHOP, "shpat_revoked")
    with pytest.raises(AuthenticationError):
        await client.fetch_page(ResourceType.PRODUCTS)


async def test_server_error_raises_external_service_error(mock_request):
    mock_request.return_value = _response(500, text="Internal Server Error")

    client = ShopifyClient(SHOP, "shpat_token")
    with pytest.raises(ExternalServiceError) as exc_info:
        await client.fetch_page(ResourceType.PRODUCTS)
    assert exc_info.value.status_code == 500


async def test_network_error_raises_external_service_error(mock_request):
    mock_request.side_effect = httpx.ConnectError("connection refused")

    client = ShopifyClient(SHOP, "shpat_token")
    with pytest.raises(ExternalServiceError):
        await client.fetch_page(ResourceType.PRODUCTS)


async def test_timeout_raises_external_service_error(mock_request):
    mock_request.side_effect = httpx.ReadTimeout("timed out")

    client = ShopifyClient(SHOP, "shpat_token")
    with pytest.raises(ExternalServiceError):
        await client.get_shop()


async def test_invalid_json_raises_external_service_error(mock_request):
    mock_request.return_value = _response(200, text="<html>maintenance</html>")

    client = ShopifyClient(SHOP, "shpat_token")
    with pytest.raises(ExternalServiceError):
        await client.fetch_page(ResourceType.ORDERS)


async def test_get_shop(mock_request):
    mock_request.return_value = _response(json_data={"shop": {"name": "Acme Guitars", "currency": "GBP"}})

    client = ShopifyClient(SHOP, "shpat_token")
    shop = await client.get_shop()

    assert shop["name"] == "Acme Guitars"
    _, kwargs = mock_request.call_args
    assert kwargs["url"] == f"{BASE}/shop.json"
