from datetime import datetime
from decimal import Decimal

import pytest

from storesync.services.shopify.utils import (
    first_variant,
    handle_from_title,
    normalize_external_id,
    normalize_shop_domain,
    parse_next_page_info,
    parse_shopify_date,
    to_decimal,
)


@pytest.mark.parametrize("raw, expected", [
    ("acme", "acme.myshopify.com"),
    ("Acme.myshopify.com", "acme.myshopify.com"),
    ("https://acme.myshopify.com/admin", "acme.myshopify.com"),
    ("  acme.myshopify.com  ", "acme.myshopify.com"),
    ("", None),
    (None, None),
])
def test_normalize_shop_domain(raw, expected):
    assert normalize_shop_domain(raw) == expected


def test_parse_next_page_info_with_next_only():
    header = '<https://acme.myshopify.com/admin/api/2024-01/products.json?limit=250&page_info=abc123>; rel="next"'
    assert parse_next_page_info(header) == "abc123"


def test_parse_next_page_info_ignores_previous():
    header = (
        '<https://acme.myshopify.com/admin/api/2024-01/products.json?limit=250&page_info=prev1>; rel="previous", '
        '<https://acme.myshopify.com/admin/api/2024-01/products.json?limit=250&page_info=next2>; rel="next"'
    )
    assert parse_next_page_info(header) == "next2"


def test_parse_next_page_info_last_page():
    header = '<https://acme.myshopify.com/admin/api/2024-01/products.json?limit=250&page_info=prev1>; rel="previous"'
    assert parse_next_page_info(header) is None
    assert parse_next_page_info(None) is None
    assert parse_next_page_info("") is None


def test_normalize_external_id():
    assert normalize_external_id(632910392) == "632910392"
    assert normalize_external_id("gid://shopify/Product/632910392") == "632910392"
    with pytest.raises(ValueError):
        normalize_external_id(None)


def test_to_decimal():
    assert to_decimal("19.999") == Decimal("20.00")
    assert to_decimal(5) == Decimal("5.00")
    assert to_decimal(None) == Decimal("0.00")
    assert to_decimal("", default=None) is None
    with pytest.raises(ValueError):
        to_decimal("twelve")


@pytest.mark.parametrize("value", ["NaN", "nan", "sNaN", "Infinity", "-inf"])
def test_to_decimal_rejects_non_finite(value):
    with pytest.raises(ValueError):
        to_decimal(value)


def test_parse_shopify_date_converts_to_naive_utc():
    assert parse_shopify_date("2024-06-02T13:03:46-04:00") == datetime(2024, 6, 2, 17, 3, 46)
    assert parse_shopify_date("2024-06-02T13:03:46Z") == datetime(2024, 6, 2, 13, 3, 46)
    assert parse_shopify_date("not a date") is None
    assert parse_shopify_date(None) is None


def test_handle_from_title():
    assert handle_from_title("Vintage  Fender Strat") == "vintage-fender-strat"
    assert handle_from_title(None) is None


def test_first_variant_shapes():
    assert first_variant({"variants": [{"price": "1.00"}, {"price": "2.00"}]}) == {"price": "1.00"}
    assert first_variant({"variants": {"nodes": [{"price": "3.00"}]}}) == {"price": "3.00"}
    assert first_variant({"variants": []}) == {}
    assert first_variant({}) == {}
