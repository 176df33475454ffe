from __future__ import annotations

from conftest import descriptor, product_entry
from wb_mcp.models import CatalogItem
from wb_mcp.records import (
    build_detail,
    build_list_item,
    compute_discount,
    delivery_window,
    entry_id,
    format_rub,
    kopecks_to_rub,
    merge_prices,
    price_map_from_descriptor,
)

BASE = "https://www.wildberries.ru"


def test_kopecks_to_rub_keeps_whole_values_integral() -> None:
    assert kopecks_to_rub(129900) == 1299
    assert isinstance(kopecks_to_rub(129900), int)
    assert kopecks_to_rub(12345) == 123.45
    assert kopecks_to_rub(None) is None
    assert kopecks_to_rub("n/a") is None


def test_format_rub() -> None:
    assert format_rub(12345) == "12\u00a0345 ₽"
    assert format_rub(99) == "99 ₽"
    assert format_rub(1234.5) == "1\u00a0234,50 ₽"
    assert format_rub(None) is None


def test_compute_discount() -> None:
    assert compute_discount(2000, 1500) == 25
    assert compute_discount(999, 333) == round((1 - 333 / 999) * 100)
    assert compute_discount(None, 1500) is None
    assert compute_discount(2000, None) is None


def test_delivery_window() -> None:
    assert delivery_window(24, 48) == "24-48 часов"
    assert delivery_window(None, 48) is None


def test_price_map_uses_final_price_in_rubles() -> None:
    payload = {
        "products": [
            product_entry(1, basic=300000, final=250000),
            product_entry(2),
            {"name": "no id", "sizes": [{"price": {"product": 100}}]},
        ]
    }
    assert price_map_from_descriptor(payload) == {1: 2500}


def test_price_map_accepts_data_wrapper() -> None:
    payload = {"data": {"products": [product_entry(9, final=1000)]}}
    assert price_map_from_descriptor(payload) == {9: 10}


def test_price_map_skips_malformed_ids() -> None:
    bad = product_entry(0, final=500)
    bad["id"] = "abc"
    payload = descriptor(bad, product_entry(4, final=700), product_entry(True, final=100))
    assert price_map_from_descriptor(payload) == {4: 7}


def test_entry_id() -> None:
    assert entry_id({"id": 12}) == 12
    assert entry_id({"id": "34"}) == 34
    assert entry_id({"id": "3x"}) is None
    assert entry_id({"id": None}) is None
    assert entry_id({}) is None


def test_merge_prices_fills_only_missing() -> None:
    items = [
        CatalogItem(id=1, price=None),
        CatalogItem(id=2, price=700),
        CatalogItem(id=None, price=None),
    ]

    merged = merge_prices(items, {1: 2500, 2: 999})

    assert merged[0].price == 2500
    assert merged[0].price_formatted == "2\u00a0500 ₽"
    assert merged[1].price == 700
    assert merged[2].price is None
    # inputs are untouched
    assert items[0].price is None


def test_build_detail_merges_both_descriptors() -> None:
    product = product_entry(
        555,
        basic=200000,
        final=150000,
        brand="Acme",
        brandId=10,
        supplier="Seller",
        supplierId=20,
        supplierRating=4.8,
        reviewRating=4.6,
        nmFeedbacks=120,
        feedbackPoints=50,
        colors=[{"name": "черный", "id": 0}],
        pics=2,
        totalQuantity=17,
        time1=24,
        time2=48,
    )
    product["sizes"] = [
        {
            "name": "",
            "optionId": 7,
            "price": {"basic": 200000, "product": 150000},
            "stocks": [{"wh": 507, "qty": 17, "time1": 24, "time2": 48}],
        }
    ]
    card = {"description": "Описание", "options": [{"name": "Цвет", "value": "черный"}]}

    detail = build_detail(555, product, BASE, card=card, mirror_host=3).to_dict()

    assert detail["priceBasic"] == 2000
    assert detail["priceFinal"] == 1500
    assert detail["discount"] == 25
    assert detail["rating"] == 4.6
    assert detail["feedbacks"] == 120
    assert detail["inStock"] == 17
    assert detail["deliveryTime"] == "24-48 часов"
    assert detail["sizes"] == [
        {
            "name": "One size",
            "optionId": 7,
            "price": 1500,
            "stocks": [{"warehouse": 507, "qty": 17, "deliveryTime": "24-48 часов"}],
        }
    ]
    assert detail["description"] == "Описание"
    assert detail["characteristics"] == [{"name": "Цвет", "value": "черный"}]
    assert detail["images"] == [
        "https://basket-03.wbbasket.ru/vol0/part0/555/images/big/1.webp",
        "https://basket-03.wbbasket.ru/vol0/part0/555/images/big/2.webp",
    ]
    assert detail["url"] == f"{BASE}/catalog/555/detail.aspx"


def test_build_detail_degrades_without_content_descriptor() -> None:
    detail = build_detail(1, product_entry(1, basic=1000), BASE)

    assert detail.description is None
    assert detail.characteristics == []
    assert detail.images == []
    assert detail.price_final is None
    assert detail.discount is None


def test_build_list_item() -> None:
    item = build_list_item(product_entry(8, basic=100000, final=80000, totalQuantity=3), BASE).to_dict()

    assert item["id"] == 8
    assert item["priceBasic"] == 1000
    assert item["priceFinal"] == 800
    assert item["discount"] == 20
    assert item["inStock"] == 3
    assert item["url"] == f"{BASE}/catalog/8/detail.aspx"
