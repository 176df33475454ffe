"""Assembly of catalog records from backend descriptors.

Everything here is pure: descriptors in, records out. Prices arrive in
kopecks and are converted to rubles with a single rule (``/ 100``).
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from . import endpoints
from .models import (
    CatalogItem,
    CatalogItemDetail,
    CatalogListItem,
    Characteristic,
    SizeStock,
    StockEntry,
)

NBSP = "\u00a0"
CURRENCY_SIGN = "₽"
DELIVERY_UNIT = "часов"


def kopecks_to_rub(value: Any) -> Optional[int | float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        rub = float(value) / 100
    except (TypeError, ValueError):
        return None
    return int(rub) if rub.is_integer() else rub


def format_rub(value: Optional[int | float]) -> Optional[str]:
    """Format a ruble amount the way the storefront does: ``12 345 ₽``."""
    if value is None:
        return None
    if float(value).is_integer():
        text = f"{int(value):,}"
    else:
        text = f"{value:,.2f}".replace(".", "#")
    return text.replace(",", NBSP).replace("#", ",") + f" {CURRENCY_SIGN}"


def compute_discount(price_basic: Optional[float], price_final: Optional[float]) -> Optional[int]:
    if not price_basic or price_final is None:
        return None
    return round((1 - price_final / price_basic) * 100)


def delivery_window(time1: Any, time2: Any) -> Optional[str]:
    if time1 is None or time2 is None:
        return None
    return f"{time1}-{time2} {DELIVERY_UNIT}"


def descriptor_products(payload: Any) -> list[dict[str, Any]]:
    """Return the product entries of a price/stock descriptor."""
    if not isinstance(payload, Mapping):
        return []
    products = payload.get("products")
    if products is None and isinstance(payload.get("data"), Mapping):
        products = payload["data"].get("products")
    if not isinstance(products, list):
        return []
    return [p for p in products if isinstance(p, Mapping)]


def size_price(product: Mapping[str, Any], key: str) -> Optional[int | float]:
    """Price ``key`` (``basic`` / ``product``) of the first variant that carries one."""
    for size in product.get("sizes") or []:
        price = (size.get("price") or {}).get(key)
        if price:
            return kopecks_to_rub(price)
    return None


def entry_id(product: Mapping[str, Any]) -> Optional[int]:
    """Numeric id of a descriptor entry, or None when it is missing or malformed."""
    value = product.get("id")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def price_map_from_descriptor(payload: Any) -> dict[int, int | float]:
    prices: dict[int, int | float] = {}
    for product in descriptor_products(payload):
        nm_id = entry_id(product)
        price = size_price(product, "product")
        if nm_id is not None and price is not None:
            prices[nm_id] = price
    return prices


def merge_prices(items: list[CatalogItem], prices: Mapping[int, int | float]) -> list[CatalogItem]:
    """Fill in prices for items that have none. Items with a DOM price are kept as-is."""
    merged: list[CatalogItem] = []
    for item in items:
        price = prices.get(item.id) if item.id is not None else None
        if item.price is None and price is not None:
            item = item.model_copy(update={"price": price, "price_formatted": format_rub(price)})
        merged.append(item)
    return merged


def _stock(entry: Mapping[str, Any]) -> StockEntry:
    return StockEntry(
        warehouse=entry.get("wh"),
        qty=entry.get("qty"),
        delivery_time=delivery_window(entry.get("time1"), entry.get("time2")),
    )


def _size(size: Mapping[str, Any]) -> SizeStock:
    return SizeStock(
        name=size.get("name") or "One size",
        option_id=size.get("optionId"),
        price=kopecks_to_rub((size.get("price") or {}).get("product")),
        stocks=[_stock(s) for s in size.get("stocks") or []],
    )


def _characteristics(card: Optional[Mapping[str, Any]]) -> list[Characteristic]:
    if not card:
        return []
    return [Characteristic(name=o.get("name"), value=o.get("value")) for o in card.get("options") or []]


def build_detail(
    product_id: int,
    product: Mapping[str, Any],
    base_url: str,
    card: Optional[Mapping[str, Any]] = None,
    mirror_host: Optional[int] = None,
) -> CatalogItemDetail:
    """Merge the price/stock descriptor with the (optional) content descriptor."""
    price_basic = size_price(product, "basic")
    price_final = size_price(product, "product")
    pics = product.get("pics")
    images: list[str] = []
    if mirror_host is not None and isinstance(pics, int):
        images = [endpoints.image_url(mirror_host, product_id, i) for i in range(1, pics + 1)]

    return CatalogItemDetail(
        id=product_id,
        name=product.get("name"),
        brand=product.get("brand"),
        brand_id=product.get("brandId"),
        supplier=product.get("supplier"),
        supplier_id=product.get("supplierId"),
        supplier_rating=product.get("supplierRating"),
        rating=product.get("rating", product.get("reviewRating")),
        feedbacks=product.get("feedbacks", product.get("nmFeedbacks")),
        feedback_points=product.get("feedbackPoints"),
        colors=product.get("colors") or [],
        pics=pics,
        images=images,
        price_basic=price_basic,
        price_final=price_final,
        discount=compute_discount(price_basic, price_final),
        in_stock=product.get("totalQuantity"),
        sizes=[_size(s) for s in product.get("sizes") or []],
        delivery_time=delivery_window(product.get("time1"), product.get("time2")),
        description=(card or {}).get("description") or None,
        characteristics=_characteristics(card),
        url=endpoints.product_url(base_url, product_id),
    )


def build_list_item(product: Mapping[str, Any], base_url: str) -> CatalogListItem:
    price_basic = size_price(product, "basic")
    price_final = size_price(product, "product")
    return CatalogListItem(
        id=entry_id(product),
        name=product.get("name"),
        brand=product.get("brand"),
        supplier=product.get("supplier"),
        supplier_rating=product.get("supplierRating"),
        rating=product.get("rating", product.get("reviewRating")),
        feedbacks=product.get("feedbacks", product.get("nmFeedbacks")),
        price_basic=price_basic,
        price_final=price_final,
        discount=compute_discount(price_basic, price_final),
        in_stock=product.get("totalQuantity"),
        delivery_time=delivery_window(product.get("time1"), product.get("time2")),
        url=endpoints.product_url(base_url, entry_id(product)),
    )
