"""URL builders for the marketplace pages and backend descriptors."""

from __future__ import annotations

from typing import Iterable, Optional
from urllib.parse import quote, urlencode

from .config import Settings

SORT_VALUES = ("popular", "rate", "priceup", "pricedown", "newly")

# Upper price bound used when only priceMin is given (in rubles).
PRICE_MAX_DEFAULT = 999_999_999

# Sharding scheme of the content mirrors.
VOL_DIVISOR = 100_000
PART_DIVISOR = 1_000


def _query(params: dict[str, object], safe: str = "") -> str:
    return urlencode(params, safe=safe, quote_via=quote)


def product_url(base_url: str, product_id: int | str) -> str:
    return f"{base_url}/catalog/{product_id}/detail.aspx"


def price_range_token(price_min: Optional[float], price_max: Optional[float]) -> Optional[str]:
    """Return the ``priceU`` token (kopecks, ``min;max``) or None when unbounded."""
    if price_min is None and price_max is None:
        return None
    low = round((price_min or 0) * 100)
    high = round((price_max if price_max is not None else PRICE_MAX_DEFAULT) * 100)
    return f"{low};{high}"


def search_page_url(
    base_url: str,
    query: str,
    *,
    sort: Optional[str] = None,
    page: Optional[int] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
) -> str:
    params: dict[str, object] = {"search": query}
    if sort is not None:
        params["sort"] = sort
    if page is not None:
        params["page"] = page
    token = price_range_token(price_min, price_max)
    if token is not None:
        params["priceU"] = token
    return f"{base_url}/catalog/0/search.aspx?{_query(params)}"


def _card_params(settings: Settings, dest: str, ids: Iterable[int | str]) -> str:
    params = {
        "appType": settings.WB_APP_TYPE,
        "curr": settings.WB_CURRENCY,
        "dest": dest,
        "spp": settings.WB_SPP,
        "lang": settings.WB_LANG,
        "nm": ";".join(str(i) for i in ids),
    }
    return _query(params, safe=";")


def card_list_url(settings: Settings, dest: str, ids: Iterable[int | str]) -> str:
    """Price/stock descriptor for several items at once."""
    return f"{settings.WB_BASE_URL}/__internal/u-card/cards/v4/list?{_card_params(settings, dest, ids)}"


def card_detail_url(settings: Settings, dest: str, product_id: int | str) -> str:
    """Price/stock descriptor for a single item."""
    return f"{settings.WB_BASE_URL}/__internal/u-card/cards/v4/detail?{_card_params(settings, dest, [product_id])}"


def geo_info_url(settings: Settings, address: str) -> str:
    params = {
        "currency": settings.WB_CURRENCY.upper(),
        "locale": settings.WB_LANG,
        "address": address,
        "dt": 0,
        "currentLocale": settings.WB_LANG,
        "b2bMode": "false",
        "newClient": "true",
    }
    return f"{settings.WB_BASE_URL}/__internal/user-geo-data/get-geo-info?{_query(params)}"


def mirror_path(product_id: int) -> str:
    """Storage path of an item on the content mirrors: ``vol<coarse>/part<fine>/<id>``."""
    return f"vol{product_id // VOL_DIVISOR}/part{product_id // PART_DIVISOR}/{product_id}"


def mirror_host(host_number: int) -> str:
    return f"https://basket-{host_number:02d}.wbbasket.ru"


def content_descriptor_url(host_number: int, product_id: int, lang: str = "ru") -> str:
    return f"{mirror_host(host_number)}/{mirror_path(product_id)}/info/{lang}/card.json"


def image_url(host_number: int, product_id: int, index: int) -> str:
    return f"{mirror_host(host_number)}/{mirror_path(product_id)}/images/big/{index}.webp"
