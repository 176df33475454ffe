"""Catalog acquisition: search pages, item descriptors and filters.

Search ranking and card identity come from the rendered page; prices the
page failed to render are backfilled from the price/stock descriptor in one
batched request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, Optional

from . import endpoints, records
from .errors import AcquisitionError, ProductNotFoundError
from .lookups import CARD_SCRIPT, FILTERS_SCRIPT, build_card, dedupe
from .models import CatalogItem, CatalogItemDetail, CatalogListItem, FilterDescriptor, SortOption

if TYPE_CHECKING:
    from .context import ServerContext

logger = logging.getLogger(__name__)

MAX_LIMIT = 100
DEFAULT_LIMIT = 20

SORT_OPTIONS = [
    SortOption(value="popular", name="По популярности"),
    SortOption(value="rate", name="По рейтингу"),
    SortOption(value="priceup", name="По возрастанию цены"),
    SortOption(value="pricedown", name="По убыванию цены"),
    SortOption(value="newly", name="По новинкам"),
]

URL_PARAMS = {
    "priceU": "Цена (в копейках, формат: min;max)",
    "frating": "С рейтингом от 4.7 (значение: 1)",
    "xsubject": "Категории (ID через точку с запятой)",
    "sort": "Сортировка",
    "page": "Номер страницы",
}


def clamp_limit(limit: Optional[int]) -> int:
    if not limit:
        return DEFAULT_LIMIT
    return max(1, min(int(limit), MAX_LIMIT))


async def search(
    ctx: "ServerContext",
    query: str,
    *,
    sort: str = "popular",
    page: int = 1,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    limit: int = DEFAULT_LIMIT,
) -> list[CatalogItem]:
    limit = clamp_limit(limit)
    s = ctx.settings
    url = endpoints.search_page_url(
        s.WB_BASE_URL, query, sort=sort, page=page, price_min=price_min, price_max=price_max
    )
    session = ctx.session
    logger.info("Searching: %s", query)

    await session.ensure_ready()
    async with ctx.navigation_lock:
        await session.goto(url)
        if not await session.wait_for_selector(ctx.selectors.card_selector, s.WB_RESULTS_TIMEOUT_MS):
            logger.info("No products found or timeout for %r", query)
            return []
        await asyncio.sleep(s.WB_SEARCH_SETTLE_S)
        raw_cards = await session.evaluate(CARD_SCRIPT, ctx.selectors.script_arg(limit))

    items = [build_card(raw, s.WB_BASE_URL) for raw in (raw_cards or [])[:limit]]
    items = await backfill_prices(ctx, items)
    logger.info("Found %d products for %r", len(items), query)
    return items


async def backfill_prices(ctx: "ServerContext", items: list[CatalogItem]) -> list[CatalogItem]:
    """Fill missing card prices from one batched price/stock descriptor call."""
    missing = [item.id for item in items if item.price is None and item.id is not None]
    if not missing:
        return items

    logger.info("Fetching prices for %d products via API", len(missing))
    url = endpoints.card_list_url(ctx.settings, ctx.destination.dest, missing)
    try:
        payload = await ctx.session.fetch_json(url)
    except AcquisitionError as exc:
        logger.error("Failed to fetch prices via API: %s", exc)
        return items
    return records.merge_prices(items, records.price_map_from_descriptor(payload))


async def get_detail(ctx: "ServerContext", product_id: int) -> CatalogItemDetail:
    s = ctx.settings
    logger.info("Getting details for product %s", product_id)

    await ctx.session.ensure_ready()
    payload = await ctx.session.fetch_json(endpoints.card_detail_url(s, ctx.destination.dest, product_id))
    products = records.descriptor_products(payload)
    if not products:
        raise ProductNotFoundError(product_id)

    # Mirrors are only probed for items that exist.
    hit = await ctx.mirrors.resolve(product_id)
    return records.build_detail(
        product_id,
        products[0],
        s.WB_BASE_URL,
        card=hit.descriptor if hit else None,
        mirror_host=hit.host if hit else None,
    )


async def get_list(ctx: "ServerContext", product_ids: Iterable[int]) -> list[CatalogListItem]:
    ids = list(product_ids)
    if not ids:
        return []
    s = ctx.settings
    await ctx.session.ensure_ready()
    payload = await ctx.session.fetch_json(endpoints.card_list_url(s, ctx.destination.dest, ids))
    return [
        records.build_list_item(product, s.WB_BASE_URL)
        for product in records.descriptor_products(payload)
        if records.entry_id(product) is not None
    ]


async def get_filters(ctx: "ServerContext", query: str) -> FilterDescriptor:
    s = ctx.settings
    session = ctx.session
    labels: list[str] = []

    await session.ensure_ready()
    async with ctx.navigation_lock:
        await session.goto(endpoints.search_page_url(s.WB_BASE_URL, query))
        if await session.wait_for_selector(ctx.selectors.card_selector, s.WB_RESULTS_TIMEOUT_MS):
            await asyncio.sleep(s.WB_FILTERS_SETTLE_S)
            labels = await session.evaluate(FILTERS_SCRIPT, ctx.selectors.filter_selector)
        else:
            logger.info("No products for %r, no filters to read", query)

    return FilterDescriptor(
        query=query,
        available_filters=dedupe(labels),
        sort_options=SORT_OPTIONS,
        url_params=dict(URL_PARAMS),
    )
