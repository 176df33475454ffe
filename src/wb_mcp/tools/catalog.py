"""Wildberries tool handlers.

Each handler receives the validated, snake_cased arguments of one tool call
and returns an ``ok_response``/``error_response`` payload. Acquisition and
not-found failures are converted to structured errors by ``handle_mcp_errors``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from wb_mcp import catalog, destination
from wb_mcp.utils import handle_mcp_errors, ok_response

if TYPE_CHECKING:
    from wb_mcp.context import ServerContext


@handle_mcp_errors
async def wb_search(
    server: "ServerContext",
    *,
    query: str,
    sort: str = "popular",
    page: int = 1,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    limit: int = catalog.DEFAULT_LIMIT,
) -> dict[str, Any]:
    items = await catalog.search(
        server, query, sort=sort, page=page, price_min=price_min, price_max=price_max, limit=limit
    )
    return ok_response(
        tool="wb_search",
        input={"query": query, "sort": sort, "page": page, "price_min": price_min, "price_max": price_max, "limit": limit},
        output={"query": query, "count": len(items), "products": [item.to_dict() for item in items]},
    )


@handle_mcp_errors
async def wb_product_details(server: "ServerContext", *, product_id: str) -> dict[str, Any]:
    detail = await catalog.get_detail(server, int(product_id))
    return ok_response(
        tool="wb_product_details",
        input={"product_id": product_id},
        output={"product": detail.to_dict()},
    )


@handle_mcp_errors
async def wb_products_list(server: "ServerContext", *, product_ids: list[str]) -> dict[str, Any]:
    items = await catalog.get_list(server, [int(pid) for pid in product_ids])
    return ok_response(
        tool="wb_products_list",
        input={"product_ids": product_ids},
        output={"count": len(items), "products": [item.to_dict() for item in items]},
    )


@handle_mcp_errors
async def wb_set_destination(server: "ServerContext", *, address: str) -> dict[str, Any]:
    # An unresolvable address is a negative answer, not a tool failure.
    result = await destination.set_destination(server, address)
    return ok_response(tool="wb_set_destination", input={"address": address}, output=result)


@handle_mcp_errors
async def wb_get_filters(server: "ServerContext", *, query: str) -> dict[str, Any]:
    descriptor = await catalog.get_filters(server, query)
    return ok_response(tool="wb_get_filters", input={"query": query}, output=descriptor.to_dict())


HANDLERS = {
    "wb_search": wb_search,
    "wb_product_details": wb_product_details,
    "wb_products_list": wb_products_list,
    "wb_set_destination": wb_set_destination,
    "wb_get_filters": wb_get_filters,
}
