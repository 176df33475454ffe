from __future__ import annotations

from typing import Any, Literal, Optional

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult

from ..utils import safe_ctx_info

SortOrder = Literal["popular", "rate", "priceup", "pricedown", "newly"]


def _present(**kwargs: Any) -> dict[str, Any]:
    return {k: v for k, v in kwargs.items() if v is not None}


async def _call(dispatcher: Any, name: str, arguments: dict[str, Any]) -> CallToolResult:
    """Run a tool through the dispatcher; failed payloads come back with isError set."""
    return CallToolResult.model_validate(await dispatcher.invoke(name, arguments))


def _publish_table_schemas(mcp: FastMCP, dispatcher: Any) -> None:
    # tools/list serves the registry schemas, not the signature-derived ones.
    for spec in dispatcher.list_tools():
        tool = mcp._tool_manager.get_tool(spec["name"])
        if tool is not None:
            tool.description = spec["description"]
            tool.parameters = spec["inputSchema"]


def register(mcp: FastMCP, dispatcher: Any) -> None:
    """Register the Wildberries tools on a FastMCP server.

    Tool names and argument names match the registry table used by the HTTP
    transport, so both transports expose the same contract. Validation,
    clamping and error envelopes all happen in the dispatcher.
    """

    # ---------------------------------------------------------------------
    # wb_search
    # ---------------------------------------------------------------------
    @mcp.tool(name="wb_search")
    async def wb_search(
        query: str,
        sort: Optional[SortOrder] = None,
        page: Optional[int] = None,
        priceMin: Optional[float] = None,
        priceMax: Optional[float] = None,
        limit: Optional[int] = None,
        ctx: Optional[Context] = None,
    ) -> CallToolResult:
        """Search for products on Wildberries marketplace. Returns list of products with prices, ratings, and links.

        Args:
            query: Search query (e.g., "iPhone 15", "материнская плата AM4")
            sort: popular (default), rate, priceup, pricedown or newly
            page: Page number (default: 1)
            priceMin: Minimum price in rubles
            priceMax: Maximum price in rubles
            limit: Maximum number of results to return (default: 20, max: 100)
        """
        await safe_ctx_info(ctx, f"wb_search query={query!r}")
        return await _call(
            dispatcher,
            "wb_search",
            _present(query=query, sort=sort, page=page, priceMin=priceMin, priceMax=priceMax, limit=limit),
        )

    # ---------------------------------------------------------------------
    # wb_product_details
    # ---------------------------------------------------------------------
    @mcp.tool(name="wb_product_details")
    async def wb_product_details(productId: str, ctx: Optional[Context] = None) -> CallToolResult:
        """Get detailed information about a specific product by its ID. Returns full description, characteristics, prices, stock info, and delivery time.

        Args:
            productId: Product ID (nm_id) from Wildberries
        """
        await safe_ctx_info(ctx, f"wb_product_details productId={productId}")
        return await _call(dispatcher, "wb_product_details", {"productId": productId})

    # ---------------------------------------------------------------------
    # wb_products_list
    # ---------------------------------------------------------------------
    @mcp.tool(name="wb_products_list")
    async def wb_products_list(productIds: list[str], ctx: Optional[Context] = None) -> CallToolResult:
        """Get information about multiple products by their IDs. Useful for comparing products.

        Args:
            productIds: Array of product IDs to fetch
        """
        await safe_ctx_info(ctx, f"wb_products_list count={len(productIds)}")
        return await _call(dispatcher, "wb_products_list", {"productIds": productIds})

    @mcp.tool(name="wb_set_destination")
    async def wb_set_destination(address: str, ctx: Optional[Context] = None) -> CallToolResult:
        """Set delivery destination city/address. This affects delivery times and available stock in search results.

        Args:
            address: City or address for delivery (e.g., "Москва", "Саки, Крым", "Санкт-Петербург")
        """
        await safe_ctx_info(ctx, f"wb_set_destination address={address!r}")
        return await _call(dispatcher, "wb_set_destination", {"address": address})

    @mcp.tool(name="wb_get_filters")
    async def wb_get_filters(query: str, ctx: Optional[Context] = None) -> CallToolResult:
        """Get available filters and sort options for a search query. Useful for understanding what filters can be applied.

        Args:
            query: Search query to get filters for
        """
        return await _call(dispatcher, "wb_get_filters", {"query": query})

    _publish_table_schemas(mcp, dispatcher)
