"""Tool table and dispatcher shared by the stdio and HTTP transports."""

from __future__ import annotations

import copy
import json
import logging
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp import FastMCP
from pydantic.alias_generators import to_snake

from wb_mcp.tools.catalog import HANDLERS
from wb_mcp.tools.params_utils import (
    create_json_error,
    create_params_error,
    normalize_params,
    validate_arguments,
)
from wb_mcp.utils import error_response, text_result

if TYPE_CHECKING:
    from wb_mcp.context import ServerContext

logger = logging.getLogger(__name__)

SORT_ENUM = ["popular", "rate", "priceup", "pricedown", "newly"]

TOOLS: list[dict[str, Any]] = [
    {
        "name": "wb_search",
        "description": "Search for products on Wildberries marketplace. Returns list of products with prices, ratings, and links.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": 'Search query (e.g., "iPhone 15", "материнская плата AM4")',
                },
                "sort": {
                    "type": "string",
                    "enum": SORT_ENUM,
                    "default": "popular",
                    "description": "Sort order: popular (default), rate (by rating), priceup (price ascending), pricedown (price descending), newly (newest first)",
                },
                "page": {
                    "type": "integer",
                    "minimum": 1,
                    "default": 1,
                    "description": "Page number (default: 1)",
                },
                "priceMin": {"type": "number", "minimum": 0, "description": "Minimum price in rubles"},
                "priceMax": {"type": "number", "minimum": 0, "description": "Maximum price in rubles"},
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": 100,
                    "default": 20,
                    "description": "Maximum number of results to return (default: 20, max: 100)",
                },
            },
            "required": ["query"],
        },
    },
    {
        "name": "wb_product_details",
        "description": "Get detailed information about a specific product by its ID. Returns full description, characteristics, prices, stock info, and delivery time.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "productId": {
                    "type": "string",
                    "pattern": r"^\d+$",
                    "description": "Product ID (nm_id) from Wildberries",
                },
            },
            "required": ["productId"],
        },
    },
    {
        "name": "wb_products_list",
        "description": "Get information about multiple products by their IDs. Useful for comparing products.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "productIds": {
                    "type": "array",
                    "items": {"type": "string", "pattern": r"^\d+$"},
                    "minItems": 1,
                    "description": "Array of product IDs to fetch",
                },
            },
            "required": ["productIds"],
        },
    },
    {
        "name": "wb_set_destination",
        "description": "Set delivery destination city/address. This affects delivery times and available stock in search results.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "address": {
                    "type": "string",
                    "description": 'City or address for delivery (e.g., "Москва", "Саки, Крым", "Санкт-Петербург")',
                },
            },
            "required": ["address"],
        },
    },
    {
        "name": "wb_get_filters",
        "description": "Get available filters and sort options for a search query. Useful for understanding what filters can be applied.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query to get filters for"},
            },
            "required": ["query"],
        },
    },
]

TOOLS_BY_NAME = {tool["name"]: tool for tool in TOOLS}


class ToolDispatcher:
    """Validate a tool call, route it to its handler and return the payload."""

    def __init__(self, server: "ServerContext") -> None:
        self.server = server

    def list_tools(self) -> list[dict[str, Any]]:
        return copy.deepcopy(TOOLS)

    async def run(self, name: str, arguments: Any = None) -> dict[str, Any]:
        handler = HANDLERS.get(name)
        if handler is None:
            return error_response(
                tool=str(name),
                input={"arguments": arguments},
                error_type="invalid_tool",
                code="E4003",
                message=f"Unknown tool: {name}. Available: {', '.join(TOOLS_BY_NAME)}",
            )

        try:
            args = normalize_params(arguments, name)
        except json.JSONDecodeError as e:
            return create_json_error(name, arguments, str(e))
        except ValueError as e:
            return create_params_error(name, arguments, str(e))

        try:
            cleaned = validate_arguments(TOOLS_BY_NAME[name]["inputSchema"], args)
        except ValueError as e:
            return create_params_error(name, args, str(e))

        logger.info("Calling tool %s", name)
        return await handler(self.server, **{to_snake(key): value for key, value in cleaned.items()})

    async def invoke(self, name: str, arguments: Any = None) -> dict[str, Any]:
        """Run a tool and wrap the payload in the `tools/call` text envelope."""
        return text_result(await self.run(name, arguments))


def register_all(mcp: FastMCP, dispatcher: ToolDispatcher) -> None:
    """Register the Wildberries tools with the FastMCP server instance."""
    from wb_mcp.tools.entrypoints import register

    register(mcp, dispatcher)
