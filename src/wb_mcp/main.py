"""
Wildberries MCP Server

Exposes Wildberries catalog tools via the Model Context Protocol (MCP):
1. Search products (rendered search page + price backfill)
2. Product details and multi-product lookups
3. Delivery destination and search filters

Usage:
    wb-mcp-server                      # stdio
    wb-mcp-server --transport http     # Streamable HTTP on MCP_HOST:MCP_PORT
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import signal
from typing import Any, AsyncIterator, Optional, Sequence

import anyio
from mcp.server.fastmcp import FastMCP

from wb_mcp import SERVER_NAME
from wb_mcp.config import get_settings
from wb_mcp.context import ServerContext
from wb_mcp.registry import ToolDispatcher, register_all

logger = logging.getLogger("wb_mcp")


def configure_logging(level: str) -> None:
    # stderr only: stdout carries the stdio protocol.
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def build_mcp(server: ServerContext) -> FastMCP:
    @contextlib.asynccontextmanager
    async def lifespan(_app: FastMCP) -> AsyncIterator[None]:
        try:
            yield
        finally:
            with anyio.CancelScope(shield=True):
                await server.close()

    mcp = FastMCP(SERVER_NAME, lifespan=lifespan)
    register_all(mcp, ToolDispatcher(server))
    return mcp


def _raise_keyboard_interrupt(signum: int, frame: Any) -> None:
    raise KeyboardInterrupt


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(prog=SERVER_NAME, description="Wildberries MCP server")
    parser.add_argument("--transport", choices=["stdio", "http"], default="stdio")
    parser.add_argument("--host", default=settings.MCP_HOST, help="HTTP bind host")
    parser.add_argument("--port", type=int, default=settings.MCP_PORT, help="HTTP bind port")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    server = ServerContext(settings)

    if args.transport == "http":
        import uvicorn

        from wb_mcp.http_server import create_app

        logger.info("Wildberries MCP Server running on http://%s:%s", args.host, args.port)
        logger.info("MCP endpoint: http://%s:%s/mcp", args.host, args.port)
        # uvicorn handles SIGINT/SIGTERM and runs the lifespan shutdown.
        uvicorn.run(create_app(server), host=args.host, port=args.port, log_level=settings.LOG_LEVEL.lower())
        return

    signal.signal(signal.SIGTERM, _raise_keyboard_interrupt)
    logger.info("Wildberries MCP Server running on stdio")
    try:
        build_mcp(server).run()
    except KeyboardInterrupt:
        logger.info("Shutting down...")


if __name__ == "__main__":
    main()
