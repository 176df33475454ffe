from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from typing import Any, AsyncIterator, Optional

import anyio
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response, StreamingResponse
from starlette.routing import Route

from wb_mcp import SERVER_NAME, __version__
from wb_mcp.context import ServerContext
from wb_mcp.protocol import PARSE_ERROR, McpProtocol, SessionStore, rpc_error
from wb_mcp.registry import TOOLS, ToolDispatcher

__all__ = ["create_app", "keepalive_stream"]

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"
KEEPALIVE_FRAME = ": keepalive\n\n"


async def keepalive_stream(request: Any, interval: float) -> AsyncIterator[str]:
    """Write a keepalive comment frame every ``interval`` seconds until the client goes away."""
    logger.info("SSE stream opened")
    try:
        while True:
            await asyncio.sleep(interval)
            if await request.is_disconnected():
                break
            yield KEEPALIVE_FRAME
    finally:
        logger.info("SSE stream closed")


def create_app(server: Optional[ServerContext] = None, *, sessions: Optional[SessionStore] = None) -> Starlette:
    """Build the Streamable-HTTP style app serving ``/mcp``, ``/health`` and ``/``."""
    server = server or ServerContext()
    protocol = McpProtocol(ToolDispatcher(server), sessions)
    keepalive_s = server.settings.MCP_KEEPALIVE_S

    async def mcp_post(request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        logger.info("POST /mcp - Session: %s", session_id or "new")
        try:
            payload = json.loads(await request.body())
        except ValueError as e:
            return JSONResponse(rpc_error(None, PARSE_ERROR, f"Parse error: {e}"), status_code=400)

        reply = await protocol.handle(payload, session_id)
        headers = {SESSION_HEADER: reply.session_id} if reply.session_id else None
        if reply.body is None:
            return Response(status_code=202, headers=headers)
        return JSONResponse(reply.body, headers=headers)

    async def mcp_get(request: Request) -> Response:
        if "text/event-stream" not in request.headers.get("accept", ""):
            return JSONResponse({"error": "Accept header must include text/event-stream"}, status_code=406)
        session_id = request.headers.get(SESSION_HEADER)
        if session_id and session_id not in protocol.sessions:
            return JSONResponse({"error": "Session not found"}, status_code=404)
        return StreamingResponse(
            keepalive_stream(request, keepalive_s),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
        )

    async def mcp_delete(request: Request) -> Response:
        if protocol.sessions.delete(request.headers.get(SESSION_HEADER)):
            return JSONResponse({"success": True})
        return JSONResponse({"error": "Session not found"}, status_code=404)

    async def health(request: Request) -> Response:
        return JSONResponse(
            {"status": "ok", "server": SERVER_NAME, "version": __version__, "sessions": len(protocol.sessions)}
        )

    async def info(request: Request) -> Response:
        return JSONResponse(
            {
                "name": "Wildberries MCP Server",
                "version": __version__,
                "description": "MCP Server for Wildberries marketplace - search products, get details, prices and delivery info",
                "endpoints": {
                    "/mcp": "MCP Streamable HTTP endpoint (POST/GET/DELETE)",
                    "/health": "Health check",
                },
                "tools": [{"name": t["name"], "description": t["description"]} for t in TOOLS],
            }
        )

    @contextlib.asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncIterator[None]:
        try:
            yield
        finally:
            logger.info("Shutting down...")
            with anyio.CancelScope(shield=True):
                await server.close()

    app = Starlette(
        routes=[
            Route("/mcp", mcp_post, methods=["POST"]),
            Route("/mcp", mcp_get, methods=["GET"]),
            Route("/mcp", mcp_delete, methods=["DELETE"]),
            Route("/health", health, methods=["GET"]),
            Route("/", info, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["*"],
                expose_headers=[SESSION_HEADER],
            )
        ],
        lifespan=lifespan,
    )
    app.state.protocol = protocol
    app.state.server = server
    return app
