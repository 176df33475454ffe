"""JSON-RPC 2.0 message handling and session records for the HTTP transport."""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from wb_mcp import SERVER_NAME, __version__

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2024-11-05", "2025-03-26")
DEFAULT_PROTOCOL_VERSION = "2025-03-26"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def select_protocol(requested: Any) -> str:
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return DEFAULT_PROTOCOL_VERSION


def initialize_result(protocol: str) -> dict[str, Any]:
    return {
        "protocolVersion": protocol,
        "capabilities": {"tools": {}},
        "serverInfo": {"name": SERVER_NAME, "version": __version__},
    }


def rpc_result(request_id: Any, result: Any) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def rpc_error(request_id: Any, code: int, message: str) -> dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


@dataclass(frozen=True)
class SessionRecord:
    id: str
    created_at: float


class SessionStore:
    """In-memory session registry. A session pins no browser or destination state."""

    def __init__(self) -> None:
        self._sessions: dict[str, SessionRecord] = {}

    def create(self) -> SessionRecord:
        record = SessionRecord(id=f"mcp-{uuid.uuid4().hex}", created_at=time.time())
        self._sessions[record.id] = record
        logger.info("Session %s created", record.id)
        return record

    def get(self, session_id: Optional[str]) -> Optional[SessionRecord]:
        if not session_id:
            return None
        return self._sessions.get(session_id)

    def delete(self, session_id: Optional[str]) -> bool:
        if not session_id or session_id not in self._sessions:
            return False
        del self._sessions[session_id]
        logger.info("Session %s terminated", session_id)
        return True

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)


@dataclass
class ProtocolReply:
    responses: list[dict[str, Any]] = field(default_factory=list)
    session_id: Optional[str] = None
    batched: bool = False

    @property
    def body(self) -> Any:
        """What goes on the wire: an array for batches, one object otherwise, None when empty."""
        if not self.responses:
            return None
        if self.batched:
            return self.responses
        return self.responses[0]


class McpProtocol:
    """Route JSON-RPC requests to the tool dispatcher."""

    def __init__(self, dispatcher: Any, sessions: Optional[SessionStore] = None) -> None:
        self.dispatcher = dispatcher
        self.sessions = sessions if sessions is not None else SessionStore()

    async def handle_message(self, message: Any) -> Optional[dict[str, Any]]:
        """Process one request; returns None for notifications."""
        if not isinstance(message, dict):
            return rpc_error(None, INVALID_REQUEST, "Invalid Request")

        method = message.get("method")
        request_id = message.get("id")
        if not isinstance(method, str):
            return rpc_error(request_id, INVALID_REQUEST, "Invalid Request: missing method")

        if "id" not in message:
            logger.debug("Notification %s", method)
            return None

        params = message.get("params")
        try:
            if method == "initialize":
                requested = params.get("protocolVersion") if isinstance(params, dict) else None
                return rpc_result(request_id, initialize_result(select_protocol(requested)))
            if method == "tools/list":
                return rpc_result(request_id, {"tools": self.dispatcher.list_tools()})
            if method == "tools/call":
                if not isinstance(params, dict) or not isinstance(params.get("name"), str):
                    return rpc_error(request_id, INVALID_PARAMS, "Invalid params: tool name is required")
                result = await self.dispatcher.invoke(params["name"], params.get("arguments"))
                return rpc_result(request_id, result)
            if method == "ping":
                return rpc_result(request_id, {})
            return rpc_error(request_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        except Exception as exc:
            logger.exception("Request %s failed", method)
            return rpc_error(request_id, INTERNAL_ERROR, str(exc))

    async def handle(self, payload: Any, session_id: Optional[str] = None) -> ProtocolReply:
        """Process a single request or an ordered batch."""
        batched = isinstance(payload, list)
        messages = payload if batched else [payload]
        if batched and not messages:
            return ProtocolReply([rpc_error(None, INVALID_REQUEST, "Invalid Request: empty batch")])

        reply = ProtocolReply(batched=batched)
        for message in messages:
            response = await self.handle_message(message)
            if response is not None:
                reply.responses.append(response)

        if not session_id and any(isinstance(m, dict) and m.get("method") == "initialize" for m in messages):
            reply.session_id = self.sessions.create().id
        return reply
