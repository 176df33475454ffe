"""Common utility helpers for the Wildberries MCP tools."""
from __future__ import annotations

import functools
import json
import logging
from typing import Any, Callable, Optional

from .errors import AcquisitionError, ProductNotFoundError

logger = logging.getLogger("wb_mcp")


# ---------------------------------------------------------------------------
# Safe Context helpers (FastMCP context may be absent outside a request)
# ---------------------------------------------------------------------------

async def safe_ctx_info(ctx: Optional[Any], message: str) -> None:
    """Safely call ctx.info() if context is available and valid."""
    if ctx is None:
        return
    try:
        await ctx.info(message)
    except (ValueError, AttributeError):
        # No active request context - skip client-side logging
        pass


# ---------------------------------------------------------------------------
# Structured response helpers (LLM-friendly)
# ---------------------------------------------------------------------------

def ok_response(*, tool: str, input: dict[str, Any], output: Any) -> dict[str, Any]:
    return {"ok": True, "tool": tool, "input": input, "output": output}


def error_response(
    *,
    tool: str,
    input: dict[str, Any],
    error_type: str,
    message: str,
    details: Any | None = None,
    code: str = "E0000",
) -> dict[str, Any]:
    """Return a standardized error dict with machine-readable code."""
    return {
        "ok": False,
        "tool": tool,
        "input": input,
        "error": {"type": error_type, "code": code, "message": message, "details": details},
    }


def text_result(payload: dict[str, Any]) -> dict[str, Any]:
    """Wrap a tool payload into the MCP `tools/call` result envelope."""
    result: dict[str, Any] = {
        "content": [{"type": "text", "text": json.dumps(payload, ensure_ascii=False, indent=2)}],
    }
    if payload.get("ok") is False:
        result["isError"] = True
    return result


# ---------------------------------------------------------------------------
# Decorator to convert acquisition exceptions to structured output
# ---------------------------------------------------------------------------

def _classify_acquisition_error(message: str) -> tuple[str, str]:
    msg_l = message.lower()
    if "captcha" in msg_l or "403" in msg_l:
        return "blocked", "E2101"
    if "not exist" in msg_l or "404" in msg_l:
        return "not_found", "E2104"
    if "timeout" in msg_l or "504" in msg_l:
        return "upstream_timeout", "E2105"
    return "acquisition_error", "E2001"


def handle_mcp_errors(func: Callable) -> Callable:  # noqa: D401
    """Wrap a tool so it always returns dict instead of raising."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):  # type: ignore[return-value]
        tool_input = {k: v for k, v in kwargs.items() if k != "ctx"}
        try:
            return await func(*args, **kwargs)
        except ProductNotFoundError as e:
            logger.info("%s: %s", func.__name__, e)
            return error_response(
                tool=func.__name__,
                input=tool_input,
                error_type="not_found",
                code="E2104",
                message=str(e),
                details={"product_id": e.product_id},
            )
        except AcquisitionError as e:
            logger.error("Acquisition error in %s: %s", func.__name__, e)
            error_type, code = _classify_acquisition_error(str(e))
            return error_response(
                tool=func.__name__,
                input=tool_input,
                error_type=error_type,
                code=code,
                message=str(e),
            )
        except Exception as e:  # pragma: no cover
            logger.error("Unexpected error in %s: %s", func.__name__, str(e), exc_info=True)
            return error_response(
                tool=func.__name__,
                input=tool_input,
                error_type="unexpected_error",
                code="E9000",
                message=str(e),
            )

    return wrapper
