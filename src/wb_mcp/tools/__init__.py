"""Wildberries MCP tools.

Architecture:
- catalog.py: one handler per tool, returning ok/error payloads
- params_utils.py: argument normalization and schema validation
- entrypoints.py: FastMCP registration for the stdio transport
"""

from __future__ import annotations

__all__ = [
    "catalog",
    "entrypoints",
    "params_utils",
]
