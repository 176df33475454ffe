"""Common parameter normalization utilities for the Wildberries MCP tools."""

from __future__ import annotations

import json
import re
from typing import Any, Dict

from wb_mcp.utils import error_response


def _preview(value: Any) -> str:
    text = value if isinstance(value, str) else str(value)
    return f"{text[:100]}{'...' if len(text) > 100 else ''}"


def normalize_params(params: Any, tool_name: str) -> Dict[str, Any]:
    """
    Normalize tool arguments to a dictionary with clear error messages.

    Some clients pass `arguments` as a JSON string instead of an object;
    both are accepted.

    Args:
        params: The arguments value passed to the tool
        tool_name: Name of the tool for error reporting

    Returns:
        Normalized arguments dictionary

    Raises:
        json.JSONDecodeError: If a string argument is not valid JSON
        ValueError: If params cannot be normalized to a dictionary
    """
    if params is None:
        return {}

    if isinstance(params, dict):
        return params

    if isinstance(params, str):
        parsed = json.loads(params)
        if not isinstance(parsed, dict):
            raise ValueError(f"{tool_name}: arguments JSON must be an object. Received: {_preview(params)}")
        return parsed

    raise ValueError(
        f"{tool_name}: arguments must be an object, not {type(params).__name__}. "
        f"Example: {{'query': 'iPhone 15'}}. "
        f"Received: {_preview(params)}"
    )


def _coerce(name: str, value: Any, spec: Dict[str, Any]) -> Any:
    expected = spec.get("type")
    if expected == "string":
        if isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
    elif expected == "integer":
        if isinstance(value, bool):
            pass
        elif isinstance(value, int):
            return value
        elif isinstance(value, float) and value.is_integer():
            return int(value)
        elif isinstance(value, str) and value.strip().lstrip("-").isdigit():
            return int(value.strip())
    elif expected == "number":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                return float(value)
            except ValueError:
                pass
    elif expected == "array":
        if isinstance(value, list):
            item_spec = spec.get("items") or {}
            return [_check(f"{name}[{i}]", item, item_spec) for i, item in enumerate(value)]
    else:
        return value
    raise ValueError(f"'{name}' must be of type {expected}, got {type(value).__name__}: {_preview(value)}")


def _check(name: str, value: Any, spec: Dict[str, Any]) -> Any:
    value = _coerce(name, value, spec)

    if "enum" in spec and value not in spec["enum"]:
        raise ValueError(f"'{name}' must be one of {', '.join(map(str, spec['enum']))}, got {value!r}")

    if "pattern" in spec and isinstance(value, str) and not re.search(spec["pattern"], value):
        raise ValueError(f"'{name}' has an invalid format: {value!r}")

    if isinstance(value, (int, float)):
        if "minimum" in spec and value < spec["minimum"]:
            value = spec["minimum"]
        if "maximum" in spec and value > spec["maximum"]:
            value = spec["maximum"]

    if isinstance(value, list) and len(value) < spec.get("minItems", 0):
        raise ValueError(f"'{name}' must contain at least {spec['minItems']} item(s)")

    return value


def validate_arguments(schema: Dict[str, Any], args: Dict[str, Any]) -> Dict[str, Any]:
    """Validate ``args`` against a tool input schema and return the cleaned copy.

    Required fields must be present and non-null. Declared defaults are filled,
    numeric bounds are clamped rather than rejected, and keys the schema does
    not declare are dropped.
    """
    properties: Dict[str, Any] = schema.get("properties", {})
    missing = [key for key in schema.get("required", []) if args.get(key) is None]
    if missing:
        raise ValueError(f"Missing required argument(s): {', '.join(missing)}")

    cleaned: Dict[str, Any] = {}
    for key, spec in properties.items():
        value = args.get(key)
        if value is None:
            if "default" in spec:
                cleaned[key] = spec["default"]
            continue
        cleaned[key] = _check(key, value, spec)
    return cleaned


def create_params_error(tool_name: str, params: Any, error_message: str) -> Dict[str, Any]:
    """
    Create a standardized error response for parameter validation errors.

    Args:
        tool_name: Name of the tool
        params: The invalid arguments value
        error_message: Detailed error message

    Returns:
        Error response dictionary
    """
    return error_response(
        tool=tool_name,
        input=params if isinstance(params, dict) else {"arguments": params},
        error_type="validation_error",
        code="E4001",
        message=error_message,
    )


def create_json_error(tool_name: str, params: str, error_detail: str) -> Dict[str, Any]:
    """
    Create a standardized error response for JSON parsing errors.

    Args:
        tool_name: Name of the tool
        params: The invalid JSON string
        error_detail: JSON parsing error detail

    Returns:
        Error response dictionary
    """
    error_message = (
        f"Invalid JSON in arguments: {error_detail}. "
        f"Use object format: {{'query': 'iPhone 15'}} "
        f"or a valid JSON string: '{{\"query\":\"iPhone 15\"}}'. "
        f"Received: {_preview(params)}"
    )

    return error_response(
        tool=tool_name,
        input={"arguments": params},
        error_type="json_error",
        code="E4002",
        message=error_message,
    )
