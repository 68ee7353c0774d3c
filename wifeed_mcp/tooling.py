"""
Tool boundary.

Every WiFeed operation is an ``async (client, params) -> ToolResponse``
function wrapped by :func:`operation`, which validates raw arguments first and
turns any failure into an error payload. No exception leaves a tool call.
"""

from __future__ import annotations

import functools
import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Type

from pydantic import BaseModel

from wifeed_mcp.client import WiFeedClient
from wifeed_mcp.constants import ResponseFormat
from wifeed_mcp.errors import WiFeedError
from wifeed_mcp.formatting import truncate_response
from wifeed_mcp.normalize import normalize_records
from wifeed_mcp.schemas import ToolInput, validate_params

logger = logging.getLogger(__name__)


class ToolResponse(BaseModel):
    """What a tool hands back to the MCP host."""

    text: str
    structured: Optional[Dict[str, Any]] = None
    is_error: bool = False


Operation = Callable[[WiFeedClient, Any], Awaitable[ToolResponse]]
BoundOperation = Callable[[WiFeedClient, Optional[Mapping[str, Any]]], Awaitable[ToolResponse]]


def error_response(action: str, message: str) -> ToolResponse:
    return ToolResponse(text=f"Error fetching {action}: {message}", is_error=True)


def no_data(message: str) -> ToolResponse:
    """Empty upstream result: informational text, not an error."""
    logger.info("No data: %s", message)
    return ToolResponse(text=message)


def to_json(output: Any) -> str:
    return json.dumps(output, indent=2, ensure_ascii=False)


def render(
    output: Dict[str, Any],
    response_format: ResponseFormat,
    markdown_fn: Callable[[Dict[str, Any]], str],
) -> ToolResponse:
    """JSON is returned whole with structured content; markdown is size-capped."""
    if response_format == ResponseFormat.JSON:
        return ToolResponse(text=to_json(output), structured=output)
    return ToolResponse(text=truncate_response(markdown_fn(output)))


async def fetch_records(
    client: WiFeedClient, endpoint: str, params: Mapping[str, Any]
) -> Tuple[List[Any], Any]:
    """GET ``endpoint`` and return ``(normalized records, raw payload)``."""
    payload = await client.get(endpoint, params)
    return normalize_records(payload), payload


def operation(action: str, schema: Type[ToolInput]) -> Callable[[Operation], BoundOperation]:
    """
    Wrap an operation with validation and error capture.

    Args:
        action: Noun phrase used in error text ("Error fetching {action}: ...")
        schema: Input model the raw arguments are validated against
    """

    def decorator(func: Operation) -> BoundOperation:
        @functools.wraps(func)
        async def wrapper(client: WiFeedClient, arguments: Optional[Mapping[str, Any]] = None) -> ToolResponse:
            try:
                params = validate_params(schema, arguments)
                return await func(client, params)
            except WiFeedError as e:
                logger.error("Error fetching %s: %s", action, e.message)
                return error_response(action, e.message)
            except Exception as e:
                logger.exception("Unexpected failure fetching %s", action)
                return error_response(action, str(e) or type(e).__name__)

        wrapper.action = action  # type: ignore[attr-defined]
        wrapper.schema = schema  # type: ignore[attr-defined]
        return wrapper

    return decorator
