"""Result serialization for MCP text responses."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

__all__ = ["serialize_result"]


def serialize_result(result: Any) -> str:
    """Serialize a tool result or wire error to MCP text content.

    - Strings pass through unchanged
    - Pydantic wire models are dumped with camelCase keys, unset fields omitted
    - Dicts and lists are serialized to compact JSON
    - Other types use str()

    Args:
        result: Tool result (model, dict, list, str, or other)

    Returns:
        String representation suitable for MCP response
    """
    if isinstance(result, str):
        return result
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(result, (dict, list)):
        return json.dumps(result, ensure_ascii=False, separators=(",", ":"))
    return str(result)
