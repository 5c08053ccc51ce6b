"""swarm-mcp utilities."""

from sm.utils.format import serialize_result

__all__ = ["serialize_result"]
