"""toolgate HTTP routes."""

from toolgate.api.routes.mcp import router as mcp_router
from toolgate.api.routes.stream import router as stream_router

__all__ = ["mcp_router", "stream_router"]
