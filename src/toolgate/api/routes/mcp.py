"""
toolgate Tool Routes.

Plain request/response surface over the tool manager: listing, invocation,
configuration, refresh and metrics.
"""

import logging
from typing import Literal

from fastapi import APIRouter

from toolgate.deps import ToolManagerDep
from toolgate.observability import get_metrics_store
from toolgate.schemas import (
    CallToolRequest,
    CallToolResponse,
    CapabilitiesResponse,
    RefreshResponse,
    SetToolEnabledRequest,
    ToolConfigEntry,
    ToolConfigListResponse,
    ToolListResponse,
    ToolStats,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mcp", tags=["mcp"])


# =============================================================================
# Listing
# =============================================================================


@router.get("/tools", response_model=ToolListResponse)
async def list_tools(manager: ToolManagerDep):
    """Enabled tools, local first then remote."""
    tools = manager.get_tools()
    return ToolListResponse(tools=tools, count=len(tools))


@router.get("/tools/{kind}", response_model=ToolListResponse)
async def list_tools_by_type(kind: Literal["local", "remote"], manager: ToolManagerDep):
    """Enabled tools from one source."""
    tools = manager.get_tools_by_type(kind)
    return ToolListResponse(tools=tools, count=len(tools))


@router.get("/capabilities", response_model=CapabilitiesResponse)
async def get_capabilities(manager: ToolManagerDep):
    return CapabilitiesResponse(capabilities=manager.get_capabilities())


@router.get("/stats", response_model=ToolStats)
async def get_stats(manager: ToolManagerDep):
    return manager.get_tool_stats()


# =============================================================================
# Invocation
# =============================================================================


@router.post("/call-tool", response_model=CallToolResponse)
async def call_tool(payload: CallToolRequest, manager: ToolManagerDep):
    """
    Call a tool.

    Failures use the standard error body:
    404 unknown tool, 403 disabled tool, 400 invalid parameters,
    502 tool execution failed.
    """
    logger.info(f"Calling tool: {payload.tool}")
    result = await manager.call_tool(payload.tool, payload.parameters)
    return CallToolResponse(result=result)


# =============================================================================
# Configuration
# =============================================================================


@router.get("/config", response_model=ToolConfigListResponse)
async def list_tool_configurations(manager: ToolManagerDep):
    """Persisted enable/disable flags for every known tool."""
    configs = manager.get_tool_configurations()
    return ToolConfigListResponse(tools=[ToolConfigEntry(**config.model_dump()) for config in configs])


@router.put("/config/{tool_name}", response_model=ToolConfigEntry)
async def set_tool_enabled(tool_name: str, payload: SetToolEnabledRequest, manager: ToolManagerDep):
    await manager.set_tool_enabled(tool_name, payload.enabled)
    return ToolConfigEntry(toolName=tool_name, enabled=payload.enabled)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_remote_tools(manager: ToolManagerDep):
    """
    Reload remote tools from the configured endpoint.

    Always 200: an unreachable endpoint is reported in the body.
    """
    result = await manager.refresh_remote_tools()
    return result.to_dict()


# =============================================================================
# Metrics
# =============================================================================


@router.get("/metrics")
def get_metrics() -> dict:
    """
    Current metrics summary: per-tool latencies (p50, p90, p99, mean, max),
    error counts by code and remote refresh outcomes.
    """
    return get_metrics_store().get_summary()
