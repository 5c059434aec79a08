"""
toolgate - Common Schemas.

Pydantic models for the HTTP surface.
"""

from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, Field

from toolgate.core.capabilities import Capabilities


# =============================================================================
# Error Responses
# =============================================================================


class ErrorDetail(BaseModel):
    """Error detail structure."""

    code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(default=None, description="Additional context")
    request_id: UUID | None = Field(default=None, description="Request ID for tracing")


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: ErrorDetail


# =============================================================================
# Health Check
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["healthy"] = "healthy"
    version: str
    app_env: str
    timestamp: str
    tools: dict[str, Any] = Field(..., description="Tool statistics")


# =============================================================================
# Tools
# =============================================================================


class ToolInfo(BaseModel):
    """Tool as listed to callers."""

    name: str
    description: str
    inputSchema: dict[str, Any]


class ToolListResponse(BaseModel):
    success: bool = True
    tools: list[ToolInfo]
    count: int


class CapabilitiesResponse(BaseModel):
    success: bool = True
    capabilities: Capabilities


class ToolStats(BaseModel):
    total: int
    local: int
    remote: int
    remoteApiEnabled: bool


class CallToolRequest(BaseModel):
    """Tool invocation request."""

    tool: str = Field(..., min_length=1, description="Tool name")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


class ToolResult(BaseModel):
    """Result envelope returned by the tool manager."""

    tool: str
    result: Any = None
    executedAt: str


class CallToolResponse(BaseModel):
    success: bool = True
    result: ToolResult


# =============================================================================
# Tool Configuration
# =============================================================================


class ToolConfigEntry(BaseModel):
    toolName: str
    enabled: bool


class ToolConfigListResponse(BaseModel):
    tools: list[ToolConfigEntry]


class SetToolEnabledRequest(BaseModel):
    enabled: bool


class RefreshResponse(BaseModel):
    """Outcome of a remote tool refresh."""

    success: bool
    message: str
    remoteToolsCount: int
    previousRemoteToolsCount: int
    totalToolsCount: int
    error: str | None = None
