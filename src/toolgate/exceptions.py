"""
toolgate - Custom Exceptions.

Centralized exception taxonomy with standardized error responses.
"""

from typing import Any
from uuid import UUID


class ToolGateException(Exception):
    """Base exception for toolgate."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
        request_id: UUID | None = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        self.request_id = request_id
        super().__init__(message)


class ToolNotFoundException(ToolGateException):
    """Raised when a tool name is not in the merged registry."""

    def __init__(self, tool_name: str):
        super().__init__(
            code="TOOL_NOT_FOUND",
            message=f"Tool '{tool_name}' not found",
            status_code=404,
            details={"tool": tool_name},
        )


class ToolDisabledException(ToolGateException):
    """Raised when a known tool is disabled in the tool configuration."""

    def __init__(self, tool_name: str):
        super().__init__(
            code="TOOL_DISABLED",
            message=f"Tool '{tool_name}' is disabled",
            status_code=403,
            details={"tool": tool_name},
        )


class ToolValidationException(ToolGateException):
    """Raised when tool parameters do not match the tool schema."""

    def __init__(self, tool_name: str, errors: list[str]):
        self.errors = errors
        super().__init__(
            code="VALIDATION_ERROR",
            message=f"Validation failed: {', '.join(errors)}",
            status_code=400,
            details={"tool": tool_name, "errors": errors},
        )


class ToolExecutionException(ToolGateException):
    """Raised when a tool (local executor or remote delegate) fails."""

    def __init__(self, tool_name: str, reason: str):
        self.tool = tool_name
        self.reason = reason
        super().__init__(
            code="TOOL_EXECUTION_FAILED",
            message=f"Tool execution failed: {reason}",
            status_code=502,
            details={"tool": tool_name},
        )


class ConfigLoadException(ToolGateException):
    """Raised when the persisted tool configuration cannot be read."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="CONFIG_LOAD_FAILED",
            message=f"Failed to load tool configuration from {path}: {reason}",
            details={"path": path},
        )


class ConfigSaveException(ToolGateException):
    """Raised when the tool configuration cannot be written."""

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="CONFIG_SAVE_FAILED",
            message=f"Failed to save tool configuration to {path}: {reason}",
            details={"path": path},
        )


class RemoteLoadException(ToolGateException):
    """Raised when the remote tool registry cannot be fetched."""

    def __init__(self, url: str | None, reason: str, attempts: int | None = None):
        self.reason = reason
        details: dict[str, Any] = {"url": url}
        if attempts is not None:
            details["attempts"] = attempts
        super().__init__(
            code="REMOTE_LOAD_FAILED",
            message=f"Failed to load remote tools: {reason}",
            status_code=502,
            details=details,
        )
