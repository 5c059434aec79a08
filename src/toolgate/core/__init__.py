"""
toolgate Core - Tool registry and dispatch

Components:
- tool_registry: Tool definitions (local / remote) and the local registry
- schema_validator: Validates parameters before dispatch
- tool_executor: Executes tools (in-process / HTTP)
- remote_loader: Fetches remote tool definitions with retries
- tool_config: Persisted enable/disable flags
- capabilities: Protocol features advertised to transports
- tool_manager: Merges everything behind one entry point
"""

from toolgate.core.tool_manager import REFRESH_TOOL_NAME, RefreshResult, ToolManager

__all__ = ["REFRESH_TOOL_NAME", "RefreshResult", "ToolManager"]
