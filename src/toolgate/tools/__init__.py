"""Built-in local tools."""

from toolgate.core.tool_registry import LocalToolDefinition
from toolgate.tools.base import BaseTool
from toolgate.tools.calculate_tax import CalculateTaxTool
from toolgate.tools.create_post import CreatePostTool
from toolgate.tools.get_weather import GetWeatherTool
from toolgate.tools.http_post import HttpPostTool
from toolgate.tools.send_email import SendEmailTool


def get_builtin_tools() -> list[LocalToolDefinition]:
    """Definitions of every built-in tool, in listing order."""
    return [
        HttpPostTool().definition,
        GetWeatherTool().definition,
        CreatePostTool().definition,
        CalculateTaxTool().definition,
        SendEmailTool().definition,
    ]


__all__ = [
    "BaseTool",
    "CalculateTaxTool",
    "CreatePostTool",
    "GetWeatherTool",
    "HttpPostTool",
    "SendEmailTool",
    "get_builtin_tools",
]
