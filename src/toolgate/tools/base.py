"""
toolgate Tools - Built-in local tools

Each tool:
- Declares its definition (name, description, input schema, optional structured schema)
- Implements execute()
- Reports upstream HTTP failures in its result instead of raising
"""

from abc import ABC, abstractmethod
from typing import Any

from toolgate.core.tool_registry import LocalToolDefinition


class BaseTool(ABC):
    """
    Base class for built-in tools.

    ``definition`` binds ``execute`` as the executor, so registering a tool
    is ``registry.register(SomeTool().definition)``.
    """

    @property
    @abstractmethod
    def definition(self) -> LocalToolDefinition:
        """Return the tool definition."""
        pass

    @abstractmethod
    async def execute(self, parameters: dict[str, Any]) -> Any:
        """
        Execute the tool.

        Args:
            parameters: Parameters already validated against the tool schema
        """
        pass


__all__ = ["BaseTool", "LocalToolDefinition"]
