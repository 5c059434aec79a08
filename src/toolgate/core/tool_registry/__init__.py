"""
Tool Registry - Tool definitions and the local tool registry

Responsibility:
- Describe tools (name, description, schemas, how they execute)
- Hold the fixed set of local tools
- NOT execute tools (that is tool_executor)
- NOT validate parameters (that is schema_validator)

A tool is one of two kinds:
- local: an in-process executor owned by the definition
- remote: an HTTP address; executing it means issuing a network call
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

ToolKind = Literal["local", "remote"]

# A pydantic model class, or a JSON Schema dict checked with Draft 7
StructuredSchema = Union[type[BaseModel], dict[str, Any]]

ToolExecutorFn = Callable[[dict[str, Any]], Any]


def _listing(name: str, description: str, input_schema: dict[str, Any]) -> dict[str, Any]:
    return {"name": name, "description": description, "inputSchema": input_schema}


@dataclass(frozen=True)
class LocalToolDefinition:
    """Tool executed in-process."""
    name: str
    description: str
    input_schema: dict[str, Any]
    executor: ToolExecutorFn
    structured_schema: StructuredSchema | None = None
    timeout_ms: int | None = 30000
    kind: Literal["local"] = field(default="local", init=False)

    def to_listing(self) -> dict[str, Any]:
        return _listing(self.name, self.description, self.input_schema)


class RemoteToolDefinition(BaseModel):
    """Tool executed by an HTTP call to ``execute_url``.

    Parsed from the remote registry listing, which uses camelCase keys
    (``inputSchema``, ``executeUrl``, ``timeout`` in milliseconds).
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    name: str = Field(..., min_length=1)
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )
    execute_url: str = Field(..., alias="executeUrl")
    method: str = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_ms: int = Field(default=10000, gt=0, alias="timeout")
    structured_schema: dict[str, Any] | None = Field(default=None, alias="structuredSchema")
    kind: Literal["remote"] = Field(default="remote", exclude=True)

    @field_validator("method")
    @classmethod
    def _upper_method(cls, value: str) -> str:
        return value.upper()

    def to_listing(self) -> dict[str, Any]:
        return _listing(self.name, self.description, self.input_schema)


ToolDefinition = Union[LocalToolDefinition, RemoteToolDefinition]


class LocalToolRegistry:
    """
    Holds the statically known local tools.

    Insertion order is preserved and is the order tools are listed in.
    """

    def __init__(self, tools: list[LocalToolDefinition] | None = None):
        self._tools: dict[str, LocalToolDefinition] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: LocalToolDefinition) -> None:
        """
        Register a local tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} already registered")
        self._tools[tool.name] = tool

    def get(self, name: str) -> LocalToolDefinition:
        """
        Raises:
            KeyError: If the tool does not exist
        """
        if name not in self._tools:
            raise KeyError(f"Tool {name} not found")
        return self._tools[name]

    def list_tools(self) -> list[str]:
        return list(self._tools.keys())

    def as_dict(self) -> dict[str, LocalToolDefinition]:
        """Copy of the name -> definition mapping."""
        return dict(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


__all__ = [
    "LocalToolDefinition",
    "LocalToolRegistry",
    "RemoteToolDefinition",
    "StructuredSchema",
    "ToolDefinition",
    "ToolExecutorFn",
    "ToolKind",
]
