"""Shared fixtures: local test tools and a fake remote tool server."""

import asyncio
import json
from typing import Any

import httpx
import pytest

from toolgate.config import RemoteApiConfig
from toolgate.core.tool_config import ToolConfigStore
from toolgate.core.tool_manager import ToolManager
from toolgate.core.tool_registry import LocalToolDefinition
from toolgate.observability import MetricsStore

REMOTE_BASE = "http://remote.test"
REMOTE_TOOLS_URL = f"{REMOTE_BASE}/mcp/tools"


async def _echo(parameters: dict[str, Any]) -> dict[str, Any]:
    return {"echoed": parameters["msg"]}


def echo_tool() -> LocalToolDefinition:
    return LocalToolDefinition(
        name="echo",
        description="Echo a message",
        input_schema={
            "type": "object",
            "properties": {"msg": {"type": "string"}},
            "required": ["msg"],
        },
        executor=_echo,
    )


def post_like_tool() -> LocalToolDefinition:
    """Same schema shape as http_post, without the network."""

    async def executor(parameters: dict[str, Any]) -> dict[str, Any]:
        return {"sent": parameters["data"], "to": parameters["url"]}

    return LocalToolDefinition(
        name="post_like",
        description="Pretend to POST",
        input_schema={
            "type": "object",
            "properties": {
                "url": {"type": "string"},
                "data": {"type": "object"},
                "timeout": {"type": "number"},
            },
            "required": ["url", "data"],
        },
        executor=executor,
    )


def remote_tool(name: str = "calculate_tax", path: str = "/tools/calculate-tax", **overrides: Any) -> dict[str, Any]:
    """Remote tool definition as served by a registry endpoint."""
    definition = {
        "name": name,
        "description": f"Remote {name}",
        "executeUrl": f"{REMOTE_BASE}{path}",
        "method": "POST",
        "timeout": 5000,
        "inputSchema": {
            "type": "object",
            "properties": {
                "amount": {"type": "number"},
                "rate": {"type": "number"},
            },
            "required": ["amount", "rate"],
        },
    }
    definition.update(overrides)
    return definition


class FakeRemoteServer:
    """
    httpx MockTransport handler playing the remote registry and execute endpoints.

    ``/tools/calculate-tax`` computes tax, ``/tools/fail`` answers
    ``success: false``, ``/tools/crash`` answers HTTP 500.
    """

    def __init__(self, tools: list[dict[str, Any]] | None = None):
        self.tools = tools if tools is not None else [remote_tool()]
        self.unreachable = False
        self.listing_body: Any = None
        self.listing_delay = 0.0
        self.listing_calls = 0
        self.executions: list[dict[str, Any]] = []
        self.execution_headers: list[httpx.Headers] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)

        if request.url.path == "/mcp/tools":
            self.listing_calls += 1
            if self.listing_delay:
                await asyncio.sleep(self.listing_delay)
            body = self.listing_body if self.listing_body is not None else {"tools": self.tools, "version": "1.0.0"}
            return httpx.Response(200, json=body)

        body = json.loads(request.content) if request.content else {}
        self.executions.append(body)
        self.execution_headers.append(request.headers)

        if request.url.path == "/tools/calculate-tax":
            params = body["parameters"]
            tax = params["amount"] * params["rate"]
            return httpx.Response(200, json={
                "success": True,
                "result": {"taxAmount": tax, "totalAmount": params["amount"] + tax},
                "executedAt": body["timestamp"],
            })
        if request.url.path == "/tools/fail":
            return httpx.Response(200, json={"success": False, "error": "Invalid amount or rate values"})
        if request.url.path == "/tools/crash":
            return httpx.Response(500, json={"success": False, "error": "Internal server error"})
        if request.url.path == "/tools/slow":
            raise httpx.ReadTimeout("timed out", request=request)

        return httpx.Response(404, json={"success": False, "error": "Not found"})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def remote_server() -> FakeRemoteServer:
    return FakeRemoteServer()


@pytest.fixture
def config_path(tmp_path):
    return tmp_path / "tool-config.json"


@pytest.fixture
def make_manager(config_path):
    """
    Build a ToolManager with test tools, an isolated metrics store and a
    temp config file. Remote loading is enabled when a server is given.
    """

    def _make(
        local_tools: list[LocalToolDefinition] | None = None,
        server: FakeRemoteServer | None = None,
        retry_attempts: int = 1,
        **manager_kwargs: Any,
    ) -> ToolManager:
        remote_config = RemoteApiConfig(
            enabled=server is not None,
            tools_url=REMOTE_TOOLS_URL,
            timeout_ms=1000,
            retry_attempts=retry_attempts,
            retry_delay_ms=0,
        )
        return ToolManager(
            remote_api_config=remote_config,
            config_store=ToolConfigStore(config_path),
            local_tools=local_tools if local_tools is not None else [echo_tool()],
            http_client=server.client() if server is not None else httpx.AsyncClient(),
            metrics=MetricsStore(),
            **manager_kwargs,
        )

    return _make
