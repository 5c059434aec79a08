"""
Tool Executor - Runs local and remote tools

Responsibility:
- Execute tools (local in-process / remote over HTTP)
- Handle timeouts
- Normalize every failure into ToolExecutionException
- NOT validate parameters (that is schema_validator)
- NOT decide whether a tool may run (that is the tool manager)
"""

import asyncio
import inspect
import logging
from typing import Any

import httpx

from toolgate import __version__
from toolgate.core.timestamps import utc_now_iso
from toolgate.core.tool_registry import LocalToolDefinition, RemoteToolDefinition, ToolDefinition
from toolgate.exceptions import ToolExecutionException

logger = logging.getLogger(__name__)

USER_AGENT = f"toolgate/{__version__}"

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "User-Agent": USER_AGENT,
}

REMOTE_FAILED = "Remote tool execution failed"


class RemoteToolInvoker:
    """
    Executes a remote tool by calling its execute URL.

    Request body: ``{tool, parameters, timestamp}``.
    Expected response: ``{success, result?, error?, executedAt}``.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = http_client

    async def invoke(self, tool: RemoteToolDefinition, parameters: dict[str, Any]) -> Any:
        payload = {
            "tool": tool.name,
            "parameters": parameters,
            "timestamp": utc_now_iso(),
        }

        try:
            response = await self._client.request(
                tool.method,
                tool.execute_url,
                json=payload,
                headers={**DEFAULT_HEADERS, **tool.headers},
                timeout=tool.timeout_ms / 1000.0,
            )
        except httpx.TimeoutException as exc:
            raise ToolExecutionException(tool.name, f"{REMOTE_FAILED}: Timeout exceeded") from exc
        except httpx.RequestError as exc:
            logger.debug(f"No response from {tool.execute_url}: {exc!r}")
            raise ToolExecutionException(tool.name, f"{REMOTE_FAILED}: No response from server") from exc

        body = _json_body(response)

        if response.is_error:
            reason = f"{REMOTE_FAILED}: {response.status_code} {response.reason_phrase}"
            if isinstance(body, dict) and body.get("error"):
                reason = f"{reason} ({body['error']})"
            raise ToolExecutionException(tool.name, reason)

        if not isinstance(body, dict):
            raise ToolExecutionException(tool.name, f"{REMOTE_FAILED}: Invalid response body")

        if body.get("success"):
            return body.get("result")

        raise ToolExecutionException(tool.name, body.get("error") or REMOTE_FAILED)


def _json_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class ToolExecutor:
    """
    Executor for both tool kinds.

    Local executors may be coroutine functions or plain functions (run in a
    worker thread). Timeouts are applied consistently.
    """

    def __init__(self, http_client: httpx.AsyncClient):
        self._remote = RemoteToolInvoker(http_client)

    async def execute(self, tool: ToolDefinition, parameters: dict[str, Any]) -> Any:
        """
        Execute a tool and return its raw output.

        Raises:
            ToolExecutionException: If the execution fails for any reason
        """
        try:
            if tool.kind == "local":
                return await self._execute_local(tool, parameters)
            elif tool.kind == "remote":
                return await self._remote.invoke(tool, parameters)
            else:
                raise ToolExecutionException(tool.name, f"Unsupported tool kind: {tool.kind}")
        except asyncio.TimeoutError as exc:
            raise ToolExecutionException(tool.name, "Timeout exceeded") from exc
        except ToolExecutionException:
            raise
        except Exception as e:
            raise ToolExecutionException(tool.name, str(e) or type(e).__name__) from e

    async def _execute_local(self, tool: LocalToolDefinition, parameters: dict[str, Any]) -> Any:
        """Run a local executor under its timeout."""
        timeout_sec = tool.timeout_ms / 1000.0 if tool.timeout_ms else None
        executor = tool.executor

        if inspect.iscoroutinefunction(executor):
            return await asyncio.wait_for(executor(parameters), timeout=timeout_sec)

        # Sync executor: run it in a thread
        return await asyncio.wait_for(
            asyncio.to_thread(executor, parameters),
            timeout=timeout_sec,
        )


__all__ = ["DEFAULT_HEADERS", "RemoteToolInvoker", "ToolExecutor", "USER_AGENT"]
