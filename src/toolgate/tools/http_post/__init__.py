"""
http_post - Generic HTTP POST to an external API

Input: url + data (+ headers, timeout in ms)
Output: status, headers and decoded body of the response

Upstream failures are reported as ``success: false`` in the result.
"""

import logging
from typing import Any

import httpx

from toolgate.core.timestamps import utc_now_iso
from toolgate.tools.base import BaseTool, LocalToolDefinition

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 5000


def decode_body(response: httpx.Response) -> Any:
    """JSON body when there is one, text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpPostTool(BaseTool):
    """POST a JSON body to any URL."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    @property
    def definition(self) -> LocalToolDefinition:
        return LocalToolDefinition(
            name="http_post",
            description="Make HTTP POST requests to external APIs",
            input_schema={
                "type": "object",
                "properties": {
                    "url": {
                        "type": "string",
                        "description": "The URL to send the POST request to",
                    },
                    "data": {
                        "type": "object",
                        "description": "The JSON data to send in the request body",
                    },
                    "headers": {
                        "type": "object",
                        "description": "Additional headers to include in the request",
                        "default": {},
                    },
                    "timeout": {
                        "type": "number",
                        "description": "Request timeout in milliseconds",
                        "default": DEFAULT_TIMEOUT_MS,
                    },
                },
                "required": ["url", "data"],
            },
            executor=self.execute,
        )

    async def execute(self, parameters: dict[str, Any]) -> dict[str, Any]:
        url = parameters["url"]
        data = parameters["data"]
        headers = {"Content-Type": "application/json", **(parameters.get("headers") or {})}
        timeout_ms = parameters.get("timeout") or DEFAULT_TIMEOUT_MS

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=httpx.Timeout(timeout_ms / 1000.0)
            ) as client:
                response = await client.post(url, json=data, headers=headers)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.info(f"http_post to {url} failed: {exc!r}")
            return {
                "success": False,
                "error": str(exc) or type(exc).__name__,
                "timestamp": utc_now_iso(),
            }

        if response.is_error:
            return {
                "success": False,
                "error": f"Request failed with status code {response.status_code}",
                "status": response.status_code,
                "statusText": response.reason_phrase,
                "data": decode_body(response),
                "timestamp": utc_now_iso(),
            }

        return {
            "success": True,
            "status": response.status_code,
            "statusText": response.reason_phrase,
            "headers": dict(response.headers),
            "data": decode_body(response),
            "timestamp": utc_now_iso(),
        }


__all__ = ["HttpPostTool", "decode_body"]
