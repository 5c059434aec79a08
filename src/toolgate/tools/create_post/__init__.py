"""create_post - Create a post on JSONPlaceholder (example API)."""

import logging
from typing import Any

import httpx

from toolgate.core.timestamps import utc_now_iso
from toolgate.tools.base import BaseTool, LocalToolDefinition

logger = logging.getLogger(__name__)

POSTS_URL = "https://jsonplaceholder.typicode.com/posts"


class CreatePostTool(BaseTool):

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None, timeout_seconds: float = 10.0):
        self._transport = transport
        self._timeout_seconds = timeout_seconds

    @property
    def definition(self) -> LocalToolDefinition:
        return LocalToolDefinition(
            name="create_post",
            description="Create a new post using JSONPlaceholder API (example API)",
            input_schema={
                "type": "object",
                "properties": {
                    "title": {"type": "string", "description": "The title of the post"},
                    "body": {"type": "string", "description": "The body content of the post"},
                    "userId": {"type": "number", "description": "The user ID creating the post", "default": 1},
                },
                "required": ["title", "body"],
            },
            executor=self.execute,
        )

    async def execute(self, parameters: dict[str, Any]) -> dict[str, Any]:
        payload = {
            "title": parameters["title"],
            "body": parameters["body"],
            "userId": parameters.get("userId", 1),
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout_seconds) as client:
                response = await client.post(POSTS_URL, json=payload)
                response.raise_for_status()
                post = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.info(f"create_post failed: {exc!r}")
            return {"success": False, "error": str(exc) or type(exc).__name__, "timestamp": utc_now_iso()}

        return {
            "success": True,
            "post": post,
            "message": "Post created successfully",
            "timestamp": utc_now_iso(),
        }


__all__ = ["CreatePostTool"]
