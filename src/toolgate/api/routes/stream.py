"""
toolgate Streaming Routes.

- GET  /mcp/stream: newline-delimited JSON events
- GET  /mcp/sse: the same events as server-sent events
- POST /mcp/call-tool-stream: ``status`` then ``result`` or ``error``, as NDJSON

Streaming is a transport decoration: a tool call still either produces a
complete result or fails.
"""

import json
import logging
from typing import Any, AsyncIterator
from uuid import uuid4

from fastapi import APIRouter
from fastapi.responses import StreamingResponse
from sse_starlette.sse import EventSourceResponse

from toolgate.api.events import stream_events
from toolgate.core.timestamps import utc_now_iso
from toolgate.deps import BroadcasterDep, SettingsDep, ToolManagerDep
from toolgate.exceptions import ToolGateException
from toolgate.schemas import CallToolRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/mcp", tags=["mcp-stream"])

NDJSON = "application/x-ndjson"

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _ndjson(event: dict[str, Any]) -> str:
    return json.dumps(event, default=str) + "\n"


@router.get("/stream")
async def event_stream(manager: ToolManagerDep, broadcaster: BroadcasterDep, settings: SettingsDep):
    """Connection, capabilities, then pings and tools_changed events (NDJSON)."""
    events = stream_events(manager, broadcaster, uuid4().hex, settings.stream.ping_interval_seconds)

    async def body() -> AsyncIterator[str]:
        async for event in events:
            yield _ndjson(event)

    return StreamingResponse(body(), media_type=NDJSON, headers=STREAM_HEADERS)


@router.get("/sse")
async def sse_stream(manager: ToolManagerDep, broadcaster: BroadcasterDep, settings: SettingsDep):
    """Same events as /mcp/stream, as server-sent events named after their type."""
    events = stream_events(manager, broadcaster, uuid4().hex, settings.stream.ping_interval_seconds)

    async def body() -> AsyncIterator[dict[str, str]]:
        async for event in events:
            yield {"event": event["type"], "data": json.dumps(event, default=str)}

    return EventSourceResponse(body(), headers=STREAM_HEADERS)


@router.post("/call-tool-stream")
async def call_tool_stream(payload: CallToolRequest, manager: ToolManagerDep):
    """Run a tool and report progress as NDJSON events."""

    async def body() -> AsyncIterator[str]:
        yield _ndjson({
            "type": "status",
            "message": f"Starting execution of tool: {payload.tool}",
            "timestamp": utc_now_iso(),
        })
        try:
            result = await manager.call_tool(payload.tool, payload.parameters)
        except ToolGateException as exc:
            yield _ndjson({
                "type": "error",
                "success": False,
                "code": exc.code,
                "error": exc.message,
                "details": exc.details,
                "timestamp": utc_now_iso(),
            })
            return

        yield _ndjson({
            "type": "result",
            "success": True,
            "result": result,
            "timestamp": utc_now_iso(),
        })

    return StreamingResponse(body(), media_type=NDJSON)
