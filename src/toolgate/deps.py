"""
toolgate - Dependency Injection.

FastAPI dependencies for objects created in the application lifespan.
"""

from typing import Annotated

from fastapi import Depends, Request

from toolgate.api.events import ToolsChangedBroadcaster
from toolgate.config import Settings, get_settings
from toolgate.core.tool_manager import ToolManager


def get_tool_manager(request: Request) -> ToolManager:
    """Tool manager created in the application lifespan."""
    return request.app.state.tool_manager


def get_broadcaster(request: Request) -> ToolsChangedBroadcaster:
    """Fan-out of tools-changed events to open streams."""
    return request.app.state.broadcaster


ToolManagerDep = Annotated[ToolManager, Depends(get_tool_manager)]
BroadcasterDep = Annotated[ToolsChangedBroadcaster, Depends(get_broadcaster)]
SettingsDep = Annotated[Settings, Depends(get_settings)]
