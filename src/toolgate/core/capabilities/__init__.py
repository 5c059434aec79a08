"""
Capabilities - Protocol features advertised to transports

Pure function of configuration. The tool set can only change at runtime
when remote loading is enabled, so ``listChanged`` follows that flag.
"""

from pydantic import BaseModel, Field


class ToolsCapability(BaseModel):
    supported: bool = True
    listChanged: bool = False


class FeatureCapability(BaseModel):
    supported: bool = False


class Capabilities(BaseModel):
    """Advertised once per stream connection."""

    tools: ToolsCapability = Field(default_factory=ToolsCapability)
    resources: FeatureCapability = Field(default_factory=FeatureCapability)
    prompts: FeatureCapability = Field(default_factory=FeatureCapability)
    logging: FeatureCapability = Field(default_factory=lambda: FeatureCapability(supported=True))


def build_capabilities(remote_enabled: bool) -> Capabilities:
    return Capabilities(tools=ToolsCapability(supported=True, listChanged=remote_enabled))


__all__ = ["Capabilities", "FeatureCapability", "ToolsCapability", "build_capabilities"]
