"""
Tool Manager - Single entry point for listing and invoking tools

Responsibility:
- Merge local and remote tools (remote overrides local with the same name)
- Filter the merged registry through the tool config store
- Validate parameters, dispatch, and wrap results in ``{tool, result, executedAt}``
- Reload the remote subset at runtime without disturbing in-flight calls

Lifecycle: construct -> initialize() -> [call_tool / get_tools | refresh] -> close()

Readers take the current RegistryView and never see it change under them:
mutations build a new view and swap it in with one assignment. All
mutations (initialize, refresh, set_tool_enabled) are serialized by one
lock, and concurrent refresh callers share the in-flight refresh.
"""

import asyncio
import inspect
import logging
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Awaitable, Callable, Mapping, Union

import httpx

from toolgate.config import RemoteApiConfig
from toolgate.core.capabilities import Capabilities, build_capabilities
from toolgate.core.remote_loader import RemoteLoadResult, RemoteToolLoader
from toolgate.core.schema_validator import SchemaValidator
from toolgate.core.timestamps import utc_now_iso
from toolgate.core.tool_config import ToolConfig, ToolConfigStore
from toolgate.core.tool_executor import ToolExecutor
from toolgate.core.tool_registry import (
    LocalToolDefinition,
    LocalToolRegistry,
    RemoteToolDefinition,
    ToolDefinition,
    ToolKind,
)
from toolgate.exceptions import ToolGateException, ToolNotFoundException, ToolDisabledException
from toolgate.observability import MetricsStore, get_metrics_store

logger = logging.getLogger(__name__)

REFRESH_TOOL_NAME = "refresh_remote_tools"

ToolsChangedCallback = Callable[[], Union[None, Awaitable[None]]]


@dataclass(frozen=True)
class RegistryView:
    """Immutable snapshot of the local, remote and merged tool maps."""
    local: Mapping[str, LocalToolDefinition] = field(default_factory=lambda: MappingProxyType({}))
    remote: Mapping[str, RemoteToolDefinition] = field(default_factory=lambda: MappingProxyType({}))
    merged: Mapping[str, ToolDefinition] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def build(
        cls,
        local: Mapping[str, LocalToolDefinition],
        remote: Mapping[str, RemoteToolDefinition],
    ) -> "RegistryView":
        merged: dict[str, ToolDefinition] = dict(local)
        for name, tool in remote.items():
            if name in merged:
                logger.warning(f"Remote tool '{name}' is overriding local tool with same name")
            merged[name] = tool

        return cls(
            local=MappingProxyType(dict(local)),
            remote=MappingProxyType(dict(remote)),
            merged=MappingProxyType(merged),
        )


@dataclass
class RefreshResult:
    """Observable outcome of refresh_remote_tools()."""
    success: bool
    remote_tools_count: int
    previous_remote_tools_count: int
    total_tools_count: int
    error: str | None = None

    @property
    def message(self) -> str:
        if not self.success:
            return f"Failed to refresh remote tools: {self.error}"
        return (
            f"Successfully refreshed remote tools. Found {self.remote_tools_count} remote tools "
            f"(previously {self.previous_remote_tools_count})"
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "remoteToolsCount": self.remote_tools_count,
            "previousRemoteToolsCount": self.previous_remote_tools_count,
            "totalToolsCount": self.total_tools_count,
            "error": self.error,
        }


class ToolManager:
    """
    Dispatch core for local and remote tools.

    Args:
        remote_api_config: Remote loading behaviour (disabled by default)
        config_store: Persisted enable/disable flags
        local_tools: Local tools; defaults to the built-in tool set
        http_client: Shared client for remote loading and execution. When
            omitted the manager creates one and closes it in ``close()``.
        metrics: Metrics sink; defaults to the process-wide store
    """

    def __init__(
        self,
        remote_api_config: RemoteApiConfig | None = None,
        config_store: ToolConfigStore | None = None,
        local_tools: list[LocalToolDefinition] | None = None,
        http_client: httpx.AsyncClient | None = None,
        metrics: MetricsStore | None = None,
    ):
        self._remote_api_config = remote_api_config or RemoteApiConfig()
        self._config_store = config_store or ToolConfigStore()
        self._local_tools = local_tools
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient()
        self._executor = ToolExecutor(self._http_client)
        self._loader = RemoteToolLoader(self._remote_api_config, self._http_client)
        self._metrics = metrics or get_metrics_store()

        self._view = RegistryView()
        self._initialized = False
        self._lock = asyncio.Lock()
        self._refresh_task: asyncio.Task | None = None
        self._on_tools_changed: ToolsChangedCallback | None = None

    @property
    def remote_enabled(self) -> bool:
        return self._remote_api_config.enabled

    @property
    def config_store(self) -> ToolConfigStore:
        return self._config_store

    def set_on_tools_changed_callback(self, callback: ToolsChangedCallback | None) -> None:
        """Register a zero-argument callback (sync or async) run when the visible tool set changes."""
        self._on_tools_changed = callback

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load local and (if enabled) remote tools, then reconcile the tool config."""
        async with self._lock:
            await self._initialize_locked()

    async def _initialize_locked(self) -> RemoteLoadResult | None:
        local = LocalToolRegistry(self._build_local_tools())

        load = None
        remote: Mapping[str, RemoteToolDefinition] = {}
        if self._remote_api_config.enabled:
            load = await self._loader.load()
            remote = load.tools

        view = RegistryView.build(local.as_dict(), remote)
        # No tool is exposed before it has a config entry
        self._config_store.initialize(view.merged.keys())
        self._view = view
        self._initialized = True

        logger.info(
            f"Initialized {len(view.merged)} tools ({len(view.local)} local, {len(view.remote)} remote): "
            f"{', '.join(view.merged)}"
        )
        return load

    def _build_local_tools(self) -> list[LocalToolDefinition]:
        if self._local_tools is None:
            from toolgate.tools import get_builtin_tools

            tools = get_builtin_tools()
        else:
            tools = list(self._local_tools)

        if self._remote_api_config.enabled:
            tools.append(
                LocalToolDefinition(
                    name=REFRESH_TOOL_NAME,
                    description="Refresh and reload remote tools from the configured API endpoint",
                    input_schema={"type": "object", "properties": {}, "required": []},
                    executor=self._run_refresh_tool,
                    timeout_ms=None,
                )
            )
        return tools

    async def close(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self) -> "ToolManager":
        await self.initialize()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def get_capabilities(self) -> Capabilities:
        return build_capabilities(self._remote_api_config.enabled)

    def get_tools(self) -> list[dict[str, Any]]:
        """Enabled tools as ``{name, description, inputSchema}``, local first then remote."""
        return self._enabled_listing(self._view.merged)

    def get_tools_by_type(self, kind: ToolKind) -> list[dict[str, Any]]:
        view = self._view
        if kind == "local":
            return self._enabled_listing(view.local)
        elif kind == "remote":
            return self._enabled_listing(view.remote)
        raise ValueError(f"Unknown tool kind: {kind!r}")

    def _enabled_listing(self, tools: Mapping[str, ToolDefinition]) -> list[dict[str, Any]]:
        return [tool.to_listing() for name, tool in tools.items() if self._config_store.is_enabled(name)]

    def get_tool_stats(self) -> dict[str, Any]:
        view = self._view
        return {
            "total": len(view.merged),
            "local": len(view.local),
            "remote": len(view.remote),
            "remoteApiEnabled": self._remote_api_config.enabled,
        }

    def get_tool_configurations(self) -> list[ToolConfig]:
        return self._config_store.get_all_configs()

    # -------------------------------------------------------------------------
    # Invocation
    # -------------------------------------------------------------------------

    async def call_tool(self, name: str, parameters: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Validate and execute a tool.

        Returns:
            ``{"tool": name, "result": <raw output>, "executedAt": <ISO-8601>}``

        Raises:
            ToolNotFoundException: Unknown tool name
            ToolDisabledException: Tool is disabled in the tool config
            ToolValidationException: Parameters do not match the schema
            ToolExecutionException: The tool itself failed
        """
        parameters = parameters if parameters is not None else {}
        tool = self._view.merged.get(name)

        if tool is None:
            exc = ToolNotFoundException(name)
            self._metrics.record_error(exc.code)
            raise exc

        started = time.perf_counter()
        try:
            if not self._config_store.is_enabled(name):
                raise ToolDisabledException(name)
            SchemaValidator.validate_parameters(tool, parameters)
            result = await self._executor.execute(tool, parameters)
        except ToolGateException as exc:
            self._metrics.record_tool_error(name, exc.code)
            logger.warning(f"Tool call {name} failed: {exc.code} - {exc.message}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        self._metrics.record_tool_latency(name, elapsed_ms)
        logger.info(f"Tool {name} ({tool.kind}) executed in {elapsed_ms:.1f}ms")

        return {
            "tool": name,
            "result": result,
            "executedAt": utc_now_iso(),
        }

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def set_tool_enabled(self, name: str, enabled: bool) -> None:
        """
        Raises:
            ToolNotFoundException: If ``name`` is not in the merged registry
        """
        async with self._lock:
            if name not in self._view.merged:
                raise ToolNotFoundException(name)
            self._config_store.set_enabled(name, enabled)

        logger.info(f"Tool {name} {'enabled' if enabled else 'disabled'}")
        await self._notify_tools_changed()

    async def refresh_remote_tools(self) -> RefreshResult:
        """
        Reload the remote tool set.

        Never raises for an unreachable endpoint: the outcome is reported in
        the returned RefreshResult. Concurrent callers share one refresh.
        """
        if not self._remote_api_config.enabled:
            view = self._view
            return RefreshResult(
                success=False,
                remote_tools_count=len(view.remote),
                previous_remote_tools_count=len(view.remote),
                total_tools_count=len(view.merged),
                error="Remote tools are not enabled",
            )

        task = self._refresh_task
        if task is None or task.done():
            task = self._refresh_task = asyncio.ensure_future(self._refresh())
        return await asyncio.shield(task)

    async def _refresh(self) -> RefreshResult:
        async with self._lock:
            if self._initialized:
                previous = self._view
                load = await self._loader.load()
                view = RegistryView.build(previous.local, load.tools)
                self._config_store.reconcile(view.merged.keys())
                self._view = view
            else:
                # The initial load is this refresh
                previous = RegistryView()
                load = await self._initialize_locked()
                view = self._view

        result = RefreshResult(
            success=load.success,
            remote_tools_count=len(view.remote),
            previous_remote_tools_count=len(previous.remote),
            total_tools_count=len(view.merged),
            error=load.error,
        )
        self._metrics.record_refresh(result.success, result.remote_tools_count)
        logger.info(result.message)

        await self._notify_tools_changed()
        return result

    async def _run_refresh_tool(self, parameters: dict[str, Any]) -> dict[str, Any]:
        result = await self.refresh_remote_tools()
        return result.to_dict()

    async def _notify_tools_changed(self) -> None:
        callback = self._on_tools_changed
        if callback is None:
            return
        try:
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception:
            logger.exception("Tools-changed callback failed")


__all__ = ["REFRESH_TOOL_NAME", "RefreshResult", "RegistryView", "ToolManager"]
