"""
Tests for the tool manager (dispatch core).
"""

import asyncio
import json
from datetime import datetime

import pytest
from pydantic import BaseModel, Field

from conftest import FakeRemoteServer, echo_tool, post_like_tool, remote_tool
from toolgate.config import RemoteApiConfig
from toolgate.core.tool_config import ToolConfigStore
from toolgate.core.tool_manager import REFRESH_TOOL_NAME, ToolManager
from toolgate.core.tool_registry import LocalToolDefinition
from toolgate.exceptions import (
    ConfigSaveException,
    ToolDisabledException,
    ToolExecutionException,
    ToolNotFoundException,
    ToolValidationException,
)
from toolgate.observability import MetricsStore


def _names(tools: list[dict]) -> list[str]:
    return [tool["name"] for tool in tools]


def _failing_replace(src, dst):
    raise OSError(28, "No space left on device")


class TestInitialize:
    """Initialization and config reconciliation."""

    @pytest.mark.asyncio
    async def test_tools_start_disabled(self, make_manager, config_path):
        manager = make_manager(local_tools=[echo_tool(), post_like_tool()])
        await manager.initialize()

        assert manager.get_tools() == []
        persisted = json.loads(config_path.read_text())
        assert persisted == [
            {"toolName": "echo", "enabled": False},
            {"toolName": "post_like", "enabled": False},
        ]

    @pytest.mark.asyncio
    async def test_calls_before_initialize_do_not_crash(self, make_manager):
        manager = make_manager()

        assert manager.get_tools() == []
        assert manager.get_tool_stats()["total"] == 0
        with pytest.raises(ToolNotFoundException):
            await manager.call_tool("echo", {"msg": "hi"})

    @pytest.mark.asyncio
    async def test_stale_config_entry_removed(self, make_manager, config_path):
        config_path.write_text(json.dumps([
            {"toolName": "X", "enabled": True},
            {"toolName": "echo", "enabled": True},
        ]))
        manager = make_manager()
        await manager.initialize()

        names = [config.toolName for config in manager.get_tool_configurations()]
        assert "X" not in names
        assert names == ["echo"]
        assert _names(manager.get_tools()) == ["echo"]

    @pytest.mark.asyncio
    async def test_corrupt_config_regenerated(self, make_manager, config_path):
        config_path.write_text("{not json")
        manager = make_manager()
        await manager.initialize()

        assert json.loads(config_path.read_text()) == [{"toolName": "echo", "enabled": False}]

    @pytest.mark.asyncio
    async def test_builtin_tools_by_default(self, config_path):
        async with ToolManager(config_store=ToolConfigStore(config_path), metrics=MetricsStore()) as manager:
            names = [config.toolName for config in manager.get_tool_configurations()]
            assert names == ["http_post", "get_weather", "create_post", "calculate_tax", "send_email"]
            assert manager.get_tool_stats()["remoteApiEnabled"] is False

    @pytest.mark.asyncio
    async def test_unreachable_remote_is_not_fatal(self, make_manager):
        server = FakeRemoteServer()
        server.unreachable = True
        manager = make_manager(server=server, retry_attempts=2)
        await manager.initialize()

        stats = manager.get_tool_stats()
        assert stats["remote"] == 0
        assert stats["remoteApiEnabled"] is True
        assert server.listing_calls == 0  # never reached the handler's counter

    @pytest.mark.asyncio
    async def test_malformed_remote_url_is_not_fatal(self, config_path):
        remote_config = RemoteApiConfig(enabled=True, tools_url="http://[::1", retry_attempts=1)
        manager = ToolManager(
            remote_api_config=remote_config,
            config_store=ToolConfigStore(config_path),
            local_tools=[echo_tool()],
            metrics=MetricsStore(),
        )
        async with manager:
            assert manager.get_tool_stats()["remote"] == 0
            assert "echo" in manager.config_store

    @pytest.mark.asyncio
    async def test_undecodable_config_regenerated(self, make_manager, config_path):
        config_path.write_bytes(b'[{"toolName": "echo\xff", "enabled": true}]')
        manager = make_manager()
        await manager.initialize()

        assert json.loads(config_path.read_text()) == [{"toolName": "echo", "enabled": False}]
        assert manager.get_tools() == []


class TestCallTool:
    """call_tool: lookup, enablement, validation, dispatch, envelope."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, make_manager):
        manager = make_manager()
        await manager.initialize()

        with pytest.raises(ToolNotFoundException) as exc_info:
            await manager.call_tool("nope", {})
        assert exc_info.value.code == "TOOL_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_disabled_tool(self, make_manager):
        manager = make_manager()
        await manager.initialize()

        assert "echo" not in _names(manager.get_tools())
        with pytest.raises(ToolDisabledException):
            await manager.call_tool("echo", {"msg": "hi"})

    @pytest.mark.asyncio
    async def test_echo_end_to_end(self, make_manager):
        manager = make_manager()
        await manager.initialize()
        await manager.set_tool_enabled("echo", True)

        envelope = await manager.call_tool("echo", {"msg": "hi"})

        assert envelope["tool"] == "echo"
        assert envelope["result"] == {"echoed": "hi"}
        assert envelope["executedAt"].endswith("Z")
        datetime.fromisoformat(envelope["executedAt"].replace("Z", "+00:00"))

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self, make_manager):
        manager = make_manager(local_tools=[post_like_tool()])
        await manager.initialize()
        await manager.set_tool_enabled("post_like", True)

        with pytest.raises(ToolValidationException) as exc_info:
            await manager.call_tool("post_like", {"url": "https://example.com"})
        assert "data" in exc_info.value.message

        envelope = await manager.call_tool("post_like", {"url": "https://example.com", "data": {"a": 1}})
        assert envelope["result"] == {"sent": {"a": 1}, "to": "https://example.com"}

    @pytest.mark.asyncio
    async def test_wrong_parameter_type(self, make_manager):
        manager = make_manager(local_tools=[post_like_tool()])
        await manager.initialize()
        await manager.set_tool_enabled("post_like", True)

        with pytest.raises(ToolValidationException) as exc_info:
            await manager.call_tool("post_like", {"url": "https://example.com", "data": "not-an-object"})
        assert exc_info.value.errors == ["Parameter 'data' must be an object"]

    @pytest.mark.asyncio
    async def test_extra_parameters_pass_through(self, make_manager):
        async def executor(parameters):
            return parameters

        tool = LocalToolDefinition(
            name="mirror",
            description="Return the parameters",
            input_schema={"type": "object", "properties": {"a": {"type": "string"}}, "required": ["a"]},
            executor=executor,
        )
        manager = make_manager(local_tools=[tool])
        await manager.initialize()
        await manager.set_tool_enabled("mirror", True)

        envelope = await manager.call_tool("mirror", {"a": "x", "extra": [1, 2]})
        assert envelope["result"] == {"a": "x", "extra": [1, 2]}

    @pytest.mark.asyncio
    async def test_structured_schema_preferred(self, make_manager):
        class Strict(BaseModel):
            count: int = Field(..., gt=0)

        async def executor(parameters):
            return parameters["count"]

        tool = LocalToolDefinition(
            name="counter",
            description="Count",
            # Declared schema alone would accept this call
            input_schema={"type": "object", "properties": {"count": {"type": "number"}}},
            structured_schema=Strict,
            executor=executor,
        )
        manager = make_manager(local_tools=[tool])
        await manager.initialize()
        await manager.set_tool_enabled("counter", True)

        with pytest.raises(ToolValidationException) as exc_info:
            await manager.call_tool("counter", {"count": -1})
        assert exc_info.value.errors[0].startswith("count: ")

    @pytest.mark.asyncio
    async def test_executor_failure_wrapped(self, make_manager):
        async def executor(parameters):
            raise RuntimeError("boom")

        tool = LocalToolDefinition(name="broken", description="", input_schema={}, executor=executor)
        manager = make_manager(local_tools=[tool])
        await manager.initialize()
        await manager.set_tool_enabled("broken", True)

        with pytest.raises(ToolExecutionException) as exc_info:
            await manager.call_tool("broken", {})
        assert exc_info.value.message == "Tool execution failed: boom"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_sync_executor(self, make_manager):
        tool = LocalToolDefinition(
            name="upper",
            description="",
            input_schema={},
            executor=lambda parameters: parameters["text"].upper(),
        )
        manager = make_manager(local_tools=[tool])
        await manager.initialize()
        await manager.set_tool_enabled("upper", True)

        envelope = await manager.call_tool("upper", {"text": "abc"})
        assert envelope["result"] == "ABC"

    @pytest.mark.asyncio
    async def test_local_timeout(self, make_manager):
        async def executor(parameters):
            await asyncio.sleep(1)

        tool = LocalToolDefinition(name="sleepy", description="", input_schema={}, executor=executor, timeout_ms=10)
        manager = make_manager(local_tools=[tool])
        await manager.initialize()
        await manager.set_tool_enabled("sleepy", True)

        with pytest.raises(ToolExecutionException, match="Timeout exceeded"):
            await manager.call_tool("sleepy", {})

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, make_manager):
        manager = make_manager()
        await manager.initialize()
        await manager.set_tool_enabled("echo", True)

        await manager.call_tool("echo", {"msg": "hi"})
        with pytest.raises(ToolValidationException):
            await manager.call_tool("echo", {})

        summary = manager._metrics.get_summary()
        assert summary["tools"]["echo"]["calls"] == 2
        assert summary["tools"]["echo"]["failures"] == 1
        assert summary["tools"]["echo"]["errors"] == {"VALIDATION_ERROR": 1}


class TestRemoteTools:
    """Remote loading, override, remote execution and refresh."""

    @pytest.mark.asyncio
    async def test_remote_tools_merged_after_local(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        for name in ("echo", "calculate_tax"):
            await manager.set_tool_enabled(name, True)

        assert _names(manager.get_tools()) == ["echo", "calculate_tax"]
        assert _names(manager.get_tools_by_type("local")) == ["echo"]
        assert _names(manager.get_tools_by_type("remote")) == ["calculate_tax"]
        assert manager.get_tool_stats() == {"total": 3, "local": 2, "remote": 1, "remoteApiEnabled": True}

    @pytest.mark.asyncio
    async def test_new_remote_tool_disabled_until_enabled(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()

        assert "calculate_tax" not in _names(manager.get_tools())
        with pytest.raises(ToolDisabledException):
            await manager.call_tool("calculate_tax", {"amount": 100, "rate": 0.08})

    @pytest.mark.asyncio
    async def test_remote_overrides_local(self, make_manager):
        server = FakeRemoteServer(tools=[remote_tool(name="echo", description="Remote echo")])
        manager = make_manager(server=server)
        await manager.initialize()
        await manager.set_tool_enabled("echo", True)

        assert "echo" in _names(manager.get_tools_by_type("remote"))
        listed = [tool for tool in manager.get_tools() if tool["name"] == "echo"]
        assert len(listed) == 1
        assert listed[0]["description"] == "Remote echo"
        assert listed[0]["inputSchema"]["required"] == ["amount", "rate"]

    @pytest.mark.asyncio
    async def test_remote_execution(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled("calculate_tax", True)

        envelope = await manager.call_tool("calculate_tax", {"amount": 100, "rate": 0.5})

        assert envelope["result"] == {"taxAmount": 50.0, "totalAmount": 150.0}
        sent = remote_server.executions[-1]
        assert sent["tool"] == "calculate_tax"
        assert sent["parameters"] == {"amount": 100, "rate": 0.5}
        assert "timestamp" in sent

    @pytest.mark.asyncio
    async def test_remote_headers_merged(self, make_manager):
        server = FakeRemoteServer(tools=[remote_tool(headers={"X-Api-Key": "secret"})])
        manager = make_manager(server=server)
        await manager.initialize()
        await manager.set_tool_enabled("calculate_tax", True)

        await manager.call_tool("calculate_tax", {"amount": 1, "rate": 0.1})

        headers = server.execution_headers[-1]
        assert headers["X-Api-Key"] == "secret"
        assert headers["User-Agent"].startswith("toolgate/")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "path, expected",
        [
            ("/tools/fail", "Tool execution failed: Invalid amount or rate values"),
            ("/tools/crash", "Tool execution failed: Remote tool execution failed: 500 Internal Server Error"),
            ("/tools/slow", "Tool execution failed: Remote tool execution failed: Timeout exceeded"),
        ],
    )
    async def test_remote_failures(self, make_manager, path, expected):
        server = FakeRemoteServer(tools=[remote_tool(name="remote_op", path=path)])
        manager = make_manager(server=server)
        await manager.initialize()
        await manager.set_tool_enabled("remote_op", True)

        with pytest.raises(ToolExecutionException) as exc_info:
            await manager.call_tool("remote_op", {"amount": 1, "rate": 0.1})
        assert exc_info.value.message.startswith(expected)

    @pytest.mark.asyncio
    async def test_remote_no_response(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled("calculate_tax", True)
        remote_server.unreachable = True

        with pytest.raises(ToolExecutionException) as exc_info:
            await manager.call_tool("calculate_tax", {"amount": 1, "rate": 0.1})
        assert exc_info.value.message == "Tool execution failed: Remote tool execution failed: No response from server"

    @pytest.mark.asyncio
    async def test_refresh_unreachable_twice(self, make_manager, remote_server):
        manager = make_manager(server=remote_server, retry_attempts=2)
        await manager.initialize()
        assert manager.get_tool_stats()["remote"] == 1

        remote_server.unreachable = True
        first = await manager.refresh_remote_tools()
        assert manager.get_tool_stats()["remote"] == 0
        second = await manager.refresh_remote_tools()
        assert manager.get_tool_stats()["remote"] == 0

        assert first.success is False and second.success is False
        assert "Failed to load remote tools" in second.error

    @pytest.mark.asyncio
    async def test_refresh_replaces_remote_set(self, make_manager, remote_server, config_path):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled("calculate_tax", True)

        remote_server.tools = [remote_tool(name="format_currency", path="/tools/format-currency")]
        result = await manager.refresh_remote_tools()

        assert result.success is True
        assert result.previous_remote_tools_count == 1
        assert result.remote_tools_count == 1
        assert _names(manager.get_tools_by_type("remote")) == []  # new tool starts disabled
        names = [entry["toolName"] for entry in json.loads(config_path.read_text())]
        assert "calculate_tax" not in names
        assert "format_currency" in names
        with pytest.raises(ToolNotFoundException):
            await manager.call_tool("calculate_tax", {"amount": 1, "rate": 0.1})

    @pytest.mark.asyncio
    async def test_refresh_notifies_once(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        calls = []
        manager.set_on_tools_changed_callback(lambda: calls.append("changed"))
        await manager.initialize()
        assert calls == []

        await manager.refresh_remote_tools()
        assert calls == ["changed"]

    @pytest.mark.asyncio
    async def test_async_callback(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        calls = []

        async def callback():
            calls.append("changed")

        manager.set_on_tools_changed_callback(callback)
        await manager.initialize()
        await manager.refresh_remote_tools()
        assert calls == ["changed"]

    @pytest.mark.asyncio
    async def test_refresh_disabled_is_noop(self, make_manager):
        manager = make_manager()
        calls = []
        manager.set_on_tools_changed_callback(lambda: calls.append("changed"))
        await manager.initialize()

        result = await manager.refresh_remote_tools()

        assert result.success is False
        assert result.error == "Remote tools are not enabled"
        assert calls == []

    @pytest.mark.asyncio
    async def test_concurrent_refreshes_share_one_load(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        remote_server.listing_calls = 0
        remote_server.listing_delay = 0.05

        first, second = await asyncio.gather(
            manager.refresh_remote_tools(),
            manager.refresh_remote_tools(),
        )

        assert remote_server.listing_calls == 1
        assert first is second

    @pytest.mark.asyncio
    async def test_refresh_does_not_disturb_in_flight_call(self, make_manager, remote_server):
        started = asyncio.Event()
        release = asyncio.Event()

        async def executor(parameters):
            started.set()
            await release.wait()
            return "done"

        slow = LocalToolDefinition(name="slow", description="", input_schema={}, executor=executor)
        manager = make_manager(local_tools=[slow], server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled("slow", True)

        call = asyncio.create_task(manager.call_tool("slow", {}))
        await started.wait()
        remote_server.tools = []
        await manager.refresh_remote_tools()
        release.set()

        envelope = await call
        assert envelope["result"] == "done"
        assert manager.get_tool_stats()["remote"] == 0

    @pytest.mark.asyncio
    async def test_builtin_refresh_tool(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled(REFRESH_TOOL_NAME, True)

        envelope = await manager.call_tool(REFRESH_TOOL_NAME, {})

        assert envelope["result"]["success"] is True
        assert envelope["result"]["remoteToolsCount"] == 1
        assert "Successfully refreshed remote tools" in envelope["result"]["message"]

    @pytest.mark.asyncio
    async def test_refresh_before_initialize_loads_once(self, make_manager, remote_server):
        manager = make_manager(server=remote_server)

        result = await manager.refresh_remote_tools()

        assert remote_server.listing_calls == 1
        assert result.success is True
        assert result.previous_remote_tools_count == 0
        assert result.remote_tools_count == 1
        assert "echo" in manager.config_store

    @pytest.mark.asyncio
    async def test_refresh_tool_absent_without_remote(self, make_manager):
        manager = make_manager()
        await manager.initialize()

        assert REFRESH_TOOL_NAME not in [c.toolName for c in manager.get_tool_configurations()]


class TestConfiguration:
    """set_tool_enabled and capabilities."""

    @pytest.mark.asyncio
    async def test_set_enabled_unknown_tool(self, make_manager):
        manager = make_manager()
        await manager.initialize()

        with pytest.raises(ToolNotFoundException):
            await manager.set_tool_enabled("ghost", True)
        assert "ghost" not in manager.config_store

    @pytest.mark.asyncio
    async def test_set_enabled_notifies(self, make_manager):
        manager = make_manager()
        calls = []
        manager.set_on_tools_changed_callback(lambda: calls.append("changed"))
        await manager.initialize()

        await manager.set_tool_enabled("echo", True)
        await manager.set_tool_enabled("echo", False)

        assert calls == ["changed", "changed"]
        assert manager.get_tools() == []

    @pytest.mark.asyncio
    async def test_failed_save_leaves_tool_disabled(self, make_manager, monkeypatch):
        manager = make_manager()
        calls = []
        manager.set_on_tools_changed_callback(lambda: calls.append("changed"))
        await manager.initialize()
        monkeypatch.setattr("toolgate.core.tool_config.os.replace", _failing_replace)

        with pytest.raises(ConfigSaveException):
            await manager.set_tool_enabled("echo", True)

        assert manager.get_tools() == []
        assert calls == []
        with pytest.raises(ToolDisabledException):
            await manager.call_tool("echo", {"msg": "hi"})

    @pytest.mark.asyncio
    async def test_failed_save_during_refresh_keeps_view(self, make_manager, remote_server, monkeypatch):
        manager = make_manager(server=remote_server)
        await manager.initialize()
        await manager.set_tool_enabled("calculate_tax", True)
        remote_server.tools = [remote_tool(name="format_currency")]
        monkeypatch.setattr("toolgate.core.tool_config.os.replace", _failing_replace)

        with pytest.raises(ConfigSaveException):
            await manager.refresh_remote_tools()

        assert _names(manager.get_tools_by_type("remote")) == ["calculate_tax"]
        assert "calculate_tax" in manager.config_store
        assert "format_currency" not in manager.config_store

    @pytest.mark.asyncio
    async def test_enabled_state_survives_restart(self, make_manager):
        manager = make_manager()
        await manager.initialize()
        await manager.set_tool_enabled("echo", True)

        restarted = make_manager()
        await restarted.initialize()
        assert _names(restarted.get_tools()) == ["echo"]

    def test_capabilities(self, make_manager, remote_server):
        local_only = make_manager().get_capabilities()
        with_remote = make_manager(server=remote_server).get_capabilities()

        assert local_only.tools.supported is True
        assert local_only.tools.listChanged is False
        assert with_remote.tools.listChanged is True
        assert with_remote.resources.supported is False
        assert with_remote.prompts.supported is False
        assert with_remote.logging.supported is True
