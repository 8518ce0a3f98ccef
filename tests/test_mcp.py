"""
Tests for the MCP tool adapter and server.

This file contains two test suites:
1. Unit tests that drive the NexarTools adapter directly with a fake client
2. In-memory protocol tests that talk to a real SDK server through a client session
"""

import asyncio
import json
import os
import sys

import pytest
from mcp.shared.memory import create_connected_server_and_client_session

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from nexar_mcp.errors import (
    ApiError,
    InvalidArgumentError,
    ToolExecutionError,
    UnknownToolError,
)
from nexar_mcp.mcp import NexarTools, SEARCH_COMPONENTS, create_server
from nexar_mcp.nexar import NexarClient, Part


class FakeNexarClient:
    """Stands in for NexarClient and records every search."""

    def __init__(self, parts=None, error=None):
        self.parts = parts or []
        self.error = error
        self.calls = []

    async def search_components(self, query, limit=10):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.parts


SAMPLE_PARTS = [
    Part(mpn="AP2112K-3.3", manufacturer="Diodes", description="LDO 600mA", price=0.12,
         voltage="3.3V", package="SOT-23-5"),
    Part(mpn="MCP1700", manufacturer="Microchip", description="Microchip MCP1700"),
]


class TestToolDiscovery:
    """tools/list output."""

    def test_single_tool_advertised(self):
        tools = asyncio.run(NexarTools(FakeNexarClient()).list_tools())

        assert len(tools) == 1
        tool = tools[0]
        assert tool.name == SEARCH_COMPONENTS
        assert tool.description
        schema = tool.inputSchema
        assert schema["type"] == "object"
        assert schema["required"] == ["query"]
        assert schema["properties"]["query"]["type"] == "string"
        assert schema["properties"]["limit"]["type"] == "number"
        assert schema["properties"]["limit"]["default"] == 10


class TestToolInvocation:
    """tools/call behaviour of the adapter."""

    def test_search_returns_json_parts(self):
        client = FakeNexarClient(parts=SAMPLE_PARTS)
        content = asyncio.run(NexarTools(client).call_tool(
            SEARCH_COMPONENTS, {"query": "3.3V LDO", "limit": 2}
        ))

        assert client.calls == [("3.3V LDO", 2)]
        assert len(content) == 1
        assert content[0].type == "text"
        parts = json.loads(content[0].text)
        assert [p["mpn"] for p in parts] == ["AP2112K-3.3", "MCP1700"]
        assert parts[0]["voltage"] == "3.3V"
        assert "voltage" not in parts[1]

    def test_limit_defaults_to_ten(self):
        client = FakeNexarClient()
        asyncio.run(NexarTools(client).call_tool(SEARCH_COMPONENTS, {"query": "esp32"}))
        assert client.calls == [("esp32", 10)]

    def test_integral_float_limit(self):
        client = FakeNexarClient()
        asyncio.run(NexarTools(client).call_tool(SEARCH_COMPONENTS, {"query": "esp32", "limit": 5.0}))
        assert client.calls == [("esp32", 5)]

    def test_empty_result(self):
        content = asyncio.run(NexarTools(FakeNexarClient()).call_tool(
            SEARCH_COMPONENTS, {"query": "nothing matches"}
        ))
        assert json.loads(content[0].text) == []

    @pytest.mark.parametrize("arguments", [None, {}, {"query": 42}, {"query": ""}, {"limit": 5}])
    def test_invalid_query(self, arguments):
        client = FakeNexarClient()
        with pytest.raises(InvalidArgumentError):
            asyncio.run(NexarTools(client).call_tool(SEARCH_COMPONENTS, arguments))
        assert client.calls == []

    @pytest.mark.parametrize("limit", [0, -1, 2.5, "ten", True])
    def test_invalid_limit(self, limit):
        client = FakeNexarClient()
        with pytest.raises(InvalidArgumentError):
            asyncio.run(NexarTools(client).call_tool(SEARCH_COMPONENTS, {"query": "esp32", "limit": limit}))
        assert client.calls == []

    def test_unknown_tool(self):
        with pytest.raises(UnknownToolError) as exc_info:
            asyncio.run(NexarTools(FakeNexarClient()).call_tool("get_datasheet", {}))
        assert exc_info.value.tool_name == "get_datasheet"
        assert "Unknown tool: get_datasheet" in str(exc_info.value)

    def test_client_failure_is_wrapped(self):
        client = FakeNexarClient(error=ApiError(["bad query"]))
        with pytest.raises(ToolExecutionError) as exc_info:
            asyncio.run(NexarTools(client).call_tool(SEARCH_COMPONENTS, {"query": "esp32"}))

        message = str(exc_info.value)
        assert message.startswith("Failed to search components: ")
        assert "bad query" in message


class TestServerProtocol:
    """
    Protocol tests against a real SDK server over in-memory streams.
    The Nexar API is replaced by patching NexarClient.search_components.
    """

    @pytest.fixture
    def server(self, monkeypatch):
        async def fake_search(self, query, limit=10):
            return SAMPLE_PARTS[:limit]

        monkeypatch.setattr(NexarClient, "search_components", fake_search)
        return create_server("client-id", "client-secret")

    def test_list_tools(self, server):
        async def run():
            async with create_connected_server_and_client_session(server) as session:
                return await session.list_tools()

        result = asyncio.run(run())
        assert [tool.name for tool in result.tools] == [SEARCH_COMPONENTS]
        assert result.tools[0].inputSchema["required"] == ["query"]

    def test_call_tool(self, server):
        async def run():
            async with create_connected_server_and_client_session(server) as session:
                return await session.call_tool(SEARCH_COMPONENTS, {"query": "ldo", "limit": 1})

        result = asyncio.run(run())
        assert not result.isError
        parts = json.loads(result.content[0].text)
        assert [p["mpn"] for p in parts] == ["AP2112K-3.3"]

    def test_missing_query_is_error_result(self, server):
        async def run():
            async with create_connected_server_and_client_session(server) as session:
                return await session.call_tool(SEARCH_COMPONENTS, {})

        result = asyncio.run(run())
        assert result.isError

    def test_unknown_tool_is_error_result(self, server):
        async def run():
            async with create_connected_server_and_client_session(server) as session:
                return await session.call_tool("nonexistent_tool", {})

        result = asyncio.run(run())
        assert result.isError
        assert "unknown" in result.content[0].text.lower()


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
