"""
MCP server exposing the Nexar component search.

Provides a single tool, ``search_components``, through the low-level server
of the official MCP Python SDK:
- tools/list returns the tool with its JSON Schema inputSchema
- tools/call validates arguments, runs the search and returns the parts as
  pretty-printed JSON text content
- Errors raised by the handlers are reported by the SDK as tool results with
  ``isError: true``; the serving process keeps running

The same server factory backs both transports: stdio (for Claude Desktop and
other local MCP clients) and streamable HTTP (see ``http_transport``).
"""

import json
import logging
from typing import Any, Dict, List, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from .. import SERVICE_NAME, __version__
from ..config import Config
from ..errors import InvalidArgumentError, ToolExecutionError, UnknownToolError
from ..nexar import DEFAULT_LIMIT, NexarClient

logger = logging.getLogger(__name__)

SEARCH_COMPONENTS = "search_components"

SEARCH_COMPONENTS_TOOL = Tool(
    name=SEARCH_COMPONENTS,
    description=(
        "Search for electronic components using the Nexar Supply API. Returns a list "
        "of compatible components with specifications, pricing, and availability."
    ),
    inputSchema={
        "type": "object",
        "properties": {
            "query": {
                "type": "string",
                "description": (
                    "Search query describing the component needed (e.g., "
                    '"ESP32 microcontroller with WiFi", "3.3V LDO regulator 600mA")'
                ),
            },
            "limit": {
                "type": "number",
                "description": "Maximum number of results to return",
                "default": DEFAULT_LIMIT,
            },
        },
        "required": ["query"],
    },
)


def _parse_limit(value: Any) -> int:
    if value is None:
        return DEFAULT_LIMIT
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError("limit must be a positive integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidArgumentError("limit must be a positive integer")
        value = int(value)
    if value < 1:
        raise InvalidArgumentError("limit must be a positive integer")
    return value


class NexarTools:
    """
    Bridges MCP tool calls to a NexarClient.

    Kept independent of the SDK's request plumbing so the adapter can be
    driven directly.
    """

    def __init__(self, client: NexarClient):
        self.client = client

    async def list_tools(self) -> List[Tool]:
        """Return the tools this server provides."""
        return [SEARCH_COMPONENTS_TOOL]

    async def call_tool(self, name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
        """
        Execute a tool by name.

        Args:
            name: Tool name
            arguments: Tool arguments as received from the caller

        Returns:
            A single text content item holding the JSON result

        Raises:
            UnknownToolError: If the tool does not exist
            InvalidArgumentError: If query is missing or not a string
            ToolExecutionError: If the search itself failed
        """
        if name != SEARCH_COMPONENTS:
            raise UnknownToolError(name)

        arguments = arguments or {}
        query = arguments.get("query")
        if not query or not isinstance(query, str) or not query.strip():
            raise InvalidArgumentError("query parameter is required and must be a string")
        limit = _parse_limit(arguments.get("limit"))

        try:
            parts = await self.client.search_components(query, limit)
        except Exception as e:
            logger.warning("search_components failed for %r: %s", query, e)
            raise ToolExecutionError(f"Failed to search components: {e}") from e

        text = json.dumps([part.to_dict() for part in parts], indent=2)
        return [TextContent(type="text", text=text)]


def create_server(client_id: str, client_secret: str) -> Server:
    """
    Build a server instance with its own NexarClient.

    Args:
        client_id: Nexar client ID
        client_secret: Nexar client secret

    Returns:
        A low-level MCP Server with the Nexar tools registered
    """
    tools = NexarTools(NexarClient(client_id, client_secret))
    server = Server(SERVICE_NAME, version=__version__)

    server.list_tools()(tools.list_tools)
    server.call_tool()(tools.call_tool)

    logger.debug("Nexar MCP server initialized with tools registered")
    return server


async def run_stdio(config: Config) -> None:
    """Serve over stdin/stdout until the client disconnects."""
    server = create_server(config.client_id, config.client_secret)
    try:
        async with stdio_server() as (read_stream, write_stream):
            logger.info("Nexar MCP server running on stdio")
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    except Exception:
        logger.exception("Failed to start stdio transport")
        raise
