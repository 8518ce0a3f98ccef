"""
MCP (Model Context Protocol) layer.

Serves the Nexar component search over the official ``mcp`` SDK.

### Transports
stdio, for Claude Desktop and other local MCP clients:
    python -m nexar_mcp.main --transport stdio

Streamable HTTP, with per-session servers, for remote clients:
    python -m nexar_mcp.main --transport http --port 8080
"""

from .mcp_server import (
    NexarTools,
    SEARCH_COMPONENTS,
    SEARCH_COMPONENTS_TOOL,
    create_server,
    run_stdio,
)
from .sessions import (
    Route,
    Session,
    SessionClosed,
    SessionInitialized,
    SessionTable,
    route_request,
    transition,
)
from .http_transport import SessionManager, create_http_app, run_http_server

__all__ = [
    # Tool adapter and server
    "NexarTools",
    "SEARCH_COMPONENTS",
    "SEARCH_COMPONENTS_TOOL",
    "create_server",
    "run_stdio",
    # Sessions
    "Route",
    "Session",
    "SessionClosed",
    "SessionInitialized",
    "SessionTable",
    "route_request",
    "transition",
    # HTTP transport
    "SessionManager",
    "create_http_app",
    "run_http_server",
]
