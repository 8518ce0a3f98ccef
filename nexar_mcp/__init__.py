"""
Nexar MCP Server.

Exposes the Nexar Supply parts catalog as a single ``search_components``
tool over the Model Context Protocol, reachable through stdio or
streamable HTTP.
"""

__version__ = "0.1.0"

SERVICE_NAME = "nexar-mcp"
