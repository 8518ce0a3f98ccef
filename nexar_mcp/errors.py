"""
Exception hierarchy shared by the catalog client, the tool adapter and the
transports.

Configuration errors abort startup. Everything else is raised from a tool
handler and reported to the caller as a failed tool result.
"""

from typing import List


class NexarMCPError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(NexarMCPError):
    """Required configuration (credentials, port) is missing or malformed."""


class AuthenticationError(NexarMCPError):
    """The identity endpoint was unreachable or rejected the credentials."""


class ApiError(NexarMCPError):
    """
    The catalog endpoint answered with a structured ``errors`` payload.

    The upstream messages are kept on ``messages`` in the order received.
    """

    def __init__(self, messages: List[str]):
        self.messages = list(messages)
        super().__init__(f"Nexar API errors: {', '.join(self.messages)}")


class ApiRequestError(NexarMCPError):
    """Transport-level failure while calling the catalog endpoint."""


class InvalidArgumentError(NexarMCPError):
    """Tool arguments are missing or have the wrong type."""


class UnknownToolError(NexarMCPError):
    """A tool name that this server does not provide was requested."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ToolExecutionError(NexarMCPError):
    """Wraps any failure raised while a tool was running."""
