"""
Streamable HTTP transport for production and cloud deployment.

Endpoints:
- GET  /health  service status, independent of session state
- POST /mcp     without ``mcp-session-id``: starts a new session
- *    /mcp     with ``mcp-session-id``: routed to that session's transport
- *    /sse     legacy endpoint, one throwaway session-less server per request

Every session owns its own Server (and therefore its own NexarClient and
token). Server run loops live in a task group owned by the SessionManager,
which is entered for the lifetime of the ASGI application.
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Optional
from uuid import uuid4

import anyio
from anyio.abc import TaskGroup
import uvicorn
from mcp.server import Server
from mcp.server.streamable_http import MCP_SESSION_ID_HEADER, StreamableHTTPServerTransport
from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse
from starlette.routing import Route
from starlette.types import Message, Receive, Scope, Send

from .. import SERVICE_NAME, __version__
from ..config import Config
from .mcp_server import create_server
from .sessions import Route as SessionRoute
from .sessions import Session, SessionClosed, SessionInitialized, SessionTable, route_request

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Generate an unpredictable session identifier."""
    return uuid4().hex


class _ResponseTracker:
    """Wraps an ASGI send callable and remembers whether a response started."""

    def __init__(self, send: Send, on_start: Optional[Callable[[Message], None]] = None):
        self._send = send
        self._on_start = on_start
        self.started = False

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.started = True
            if self._on_start is not None:
                self._on_start(message)
        await self._send(message)


class SessionManager:
    """
    Creates, routes and evicts streamable HTTP sessions.

    The manager must be running (``async with manager.run():``) before it can
    handle requests.
    """

    def __init__(
        self,
        server_factory: Callable[[], Any],
        table: Optional[SessionTable] = None,
        json_response: bool = False,
        transport_factory: Optional[Callable[[Optional[str]], Any]] = None,
        session_id_factory: Callable[[], str] = new_session_id,
    ):
        """
        Args:
            server_factory: Returns a fresh MCP server for each session
            table: Session registry (default: a new empty table)
            json_response: Answer POSTs with plain JSON instead of SSE streams
            transport_factory: Builds a transport for a session id, or for
                None when the transport is session-less
            session_id_factory: Generates session identifiers
        """
        self.server_factory = server_factory
        self.table = table if table is not None else SessionTable()
        self.json_response = json_response
        self.transport_factory = transport_factory or self._default_transport
        self.session_id_factory = session_id_factory
        self._task_group: Optional[TaskGroup] = None

    def _default_transport(self, session_id: Optional[str]) -> StreamableHTTPServerTransport:
        return StreamableHTTPServerTransport(
            mcp_session_id=session_id,
            is_json_response_enabled=self.json_response,
        )

    @asynccontextmanager
    async def run(self):
        """Own the task group that hosts every server run loop."""
        async with anyio.create_task_group() as tg:
            self._task_group = tg
            try:
                yield self
            finally:
                tg.cancel_scope.cancel()
                self._task_group = None

    def _require_task_group(self) -> TaskGroup:
        if self._task_group is None:
            raise RuntimeError("SessionManager is not running; enter run() first")
        return self._task_group

    async def _start_server(self, server: Any, transport: Any, stateless: bool, on_exit: Callable[[], None]) -> None:
        async def run_server(*, task_status=anyio.TASK_STATUS_IGNORED):
            try:
                async with transport.connect() as (read_stream, write_stream):
                    task_status.started()
                    await server.run(
                        read_stream,
                        write_stream,
                        server.create_initialization_options(),
                        stateless=stateless,
                    )
            except Exception:
                logger.exception("MCP server run loop failed")
            finally:
                on_exit()

        await self._require_task_group().start(run_server)

    async def handle_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Route an /mcp request according to its session header."""
        request = Request(scope, receive)
        session_id = request.headers.get(MCP_SESSION_ID_HEADER)
        decision = route_request(request.method, session_id, self.table)

        if decision is SessionRoute.FORWARD:
            session = self.table.get(session_id)
            if session is not None:
                await session.transport.handle_request(scope, receive, send)
                return
            decision = SessionRoute.NOT_FOUND

        if decision is SessionRoute.NOT_FOUND:
            response = PlainTextResponse("Session not found", status_code=404)
        elif decision is SessionRoute.CREATE:
            await self._create_session(scope, receive, send)
            return
        else:
            response = PlainTextResponse("Invalid request", status_code=400)
        await response(scope, receive, send)

    async def _create_session(self, scope: Scope, receive: Receive, send: Send) -> None:
        session_id = self.session_id_factory()
        session: Optional[Session] = None
        registered = False

        def on_response_start(message: Message) -> None:
            nonlocal registered
            if registered or session is None or message["status"] >= 400:
                return
            headers = Headers(raw=message.get("headers", []))
            if headers.get(MCP_SESSION_ID_HEADER) == session_id:
                self.table.apply(SessionInitialized(session))
                registered = True
                logger.info("New Nexar session created: %s", session_id)

        def on_server_exit() -> None:
            if session_id in self.table:
                logger.info("Nexar session closed: %s", session_id)
            self.table.apply(SessionClosed(session_id))

        tracker = _ResponseTracker(send, on_start=on_response_start)
        try:
            server = self.server_factory()
            session = Session(session_id=session_id, transport=self.transport_factory(session_id), server=server)
            await self._start_server(server, session.transport, stateless=False, on_exit=on_server_exit)
            logger.debug("MCP server connected to transport, ready to handle requests")
            await session.transport.handle_request(scope, receive, tracker)
        except Exception:
            logger.exception("Streamable HTTP connection error")
            if not tracker.started:
                await PlainTextResponse("Internal server error", status_code=500)(scope, receive, send)

        # never initialized: stays pending forever unless torn down here
        if session is not None and not registered:
            await session.transport.terminate()

    async def handle_legacy_request(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Serve one request on a standalone server that is never registered."""
        transport = None
        tracker = _ResponseTracker(send)
        try:
            server = self.server_factory()
            transport = self.transport_factory(None)
            await self._start_server(server, transport, stateless=True, on_exit=lambda: None)
            logger.debug("SSE connection established (using streamable HTTP)")
            await transport.handle_request(scope, receive, tracker)
        except Exception:
            logger.exception("SSE connection error")
            if not tracker.started:
                await PlainTextResponse("SSE connection failed", status_code=500)(scope, receive, send)
        finally:
            if transport is not None:
                await transport.terminate()


class _ASGIEndpoint:
    """Lets Starlette mount a coroutine as a raw ASGI endpoint."""

    def __init__(self, handler: Callable[[Scope, Receive, Send], Any]):
        self.handler = handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        await self.handler(scope, receive, send)


async def health(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "version": __version__,
        }
    )


def create_http_app(
    config: Config,
    server_factory: Optional[Callable[[], Server]] = None,
    session_manager: Optional[SessionManager] = None,
) -> Starlette:
    """
    Build the ASGI application.

    Args:
        config: Server configuration
        server_factory: Builds a server per session (default: create_server
            with the configured credentials)
        session_manager: Pre-built manager; takes precedence over server_factory

    Returns:
        Starlette application with /health, /mcp and /sse routes
    """
    if session_manager is None:
        if server_factory is None:
            def server_factory() -> Server:
                return create_server(config.client_id, config.client_secret)
        session_manager = SessionManager(server_factory)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        async with session_manager.run():
            yield

    app = Starlette(
        routes=[
            Route("/health", health, methods=["GET"]),
            Route("/mcp", _ASGIEndpoint(session_manager.handle_request)),
            Route("/sse", _ASGIEndpoint(session_manager.handle_legacy_request)),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
                allow_headers=["Content-Type", MCP_SESSION_ID_HEADER],
                expose_headers=[MCP_SESSION_ID_HEADER],
            )
        ],
        lifespan=lifespan,
    )
    app.state.session_manager = session_manager
    return app


def log_server_start(config: Config) -> None:
    """Log where the server listens, plus a client config snippet in development."""
    if config.is_production:
        display_url = f"Port {config.port}"
    else:
        display_url = f"http://localhost:{config.port}"

    logger.info("Nexar MCP Server listening on %s", display_url)

    if not config.is_production:
        client_config = {
            "mcpServers": {
                "nexar": {"url": f"http://localhost:{config.port}/mcp"},
            }
        }
        logger.info("Put this in your client config:\n%s", json.dumps(client_config, indent=2))
        logger.info("For backward compatibility, you can also use the /sse endpoint.")


def run_http_server(config: Config) -> None:
    """Run the MCP server over streamable HTTP with uvicorn."""
    app = create_http_app(config)
    log_server_start(config)
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="info" if config.is_production else "debug",
    )
