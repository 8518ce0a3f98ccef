"""
Main entry point for the Nexar MCP Server.
Runs the server over stdio (local MCP clients) or streamable HTTP.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config import Config, load_config
from .errors import ConfigurationError

logger = logging.getLogger("nexar_mcp")


def configure_logging(production: bool) -> None:
    """
    Send logs to stderr. stdout is reserved for protocol frames on stdio.
    """
    logging.basicConfig(
        level=logging.INFO if production else logging.DEBUG,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def report_configuration_error(error: ConfigurationError) -> None:
    """Explain a missing setting on stderr."""
    print("=" * 60, file=sys.stderr)
    print(f"ERROR: {error}", file=sys.stderr)
    print("=" * 60, file=sys.stderr)
    print("\nTo fix this:", file=sys.stderr)
    print("1. Create a .env file in the working directory", file=sys.stderr)
    print("2. Add your Nexar application credentials to it", file=sys.stderr)
    print("\nExample:", file=sys.stderr)
    print("  NEXAR_CLIENT_ID=your-client-id", file=sys.stderr)
    print("  NEXAR_CLIENT_SECRET=your-client-secret", file=sys.stderr)
    print("=" * 60, file=sys.stderr)


def run_server(config: Config, transport: str) -> None:
    """Run the MCP server with the selected transport."""
    if transport == "stdio":
        from .mcp.mcp_server import run_stdio

        asyncio.run(run_stdio(config))
    else:
        from .mcp.http_transport import run_http_server

        run_http_server(config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Nexar MCP Server: electronic component search over MCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with stdio (for MCP clients like Claude Desktop)
  python -m nexar_mcp.main

  # Run with streamable HTTP transport
  python -m nexar_mcp.main --transport http --port 8080

Credentials are read from NEXAR_CLIENT_ID and NEXAR_CLIENT_SECRET
(a .env file in the working directory is loaded first).
"""
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "http"],
        default="stdio",
        help="Transport type (default: stdio)"
    )
    parser.add_argument("--port", type=int, help="Port for HTTP transport (default: $PORT or 8080)")
    parser.add_argument(
        "--production",
        action="store_true",
        help="Bind every interface and keep startup logging short"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config()
    except ConfigurationError as e:
        report_configuration_error(e)
        return 1

    if args.port is not None:
        config = replace(config, port=args.port)
    if args.production:
        config = replace(config, is_production=True)

    configure_logging(config.is_production)

    try:
        run_server(config, args.transport)
    except KeyboardInterrupt:
        logger.info("Shutting down server...")
    return 0


if __name__ == "__main__":
    sys.exit(main())
