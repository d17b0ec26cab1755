"""MCP server command for the memory-graph CLI."""

from enum import Enum

import typer

from memory_graph.cli.common import logger
from memory_graph.constants import DEFAULT_HOST, DEFAULT_PORT
from memory_graph.tools.knowledge_graph.server import run_server


class Transport(str, Enum):
    stdio = "stdio"
    sse = "sse"
    streamable_http = "streamable-http"


def serve(
    transport: Transport = typer.Option(
        Transport.stdio, "--transport", "-t", help="MCP transport to serve on."
    ),
    host: str = typer.Option(DEFAULT_HOST, "--host", help="Host for HTTP transports."),
    port: int = typer.Option(DEFAULT_PORT, "--port", help="Port for HTTP transports."),
):
    """Run the knowledge graph MCP server."""
    if transport is Transport.stdio:
        logger.info("Starting memory-graph MCP server on stdio")
    else:
        logger.info(
            f"Starting memory-graph MCP server ({transport.value}) on {host}:{port}"
        )

    try:
        run_server(transport=transport.value, host=host, port=port)
    except KeyboardInterrupt:
        logger.info("Server stopped by user.")
