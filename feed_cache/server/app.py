"""feed_cache - MCP Server

This module implements the MCP server exposing the feed cache, the downloaded
articles list and the read-status set over STDIO, SSE or Streamable HTTP.
The stores are loaded when the first tool runs and saved when the server
stops.
"""

import asyncio
import dataclasses
import os
import sys
from typing import Optional

import click
from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from feed_cache.config import CacheConfig, get_config, set_config
from feed_cache.logging_config import logger, setup_logging
from feed_cache.storage.session import close_session
from feed_cache.tools.cache_tools import cache_tools


def create_mcp_server(config: Optional[CacheConfig] = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        config: Optional configuration

    Returns:
        Configured FastMCP server instance
    """
    if config is None:
        config = get_config()

    setup_logging(config)
    logger.info(f"Server config: {config.name} at log level {config.log_level}")
    logger.info(
        f"Cache: {config.cache_dir}, size {config.cache_size}, "
        f"ttl {config.cache_ttl_hours}h, offline {config.offline_mode}"
    )

    # Configure DNS rebinding protection (disabled by default for development)
    dns_protection = os.getenv("MCP_DNS_REBINDING_PROTECTION", "false").lower() == "true"
    allowed_hosts_env = os.getenv("MCP_ALLOWED_HOSTS", "")
    allowed_hosts = [h.strip() for h in allowed_hosts_env.split(",") if h.strip()]

    mcp_server = FastMCP(
        config.name or "feed_cache",
        transport_security=TransportSecuritySettings(
            enable_dns_rebinding_protection=dns_protection,
            allowed_hosts=allowed_hosts,
        ),
    )

    register_tools(mcp_server)

    logger.info("Server initialization complete")
    return mcp_server


def register_tools(mcp_server: FastMCP) -> None:
    """Register all cache tools with the server."""
    for tool_func in cache_tools:
        mcp_server.tool(name=tool_func.__name__)(tool_func)
        logger.info(f"Registered cache tool: {tool_func.__name__}")


@click.command()
@click.option(
    "--port",
    default=3001,
    help="Port to listen on for SSE or Streamable HTTP transport"
)
@click.option(
    "--host",
    default="127.0.0.1",
    help="Host to bind to (use 0.0.0.0 for Docker)"
)
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="Transport type (stdio, sse, or streamable-http)"
)
@click.option(
    "--cache-size",
    type=int,
    default=0,
    help="Maximum number of cached feeds (0 keeps the configured value)"
)
@click.option(
    "--cache-duration",
    type=float,
    default=0,
    help="Hours a cached feed stays fresh (0 keeps the configured value)"
)
@click.option(
    "--offline",
    is_flag=True,
    default=False,
    help="Start in offline mode (serve only cached feeds)"
)
@click.option(
    "--reset-cache",
    is_flag=True,
    default=False,
    help="Ignore the cache and read status on disk; they are overwritten on exit"
)
def main(
    port: int,
    host: str,
    transport: str,
    cache_size: int,
    cache_duration: float,
    offline: bool,
    reset_cache: bool,
) -> int:
    """Run the feed_cache server with specified transport."""
    config = get_config()
    overrides = {}
    if cache_size > 0:
        overrides["cache_size"] = cache_size
    if cache_duration > 0:
        overrides["cache_ttl_hours"] = cache_duration
    if offline:
        overrides["offline_mode"] = True
    if reset_cache:
        overrides["reset_cache"] = True
    if overrides:
        config = dataclasses.replace(config, **overrides)
        set_config(config)

    server = create_mcp_server(config)

    async def run_server():
        """Inner async function to run the server."""
        if transport == "stdio":
            logger.info("Starting server with STDIO transport")
            await server.run_stdio_async()
        elif transport == "sse":
            logger.info(f"Starting server with SSE transport on {host}:{port}")
            server.settings.host = host
            server.settings.port = port
            await server.run_sse_async()
        elif transport == "streamable-http":
            logger.info(f"Starting server with Streamable HTTP transport on {host}:{port}")
            server.settings.host = host
            server.settings.port = port
            server.settings.streamable_http_path = "/mcp"
            await server.run_streamable_http_async()
        else:
            raise ValueError(f"Unknown transport: {transport}")

    try:
        asyncio.run(run_server())
        return 0
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        return 0
    except Exception as e:
        logger.error(f"Failed to run server: {e}", exc_info=True)
        return 1
    finally:
        try:
            close_session()
        except OSError as e:
            logger.error(f"Failed to save the cache: {e}")


if __name__ == "__main__":
    sys.exit(main())
