"""MCP server package initialization"""

from feed_cache.server.app import create_mcp_server, main

__all__ = ["create_mcp_server", "main"]
