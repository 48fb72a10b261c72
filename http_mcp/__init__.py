"""
HTTP MCP bridge package initialization.
This package exposes an HTTP capability server as an MCP server.
"""
