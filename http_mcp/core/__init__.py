"""
HTTP MCP bridge core package.
This package provides capability state, dispatchers, transcoding and the MCP server.
"""
