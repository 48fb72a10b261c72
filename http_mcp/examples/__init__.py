"""
Example upstream servers for the HTTP MCP bridge.
"""
