"""
Error types raised by the HTTP MCP bridge.
"""
