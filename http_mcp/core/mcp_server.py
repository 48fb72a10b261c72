"""
MCP server for the HTTP MCP bridge.
This module exposes an upstream HTTP capability server as an MCP server over stdio.
"""

import argparse
import asyncio
import logging
import sys
from typing import Any, Dict, List, Optional, Type, TypeVar

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from pydantic import BaseModel, ValidationError

from http_mcp.config import BridgeConfig, load_config, parse_header
from http_mcp.core.capability_state import CapabilityState, initialize_state
from http_mcp.core.dispatchers import (
    call_tool,
    get_prompt,
    list_prompts,
    list_resource_templates,
    list_resources,
    list_tools,
    read_resource,
)
from http_mcp.core.http_client import HttpClient, HttpxClient
from http_mcp.core.logging_config import setup_logging, setup_logging_from_config
from http_mcp.error_handling.exceptions import BridgeError, ConfigurationError

PROG_NAME = "http-mcp"

M = TypeVar("M", bound=BaseModel)

logger = logging.getLogger(__name__)


def _tool_result(result: Dict[str, Any]) -> types.CallToolResult:
    # Pass-through objects need not carry `content`; their fields are kept as extras.
    payload = dict(result)
    payload.setdefault("content", [])
    return types.CallToolResult.model_validate(payload)


def _named(wire: Dict[str, Any], identity: str) -> Dict[str, Any]:
    """MCP requires a name; fall back to the identity field."""
    if "name" not in wire:
        wire = dict(wire, name=wire[identity])
    return wire


def _edge_model(model_type: Type[M], wire: Dict[str, Any], identity: str) -> Optional[M]:
    """Validate a listed entry into its MCP type, or None if MCP cannot represent it."""
    try:
        return model_type.model_validate(wire)
    except ValidationError as e:
        logger.warning(f"Skipping {model_type.__name__} {wire.get(identity)!r}: not representable in MCP "
                       f"({e.error_count()} validation error(s))")
        return None


def _edge_models(model_type: Type[M], wires: List[Dict[str, Any]], identity: str) -> List[M]:
    models = (_edge_model(model_type, wire, identity) for wire in wires)
    return [model for model in models if model is not None]


def build_server(http_client: HttpClient, state: CapabilityState) -> Server:
    """
    Create the MCP server for a capability state.

    Handlers are only registered for capabilities the manifest declared, so
    the advertised MCP capabilities follow the manifest. Listed entries that
    MCP cannot represent (e.g. a resource URI that is not a URL) are logged
    and left out of the listings.

    Args:
        http_client: The HTTP collaborator used by the dispatchers.
        state: The initialized capability state.

    Returns:
        Server: The low-level MCP server, ready to run.
    """
    server: Server = Server(state.manifest.name, version=state.manifest.version)

    if state.is_enabled("tools"):
        tools = _edge_models(types.Tool, list_tools(state)["tools"], "name")

        @server.list_tools()
        async def handle_list_tools() -> List[types.Tool]:
            return tools

        async def handle_call_tool(request: types.CallToolRequest) -> types.ServerResult:
            result = await call_tool(http_client, state, request.params.name, request.params.arguments)
            return types.ServerResult(_tool_result(result))

        server.request_handlers[types.CallToolRequest] = handle_call_tool

    if state.is_enabled("prompts"):
        prompts = _edge_models(types.Prompt, list_prompts(state)["prompts"], "name")

        @server.list_prompts()
        async def handle_list_prompts() -> List[types.Prompt]:
            return prompts

        @server.get_prompt()
        async def handle_get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
            result = await get_prompt(http_client, state, name, arguments)
            return types.GetPromptResult.model_validate(result)

    if state.is_enabled("resources"):
        resources: List[types.Resource] = []
        # The host sees normalized URIs (file://a becomes file://a/); upstream expects its own.
        upstream_uris: Dict[str, str] = {}
        for wire in list_resources(state)["resources"]:
            resource = _edge_model(types.Resource, _named(wire, "uri"), "uri")
            if resource is not None:
                resources.append(resource)
                upstream_uris[str(resource.uri)] = wire["uri"]

        @server.list_resources()
        async def handle_list_resources() -> List[types.Resource]:
            return resources

        # Registered directly so text and blob contents reach the host unchanged.
        async def handle_read_resource(request: types.ReadResourceRequest) -> types.ServerResult:
            requested = str(request.params.uri)
            extra = request.params.model_extra or {}
            result = await read_resource(http_client, state, upstream_uris.get(requested, requested),
                                         extra.get("arguments"))
            return types.ServerResult(types.ReadResourceResult.model_validate(result))

        server.request_handlers[types.ReadResourceRequest] = handle_read_resource

    if state.is_enabled("resource_templates"):
        templates = _edge_models(
            types.ResourceTemplate,
            [_named(t, "uriTemplate") for t in list_resource_templates(state)["resourceTemplates"]],
            "uriTemplate",
        )

        @server.list_resource_templates()
        async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
            return templates

    logger.info(f"MCP server '{state.manifest.name}' v{state.manifest.version} built")
    return server


async def serve_stdio(config: BridgeConfig) -> None:
    """Initialize the capability state and serve it over stdio until the client disconnects."""
    async with HttpxClient(timeout=config.timeout) as http_client:
        state = await initialize_state(http_client, config)
        server = build_server(http_client, state)

        logger.info("Bridge ready - stdio transport active")
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description='Expose an HTTP capability server as an MCP server over stdio.',
        epilog=(
            f'Example: {PROG_NAME} --url http://localhost:8080 -H "Authorization: Bearer token" '
            f'-H "X-Custom-Header: value"'
        ),
    )
    parser.add_argument('--url', help='Base URL of the upstream server (its manifest)')
    parser.add_argument('-H', '--header', action='append', default=[], metavar='"Name: Value"',
                        help='Header forwarded on every upstream request (repeatable)')
    parser.add_argument('-a', '--auth', metavar='TOKEN',
                        help='Bearer token, sent as "Authorization: Bearer TOKEN"')
    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--timeout', type=float, help='Upstream request timeout in seconds')
    parser.add_argument('--log-level', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        type=str.upper, help='Logging level')
    return parser


def config_from_args(argv: Optional[List[str]] = None,
                     parser: Optional[argparse.ArgumentParser] = None) -> BridgeConfig:
    """
    Parse command-line arguments into a `BridgeConfig`.

    Invalid arguments end the process through ``parser.error``.
    """
    parser = parser or build_arg_parser()
    args = parser.parse_args(argv)

    try:
        headers = dict(parse_header(h) for h in args.header)
        return load_config(
            config_path=args.config,
            url=args.url,
            headers=headers,
            auth_token=args.auth,
            timeout=args.timeout,
            log_level=args.log_level,
        )
    except ConfigurationError as e:
        parser.error(e.message)


def main_cli(argv: Optional[List[str]] = None) -> None:
    """Command line entry point."""
    config = config_from_args(argv)

    if config.logging:
        setup_logging_from_config(config.logging)
    else:
        setup_logging(config.log_level, 'stdio')

    try:
        asyncio.run(serve_stdio(config))
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    except BridgeError as e:
        logger.error(f"Server error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main_cli()
