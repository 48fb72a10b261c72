"""
A small upstream server with one tool, one prompt and one resource.

Run it, then point the bridge at it:

    python -m http_mcp.examples.example_server --port 3000
    http-mcp --url http://127.0.0.1:3000
"""

import argparse
import json
import logging
from typing import Any, Dict, List

import aiohttp.web as web

from http_mcp.core.logging_config import setup_logging

logger = logging.getLogger(__name__)

README_URI = "file://readme.txt"
README_TEXT = (
    "This is a simple HTTP MCP bridge example.\n\n"
    "Features:\n- Shouting\n- Concept explanations\n- File resources"
)

MANIFEST: Dict[str, Any] = {
    "name": "example",
    "version": "1.0.0",
    "tools": True,
    "prompts": True,
    "resources": True,
}

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "shout",
        "description": "Repeat a text in upper case",
        "inputSchema": {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "Text to shout"},
            },
            "required": ["text"],
        },
    },
]

PROMPTS: List[Dict[str, Any]] = [
    {
        "name": "explain",
        "description": "Generate a prompt to explain a concept",
        "arguments": [
            {"name": "concept", "description": "The concept to explain", "required": True},
        ],
    },
]

RESOURCES: List[Dict[str, Any]] = [
    {
        "uri": README_URI,
        "name": "README",
        "description": "A simple readme file",
        "mimeType": "text/plain",
    },
]


async def handle_manifest(request: web.Request) -> web.Response:
    return web.json_response(MANIFEST)


async def handle_tools(request: web.Request) -> web.Response:
    return web.json_response(TOOLS)


async def handle_shout(request: web.Request) -> web.Response:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return web.Response(text="Request body must be JSON", status=400)

    text = body.get("text") if isinstance(body, dict) else None
    if not isinstance(text, str) or not text:
        return web.Response(text="Missing 'text' argument", status=400)
    return web.Response(text=f"{text.upper()}!")


async def handle_prompts(request: web.Request) -> web.Response:
    return web.json_response(PROMPTS)


async def handle_explain(request: web.Request) -> web.Response:
    concept = request.query.get("concept", "")
    return web.json_response({
        "messages": [
            {
                "role": "user",
                "content": {
                    "type": "text",
                    "text": f'Please explain the concept of "{concept}" in simple terms.',
                },
            },
        ],
    })


async def handle_resources(request: web.Request) -> web.Response:
    """List resources, or read one when a ``uri`` query parameter is given."""
    uri = request.query.get("uri")
    if not uri:
        return web.json_response(RESOURCES)
    if uri == README_URI:
        return web.Response(text=README_TEXT)
    return web.Response(text=f"Resource not found: {uri}", status=404)


def create_app() -> web.Application:
    app = web.Application()
    app.router.add_get('/', handle_manifest)
    app.router.add_get('/tools', handle_tools)
    app.router.add_post('/tools/shout', handle_shout)
    app.router.add_get('/prompts', handle_prompts)
    app.router.add_get('/prompts/explain', handle_explain)
    app.router.add_get('/resources', handle_resources)
    return app


def main() -> None:
    parser = argparse.ArgumentParser(description='Example upstream server for the HTTP MCP bridge.')
    parser.add_argument('--host', default='127.0.0.1', help='Interface to bind')
    parser.add_argument('--port', type=int, default=3000, help='Port to listen on')
    args = parser.parse_args()

    setup_logging('INFO')
    logger.info(f"Example server running at http://{args.host}:{args.port}/")
    web.run_app(create_app(), host=args.host, port=args.port, print=None)


if __name__ == "__main__":
    main()
