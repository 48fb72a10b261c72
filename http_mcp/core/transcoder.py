"""
Content transcoding for upstream HTTP responses.

The upstream protocol only distinguishes payloads by ``Content-Type``. Matching
is a case-insensitive substring test evaluated in a fixed order, so
parameterized media types (``text/plain; charset=utf-8``) are accepted.
"""

import base64
import json
import logging
from typing import Any, Awaitable, Callable, Dict, Tuple

from http_mcp.core.http_client import Response
from http_mcp.error_handling.exceptions import UnsupportedContentType

logger = logging.getLogger(__name__)

OCTET_STREAM = "application/octet-stream"

ContentResult = Dict[str, Any]
Predicate = Callable[[str], bool]
Handler = Callable[[Response, str], Awaitable[ContentResult]]


def content_type_of(response: Response) -> str:
    """Full ``Content-Type`` header value, or ``""`` when absent."""
    return response.header("Content-Type") or ""


def is_plain_text(content_type: str) -> bool:
    return "text/plain" in content_type.lower()


def is_json(content_type: str) -> bool:
    return "application/json" in content_type.lower()


def is_image(content_type: str) -> bool:
    return content_type.lower().startswith("image/")


def is_textual(content_type: str) -> bool:
    lowered = content_type.lower()
    return "text/" in lowered or "application/json" in lowered or "application/xml" in lowered


def make_text_content(text: str) -> ContentResult:
    return {"content": [{"type": "text", "text": text}]}


def stringify_json(value: Any) -> str:
    """Compact JSON text, matching what a JavaScript upstream would print."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


async def _text_content(response: Response, content_type: str) -> ContentResult:
    return make_text_content(await response.text())


async def _json_content(response: Response, content_type: str) -> ContentResult:
    body = await response.json()

    if isinstance(body, list):
        return {"content": body}

    # Mappings are trusted to already be a call-tool result and pass through untouched.
    if isinstance(body, dict):
        return body

    return make_text_content(body if isinstance(body, str) else stringify_json(body))


async def _image_content(response: Response, content_type: str) -> ContentResult:
    data = base64.b64encode(await response.bytes()).decode("ascii")
    return {"content": [{"type": "image", "mimeType": content_type, "data": data}]}


CONTENT_HANDLERS: Tuple[Tuple[Predicate, Handler], ...] = (
    (is_plain_text, _text_content),
    (is_json, _json_content),
    (is_image, _image_content),
)


async def to_content(response: Response) -> ContentResult:
    """
    Convert an upstream response into a call-tool style content result.

    Args:
        response: The upstream response.

    Returns:
        ``{"content": [...]}`` or, for JSON objects, the object itself.

    Raises:
        UnsupportedContentType: If no rule matches the Content-Type.
        InvalidPayloadError: If a JSON body cannot be decoded.
    """
    content_type = content_type_of(response)
    for matches, handler in CONTENT_HANDLERS:
        if matches(content_type):
            return await handler(response, content_type)

    logger.warning(f"No content transcoder for content type {content_type!r}")
    raise UnsupportedContentType(content_type)


async def to_resource_content(response: Response, uri: str) -> Dict[str, Any]:
    """Convert an upstream response into one resource content entry (text or base64 blob)."""
    content_type = content_type_of(response)

    if is_textual(content_type):
        return {"uri": uri, "mimeType": content_type, "text": await response.text()}

    return {
        "uri": uri,
        "mimeType": content_type or OCTET_STREAM,
        "blob": base64.b64encode(await response.bytes()).decode("ascii"),
    }
