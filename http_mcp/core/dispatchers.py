"""
Request dispatchers.

Each operation is a function of the HTTP collaborator, the capability state
and the request parameters. They keep no state of their own and may run
concurrently against the same `CapabilityState`.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple

from http_mcp.core.capability_state import CapabilityEntry, CapabilityState
from http_mcp.core.http_client import HttpClient, Response
from http_mcp.core.transcoder import (
    content_type_of,
    is_json,
    is_plain_text,
    stringify_json,
    to_content,
    to_resource_content,
)
from http_mcp.core.urls import resolve_url, with_query
from http_mcp.error_handling.exceptions import (
    CapabilityNotEnabled,
    Forbidden,
    PromptFetchFailed,
    ResourceFetchFailed,
    Unauthorized,
    UnknownPrompt,
    UnknownResource,
    UnknownTool,
    UnsupportedContentType,
)

logger = logging.getLogger(__name__)


def _require(state: CapabilityState, attribute: str) -> Tuple[Tuple[CapabilityEntry, ...], str]:
    entries = getattr(state, attribute)
    if entries is None:
        raise CapabilityNotEnabled(attribute)
    return entries, getattr(state, f"{attribute}_url")


def raise_for_auth(response: Response) -> None:
    """401 and 403 always fail the request, whatever the body says."""
    if response.status == 401:
        raise Unauthorized()
    if response.status == 403:
        raise Forbidden()


# --- Listing ---

def list_tools(state: CapabilityState) -> Dict[str, Any]:
    entries, _ = _require(state, "tools")
    return {"tools": [entry.to_wire() for entry in entries]}


def list_prompts(state: CapabilityState) -> Dict[str, Any]:
    entries, _ = _require(state, "prompts")
    return {"prompts": [entry.to_wire() for entry in entries]}


def list_resources(state: CapabilityState) -> Dict[str, Any]:
    entries, _ = _require(state, "resources")
    return {"resources": [entry.to_wire() for entry in entries]}


def list_resource_templates(state: CapabilityState) -> Dict[str, Any]:
    entries, _ = _require(state, "resource_templates")
    return {"resourceTemplates": [entry.to_wire() for entry in entries]}


# --- Tools ---

async def call_tool(http_client: HttpClient, state: CapabilityState, name: str,
                    arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Call a tool on the upstream server.

    A non-2xx answer (other than 401/403) is still a result: the transcoded
    body is returned with ``isError`` set.

    Args:
        http_client: The HTTP collaborator.
        state: The capability state.
        name: Tool name, matched exactly.
        arguments: Tool arguments, sent as the JSON body.

    Returns:
        The call-tool result.

    Raises:
        UnknownTool: If the tool is not listed (no request is made).
        Unauthorized, Forbidden: On 401/403.
        UnsupportedContentType: If the response cannot be transcoded.
    """
    tools, tools_url = _require(state, "tools")
    tool = next((t for t in tools if t.name == name), None)
    if tool is None:
        raise UnknownTool(name)

    url = resolve_url(tools_url, tool.name if tool.href is None else tool.href)
    logger.debug(f"Calling tool '{name}' at {url}")
    response = await http_client.post(url, dict(arguments or {}), state.headers)

    raise_for_auth(response)

    result = await to_content(response)
    if not response.ok:
        logger.info(f"Tool '{name}' returned {response.status} {response.status_text}")
        result = dict(result)
        result["isError"] = True
    return result


# --- Prompts ---

def _single_message(role: str, text: str) -> Dict[str, Any]:
    return {"messages": [{"role": role, "content": {"type": "text", "text": text}}]}


async def get_prompt(http_client: HttpClient, state: CapabilityState, name: str,
                     arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Render a prompt through the upstream server.

    Arguments travel as query parameters. A JSON body with a ``messages``
    list is returned as-is; any other JSON becomes one assistant message and
    plain text becomes one user message.

    Raises:
        UnknownPrompt: If the prompt is not listed.
        Unauthorized, Forbidden: On 401/403.
        PromptFetchFailed: On any other non-2xx status.
        UnsupportedContentType: If the body is neither JSON nor plain text.
    """
    prompts, prompts_url = _require(state, "prompts")
    prompt = next((p for p in prompts if p.name == name), None)
    if prompt is None:
        raise UnknownPrompt(name)

    url = resolve_url(prompts_url, prompt.name if prompt.href is None else prompt.href)
    if isinstance(arguments, Mapping):
        url = with_query(url, arguments)

    logger.debug(f"Getting prompt '{name}' from {url}")
    response = await http_client.get(url, state.headers)

    raise_for_auth(response)
    if not response.ok:
        raise PromptFetchFailed(name, response.status, response.status_text)

    content_type = content_type_of(response)

    if is_json(content_type):
        body = await response.json()
        if isinstance(body, dict) and isinstance(body.get("messages"), list):
            return body
        return _single_message("assistant", stringify_json(body))

    if is_plain_text(content_type):
        return _single_message("user", await response.text())

    raise UnsupportedContentType(
        content_type, f'Unsupported content type "{content_type}" for prompt response.'
    )


# --- Resources ---

async def read_resource(http_client: HttpClient, state: CapabilityState, uri: str,
                        arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
    """
    Read a resource from the upstream server.

    The resource URI is always sent as the ``uri`` query parameter, followed
    by any extra arguments. Resources without ``href`` are read from the
    collection URL itself.

    Raises:
        UnknownResource: If the URI is not listed.
        Unauthorized, Forbidden: On 401/403.
        ResourceFetchFailed: On any other non-2xx status.
    """
    resources, resources_url = _require(state, "resources")
    resource = next((r for r in resources if r.uri == uri), None)
    if resource is None:
        raise UnknownResource(uri)

    query: Dict[str, Any] = {"uri": uri}
    for key, value in (arguments or {}).items():
        if key != "uri":
            query[key] = value

    base = resolve_url(resources_url, resource.href) if resource.href else resources_url
    url = with_query(base, query)

    logger.debug(f"Reading resource '{uri}' from {url}")
    response = await http_client.get(url, state.headers)

    raise_for_auth(response)
    if not response.ok:
        raise ResourceFetchFailed(uri, response.status, response.status_text)

    if is_json(content_type_of(response)):
        body = await response.json()
        if isinstance(body, dict) and isinstance(body.get("contents"), list):
            return body

    return {"contents": [await to_resource_content(response, uri)]}
