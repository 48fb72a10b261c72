import pytest

from http_mcp.config import BridgeConfig
from http_mcp.core.capability_state import (
    initialize_state,
)
from http_mcp.error_handling.exceptions import (
    InvalidPayloadError,
    ManifestFetchFailed,
    NetworkError,
    SectionFetchFailed,
)

pytestmark = pytest.mark.asyncio

BASE = "http://h"

TOOLS = [{"name": "echo", "description": "Echo", "inputSchema": {"type": "object"}, "href": "x/echo"}]
PROMPTS = [{"name": "explain", "arguments": [{"name": "concept"}]}]
RESOURCES = [{"uri": "file://readme.txt", "name": "README"}]
TEMPLATES = [{"uriTemplate": "file://{path}", "name": "Files"}]


@pytest.fixture
def config():
    return BridgeConfig(base_url=BASE, headers={"X-Api-Key": "k"})


async def test_initialize_with_default_paths(http_client, response_factory, config):
    http_client.routes = {
        BASE: response_factory(body={"name": "demo", "version": "1.0.0", "tools": True,
                                     "prompts": True, "resources": True, "resourceTemplates": True}),
        f"{BASE}/tools": response_factory(body=TOOLS),
        f"{BASE}/prompts": response_factory(body=PROMPTS),
        f"{BASE}/resources": response_factory(body=RESOURCES),
        f"{BASE}/resource_templates": response_factory(body=TEMPLATES),
    }

    state = await initialize_state(http_client, config)

    assert state.manifest.name == "demo"
    assert state.tools_url == "http://h/tools"
    assert state.prompts_url == "http://h/prompts"
    assert state.resources_url == "http://h/resources"
    assert state.resource_templates_url == "http://h/resource_templates"
    assert state.tools[0].name == "echo"
    assert state.tools[0].href == "x/echo"
    assert state.resources[0].uri == "file://readme.txt"
    assert state.resource_templates[0].uriTemplate == "file://{path}"
    assert all(call["headers"] == {"X-Api-Key": "k"} for call in http_client.calls)


async def test_initialize_with_custom_paths_and_trailing_slash(http_client, response_factory):
    config = BridgeConfig(base_url="http://h/api/")
    http_client.routes = {
        "http://h/api/": response_factory(body={"name": "demo", "version": "2", "tools": "/v2/tools"}),
        "http://h/api/v2/tools": response_factory(body=TOOLS),
    }

    state = await initialize_state(http_client, config)

    assert state.tools_url == "http://h/api/v2/tools"
    assert state.prompts is None and state.prompts_url is None
    assert state.resources is None and state.resources_url is None
    assert state.resource_templates is None and state.resource_templates_url is None


async def test_undeclared_sections_are_not_fetched(http_client, response_factory, config):
    http_client.routes = {
        BASE: response_factory(body={"name": "demo", "version": "1", "tools": False, "prompts": True}),
        f"{BASE}/prompts": response_factory(body=PROMPTS),
    }

    state = await initialize_state(http_client, config)

    assert [call["url"] for call in http_client.calls] == [BASE, f"{BASE}/prompts"]
    assert not state.is_enabled("tools")
    assert state.is_enabled("prompts")


async def test_manifest_non_2xx_fails(http_client, response_factory, config):
    http_client.routes = {BASE: response_factory(503, "down", content_type="text/plain",
                                                 status_text="Service Unavailable")}

    with pytest.raises(ManifestFetchFailed) as excinfo:
        await initialize_state(http_client, config)

    assert excinfo.value.status == 503
    assert str(excinfo.value) == "Failed to fetch manifest: 503 Service Unavailable"


async def test_manifest_network_error_fails(http_client, config):
    http_client.routes = {BASE: NetworkError("Unable to connect to http://h")}

    with pytest.raises(ManifestFetchFailed) as excinfo:
        await initialize_state(http_client, config)

    assert excinfo.value.status is None
    assert isinstance(excinfo.value.original_exception, NetworkError)


async def test_invalid_manifest_body(http_client, response_factory, config):
    http_client.routes = {BASE: response_factory(body={"tools": True})}

    with pytest.raises(InvalidPayloadError):
        await initialize_state(http_client, config)


async def test_section_failure_returns_no_state(http_client, response_factory, config):
    http_client.routes = {
        BASE: response_factory(body={"name": "demo", "version": "1", "tools": True, "prompts": True}),
        f"{BASE}/tools": response_factory(body=TOOLS),
        f"{BASE}/prompts": response_factory(500, "boom", content_type="text/plain",
                                            status_text="Internal Server Error"),
    }

    with pytest.raises(SectionFetchFailed) as excinfo:
        await initialize_state(http_client, config)

    assert excinfo.value.section == "prompts"
    assert excinfo.value.status == 500
    assert str(excinfo.value) == "Failed to fetch prompts: 500 Internal Server Error"


async def test_first_failure_in_section_order_is_raised(http_client, response_factory, config):
    http_client.routes = {
        BASE: response_factory(body={"name": "demo", "version": "1", "tools": True, "resources": True}),
        f"{BASE}/tools": NetworkError("timeout"),
    }

    with pytest.raises(SectionFetchFailed) as excinfo:
        await initialize_state(http_client, config)

    assert excinfo.value.section == "tools"
    assert isinstance(excinfo.value.original_exception, NetworkError)
    # Both sections were still requested.
    assert {call["url"] for call in http_client.calls} == {BASE, f"{BASE}/tools", f"{BASE}/resources"}


async def test_section_body_must_be_a_list_of_entries(http_client, response_factory, config):
    http_client.routes = {
        BASE: response_factory(body={"name": "demo", "version": "1", "tools": True}),
        f"{BASE}/tools": response_factory(body={"tools": TOOLS}),
    }

    with pytest.raises(SectionFetchFailed) as excinfo:
        await initialize_state(http_client, config)

    assert isinstance(excinfo.value.original_exception, Exception)
    assert "invalid section payload" in str(excinfo.value)
