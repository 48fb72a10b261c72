import json
from typing import Any, Dict, List, Optional

import pytest

from http_mcp.config import BridgeConfig
from http_mcp.core.capability_state import (
    CapabilityState,
    Manifest,
    PromptEntry,
    ResourceEntry,
    ResourceTemplateEntry,
    ToolEntry,
)

BASE_URL = "http://upstream.test"


class FakeResponse:
    """In-memory `Response` for dispatcher and transcoder tests."""

    def __init__(self, status: int = 200, body: Any = None, content_type: Optional[str] = "application/json",
                 status_text: str = "OK", raw: Optional[bytes] = None):
        self.status = status
        self.status_text = status_text
        self._body = body
        self._raw = raw
        self._headers = {"content-type": content_type} if content_type is not None else {}

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        return self._headers.get(name.lower())

    async def text(self) -> str:
        if self._raw is not None:
            return self._raw.decode("utf-8")
        if isinstance(self._body, str):
            return self._body
        return json.dumps(self._body)

    async def json(self) -> Any:
        if self._raw is not None:
            return json.loads(self._raw)
        return self._body

    async def bytes(self) -> bytes:
        if self._raw is not None:
            return self._raw
        return (await self.text()).encode("utf-8")


class FakeHttpClient:
    """Records every request and answers from a url -> response table."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    def _answer(self, url: str) -> FakeResponse:
        answer = self.routes.get(url)
        if answer is None:
            return FakeResponse(404, "Not Found", content_type="text/plain", status_text="Not Found")
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def get(self, url: str, headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        self.calls.append({"method": "GET", "url": url, "headers": headers})
        return self._answer(url)

    async def post(self, url: str, json_body: Any, headers: Optional[Dict[str, str]] = None) -> FakeResponse:
        self.calls.append({"method": "POST", "url": url, "body": json_body, "headers": headers})
        return self._answer(url)


@pytest.fixture
def http_client():
    return FakeHttpClient()


@pytest.fixture
def response_factory():
    return FakeResponse


@pytest.fixture
def bridge_config():
    return BridgeConfig(base_url=BASE_URL, headers={"Authorization": "Bearer secret-token"})


@pytest.fixture
def full_state(bridge_config):
    """State with every section declared, as the initializer would build it."""
    return CapabilityState(
        config=bridge_config,
        manifest=Manifest(name="example", version="1.0.0", tools=True, prompts=True,
                          resources=True, resourceTemplates=True),
        tools=(
            ToolEntry(name="echo", description="Echo the input",
                      inputSchema={"type": "object", "properties": {"text": {"type": "string"}}}),
            ToolEntry(name="math", href="calc/run"),
        ),
        tools_url=f"{BASE_URL}/tools",
        prompts=(
            PromptEntry(name="explain", description="Explain a concept",
                        arguments=[{"name": "concept", "required": True}]),
            PromptEntry(name="greet", href="/custom/greeting"),
        ),
        prompts_url=f"{BASE_URL}/prompts",
        resources=(
            ResourceEntry(uri="file://readme.txt", name="README", mimeType="text/plain"),
            ResourceEntry(uri="file://logo.png", name="Logo", href="h"),
        ),
        resources_url=f"{BASE_URL}/resources",
        resource_templates=(
            ResourceTemplateEntry(uriTemplate="file://{path}", name="Files"),
        ),
        resource_templates_url=f"{BASE_URL}/resource_templates",
    )


@pytest.fixture
def tools_only_state(bridge_config):
    return CapabilityState(
        config=bridge_config,
        manifest=Manifest(name="tools-only", version="0.1.0", tools=True),
        tools=(ToolEntry(name="echo"),),
        tools_url=f"{BASE_URL}/tools",
    )
