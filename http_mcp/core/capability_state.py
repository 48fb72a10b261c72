"""
Capability state for the HTTP MCP bridge.

The upstream server publishes a manifest naming the capability sections it
offers (tools, prompts, resources, resource templates). `initialize_state`
fetches the manifest and every declared section and returns an immutable
`CapabilityState` snapshot that the dispatchers read from.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, NamedTuple, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from http_mcp.config import BridgeConfig
from http_mcp.core.http_client import HttpClient
from http_mcp.core.urls import resolve_url
from http_mcp.error_handling.exceptions import (
    InvalidPayloadError,
    ManifestFetchFailed,
    SectionFetchFailed,
)

logger = logging.getLogger(__name__)

SectionDeclaration = Union[bool, str, None]


class Manifest(BaseModel):
    """Root document of the upstream server."""
    model_config = ConfigDict(extra="allow", frozen=True)

    name: str
    version: str
    tools: SectionDeclaration = None
    prompts: SectionDeclaration = None
    resources: SectionDeclaration = None
    resourceTemplates: SectionDeclaration = None


class CapabilityEntry(BaseModel):
    """Listed capability. `href` is a routing hint and never leaves the bridge."""
    model_config = ConfigDict(extra="allow", frozen=True)

    href: Optional[str] = None

    # Wire-visible fields, in output order.
    WIRE_FIELDS: ClassVar[Tuple[str, ...]] = ()

    def to_wire(self) -> Dict[str, Any]:
        """Project onto the fields the MCP host is allowed to see, omitting unset optionals."""
        wire = {}
        for field_name in self.WIRE_FIELDS:
            value = getattr(self, field_name)
            if value is not None:
                wire[field_name] = value
        return wire


class ToolEntry(CapabilityEntry):
    WIRE_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "description", "inputSchema")

    name: str
    description: Optional[str] = None
    inputSchema: Dict[str, Any] = Field(default_factory=lambda: {"type": "object"})


class PromptEntry(CapabilityEntry):
    WIRE_FIELDS: ClassVar[Tuple[str, ...]] = ("name", "description", "arguments")

    name: str
    description: Optional[str] = None
    arguments: Optional[List[Dict[str, Any]]] = None


class ResourceEntry(CapabilityEntry):
    WIRE_FIELDS: ClassVar[Tuple[str, ...]] = ("uri", "name", "description", "mimeType")

    uri: str
    name: Optional[str] = None
    description: Optional[str] = None
    mimeType: Optional[str] = None


class ResourceTemplateEntry(CapabilityEntry):
    WIRE_FIELDS: ClassVar[Tuple[str, ...]] = ("uriTemplate", "name", "description", "mimeType")

    uriTemplate: str
    name: Optional[str] = None
    description: Optional[str] = None
    mimeType: Optional[str] = None


class Section(NamedTuple):
    """How one capability section is declared, located and stored."""
    manifest_field: str
    default_path: str
    attribute: str
    entry_type: Type[CapabilityEntry]


# resource_templates is snake-cased on the wire; existing upstream servers depend on it.
SECTIONS: Tuple[Section, ...] = (
    Section("tools", "tools", "tools", ToolEntry),
    Section("prompts", "prompts", "prompts", PromptEntry),
    Section("resources", "resources", "resources", ResourceEntry),
    Section("resourceTemplates", "resource_templates", "resource_templates", ResourceTemplateEntry),
)


@dataclass(frozen=True)
class CapabilityState:
    """
    Read-only snapshot of the upstream server's capabilities.

    A section tuple is set exactly when its URL is set, which is exactly when
    the manifest declared the section.
    """
    config: BridgeConfig
    manifest: Manifest
    tools: Optional[Tuple[ToolEntry, ...]] = None
    tools_url: Optional[str] = None
    prompts: Optional[Tuple[PromptEntry, ...]] = None
    prompts_url: Optional[str] = None
    resources: Optional[Tuple[ResourceEntry, ...]] = None
    resources_url: Optional[str] = None
    resource_templates: Optional[Tuple[ResourceTemplateEntry, ...]] = None
    resource_templates_url: Optional[str] = None

    @property
    def headers(self) -> Dict[str, str]:
        """Headers forwarded on every upstream request."""
        return dict(self.config.headers or {})

    def is_enabled(self, attribute: str) -> bool:
        return getattr(self, attribute) is not None


def section_path(section: Section, declaration: SectionDeclaration) -> str:
    """Relative path for a declared section: custom string or the default path."""
    if isinstance(declaration, str):
        return declaration
    return section.default_path


async def _fetch_section(http_client: HttpClient, config: BridgeConfig, section: Section,
                         declaration: SectionDeclaration) -> Tuple[Tuple[CapabilityEntry, ...], str]:
    url = resolve_url(config.base_url, section_path(section, declaration))
    logger.debug(f"Fetching {section.manifest_field} from {url}")

    try:
        response = await http_client.get(url, config.headers or None)
    except Exception as e:
        raise SectionFetchFailed(section.manifest_field, original_exception=e)

    if not response.ok:
        raise SectionFetchFailed(section.manifest_field, response.status, response.status_text)

    try:
        entries = TypeAdapter(List[section.entry_type]).validate_python(await response.json())
    except (ValidationError, InvalidPayloadError) as e:
        raise SectionFetchFailed(section.manifest_field, response.status, "invalid section payload",
                                 original_exception=e)

    logger.info(f"Loaded {len(entries)} {section.manifest_field} from {url}")
    return tuple(entries), url


async def initialize_state(http_client: HttpClient, config: BridgeConfig) -> CapabilityState:
    """
    Fetch the manifest and every section it declares.

    Section fetches run concurrently. Initialization is all-or-nothing: if
    any declared section fails, no state is returned.

    Args:
        http_client: The HTTP collaborator.
        config: Bridge configuration (base URL and forwarded headers).

    Returns:
        CapabilityState: The immutable capability snapshot.

    Raises:
        ManifestFetchFailed: If the manifest request fails or is non-2xx.
        InvalidPayloadError: If the manifest body is not a valid manifest.
        SectionFetchFailed: If any declared section cannot be loaded.
    """
    logger.info(f"Fetching manifest from {config.base_url}")
    try:
        response = await http_client.get(config.base_url, config.headers or None)
    except Exception as e:
        raise ManifestFetchFailed(original_exception=e)

    if not response.ok:
        raise ManifestFetchFailed(response.status, response.status_text)

    try:
        manifest = Manifest.model_validate(await response.json())
    except ValidationError as e:
        raise InvalidPayloadError(f"Invalid manifest at {config.base_url}: {e}", original_exception=e)

    declared = [
        (section, getattr(manifest, section.manifest_field))
        for section in SECTIONS
        if getattr(manifest, section.manifest_field)
    ]
    logger.info(f"Manifest '{manifest.name}' v{manifest.version} declares: "
                f"{', '.join(s.manifest_field for s, _ in declared) or 'nothing'}")

    outcomes = await asyncio.gather(
        *(_fetch_section(http_client, config, section, declaration) for section, declaration in declared),
        return_exceptions=True,
    )

    failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    if failures:
        for extra in failures[1:]:
            logger.warning(f"Additional initialization failure: {extra}")
        logger.error(f"Initialization failed: {failures[0]}")
        raise failures[0]

    fields: Dict[str, Any] = {}
    for (section, _), (entries, url) in zip(declared, outcomes):
        fields[section.attribute] = entries
        fields[f"{section.attribute}_url"] = url

    return CapabilityState(config=config, manifest=manifest, **fields)
