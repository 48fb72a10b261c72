"""
Custom exceptions for the HTTP MCP bridge.
This module provides the exception classes raised while bootstrapping the
capability state and while dispatching MCP requests to the upstream server.
"""

from typing import Optional


class BridgeError(Exception):
    """Base exception class for HTTP MCP bridge errors."""
    def __init__(self, message: str, code: int = -32000, original_exception: Optional[Exception] = None):
        self.message = message
        self.code = code
        self.original_exception = original_exception
        super().__init__(self.message)

    def to_jsonrpc_error(self) -> dict:
        """Convert exception to JSON-RPC error object."""
        error_data = {
            'exception': self.__class__.__name__,
            'args': self.args
        }
        if self.original_exception:
            error_data['original_exception'] = str(self.original_exception)
        return {
            'code': self.code,
            'message': self.message,
            'data': error_data
        }


class ConfigurationError(BridgeError):
    """Configuration error."""
    def __init__(self, message: str = "Configuration error occurred", original_exception: Optional[Exception] = None):
        super().__init__(message, code=-32004, original_exception=original_exception)


class NetworkError(BridgeError):
    """Network error."""
    def __init__(self, message: str = "Network error occurred", original_exception: Optional[Exception] = None):
        super().__init__(message, code=-32002, original_exception=original_exception)


class ProtocolError(BridgeError):
    """Protocol error."""
    def __init__(self, message: str = "Protocol error occurred", code: int = -32003,
                 original_exception: Optional[Exception] = None):
        super().__init__(message, code=code, original_exception=original_exception)


class InvalidPayloadError(ProtocolError):
    """Upstream body could not be decoded into the expected shape."""
    def __init__(self, message: str = "Invalid upstream payload", original_exception: Optional[Exception] = None):
        super().__init__(message, code=-32007, original_exception=original_exception)


class UnsupportedContentType(ProtocolError):
    """The response Content-Type matched none of the transcoding rules."""
    def __init__(self, content_type: str, message: Optional[str] = None):
        self.content_type = content_type
        super().__init__(message or f'Unsupported or unknown content type "{content_type}".', code=-32008)


# --- Initialization ---

class InitializationError(BridgeError):
    """Capability state could not be built."""
    def __init__(self, message: str, code: int = -32010, status: Optional[int] = None,
                 status_text: str = "", original_exception: Optional[Exception] = None):
        self.status = status
        self.status_text = status_text
        super().__init__(message, code=code, original_exception=original_exception)


class ManifestFetchFailed(InitializationError):
    """The manifest could not be fetched."""
    def __init__(self, status: Optional[int] = None, status_text: str = "",
                 original_exception: Optional[Exception] = None):
        if status is None:
            message = f"Failed to fetch manifest: {original_exception}"
        else:
            message = f"Failed to fetch manifest: {status} {status_text}".rstrip()
        super().__init__(message, code=-32011, status=status, status_text=status_text,
                         original_exception=original_exception)


class SectionFetchFailed(InitializationError):
    """A declared capability section could not be fetched."""
    def __init__(self, section: str, status: Optional[int] = None, status_text: str = "",
                 original_exception: Optional[Exception] = None):
        self.section = section
        if status is None:
            message = f"Failed to fetch {section}: {original_exception}"
        else:
            message = f"Failed to fetch {section}: {status} {status_text}".rstrip()
        super().__init__(message, code=-32012, status=status, status_text=status_text,
                         original_exception=original_exception)


# --- Authorization ---

class AuthError(BridgeError):
    """Authentication error."""
    def __init__(self, message: str = "Authentication failed", code: int = -32001,
                 original_exception: Optional[Exception] = None):
        super().__init__(message, code=code, original_exception=original_exception)


class Unauthorized(AuthError):
    """Upstream answered 401."""
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code=-32020)


class Forbidden(AuthError):
    """Upstream answered 403."""
    def __init__(self, message: str = "Forbidden"):
        super().__init__(message, code=-32021)


# --- Lookups ---

class UnknownCapabilityError(BridgeError):
    """Requested capability is not listed in the capability state."""
    def __init__(self, message: str, code: int = -32030):
        super().__init__(message, code=code)


class UnknownTool(UnknownCapabilityError):
    """Unknown tool."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Unknown tool "{name}"', code=-32031)


class UnknownPrompt(UnknownCapabilityError):
    """Unknown prompt."""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f'Unknown prompt "{name}"', code=-32032)


class UnknownResource(UnknownCapabilityError):
    """Unknown resource."""
    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f'Unknown resource "{uri}"', code=-32033)


class CapabilityNotEnabled(BridgeError):
    """The manifest did not declare the requested capability section."""
    def __init__(self, section: str):
        self.section = section
        super().__init__(f"Capability '{section}' is not enabled by the manifest", code=-32034)


# --- Upstream status ---

class UpstreamFailure(BridgeError):
    """Upstream answered with a non-2xx, non-auth status."""
    def __init__(self, message: str, status: int, status_text: str = "", code: int = -32040):
        self.status = status
        self.status_text = status_text
        super().__init__(message, code=code)


class PromptFetchFailed(UpstreamFailure):
    """Prompt request failed upstream."""
    def __init__(self, name: str, status: int, status_text: str = ""):
        self.name = name
        super().__init__(f'Failed to get prompt "{name}": {status} {status_text}'.rstrip(),
                         status, status_text, code=-32041)


class ResourceFetchFailed(UpstreamFailure):
    """Resource read failed upstream."""
    def __init__(self, uri: str, status: int, status_text: str = ""):
        self.uri = uri
        super().__init__(f'Failed to read resource "{uri}": {status} {status_text}'.rstrip(),
                         status, status_text, code=-32042)
