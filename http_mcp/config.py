"""
Configuration for the HTTP MCP bridge.

Values come from an optional YAML file, then the environment, then the
command line, each source overriding the previous one.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import yaml

from http_mcp.error_handling.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_URL = "HTTP_MCP_URL"
ENV_AUTH_TOKEN = "HTTP_MCP_AUTH_TOKEN"
ENV_TIMEOUT = "HTTP_MCP_TIMEOUT"
ENV_LOG_LEVEL = "HTTP_MCP_LOG_LEVEL"

DEFAULT_TIMEOUT = 30.0


@dataclass
class BridgeConfig:
    """Configuration for the bridge."""
    base_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    logging: Optional[Dict[str, Any]] = None


def parse_header(value: str) -> Tuple[str, str]:
    """
    Parse a ``"Name: Value"`` header argument.

    Raises:
        ConfigurationError: If the name or the value is missing.
    """
    parts = re.split(r":\s*", value, maxsplit=1)
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ConfigurationError(
            f'Invalid header format: "{value}". Expected "HeaderName: HeaderValue".'
        )
    return parts[0].strip(), parts[1].strip()


def bearer_header(token: str) -> Dict[str, str]:
    if not token:
        raise ConfigurationError("An auth token requires a non-empty value.")
    return {"Authorization": f"Bearer {token}"}


def _parse_timeout(value: Any, source: str) -> float:
    try:
        timeout = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid timeout {value!r} in {source}", original_exception=e)
    if timeout <= 0:
        raise ConfigurationError(f"Timeout must be positive, got {timeout} in {source}")
    return timeout


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load raw configuration values from a YAML file.

    Args:
        config_path: Path to the configuration file

    Returns:
        The mapping read from the file (empty for an empty file)

    Raises:
        ConfigurationError: If the file is missing or is not a YAML mapping
    """
    if not os.path.exists(config_path):
        raise ConfigurationError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}", original_exception=e)

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError(f"Configuration file {config_path} must contain a mapping")
    return config_data


def load_config(config_path: Optional[str] = None,
                url: Optional[str] = None,
                headers: Optional[Dict[str, str]] = None,
                auth_token: Optional[str] = None,
                timeout: Optional[float] = None,
                log_level: Optional[str] = None) -> BridgeConfig:
    """
    Build the bridge configuration.

    Keyword arguments are the command-line values and win over the
    environment, which wins over the YAML file.

    Raises:
        ConfigurationError: If no base URL is configured or a value is invalid
    """
    data = load_config_file(config_path) if config_path else {}

    merged_headers: Dict[str, str] = {}
    file_headers = data.get('headers') or {}
    if not isinstance(file_headers, dict):
        raise ConfigurationError("'headers' in the configuration file must be a mapping")
    merged_headers.update({str(k): str(v) for k, v in file_headers.items()})
    if data.get('auth_token'):
        merged_headers.update(bearer_header(str(data['auth_token'])))

    base_url = data.get('url')
    config_timeout = _parse_timeout(data['timeout'], config_path) if 'timeout' in data else DEFAULT_TIMEOUT
    config_log_level = data.get('log_level', 'INFO')

    # Environment
    if os.getenv(ENV_URL):
        base_url = os.getenv(ENV_URL)
    if os.getenv(ENV_AUTH_TOKEN):
        merged_headers.update(bearer_header(os.getenv(ENV_AUTH_TOKEN)))
    if os.getenv(ENV_TIMEOUT):
        config_timeout = _parse_timeout(os.getenv(ENV_TIMEOUT), ENV_TIMEOUT)
    if os.getenv(ENV_LOG_LEVEL):
        config_log_level = os.getenv(ENV_LOG_LEVEL)

    # Command line
    if url:
        base_url = url
    if headers:
        merged_headers.update(headers)
    if auth_token is not None:
        merged_headers.update(bearer_header(auth_token))
    if timeout is not None:
        config_timeout = _parse_timeout(timeout, "--timeout")
    if log_level:
        config_log_level = log_level

    if not base_url:
        raise ConfigurationError(f"Host URL must be provided via --url, {ENV_URL} or the 'url' config key.")

    return BridgeConfig(
        base_url=str(base_url),
        headers=merged_headers,
        timeout=config_timeout,
        log_level=str(config_log_level).upper(),
        logging=data.get('logging'),
    )
