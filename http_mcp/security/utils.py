"""
Security utilities for the HTTP MCP bridge.
This module masks credentials (forwarded headers, tokens) before they reach the logs.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

MASK = "********"

DEFAULT_SENSITIVE_PATTERNS = [
    r"authorization",
    r"cookie",
    r"password",
    r"api[-_]?key",
    r"secret",
    r"token",
    r"credential",
]

# Scheme-prefixed credentials inside free text, e.g. "Authorization: Bearer abc".
# The credential is never a scheme word or an existing mask, so masking twice is a no-op.
_CREDENTIAL_VALUE = re.compile(
    r"\b((?i:bearer|basic))\s+(?!(?i:bearer|basic)\b)(?!\*)[A-Za-z0-9\-._~+/]+=*"
)


def _is_sensitive_key(key: Any, patterns: List[str]) -> bool:
    return isinstance(key, str) and any(re.search(p, key, re.I) for p in patterns)


def mask_sensitive_data(data: Union[Dict, List, tuple, str, Any],
                        patterns: Optional[List[str]] = None) -> Union[Dict, List, tuple, str, Any]:
    """
    Mask sensitive data in a data structure.

    Mapping values whose key matches one of ``patterns`` are replaced with a
    mask; strings have scheme-prefixed credentials (``Bearer <token>``) masked.
    Other values are returned unchanged.

    Args:
        data: Data to mask
        patterns: List of regex patterns for sensitive keys

    Returns:
        The masked copy of ``data``
    """
    if patterns is None:
        patterns = DEFAULT_SENSITIVE_PATTERNS

    if isinstance(data, dict):
        return {
            k: MASK if _is_sensitive_key(k, patterns) else mask_sensitive_data(v, patterns)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [mask_sensitive_data(item, patterns) for item in data]
    elif isinstance(data, tuple):
        return tuple(mask_sensitive_data(item, patterns) for item in data)
    elif isinstance(data, str):
        return _CREDENTIAL_VALUE.sub(lambda m: f"{m.group(1)} {MASK}", data)
    else:
        return data
