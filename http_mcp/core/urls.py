"""URL helpers shared by the initializer and the dispatchers."""

import json
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlencode


def resolve_url(base: str, relative: str) -> str:
    """Join ``base`` and ``relative`` with exactly one slash at the seam.

    An empty ``relative`` returns ``base`` untouched.
    """
    if not relative:
        return base
    return base.rstrip("/") + "/" + relative.lstrip("/")


def stringify_param(value: Any) -> str:
    """Render a query parameter value the way a JSON client would."""
    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def with_query(url: str, params: Optional[Mapping[str, Any]]) -> str:
    """Append ``params`` (in iteration order) as a query string, if any."""
    if not params:
        return url
    pairs: List[Tuple[str, str]] = [(str(k), stringify_param(v)) for k, v in params.items()]
    return f"{url}?{urlencode(pairs)}"
