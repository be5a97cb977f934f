"""Construction of Loki query_range URLs."""

import logging
from typing import Dict, List
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from loki_mcp.errors import InvalidBaseURL

logger = logging.getLogger(__name__)

API_PREFIX = "loki/api/v1"
QUERY_RANGE = "query_range"


def _normalize_path(path: str) -> str:
    """Point a base path at the query_range endpoint exactly once."""
    path = path.rstrip("/")
    if API_PREFIX not in path:
        return f"{path}/{API_PREFIX}/{QUERY_RANGE}"
    if not path.endswith(QUERY_RANGE):
        return f"{path}/{QUERY_RANGE}"
    return path


def build_query_url(base_url: str, query: str, start: int, end: int, limit: int) -> str:
    """
    Build the query_range URL for a Loki base URL.

    Args:
        base_url: Loki base URL; may already carry a path prefix or the API path
        query: LogQL query string
        start: Range start as integer epoch seconds
        end: Range end as integer epoch seconds
        limit: Maximum number of entries

    Returns:
        The full URL, with query parameters sorted by name

    Raises:
        InvalidBaseURL: If base_url is not an absolute http(s) URL
    """
    try:
        parts = urlsplit(base_url.strip())
        # .port validates the port number
        parts.port
    except ValueError as e:
        raise InvalidBaseURL(base_url, str(e)) from e

    if parts.scheme not in ("http", "https"):
        raise InvalidBaseURL(base_url, "scheme must be http or https")
    if not parts.hostname:
        raise InvalidBaseURL(base_url, "missing host")

    params: Dict[str, List[str]] = {}
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        params.setdefault(key, []).append(value)
    params["query"] = [query]
    params["start"] = [str(int(start))]
    params["end"] = [str(int(end))]
    params["limit"] = [str(int(limit))]

    encoded = urlencode(sorted(params.items()), doseq=True)
    url = urlunsplit(
        (parts.scheme, parts.netloc, _normalize_path(parts.path), encoded, parts.fragment)
    )
    logger.debug(f"Built Loki query URL: {url}")
    return url
