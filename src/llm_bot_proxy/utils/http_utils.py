"""
HTTP utility functions.

Helpers for inspecting statuses, content types and headers of proxied
requests and responses.
"""

from typing import Optional

import httpx

from ..config.constants import HOP_BY_HOP_HEADERS, STATIC_PASSTHROUGH_EXTENSIONS


# Status class (hundreds digit) -> label used in log lines
_STATUS_CATEGORIES = {
    2: "2xx_success",
    3: "3xx_redirect",
    4: "4xx_client_error",
    5: "5xx_server_error",
}


def get_status_category(status_code: Optional[int]) -> Optional[str]:
    """
    Label an upstream status code for logging.

    Args:
        status_code: HTTP status code, or None when no response was received

    Returns:
        One of '2xx_success', '3xx_redirect', '4xx_client_error',
        '5xx_server_error', or None for 1xx, out-of-range and missing codes

    Examples:
        >>> get_status_category(302)
        '3xx_redirect'
        >>> get_status_category(None) is None
        True
    """
    if status_code is None:
        return None
    return _STATUS_CATEGORIES.get(status_code // 100)


def is_success_status(status_code: Optional[int]) -> bool:
    """True for 2xx codes; the secondary store only counts these as a hit."""
    return get_status_category(status_code) == "2xx_success"


def is_redirect_status(status_code: Optional[int]) -> bool:
    """True for 3xx codes, including 304."""
    return get_status_category(status_code) == "3xx_redirect"


def is_html_content_type(content_type: Optional[str]) -> bool:
    """
    Check if a Content-Type header value denotes an HTML document.

    Args:
        content_type: Raw header value, e.g. "text/html; charset=utf-8"

    Returns:
        True if the value contains "text/html"
    """
    return bool(content_type) and "text/html" in content_type.lower()


def is_static_asset_path(path: str) -> bool:
    """
    Check if a URL path points at a non-HTML static file.

    Args:
        path: URL path, without query string

    Returns:
        True for paths ending in one of STATIC_PASSTHROUGH_EXTENSIONS
    """
    return path.endswith(STATIC_PASSTHROUGH_EXTENSIONS)


def strip_hop_by_hop_headers(headers: httpx.Headers) -> httpx.Headers:
    """
    Return a copy of headers without connection-scoped entries.

    Also drops any header named in the Connection header itself.

    Args:
        headers: Headers to filter (left untouched)

    Returns:
        New httpx.Headers, multi-valued entries preserved
    """
    connection_tokens = {
        token.strip().lower()
        for value in headers.get_list("connection")
        for token in value.split(",")
        if token.strip()
    }
    dropped = HOP_BY_HOP_HEADERS | connection_tokens
    return httpx.Headers(
        [(key, value) for key, value in headers.multi_items() if key.lower() not in dropped]
    )
