"""
URL utility functions.

Helpers for re-targeting a visited URL at another origin and resolving
redirect locations.
"""

from urllib.parse import urljoin, urlsplit

import httpx


def origin_of(url: str) -> str:
    """
    Extract the origin (scheme://host[:port]) of a URL.

    Args:
        url: Absolute URL

    Returns:
        Origin string without trailing slash

    Examples:
        >>> origin_of("https://example.com/blog/post?x=1")
        'https://example.com'
        >>> origin_of("http://localhost:8080/")
        'http://localhost:8080'
    """
    parts = urlsplit(url)
    return f"{parts.scheme}://{parts.netloc}".lower()


def host_of(origin: str) -> str:
    """
    Extract the host (with port, if any) from an origin.

    Used for the Host header when impersonating a different origin.

    Args:
        origin: Origin or absolute URL, e.g. "https://example.com"

    Returns:
        The netloc, e.g. "example.com"
    """
    return urlsplit(origin).netloc


def build_target_url(origin: str, url: httpx.URL) -> str:
    """
    Re-target the path and query of a visited URL at another origin.

    The origin may carry a path prefix (e.g. a per-organization bucket
    folder); the visited path is appended to it as-is.

    Args:
        origin: Target origin, optionally with a path prefix
        url: The visited URL

    Returns:
        Absolute target URL

    Examples:
        >>> build_target_url("https://cdn.example/org", httpx.URL("https://site.example/a?b=1"))
        'https://cdn.example/org/a?b=1'
    """
    target = origin.rstrip("/") + url.raw_path.decode("ascii")
    return target


def resolve_location(location: str, base_origin: str) -> str:
    """
    Resolve a redirect Location header against an origin.

    Args:
        location: Location header value (absolute or relative)
        base_origin: Origin the redirect was received from

    Returns:
        Absolute URL
    """
    return urljoin(base_origin.rstrip("/") + "/", location)
