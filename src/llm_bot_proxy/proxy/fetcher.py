"""
Outbound fetches against the primary origin and the secondary content store.

Every fetch issued on the AI path carries the loop-prevention marker, so if
the target resolves back to this proxy the nested request is not processed as
an AI visit. Every outbound request, pass-through included, also names this
proxy in Via; a request that comes back carrying it is refused, so a
misrouted origin cannot recurse. Redirects are never followed by
the transport; the primary-origin fetch resolves at most one hop itself.
"""

import logging
from typing import Optional

import httpx

from ..config.constants import (
    BODYLESS_METHODS,
    DECODABLE_ACCEPT_ENCODING,
    LOOP_PREVENTION_HEADER,
    LOOP_PREVENTION_VALUE,
    VIA_HEADER,
    VIA_PROTOCOL,
    VIA_PSEUDONYM,
)
from ..utils.http_utils import (
    get_status_category,
    is_redirect_status,
    strip_hop_by_hop_headers,
)
from ..utils.url_utils import build_target_url, host_of, origin_of, resolve_location
from .exceptions import ConfigurationError, FetchError
from .models import IncomingRequest

logger = logging.getLogger(__name__)


class OriginFetcher:
    """
    Issues outbound requests derived from an inbound request.

    Usage:
        fetcher = OriginFetcher(client, origin_url="https://backend.internal")

        alt = await fetcher.fetch_with_host(alt_origin, request.url, request)
        page = await fetcher.fetch_origin(request)
        response = await fetcher.passthrough(request)
    """

    def __init__(self, client: httpx.AsyncClient, origin_url: str):
        """
        Initialize fetcher.

        Args:
            client: Shared async client (owns pooling and timeouts)
            origin_url: Primary origin serving the real site

        Raises:
            ConfigurationError: If origin_url is empty
        """
        if not origin_url:
            raise ConfigurationError(
                "origin_url is required; the proxy cannot forward to itself",
                field="origin_url",
            )
        self._client = client
        self._origin_url = origin_url.rstrip("/")

    @property
    def primary_origin(self) -> str:
        """Origin that serves the real page."""
        return self._origin_url

    @staticmethod
    def _add_via(headers: httpx.Headers) -> None:
        """Append this proxy to Via, keeping entries added upstream."""
        hop = f"{VIA_PROTOCOL} {VIA_PSEUDONYM}"
        existing = headers.get(VIA_HEADER)
        headers[VIA_HEADER] = f"{existing}, {hop}" if existing else hop

    def _outbound_headers(
        self, request: IncomingRequest, origin: str, fix_host_header: bool
    ) -> httpx.Headers:
        headers = strip_hop_by_hop_headers(request.headers)
        for name in ("content-length", "host"):
            if name in headers:
                del headers[name]

        # Always marked, whatever bypass_marker says
        headers[LOOP_PREVENTION_HEADER] = LOOP_PREVENTION_VALUE
        headers["Accept-Encoding"] = DECODABLE_ACCEPT_ENCODING

        if fix_host_header:
            headers["Host"] = host_of(origin)
        self._add_via(headers)
        return headers

    async def _send(
        self, outbound: httpx.Request, stream: bool = False
    ) -> httpx.Response:
        try:
            return await self._client.send(
                outbound, follow_redirects=False, stream=stream
            )
        except httpx.TimeoutException as e:
            raise FetchError(
                "Outbound fetch timed out",
                url=str(outbound.url),
                reason=str(e) or type(e).__name__,
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(
                "Outbound fetch failed",
                url=str(outbound.url),
                reason=str(e) or type(e).__name__,
            ) from e

    async def fetch_with_host(
        self,
        origin: str,
        url: httpx.URL,
        request: IncomingRequest,
        fix_host_header: bool = False,
        bypass_marker: bool = False,
    ) -> httpx.Response:
        """
        Fetch the path and query of url from another origin.

        Args:
            origin: Target origin, optionally with a path prefix
            url: URL whose path and query are requested
            request: Inbound request supplying method, headers and body
            fix_host_header: Send the target's host as the Host header
            bypass_marker: Whether the target may route back to this proxy.
                Informational only; the loop-prevention marker is always set.

        Returns:
            The response, body read, redirects not followed

        Raises:
            FetchError: On transport failure or timeout
        """
        target = build_target_url(origin, url)
        logger.debug(
            f"Fetching -> {target} (fix_host={fix_host_header}, "
            f"may_loop={bypass_marker})"
        )

        content: Optional[bytes] = None
        if request.method not in BODYLESS_METHODS:
            content = request.body

        outbound = self._client.build_request(
            request.method,
            target,
            headers=self._outbound_headers(request, origin, fix_host_header),
            content=content,
        )
        return await self._send(outbound)

    async def resolve_redirect(
        self,
        response: httpx.Response,
        primary_origin: str,
        request: IncomingRequest,
    ) -> httpx.Response:
        """
        Follow exactly one redirect hop from the primary origin.

        The Location is resolved against the primary origin and re-fetched
        with the Host header fixed to the resolved origin. Whatever comes
        back, redirect or not, is returned as-is.

        Args:
            response: First primary-origin response
            primary_origin: Origin that produced the response
            request: Inbound request

        Returns:
            The second response, or the first if it was not a redirect
        """
        if not is_redirect_status(response.status_code):
            return response

        location = response.headers.get("location")
        if not location:
            return response

        canonical_url = resolve_location(location, primary_origin)
        canonical_origin = origin_of(canonical_url)
        is_same_origin = canonical_origin == request.origin
        logger.info(
            f"Origin redirect {response.status_code} -> {canonical_url} "
            f"(same_origin={is_same_origin})"
        )

        return await self.fetch_with_host(
            canonical_origin,
            httpx.URL(canonical_url),
            request,
            fix_host_header=True,
            bypass_marker=is_same_origin,
        )

    async def fetch_origin(self, request: IncomingRequest) -> httpx.Response:
        """
        Fetch the page from the primary origin, resolving one redirect hop.

        Raises:
            FetchError: If either fetch fails
        """
        origin = self.primary_origin
        response = await self.fetch_with_host(
            origin, request.url, request, fix_host_header=True, bypass_marker=True
        )
        logger.info(
            f"Origin status {response.status_code} "
            f"({get_status_category(response.status_code)}) for {request.url.raw_path.decode('ascii')}"
        )
        return await self.resolve_redirect(response, origin, request)

    async def passthrough(self, request: IncomingRequest) -> httpx.Response:
        """
        Re-issue the inbound request unmodified against the primary origin.

        Host and all end-to-end headers are kept and no loop marker is
        added; only this proxy is appended to Via. The response body is
        left unread for streaming; callers must close it.

        Raises:
            FetchError: On transport failure or timeout
        """
        headers = strip_hop_by_hop_headers(request.headers)
        if "content-length" in headers:
            del headers["content-length"]
        self._add_via(headers)

        outbound = self._client.build_request(
            request.method,
            build_target_url(self.primary_origin, request.url),
            headers=headers,
            content=request.body or None,
        )
        return await self._send(outbound, stream=True)
