"""
Request handler: decides between plain pass-through and the AI content path.

Flow for one request:

    already passed through us  -> LoopDetectedError
    loop marker present        -> pass through
    organization id missing    -> pass through (logged)
    .txt / .xml path           -> pass through, not classified
    not an AI visitor          -> pass through
    AI visitor                 -> telemetry (detached)
                                  + secondary-store fetch -> fragment
                                  + primary-origin fetch (one redirect hop)
                                  -> inject + finalize if HTML and fragment
                                  -> else pass through

Any failure on the AI path ends in the same pass-through a regular visitor
would get, so the AI path can only ever add to what the origin serves.
"""

import asyncio
import logging
from typing import Optional

import httpx

from ..config.settings import Settings
from ..content.fragments import extract_element_outer_html_by_id, inject_fragment
from ..monitoring.telemetry import TelemetryEmitter, build_telemetry_event
from ..utils.bot_classifier import BotCategory, classify_bot
from ..utils.http_utils import (
    get_status_category,
    is_html_content_type,
    is_static_asset_path,
    is_success_status,
)
from .exceptions import LoopDetectedError
from .fetcher import OriginFetcher
from .finalize import finalize_response
from .models import ClientContext, IncomingRequest

logger = logging.getLogger(__name__)


class RequestHandler:
    """
    Orchestrates classification, fetching and injection for one proxy.

    Holds no per-request state; one instance serves all requests.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: OriginFetcher,
        telemetry: TelemetryEmitter,
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.telemetry = telemetry

    @classmethod
    def from_client(cls, settings: Settings, client: httpx.AsyncClient) -> "RequestHandler":
        """Wire a handler and its collaborators around one shared client."""
        return cls(
            settings=settings,
            fetcher=OriginFetcher(client, origin_url=settings.origin_url),
            telemetry=TelemetryEmitter(
                client,
                endpoint=settings.telemetry_endpoint,
                enabled=settings.telemetry_enabled,
            ),
        )

    async def handle(
        self, request: IncomingRequest, context: Optional[ClientContext] = None
    ) -> httpx.Response:
        """
        Produce the response for one inbound request.

        Args:
            request: The inbound request
            context: Platform-provided client details, if any

        Returns:
            Either a streamed pass-through response or a rewritten page

        Raises:
            FetchError: Only if the pass-through itself fails
            LoopDetectedError: If the request already went through this proxy
        """
        path = request.url.path

        if request.has_visited_proxy:
            logger.error(
                f"Request for {path} came back through this proxy; "
                f"check that origin_url ({self.fetcher.primary_origin}) is not the proxy itself"
            )
            raise LoopDetectedError("Proxy loop detected", url=str(request.url))

        if request.has_loop_marker:
            logger.debug(f"Internal fetch, passing through {path}")
            return await self.fetcher.passthrough(request)

        if not self.settings.has_organization_id:
            logger.debug(f"organization_id not configured, passing through {path}")
            return await self.fetcher.passthrough(request)

        if is_static_asset_path(path):
            return await self.fetcher.passthrough(request)

        classification = classify_bot(request.user_agent, request.user_agent_override)
        if classification is None:
            logger.info(f"Non-AI -> passthrough {request.url.raw_path.decode('ascii')}")
            return await self.fetcher.passthrough(request)

        category = classification.category
        logger.info(f"AI visitor for {request.url}: {classification.to_dict()}")
        self.telemetry.emit(
            build_telemetry_event(
                request, category, self.settings.organization_id, context
            )
        )

        try:
            response = await self._serve_ai_variant(request, category)
        except Exception as e:
            logger.error(f"AI path error; falling back to normal fetch: {e}")
            response = None

        if response is not None:
            return response

        logger.info(f"AI visitor but no injection -> serving original {path}")
        return await self.fetcher.passthrough(request)

    async def _fetch_fragment(self, request: IncomingRequest) -> str:
        """Fetch the curated page and pull out the fragment ('' if absent)."""
        alt_response = await self.fetcher.fetch_with_host(
            self.settings.alt_origin, request.url, request
        )
        logger.info(
            f"ALT status {alt_response.status_code} "
            f"({get_status_category(alt_response.status_code)}) "
            f"for {request.url.raw_path.decode('ascii')}"
        )
        if not is_success_status(alt_response.status_code):
            return ""

        fragment = extract_element_outer_html_by_id(
            alt_response.text, self.settings.fragment_element_id
        )
        if not fragment:
            logger.info(
                f"No #{self.settings.fragment_element_id} found in ALT; "
                "continuing without injection"
            )
        return fragment

    async def _serve_ai_variant(
        self, request: IncomingRequest, category: BotCategory
    ) -> Optional[httpx.Response]:
        """
        Build the injected page, or None when there is nothing to inject.

        The secondary-store and primary-origin fetches run concurrently.

        Raises:
            FetchError: If either fetch fails
        """
        results = await asyncio.gather(
            self._fetch_fragment(request),
            self.fetcher.fetch_origin(request),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        fragment, origin_response = results

        content_type = origin_response.headers.get("content-type")
        if not fragment or not is_html_content_type(content_type):
            logger.info(
                f"Skipping injection for {category.value}: "
                f"fragment={'yes' if fragment else 'no'}, content_type={content_type!r}"
            )
            return None

        logger.info(f"Injecting AI snippet for {category.value}")
        result = inject_fragment(origin_response.text, fragment)
        encoding = origin_response.encoding or "utf-8"

        headers = httpx.Headers(origin_response.headers)
        # Body was decoded to text above
        if "content-encoding" in headers:
            del headers["content-encoding"]

        rewritten = httpx.Response(
            status_code=origin_response.status_code,
            headers=headers,
            stream=httpx.ByteStream(
                result.html.encode(encoding, errors="xmlcharrefreplace")
            ),
            extensions=origin_response.extensions,
        )
        return finalize_response(
            rewritten,
            vary_on_user_agent=result.fragment_injected,
            ai_variant=result.fragment_injected,
        )
