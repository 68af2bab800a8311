"""
Best-effort visit telemetry for AI visitors.

Each classified visit produces one event that is POSTed to the event
stream endpoint from a detached task. The client-visible response never
waits on it; failures are logged and dropped, never retried.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Optional

import httpx

from ..config.constants import (
    DEFAULT_TELEMETRY_DRAIN_SECONDS,
    TELEMETRY_CAMPAIGN_ID,
    TELEMETRY_EVENT_TYPE,
    TELEMETRY_LAUNCHER,
    TELEMETRY_USER_AGENT,
    UNKNOWN_CLIENT_VALUE,
)
from ..proxy.models import ClientContext, IncomingRequest
from ..utils.bot_classifier import BotCategory
from ..utils.http_utils import is_success_status

logger = logging.getLogger(__name__)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class TelemetryEvent:
    """One AI visit, as reported to the event stream."""

    url: str
    bot_type: str
    client_ip: str
    country: str
    organization_id: str
    user_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str = TELEMETRY_EVENT_TYPE
    campaign_id: str = TELEMETRY_CAMPAIGN_ID
    launcher: str = TELEMETRY_LAUNCHER

    def to_payload(self) -> dict:
        """Render the JSON body expected by the event stream."""
        return {
            "data": {
                "launcher": self.launcher,
                "url": self.url,
                "bot_type": self.bot_type,
                "client_ip": self.client_ip,
                "country": self.country,
            },
            "event_type": self.event_type,
            "url": self.url,
            "user_id": self.user_id,
            "campaign_id": self.campaign_id,
            "organization_id": self.organization_id,
        }


def resolve_client_ip(
    request: IncomingRequest, context: Optional[ClientContext] = None
) -> str:
    """Platform-provided IP, else X-Forwarded-For as received, else 'unknown'."""
    if context is not None and context.ip:
        return context.ip
    return request.headers.get("x-forwarded-for") or UNKNOWN_CLIENT_VALUE


def build_telemetry_event(
    request: IncomingRequest,
    category: BotCategory,
    organization_id: str,
    context: Optional[ClientContext] = None,
) -> TelemetryEvent:
    """
    Build the telemetry event for a classified visit.

    Args:
        request: The inbound request
        category: Detected AI visitor category
        organization_id: Configured organization identifier
        context: Platform-provided client details, if any

    Returns:
        A TelemetryEvent with a fresh request-scoped user_id
    """
    country = context.country if context is not None else None
    return TelemetryEvent(
        url=str(request.url),
        bot_type=category.value,
        client_ip=resolve_client_ip(request, context),
        country=country or UNKNOWN_CLIENT_VALUE,
        organization_id=organization_id,
    )


# =============================================================================
# Emitter
# =============================================================================


class TelemetryEmitter:
    """
    Sends telemetry events without blocking the caller.

    Pending sends are held in a set so they are not garbage collected
    mid-flight; drain() lets the server finish them on shutdown.
    """

    def __init__(self, client: httpx.AsyncClient, endpoint: str, enabled: bool = True):
        self._client = client
        self._endpoint = endpoint
        self._enabled = enabled
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def emit(self, event: TelemetryEvent) -> Optional[asyncio.Task]:
        """
        Schedule one event for delivery and return immediately.

        Must be called from a running event loop.

        Returns:
            The detached task, or None when telemetry is disabled
        """
        if not self._enabled:
            logger.debug("Telemetry disabled; dropping event")
            return None

        task = asyncio.get_running_loop().create_task(self._send(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self, event: TelemetryEvent) -> None:
        try:
            response = await self._client.post(
                self._endpoint,
                json=event.to_payload(),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": TELEMETRY_USER_AGENT,
                },
            )
        except httpx.HTTPError as e:
            logger.warning(f"Failed to POST telemetry event {event.user_id}: {e!r}")
            return

        if is_success_status(response.status_code):
            logger.debug(f"Telemetry event {event.user_id} accepted")
        else:
            logger.warning(
                f"Telemetry endpoint rejected event {event.user_id}: "
                f"HTTP {response.status_code}"
            )

    async def drain(self, timeout: float = DEFAULT_TELEMETRY_DRAIN_SECONDS) -> None:
        """Wait up to timeout seconds for pending sends, then cancel the rest."""
        if not self._pending:
            return
        logger.info(f"Draining {self.pending_count} pending telemetry event(s)")
        pending = list(self._pending)
        _, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Dropped {len(not_done)} telemetry event(s) on shutdown")
