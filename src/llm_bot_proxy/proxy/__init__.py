"""
Proxy core: inbound request model, outbound fetching and response finalization.

The orchestrator lives in ``llm_bot_proxy.proxy.handler``.
"""

from .exceptions import ConfigurationError, FetchError, LoopDetectedError, ProxyError
from .fetcher import OriginFetcher
from .finalize import finalize_response
from .models import ClientContext, IncomingRequest

__all__ = [
    # Exceptions
    "ProxyError",
    "FetchError",
    "ConfigurationError",
    "LoopDetectedError",
    # Models
    "ClientContext",
    "IncomingRequest",
    # Fetching
    "OriginFetcher",
    "finalize_response",
]
