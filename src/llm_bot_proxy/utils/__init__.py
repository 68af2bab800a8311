"""Utility functions for the LLM bot content proxy."""

from .bot_classifier import (
    BotCategory,
    BotClassification,
    classify_bot,
    classify_visitor,
)
from .http_utils import (
    get_status_category,
    is_html_content_type,
    is_redirect_status,
    is_static_asset_path,
    is_success_status,
    strip_hop_by_hop_headers,
)
from .url_utils import build_target_url, host_of, origin_of, resolve_location

__all__ = [
    # Bot classification
    "BotCategory",
    "BotClassification",
    "classify_visitor",
    "classify_bot",
    # HTTP utilities
    "get_status_category",
    "is_success_status",
    "is_redirect_status",
    "is_html_content_type",
    "is_static_asset_path",
    "strip_hop_by_hop_headers",
    # URL utilities
    "origin_of",
    "host_of",
    "build_target_url",
    "resolve_location",
]
