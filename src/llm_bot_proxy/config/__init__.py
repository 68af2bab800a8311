"""Configuration module."""

from .constants import (
    AI_VISITOR_PATTERNS,
    LOOP_PREVENTION_HEADER,
    LOOP_PREVENTION_VALUE,
    STATIC_PASSTHROUGH_EXTENSIONS,
)
from .settings import Settings, clear_settings_cache, get_settings
from .sops_loader import check_sops_installed, decrypt_sops_file

__all__ = [
    # Classification
    "AI_VISITOR_PATTERNS",
    # Routing
    "LOOP_PREVENTION_HEADER",
    "LOOP_PREVENTION_VALUE",
    "STATIC_PASSTHROUGH_EXTENSIONS",
    # Settings
    "Settings",
    "get_settings",
    "clear_settings_cache",
    # Config loading
    "decrypt_sops_file",
    "check_sops_installed",
]
